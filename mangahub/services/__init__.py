"""
Application Services.

- catalog: validated, cached access to every source operation
"""

from mangahub.services.catalog import OPERATIONS, CatalogResult, CatalogService, OperationSpec

__all__ = [
    "OPERATIONS",
    "CatalogResult",
    "CatalogService",
    "OperationSpec",
]
