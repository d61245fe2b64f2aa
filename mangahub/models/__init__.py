"""
Data Models and Schemas.

Domain records produced by the source adapters:

- SearchResult / SearchSuggestion: listing, search and genre entries
- ContentInfo / ChapterRef / Character: series detail pages
- ChapterContent / PageRef: chapter reader payloads
- GenreRef, HomeData, PaginationInfo, SourceInfo
"""

from mangahub.models.schemas import (
    BaseRecord,
    ChapterContent,
    ChapterRef,
    Character,
    ContentInfo,
    ContentStatus,
    ContentType,
    GenreRef,
    HomeData,
    PageRef,
    PaginationInfo,
    SearchResult,
    SearchSuggestion,
    SourceInfo,
)

__all__ = [
    "BaseRecord",
    "ChapterContent",
    "ChapterRef",
    "Character",
    "ContentInfo",
    "ContentStatus",
    "ContentType",
    "GenreRef",
    "HomeData",
    "PageRef",
    "PaginationInfo",
    "SearchResult",
    "SearchSuggestion",
    "SourceInfo",
]
