"""
Normalization Layer.

Turns raw upstream markup and text into canonical field values:

- parsers: pure text normalizers (status, type, rating, dates, URLs)
- extraction: ordered candidate-location rules over parsed documents
"""

from mangahub.sources.normalization.extraction import (
    FieldRule,
    first_match,
    image_source,
    is_content_image,
    labelled_value,
    select_texts,
)
from mangahub.sources.normalization.parsers import (
    clean_text,
    extract_id_from_url,
    extract_path_from_url,
    generate_slug,
    parse_chapter_number,
    parse_content_type,
    parse_date,
    parse_magnitude,
    parse_rating,
    parse_status,
    resolve_url,
    sanitize_html,
)

__all__ = [
    "FieldRule",
    "clean_text",
    "extract_id_from_url",
    "extract_path_from_url",
    "first_match",
    "generate_slug",
    "image_source",
    "is_content_image",
    "labelled_value",
    "parse_chapter_number",
    "parse_content_type",
    "parse_date",
    "parse_magnitude",
    "parse_rating",
    "parse_status",
    "resolve_url",
    "sanitize_html",
    "select_texts",
]
