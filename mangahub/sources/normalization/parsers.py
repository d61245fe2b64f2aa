"""Text normalizers shared by all source adapters.

Every function here is pure and total: bad input produces a documented
default (Ongoing, Manga, 0, the original text, ...) instead of an exception.
"""

import re
from datetime import timezone
from decimal import Decimal, InvalidOperation
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from dateutil import parser as dateparser

from mangahub.models.schemas import ContentStatus, ContentType

_WHITESPACE = re.compile(r"\s+")
_DECIMAL = re.compile(r"(\d+\.?\d*)")
_MAGNITUDE = re.compile(r"(\d+(?:,\d+)*(?:\.\d+)?)\s*([KMB])?", re.IGNORECASE)
_CHAPTER = re.compile(r"(?:chapter|ch\.?)\s*(\d+(?:\.\d+)?)", re.IGNORECASE)

# Checked in order; the first vocabulary hit wins.
STATUS_VOCABULARY: list[tuple[tuple[str, ...], ContentStatus]] = [
    (("ongoing", "publishing"), ContentStatus.ONGOING),
    (("completed", "finished"), ContentStatus.COMPLETED),
    (("hiatus", "on hold"), ContentStatus.HIATUS),
    (("cancelled", "discontinued"), ContentStatus.CANCELLED),
    (("upcoming", "not yet"), ContentStatus.UPCOMING),
]

TYPE_VOCABULARY: list[tuple[tuple[str, ...], ContentType]] = [
    (("manhwa",), ContentType.MANHWA),
    (("manhua",), ContentType.MANHUA),
    (("doujinshi",), ContentType.DOUJINSHI),
    (("comic",), ContentType.COMIC),
    (("one-shot", "oneshot"), ContentType.ONE_SHOT),
]

MAGNITUDE_SUFFIXES = {
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


def parse_status(text: str) -> ContentStatus:
    """Map free-form status text to ContentStatus; unknown text is Ongoing."""
    normalized = (text or "").lower().strip()
    for keywords, status in STATUS_VOCABULARY:
        if any(keyword in normalized for keyword in keywords):
            return status
    return ContentStatus.ONGOING


def parse_content_type(text: str) -> ContentType:
    """Map free-form type text to ContentType; unknown text is Manga."""
    normalized = (text or "").lower().strip()
    for keywords, content_type in TYPE_VOCABULARY:
        if any(keyword in normalized for keyword in keywords):
            return content_type
    return ContentType.MANGA


def parse_rating(text: str) -> float:
    """Extract a rating on a 0-10 scale.

    "8.5" -> 8.5, "4.2/5" -> 8.4, "no score" -> 0.0
    """
    match = _DECIMAL.search(text or "")
    if not match:
        return 0.0

    value = float(match.group(1))
    if "/5" in text:
        return value * 2
    return value


def parse_magnitude(text: str) -> int:
    """Parse counts such as "1.2K", "3M" or "12,345" into an integer."""
    match = _MAGNITUDE.search(text or "")
    if not match:
        return 0

    try:
        value = Decimal(match.group(1).replace(",", ""))
    except InvalidOperation:
        return 0

    suffix = (match.group(2) or "").upper()
    return int(value * MAGNITUDE_SUFFIXES.get(suffix, 1))


def parse_chapter_number(text: str) -> str:
    """Return the number of "Chapter 12.5"-style text, else the text itself."""
    match = _CHAPTER.search(text or "")
    return match.group(1) if match else text


def resolve_url(base_url: str, url: str) -> str:
    """Make ``url`` absolute against ``base_url``."""
    if not url:
        return ""
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return "https:" + url
    if url.startswith("/"):
        return base_url + url
    return base_url + "/" + url


def clean_text(text: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def parse_date(text: str) -> str:
    """Return an ISO-8601 timestamp, or ``text`` unchanged when it isn't a date.

    Relative dates ("2 hours ago") are not calendar dates and pass through.
    """
    if not text or not text.strip():
        return text

    try:
        parsed = dateparser.parse(text)
    except (ValueError, OverflowError):
        return text

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.isoformat()


def generate_slug(text: str) -> str:
    """Lowercase, hyphen-separated slug: "Slice of Life" -> "slice-of-life"."""
    slug = (text or "").lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()


def extract_id_from_url(url: str) -> str:
    """Last non-empty path segment of a URL."""
    path = urlsplit(url or "").path
    parts = [part for part in path.split("/") if part]
    return parts[-1] if parts else ""


def extract_path_from_url(url: str) -> str:
    """Path of a URL without surrounding slashes, e.g. "read/one-piece-3/en/chapter-1"."""
    return urlsplit(url or "").path.strip("/")


def sanitize_html(html: str) -> str:
    """Strip tags (and script/style bodies) from an HTML fragment."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return clean_text(soup.get_text(" "))
