"""Pydantic models for MangaHub domain records."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentStatus(str, Enum):
    """Publication status of a series."""
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    HIATUS = "Hiatus"
    CANCELLED = "Cancelled"
    UPCOMING = "Upcoming"


class ContentType(str, Enum):
    """Format of a series."""
    MANGA = "Manga"
    MANHWA = "Manhwa"
    MANHUA = "Manhua"
    COMIC = "Comic"
    DOUJINSHI = "Doujinshi"
    ONE_SHOT = "One-shot"


# =============================================================================
# Base Models
# =============================================================================


class BaseRecord(BaseModel):
    """Base model with cache conversion helpers."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_cache(self) -> dict[str, Any]:
        """JSON-safe form stored in both cache tiers."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> "BaseRecord":
        return cls.model_validate(data)


# =============================================================================
# Listing Records
# =============================================================================


class SearchResult(BaseRecord):
    """One entry of a search, listing or genre page."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    cover: str = ""
    latest_chapter: Optional[str] = None
    genres: Optional[list[str]] = None
    rating: Optional[float] = Field(None, description="0-10 scale")
    type: Optional[ContentType] = None
    views: Optional[int] = None


class SearchSuggestion(BaseRecord):
    """Lightweight autocomplete entry."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    cover: Optional[str] = None


class GenreRef(BaseRecord):
    """A genre as exposed by a source; slug is the lookup key for get_genre."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)


class HomeData(BaseRecord):
    """Homepage sections. Each section is absent when the source has none."""

    trending: Optional[list[SearchResult]] = None
    popular_today: Optional[list[SearchResult]] = None
    latest_updates: Optional[list[SearchResult]] = None
    new_releases: Optional[list[SearchResult]] = None
    recommendations: Optional[list[SearchResult]] = None


# =============================================================================
# Series Detail
# =============================================================================


class Character(BaseRecord):
    name: str = Field(..., min_length=1)
    role: Optional[str] = None
    image: Optional[str] = None


class ChapterRef(BaseRecord):
    """A chapter as listed on a series page.

    ``chapter`` is free-form: usually "12" or "12.5", sometimes "Extra".
    """

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    chapter: str
    release_date: Optional[str] = None
    views: Optional[int] = None


class ContentInfo(BaseRecord):
    """Full series detail. id and title are always present."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    alt_titles: Optional[list[str]] = None
    cover: str = ""
    description: str = ""
    status: ContentStatus = ContentStatus.ONGOING
    rating: Optional[float] = Field(None, description="0-10 scale")
    genres: list[str] = Field(default_factory=list)
    authors: Optional[list[str]] = None
    type: Optional[ContentType] = None
    release_date: Optional[str] = None
    views: Optional[int] = None
    chapters: list[ChapterRef] = Field(default_factory=list)
    related: Optional[list[SearchResult]] = None
    recommendations: Optional[list[SearchResult]] = None
    characters: Optional[list[Character]] = None


# =============================================================================
# Chapter Reader
# =============================================================================


class PageRef(BaseRecord):
    page: int = Field(..., ge=1, description="1-based page index")
    image_url: str = Field(..., min_length=1)


class ChapterContent(BaseRecord):
    """Reader payload for one chapter. Never has zero pages."""

    id: str = Field(..., min_length=1)
    title: str = ""
    chapter: str = ""
    pages: list[PageRef] = Field(..., min_length=1)
    next_chapter: Optional[str] = None
    previous_chapter: Optional[str] = None


# =============================================================================
# Metadata
# =============================================================================


class PaginationInfo(BaseRecord):
    current_page: int = Field(..., ge=1)
    has_next_page: bool
    total_pages: Optional[int] = None


class SourceInfo(BaseRecord):
    """Static description of a registered source."""

    name: str
    base_url: str
    is_active: bool = True
    features: list[str] = Field(default_factory=list)
