"""OmegaScans (omegascans.org) source adapter.

Series data comes from the JSON API at ``settings.omegascans_api_url``. Chapter
reader pages are Next.js documents whose image URLs are inlined in the
serialized page payload.
"""

import re
from typing import Any, Optional
from urllib.parse import urlencode

import structlog
from bs4 import BeautifulSoup

from mangahub.core.exceptions import ScrapeError, SourceNotFoundError
from mangahub.models.schemas import (
    ChapterContent,
    ChapterRef,
    ContentInfo,
    HomeData,
    PageRef,
    SearchResult,
)
from mangahub.sources.base import BaseSource, Capability, scrape_operation
from mangahub.sources.normalization import (
    clean_text,
    image_source,
    is_content_image,
    parse_chapter_number,
    parse_content_type,
    parse_date,
    parse_magnitude,
    parse_status,
    sanitize_html,
)
from mangahub.sources.registry import register_source

logger = structlog.get_logger(__name__)

_MEDIA_URL = re.compile(
    r"https://media\.omegascans\.org/file/[^\"'\s]+/uploads/series/[^\"'\s]+\.(?:jpg|png|webp)"
)
# The payload is a JSON string embedded in a script, so quotes arrive escaped.
_CHAPTER_NAME = re.compile(r'\\"chapter_name\\":\\"([^"\\]+)\\"')
_CHAPTER_INDEX = re.compile(r'\\"index\\":\\"([\d.]+)\\"')
_NEXT_SLUG = re.compile(r'\\"next_chapter\\":\{[^}]*\\"chapter_slug\\":\\"([^"\\]+)\\"')
_PREVIOUS_SLUG = re.compile(r'\\"previous_chapter\\":\{[^}]*\\"chapter_slug\\":\\"([^"\\]+)\\"')
_SERIES_SLUG = re.compile(r"series/([^/]+)/")

FEED_SIZE = 20
HOME_FEED_SIZE = 30
HOME_TRENDING_SIZE = 10


@register_source("omegascans")
class OmegaScansSource(BaseSource):
    """Adapter for omegascans.org and its JSON API."""

    display_name = "OmegaScans"
    base_url_setting = "omegascans_base_url"
    optional_capabilities = frozenset({Capability.HOME})
    extra_operations = frozenset(
        {"latest_comic_updates", "latest_novel_updates", "comic", "novel"}
    )

    @property
    def api_url(self) -> str:
        return self.settings.omegascans_api_url.rstrip("/")

    @scrape_operation("search")
    async def search(self, query: str, page: int = 1) -> list[SearchResult]:
        items = await self._query(search=query, page=page)
        return self._parse_series_list(items)

    @scrape_operation("latest_updates")
    async def get_latest_updates(self, page: int = 1) -> list[SearchResult]:
        items = await self._query(page=page)
        return self._parse_series_list(items[:FEED_SIZE])

    @scrape_operation("latest_comic_updates")
    async def get_latest_comic_updates(self, page: int = 1) -> list[SearchResult]:
        return await self._typed_feed("Comic", page)

    @scrape_operation("latest_novel_updates")
    async def get_latest_novel_updates(self, page: int = 1) -> list[SearchResult]:
        return await self._typed_feed("Novel", page)

    # Menu aliases for the typed feeds
    async def get_comic(self, page: int = 1) -> list[SearchResult]:
        return await self.get_latest_comic_updates(page)

    async def get_novel(self, page: int = 1) -> list[SearchResult]:
        return await self.get_latest_novel_updates(page)

    @scrape_operation("popular")
    async def get_popular(self, page: int = 1) -> list[SearchResult]:
        items = await self._query(sort="total_views", page=page)

        results = []
        for item in items[:FEED_SIZE]:
            result = self._parse_series(item)
            if result is None:
                continue
            if item.get("total_views"):
                result = result.model_copy(
                    update={"views": parse_magnitude(str(item["total_views"]))}
                )
            results.append(result)
        return results

    @scrape_operation("home")
    async def get_home(self) -> HomeData:
        items = await self._query(page=1)
        results = self._parse_series_list(items[:HOME_FEED_SIZE])

        return HomeData(
            trending=results[:HOME_TRENDING_SIZE] or None,
            latest_updates=results[:FEED_SIZE] or None,
        )

    @scrape_operation("info")
    async def get_info(self, id: str) -> ContentInfo:
        items = await self._query(search=id)
        if not items:
            raise SourceNotFoundError(self.source_id, f"Series not found: {id}", {"id": id})

        # Search is fuzzy; prefer the exact slug when it is in the results.
        series = next((item for item in items if item.get("series_slug") == id), items[0])

        title = clean_text(series.get("title"))
        if not title:
            raise ScrapeError(self.source_id, "info", "Series has no title")

        slug = series.get("series_slug") or id
        author = clean_text(series.get("author"))
        tags = series.get("tags") or []

        return ContentInfo(
            id=slug,
            title=title,
            cover=series.get("thumbnail") or f"{self.base_url}/icon.png",
            description=sanitize_html(series.get("description") or ""),
            status=parse_status(series.get("status") or ""),
            rating=self._rating(series),
            genres=[clean_text(tag.get("name")) for tag in tags if tag.get("name")],
            authors=[author] if author else None,
            type=parse_content_type(series.get("series_type") or "Comic"),
            chapters=self._parse_chapters(series, slug),
        )

    @scrape_operation("chapter")
    async def get_chapter(self, id: str) -> ChapterContent:
        """Load reader pages.

        ``id`` has the form ``series/<series-slug>/<chapter-slug>``.
        """
        html = await self.client.fetch_text(f"/{id}")

        pages = self._payload_pages(html)
        if not pages:
            pages = self._reader_pages(html)
        if not pages:
            raise ScrapeError(self.source_id, "chapter", "No chapter images found")

        name_match = _CHAPTER_NAME.search(html)
        title = name_match.group(1) if name_match else "Chapter"
        index_match = _CHAPTER_INDEX.search(html)
        chapter = index_match.group(1) if index_match else parse_chapter_number(title)

        series_match = _SERIES_SLUG.search(id)
        series_slug = series_match.group(1) if series_match else ""

        return ChapterContent(
            id=id,
            title=title,
            chapter=chapter,
            pages=pages,
            next_chapter=self._sibling_chapter(_NEXT_SLUG, html, series_slug),
            previous_chapter=self._sibling_chapter(_PREVIOUS_SLUG, html, series_slug),
        )

    # -------------------------------------------------------------------------
    # API helpers
    # -------------------------------------------------------------------------

    async def _query(self, **params: Any) -> list[dict[str, Any]]:
        payload = await self.client.fetch_json(f"{self.api_url}/query?{urlencode(params)}")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def _typed_feed(self, series_type: str, page: int) -> list[SearchResult]:
        items = await self._query(type=series_type, page=page)
        matching = [item for item in items if item.get("series_type") == series_type]
        return self._parse_series_list(matching[:FEED_SIZE])

    def _parse_series_list(self, items: list[dict[str, Any]]) -> list[SearchResult]:
        results = []
        for item in items:
            result = self._parse_series(item)
            if result is not None:
                results.append(result)
        return results

    def _parse_series(self, item: dict[str, Any]) -> Optional[SearchResult]:
        series_id = item.get("series_slug") or (str(item["id"]) if item.get("id") else "")
        title = clean_text(item.get("title"))
        if not (series_id and title):
            return None

        free_chapters = item.get("free_chapters") or []
        latest = free_chapters[0].get("chapter_name") if free_chapters else None
        series_type = item.get("series_type")

        return SearchResult(
            id=series_id,
            title=title,
            cover=item.get("thumbnail") or f"{self.base_url}/icon.png",
            latest_chapter=latest or None,
            type=parse_content_type(series_type) if series_type else None,
            rating=self._rating(item),
        )

    @staticmethod
    def _rating(item: dict[str, Any]) -> Optional[float]:
        try:
            rating = float(item.get("rating") or 0)
        except (TypeError, ValueError):
            return None
        return rating or None

    def _parse_chapters(self, series: dict[str, Any], series_slug: str) -> list[ChapterRef]:
        chapters = []
        for key, suffix in (("free_chapters", ""), ("paid_chapters", " [PAID]")):
            for chapter in series.get(key) or []:
                chapter_slug = chapter.get("chapter_slug")
                if not chapter_slug:
                    continue

                index = str(chapter.get("index") or "0")
                name = clean_text(chapter.get("chapter_name")) or f"Chapter {index}"
                created = chapter.get("created_at")
                chapters.append(
                    ChapterRef(
                        id=f"series/{series_slug}/{chapter_slug}",
                        title=f"{name}{suffix}",
                        chapter=index,
                        release_date=parse_date(created) if created else None,
                    )
                )

        chapters.sort(key=lambda chapter: _chapter_sort_key(chapter.chapter), reverse=True)
        return chapters

    # -------------------------------------------------------------------------
    # Reader helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _payload_pages(html: str) -> list[PageRef]:
        urls = list(dict.fromkeys(_MEDIA_URL.findall(html)))
        return [PageRef(page=index, image_url=url) for index, url in enumerate(urls, start=1)]

    @staticmethod
    def _reader_pages(html: str) -> list[PageRef]:
        soup = BeautifulSoup(html, "html.parser")
        urls = [image_source(img) for img in soup.select("img")]
        urls = [url for url in urls if "/uploads/series/" in url and is_content_image(url)]
        urls = list(dict.fromkeys(urls))
        return [PageRef(page=index, image_url=url) for index, url in enumerate(urls, start=1)]

    @staticmethod
    def _sibling_chapter(pattern: re.Pattern, html: str, series_slug: str) -> Optional[str]:
        match = pattern.search(html)
        if match is None or not series_slug:
            return None
        return f"series/{series_slug}/{match.group(1)}"


def _chapter_sort_key(chapter: str) -> float:
    try:
        return float(chapter)
    except ValueError:
        return 0.0
