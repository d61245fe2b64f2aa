"""Hentai20 (hentai20.io) source adapter.

WordPress "MangaStream"-style theme: listing cards are ``.bs`` blocks and the
reader page ships its image list inside a ``ts_reader.run({...})`` script.
"""

import json
import re
from typing import Optional
from urllib.parse import urlencode

import structlog
from bs4 import BeautifulSoup, Tag

from mangahub.core.exceptions import ScrapeError
from mangahub.models.schemas import (
    ChapterContent,
    ChapterRef,
    ContentInfo,
    GenreRef,
    HomeData,
    PageRef,
    SearchResult,
)
from mangahub.sources.base import BaseSource, Capability, scrape_operation
from mangahub.sources.normalization import (
    FieldRule,
    clean_text,
    extract_id_from_url,
    first_match,
    generate_slug,
    image_source,
    is_content_image,
    parse_chapter_number,
    parse_content_type,
    parse_date,
    parse_rating,
    parse_status,
    resolve_url,
    select_texts,
)
from mangahub.sources.registry import register_source

logger = structlog.get_logger(__name__)

_READER_IMAGES = re.compile(r'"images"\s*:\s*(\[.*?\])', re.DOTALL)

CARD_TITLE_RULES = [
    FieldRule('a[href*="/manga/"]', attr="title"),
    FieldRule(".tt"),
]

COVER_RULES = [
    FieldRule(".thumb img", attr="src"),
    FieldRule(".seriestucontl img", attr="src"),
]

DESCRIPTION_RULES = [
    FieldRule('.entry-content[itemprop="description"]'),
    FieldRule(".seriestucon .entry-content"),
    FieldRule(".wd-full"),
]

STATUS_RULES = [
    FieldRule('.tsinfo .imptdt:-soup-contains("Status") i'),
    FieldRule('.infotable tr:-soup-contains("Status") td:last-child'),
]

TYPE_RULES = [
    FieldRule('.tsinfo .imptdt:-soup-contains("Type") a'),
    FieldRule('.infotable tr:-soup-contains("Type") td:last-child'),
]

RATING_RULES = [
    FieldRule(".rating-prc .numscore"),
    FieldRule(".rating .numscore"),
]

AUTHOR_RULES = [
    FieldRule('.tsinfo .imptdt:-soup-contains("Author") i'),
    FieldRule('.infotable tr:-soup-contains("Author") td:last-child'),
]

CHAPTER_TITLE_RULES = [
    FieldRule("h1.entry-title"),
    FieldRule(".allc a", attr="title"),
]

NEXT_CHAPTER = '.readingnav a:-soup-contains("Next"), .nextprev a:-soup-contains("Next"), .ch-next-btn'
PREVIOUS_CHAPTER = '.readingnav a:-soup-contains("Prev"), .nextprev a:-soup-contains("Prev"), .ch-prev-btn'

HOME_POPULAR_SIZE = 10
HOME_LATEST_SIZE = 20


@register_source("hentai20")
class Hentai20Source(BaseSource):
    """Adapter for hentai20.io."""

    display_name = "Hentai20"
    base_url_setting = "hentai20_base_url"
    optional_capabilities = frozenset({Capability.GENRES, Capability.GENRE, Capability.HOME})
    extra_operations = frozenset(
        {
            "manga_list",
            "manhwa_update",
            "webtoon_hot",
            "tumanhwas_espanol",
            "china_toptoon",
            "porn_comic",
            "manga_for_free",
        }
    )

    @scrape_operation("search")
    async def search(self, query: str, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/?{urlencode({'s': query, 'page': page})}")

    @scrape_operation("latest_updates")
    async def get_latest_updates(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/manga/page/{page}/?order=update")

    @scrape_operation("popular")
    async def get_popular(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/manga/page/{page}/?order=popular")

    @scrape_operation("manhwa_update")
    async def get_manhwa_update(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/genres/manhwa-hentai-26/page/{page}/")

    @scrape_operation("manga_list")
    async def get_manga_list(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/manga/page/{page}/")

    @scrape_operation("webtoon_hot")
    async def get_webtoon_hot(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/manga/page/{page}/?order=rating")

    @scrape_operation("tumanhwas_espanol")
    async def get_tumanhwas_espanol(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/manga/page/{page}/?order=latest")

    @scrape_operation("china_toptoon")
    async def get_china_toptoon(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/genres/manga-hentai-902/page/{page}/")

    # The site exposes these menu sections over the unfiltered catalog listing.
    @scrape_operation("porn_comic")
    async def get_porn_comic(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/manga/page/{page}/")

    @scrape_operation("manga_for_free")
    async def get_manga_for_free(self, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/manga/page/{page}/")

    @scrape_operation("genre")
    async def get_genre(self, genre: str, page: int = 1) -> list[SearchResult]:
        return await self._listing(f"/genres/{genre}/page/{page}/")

    @scrape_operation("genres")
    async def get_genres(self) -> list[GenreRef]:
        soup = await self.client.fetch_document("/genres/")

        genres = []
        seen = set()
        for link in soup.select(".genre-list a, .genrez li a, ul.genre li a"):
            name = clean_text(link.get_text(" "))
            slug = extract_id_from_url(link.get("href") or "") or generate_slug(name)
            if not (name and slug) or slug in seen:
                continue
            seen.add(slug)
            genres.append(GenreRef(id=slug, name=name, slug=slug))
        return genres

    @scrape_operation("home")
    async def get_home(self) -> HomeData:
        soup = await self.client.fetch_document("/")
        cards = self._parse_cards(soup)

        # The homepage has no section markers; the first block is the popular
        # carousel and the rest is the update feed.
        popular_today = cards[:HOME_POPULAR_SIZE]
        latest_updates = cards[HOME_POPULAR_SIZE : HOME_POPULAR_SIZE + HOME_LATEST_SIZE]

        return HomeData(
            popular_today=popular_today or None,
            latest_updates=latest_updates or None,
        )

    @scrape_operation("info")
    async def get_info(self, id: str) -> ContentInfo:
        soup = await self.client.fetch_document(f"/manga/{id}/")

        title = first_match(soup, [FieldRule("h1.entry-title")])
        if not title:
            raise ScrapeError(self.source_id, "info", "Manga not found")

        rating_text = first_match(soup, RATING_RULES)
        authors = [clean_text(a) for a in first_match(soup, AUTHOR_RULES).split(",")]
        authors = [author for author in authors if author and author != "-"]

        return ContentInfo(
            id=id,
            title=title,
            cover=resolve_url(self.base_url, first_match(soup, COVER_RULES)),
            description=first_match(soup, DESCRIPTION_RULES),
            status=parse_status(first_match(soup, STATUS_RULES)),
            rating=parse_rating(rating_text) if rating_text else None,
            genres=select_texts(soup, ".seriestugenre a, .mgen a"),
            authors=authors or None,
            type=parse_content_type(first_match(soup, TYPE_RULES)),
            chapters=self._parse_chapters(soup),
        )

    @scrape_operation("chapter")
    async def get_chapter(self, id: str) -> ChapterContent:
        """Load reader pages.

        ``id`` may be a chapter slug, a site path or a full URL.
        """
        path = id if id.startswith(("http", "/")) else f"/{id}/"
        soup = await self.client.fetch_document(path)

        title = first_match(soup, CHAPTER_TITLE_RULES)

        pages = self._payload_pages(soup)
        if not pages:
            pages = self._reader_pages(soup)
        if not pages:
            raise ScrapeError(self.source_id, "chapter", "No pages found")

        return ChapterContent(
            id=id,
            title=title,
            chapter=parse_chapter_number(title),
            pages=pages,
            next_chapter=self._navigation_target(soup, NEXT_CHAPTER),
            previous_chapter=self._navigation_target(soup, PREVIOUS_CHAPTER),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _listing(self, path: str) -> list[SearchResult]:
        soup = await self.client.fetch_document(path)
        return self._parse_cards(soup)

    def _parse_cards(self, soup: BeautifulSoup) -> list[SearchResult]:
        results = []
        for item in soup.select(".bs"):
            result = self._parse_card(item)
            if result is not None:
                results.append(result)
        return results

    def _parse_card(self, item: Tag) -> Optional[SearchResult]:
        item_id = extract_id_from_url(first_match(item, [FieldRule('a[href*="/manga/"]', attr="href")]))
        title = first_match(item, CARD_TITLE_RULES)
        if not (item_id and title):
            return None

        rating_text = first_match(item, [FieldRule(".numscore")])
        genres = select_texts(item, ".genre a, .mgen a")
        return SearchResult(
            id=item_id,
            title=title,
            cover=resolve_url(self.base_url, image_source(item.select_one("img"))),
            latest_chapter=first_match(item, [FieldRule(".epxs")]) or None,
            genres=genres or None,
            rating=parse_rating(rating_text) if rating_text else None,
        )

    def _parse_chapters(self, soup: BeautifulSoup) -> list[ChapterRef]:
        chapters = []
        for element in soup.select("#chapterlist ul li"):
            link = element.select_one("a")
            if link is None:
                continue

            chapter_id = extract_id_from_url(link.get("href") or "")
            chapter_title = first_match(link, [FieldRule(".chapternum")])
            if not (chapter_id and chapter_title):
                continue

            released = first_match(link, [FieldRule(".chapterdate")])
            chapters.append(
                ChapterRef(
                    id=chapter_id,
                    title=chapter_title,
                    chapter=parse_chapter_number(chapter_title),
                    release_date=parse_date(released) if released else None,
                )
            )
        return chapters

    def _payload_pages(self, soup: BeautifulSoup) -> list[PageRef]:
        script = soup.find("script", string=re.compile(r"ts_reader\.run"))
        if script is None:
            return []

        match = _READER_IMAGES.search(script.string or "")
        if match is None:
            return []

        try:
            urls = json.loads(match.group(1))
        except ValueError as e:
            logger.warning("reader_payload_invalid", source=self.source_id, error=str(e))
            return []

        urls = [url for url in urls if isinstance(url, str) and url]
        return [
            PageRef(page=index, image_url=resolve_url(self.base_url, url))
            for index, url in enumerate(urls, start=1)
        ]

    def _reader_pages(self, soup: BeautifulSoup) -> list[PageRef]:
        urls = [image_source(img) for img in soup.select("#readerarea img")]
        urls = [url for url in urls if is_content_image(url)]
        return [
            PageRef(page=index, image_url=resolve_url(self.base_url, url))
            for index, url in enumerate(urls, start=1)
        ]

    @staticmethod
    def _navigation_target(soup: BeautifulSoup, selector: str) -> Optional[str]:
        element = soup.select_one(selector)
        href = element.get("href") if element is not None else None
        # Disabled buttons point at "#/next/" or "#/prev/".
        if not href or href.startswith("#"):
            return None
        return extract_id_from_url(href) or None
