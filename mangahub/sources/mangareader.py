"""MangaReader (mangareader.to) source adapter.

HTML site. Listings share one card layout (``.flw-item`` / ``.manga_list-sbs
.item``); chapter images are served by an AJAX endpoint keyed on the reader's
``data-reading-id``.
"""

import re
from typing import Any, Iterable, Optional
from urllib.parse import urlencode

import structlog
from bs4 import BeautifulSoup, Tag

from mangahub.core.exceptions import MangaHubError, ParameterValidationError, ScrapeError
from mangahub.models.schemas import (
    ChapterContent,
    ChapterRef,
    Character,
    ContentInfo,
    GenreRef,
    HomeData,
    PageRef,
    SearchResult,
    SearchSuggestion,
)
from mangahub.sources.base import BaseSource, Capability, scrape_operation
from mangahub.sources.normalization import (
    FieldRule,
    clean_text,
    extract_id_from_url,
    extract_path_from_url,
    first_match,
    generate_slug,
    image_source,
    is_content_image,
    labelled_value,
    parse_chapter_number,
    parse_content_type,
    parse_date,
    parse_magnitude,
    parse_rating,
    parse_status,
    resolve_url,
    select_texts,
)
from mangahub.sources.registry import register_source

logger = structlog.get_logger(__name__)


# =============================================================================
# Selectors
# =============================================================================

LIST_ITEMS = ".manga_list-sbs .item, .manga-list .item, .film_list .flw-item, .flw-item"
SUGGESTION_ITEMS = ".manga_list-sbs .item, .manga-list .item, .flw-item"
HOME_LATEST_ITEMS = ".manga_list-sbs .item-spc, .block_area_home .item-spc"
CHAPTER_ITEMS = "#en-chapters li, .chapter-list li, .chapters-list-ul li, .ss-list a"
RELATED_ITEMS = ".film_list-wrap .flw-item, .related-manga .item"
SIMILAR_ITEMS = ".recommendations .flw-item, .you-may-like .item, #similar-items .item"
CHARACTER_ITEMS = ".character-item, .char-list .item, .characters-list .item"
POSTER_IMAGE = ".manga-poster img, .film-poster img"

LINK_RULES = [
    FieldRule(".manga-poster a", attr="href"),
    FieldRule(".film-poster a", attr="href"),
    FieldRule("a.manga-poster", attr="href"),
    FieldRule("a.film-poster", attr="href"),
]

TITLE_RULES = [
    FieldRule(".manga-poster img", attr="alt"),
    FieldRule(".film-poster img", attr="alt"),
    FieldRule(".manga-poster a, .film-poster a", attr="title"),
    FieldRule("a.manga-poster, a.film-poster", attr="title"),
    FieldRule(".film-name a"),
    FieldRule(".manga-name a"),
    FieldRule(".manga-name"),
]

LATEST_CHAPTER_RULES = [
    FieldRule(".fd-list .chapter a"),
    FieldRule(".fdl-item .chapter a"),
    FieldRule(".latest-chapter a"),
]

INFO_TITLE_RULES = [
    FieldRule(".manga-name"),
    FieldRule(".anisc-detail .film-name"),
    FieldRule("h2.film-name"),
]

ALT_TITLE_RULES = [
    FieldRule(".manga-name-or"),
    FieldRule(".alias"),
]

DESCRIPTION_RULES = [
    FieldRule(".description"),
    FieldRule(".film-description"),
    FieldRule(".text"),
]

CHAPTER_TITLE_RULES = [
    FieldRule(".chapter-name"),
    FieldRule(".heading-name"),
    FieldRule(".manga-name"),
    FieldRule("h1"),
    FieldRule("h2"),
]

NEXT_CHAPTER = '#next-chapter, .nav-next a, button[onclick*="next"]'
PREVIOUS_CHAPTER = '#prev-chapter, .nav-previous a, button[onclick*="prev"]'

IMAGE_LIST_PATH = "/ajax/image/list/chap/{reading_id}?mode=vertical&quality=high&hozPageSize=1"
PAYLOAD_PAGES = ".iv-card[data-url], .page-break[data-url]"
READER_IMAGES = "#images-content img, .reading-content img, .iv-card[data-url], .page-break[data-url]"

_ONCLICK_TARGET = re.compile(r"""['"]([^'"]+)['"]""")

# Types accepted by /filter?type=
CONTENT_TYPES = ("manga", "one_shot", "doujinshi", "light_novel", "manhwa", "manhua", "comic")

GENRE_NAMES = (
    "Action", "Adventure", "Cars", "Comedy", "Dementia", "Demons", "Drama",
    "Doujinshi", "Ecchi", "Fantasy", "Gender Bender", "Harem", "Game", "Hentai",
    "Historical", "Horror", "Josei", "Kids", "Magic", "Martial Arts", "Mecha",
    "Military", "Music", "Mystery", "Parody", "Police", "Psychological",
    "Romance", "Samurai", "School", "Sci-Fi", "Seinen", "Shoujo", "Shoujo Ai",
    "Shounen", "Shounen Ai", "Slice of Life", "Space", "Sports", "Super Power",
    "Supernatural", "Thriller", "Vampire", "Yaoi", "Yuri",
)

HOME_SECTION_SIZES = {
    "trending": 12,
    "popular_today": 10,
    "recommendations": 12,
    "new_releases": 12,
}


@register_source("mangareader")
class MangaReaderSource(BaseSource):
    """Adapter for mangareader.to."""

    display_name = "MangaReader"
    base_url_setting = "mangareader_base_url"
    optional_capabilities = frozenset(
        {
            Capability.SEARCH_SUGGESTIONS,
            Capability.POPULAR_TODAY,
            Capability.RECOMMENDATIONS,
            Capability.GENRES,
            Capability.GENRE,
            Capability.HOME,
        }
    )
    extra_operations = frozenset(
        {
            "popular_week",
            "popular_month",
            "new_release",
            "trending",
            "completed",
            "by_type",
            "related",
            "you_may_also_like",
            "characters",
            "authors_manga",
        }
    )

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    @scrape_operation("search")
    async def search(self, query: str, page: int = 1) -> list[SearchResult]:
        return await self._listing("/search", keyword=query, page=page)

    @scrape_operation("search_suggestions")
    async def search_suggestions(self, query: str) -> list[SearchSuggestion]:
        soup = await self.client.fetch_document(f"/search?{urlencode({'keyword': query})}")

        suggestions = []
        for item in soup.select(SUGGESTION_ITEMS):
            href = first_match(item, LINK_RULES[:2])
            item_id = extract_id_from_url(href)
            title = first_match(
                item,
                [
                    FieldRule(".manga-poster a, .film-poster a", attr="title"),
                    FieldRule(".film-name"),
                    FieldRule(".manga-name"),
                ],
            )
            if not (item_id and title):
                continue

            cover = image_source(item.select_one(".manga-poster a img, .film-poster a img"))
            suggestions.append(
                SearchSuggestion(
                    id=item_id,
                    title=title,
                    cover=resolve_url(self.base_url, cover) if cover else None,
                )
            )
            if len(suggestions) == 10:
                break
        return suggestions

    @scrape_operation("popular")
    async def get_popular(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="most_viewed", page=page)

    @scrape_operation("popular_today")
    async def get_popular_today(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="most_viewed", time="day", page=page)

    @scrape_operation("popular_week")
    async def get_popular_week(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="most_viewed", time="week", page=page)

    @scrape_operation("popular_month")
    async def get_popular_month(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="most_viewed", time="month", page=page)

    @scrape_operation("latest_updates")
    async def get_latest_updates(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="latest-updated", page=page)

    @scrape_operation("new_release")
    async def get_new_release(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="recently_added", page=page)

    @scrape_operation("recommendations")
    async def get_recommendations(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="score", page=page)

    @scrape_operation("trending")
    async def get_trending(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", sort="trending", page=page)

    @scrape_operation("completed")
    async def get_completed(self, page: int = 1) -> list[SearchResult]:
        return await self._listing("/completed", page=page)

    @scrape_operation("by_type")
    async def get_by_type(self, type: str, page: int = 1) -> list[SearchResult]:
        """Filter by format. ``type`` is one of CONTENT_TYPES."""
        if type not in CONTENT_TYPES:
            raise ParameterValidationError(
                f"type must be one of: {', '.join(CONTENT_TYPES)}", parameter="type"
            )
        return await self._listing("/filter", type=type, page=page)

    @scrape_operation("genre")
    async def get_genre(self, genre: str, page: int = 1) -> list[SearchResult]:
        return await self._listing("/filter", genre=genre, page=page)

    @scrape_operation("authors_manga")
    async def get_authors_manga(self, author: str, page: int = 1) -> list[SearchResult]:
        return await self._listing("/search", keyword=author, page=page)

    @scrape_operation("genres")
    async def get_genres(self) -> list[GenreRef]:
        # The genre menu is rendered client-side; the taxonomy is stable.
        genres = []
        for name in GENRE_NAMES:
            slug = generate_slug(name)
            genres.append(GenreRef(id=slug, name=name, slug=slug))
        return genres

    @scrape_operation("home")
    async def get_home(self) -> HomeData:
        soup = await self.client.fetch_document("/home")

        latest_updates = []
        for item in soup.select(HOME_LATEST_ITEMS):
            item_id = extract_id_from_url(first_match(item, [FieldRule("a.manga-poster", attr="href")]))
            title = first_match(
                item,
                [FieldRule(".manga-name a"), FieldRule("a.manga-poster img", attr="alt")],
            )
            if not (item_id and title):
                continue

            genres = select_texts(item, ".fdi-cate a")
            latest_chapter = first_match(item, [FieldRule(".fdl-item .chapter a")])
            latest_updates.append(
                SearchResult(
                    id=item_id,
                    title=title,
                    cover=resolve_url(self.base_url, image_source(item.select_one(".manga-poster-img"))),
                    latest_chapter=latest_chapter or None,
                    genres=genres or None,
                )
            )

        # Trending and featured carousels are rendered by JavaScript, so the
        # remaining sections come from the dedicated listing pages.
        trending = await self._home_section("trending", self.get_trending)
        popular_today = await self._home_section("popular_today", self.get_popular_today)
        recommendations = await self._home_section("recommendations", self.get_recommendations)
        new_releases = await self._home_section("new_releases", self.get_new_release)

        return HomeData(
            trending=trending or None,
            popular_today=popular_today or None,
            latest_updates=latest_updates or None,
            new_releases=new_releases or None,
            recommendations=recommendations or None,
        )

    # -------------------------------------------------------------------------
    # Series detail
    # -------------------------------------------------------------------------

    @scrape_operation("info")
    async def get_info(self, id: str) -> ContentInfo:
        soup = await self.client.fetch_document(f"/{id}")

        title = first_match(soup, INFO_TITLE_RULES)
        if not title:
            raise ScrapeError(self.source_id, "info", "Manga not found or invalid page structure")

        alt_text = labelled_value(soup, "Synonyms", ".anisc-info .item-title") or first_match(
            soup, ALT_TITLE_RULES
        )
        alt_titles = [clean_text(part) for part in re.split(r"[;,]", alt_text)]
        alt_titles = [part for part in alt_titles if part]

        status_text = labelled_value(soup, "Status") or first_match(soup, [FieldRule(".status .value")])
        rating_text = labelled_value(soup, "Score") or first_match(soup, [FieldRule(".score")])
        type_text = labelled_value(soup, "Type")
        views_text = labelled_value(soup, "Views")
        released_text = labelled_value(soup, "Published") or labelled_value(soup, "Released")
        authors = [clean_text(a) for a in labelled_value(soup, "Author").split(",")]
        authors = [author for author in authors if author]
        genres = select_texts(soup, ".genres a") or select_texts(soup, ".item-list a")

        related = self._parse_cards(soup, RELATED_ITEMS, limit=10)
        recommendations = self._parse_cards(soup, SIMILAR_ITEMS, limit=10)
        characters = self._parse_characters(soup)

        return ContentInfo(
            id=id,
            title=title,
            alt_titles=alt_titles or None,
            cover=resolve_url(self.base_url, image_source(soup.select_one(POSTER_IMAGE))),
            description=first_match(soup, DESCRIPTION_RULES),
            status=parse_status(status_text),
            rating=parse_rating(rating_text) if rating_text else None,
            genres=genres,
            authors=authors or None,
            type=parse_content_type(type_text) if type_text else None,
            release_date=parse_date(released_text) if released_text else None,
            views=parse_magnitude(views_text) if views_text else None,
            chapters=self._parse_chapters(soup),
            related=related or None,
            recommendations=recommendations or None,
            characters=characters or None,
        )

    @scrape_operation("related")
    async def get_related(self, id: str) -> list[SearchResult]:
        soup = await self.client.fetch_document(f"/{id}")
        return self._parse_cards(soup, RELATED_ITEMS + ", #similar-items .item")

    @scrape_operation("you_may_also_like")
    async def get_you_may_also_like(self, id: str) -> list[SearchResult]:
        soup = await self.client.fetch_document(f"/{id}")
        return self._parse_cards(soup, SIMILAR_ITEMS)

    @scrape_operation("characters")
    async def get_characters(self, id: str) -> list[Character]:
        soup = await self.client.fetch_document(f"/{id}")
        return self._parse_characters(soup)

    # -------------------------------------------------------------------------
    # Chapter reader
    # -------------------------------------------------------------------------

    @scrape_operation("chapter")
    async def get_chapter(self, id: str) -> ChapterContent:
        """Load reader pages.

        The AJAX image list is tried first; reader images in the initial HTML
        are only used when it yields nothing.
        """
        soup = await self.client.fetch_document(f"/{id}")

        title = first_match(soup, CHAPTER_TITLE_RULES)
        reading_id = first_match(soup, [FieldRule("[data-reading-id]", attr="data-reading-id")])

        pages: list[PageRef] = []
        if reading_id:
            pages = await self._fetch_payload_pages(id, reading_id)
        if not pages:
            pages = self._reader_pages(soup)
        if not pages:
            raise ScrapeError(self.source_id, "chapter", "No pages found for this chapter")

        next_target = self._navigation_target(soup, NEXT_CHAPTER)
        previous_target = self._navigation_target(soup, PREVIOUS_CHAPTER)

        return ChapterContent(
            id=id,
            title=title,
            chapter=parse_chapter_number(title),
            pages=pages,
            next_chapter=extract_path_from_url(next_target) or None,
            previous_chapter=extract_path_from_url(previous_target) or None,
        )

    async def _fetch_payload_pages(self, chapter_id: str, reading_id: str) -> list[PageRef]:
        headers = {
            "X-Requested-With": "XMLHttpRequest",
            "Referer": f"{self.base_url}/{chapter_id}",
        }
        try:
            payload = await self.client.fetch_json(
                IMAGE_LIST_PATH.format(reading_id=reading_id), headers=headers
            )
        except MangaHubError as e:
            logger.warning(
                "image_list_unavailable",
                source=self.source_id,
                chapter_id=chapter_id,
                error=str(e),
            )
            return []

        return self._payload_pages(payload)

    def _payload_pages(self, payload: Any) -> list[PageRef]:
        if not isinstance(payload, dict) or not payload.get("status") or not payload.get("html"):
            return []

        fragment = BeautifulSoup(payload["html"], "html.parser")
        urls = [element.get("data-url") or "" for element in fragment.select(PAYLOAD_PAGES)]
        return self._number_pages(url for url in urls if url)

    def _reader_pages(self, soup: BeautifulSoup) -> list[PageRef]:
        urls = (image_source(element) for element in soup.select(READER_IMAGES))
        return self._number_pages(url for url in urls if is_content_image(url))

    def _number_pages(self, urls: Iterable[str]) -> list[PageRef]:
        return [
            PageRef(page=index, image_url=resolve_url(self.base_url, url))
            for index, url in enumerate(urls, start=1)
        ]

    @staticmethod
    def _navigation_target(soup: BeautifulSoup, selector: str) -> str:
        element = soup.select_one(selector)
        if element is None:
            return ""

        href = element.get("href")
        if href:
            return href

        match = _ONCLICK_TARGET.search(element.get("onclick") or "")
        return match.group(1) if match else ""

    # -------------------------------------------------------------------------
    # Record builders
    # -------------------------------------------------------------------------

    async def _listing(self, path: str, **params: Any) -> list[SearchResult]:
        soup = await self.client.fetch_document(f"{path}?{urlencode(params)}")
        return self._parse_cards(soup, LIST_ITEMS)

    async def _home_section(self, name: str, loader) -> list[SearchResult]:
        try:
            results = await loader(1)
        except MangaHubError as e:
            logger.warning("home_section_failed", source=self.source_id, section=name, error=str(e))
            return []
        return results[: HOME_SECTION_SIZES[name]]

    def _parse_cards(
        self, soup: BeautifulSoup, selector: str, limit: Optional[int] = None
    ) -> list[SearchResult]:
        results = []
        for item in soup.select(selector):
            result = self._parse_card(item)
            if result is None:
                continue
            results.append(result)
            if limit is not None and len(results) == limit:
                break
        return results

    def _parse_card(self, item: Tag) -> Optional[SearchResult]:
        item_id = extract_id_from_url(first_match(item, LINK_RULES))
        title = first_match(item, TITLE_RULES)
        if not (item_id and title):
            return None

        rating_text = first_match(item, [FieldRule(".score, .tick-rate, .film-rating")])
        type_text = first_match(item, [FieldRule(".type, .fdi-type")])
        genres = select_texts(item, ".fdi-cate a, .genres a")

        return SearchResult(
            id=item_id,
            title=title,
            cover=resolve_url(self.base_url, image_source(item.select_one(POSTER_IMAGE))),
            latest_chapter=first_match(item, LATEST_CHAPTER_RULES) or None,
            genres=genres or None,
            rating=parse_rating(rating_text) if rating_text else None,
            type=parse_content_type(type_text) if type_text else None,
        )

    def _parse_chapters(self, soup: BeautifulSoup) -> list[ChapterRef]:
        chapters: list[ChapterRef] = []
        seen: set[str] = set()

        for element in soup.select(CHAPTER_ITEMS):
            link = element if element.name == "a" else element.select_one("a")
            if link is None:
                continue

            chapter_id = extract_path_from_url(link.get("href") or "")
            chapter_title = clean_text(link.get_text(" ")) or clean_text(link.get("title"))
            if not (chapter_id and chapter_title) or chapter_id in seen:
                continue
            seen.add(chapter_id)

            released = first_match(element, [FieldRule(".chapter-time, .fd-infor span")])
            chapters.append(
                ChapterRef(
                    id=chapter_id,
                    title=chapter_title,
                    chapter=parse_chapter_number(chapter_title),
                    release_date=parse_date(released) if released else None,
                )
            )
        return chapters

    def _parse_characters(self, soup: BeautifulSoup) -> list[Character]:
        characters = []
        for element in soup.select(CHARACTER_ITEMS):
            name = first_match(element, [FieldRule(".char-name, .name, h4")])
            if not name:
                continue

            role = first_match(element, [FieldRule(".char-role, .role, .type")])
            image = image_source(element.select_one("img"))
            characters.append(
                Character(
                    name=name,
                    role=role or None,
                    image=resolve_url(self.base_url, image) if image else None,
                )
            )
        return characters
