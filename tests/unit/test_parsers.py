"""Unit tests for text normalizers."""

import pytest

from mangahub.models.schemas import ContentStatus, ContentType
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


class TestParseStatus:
    """Test status vocabulary mapping."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Publishing", ContentStatus.ONGOING),
            ("  ONGOING ", ContentStatus.ONGOING),
            ("Finished", ContentStatus.COMPLETED),
            ("Completed", ContentStatus.COMPLETED),
            ("On Hold", ContentStatus.HIATUS),
            ("Discontinued", ContentStatus.CANCELLED),
            ("Not yet published", ContentStatus.UPCOMING),
        ],
    )
    def test_known_vocabulary(self, text, expected):
        assert parse_status(text) == expected

    def test_unknown_defaults_to_ongoing(self):
        assert parse_status("???") == ContentStatus.ONGOING
        assert parse_status("") == ContentStatus.ONGOING


class TestParseContentType:
    """Test type vocabulary mapping."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Manhwa", ContentType.MANHWA),
            ("manhua", ContentType.MANHUA),
            ("Doujinshi", ContentType.DOUJINSHI),
            ("Comic", ContentType.COMIC),
            ("One-shot", ContentType.ONE_SHOT),
            ("oneshot", ContentType.ONE_SHOT),
        ],
    )
    def test_known_vocabulary(self, text, expected):
        assert parse_content_type(text) == expected

    def test_unknown_defaults_to_manga(self):
        assert parse_content_type("Light Novel") == ContentType.MANGA


class TestParseRating:
    """Test rating extraction and rescaling."""

    def test_plain_decimal(self):
        assert parse_rating("8.5") == 8.5

    def test_five_point_scale_is_doubled(self):
        assert parse_rating("4.2/5") == pytest.approx(8.4)

    def test_no_number_is_zero(self):
        assert parse_rating("no score") == 0.0

    def test_first_number_wins(self):
        assert parse_rating("Score: 7.25 (1,024 votes)") == 7.25


class TestParseMagnitude:
    """Test view-count style numbers."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1.2K", 1200),
            ("3M", 3_000_000),
            ("1.5k views", 1500),
            ("2B", 2_000_000_000),
            ("12,345", 12345),
            ("42", 42),
        ],
    )
    def test_suffixes(self, text, expected):
        assert parse_magnitude(text) == expected

    def test_result_is_floored(self):
        assert parse_magnitude("1.2345K") == 1234

    def test_no_match_is_zero(self):
        assert parse_magnitude("abc") == 0


class TestParseChapterNumber:
    """Test chapter number extraction."""

    def test_chapter_prefix(self):
        assert parse_chapter_number("Chapter 12.5: The Return") == "12.5"

    def test_short_prefix(self):
        assert parse_chapter_number("Ch. 7") == "7"

    def test_unmatched_text_is_returned(self):
        assert parse_chapter_number("Extra") == "Extra"


class TestResolveUrl:
    """Test absolute URL resolution."""

    BASE = "https://site.test"

    def test_absolute_passes_through(self):
        assert resolve_url(self.BASE, "https://cdn.test/a.jpg") == "https://cdn.test/a.jpg"

    def test_protocol_relative(self):
        assert resolve_url(self.BASE, "//cdn.test/a.jpg") == "https://cdn.test/a.jpg"

    def test_root_relative(self):
        assert resolve_url(self.BASE, "/a.jpg") == "https://site.test/a.jpg"

    def test_bare_relative(self):
        assert resolve_url(self.BASE, "a.jpg") == "https://site.test/a.jpg"

    def test_empty(self):
        assert resolve_url(self.BASE, "") == ""


class TestParseDate:
    """Test calendar date normalization."""

    def test_calendar_date_becomes_iso(self):
        assert parse_date("Jul 22, 1997") == "1997-07-22T00:00:00+00:00"

    def test_unparseable_text_is_returned(self):
        assert parse_date("2 hours ago") == "2 hours ago"

    def test_empty_text_is_returned(self):
        assert parse_date("") == ""


class TestTextHelpers:
    """Test slug, whitespace and URL helpers."""

    def test_generate_slug(self):
        assert generate_slug("Slice of Life") == "slice-of-life"
        assert generate_slug("Sci-Fi") == "sci-fi"
        assert generate_slug("Boys' Love") == "boys-love"
        assert generate_slug("Martial  --  Arts") == "martial-arts"

    def test_clean_text(self):
        assert clean_text("  One\n\t Piece  ") == "One Piece"
        assert clean_text(None) == ""

    def test_extract_id_from_url(self):
        assert extract_id_from_url("https://site.test/manga/solo-leveling/") == "solo-leveling"
        assert extract_id_from_url("/one-piece-3?ref=home") == "one-piece-3"
        assert extract_id_from_url("") == ""

    def test_extract_path_from_url(self):
        url = "https://site.test/read/one-piece-3/en/chapter-1"
        assert extract_path_from_url(url) == "read/one-piece-3/en/chapter-1"

    def test_sanitize_html(self):
        html = "<p>Hunter <b>rises</b></p><script>alert(1)</script>"
        assert sanitize_html(html) == "Hunter rises"
