"""Ordered-fallback field extraction over BeautifulSoup trees.

Upstream sites drift between theme versions, so every field is described by a
list of candidate locations tried in order. The first location that yields a
non-empty (and, optionally, validator-accepted) value wins.

Example:
    TITLE_RULES = [
        FieldRule(".manga-name"),
        FieldRule(".film-poster a", attr="title"),
        FieldRule(".film-poster img", attr="alt"),
    ]
    title = first_match(item, TITLE_RULES)
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from bs4 import Tag

from mangahub.sources.normalization.parsers import clean_text

# Lazy-loading themes keep the real URL in a data attribute and a spinner in src.
IMAGE_ATTRIBUTES = ("data-url", "data-src", "data-lazy-src", "src")

NON_CONTENT_MARKERS = ("loading", "placeholder", "logo", "icon", "readerarea.svg")


@dataclass(frozen=True)
class FieldRule:
    """One candidate location for a field.

    Attributes:
        selector: CSS selector evaluated relative to the node.
        attr: Attribute to read; element text when None.
        validator: Extra predicate a candidate value must pass.
    """

    selector: str
    attr: Optional[str] = None
    validator: Optional[Callable[[str], bool]] = None

    def candidates(self, node: Tag) -> Iterable[str]:
        for element in node.select(self.selector):
            if self.attr is None:
                yield clean_text(element.get_text(" "))
            else:
                yield clean_text(element.get(self.attr) or "")


def first_match(node: Optional[Tag], rules: Iterable[FieldRule], default: str = "") -> str:
    """Return the first non-empty value produced by ``rules``, in order."""
    if node is None:
        return default

    for rule in rules:
        for value in rule.candidates(node):
            if not value:
                continue
            if rule.validator is not None and not rule.validator(value):
                continue
            return value
    return default


def select_texts(node: Tag, selector: str) -> list[str]:
    """Cleaned, non-empty texts of every element matching ``selector``."""
    texts = (clean_text(element.get_text(" ")) for element in node.select(selector))
    return [text for text in texts if text]


def image_source(img: Optional[Tag]) -> str:
    if img is None:
        return ""
    for attribute in IMAGE_ATTRIBUTES:
        value = (img.get(attribute) or "").strip()
        if value:
            return value
    return ""


def labelled_value(node: Tag, label: str, label_selector: str = ".item-title") -> str:
    """Text of the element right after the label containing ``label``.

    Matches the "<span class=item-title>Status:</span><span>Ongoing</span>"
    layout used by info tables.
    """
    needle = label.lower()
    for element in node.select(label_selector):
        if needle not in element.get_text().lower():
            continue
        sibling = element.find_next_sibling()
        if sibling is not None:
            value = clean_text(sibling.get_text(" "))
            if value:
                return value
    return ""


def is_content_image(url: str) -> bool:
    """False for UI chrome (spinners, logos, icons) found inside reader areas."""
    if not url:
        return False
    lowered = url.lower()
    return not any(marker in lowered for marker in NON_CONTENT_MARKERS)
