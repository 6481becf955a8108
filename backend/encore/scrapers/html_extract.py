"""Apply a ruleset's CSS selectors to one fetched HTML page."""

import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from encore.services.normalization import clean_text, parse_datetime, validate_date

logger = logging.getLogger(__name__)

# Config keys that store under a different field name
FIELD_ALIASES = {
    "image": "image_url",
    "website": "website_url",
    "park": "park_name",
    "artist": "artist_name",
    "venue": "venue_name",
    "festival": "festival_name",
}

IMAGE_FIELDS = {"image_url"}
DATE_FIELDS = {"start_date", "end_date"}
DATETIME_FIELDS = {"start_time", "end_time"}


def absolute_url(value: str | None, page_url: str) -> str | None:
    """Resolve a possibly relative URL against the page it came from."""
    if not value:
        return None
    value = value.strip()
    if not value or value.startswith(("javascript:", "#")):
        return None
    return urljoin(page_url, value)


def is_link_field(field: str) -> bool:
    return field.endswith("_url") and field not in IMAGE_FIELDS


def _image_src(element: Tag) -> str | None:
    return element.get("src") or element.get("data-src")


def _scalar(soup: BeautifulSoup, field: str, selector: str, page_url: str, date_format: str):
    element = soup.select_one(selector)
    if element is None:
        return None

    if field in IMAGE_FIELDS:
        return absolute_url(_image_src(element), page_url)
    if is_link_field(field):
        return absolute_url(element.get("href"), page_url)

    text = clean_text(element.get_text(" "))
    if not text:
        return None
    if field in DATE_FIELDS:
        return validate_date(text, date_format)
    if field in DATETIME_FIELDS:
        return parse_datetime(text, date_format)
    return text


def _many(soup: BeautifulSoup, selectors: list[str]) -> list[str] | None:
    values = []
    for selector in selectors:
        for element in soup.select(selector):
            text = clean_text(element.get_text(" "))
            if text:
                values.append(text)
    return values or None


def _links(soup: BeautifulSoup, rules: dict[str, str], page_url: str) -> dict[str, str] | None:
    links = {}
    for platform, selector in rules.items():
        element = soup.select_one(selector)
        if element is None:
            continue
        href = absolute_url(element.get("href"), page_url)
        if href:
            links[platform] = href
    return links or None


def extract_record(html: str, page_url: str, selectors: dict, date_format: str = "MM/DD/YYYY") -> dict:
    """Build one raw record from a detail page.

    Scalar rules take the first match's cleaned text (or its src/href for
    image and link fields); list rules collect every match; map rules build
    platform -> absolute link. The page URL is kept as ``source_url``.
    Invalid selectors raise and are reported by the caller.
    """
    soup = BeautifulSoup(html, "lxml")
    record: dict = {}

    for key, rule in selectors.items():
        field = FIELD_ALIASES.get(key, key)
        if isinstance(rule, str):
            record[field] = _scalar(soup, field, rule, page_url, date_format)
        elif isinstance(rule, list):
            record[field] = _many(soup, rule)
        elif isinstance(rule, dict):
            record[field] = _links(soup, rule, page_url)
        else:
            logger.debug(f"Ignoring unsupported rule for {key!r}: {rule!r}")

    record["source_url"] = page_url
    return record


def extract_links(html: str, page_url: str, selector: str) -> list[str]:
    """Absolute ``href`` of every element matching ``selector``, in page order."""
    soup = BeautifulSoup(html, "lxml")
    urls = []
    for element in soup.select(selector):
        href = absolute_url(element.get("href"), page_url)
        if href:
            urls.append(href)
    return urls
