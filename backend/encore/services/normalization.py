"""Text, date and record normalization for scraped data.

Pure functions; nothing here touches the network or the store except
``find_matching_entity``, which is a best-effort lookup helper.
"""

import logging
import re
import unicodedata
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
# ASCII word characters only; letters without a decomposition (ø, æ) are dropped
_PUNCTUATION = re.compile(r"[^A-Za-z0-9_\s]")
_LEADING_NOISE = re.compile(r"^\D*")
_DATE_TRIPLE = re.compile(r"(\d{1,4})[/.\-](\d{1,2})[/.\-](\d{1,4})")
_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\b|\b(\d{1,2}):(\d{2})\b", re.IGNORECASE)

DATE_FORMATS = ("MM/DD/YYYY", "YYYY-MM-DD", "DD/MM/YYYY")
DEFAULT_DATE_FORMAT = "MM/DD/YYYY"

MIN_YEAR, MAX_YEAR = 2000, 2100
TWO_DIGIT_YEAR_PIVOT = 50


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace to single spaces and trim. None -> ''."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_text(text: str | None) -> str:
    """Lowercased, accent- and punctuation-free form used for comparisons only."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = _PUNCTUATION.sub("", stripped)
    return _WHITESPACE.sub(" ", stripped).strip()


def validate_date(date_str: str | None, date_format: str = DEFAULT_DATE_FORMAT) -> str | None:
    """Parse a scraped date into ``YYYY-MM-DD``.

    Leading text such as "Date: " is ignored. Two-digit years pivot at 50
    (00-49 -> 20xx, 50-99 -> 19xx). Month must be 1-12, day 1-31 and year
    2000-2100; there is no per-month day check. Returns None for anything
    that is not a date.
    """
    if not date_str:
        return None

    text = _LEADING_NOISE.sub("", str(date_str))
    match = _DATE_TRIPLE.search(text)
    if not match:
        return None

    first, second, third = (int(part) for part in match.groups())
    if date_format == "YYYY-MM-DD":
        year, month, day = first, second, third
    elif date_format == "DD/MM/YYYY":
        day, month, year = first, second, third
    else:
        if date_format not in DATE_FORMATS:
            logger.debug(f"Unknown date format {date_format!r}, using {DEFAULT_DATE_FORMAT}")
        month, day, year = first, second, third

    if year < 100:
        year += 2000 if year < TWO_DIGIT_YEAR_PIVOT else 1900

    if not 1 <= month <= 12:
        return None
    if not 1 <= day <= 31:
        return None
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None

    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_datetime(text: str | None, date_format: str = DEFAULT_DATE_FORMAT) -> str | None:
    """Date plus optional clock time as ``YYYY-MM-DDTHH:MM:00``.

    The time is taken from the text after the date ("7:30 PM", "19:30",
    "8pm"); missing time means midnight.
    """
    date_part = validate_date(text, date_format)
    if not date_part:
        return None

    remainder = _DATE_TRIPLE.split(str(text), maxsplit=1)[-1]
    hour, minute = 0, 0
    match = _TIME.search(remainder)
    if match:
        if match.group(3):
            hour = int(match.group(1)) % 12
            minute = int(match.group(2) or 0)
            if match.group(3).lower() == "p":
                hour += 12
        else:
            hour, minute = int(match.group(4)), int(match.group(5))
        if hour > 23 or minute > 59:
            hour, minute = 0, 0

    return f"{date_part}T{hour:02d}:{minute:02d}:00"


def deduplicate_items(
    items: Iterable[dict],
    key: str | Callable[[dict], Any] = "name",
) -> list[dict]:
    """Drop later records whose key was already seen, keeping order.

    Records with a None/absent key are never treated as duplicates.
    ``key`` is a field name or a function computing the key.
    """
    get_key = key if callable(key) else (lambda item: item.get(key))
    seen = set()
    unique = []
    for item in items:
        value = get_key(item)
        if value is None:
            unique.append(item)
            continue
        if value in seen:
            continue
        seen.add(value)
        unique.append(item)
    return unique


def string_similarity(a: str | None, b: str | None) -> float:
    """Rough name similarity in [0, 1]. Not symmetric.

    1.0 for equal normalized strings, 0.8 when one contains the other,
    otherwise the share of ``a``'s words (longer than two characters)
    found in ``b``, over the larger word count.
    """
    s1 = normalize_text(a)
    s2 = normalize_text(b)

    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return 0.8

    words1 = s1.split(" ")
    words2 = s2.split(" ")
    matches = sum(1 for word in words1 if len(word) > 2 and word in words2)
    return matches / max(len(words1), len(words2))


async def find_matching_entity(store, table: str, item: dict, fields: Iterable[str] = ("name",)):
    """Id of a row in ``table`` equal to ``item`` on ``fields``, or None.

    Name fields compare case-insensitively. Store errors are logged and
    reported as no match.
    """
    filters = {field: item[field] for field in fields if item.get(field)}
    if not filters:
        return None

    try:
        if set(filters) == {"name"}:
            row = await store.find_by_name(table, filters["name"])
        else:
            rows = await store.select(table, filters)
            row = rows[0] if rows else None
    except Exception as e:
        logger.warning(f"Lookup in {table} failed for {filters}: {e}")
        return None

    return row["id"] if row else None
