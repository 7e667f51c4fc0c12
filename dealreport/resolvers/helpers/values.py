"""Value normalization shared by field helpers and resolvers."""

import html
import re
from datetime import date, datetime
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser

_WHITESPACE = re.compile(r"\s+")
_HTML_TAG = re.compile(r"<[^>]*>")
_NOT_INTEGER_CHAR = re.compile(r"[^0-9+\-]")
_INTEGER = re.compile(r"^[+\-]?\d+$")

DATE_FORMAT = "%d.%m.%Y"
DATETIME_FORMAT = "%d.%m.%Y %H:%M:%S"

MULTIPLE_SEPARATOR = ", "


def format_value(value: Any) -> str:
    """Render a scalar for output; None and empty values become ''."""
    if value is None:
        return ""
    return str(value).strip()


def clean_string(value: Any) -> str:
    """Collapse whitespace, drop HTML tags and decode entities."""
    if value is None:
        return ""
    cleaned = _WHITESPACE.sub(" ", str(value)).strip()
    cleaned = _HTML_TAG.sub("", cleaned)
    return html.unescape(cleaned).strip()


def clean_integer(value: Any) -> str:
    """Keep digits and signs; anything that is not a valid integer becomes ''."""
    if value is None:
        return ""
    cleaned = _NOT_INTEGER_CHAR.sub("", str(value))
    if not _INTEGER.match(cleaned):
        return ""
    return cleaned


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a date or datetime value, or return None if it cannot be parsed."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError):
        return None


def format_date(value: Any, field_type: str = "datetime") -> str:
    """
    Format a date for output.

    Args:
        value: Raw date value (datetime, date or string)
        field_type: "date" for DD.MM.YYYY, anything else for DD.MM.YYYY HH:MM:SS

    Returns:
        Formatted date, or the trimmed input when it cannot be parsed
    """
    parsed = parse_date(value)
    if parsed is None:
        return format_value(value)
    return parsed.strftime(DATE_FORMAT if field_type == "date" else DATETIME_FORMAT)


def join_unique(values: Iterable[str]) -> str:
    """Join non-empty values with the multiple-value separator, dropping repeats."""
    return MULTIPLE_SEPARATOR.join(dict.fromkeys(v for v in values if v))


def date_sort_key(value: Any):
    """Sort key putting dates in chronological order and unparseable values last."""
    parsed = parse_date(value)
    if parsed is None:
        return (1, datetime.min, format_value(value))
    return (0, parsed.replace(tzinfo=None), "")
