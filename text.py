"""Slug, date and reading-time helpers shared by the content layer and stores."""

import math
import re
from datetime import date, datetime, timezone
from typing import Any

WORDS_PER_MINUTE = 200
DISPLAY_DATE_FORMAT = "%B %d, %Y"

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s-]+")
_SLUG = re.compile(r"^[a-z0-9_]+(?:-[a-z0-9_]+)*$")


def slugify(title: str) -> str:
    """
    Derive a URL-safe slug from a post title.

    Examples:
        slugify("Hello World")           # "hello-world"
        slugify("  What's new in 3.12?") # "whats-new-in-312"
    """
    slug = _NON_SLUG_CHARS.sub("", title.lower())
    slug = _SEPARATORS.sub("-", slug.strip())
    return slug.strip("-")


def is_valid_slug(value: str) -> bool:
    return bool(_SLUG.match(value))


def parse_datetime(value: Any) -> datetime:
    """
    Coerce a stored date value to an aware UTC datetime.

    Accepts datetimes, dates (taken as midnight) and ISO-8601 strings,
    including a trailing ``Z``. Naive values are assumed to be UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Not a date: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_date(value: datetime) -> str:
    """Human-readable calendar day, e.g. ``January 05, 2024``."""
    return value.strftime(DISPLAY_DATE_FORMAT)


def parse_display_date(text: str) -> date:
    """Inverse of :func:`format_date`."""
    return datetime.strptime(text, DISPLAY_DATE_FORMAT).date()


def reading_time(text: str) -> str:
    words = len((text or "").split())
    minutes = max(1, math.ceil(words / WORDS_PER_MINUTE))
    return f"{minutes} min read"
