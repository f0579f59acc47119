"""Utility functions for memory graph operations."""

import math
from datetime import datetime, timezone
from decimal import Decimal

from .constants import MIN_IMPORTANCE, MAX_IMPORTANCE
from .exceptions import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as UTC ISO 8601 with millisecond precision and a 'Z' suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string. Naive values are taken as UTC. Returns None if unparseable."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_bound(value: str | None) -> datetime | None:
    """Parse a caller-supplied date bound. Raises ValidationError if it is not a timestamp."""
    if value is None:
        return None
    dt = parse_timestamp(value)
    if dt is None:
        raise ValidationError(f"Invalid date: {value}")
    return dt


def relation_key(relation: dict) -> tuple[str, str, str]:
    """Identity key of a relation."""
    return (relation["from"], relation["to"], relation["relationType"])


def normalize_tags(tags: list[str]) -> list[str]:
    """Lowercase tags and drop duplicates, keeping first-occurrence order."""
    return list(dict.fromkeys(tag.lower() for tag in tags))


def validate_importance(importance: float):
    """Validate importance range. Raises ValidationError if not a finite number in [0, 10]."""
    if not math.isfinite(importance) or importance < MIN_IMPORTANCE or importance > MAX_IMPORTANCE:
        raise ValidationError(
            f"Importance must be between {MIN_IMPORTANCE} and {MAX_IMPORTANCE}, got {format_number(importance)}"
        )


def format_number(value: float) -> str:
    """Render a number the way JSON prints it (5.0 -> '5', 1e-05 -> '0.00001')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


def matches_tags(entity: dict, tags: list[str] | None) -> bool:
    """True if no tag filter is set, or the entity shares at least one tag with it."""
    wanted = [tag.lower() for tag in tags or []]
    if not wanted:
        return True
    entity_tags = {tag.lower() for tag in entity.get("tags") or []}
    return any(tag in entity_tags for tag in wanted)
