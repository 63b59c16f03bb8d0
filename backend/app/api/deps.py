"""
Shared query-parameter parsing for the route modules.

List parameters accept both repeated keys (?uris=a&uris=b) and
comma-separated values (?uris=a,b).
"""

from datetime import datetime
from typing import Optional

from app.core import clock
from app.core.exceptions import ValidationFailedError


def split_values(values: Optional[list[str]]) -> list[str]:
    if not values:
        return []
    items = []
    for value in values:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def split_ints(values: Optional[list[str]], name: str) -> list[int]:
    try:
        return [int(item) for item in split_values(values)]
    except ValueError:
        raise ValidationFailedError(f"Parameter '{name}' must contain integers")


def parse_query_datetime(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return clock.parse_datetime(value)
    except ValueError as e:
        raise ValidationFailedError(f"Parameter '{name}': {e}")


def require_query_datetime(value: str, name: str) -> datetime:
    parsed = parse_query_datetime(value, name)
    if parsed is None:
        raise ValidationFailedError(f"Parameter '{name}' is required")
    return parsed
