"""
Process-wide date-time format and clock.

Every wire date (event dates, hit timestamps, stats windows) uses the same
"yyyy-MM-dd HH:mm:ss" pattern. Values are naive local times, matching what
the statistics service stores.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def now() -> datetime:
    """Current local time truncated to whole seconds."""
    return datetime.now().replace(microsecond=0)


def format_datetime(value: datetime) -> str:
    return value.strftime(DATE_TIME_FORMAT)


def parse_datetime(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.strptime(value, DATE_TIME_FORMAT)
        except ValueError:
            raise ValueError(f"Date must match pattern yyyy-MM-dd HH:mm:ss, got '{value}'")
    return value


FormattedDateTime = Annotated[
    datetime,
    BeforeValidator(parse_datetime),
    PlainSerializer(format_datetime, return_type=str),
]
