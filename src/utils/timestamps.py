"""UTC clock and sortable timestamp helpers.

Timestamps are stored as fixed-width ISO-8601 strings with microsecond
precision and a ``+00:00`` offset, so string order in DynamoDB sort keys
matches chronological order.
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator


def get_utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def convert_to_utc(value: datetime) -> datetime:
    """Normalise a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as a fixed-width, sortable UTC string."""
    return convert_to_utc(value).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp (or any ISO-8601 string) into aware UTC."""
    return convert_to_utc(datetime.fromisoformat(value))


# Pydantic field type; naive datetimes are taken as UTC
UtcDatetime = Annotated[datetime, AfterValidator(convert_to_utc)]
