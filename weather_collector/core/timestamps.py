"""
Station timestamp normalization.

Stations publish their observation time as English text in a single fixed
layout, e.g. "Monday 1 January 0:00:00 2024", read as UTC wall-clock time.
"""

import re
from datetime import datetime, timezone

from weather_collector.core.exceptions import MalformedTimestamp

# weekday, day, month name, 24-hour time, year
STATION_DATE_FORMAT = "%A %d %B %H:%M:%S %Y"

_STATION_DATE_LAYOUT = re.compile(
    r"^(?P<weekday>[A-Za-z]+) \d{1,2} [A-Za-z]+ \d{1,2}:\d{2}:\d{2} \d{4}$"
)


def parse_station_date(text: str) -> datetime:
    """
    Parse a station date string into a UTC instant.

    Args:
        text: Date text in the station layout

    Returns:
        Timezone-aware UTC datetime truncated to whole seconds

    Raises:
        MalformedTimestamp: If the text does not follow the layout, names an
            impossible date or time, or its weekday does not match its date

    Example:
        >>> parse_station_date("Monday 1 January 0:00:00 2024")
        datetime.datetime(2024, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if not isinstance(text, str):
        raise MalformedTimestamp(f"Invalid UTC date: {text!r}. Error: not a string")

    match = _STATION_DATE_LAYOUT.match(text)
    if match is None:
        raise MalformedTimestamp(
            f"Invalid UTC date: {text!r}. Error: expected '<Weekday> <day> <Month> <H:MM:SS> <year>'"
        )

    try:
        parsed = datetime.strptime(text, STATION_DATE_FORMAT)
    except ValueError as exc:
        raise MalformedTimestamp(f"Invalid UTC date: {text!r}. Error: {exc}") from exc

    # strptime accepts any weekday name, so check it against the date
    if parsed.strftime("%A").lower() != match.group("weekday").lower():
        raise MalformedTimestamp(
            f"Invalid UTC date: {text!r}. Error: {parsed.date().isoformat()} "
            f"is a {parsed.strftime('%A')}"
        )

    return parsed.replace(tzinfo=timezone.utc)
