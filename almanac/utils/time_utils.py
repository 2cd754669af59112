import re
from datetime import date, datetime, time, timezone
from typing import Optional

import pytz

EASTERN = pytz.timezone("US/Eastern")

# "06/01/202508:10 PM" and "06/01/2025 8:10 PM"
DATE_TIME_PATTERN = re.compile(
    r"(\d{1,2})/(\d{1,2})/(\d{4})\s*(\d{1,2}):(\d{2})\s*([AP]M)", re.IGNORECASE
)
DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


def eastern_to_utc(day: date, wall_clock: time) -> datetime:
    """Converts an Eastern wall-clock time to UTC using that date's EDT/EST offset."""
    local = EASTERN.localize(datetime.combine(day, wall_clock))
    return local.astimezone(timezone.utc)


def eastern_today(now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(EASTERN).date()


def eastern_noon(day: date) -> datetime:
    return eastern_to_utc(day, time(12, 0))


def to_eastern(moment: datetime) -> datetime:
    return moment.astimezone(EASTERN)


def _to_24h(hour: int, meridiem: str) -> int:
    hour = hour % 12
    return hour + 12 if meridiem.upper() == "PM" else hour


def parse_eastern_game_time(text: str, now: Optional[datetime] = None) -> datetime:
    """Parses a schedule time cell reported in US Eastern time into UTC.

    Falls back to noon Eastern on the parsed date when only the date is
    readable, and to ``now`` when nothing is.
    """
    match = DATE_TIME_PATTERN.search(text)
    if match:
        month, day, year, hour, minute, meridiem = match.groups()
        try:
            return eastern_to_utc(
                date(int(year), int(month), int(day)),
                time(_to_24h(int(hour), meridiem), int(minute)),
            )
        except ValueError:
            pass  # e.g. 13/45/2025 or 10:75 PM; try the date alone

    match = DATE_PATTERN.search(text)
    if match:
        month, day, year = match.groups()
        try:
            return eastern_noon(date(int(year), int(month), int(day)))
        except ValueError:
            pass

    now = now or datetime.now(timezone.utc)
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)
