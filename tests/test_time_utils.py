"""Eastern schedule times must convert to UTC with the date's own DST offset."""
from datetime import date, datetime, timezone

import pytest

from almanac.utils.time_utils import (
    eastern_noon,
    eastern_today,
    parse_eastern_game_time,
)

UTC = timezone.utc


@pytest.mark.parametrize(
    "text, expected",
    [
        # Day before DST starts (EST, UTC-5)
        ("03/08/2025 07:05 PM", datetime(2025, 3, 9, 0, 5, tzinfo=UTC)),
        # DST start day (EDT, UTC-4)
        ("03/09/2025 07:05 PM", datetime(2025, 3, 9, 23, 5, tzinfo=UTC)),
        ("03/10/2025 07:05 PM", datetime(2025, 3, 10, 23, 5, tzinfo=UTC)),
        # Day before DST ends (EDT)
        ("11/01/2025 07:05 PM", datetime(2025, 11, 1, 23, 5, tzinfo=UTC)),
        # After DST ends (EST)
        ("11/03/2025 07:05 PM", datetime(2025, 11, 4, 0, 5, tzinfo=UTC)),
    ],
)
def test_dst_boundaries(text, expected):
    assert parse_eastern_game_time(text) == expected


def test_date_and_time_without_separator():
    # Schedule cells concatenate date and time: "06/01/202508:10 PM"
    assert parse_eastern_game_time("06/01/202508:10 PM") == datetime(
        2025, 6, 2, 0, 10, tzinfo=UTC
    )


@pytest.mark.parametrize(
    "text, hour",
    [("06/01/2025 12:00 PM", 16), ("06/01/2025 12:30 AM", 4), ("06/01/2025 1:05 pm", 17)],
)
def test_twelve_hour_clock(text, hour):
    assert parse_eastern_game_time(text).hour == hour


def test_date_only_falls_back_to_noon_eastern():
    assert parse_eastern_game_time("06/01/2025 TBD") == datetime(
        2025, 6, 1, 16, 0, tzinfo=UTC
    )


def test_invalid_time_falls_back_to_date():
    assert parse_eastern_game_time("06/01/2025 10:75 PM") == datetime(
        2025, 6, 1, 16, 0, tzinfo=UTC
    )


def test_unparseable_text_returns_now(fixed_now):
    assert parse_eastern_game_time("Postponed", now=fixed_now) == fixed_now


def test_eastern_today_rolls_back_before_midnight_eastern():
    # 02:00 UTC on June 2 is still June 1 in New York
    now = datetime(2025, 6, 2, 2, 0, tzinfo=UTC)
    assert eastern_today(now) == date(2025, 6, 1)


def test_eastern_noon_in_winter():
    assert eastern_noon(date(2025, 1, 15)) == datetime(2025, 1, 15, 17, 0, tzinfo=UTC)
