"""
Demo schedule served when every live source fails.

The games are fixed fixture data re-dated to "today". Every game is tagged
DataSource.SAMPLE, so the page and the stored records can show that the
slate is synthetic.
"""

from datetime import date, time
from typing import List, Optional

from almanac.models.enums import DataSource
from almanac.models.game import Game
from almanac.normalization.game_builder import build_game
from almanac.normalization.team_resolver import TeamNameResolver
from almanac.utils.time_utils import eastern_to_utc, eastern_today

# (away, away record, home, home record, Eastern first pitch, venue)
SAMPLE_GAMES = [
    ("Washington Nationals", "28-30", "Arizona Diamondbacks", "27-31", time(21, 40), "Chase Field, Phoenix, AZ"),
    ("Minnesota Twins", "31-26", "Seattle Mariners", "31-26", time(21, 40), "T-Mobile Park, Seattle, WA"),
    ("Pittsburgh Pirates", "22-37", "San Diego Padres", "32-24", time(21, 40), "Petco Park, San Diego, CA"),
    ("New York Yankees", "35-22", "Los Angeles Dodgers", "36-22", time(19, 10), "Dodger Stadium, Los Angeles, CA"),
]


def build_sample_schedule(
    resolver: TeamNameResolver, day: Optional[date] = None
) -> List[Game]:
    day = day or eastern_today()
    return [
        build_game(
            resolver,
            away,
            home,
            game_time_utc=eastern_to_utc(day, first_pitch),
            source=DataSource.SAMPLE,
            away_record=away_record,
            home_record=home_record,
            venue=venue,
            scraped_at=day,
        )
        for away, away_record, home, home_record, first_pitch, venue in SAMPLE_GAMES
    ]
