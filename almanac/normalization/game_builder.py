from datetime import date, datetime
from typing import Optional

from almanac.models.enums import DataSource
from almanac.models.game import Game
from almanac.normalization.team_resolver import TeamNameResolver
from almanac.utils.misc_utils import generate_game_id


def build_game(
    resolver: TeamNameResolver,
    away_raw: str,
    home_raw: str,
    game_time_utc: datetime,
    source: DataSource,
    away_record: Optional[str] = None,
    home_record: Optional[str] = None,
    venue: Optional[str] = None,
    scraped_at: Optional[date] = None,
) -> Game:
    """Builds a Game from raw team names; raises ValueError on unusable input."""
    away_raw, home_raw = away_raw.strip(), home_raw.strip()
    if not away_raw or not home_raw:
        raise ValueError(f"Empty team name (away={away_raw!r}, home={home_raw!r})")

    away_team = resolver.build_team(away_raw, away_record)
    home_team = resolver.build_team(home_raw, home_record)

    fields = dict(
        id=generate_game_id(away_team.abbreviation, home_team.abbreviation),
        home_team=home_team,
        away_team=away_team,
        game_time_utc=game_time_utc,
        venue=venue or f"{home_team.name} Stadium",
        source=source,
    )
    if scraped_at is not None:
        fields["scraped_at"] = scraped_at
    return Game(**fields)
