# almanac/scrapers/stats_api.py

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from almanac.models.enums import DataSource
from almanac.models.game import Game
from almanac.models.team import Team
from almanac.normalization.team_resolver import TeamNameResolver
from almanac.utils.misc_utils import generate_game_id
from .base_scraper import BaseScraper, ScraperError

MLB_SPORT_ID = 1


class StatsApiClient(BaseScraper):
    """Schedule source backed by the official MLB stats API."""

    source_name = "MLB Stats API"

    def __init__(self, base_url: str, resolver: TeamNameResolver, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.resolver = resolver
        self._team_directory: Optional[Dict[int, Dict[str, str]]] = None

    async def fetch_team_directory(self) -> Dict[int, Dict[str, str]]:
        """Team id -> {"name", "abbreviation"}; fetched once per client."""
        if self._team_directory is not None:
            return self._team_directory

        response = await self._make_request(
            "GET", f"{self.base_url}/api/v1/teams", params={"sportId": MLB_SPORT_ID}
        )
        directory: Dict[int, Dict[str, str]] = {}
        for team in response.json().get("teams", []):
            if not isinstance(team, dict) or team.get("id") is None:
                continue
            directory[int(team["id"])] = {
                "name": team.get("name", ""),
                "abbreviation": team.get("abbreviation", ""),
            }
        logger.debug(f"Loaded {len(directory)} teams from {self.source_name}")
        self._team_directory = directory
        return directory

    async def fetch_schedule(self, day: date) -> List[Game]:
        """Fetches the schedule for ``day`` and builds Game records directly."""
        directory = await self.fetch_team_directory()
        response = await self._make_request(
            "GET",
            f"{self.base_url}/api/v1/schedule",
            params={"sportId": MLB_SPORT_ID, "date": day.isoformat()},
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise ScraperError(f"Invalid JSON from {self.source_name}") from e

        dates = payload.get("dates") or []
        if not dates:
            logger.info(f"{self.source_name} lists no games for {day.isoformat()}")
            return []

        games: List[Game] = []
        for raw_game in dates[0].get("games", []):
            try:
                games.append(self._build_game(raw_game, directory))
            except Exception as game_exc:
                logger.debug(
                    f"Skipping {self.source_name} game {raw_game.get('gamePk', 'UNKNOWN')}: {game_exc}"
                )
        logger.info(f"{self.source_name} returned {len(games)} games for {day.isoformat()}")
        return games

    def _team(self, side: Dict[str, Any], directory: Dict[int, Dict[str, str]]) -> Team:
        team_info = side.get("team") or {}
        listed = directory.get(int(team_info.get("id", -1)), {})
        name = listed.get("name") or team_info.get("name")
        if not name:
            raise ValueError(f"No team name for id {team_info.get('id')}")

        league_record = side.get("leagueRecord") or {}
        record = f"{int(league_record.get('wins', 0))}-{int(league_record.get('losses', 0))}"

        resolved = self.resolver.resolve(name)
        # Directory abbreviation only for names the resolver does not know
        abbreviation = (
            resolved.abbreviation
            if resolved.matched
            else (listed.get("abbreviation") or resolved.abbreviation)
        )
        return Team(name=resolved.canonical_name, abbreviation=abbreviation, record=record)

    def _build_game(
        self, raw_game: Dict[str, Any], directory: Dict[int, Dict[str, str]]
    ) -> Game:
        teams = raw_game["teams"]
        away_team = self._team(teams["away"], directory)
        home_team = self._team(teams["home"], directory)
        game_time = datetime.fromisoformat(raw_game["gameDate"].replace("Z", "+00:00"))
        venue = (raw_game.get("venue") or {}).get("name")

        return Game(
            id=generate_game_id(away_team.abbreviation, home_team.abbreviation),
            home_team=home_team,
            away_team=away_team,
            game_time_utc=game_time.astimezone(timezone.utc),
            venue=venue or f"{home_team.name} Stadium",
            source=DataSource.STATS_API,
        )
