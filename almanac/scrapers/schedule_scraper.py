# almanac/scrapers/schedule_scraper.py

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from bs4 import BeautifulSoup
from loguru import logger

from almanac.models.game import Game
from almanac.normalization.team_resolver import TeamNameResolver
from almanac.utils.misc_utils import ensure_unique_ids
from almanac.utils.time_utils import eastern_today
from .base_scraper import BaseScraper
from .sample_schedule import build_sample_schedule
from .stats_api import StatsApiClient
from .strategies import ExtractionStrategy, default_strategies

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class ScheduleScraper(BaseScraper):
    """Scrapes the day's games, falling back through page strategies, the
    official stats API and finally the built-in sample schedule.

    scrape() never raises: every failure degrades to the next source.
    """

    source_name = "schedule page"

    def __init__(
        self,
        source_url: str,
        resolver: TeamNameResolver,
        stats_api: Optional[StatsApiClient] = None,
        strategies: Optional[List[ExtractionStrategy]] = None,
        debug_html_path: Optional[str] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.client.headers.update(BASE_HEADERS)
        self.source_url = source_url
        self.resolver = resolver
        self.stats_api = stats_api
        self.strategies = strategies if strategies is not None else default_strategies(resolver)
        self.debug_html_path = debug_html_path
        self._clock = clock

    async def fetch_page(self, url: str) -> str:
        response = await self._make_request("GET", url)
        html = response.text
        if self.debug_html_path:
            self._save_html_for_debugging(html)
        return html

    def _save_html_for_debugging(self, html: str) -> None:
        try:
            path = Path(self.debug_html_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html, encoding="utf-8")
            logger.debug(f"Saved schedule HTML for debugging to {path}")
        except OSError as e:
            logger.warning(f"Could not save schedule HTML to {self.debug_html_path}: {e}")

    def extract_games(self, html: str, now: datetime) -> List[Game]:
        """Runs the page strategies in order; the first non-empty result wins."""
        soup = BeautifulSoup(html, "html.parser")
        for strategy in self.strategies:
            try:
                games = strategy.extract(soup, now)
            except Exception as e:
                logger.warning(f"{strategy.name} failed on schedule page: {e}")
                continue
            if games:
                logger.info(f"{strategy.name} extracted {len(games)} games.")
                return games
            logger.debug(f"{strategy.name} found no games, trying next strategy.")
        return []

    async def _fetch_from_stats_api(self, now: datetime) -> List[Game]:
        if self.stats_api is None:
            return []
        day = eastern_today(now)
        try:
            return await self.stats_api.fetch_schedule(day)
        except Exception as e:
            logger.warning(f"Official stats API fallback failed for {day.isoformat()}: {e}")
            return []

    async def scrape(self, source_url: Optional[str] = None) -> List[Game]:
        url = source_url or self.source_url
        now = self._clock()
        logger.info(f"Fetching schedule from {url}")

        games: List[Game] = []
        try:
            html = await self.fetch_page(url)
            games = self.extract_games(html, now)
        except Exception as e:
            logger.warning(f"Could not fetch or parse schedule page {url}: {e}")

        if not games:
            logger.warning("No games found on schedule page, trying official stats API.")
            games = await self._fetch_from_stats_api(now)

        if not games:
            logger.warning(
                "All schedule sources failed. Serving the built-in SAMPLE schedule."
            )
            games = build_sample_schedule(self.resolver, eastern_today(now))

        games = ensure_unique_ids(games)
        logger.success(f"Schedule ready: {len(games)} games ({games[0].source.value}).")
        return games

    async def close(self):
        await super().close()
        if self.stats_api is not None:
            await self.stats_api.close()
