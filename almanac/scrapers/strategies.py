"""
Extraction strategies for schedule pages.

Each strategy takes a parsed document and returns zero or more games. The
ScheduleScraper tries them in order and keeps the first non-empty result, so a
strategy never needs to know about the others. A row, card or text line that
cannot be turned into a game is skipped; it never aborts the batch.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Set, Tuple

from bs4 import BeautifulSoup, Tag
from loguru import logger

from almanac.models.enums import DataSource
from almanac.models.game import Game
from almanac.normalization.game_builder import build_game
from almanac.normalization.team_resolver import TeamNameResolver
from almanac.utils.time_utils import (
    DATE_PATTERN,
    eastern_noon,
    eastern_today,
    parse_eastern_game_time,
)

# "(28-30)" inside a combined "Away (W-L)Home (W-L)" cell
RECORD_PATTERN = re.compile(r"\(\s*(\d+)\s*-\s*(\d+)\s*\)")
RECORD_SPLIT_PATTERN = re.compile(r"\(\s*\d+\s*-\s*\d+\s*\)")
BARE_RECORD_PATTERN = re.compile(r"(\d+)\s*-\s*(\d+)")

_NAME_WORD = r"[A-Z][\w.'&-]*"
MATCHUP_PATTERN = re.compile(
    rf"({_NAME_WORD}(?:[ \t]+{_NAME_WORD}){{0,3}})[ \t]+(?:vs\.?|at)[ \t]+({_NAME_WORD}(?:[ \t]+{_NAME_WORD}){{0,3}})"
)

NON_CONTENT_TAGS = {"script", "style", "noscript", "template"}


def _class_matcher(
    words: Sequence[str], exclude: Sequence[str] = ()
) -> Callable[[Optional[str]], bool]:
    """Builds a BeautifulSoup class_ filter matching any of ``words``."""

    def matches(css_class: Optional[str]) -> bool:
        if not css_class:
            return False
        lowered = css_class.lower()
        return any(w in lowered for w in words) and not any(
            x in lowered for x in exclude
        )

    return matches


def _format_record(match: Optional[re.Match]) -> Optional[str]:
    return f"{match.group(1)}-{match.group(2)}" if match else None


class ExtractionStrategy(ABC):
    """One self-contained technique for pulling games out of a schedule page."""

    source: DataSource

    def __init__(self, resolver: TeamNameResolver):
        self.resolver = resolver

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def extract(self, soup: BeautifulSoup, now: datetime) -> List[Game]:
        """Returns every game the strategy can read from ``soup`` (possibly none)."""

    def _default_time(self, now: datetime) -> datetime:
        return eastern_noon(eastern_today(now))


class TableStrategy(ExtractionStrategy):
    """Rows of the first schedule table: cell 0 is the time, cell 1 the matchup."""

    source = DataSource.TABLE

    def _find_schedule_table(self, soup: BeautifulSoup) -> Optional[Tag]:
        for table in soup.find_all("table"):
            data_rows = table.find_all("tr")[1:]  # Skip header row
            if any(len(row.find_all("td")) >= 2 for row in data_rows):
                return table
        return None

    def extract(self, soup: BeautifulSoup, now: datetime) -> List[Game]:
        table = self._find_schedule_table(soup)
        if table is None:
            logger.debug("No schedule table with data rows found.")
            return []

        games: List[Game] = []
        for row_index, row in enumerate(table.find_all("tr")[1:], start=1):
            cells = row.find_all("td")
            if len(cells) < 2:
                continue
            try:
                game = self._parse_row(cells, now)
            except Exception as row_exc:
                logger.debug(f"Skipping table row {row_index}: {row_exc}")
                continue
            if game:
                games.append(game)
        return games

    def _parse_row(self, cells: List[Tag], now: datetime) -> Optional[Game]:
        time_text = cells[0].get_text(" ", strip=True)
        teams_text = cells[1].get_text(" ", strip=True)

        segments = [s.strip() for s in RECORD_SPLIT_PATTERN.split(teams_text)]
        if len(segments) < 2 or not segments[0] or not segments[1]:
            logger.debug(f"Could not split teams from cell text: '{teams_text}'")
            return None
        away_raw, home_raw = segments[0], segments[1]

        records = list(RECORD_PATTERN.finditer(teams_text))
        away_record = _format_record(records[0]) if records else None
        home_record = _format_record(records[-1]) if records else None

        return build_game(
            self.resolver,
            away_raw,
            home_raw,
            game_time_utc=parse_eastern_game_time(time_text, now),
            source=self.source,
            away_record=away_record,
            home_record=home_record,
            scraped_at=eastern_today(now),
        )


CONTAINER_MATCHER = _class_matcher(
    ("game", "match", "event"), exclude=("team", "record", "date", "time")
)
TEAM_MATCHER = _class_matcher(("team",), exclude=("record", "logo", "img"))
RECORD_MATCHER = _class_matcher(("record",))
TIME_MATCHER = _class_matcher(("date", "time"))


class CardStrategy(ExtractionStrategy):
    """Game "cards": containers with game/match classes holding two team elements."""

    source = DataSource.CARD

    def extract(self, soup: BeautifulSoup, now: datetime) -> List[Game]:
        games: List[Game] = []
        # One game per innermost container, even when two cards show the same matchup
        for container in soup.find_all(class_=CONTAINER_MATCHER):
            # Only innermost containers; a list wrapper holds every team on the page
            if container.find(class_=CONTAINER_MATCHER):
                continue
            try:
                game = self._parse_card(container, now)
            except Exception as card_exc:
                logger.debug(f"Skipping game card: {card_exc}")
                continue
            if game:
                games.append(game)
        return games

    def _team_elements(self, container: Tag) -> List[Tag]:
        return [
            el
            for el in container.find_all(class_=TEAM_MATCHER)
            if not el.find(class_=TEAM_MATCHER)
        ]

    def _parse_card(self, container: Tag, now: datetime) -> Optional[Game]:
        team_elements = self._team_elements(container)
        if len(team_elements) < 2:
            return None

        names = []
        for el in team_elements[:2]:
            text = el.get_text(" ", strip=True)
            names.append(RECORD_SPLIT_PATTERN.sub("", text).strip())

        records: List[Optional[str]] = [
            _format_record(BARE_RECORD_PATTERN.search(el.get_text(" ", strip=True)))
            for el in container.find_all(class_=RECORD_MATCHER)
        ]
        if not records:
            records = [
                _format_record(RECORD_PATTERN.search(el.get_text(" ", strip=True)))
                for el in team_elements[:2]
            ]
        away_record = records[0] if len(records) > 0 else None
        home_record = records[1] if len(records) > 1 else None

        game_time = self._default_time(now)
        time_el = container.find(class_=TIME_MATCHER)
        if time_el is not None:
            time_text = time_el.get_text(" ", strip=True)
            if DATE_PATTERN.search(time_text):
                game_time = parse_eastern_game_time(time_text, now)

        return build_game(
            self.resolver,
            names[0],
            names[1],
            game_time_utc=game_time,
            source=self.source,
            away_record=away_record,
            home_record=home_record,
            scraped_at=eastern_today(now),
        )


class FreeTextStrategy(ExtractionStrategy):
    """Last resort: "<Away> vs <Home>" or "<Away> at <Home>" anywhere in page text."""

    source = DataSource.TEXT

    def _page_lines(self, soup: BeautifulSoup) -> List[str]:
        lines: List[str] = []
        for text in soup.find_all(string=True):
            if text.parent is not None and text.parent.name in NON_CONTENT_TAGS:
                continue
            lines.extend(line.strip() for line in str(text).splitlines())
        return [line for line in lines if line]

    def extract(self, soup: BeautifulSoup, now: datetime) -> List[Game]:
        games: List[Game] = []
        seen: Set[Tuple[str, str]] = set()
        game_time = self._default_time(now)

        for line in self._page_lines(soup):
            for match in MATCHUP_PATTERN.finditer(line):
                away_raw, home_raw = match.group(1).strip(), match.group(2).strip()
                if away_raw == home_raw or (away_raw, home_raw) in seen:
                    continue
                try:
                    game = build_game(
                        self.resolver,
                        away_raw,
                        home_raw,
                        game_time_utc=game_time,
                        source=self.source,
                        scraped_at=eastern_today(now),
                    )
                except Exception as text_exc:
                    logger.debug(f"Skipping text match '{match.group(0)}': {text_exc}")
                    continue
                seen.add((away_raw, home_raw))
                games.append(game)
        return games


def default_strategies(resolver: TeamNameResolver) -> List[ExtractionStrategy]:
    """The page strategies in priority order."""
    return [TableStrategy(resolver), CardStrategy(resolver), FreeTextStrategy(resolver)]
