"""
Pytest Configuration and Shared Fixtures
=========================================
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from almanac.models.enums import DataSource
from almanac.models.game import Game
from almanac.normalization.game_builder import build_game
from almanac.normalization.team_resolver import TeamNameResolver


@pytest.fixture
def resolver() -> TeamNameResolver:
    return TeamNameResolver()


@pytest.fixture
def fixed_now() -> datetime:
    # A June evening: US Eastern is on EDT (UTC-4)
    return datetime(2025, 6, 1, 22, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_game(resolver, fixed_now) -> Callable[..., Game]:
    """Factory for games built the same way the scrapers build them."""

    def _make(
        away: str = "New York Yankees",
        home: str = "Boston Red Sox",
        away_record: str = "35-22",
        home_record: str = "30-28",
        source: DataSource = DataSource.TABLE,
        venue: Optional[str] = None,
    ) -> Game:
        return build_game(
            resolver,
            away,
            home,
            game_time_utc=fixed_now,
            source=source,
            away_record=away_record,
            home_record=home_record,
            venue=venue,
            scraped_at=fixed_now.date(),
        )

    return _make


async def _no_sleep(_delay: float) -> None:
    return None


@pytest.fixture
def no_sleep():
    return _no_sleep


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# --- Fake Supabase client ---------------------------------------------------


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data


class FakeQuery:
    """Chainable query builder mimicking the supabase-py table API."""

    def __init__(self, rows: List[Dict[str, Any]]):
        self.rows = rows
        self.operation = "select"
        self.payload: Optional[Dict[str, Any]] = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.row_limit: Optional[int] = None

    def select(self, *_columns):
        self.operation = "select"
        return self

    def upsert(self, payload, on_conflict="", ignore_duplicates=False):
        self.operation, self.payload = "upsert", payload
        self.conflict_column = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def update(self, payload):
        self.operation, self.payload = "update", payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) <= value)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    async def execute(self) -> FakeResponse:
        matched = [row for row in self.rows if all(f(row) for f in self.filters)]
        if self.operation == "upsert":
            key = self.payload[self.conflict_column]
            clashing = [row for row in self.rows if row.get(self.conflict_column) == key]
            if clashing and self.ignore_duplicates:
                return FakeResponse([])
            if clashing:
                clashing[0].update(self.payload)
                return FakeResponse([dict(clashing[0])])
            self.rows.append(dict(self.payload))
            return FakeResponse([dict(self.payload)])
        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(row) for row in matched])
        if self.operation == "delete":
            for row in matched:
                self.rows.remove(row)
            return FakeResponse(matched)
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return FakeResponse([dict(row) for row in matched])


class FakeSupabaseClient:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.postgrest = Mock(aclose=AsyncMock())

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.tables[name])


@pytest.fixture
def fake_supabase() -> FakeSupabaseClient:
    return FakeSupabaseClient()
