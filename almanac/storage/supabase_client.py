# almanac/storage/supabase_client.py
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from postgrest import APIResponse
from postgrest.exceptions import APIError
from pydantic import TypeAdapter
from supabase import AsyncClient, create_async_client

from almanac.config.settings import AppSettings
from almanac.models.game import Game
from almanac.models.prediction import PredictionRecord, PredictionSet
from almanac.utils.time_utils import to_eastern

_TIMESTAMP = TypeAdapter(datetime)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SupabasePredictionStore:
    """One prediction record per game id; later runs update it in place."""

    def __init__(
        self,
        client: AsyncClient,
        table_name: str = "predictions",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.table_name = table_name
        self._clock = clock

    def _table(self):
        return self.client.table(self.table_name)

    async def _find_row(self, game_id: str) -> Optional[Dict[str, Any]]:
        response: APIResponse = (
            await self._table().select("*").eq("game_id", game_id).limit(1).execute()
        )
        return response.data[0] if response.data else None

    def _next_updated_at(self, existing: Optional[Dict[str, Any]]) -> datetime:
        now = self._clock()
        if existing and existing.get("updated_at"):
            # PostgREST trims trailing zeros from fractional seconds
            previous = _TIMESTAMP.validate_python(existing["updated_at"])
            if previous.tzinfo is None:
                previous = previous.replace(tzinfo=timezone.utc)
            if now <= previous:
                now = previous + timedelta(microseconds=1)
        return now

    async def _insert_if_absent(self, record: Dict[str, Any]) -> bool:
        """Atomically inserts ``record``; False when a row with its game_id exists.

        Requires a unique index on the table's ``game_id`` column.
        """
        response: APIResponse = (
            await self._table()
            .upsert(record, on_conflict="game_id", ignore_duplicates=True)
            .execute()
        )
        return bool(response.data)

    async def _update_predictions(
        self, game_id: str, predictions_data: Dict[str, Any], updated_at: datetime
    ) -> None:
        await (
            self._table()
            .update({"predictions": predictions_data, "updated_at": updated_at.isoformat()})
            .eq("game_id", game_id)
            .execute()
        )

    async def upsert_prediction(self, game: Game, predictions: PredictionSet) -> bool:
        """Inserts the record for ``game`` or updates its predictions and updated_at."""
        try:
            existing = await self._find_row(game.id)
            predictions_data = predictions.model_dump(mode="json")

            if existing is None:
                now = self._next_updated_at(None)
                record = {
                    "game_id": game.id,
                    "game_date": to_eastern(game.game_time_utc).date().isoformat(),
                    "home_team": game.home_team.model_dump(mode="json"),
                    "away_team": game.away_team.model_dump(mode="json"),
                    "venue": game.venue,
                    "predictions": predictions_data,
                    "created_at": now.isoformat(),
                    "updated_at": now.isoformat(),
                }
                if await self._insert_if_absent(record):
                    logger.info(f"Stored new predictions for game {game.id}")
                    return True
                # Another run inserted the row since we looked
                logger.debug(f"Record for {game.id} appeared concurrently, updating it.")
                existing = await self._find_row(game.id)

            await self._update_predictions(
                game.id, predictions_data, self._next_updated_at(existing)
            )
            logger.info(f"Updated predictions for game {game.id}")
            return True
        except APIError as e:
            logger.error(f"Error upserting predictions for {game.id}: {e.message}")
            logger.debug(f"Full APIError details: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error upserting predictions for {game.id}: {e!r}")
            return False

    async def get_prediction(self, game_id: str) -> Optional[PredictionRecord]:
        try:
            row = await self._find_row(game_id)
        except APIError as e:
            logger.error(f"Error fetching predictions for {game_id}: {e.message}")
            return None
        return PredictionRecord.model_validate(row) if row else None

    async def get_predictions_by_date(self, day: date) -> List[PredictionRecord]:
        try:
            response: APIResponse = (
                await self._table()
                .select("*")
                .gte("game_date", day.isoformat())
                .lte("game_date", day.isoformat())
                .execute()
            )
        except APIError as e:
            logger.error(f"Error fetching predictions for {day.isoformat()}: {e.message}")
            return []
        return [PredictionRecord.model_validate(row) for row in response.data or []]

    async def delete_prediction(self, game_id: str) -> bool:
        """Administrative removal of a record; the pipeline never deletes."""
        try:
            response: APIResponse = (
                await self._table().delete().eq("game_id", game_id).execute()
            )
        except APIError as e:
            logger.error(f"Error deleting predictions for {game_id}: {e.message}")
            return False
        logger.info(f"Deleted predictions for game {game_id}")
        return bool(response.data)

    async def close(self) -> None:
        """Releases the PostgREST HTTP session held by the Supabase client."""
        try:
            await self.client.postgrest.aclose()
            logger.info("Closed Supabase client session")
        except Exception as e:
            logger.warning(f"Error closing Supabase client: {e}")


async def initialize_store(settings: AppSettings) -> Optional[SupabasePredictionStore]:
    """Connects to Supabase, or returns None so the run proceeds without persistence."""
    if not settings.persistence_enabled:
        logger.warning("Supabase URL or Key not configured. Predictions will not be stored.")
        return None

    logger.debug(f"Attempting to initialize Async Supabase client with URL: {settings.supabase_url}")
    try:
        client: AsyncClient = await create_async_client(
            settings.supabase_url, settings.supabase_key
        )
    except Exception as e:
        logger.warning(f"Failed to initialize Async Supabase client: {e}")
        return None

    logger.success("Async Supabase client initialized successfully.")
    return SupabasePredictionStore(client, table_name=settings.supabase_table)
