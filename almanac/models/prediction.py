from datetime import date, datetime, timezone
from typing import Dict

from pydantic import BaseModel, Field, model_validator

from .enums import Provider
from .team import Team


class PredictionSet(BaseModel):
    """One prediction text per provider for a single game."""

    game_id: str
    by_provider: Dict[Provider, str]
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_complete(self) -> "PredictionSet":
        missing = [p.value for p in Provider if not self.by_provider.get(p, "").strip()]
        if missing:
            raise ValueError(f"Missing or empty predictions for providers: {missing}")
        return self


class PredictionRecord(BaseModel):
    """Persisted form of a game's predictions, one record per game id."""

    game_id: str
    game_date: date
    home_team: Team
    away_team: Team
    venue: str
    predictions: PredictionSet
    created_at: datetime
    updated_at: datetime
