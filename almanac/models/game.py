from datetime import date, datetime, timezone

from pydantic import BaseModel, Field, computed_field, field_validator

from .enums import DataSource
from .team import Team


class Game(BaseModel):
    """Represents a single scheduled game."""

    # Lowercase "<away abbr>-<home abbr>" slug, unique within one scrape batch
    id: str
    home_team: Team
    away_team: Team
    game_time_utc: datetime
    venue: str
    scraped_at: date = Field(default_factory=lambda: datetime.now(timezone.utc).date())
    source: DataSource

    @field_validator("game_time_utc")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("game_time_utc must be timezone-aware")
        return value.astimezone(timezone.utc)

    @computed_field  # type: ignore[misc]
    @property
    def is_sample(self) -> bool:
        """True when the game is synthetic fallback data, not a scraped one."""
        return self.source == DataSource.SAMPLE

    @computed_field  # type: ignore[misc]
    @property
    def matchup(self) -> str:
        return f"{self.away_team.name} @ {self.home_team.name}"

    def __hash__(self):
        return hash(self.id)
