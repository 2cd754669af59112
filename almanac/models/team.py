# almanac/models/team.py
from pydantic import BaseModel, ConfigDict, Field, computed_field


class Team(BaseModel):
    """A team as it appears in one game: canonical name, abbreviation and record."""

    model_config = ConfigDict(frozen=True)

    name: str
    abbreviation: str = Field(..., min_length=1, max_length=4)
    record: str = "0-0"

    @computed_field  # type: ignore[misc]
    @property
    def logo(self) -> str:
        return f"/team-logos/{self.abbreviation.lower()}_logo.svg"
