# almanac/utils/misc_utils.py
import re
from typing import Dict, List

from almanac.models.game import Game


def generate_game_id(away_abbreviation: str, home_abbreviation: str) -> str:
    """Builds the lowercase "<away>-<home>" slug used as a game id."""
    slug = f"{away_abbreviation}-{home_abbreviation}".lower()
    return re.sub(r"[^a-z0-9-]+", "", slug)


def ensure_unique_ids(games: List[Game]) -> List[Game]:
    """Suffixes repeated matchups within a batch (doubleheaders) with -2, -3, ..."""
    seen: Dict[str, int] = {}
    unique: List[Game] = []
    for game in games:
        count = seen.get(game.id, 0) + 1
        seen[game.id] = count
        if count > 1:
            game = game.model_copy(update={"id": f"{game.id}-{count}"})
        unique.append(game)
    return unique
