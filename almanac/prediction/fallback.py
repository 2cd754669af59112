import random
from typing import NamedTuple, Optional, Tuple

from loguru import logger

from almanac.models.enums import Provider
from almanac.models.game import Game

HOME_FIELD_ADVANTAGE = 0.05
WINNER_SCORES = (3, 4, 5, 6)
LOSER_SCORES = (1, 2, 3)


def parse_record(record: Optional[str]) -> Tuple[int, int]:
    """Parses "W-L" into (wins, losses); anything unreadable counts as 0."""
    parts = (record or "").split("-")

    def as_int(index: int) -> int:
        try:
            return max(int(parts[index].strip()), 0)
        except (IndexError, ValueError):
            return 0

    return as_int(0), as_int(1)


def win_fraction(wins: int, losses: int) -> float:
    decisions = wins + losses
    return wins / decisions if decisions else 0.5


class MatchupOutlook(NamedTuple):
    home_fraction: float  # includes home-field bonus
    away_fraction: float
    home_favored: bool

    @property
    def favorite_win_probability(self) -> int:
        """Favorite's share of the combined fractions, as a whole percentage."""
        total = self.home_fraction + self.away_fraction
        favorite = self.home_fraction if self.home_favored else self.away_fraction
        return round(favorite / total * 100) if total else 50


class FallbackPredictor:
    """Record-based score line plus canned reasoning, used whenever a provider
    cannot be reached. Only the score magnitudes are random."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def outlook(self, game: Game) -> MatchupOutlook:
        home = win_fraction(*parse_record(game.home_team.record)) + HOME_FIELD_ADVANTAGE
        away = win_fraction(*parse_record(game.away_team.record))
        return MatchupOutlook(home, away, home > away)

    def predict(self, provider: Provider, game: Game) -> str:
        outlook = self.outlook(game)
        logger.debug(
            f"Fallback outlook for {game.id} ({provider.value}): "
            f"home {outlook.home_fraction:.3f} vs away {outlook.away_fraction:.3f}"
        )

        winner_score = self.rng.choice(WINNER_SCORES)
        # Baseball has no ties: a 3 for the winner caps the loser at 2
        loser_score = self.rng.choice([s for s in LOSER_SCORES if s < winner_score])
        if outlook.home_favored:
            home_score, away_score = winner_score, loser_score
        else:
            home_score, away_score = loser_score, winner_score

        score_line = (
            f"{game.away_team.name} - {game.home_team.name}: {away_score}-{home_score}"
        )
        return f"{score_line}\n\n{self._justification(provider, game, outlook)}"

    def _justification(
        self, provider: Provider, game: Game, outlook: MatchupOutlook
    ) -> str:
        home, away = game.home_team, game.away_team
        home_wins, home_losses = parse_record(home.record)
        away_wins, away_losses = parse_record(away.record)
        favorite, underdog = (home, away) if outlook.home_favored else (away, home)

        if provider == Provider.OPENAI:
            if outlook.home_favored:
                return (
                    f"The {home.name} have the stronger record and home field advantage "
                    f"gives them the edge in this matchup. Consistent pitching should "
                    f"limit the {away.name}'s scoring opportunities."
                )
            return (
                f"Despite playing away, the {away.name} have shown better form with their "
                f"{away_wins}-{away_losses} record against the {home.name}'s "
                f"{home_wins}-{home_losses}. Their lineup has been the more productive one."
            )

        if provider == Provider.ANTHROPIC:
            if outlook.home_favored:
                return (
                    f"Weighing both teams' strengths and weaknesses, the {home.name} hold "
                    f"the advantage at home. Their rotation lines up favorably against "
                    f"the {away.name} in this game."
                )
            return (
                f"The {away.name} have handled the road well this season, which outweighs "
                f"the {home.name}'s home field. Their bullpen has been the more reliable "
                f"unit in close games."
            )

        if provider == Provider.GROK:
            if outlook.home_favored:
                return (
                    f"Across the key statistical categories the {home.name} come out ahead, "
                    f"and their form at {game.venue} should carry into this one."
                )
            return (
                f"The {away.name} have posted strong road numbers this season. Their "
                f"offensive production has outpaced the {home.name}'s lately."
            )

        if provider == Provider.DEEPSEEK:
            return (
                f"Statistical analysis gives the {favorite.name} a "
                f"{outlook.favorite_win_probability}% win probability against the "
                f"{underdog.name}. Home/away splits and run differential in one-run "
                f"games are the key factors."
            )

        return (
            f"The {favorite.name} are favored over the {underdog.name}. Overall record "
            f"and venue are the key factors in this prediction."
        )
