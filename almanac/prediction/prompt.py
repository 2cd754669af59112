from almanac.models.game import Game
from almanac.utils.time_utils import to_eastern

SYSTEM_PROMPT = "You are a sports prediction AI specializing in MLB baseball."


def format_game_time(game: Game) -> str:
    eastern = to_eastern(game.game_time_utc)
    return (
        f"{eastern.strftime('%Y-%m-%d %I:%M %p')} ET "
        f"({game.game_time_utc.strftime('%H:%M')} UTC)"
    )


def build_prompt(game: Game) -> str:
    """The single prompt every provider receives for ``game``."""
    home, away = game.home_team, game.away_team
    return f"""{SYSTEM_PROMPT}

Game Information:
- Home Team: {home.name} ({home.record})
- Away Team: {away.name} ({away.record})
- Game Time: {format_game_time(game)}
- Venue: {game.venue}

Based on the teams' records and matchup, provide a prediction for this game.

Your response MUST follow this exact format:
1. First line: Score prediction in the format "{away.name} - {home.name}: X-Y" (where X and Y are numbers)
2. Then 2-3 sentences explaining your reasoning for this prediction

Keep your explanation concise and focus only on this specific game."""
