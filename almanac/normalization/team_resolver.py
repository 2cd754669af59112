from typing import Dict, NamedTuple, Optional

from loguru import logger

from almanac.models.team import Team

# Key: full or partial name as seen on schedule pages, Value: abbreviation.
# Order matters: substring matching walks this table in declaration order.
TEAM_ALIASES: Dict[str, str] = {
    "Arizona": "ARI",
    "Arizona Diamondbacks": "ARI",
    "Atlanta": "ATL",
    "Atlanta Braves": "ATL",
    "Baltimore": "BAL",
    "Baltimore Orioles": "BAL",
    "Boston": "BOS",
    "Boston Red Sox": "BOS",
    "Chicago Cubs": "CHC",
    "Chicago White Sox": "CWS",
    "Cincinnati": "CIN",
    "Cincinnati Reds": "CIN",
    "Cleveland": "CLE",
    "Cleveland Guardians": "CLE",
    "Colorado": "COL",
    "Colorado Rockies": "COL",
    "Detroit": "DET",
    "Detroit Tigers": "DET",
    "Houston": "HOU",
    "Houston Astros": "HOU",
    "Kansas City": "KC",
    "Kansas City Royals": "KC",
    "Los Angeles Angels": "LAA",
    "Los Angeles Dodgers": "LAD",
    "Miami": "MIA",
    "Miami Marlins": "MIA",
    "Milwaukee": "MIL",
    "Milwaukee Brewers": "MIL",
    "Minnesota": "MIN",
    "Minnesota Twins": "MIN",
    "New York Mets": "NYM",
    "New York Yankees": "NYY",
    "Oakland": "OAK",
    "Oakland Athletics": "OAK",
    "Athletics": "OAK",
    "Philadelphia": "PHI",
    "Philadelphia Phillies": "PHI",
    "Pittsburgh": "PIT",
    "Pittsburgh Pirates": "PIT",
    "San Diego": "SD",
    "San Diego Padres": "SD",
    "San Francisco": "SF",
    "San Francisco Giants": "SF",
    "Seattle": "SEA",
    "Seattle Mariners": "SEA",
    "St. Louis": "STL",
    "St. Louis Cardinals": "STL",
    "Tampa Bay": "TB",
    "Tampa Bay Rays": "TB",
    "Texas": "TEX",
    "Texas Rangers": "TEX",
    "Toronto": "TOR",
    "Toronto Blue Jays": "TOR",
    "Washington": "WSH",
    "Washington Nationals": "WSH",
}

# Canonical display name per abbreviation
CANONICAL_NAMES: Dict[str, str] = {
    "ARI": "Arizona Diamondbacks",
    "ATL": "Atlanta Braves",
    "BAL": "Baltimore Orioles",
    "BOS": "Boston Red Sox",
    "CHC": "Chicago Cubs",
    "CWS": "Chicago White Sox",
    "CIN": "Cincinnati Reds",
    "CLE": "Cleveland Guardians",
    "COL": "Colorado Rockies",
    "DET": "Detroit Tigers",
    "HOU": "Houston Astros",
    "KC": "Kansas City Royals",
    "LAA": "Los Angeles Angels",
    "LAD": "Los Angeles Dodgers",
    "MIA": "Miami Marlins",
    "MIL": "Milwaukee Brewers",
    "MIN": "Minnesota Twins",
    "NYM": "New York Mets",
    "NYY": "New York Yankees",
    "OAK": "Oakland Athletics",
    "PHI": "Philadelphia Phillies",
    "PIT": "Pittsburgh Pirates",
    "SD": "San Diego Padres",
    "SF": "San Francisco Giants",
    "SEA": "Seattle Mariners",
    "STL": "St. Louis Cardinals",
    "TB": "Tampa Bay Rays",
    "TEX": "Texas Rangers",
    "TOR": "Toronto Blue Jays",
    "WSH": "Washington Nationals",
}


class ResolvedTeam(NamedTuple):
    canonical_name: str
    abbreviation: str
    matched: bool = True


class TeamNameResolver:
    """Maps free-text team names (full, partial, city-only) to a canonical name
    and standard abbreviation.

    Resolution order, first hit wins:
        1. exact alias match
        2. first alias (in declaration order) contained in the raw name
        3. the raw name itself with its first three letters upper-cased
    """

    def __init__(
        self,
        aliases: Optional[Dict[str, str]] = None,
        canonical_names: Optional[Dict[str, str]] = None,
    ):
        self.aliases: Dict[str, str] = dict(aliases or TEAM_ALIASES)
        self.canonical_names: Dict[str, str] = dict(canonical_names or CANONICAL_NAMES)
        logger.debug(
            f"TeamNameResolver initialized with {len(self.aliases)} team aliases."
        )

    def _entry(self, alias: str) -> ResolvedTeam:
        abbreviation = self.aliases[alias]
        return ResolvedTeam(
            self.canonical_names.get(abbreviation, alias), abbreviation, True
        )

    def resolve(self, raw_name: str) -> ResolvedTeam:
        if raw_name in self.aliases:
            return self._entry(raw_name)

        for alias in self.aliases:
            if alias in raw_name:
                return self._entry(alias)

        return ResolvedTeam(raw_name, raw_name[:3].upper(), False)

    def build_team(self, raw_name: str, record: Optional[str] = None) -> Team:
        """Creates a Team whose name and abbreviation come from resolve()."""
        resolved = self.resolve(raw_name.strip())
        return Team(
            name=resolved.canonical_name,
            abbreviation=resolved.abbreviation,
            record=record or "0-0",
        )
