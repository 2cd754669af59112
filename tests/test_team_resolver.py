"""Tests for the team name resolver."""
import pytest

from almanac.normalization.team_resolver import (
    CANONICAL_NAMES,
    TEAM_ALIASES,
    TeamNameResolver,
)


class TestResolve:
    def test_city_and_full_name_resolve_identically(self, resolver):
        city = resolver.resolve("Boston")
        full = resolver.resolve("Boston Red Sox")

        assert (city.canonical_name, city.abbreviation) == (
            full.canonical_name,
            full.abbreviation,
        )
        assert full.canonical_name == "Boston Red Sox"
        assert full.abbreviation == "BOS"

    def test_unknown_team_defaults_to_first_three_letters(self, resolver):
        result = resolver.resolve("Unknown Team XYZ")

        assert result.canonical_name == "Unknown Team XYZ"
        assert result.abbreviation == "UNK"
        assert result.matched is False

    def test_substring_match(self, resolver):
        result = resolver.resolve("Los Angeles Dodgers (LAD)")

        assert result.canonical_name == "Los Angeles Dodgers"
        assert result.abbreviation == "LAD"
        assert result.matched is True

    def test_substring_match_uses_declaration_order(self):
        resolver = TeamNameResolver(
            aliases={"York": "YRK", "New York Mets": "NYM"},
            canonical_names={"YRK": "York", "NYM": "New York Mets"},
        )

        # "York" is declared first and is contained in the raw name
        assert resolver.resolve("The New York Mets").abbreviation == "YRK"
        # Exact matches still take precedence over containment
        assert resolver.resolve("New York Mets").abbreviation == "NYM"

    @pytest.mark.parametrize(
        "raw, abbreviation",
        [
            ("St. Louis", "STL"),
            ("Chicago White Sox", "CWS"),
            ("Kansas City", "KC"),
            ("Athletics", "OAK"),
        ],
    )
    def test_known_aliases(self, resolver, raw, abbreviation):
        assert resolver.resolve(raw).abbreviation == abbreviation

    def test_every_alias_has_a_canonical_name(self):
        assert set(TEAM_ALIASES.values()) <= set(CANONICAL_NAMES)

    def test_short_unknown_name(self, resolver):
        assert resolver.resolve("Al").abbreviation == "AL"


class TestBuildTeam:
    def test_build_team_uses_resolver_output(self, resolver):
        team = resolver.build_team("  Seattle  ", "31-26")

        assert team.name == "Seattle Mariners"
        assert team.abbreviation == "SEA"
        assert team.record == "31-26"
        assert team.logo == "/team-logos/sea_logo.svg"

    def test_build_team_defaults_record(self, resolver):
        assert resolver.build_team("Texas").record == "0-0"
