from enum import Enum


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROK = "grok"
    DEEPSEEK = "deepseek"


class DataSource(str, Enum):
    """Where a game record came from. SAMPLE marks synthetic data."""

    TABLE = "table"
    CARD = "card"
    TEXT = "text"
    STATS_API = "stats_api"
    SAMPLE = "sample"
