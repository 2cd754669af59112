import logging
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from almanac.models.enums import Provider

DEFAULT_DATA_SOURCE_URL = "https://www.dratings.com/predictor/mlb-baseball-predictions/"
DEFAULT_STATS_API_BASE_URL = "https://statsapi.mlb.com"


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # LLM Provider Credentials (absent key => provider always uses fallback text)
    openai_api_key: Optional[str] = Field(None, description="API key for OpenAI.")
    anthropic_api_key: Optional[str] = Field(None, description="API key for Anthropic.")
    grok_api_key: Optional[str] = Field(None, description="API key for xAI Grok.")
    deepseek_api_key: Optional[str] = Field(None, description="API key for DeepSeek.")

    # Data Sources
    data_source_url: str = Field(
        DEFAULT_DATA_SOURCE_URL, description="Schedule page to scrape."
    )
    stats_api_base_url: str = Field(
        DEFAULT_STATS_API_BASE_URL, description="Base URL of the official stats API."
    )
    debug_html_path: Optional[str] = Field(
        None, description="If set, the fetched schedule page is saved here."
    )

    # Supabase Configuration (absent => run proceeds without persistence)
    supabase_url: Optional[str] = Field(None, description="URL for the Supabase project.")
    supabase_key: Optional[str] = Field(None, description="Key for the Supabase project.")
    supabase_table: str = Field(
        "predictions", description="Table holding one prediction record per game."
    )

    # Rendering
    static_page_path: str = Field(
        "index.html", description="Static page whose data block is rewritten each run."
    )
    build_output_dir: str = Field(
        "out", description="Directory the deployable static site is built into."
    )

    # Request Behaviour
    provider_timeout_seconds: float = Field(10.0, gt=0)
    provider_max_retries: int = Field(2, ge=0)
    retry_base_delay_seconds: float = Field(1.0, ge=0)
    scrape_max_retries: int = Field(2, ge=0)

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    def provider_credentials(self) -> Dict[Provider, Optional[str]]:
        """Maps every provider to its configured API key (or None)."""
        return {
            Provider.OPENAI: self.openai_api_key,
            Provider.ANTHROPIC: self.anthropic_api_key,
            Provider.GROK: self.grok_api_key,
            Provider.DEEPSEEK: self.deepseek_api_key,
        }

    def secrets(self) -> List[str]:
        """All configured secret values, used to mask log output."""
        values = list(self.provider_credentials().values()) + [self.supabase_key]
        return [v for v in values if v]

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings(**overrides) -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings(**overrides)
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")
