import sys
import logging
from typing import Any, Callable, Iterable

from loguru import logger

from almanac.config.settings import AppSettings

SENSITIVE_KEYS = ["key", "token", "password", "secret", "authorization"]


def _mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "********"


def make_sensitive_data_filter(
    secrets: Iterable[str],
) -> Callable[[dict[str, Any]], bool]:
    """Builds a loguru filter that masks configured secrets in log records."""
    secret_values = [s for s in secrets if s]

    def mask_extra(value: Any, key: str = "") -> Any:
        if isinstance(value, str):
            if any(sk in key.lower() for sk in SENSITIVE_KEYS):
                return _mask(value)
            return value
        elif isinstance(value, dict):
            return {k: mask_extra(v, str(k)) for k, v in value.items()}
        elif isinstance(value, list):
            return [mask_extra(item, key) for item in value]
        return value

    def sensitive_data_filter(record: dict[str, Any]) -> bool:
        if "extra" in record and isinstance(record["extra"], dict):
            record["extra"] = mask_extra(record["extra"])

        # Secrets can leak into messages through exception text or URLs
        for secret in secret_values:
            if secret in record["message"]:
                record["message"] = record["message"].replace(secret, "********")

        return True  # Keep the record after filtering/masking

    return sensitive_data_filter


class InterceptHandler(logging.Handler):
    """Routes standard logging records (httpx, supabase) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(settings: AppSettings) -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False,  # Local variables may hold API keys
        filter=make_sensitive_data_filter(settings.secrets()),
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # httpx logs every request at INFO, including full URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger.info("Standard logging intercepted.")
