import sys
import asyncio
from datetime import datetime, timezone
from typing import Dict, Optional

from loguru import logger
from rich import print
from rich.panel import Panel

from almanac.config.settings import AppSettings, load_settings
from almanac.logging.setup import setup_logging
from almanac.models.prediction import PredictionSet
from almanac.normalization.team_resolver import TeamNameResolver
from almanac.prediction.orchestrator import PredictionOrchestrator
from almanac.rendering.static_page import StaticPageRenderer, build_site
from almanac.scrapers.schedule_scraper import ScheduleScraper
from almanac.scrapers.stats_api import StatsApiClient
from almanac.storage.supabase_client import SupabasePredictionStore, initialize_store


async def run_pipeline(
    scraper: ScheduleScraper,
    orchestrator: PredictionOrchestrator,
    store: Optional[SupabasePredictionStore],
    renderer: StaticPageRenderer,
) -> int:
    """Scrape -> predict -> persist -> render. Returns the process exit code."""
    try:
        games = await scraper.scrape()
        if not games:
            logger.critical("Scraping produced no games, even after fallbacks. Aborting run.")
            return 1

        if store is None:
            logger.warning("Running without persistence; predictions are only rendered.")

        predictions: Dict[str, PredictionSet] = {}
        stored = 0
        # One game at a time keeps outbound requests to one per provider
        for index, game in enumerate(games, start=1):
            logger.info(f"Game {index}/{len(games)}: {game.matchup}")
            prediction_set = await orchestrator.predict_all(game)
            predictions[game.id] = prediction_set

            if store is not None:
                if await store.upsert_prediction(game, prediction_set):
                    stored += 1
                else:
                    logger.warning(f"Failed to store predictions for game {game.id}, continuing.")

        renderer.render(games, predictions, now=datetime.now(timezone.utc))

        summary = (
            f"Games: {len(games)} (source: {games[0].source.value}"
            f"{', SAMPLE DATA' if games[0].is_sample else ''})\n"
            f"Predictions stored: {stored if store is not None else 'persistence disabled'}\n"
            f"Page: {renderer.page_path}"
        )
        print(Panel(summary, title="MLB Prediction Update", expand=False))
        return 0
    finally:
        await scraper.close()
        await orchestrator.close()
        if store is not None:
            await store.close()


def build_pipeline(settings: AppSettings):
    """Constructs every collaborator explicitly from settings."""
    resolver = TeamNameResolver()
    stats_api = StatsApiClient(
        settings.stats_api_base_url,
        resolver,
        max_retries=settings.scrape_max_retries,
        base_delay=settings.retry_base_delay_seconds,
    )
    scraper = ScheduleScraper(
        settings.data_source_url,
        resolver,
        stats_api=stats_api,
        debug_html_path=settings.debug_html_path,
        max_retries=settings.scrape_max_retries,
        base_delay=settings.retry_base_delay_seconds,
    )
    orchestrator = PredictionOrchestrator(
        settings.provider_credentials(),
        timeout=settings.provider_timeout_seconds,
        max_retries=settings.provider_max_retries,
        base_delay=settings.retry_base_delay_seconds,
    )
    renderer = StaticPageRenderer(settings.static_page_path)
    return scraper, orchestrator, renderer


async def main() -> int:
    """Main entry point for the application."""
    settings = load_settings()
    setup_logging(settings)
    logger.info("Starting MLB data and prediction update")

    scraper, orchestrator, renderer = build_pipeline(settings)
    store = await initialize_store(settings)
    exit_code = await run_pipeline(scraper, orchestrator, store, renderer)
    if exit_code == 0:
        logger.success("MLB data and prediction update completed.")
    return exit_code


def cli() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)


def build() -> None:
    """Copies the rendered page and its assets into the deployable output dir."""
    settings = load_settings()
    setup_logging(settings)
    try:
        build_site(settings.static_page_path, settings.build_output_dir)
    except OSError as e:
        logger.error(f"Static site build failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
