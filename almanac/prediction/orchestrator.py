import asyncio
from typing import Awaitable, Callable, Dict, Mapping, Optional

import httpx
from loguru import logger

from almanac.models.enums import Provider
from almanac.models.game import Game
from almanac.models.prediction import PredictionSet
from almanac.utils.retry import is_transient_error, retry_async
from .fallback import FallbackPredictor
from .prompt import build_prompt
from .providers import PROVIDERS, PredictionProvider, ProviderError


class PredictionOrchestrator:
    """Requests a prediction for a game from every provider concurrently.

    Each provider call has its own timeout and retries. Any failure resolves
    to FallbackPredictor text, so predict_all always returns a complete
    PredictionSet.
    """

    def __init__(
        self,
        credentials: Mapping[Provider, Optional[str]],
        client: Optional[httpx.AsyncClient] = None,
        providers: Optional[Dict[Provider, PredictionProvider]] = None,
        fallback: Optional[FallbackPredictor] = None,
        timeout: float = 10.0,
        max_retries: int = 2,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.credentials = dict(credentials)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()
        self.providers = PROVIDERS if providers is None else providers
        self.fallback = fallback or FallbackPredictor()
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

        configured = [p.value for p in Provider if self.credentials.get(p)]
        logger.info(f"PredictionOrchestrator initialized. Providers with keys: {configured}")

    async def _request(self, impl: PredictionProvider, api_key: str, prompt: str) -> str:
        response = await self.client.post(
            impl.endpoint,
            json=impl.build_payload(prompt),
            headers=impl.build_headers(api_key),
            timeout=self.timeout,
        )
        response.raise_for_status()
        text = impl.extract_text(response.json())
        if not text:
            raise ProviderError(f"Empty completion from {impl.provider.value}")
        return text

    async def predict_one(self, provider: Provider, game: Game) -> str:
        """Returns the provider's prediction text, or fallback text on any failure."""
        api_key = self.credentials.get(provider)
        impl = self.providers.get(provider)
        if impl is None:
            logger.warning(f"No request handler registered for {provider.value}, using fallback prediction.")
            return self.fallback.predict(provider, game)
        if not api_key:
            logger.info(f"No {provider.value} API key configured, using fallback prediction.")
            return self.fallback.predict(provider, game)

        prompt = build_prompt(game)
        try:
            text = await retry_async(
                lambda: self._request(impl, api_key, prompt),
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                should_retry=is_transient_error,
                sleep=self._sleep,
                description=f"{provider.value} prediction for {game.id}",
            )
            logger.debug(f"Received {provider.value} prediction for {game.id}")
            return text
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"{provider.value} API error {e.response.status_code} for {game.id}, using fallback."
            )
        except Exception as e:
            logger.warning(f"{provider.value} prediction failed for {game.id}: {e!r}, using fallback.")
        return self.fallback.predict(provider, game)

    async def predict_all(self, game: Game) -> PredictionSet:
        """Runs every provider concurrently and waits for all of them to settle."""
        logger.info(f"Generating predictions for {game.id}: {game.matchup}")
        providers = list(Provider)
        results = await asyncio.gather(
            *(self.predict_one(p, game) for p in providers), return_exceptions=True
        )

        by_provider: Dict[Provider, str] = {}
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException) or not str(result).strip():
                logger.error(f"{provider.value} prediction task failed for {game.id}: {result!r}")
                result = self.fallback.predict(provider, game)
            by_provider[provider] = result

        return PredictionSet(game_id=game.id, by_provider=by_provider)

    async def close(self):
        if self._owns_client:
            await self.client.aclose()
            logger.info("Closed prediction HTTP client")
