from unittest.mock import Mock

import httpx
import pytest
from loguru import logger

from almanac.models.enums import Provider
from almanac.models.prediction import PredictionSet
from almanac.prediction.fallback import FallbackPredictor
from almanac.prediction.orchestrator import PredictionOrchestrator
from almanac.prediction.providers import PROVIDERS

OPENAI_HOST = "api.openai.com"
ANTHROPIC_HOST = "api.anthropic.com"
DEEPSEEK_HOST = "api.deepseek.com"


def _chat_response(text):
    return httpx.Response(200, json={"choices": [{"message": {"content": text}}]})


class ScriptedProviders:
    """Replays a queue of responses (or exceptions) per API host."""

    def __init__(self, script):
        self.script = {host: list(steps) for host, steps in script.items()}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.script[request.url.host].pop(0)
        if isinstance(step, Exception):
            raise step
        return step


@pytest.fixture
def fallback():
    predictor = Mock(spec=FallbackPredictor)
    predictor.predict.side_effect = lambda provider, game: f"fallback for {provider.value}"
    return predictor


def _orchestrator(credentials, handler, fallback, sleep):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PredictionOrchestrator(
        credentials,
        client=client,
        fallback=fallback,
        timeout=1.0,
        max_retries=2,
        base_delay=1.0,
        sleep=sleep,
    )


@pytest.mark.asyncio
async def test_missing_keys_and_failing_provider_still_fill_every_slot(
    make_game, recording_sleep
):
    handler = ScriptedProviders({DEEPSEEK_HOST: [httpx.ConnectError("refused")]})
    orchestrator = _orchestrator(
        {Provider.DEEPSEEK: "sk-deepseek"}, handler, FallbackPredictor(), recording_sleep
    )

    result = await orchestrator.predict_all(make_game())

    assert isinstance(result, PredictionSet)
    assert set(result.by_provider) == set(Provider)
    assert all(text.strip() for text in result.by_provider.values())
    # Connection refused is not transient: no backoff
    assert recording_sleep.delays == []
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_transient_errors_are_retried_until_success(
    make_game, fallback, recording_sleep
):
    handler = ScriptedProviders(
        {
            OPENAI_HOST: [
                httpx.Response(500),
                httpx.Response(503),
                _chat_response("New York Yankees - Boston Red Sox: 5-3\n\nPower bats."),
            ]
        }
    )
    orchestrator = _orchestrator(
        {Provider.OPENAI: "sk-openai"}, handler, fallback, recording_sleep
    )

    text = await orchestrator.predict_one(Provider.OPENAI, make_game())

    assert text == "New York Yankees - Boston Red Sox: 5-3\n\nPower bats."
    assert recording_sleep.delays == [1.0, 2.0]
    fallback.predict.assert_not_called()


@pytest.mark.asyncio
async def test_exhausted_retries_fall_back(make_game, fallback, recording_sleep):
    handler = ScriptedProviders({OPENAI_HOST: [httpx.Response(429) for _ in range(3)]})
    orchestrator = _orchestrator(
        {Provider.OPENAI: "sk-openai"}, handler, fallback, recording_sleep
    )

    text = await orchestrator.predict_one(Provider.OPENAI, make_game())

    assert text == "fallback for openai"
    assert len(handler.requests) == 3


@pytest.mark.asyncio
async def test_auth_failure_is_not_retried(make_game, fallback, recording_sleep):
    handler = ScriptedProviders({OPENAI_HOST: [httpx.Response(401)]})
    orchestrator = _orchestrator(
        {Provider.OPENAI: "sk-openai"}, handler, fallback, recording_sleep
    )

    text = await orchestrator.predict_one(Provider.OPENAI, make_game())

    assert text == "fallback for openai"
    assert len(handler.requests) == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_empty_completion_falls_back(make_game, fallback, recording_sleep):
    handler = ScriptedProviders({OPENAI_HOST: [_chat_response("   ")]})
    orchestrator = _orchestrator(
        {Provider.OPENAI: "sk-openai"}, handler, fallback, recording_sleep
    )

    assert await orchestrator.predict_one(Provider.OPENAI, make_game()) == "fallback for openai"


@pytest.mark.asyncio
async def test_anthropic_request_and_response_envelope(make_game, fallback, recording_sleep):
    body = {"content": [{"type": "text", "text": "Boston Red Sox win 4-2."}]}
    handler = ScriptedProviders({ANTHROPIC_HOST: [httpx.Response(200, json=body)]})
    orchestrator = _orchestrator(
        {Provider.ANTHROPIC: "sk-ant"}, handler, fallback, recording_sleep
    )

    text = await orchestrator.predict_one(Provider.ANTHROPIC, make_game())

    assert text == "Boston Red Sox win 4-2."
    request = handler.requests[0]
    assert request.headers["x-api-key"] == "sk-ant"
    assert request.headers["anthropic-version"] == "2023-06-01"
    assert "authorization" not in request.headers


@pytest.mark.asyncio
async def test_chat_request_carries_bearer_key_and_prompt(make_game, fallback, recording_sleep):
    handler = ScriptedProviders({OPENAI_HOST: [_chat_response("ok")]})
    orchestrator = _orchestrator(
        {Provider.OPENAI: "sk-openai"}, handler, fallback, recording_sleep
    )

    await orchestrator.predict_one(Provider.OPENAI, make_game())

    request = handler.requests[0]
    assert request.headers["authorization"] == "Bearer sk-openai"
    assert b"New York Yankees" in request.content
    assert b"Boston Red Sox" in request.content


@pytest.mark.asyncio
async def test_unexpected_task_failure_is_replaced_by_fallback(make_game, fallback, recording_sleep):
    orchestrator = _orchestrator({}, ScriptedProviders({}), fallback, recording_sleep)
    real_predict_one = orchestrator.predict_one

    async def flaky_predict_one(provider, game):
        if provider == Provider.GROK:
            raise RuntimeError("boom")
        return await real_predict_one(provider, game)

    orchestrator.predict_one = flaky_predict_one

    result = await orchestrator.predict_all(make_game())

    assert result.by_provider[Provider.GROK] == "fallback for grok"
    assert set(result.by_provider) == set(Provider)


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open(fallback, recording_sleep):
    orchestrator = _orchestrator({}, ScriptedProviders({}), fallback, recording_sleep)

    await orchestrator.close()

    assert not orchestrator.client.is_closed


@pytest.mark.asyncio
async def test_unregistered_provider_is_reported_apart_from_missing_key(
    make_game, fallback, recording_sleep
):
    handler = ScriptedProviders({})
    registered = {p: impl for p, impl in PROVIDERS.items() if p != Provider.GROK}
    orchestrator = PredictionOrchestrator(
        {Provider.GROK: "xai-key"},
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        providers=registered,
        fallback=fallback,
        sleep=recording_sleep,
    )
    messages = []
    sink_id = logger.add(messages.append, format="{message}")
    try:
        result = await orchestrator.predict_all(make_game())
    finally:
        logger.remove(sink_id)

    assert result.by_provider[Provider.GROK] == "fallback for grok"
    assert handler.requests == []
    assert any("No request handler registered for grok" in m for m in messages)
    assert not any("No grok API key configured" in m for m in messages)
    assert any("No openai API key configured" in m for m in messages)
