"""
Request/response envelopes for the prediction providers.

Each provider knows its endpoint, its auth header convention, how to wrap a
prompt and where the completion text sits in the response. The orchestrator
only talks to this interface, so a new provider is one new subclass plus a
PROVIDERS entry.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from almanac.models.enums import Provider
from .prompt import SYSTEM_PROMPT

MAX_TOKENS = 150
TEMPERATURE = 0.7


class ProviderError(Exception):
    """Raised when a provider response does not have the expected shape."""

    pass


class PredictionProvider(ABC):
    provider: Provider
    endpoint: str
    model: str

    @abstractmethod
    def build_headers(self, api_key: str) -> Dict[str, str]:
        pass

    @abstractmethod
    def build_payload(self, prompt: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def extract_text(self, body: Dict[str, Any]) -> str:
        pass


class ChatCompletionsProvider(PredictionProvider):
    """OpenAI-style /chat/completions envelope with bearer auth."""

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }

    def extract_text(self, body: Dict[str, Any]) -> str:
        try:
            return body["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError(f"Unexpected {self.provider.value} response shape") from e


class OpenAIProvider(ChatCompletionsProvider):
    provider = Provider.OPENAI
    endpoint = "https://api.openai.com/v1/chat/completions"
    model = "gpt-4o"


class GrokProvider(ChatCompletionsProvider):
    provider = Provider.GROK
    endpoint = "https://api.x.ai/v1/chat/completions"
    model = "grok-3-mini"


class DeepSeekProvider(ChatCompletionsProvider):
    provider = Provider.DEEPSEEK
    endpoint = "https://api.deepseek.com/chat/completions"
    model = "deepseek-chat"


class AnthropicProvider(PredictionProvider):
    provider = Provider.ANTHROPIC
    endpoint = "https://api.anthropic.com/v1/messages"
    model = "claude-3-5-sonnet-20241022"
    api_version = "2023-06-01"

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.api_version,
        }

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "system": SYSTEM_PROMPT,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, body: Dict[str, Any]) -> str:
        try:
            blocks = body["content"]
            text = "".join(b.get("text", "") for b in blocks if b.get("type", "text") == "text")
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderError("Unexpected anthropic response shape") from e
        return text.strip()


PROVIDERS: Dict[Provider, PredictionProvider] = {
    p.provider: p
    for p in (OpenAIProvider(), AnthropicProvider(), GrokProvider(), DeepSeekProvider())
}
