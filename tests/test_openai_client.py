"""
Tests for the OpenAI client.

The AsyncOpenAI SDK client is replaced with a mock; no network is touched.

Tests cover:
- Structured completions parsed into the response model
- Provider failures wrapped in OpenAIError subclasses
- Rate limits retried, then re-raised
- Empty structured output
- Health check
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import BaseModel

from smart_crm.clients.openai_client import OpenAIClient
from smart_crm.errors import OpenAIError, OpenAIModelError, OpenAIRateLimitError


class Verdict(BaseModel):
    score: int


def _sdk(parsed=None, side_effect=None) -> MagicMock:
    sdk = MagicMock()
    message = SimpleNamespace(parsed=parsed, refusal=None)
    sdk.beta.chat.completions.parse = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)]),
        side_effect=side_effect,
    )
    sdk.models.retrieve = AsyncMock()
    sdk.close = AsyncMock()
    return sdk


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Skip tenacity's sleeps between retries."""
    monkeypatch.setattr(
        OpenAIClient.chat_completion_structured.retry, "sleep", AsyncMock()
    )


class TestStructuredCompletion:
    @pytest.mark.asyncio
    async def test_parsed_model(self):
        sdk = _sdk(parsed=Verdict(score=7))
        client = OpenAIClient(chat_model="gpt-test", client=sdk)

        result = await client.chat_completion_structured([{"role": "user", "content": "hi"}], Verdict)

        assert result == Verdict(score=7)
        kwargs = sdk.beta.chat.completions.parse.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["response_format"] is Verdict

    @pytest.mark.asyncio
    async def test_no_parsed_output(self):
        client = OpenAIClient(client=_sdk(parsed=None))
        with pytest.raises(OpenAIModelError):
            await client.chat_completion_structured([], Verdict)

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        sdk = _sdk(side_effect=RuntimeError("upstream exploded"))
        client = OpenAIClient(client=sdk)

        with pytest.raises(OpenAIError) as exc:
            await client.chat_completion_structured([], Verdict)

        assert exc.value.context["response_model"] == "Verdict"
        assert sdk.beta.chat.completions.parse.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self):
        sdk = _sdk(side_effect=RuntimeError("Rate limit exceeded"))
        client = OpenAIClient(client=sdk)

        with pytest.raises(OpenAIRateLimitError):
            await client.chat_completion_structured([], Verdict)

        assert sdk.beta.chat.completions.parse.await_count == 3


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self):
        client = OpenAIClient(chat_model="gpt-test", client=_sdk())
        assert await client.health_check() == {"healthy": True, "chat_model": "gpt-test"}

    @pytest.mark.asyncio
    async def test_unhealthy(self):
        sdk = _sdk()
        sdk.models.retrieve.side_effect = RuntimeError("bad key")
        result = await OpenAIClient(client=sdk).health_check()
        assert result["healthy"] is False

    def test_requires_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError):
            OpenAIClient()
