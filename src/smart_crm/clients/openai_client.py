"""
OpenAI client for AI-enhanced product matching.

Structured chat completions are parsed straight into Pydantic models.
Provider failures surface as OpenAIError subclasses; rate limits are retried
with exponential backoff before giving up.
"""

import os
from typing import TypeVar

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import OpenAIModelError, OpenAIRateLimitError, wrap_openai_error

logger = structlog.get_logger(__name__)

T = TypeVar('T', bound=BaseModel)

DEFAULT_CHAT_MODEL = 'gpt-4.1-mini'


class OpenAIClient:
    """
    Async OpenAI chat client.

    Args:
        api_key: Defaults to OPENAI_API_KEY
        chat_model: Defaults to OPENAI_CHAT_MODEL, then gpt-4.1-mini
        client: Pre-built AsyncOpenAI (tests)
    """

    def __init__(
        self,
        api_key: str | None = None,
        chat_model: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.api_key = api_key or os.getenv('OPENAI_API_KEY')
        if not self.api_key and client is None:
            raise ValueError('OPENAI_API_KEY environment variable is required')

        self.chat_model = chat_model or os.getenv('OPENAI_CHAT_MODEL', DEFAULT_CHAT_MODEL)
        self._client = client or AsyncOpenAI(api_key=self.api_key)

    @retry(
        retry=retry_if_exception_type(OpenAIRateLimitError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def chat_completion_structured(
        self,
        messages: list[dict[str, str]],
        response_model: type[T],
        model: str | None = None,
        temperature: float = 0.3,
    ) -> T:
        """
        Run a chat completion and parse the reply into ``response_model``.

        Raises:
            OpenAIRateLimitError: still rate limited after retries
            OpenAIModelError: the model refused or returned nothing parseable
            OpenAIError: any other provider failure
        """
        model = model or self.chat_model
        try:
            response = await self._client.beta.chat.completions.parse(
                model=model,
                messages=messages,  # type: ignore
                response_format=response_model,
                temperature=temperature,
            )
        except Exception as e:
            error = wrap_openai_error(e, {'model': model, 'response_model': response_model.__name__})
            logger.warning('openai.completion.failed', model=model, error_type=type(error).__name__)
            raise error from e

        message = response.choices[0].message
        if message.parsed is None:
            raise OpenAIModelError(
                'Model returned no structured output',
                context={'model': model, 'refusal': getattr(message, 'refusal', None)},
            )
        return message.parsed

    async def health_check(self) -> dict[str, bool | str]:
        """Check the configured chat model is reachable."""
        try:
            await self._client.models.retrieve(self.chat_model)
        except Exception as e:
            error = wrap_openai_error(e)
            logger.warning('openai.health.failed', error=error.message)
            return {'healthy': False, 'error': error.message}
        return {'healthy': True, 'chat_model': self.chat_model}

    async def close(self) -> None:
        await self._client.close()
