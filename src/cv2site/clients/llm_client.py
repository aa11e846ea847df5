"""Claude API wrapper with async support and retry logic."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import anthropic

from cv2site.utils.retry import RetryPolicy, retry_async

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

# Client-side mistakes: retrying cannot help
_FATAL_API_ERRORS = (
    anthropic.AuthenticationError,
    anthropic.PermissionDeniedError,
    anthropic.BadRequestError,
    anthropic.NotFoundError,
)


class LLMError(RuntimeError):
    """Base class for model gateway failures."""


class TransientError(LLMError):
    """Network, provider or output failure worth another attempt."""


class FatalError(LLMError):
    """Configuration or request failure that will not succeed on retry."""


@dataclass
class LLMResponse:
    """Response from the LLM including usage metadata."""

    text: str
    input_tokens: int
    output_tokens: int


class LLMClient:
    """Async Claude API client with exponential-backoff retries.

    The client is built explicitly and handed to the pipeline stages, so tests
    can pass a fake SDK client (``client=``) and a no-op ``sleep``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        *,
        model: str = DEFAULT_MODEL,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        client: Any = None,
    ):
        if client is None:
            kwargs: dict = {}
            if api_key is not None:
                kwargs["api_key"] = api_key
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = anthropic.AsyncAnthropic(**kwargs)
        self.client = client
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    async def _call_api(self, system: str, prompt: str, max_tokens: int) -> LLMResponse:
        """Make a single API call, mapping SDK errors onto the gateway taxonomy."""
        logger.debug("LLM call: model=%s max_tokens=%d", self.model, max_tokens)
        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        try:
            message = await self.client.messages.create(**kwargs)
        except _FATAL_API_ERRORS as exc:
            raise FatalError(f"{type(exc).__name__}: {exc}") from exc
        except anthropic.APIError as exc:
            raise TransientError(f"{type(exc).__name__}: {exc}") from exc

        if not message.content:
            raise TransientError("Model returned an empty response")

        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens
        logger.debug("LLM response: %d input, %d output tokens", input_tokens, output_tokens)
        self._token_log.append((self.model, input_tokens, output_tokens))
        return LLMResponse(
            text=message.content[0].text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def invoke(
        self,
        system_context: str,
        user_payload: str,
        max_output_tokens: int,
        *,
        accept: Callable[[str], T] | None = None,
    ) -> str | T:
        """Call the model, retrying transient failures with backoff.

        Args:
            system_context: System instruction.
            user_payload: User message.
            max_output_tokens: Output token cap for each attempt.
            accept: Optional parser applied to each raw response. A
                ``ValueError`` from it counts as a failed attempt.

        Returns:
            The raw response text, or ``accept``'s result when given.

        Raises:
            TransientError: Every attempt failed.
            FatalError: The provider rejected the request outright.
        """

        async def attempt() -> str | T:
            response = await self._call_api(system_context, user_payload, max_output_tokens)
            if accept is None:
                return response.text
            try:
                return accept(response.text)
            except ValueError as exc:
                raise TransientError(f"Unusable model output: {exc}") from exc

        try:
            return await retry_async(
                attempt,
                self.retry_policy,
                retry_on=TransientError,
                sleep=self._sleep,
            )
        except LLMError:
            logger.error("LLM call failed", exc_info=True)
            raise

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary
