"""Text completion client backed by the Gemini API.

The pipeline only needs "prompt in, text or failure out". This module wraps
the google-genai SDK behind that contract:

- complete(): single entry point, never raises
- Per-attempt timeout (REQUEST_TIMEOUT_SECONDS)
- Exponential backoff retries for transient errors (timeouts, connection
  problems, 429/5xx, empty replies); permanent errors fail immediately
- A missing API key short-circuits to a failure without any network call
"""

import asyncio
from typing import Any, Optional, Protocol

from google import genai
from google.genai import types
from pydantic import BaseModel

from taste_predictor.utils.config import config
from taste_predictor.utils.logger import logger


TRANSIENT_ERROR_KEYWORDS = (
    "timeout",
    "timed out",
    "connection",
    "429",
    "500",
    "502",
    "503",
    "unavailable",
    "resource_exhausted",
)


class CompletionResult(BaseModel):
    """Outcome of one completion request: reply text, or a failure indication."""

    text: Optional[str] = None
    failed: bool = False
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "CompletionResult":
        return cls(failed=True, error=error)


class CompletionClient(Protocol):
    """Anything that can turn a prompt into model text."""

    async def complete(self, prompt: str) -> CompletionResult:
        ...


class EmptyReplyError(Exception):
    """The model answered without any text."""


def is_transient_error(error: Exception) -> bool:
    """Decide whether an error is worth retrying."""
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError, EmptyReplyError)):
        return True
    error_str = str(error).lower()
    return any(keyword in error_str for keyword in TRANSIENT_ERROR_KEYWORDS)


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__


class GeminiCompletionClient:
    """Completion client calling `client.models.generate_content`.

    All settings default to the values in `config`; pass them explicitly to
    override (the CLI and tests do). `client` accepts a pre-built
    `genai.Client` or a test double.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        exponential_backoff: Optional[bool] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or config.GEMINI_MODEL
        self.temperature = config.TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or config.MAX_OUTPUT_TOKENS
        self.timeout_seconds = timeout_seconds or config.REQUEST_TIMEOUT_SECONDS
        self.max_retries = max_retries or config.MAX_RETRIES
        self.retry_delay = config.DELAY_BETWEEN_RETRIES if retry_delay is None else retry_delay
        self.exponential_backoff = (
            config.EXPONENTIAL_BACKOFF if exponential_backoff is None else exponential_backoff
        )
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate(self, prompt: str) -> str:
        """Single attempt, no retries. Raises on any failure."""
        client = self._get_client()

        # The SDK call is synchronous; run it in a worker thread
        response = await asyncio.wait_for(
            asyncio.to_thread(
                client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                    response_mime_type="application/json",
                ),
            ),
            timeout=self.timeout_seconds,
        )

        text = getattr(response, "text", None)
        if not text:
            raise EmptyReplyError("Model returned an empty reply")
        return text

    async def complete(self, prompt: str) -> CompletionResult:
        """Call the model with retries and report the outcome.

        Args:
            prompt: Prompt text sent as the single user turn.

        Returns:
            CompletionResult with the reply text, or failed=True and the last error.
        """
        if not self.configured:
            logger.warning("GEMINI_API_KEY not configured, skipping model call")
            return CompletionResult.failure("GEMINI_API_KEY not configured")

        delay_seconds = self.retry_delay
        last_error: Optional[Exception] = None
        attempt = 0

        while attempt < self.max_retries:
            attempt += 1
            try:
                text = await self._generate(prompt)
                logger.debug(f"Gemini reply received ({len(text)} chars, attempt {attempt}/{self.max_retries})")
                return CompletionResult(text=text)
            except Exception as e:
                last_error = e
                if not is_transient_error(e):
                    logger.warning(f"Permanent Gemini error, not retrying: {_describe(e)}")
                    break
                if attempt < self.max_retries:
                    logger.debug(
                        f"Transient Gemini error, retrying (attempt {attempt + 1}/{self.max_retries}) "
                        f"after {delay_seconds}s: {_describe(e)}"
                    )
                    await asyncio.sleep(delay_seconds)
                    if self.exponential_backoff:
                        delay_seconds *= 2

        logger.warning(f"Gemini completion failed after {attempt} attempt(s): {_describe(last_error)}")
        return CompletionResult.failure(_describe(last_error))
