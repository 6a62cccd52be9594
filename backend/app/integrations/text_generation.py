"""Text generation API integration client (OpenAI-compatible chat completions).

Features:
- Async HTTP client using httpx (direct API calls)
- Single attempt per call under a caller-imposed timeout (no retries)
- Request/response logging per requirements
- Handles timeouts, auth failures (401/403) and non-success statuses
- Masks API keys in all logs
- Token usage logging for quota tracking

ERROR LOGGING REQUIREMENTS:
- Log all outbound API calls with model and timing
- Log request/response bodies at DEBUG level (truncate large responses)
- Log and handle: timeouts, auth failures (401/403), server errors
- Mask API keys and tokens in all logs

DEPLOYMENT REQUIREMENTS:
- API key via environment variable (OPENAI_API_KEY)
- Never log or expose API keys
"""

import time
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import get_settings
from app.core.logging import get_logger, text_generation_logger

logger = get_logger(__name__)

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


@dataclass
class CompletionResult:
    """Result of a chat completion request."""

    success: bool
    text: str | None = None
    finish_reason: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    error: str | None = None
    error_type: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0


def parse_completion_body(body: Any) -> tuple[str, str | None, dict[str, Any]]:
    """Extract (text, finish_reason, usage) from a chat completion body.

    A body without choices yields empty text.

    Raises:
        ValueError: If the body or its first choice has the wrong shape
    """
    if not isinstance(body, dict):
        raise ValueError(f"expected a JSON object, got {type(body).__name__}")

    choices = body.get("choices") or []
    if not isinstance(choices, list):
        raise ValueError("choices is not a list")
    first_choice = choices[0] if choices else {}
    if not isinstance(first_choice, dict):
        raise ValueError("choice is not an object")

    message = first_choice.get("message") or {}
    if not isinstance(message, dict):
        raise ValueError("message is not an object")
    text = message.get("content") or ""
    if not isinstance(text, str):
        raise ValueError("message content is not a string")

    finish_reason = first_choice.get("finish_reason")
    usage = body.get("usage")
    return text, finish_reason, usage if isinstance(usage, dict) else {}


class TextGenerationClient:
    """Async client for an OpenAI-compatible chat completions API.

    Each call makes exactly one HTTP request. Failures are returned as an
    unsuccessful CompletionResult so callers can degrade gracefully.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        """Initialize text generation client.

        Args:
            api_key: API key. Defaults to settings.
            model: Model to use. Defaults to settings (gpt-4o-mini).
            base_url: API base URL. Defaults to settings.
            timeout: Request timeout in seconds. Defaults to settings.
            max_tokens: Maximum response tokens. Defaults to settings.
            temperature: Sampling temperature. Defaults to settings.
        """
        settings = get_settings()

        self._api_key = api_key or settings.openai_api_key
        self._model = model or settings.openai_model
        self._base_url = base_url or settings.openai_api_url
        self._timeout = timeout or settings.openai_timeout
        self._max_tokens = max_tokens or settings.openai_max_tokens
        self._temperature = (
            temperature if temperature is not None else settings.openai_temperature
        )

        # HTTP client (created lazily)
        self._client: httpx.AsyncClient | None = None
        self._available = bool(self._api_key)

    @property
    def available(self) -> bool:
        """Check if the client has credentials."""
        return self._available

    @property
    def model(self) -> str:
        """Get the model being used."""
        return self._model

    @property
    def timeout(self) -> float:
        """Get the request timeout in seconds."""
        return self._timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers: dict[str, str] = {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info("Text generation client closed")

    async def complete(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResult:
        """Send a single chat completion request.

        Args:
            user_prompt: The user message/prompt
            system_prompt: Optional system instruction
            max_tokens: Maximum response tokens (overrides default)
            temperature: Sampling temperature (overrides default)

        Returns:
            CompletionResult with the first choice's message content
        """
        if not self._available:
            return CompletionResult(
                success=False,
                error="Text generation not configured (missing API key)",
                error_type="NotConfigured",
            )

        start_time = time.monotonic()
        client = await self._get_client()

        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        request_body: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": self._temperature if temperature is None else temperature,
        }

        text_generation_logger.api_call_start(self._model, len(user_prompt))
        if system_prompt:
            text_generation_logger.request_body(self._model, system_prompt, user_prompt)

        try:
            response = await client.post(CHAT_COMPLETIONS_PATH, json=request_body)
        except httpx.TimeoutException:
            duration_ms = (time.monotonic() - start_time) * 1000
            text_generation_logger.timeout(self._model, self._timeout)
            text_generation_logger.api_call_error(
                self._model, duration_ms, None, "Request timed out", "TimeoutError"
            )
            return CompletionResult(
                success=False,
                error=f"Request timed out after {self._timeout}s",
                error_type="TimeoutError",
                duration_ms=duration_ms,
            )
        except httpx.RequestError as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            text_generation_logger.api_call_error(
                self._model, duration_ms, None, str(e), type(e).__name__
            )
            return CompletionResult(
                success=False,
                error=f"Request failed: {e}",
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )

        duration_ms = (time.monotonic() - start_time) * 1000

        if response.status_code in (401, 403):
            text_generation_logger.auth_failure(response.status_code, self._api_key)
            text_generation_logger.api_call_error(
                self._model,
                duration_ms,
                response.status_code,
                "Authentication failed",
                "AuthError",
            )
            return CompletionResult(
                success=False,
                error=f"Authentication failed ({response.status_code})",
                error_type="AuthError",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        if response.status_code >= 400:
            error_type = "ServerError" if response.status_code >= 500 else "ClientError"
            error_msg = f"{error_type} ({response.status_code})"
            text_generation_logger.api_call_error(
                self._model, duration_ms, response.status_code, error_msg, error_type
            )
            return CompletionResult(
                success=False,
                error=error_msg,
                error_type=error_type,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        try:
            text, finish_reason, usage = parse_completion_body(response.json())
        except ValueError as e:
            text_generation_logger.api_call_error(
                self._model, duration_ms, response.status_code, str(e), "DecodeError"
            )
            return CompletionResult(
                success=False,
                error=f"Invalid response body: {e}",
                error_type="DecodeError",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        input_tokens = usage.get("prompt_tokens")
        output_tokens = usage.get("completion_tokens")

        text_generation_logger.api_call_success(
            self._model,
            duration_ms,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        text_generation_logger.response_body(self._model, text, duration_ms)
        if input_tokens and output_tokens:
            text_generation_logger.token_usage(self._model, input_tokens, output_tokens)

        return CompletionResult(
            success=True,
            text=text,
            finish_reason=finish_reason,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )


# Global text generation client instance
text_generation_client: TextGenerationClient | None = None


async def init_text_generation() -> TextGenerationClient:
    """Initialize the global text generation client.

    Returns:
        Initialized TextGenerationClient instance
    """
    global text_generation_client
    if text_generation_client is None:
        text_generation_client = TextGenerationClient()
        if text_generation_client.available:
            logger.info(
                "Text generation client initialized",
                extra={"model": text_generation_client.model},
            )
        else:
            logger.info("Text generation not configured (missing API key)")
    return text_generation_client


async def close_text_generation() -> None:
    """Close the global text generation client."""
    global text_generation_client
    if text_generation_client:
        await text_generation_client.close()
        text_generation_client = None


async def get_text_generation() -> TextGenerationClient:
    """Dependency for getting the text generation client.

    Usage:
        @router.post("/generate")
        async def generate(
            client: TextGenerationClient = Depends(get_text_generation)
        ):
            ...
    """
    global text_generation_client
    if text_generation_client is None:
        await init_text_generation()
    return text_generation_client  # type: ignore[return-value]
