"""Structured logging configuration.

All logs go to stdout for the hosting platform to capture.
Uses JSON format for structured logging in production.

ERROR LOGGING REQUIREMENTS:
- Outbound text generation calls with model, timing and status
- Request/response bodies at DEBUG level (truncated)
- Timeouts and auth failures (401/403) at WARNING level
- Every fallback to deterministic metadata generation, with the reason
- Never log API keys
"""

import logging
import sys
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger import jsonlogger

from app.core.config import get_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined]
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def mask_api_key(api_key: str | None) -> str:
    """Mask an API key, keeping only the last four characters."""
    if not api_key:
        return ""
    if len(api_key) <= 8:
        return "****"
    return f"****{api_key[-4:]}"


def setup_logging() -> None:
    """Configure application logging.

    Outputs to stdout only.
    Uses JSON format in production, text format in development.
    """
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    # Clear existing handlers
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Set log levels for noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


class TextGenerationLogger:
    """Logger for text generation API operations.

    Logs all outbound API calls with model and timing.
    Logs request/response bodies at DEBUG level (truncated).
    Handles timeouts and auth failures (401/403).
    """

    def __init__(self) -> None:
        self.logger = get_logger("text_generation")

    def api_call_start(self, model: str, prompt_length: int) -> None:
        """Log outbound API call start at DEBUG level."""
        self.logger.debug(
            f"Text generation API call: {model}",
            extra={
                "model": model,
                "prompt_length": prompt_length,
            },
        )

    def api_call_success(
        self,
        model: str,
        duration_ms: float,
        input_tokens: int | None = None,
        output_tokens: int | None = None,
    ) -> None:
        """Log successful API call at DEBUG level with token usage."""
        self.logger.debug(
            f"Text generation API call completed: {model}",
            extra={
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": (input_tokens or 0) + (output_tokens or 0),
                "success": True,
            },
        )

    def api_call_error(
        self,
        model: str,
        duration_ms: float,
        status_code: int | None,
        error: str,
        error_type: str,
    ) -> None:
        """Log failed API call at WARNING or ERROR level based on status."""
        # 4xx at WARNING, 5xx and transport errors at ERROR
        level = logging.WARNING if status_code and 400 <= status_code < 500 else logging.ERROR
        self.logger.log(
            level,
            f"Text generation API call failed: {model}",
            extra={
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "status_code": status_code,
                "error": error,
                "error_type": error_type,
                "success": False,
            },
        )

    def timeout(self, model: str, timeout_seconds: float) -> None:
        """Log request timeout at WARNING level."""
        self.logger.warning(
            "Text generation API request timeout",
            extra={
                "model": model,
                "timeout_seconds": timeout_seconds,
            },
        )

    def auth_failure(self, status_code: int, api_key: str | None = None) -> None:
        """Log authentication failure (401/403) at WARNING level."""
        self.logger.warning(
            f"Text generation API authentication failed ({status_code})",
            extra={
                "status_code": status_code,
                "api_key": mask_api_key(api_key),
            },
        )

    def request_body(self, model: str, system_prompt: str, user_prompt: str) -> None:
        """Log request body at DEBUG level (truncate large values)."""
        self.logger.debug(
            "Text generation API request body",
            extra={
                "model": model,
                "system_prompt": self._truncate_text(system_prompt, 200),
                "user_prompt": self._truncate_text(user_prompt, 500),
            },
        )

    def response_body(self, model: str, response_text: str, duration_ms: float) -> None:
        """Log response body at DEBUG level (truncate large values)."""
        self.logger.debug(
            "Text generation API response body",
            extra={
                "model": model,
                "response_text": self._truncate_text(response_text, 500),
                "duration_ms": round(duration_ms, 2),
            },
        )

    def _truncate_text(self, text: str, max_length: int = 500) -> str:
        """Truncate text for logging."""
        if len(text) <= max_length:
            return text
        return text[:max_length] + f"... (truncated, {len(text)} chars)"

    def token_usage(self, model: str, input_tokens: int, output_tokens: int) -> None:
        """Log API quota/credit usage at INFO level."""
        self.logger.info(
            "Text generation API token usage",
            extra={
                "model": model,
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            },
        )

    def graceful_fallback(self, operation: str, reason: str) -> None:
        """Log graceful fallback to deterministic generation."""
        self.logger.warning(
            "Text generation unavailable, using fallback",
            extra={
                "operation": operation,
                "reason": reason,
            },
        )

    def field_fallback(self, operation: str, fields: list[str]) -> None:
        """Log per-field fallback when the reply was partial or invalid."""
        self.logger.info(
            "Text generation reply incomplete, filling fields from fallback",
            extra={
                "operation": operation,
                "fallback_fields": fields,
            },
        )


# Singleton text generation logger
text_generation_logger = TextGenerationLogger()
