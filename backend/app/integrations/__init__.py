"""Integrations layer - External service clients.

Integrations handle communication with external APIs and services.
They abstract the details of external service protocols.
"""

from app.integrations.text_generation import (
    CompletionResult,
    TextGenerationClient,
    close_text_generation,
    get_text_generation,
    init_text_generation,
)

__all__ = [
    "CompletionResult",
    "TextGenerationClient",
    "close_text_generation",
    "get_text_generation",
    "init_text_generation",
]
