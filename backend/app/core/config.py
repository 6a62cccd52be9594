"""Application configuration loaded from environment variables.

All configuration is via environment variables (or a local .env file).
No hardcoded credentials.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Site Metadata Engine")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    frontend_url: str | None = Field(
        default=None,
        description="Frontend origin allowed by CORS (all origins when unset)",
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, description="Port from PORT env var")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # Site identity used by generated metadata
    site_name: str = Field(default="Bartlett & Partners")
    site_base_url: str = Field(
        default="https://bartlettandpartners.com",
        description="Origin used for canonical URLs and the sitemap",
    )
    max_title_length: int = Field(
        default=60, description="Maximum meta title length including site suffix"
    )
    max_description_length: int = Field(
        default=155, description="Maximum meta description length"
    )

    # External text generation (OpenAI-compatible chat completions)
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the text generation service",
    )
    openai_api_url: str = Field(
        default="https://api.openai.com",
        description="Base URL of the chat completions API",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for metadata generation",
    )
    openai_timeout: float = Field(
        default=30.0, description="Text generation request timeout in seconds"
    )
    openai_max_tokens: int = Field(
        default=500, description="Maximum tokens in the generated reply"
    )
    openai_temperature: float = Field(
        default=0.7, description="Sampling temperature for metadata generation"
    )
    ai_content_excerpt_chars: int = Field(
        default=3000,
        description="Characters of article body sent to the text generation service",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
