"""AI-augmented SEO metadata generation with deterministic fallback.

Asks the text generation service for a fixed-shape JSON object (title,
description, keywords, slug, altText) and validates every field. Missing or
invalid fields are filled from the deterministic generator; failed calls
fall back to it entirely.

Features:
- Single outbound call per generation (no retries)
- Per-field fallback for partial or malformed replies
- Full fallback on missing credentials, non-success status, timeout or
  network error
- FallbackMetadataGenerator decorator makes "always returns a complete
  record" hold for any primary generator

ERROR LOGGING REQUIREMENTS:
- Log every fallback with its reason (never alters the returned record)
- Log unparsable replies at WARNING with a truncated body
"""

import json
from typing import Any

from app.core.config import Settings, get_settings
from app.core.logging import get_logger, text_generation_logger
from app.integrations.text_generation import TextGenerationClient
from app.schemas.seo import ContentInput, MetadataRecord, normalize_keywords
from app.services.metadata_generation import (
    MAX_KEYWORDS,
    DeterministicMetadataGenerator,
    MetadataGenerationError,
    MetadataGenerator,
)
from app.utils.text_analysis import slugify, strip_html, truncate_at_word_boundary

logger = get_logger(__name__)

MIN_AI_KEYWORDS = 3

METADATA_SYSTEM_PROMPT = "You are an SEO expert. Always respond with valid JSON only."

# Reply keys accepted for each record field, preferred name first
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "metaTitle", "meta_title"),
    "description": ("description", "metaDescription", "meta_description"),
    "keywords": ("keywords",),
    "slug": ("slug",),
    "alt_text": ("altText", "alt_text"),
}


class AIGenerationError(MetadataGenerationError):
    """Raised when the text generation call does not succeed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class AIGenerationUnavailableError(AIGenerationError):
    """Raised when no credentials are configured for text generation."""

    pass


def build_metadata_prompt(
    content: ContentInput,
    site_name: str,
    excerpt_chars: int,
) -> str:
    """Build the user prompt requesting structured metadata JSON."""
    excerpt = strip_html(content.body_html)[:excerpt_chars]
    category = content.category or "Property Insights"

    return f"""You are an SEO expert for a prestigious estate agency called "{site_name}" based in Twickenham and Teddington, London.

Given this {content.kind.value.replace("_", " ")}, generate optimized SEO metadata:

Title: {content.title}
Category: {category}
Content preview: {excerpt}

Generate the following in JSON format:
{{
  "title": "SEO-optimized title under 60 chars, include brand name suffix ' | {site_name}'",
  "description": "Compelling description under 155 chars that encourages clicks, include a call-to-action",
  "keywords": ["6-8 relevant keywords, include location terms like Twickenham, Teddington"],
  "slug": "url-friendly-slug-from-title",
  "altText": "Descriptive alt text for the featured image"
}}

Focus on:
- Local SEO for Twickenham, Teddington, Richmond area
- Property market relevance
- Professional estate agency tone
- Click-worthy descriptions

Return ONLY valid JSON, no explanation."""


def parse_generated_json(text: str | None) -> dict[str, Any] | None:
    """Parse a JSON object from a reply, unwrapping markdown code fences.

    Returns:
        The parsed object, or None when the reply is empty or not a JSON object
    """
    json_text = (text or "").strip()
    if not json_text:
        return None

    if json_text.startswith("```"):
        lines = json_text.split("\n")[1:]  # drop ```json / ``` line
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        json_text = "\n".join(lines)

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.warning(
            f"Failed to parse metadata response: {e}",
            extra={"response": json_text[:500], "error": str(e)},
        )
        return None

    if not isinstance(parsed, dict):
        logger.warning(
            "Metadata response is not a JSON object",
            extra={"response_type": type(parsed).__name__},
        )
        return None
    return parsed


def _pick(parsed: dict[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        value = parsed.get(key)
        if value not in (None, "", []):
            return value
    return None


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = " ".join(value.split())
    return cleaned or None


class AIMetadataGenerator:
    """MetadataGenerator backed by the text generation service.

    Raises AIGenerationError when the call itself fails; wrap it in
    FallbackMetadataGenerator to get a total generator.
    """

    def __init__(
        self,
        client: TextGenerationClient,
        fallback: DeterministicMetadataGenerator | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._fallback = fallback or DeterministicMetadataGenerator(self._settings)

    async def generate(self, content: ContentInput) -> MetadataRecord:
        if not self._client.available:
            raise AIGenerationUnavailableError(
                "Text generation not configured (missing API key)"
            )

        prompt = build_metadata_prompt(
            content,
            self._settings.site_name,
            self._settings.ai_content_excerpt_chars,
        )
        result = await self._client.complete(
            user_prompt=prompt,
            system_prompt=METADATA_SYSTEM_PROMPT,
        )
        if not result.success:
            raise AIGenerationError(
                result.error or "Text generation failed",
                status_code=result.status_code,
                error_type=result.error_type,
            )

        fallback_record = self._fallback.build(content)
        parsed = parse_generated_json(result.text) or {}
        return self._merge_with_fallback(parsed, fallback_record)

    def _merge_with_fallback(
        self,
        parsed: dict[str, Any],
        fallback_record: MetadataRecord,
    ) -> MetadataRecord:
        """Validate each reply field, filling rejected ones from fallback_record."""
        fallback_fields: list[str] = []

        title = _clean_text(_pick(parsed, "title"))
        if title is None or len(title) > self._settings.max_title_length:
            title = fallback_record.title
            fallback_fields.append("title")

        description = _clean_text(_pick(parsed, "description"))
        if description is None:
            description = fallback_record.description
            fallback_fields.append("description")
        else:
            description = truncate_at_word_boundary(
                description, self._settings.max_description_length
            )

        keywords = [
            keyword.lower() for keyword in normalize_keywords(_pick(parsed, "keywords"))
        ]
        keywords = normalize_keywords(keywords)[:MAX_KEYWORDS]
        if len(keywords) < MIN_AI_KEYWORDS:
            keywords = fallback_record.keywords
            fallback_fields.append("keywords")

        raw_slug = _pick(parsed, "slug")
        slug = slugify(raw_slug) if isinstance(raw_slug, str) else ""
        if not slug:
            slug = fallback_record.slug
            fallback_fields.append("slug")

        alt_text = _clean_text(_pick(parsed, "alt_text"))
        if alt_text is None:
            alt_text = fallback_record.alt_text
            fallback_fields.append("alt_text")

        if fallback_fields:
            text_generation_logger.field_fallback("generate_metadata", fallback_fields)

        return MetadataRecord(
            title=title,
            description=description,
            keywords=keywords,
            slug=slug,
            alt_text=alt_text,
            og_image=fallback_record.og_image,
        )


class FallbackMetadataGenerator:
    """Try a primary generator and fall back to another on any failure."""

    def __init__(self, primary: MetadataGenerator, fallback: MetadataGenerator) -> None:
        self._primary = primary
        self._fallback = fallback

    async def generate(self, content: ContentInput) -> MetadataRecord:
        try:
            return await self._primary.generate(content)
        except AIGenerationUnavailableError as e:
            logger.debug(
                "Text generation not configured, using deterministic metadata",
                extra={"reason": str(e)},
            )
        except MetadataGenerationError as e:
            text_generation_logger.graceful_fallback("generate_metadata", str(e))
        except Exception as e:
            logger.error(
                "Unexpected error in primary metadata generator, using fallback",
                extra={"error_type": type(e).__name__, "error_message": str(e)},
                exc_info=True,
            )
        return await self._fallback.generate(content)


def build_metadata_generator(
    client: TextGenerationClient | None = None,
    settings: Settings | None = None,
) -> MetadataGenerator:
    """Build the generator chain: AI first when a client is given, else deterministic."""
    deterministic = DeterministicMetadataGenerator(settings)
    if client is None:
        return deterministic
    return FallbackMetadataGenerator(
        primary=AIMetadataGenerator(client, fallback=deterministic, settings=settings),
        fallback=deterministic,
    )


async def generate_with_ai(
    content: ContentInput,
    client: TextGenerationClient | None = None,
    settings: Settings | None = None,
) -> MetadataRecord:
    """Convenience function: generate metadata, preferring the AI path.

    Args:
        content: Content to describe
        client: Text generation client; deterministic generation when None
        settings: Settings override

    Returns:
        Complete MetadataRecord, whatever the state of the external service
    """
    generator = build_metadata_generator(client, settings)
    return await generator.generate(content)
