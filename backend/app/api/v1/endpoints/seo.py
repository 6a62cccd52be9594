"""SEO metadata API endpoints.

Provides metadata generation, scoring and page resolution:
- POST /api/v1/seo/generate - Generate a MetadataRecord for content
- POST /api/v1/seo/score - Score a MetadataRecord against the rubric
- POST /api/v1/seo/resolve - Resolve page metadata and render the head tags
- POST /api/v1/seo/structured-data - Build JSON-LD structured data for content

Error Logging Requirements:
- Log all incoming requests with method, path, request_id
- Log response status and timing for every request
- Return structured error responses: {"error": str, "code": str, "request_id": str}
- Log 4xx errors at WARNING, 5xx at ERROR
"""

import time
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.integrations.text_generation import TextGenerationClient, get_text_generation
from app.repositories.seo import (
    InMemoryEntityStore,
    InMemorySettingsStore,
    get_entity_store,
    get_settings_store,
)
from app.schemas.seo import (
    GenerateMetadataRequest,
    MetadataRecord,
    ResolvedMetadataResponse,
    ResolveMetadataRequest,
    ScoreMetadataRequest,
    ScoreReport,
    StructuredDataRequest,
)
from app.services.ai_metadata_generation import generate_with_ai
from app.services.head_applier import DocumentMetadataApplier, HeadDocument
from app.services.metadata_generation import generate_canonical_url, generate_metadata
from app.services.metadata_resolution import MetadataLayerLoader, resolve_page_metadata
from app.services.seo_score import score_metadata
from app.services.structured_data import schema_for_content

logger = get_logger(__name__)

router = APIRouter()

INTERNAL_ERROR_RESPONSE = {
    "description": "Internal error",
    "content": {
        "application/json": {
            "example": {
                "error": "Internal server error",
                "code": "INTERNAL_ERROR",
                "request_id": "<request_id>",
            }
        }
    },
}


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


def _internal_error(request_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "request_id": request_id,
        },
    )


@router.post(
    "/generate",
    response_model=MetadataRecord,
    summary="Generate SEO metadata",
    description="Generate title, description, keywords, slug and alt text for content.",
    responses={500: INTERNAL_ERROR_RESPONSE},
)
async def generate_metadata_endpoint(
    request: Request,
    data: GenerateMetadataRequest,
    client: TextGenerationClient = Depends(get_text_generation),
) -> MetadataRecord | JSONResponse:
    """Generate metadata for an article, property listing or area guide.

    With use_ai the text generation service is tried first; any failure
    falls back to deterministic generation, so a complete record is always
    returned.
    """
    request_id = _get_request_id(request)
    start_time = time.monotonic()

    logger.debug(
        "Metadata generation request",
        extra={
            "request_id": request_id,
            "kind": data.content.kind.value,
            "title_length": len(data.content.title),
            "body_length": len(data.content.body_html),
            "use_ai": data.use_ai,
        },
    )

    try:
        record = await generate_with_ai(data.content, client if data.use_ai else None)
    except Exception as e:
        logger.error(
            "Metadata generation failed",
            extra={
                "request_id": request_id,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        return _internal_error(request_id)

    logger.info(
        "Metadata generation complete",
        extra={
            "request_id": request_id,
            "kind": data.content.kind.value,
            "slug": record.slug,
            "keyword_count": len(record.keywords),
            "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
        },
    )
    return record


@router.post(
    "/score",
    response_model=ScoreReport,
    summary="Score SEO metadata",
    description="Score a metadata record against the 100-point SEO rubric.",
)
async def score_metadata_endpoint(
    request: Request,
    data: ScoreMetadataRequest,
) -> ScoreReport:
    """Score a metadata record.

    Omit content entirely for records without a body (static pages); an
    empty string counts as present but short content.
    """
    report = score_metadata(
        data.record,
        content=data.content,
        index_enabled=data.index_enabled,
        sitemap_enabled=data.sitemap_enabled,
    )
    logger.info(
        "Metadata scored",
        extra={
            "request_id": _get_request_id(request),
            "score": report.score,
            "label": report.label.value,
        },
    )
    return report


@router.post(
    "/resolve",
    response_model=ResolvedMetadataResponse,
    summary="Resolve page metadata",
    description="Resolve layered metadata for a route and render the head tags.",
    responses={500: INTERNAL_ERROR_RESPONSE},
)
async def resolve_metadata_endpoint(
    request: Request,
    data: ResolveMetadataRequest,
    settings_store: InMemorySettingsStore = Depends(get_settings_store),
    entity_store: InMemoryEntityStore = Depends(get_entity_store),
) -> ResolvedMetadataResponse | JSONResponse:
    """Resolve the metadata for one page view.

    Precedence: page context > overrides > stored entity metadata >
    legacy route settings > global defaults.
    """
    request_id = _get_request_id(request)

    try:
        resolved = await resolve_page_metadata(
            data.path,
            MetadataLayerLoader(settings_store, entity_store),
            page_context=data.page_context,
            overrides=data.overrides,
            noindex=data.noindex,
            canonical=data.canonical,
            structured_data=data.structured_data,
        )
        document = HeadDocument()
        DocumentMetadataApplier(document).apply(resolved)
    except Exception as e:
        logger.error(
            "Metadata resolution failed",
            extra={
                "request_id": request_id,
                "path": data.path,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        return _internal_error(request_id)

    logger.info(
        "Metadata resolved",
        extra={
            "request_id": request_id,
            "path": data.path,
            "title_source": (
                resolved.sources["title"].name if resolved.sources.get("title") else None
            ),
        },
    )
    return ResolvedMetadataResponse(
        title=resolved.title,
        description=resolved.description,
        keywords=resolved.keywords,
        og_image=resolved.og_image,
        og_type=resolved.og_type,
        canonical_url=resolved.canonical_url,
        noindex=resolved.noindex,
        structured_data=resolved.structured_data,
        head_html=document.render(),
    )


@router.post(
    "/structured-data",
    response_model=dict[str, Any],
    summary="Build structured data",
    description="Build schema.org JSON-LD for an article, property listing or area guide.",
)
async def structured_data_endpoint(
    request: Request,
    data: StructuredDataRequest,
) -> dict[str, Any]:
    """Build the JSON-LD object for a content page.

    The record defaults to deterministic generation; the result can be
    passed as structured_data to /resolve.
    """
    record = data.record or generate_metadata(data.content)
    schema = schema_for_content(
        data.content,
        record,
        url=generate_canonical_url(data.path),
        published_at=data.published_at,
        as_product=data.as_product,
    )
    logger.info(
        "Structured data built",
        extra={
            "request_id": _get_request_id(request),
            "kind": data.content.kind.value,
            "schema_type": schema["@type"],
        },
    )
    return schema
