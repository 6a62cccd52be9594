"""Schemas layer - Pydantic models for API validation.

Schemas define the shape of data for API requests and responses.
They handle validation, serialization, and documentation.
"""

from app.schemas.seo import (
    ContentInput,
    EntityKind,
    GenerateMetadataRequest,
    GlobalSEOSettings,
    ListingAttributes,
    MetadataRecord,
    PageContext,
    PublishedEntity,
    ResolvedMetadataResponse,
    ResolveMetadataRequest,
    RouteSEOSetting,
    ScoreLabel,
    ScoreMetadataRequest,
    ScoreReport,
    StaticPageMetadata,
    StructuredDataRequest,
    normalize_keywords,
)

__all__ = [
    # Generation inputs
    "ContentInput",
    "EntityKind",
    "ListingAttributes",
    # Metadata
    "MetadataRecord",
    "normalize_keywords",
    # Scoring
    "ScoreLabel",
    "ScoreReport",
    # Stored layers
    "GlobalSEOSettings",
    "PublishedEntity",
    "RouteSEOSetting",
    "StaticPageMetadata",
    # API
    "GenerateMetadataRequest",
    "PageContext",
    "ResolveMetadataRequest",
    "ResolvedMetadataResponse",
    "ScoreMetadataRequest",
    "StructuredDataRequest",
]
