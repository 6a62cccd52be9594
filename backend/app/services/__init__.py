"""Services layer - Business logic and orchestration.

Services coordinate between repositories, integrations, and other services
to implement business use cases. They contain no direct database or
external API access - that's delegated to repositories and integrations.
"""

from app.services.ai_metadata_generation import (
    AIGenerationError,
    AIGenerationUnavailableError,
    AIMetadataGenerator,
    FallbackMetadataGenerator,
    build_metadata_generator,
    generate_with_ai,
)
from app.services.head_applier import (
    DocumentMetadataApplier,
    HeadDocument,
    Selector,
    TagSink,
    infer_icon_type,
)
from app.services.metadata_generation import (
    DeterministicMetadataGenerator,
    MetadataGenerationError,
    MetadataGenerator,
    generate_canonical_url,
    generate_meta_title,
    generate_metadata,
    merge_metadata,
)
from app.services.metadata_resolution import (
    ROUTE_DEFAULTS,
    LayerSource,
    MetadataLayer,
    MetadataLayerLoader,
    ResolvedMetadata,
    first_defined,
    resolve_metadata,
    resolve_page_metadata,
)
from app.services.seo_score import (
    calculate_seo_score,
    get_seo_recommendations,
    get_seo_score_color,
    get_seo_score_label,
    score_metadata,
)
from app.services.sitemap import SitemapEntry, generate_sitemap, get_sitemap_entries
from app.services.structured_data import (
    article_schema,
    organization_schema,
    place_schema,
    product_schema,
    real_estate_listing_schema,
    schema_for_content,
)

__all__ = [
    # Metadata generation
    "DeterministicMetadataGenerator",
    "MetadataGenerationError",
    "MetadataGenerator",
    "generate_canonical_url",
    "generate_meta_title",
    "generate_metadata",
    "merge_metadata",
    # AI-augmented generation
    "AIGenerationError",
    "AIGenerationUnavailableError",
    "AIMetadataGenerator",
    "FallbackMetadataGenerator",
    "build_metadata_generator",
    "generate_with_ai",
    # Scoring
    "calculate_seo_score",
    "get_seo_recommendations",
    "get_seo_score_color",
    "get_seo_score_label",
    "score_metadata",
    # Resolution
    "ROUTE_DEFAULTS",
    "LayerSource",
    "MetadataLayer",
    "MetadataLayerLoader",
    "ResolvedMetadata",
    "first_defined",
    "resolve_metadata",
    "resolve_page_metadata",
    # Document head
    "DocumentMetadataApplier",
    "HeadDocument",
    "Selector",
    "TagSink",
    "infer_icon_type",
    # Structured data
    "article_schema",
    "organization_schema",
    "place_schema",
    "product_schema",
    "real_estate_listing_schema",
    "schema_for_content",
    # Sitemap
    "SitemapEntry",
    "generate_sitemap",
    "get_sitemap_entries",
]
