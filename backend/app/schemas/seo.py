"""Pydantic schemas for SEO metadata generation, scoring and resolution.

Schemas:
- ContentInput / ListingAttributes: inputs to metadata generation
- MetadataRecord: canonical SEO metadata tuple stored on an entity
- ScoreReport: rubric score, label, colour and recommendations
- GlobalSEOSettings / RouteSEOSetting / StaticPageMetadata: stored layers
- PublishedEntity: published entity summary consumed by the sitemap
- Request/response models for the /seo API endpoints
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def normalize_keywords(value: Any) -> list[str]:
    """Normalize a keyword list or comma-separated string.

    Entries are stripped, empty entries dropped and duplicates removed
    case-insensitively, keeping the first occurrence's position.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list | tuple):
        items = [str(item) for item in value if item is not None]
    else:
        return []

    seen: set[str] = set()
    keywords: list[str] = []
    for item in items:
        keyword = item.strip()
        if not keyword:
            continue
        key = keyword.lower()
        if key in seen:
            continue
        seen.add(key)
        keywords.append(keyword)
    return keywords


# =============================================================================
# GENERATION INPUTS
# =============================================================================


class EntityKind(str, Enum):
    """Kind of entity metadata is generated for."""

    ARTICLE = "article"
    PROPERTY_LISTING = "property_listing"
    AREA_GUIDE = "area_guide"


class ListingAttributes(BaseModel):
    """Structured attributes of a property listing."""

    beds: int | None = Field(default=None, ge=0, description="Bedroom count")
    baths: int | None = Field(default=None, ge=0, description="Bathroom count")
    sqft: int | None = Field(default=None, ge=0, description="Internal area in sq ft")
    price: float | str | None = Field(
        default=None,
        description="Asking price as a number or display string",
        examples=[1200000, "£1,200,000"],
    )
    property_type: str | None = Field(
        default=None, description="Property type", examples=["house", "flat"]
    )
    location: str | None = Field(
        default=None, description="Area or town", examples=["Richmond"]
    )
    status: str | None = Field(
        default=None, description="Listing status", examples=["Available"]
    )


class ContentInput(BaseModel):
    """Content handed to a metadata generator. Never persisted."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="", description="Entity title or area name")
    body_html: str = Field(
        default="",
        validation_alias=AliasChoices("body_html", "bodyHtml"),
        description="Body content, may contain markup",
    )
    category: str | None = Field(
        default=None,
        description="Editorial category",
        examples=["Market Updates", "Area Guides"],
    )
    slug_hint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("slug_hint", "slugHint"),
        description="Existing slug to keep when it looks intentional",
    )
    kind: EntityKind = Field(default=EntityKind.ARTICLE)
    listing: ListingAttributes | None = Field(default=None)
    image_url: str | None = Field(
        default=None, description="Featured/hero image used as the social image"
    )


# =============================================================================
# METADATA RECORD
# =============================================================================


class MetadataRecord(BaseModel):
    """Canonical SEO metadata for an entity."""

    title: str = Field(default="", description="Meta title including site suffix")
    description: str = Field(default="", description="Meta description")
    keywords: list[str] = Field(
        default_factory=list,
        description="Ordered unique focus keywords",
    )
    slug: str = Field(default="", description="URL slug")
    alt_text: str | None = Field(default=None, description="Featured image alt text")
    og_image: str | None = Field(default=None, description="Social sharing image URL")

    @field_validator("keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> list[str]:
        return normalize_keywords(value)


# =============================================================================
# SCORING
# =============================================================================


class ScoreLabel(str, Enum):
    """Qualitative label for an SEO score."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    NEEDS_WORK = "Needs Work"
    POOR = "Poor"


class ScoreReport(BaseModel):
    """Result of scoring a metadata record against the rubric."""

    score: int = Field(..., ge=0, le=100, description="Overall score")
    label: ScoreLabel
    color: str = Field(..., description="Display colour class for the score")
    recommendations: list[str] = Field(default_factory=list)
    breakdown: dict[str, int] = Field(
        default_factory=dict,
        description="Points awarded per rubric component",
    )


# =============================================================================
# STORED LAYERS
# =============================================================================


class GlobalSEOSettings(BaseModel):
    """Site-wide SEO defaults stored under the `seo_global` key."""

    model_config = ConfigDict(populate_by_name=True)

    site_name: str | None = Field(
        default=None, validation_alias=AliasChoices("site_name", "siteName")
    )
    title_template: str | None = Field(
        default=None,
        validation_alias=AliasChoices("title_template", "titleTemplate"),
        description="Title template with a single %s marker",
        examples=["%s | Bartlett & Partners"],
    )
    default_description: str | None = Field(
        default=None,
        validation_alias=AliasChoices("default_description", "defaultDescription"),
    )
    default_keywords: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("default_keywords", "defaultKeywords"),
    )
    organization_logo: str | None = Field(
        default=None,
        validation_alias=AliasChoices("organization_logo", "organizationLogo"),
    )
    site_favicon: str | None = Field(default=None)
    twitter_handle: str | None = Field(
        default=None, validation_alias=AliasChoices("twitter_handle", "twitterHandle")
    )
    facebook_app_id: str | None = Field(
        default=None, validation_alias=AliasChoices("facebook_app_id", "facebookAppId")
    )


class RouteSEOSetting(BaseModel):
    """Legacy per-route settings stored as a list under `seo_settings`."""

    page_route: str
    title: str | None = None
    description: str | None = None
    keywords: list[str] | None = None
    url_slug: str | None = None
    og_image: str | None = None


class StaticPageMetadata(BaseModel):
    """Metadata stored on a static page entity."""

    slug: str
    meta_title: str | None = None
    meta_description: str | None = None
    keywords: str | None = Field(
        default=None, description="Comma-separated keywords as stored"
    )
    og_image: str | None = None


class PublishedEntity(BaseModel):
    """Summary of a published entity for sitemap generation."""

    kind: str = Field(..., description="Entity kind", examples=["property", "article"])
    slug: str | None = None
    updated_at: datetime | None = None


# =============================================================================
# API MODELS
# =============================================================================


class GenerateMetadataRequest(BaseModel):
    """Request body for metadata generation."""

    content: ContentInput
    use_ai: bool = Field(
        default=False,
        description="Try the text generation service before the deterministic path",
    )


class ScoreMetadataRequest(BaseModel):
    """Request body for scoring a metadata record."""

    record: MetadataRecord
    content: str | None = Field(
        default=None,
        description="Body content; omit entirely for static page records",
    )
    index_enabled: bool = True
    sitemap_enabled: bool = True


class PageContext(BaseModel):
    """Per-render metadata supplied by the view or by route defaults."""

    title: str | None = None
    description: str | None = None
    keywords: list[str] | None = None
    og_image: str | None = None
    type: str | None = Field(
        default=None, description="Open Graph type", examples=["website", "article"]
    )


class ResolveMetadataRequest(BaseModel):
    """Request body for resolving the metadata of a page view."""

    path: str = Field(..., description="Route path being rendered", examples=["/about"])
    page_context: PageContext | None = None
    overrides: PageContext | None = None
    noindex: bool = False
    canonical: str | None = None
    structured_data: dict[str, Any] | None = Field(
        default=None,
        description="JSON-LD object for the page; the home page defaults to the agency",
    )


class StructuredDataRequest(BaseModel):
    """Request body for building JSON-LD structured data for content."""

    content: ContentInput
    path: str = Field(..., description="Route path of the page", examples=["/blog/stamp-duty"])
    record: MetadataRecord | None = Field(
        default=None,
        description="Existing metadata; generated deterministically when omitted",
    )
    published_at: datetime | None = None
    as_product: bool = Field(
        default=False,
        description="Describe listings as a Product instead of a RealEstateListing",
    )


class ResolvedMetadataResponse(BaseModel):
    """Resolved metadata for a page view plus its rendered head fragment."""

    title: str
    description: str
    keywords: list[str]
    og_image: str | None = None
    og_type: str
    canonical_url: str
    noindex: bool
    structured_data: dict[str, Any] | None = None
    head_html: str
