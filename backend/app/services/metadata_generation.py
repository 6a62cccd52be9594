"""Deterministic SEO metadata generation.

Composes text analysis output and entity attributes into a complete
MetadataRecord for articles, property listings and area guides:
- Meta title with optional category label and a never-truncated site suffix
- Meta description from leading sentences or a listing/area template
- Keywords from phrase extraction merged with fixed location keywords
- Slug from an intentional existing slug or the title
- Templated image alt text

Features:
- Synchronous and pure given its inputs (no network calls)
- Shared MetadataGenerator interface with the AI-augmented generator
- Helpers for merging generated metadata with manual overrides

ERROR LOGGING REQUIREMENTS:
- Log method entry/exit at DEBUG level with parameters (sanitized)
"""

from typing import Protocol

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.schemas.seo import (
    ContentInput,
    EntityKind,
    ListingAttributes,
    MetadataRecord,
    normalize_keywords,
)
from app.utils.text_analysis import (
    analyze_content,
    format_price,
    slugify,
    truncate_at_word_boundary,
)

logger = get_logger(__name__)

# Constants
MAX_KEYWORDS = 8
MIN_SLUG_HINT_LENGTH = 5
CATEGORY_LABEL_HEADROOM = 15
UNTITLED_SLUG = "untitled"

# Short labels appended to short article titles
CATEGORY_TITLE_LABELS: dict[str, str] = {
    "Market Updates": "Market Update",
    "Property News": "Property News",
    "Property Insights": "Property Insight",
    "Area Guides": "Area Guide",
    "Buying Advice": "Buying Guide",
    "Selling Advice": "Selling Guide",
    "News": "News",
}

# Descriptive phrases used in featured image alt text
CATEGORY_ALT_CONTEXT: dict[str, str] = {
    "Market Updates": "property market analysis",
    "Property News": "property industry news",
    "Property Insights": "property insights",
    "Area Guides": "local area",
    "Buying Advice": "home buying guide",
    "Selling Advice": "home selling guide",
    "News": "news update",
}

ARTICLE_LOCATION_KEYWORDS = ["twickenham", "teddington", "estate agents"]

# Manual values containing these are treated as unset
PLACEHOLDER_MARKERS = ("placeholder", "add meta")


class MetadataGenerationError(Exception):
    """Base exception for metadata generation errors."""

    pass


class MetadataGenerator(Protocol):
    """Anything that turns content into a complete MetadataRecord."""

    async def generate(self, content: ContentInput) -> MetadataRecord: ...


# =============================================================================
# FIELD BUILDERS
# =============================================================================


def build_title_suffix(site_name: str) -> str:
    """Site-name suffix appended to every meta title."""
    return f" | {site_name}"


def generate_meta_title(
    title: str,
    category: str | None = None,
    suffix: str | None = None,
    max_length: int = 60,
) -> str:
    """Generate a meta title that always ends with the site suffix.

    A short title gets its category label appended when it still fits.
    The title part is truncated at a word boundary before the suffix is
    added, so the suffix itself is never cut.

    Args:
        title: Entity title
        category: Editorial category, mapped to a short label
        suffix: Title suffix, defaults to " | {site_name}"
        max_length: Maximum length of the full title

    Returns:
        Meta title no longer than max_length (unless the suffix alone is longer)
    """
    if suffix is None:
        suffix = build_title_suffix(get_settings().site_name)

    max_content_length = max_length - len(suffix)
    if max_content_length <= 0:
        return suffix

    meta_title = title.strip()

    label = CATEGORY_TITLE_LABELS.get(category or "")
    if (
        label
        and meta_title
        and len(meta_title) < max_content_length - CATEGORY_LABEL_HEADROOM
        and label.lower() not in meta_title.lower()
        and len(meta_title) + len(label) + 3 <= max_content_length
    ):
        meta_title = f"{meta_title} - {label}"

    meta_title = truncate_at_word_boundary(meta_title, max_content_length)
    return meta_title + suffix


def merge_keywords(*groups: list[str], limit: int = MAX_KEYWORDS) -> list[str]:
    """Union keyword groups in order, lower-cased and deduplicated."""
    merged = normalize_keywords([keyword.lower() for group in groups for keyword in group])
    return merged[:limit]


def resolve_slug(title: str, slug_hint: str | None = None) -> str:
    """Keep an intentional existing slug, otherwise slugify the title."""
    if slug_hint and len(slug_hint.strip()) > MIN_SLUG_HINT_LENGTH:
        slug = slugify(slug_hint)
        if slug:
            return slug
    return slugify(title) or UNTITLED_SLUG


def generate_alt_text(content: ContentInput, site_name: str) -> str:
    """Generate deterministic alt text for the entity's featured image."""
    if content.kind == EntityKind.PROPERTY_LISTING:
        listing = content.listing or ListingAttributes()
        parts: list[str] = []
        if listing.beds:
            parts.append(f"{listing.beds} bedroom")
        parts.append((listing.property_type or "property").lower())
        if listing.location:
            parts.append(f"in {listing.location}")
        return " ".join(parts) + " - exterior view"

    if content.kind == EntityKind.AREA_GUIDE:
        area = content.title.strip() or "Local"
        return f"{area} area guide - local street view"

    context = CATEGORY_ALT_CONTEXT.get(content.category or "", "property")
    return f"Featured image for {content.title.strip()} - {context} from {site_name}"


# =============================================================================
# ENTITY-SPECIFIC HELPERS
# =============================================================================


def listing_headline(listing: ListingAttributes) -> str:
    """Compose a listing headline such as "3 bed house for sale in Richmond, £1.2m"."""
    headline = ""
    if listing.beds:
        headline += f"{listing.beds} bed "
    headline += listing.property_type or "property"
    if listing.status == "Available":
        headline += " for sale"
    if listing.location:
        headline += f" in {listing.location}"
    price = format_price(listing.price)
    if price:
        headline += f", {price}"
    return headline


def listing_description(listing: ListingAttributes, site_name: str, max_length: int) -> str:
    """Template description for listings without free text."""
    property_type = listing.property_type or "property"
    heading = property_type[:1].upper() + property_type[1:]
    if listing.location:
        heading += f" in {listing.location}"

    features: list[str] = []
    if listing.beds:
        features.append(f"{listing.beds} bed")
    if listing.baths:
        features.append(f"{listing.baths} bath")
    if listing.sqft:
        features.append(f"{listing.sqft:,} sq ft")
    price = format_price(listing.price)
    if price:
        features.append(price)

    sentences = [heading]
    if features:
        sentences.append(", ".join(features))
    sentences.append(f"Contact {site_name} for viewings")
    return truncate_at_word_boundary(". ".join(sentences) + ".", max_length)


def listing_keywords(listing: ListingAttributes) -> list[str]:
    """Fixed keywords derived from listing attributes."""
    keywords: list[str] = []
    if listing.location:
        keywords.append(listing.location)
    keywords.append(listing.property_type or "property")
    if listing.beds:
        keywords.append(f"{listing.beds} bedroom")
    keywords.extend(["property for sale", "estate agents"])
    if listing.location:
        keywords.append(f"{listing.location} property")
    return keywords


def area_guide_description(area: str, site_name: str, max_length: int) -> str:
    """Template description for area guides without body content."""
    description = (
        f"Discover {area}. Local schools, transport links, property prices and "
        f"lifestyle guide from {site_name} estate agents."
    )
    return truncate_at_word_boundary(description, max_length)


def area_guide_keywords(area: str) -> list[str]:
    """Fixed keywords for an area guide."""
    keywords: list[str] = []
    if area:
        keywords.extend(
            [area, f"{area} property", f"living in {area}", f"{area} estate agents"]
        )
    keywords.extend(["area guide", "property market", "estate agents"])
    return keywords


# =============================================================================
# GENERATION
# =============================================================================


def generate_metadata(
    content: ContentInput,
    settings: Settings | None = None,
) -> MetadataRecord:
    """Generate a complete MetadataRecord without any network access.

    Args:
        content: Title, body and entity attributes
        settings: Settings providing site name and length limits

    Returns:
        MetadataRecord satisfying title, description, keyword and slug limits
    """
    settings = settings or get_settings()
    site_name = settings.site_name
    suffix = build_title_suffix(site_name)
    max_title = settings.max_title_length
    max_description = settings.max_description_length

    title = content.title.strip()
    analysis = analyze_content(
        content.body_html,
        title,
        max_description_length=max_description,
        site_name=site_name,
    )
    phrases = analysis.keywords

    if content.kind == EntityKind.PROPERTY_LISTING:
        listing = content.listing or ListingAttributes()
        base_title = title or listing_headline(listing)
        meta_title = generate_meta_title(base_title, suffix=suffix, max_length=max_title)
        if analysis.has_sentences:
            description = analysis.description
        else:
            description = listing_description(listing, site_name, max_description)
        keywords = merge_keywords(listing_keywords(listing), phrases)
        slug = resolve_slug(base_title, content.slug_hint)

    elif content.kind == EntityKind.AREA_GUIDE:
        meta_title = generate_meta_title(
            f"{title} Property Guide" if title else "Area Guide",
            suffix=suffix,
            max_length=max_title,
        )
        if analysis.has_sentences:
            description = analysis.description
        else:
            description = area_guide_description(
                title or "the area", site_name, max_description
            )
        keywords = merge_keywords(area_guide_keywords(title), phrases)
        slug = resolve_slug(title, content.slug_hint)

    else:
        meta_title = generate_meta_title(
            title, content.category, suffix=suffix, max_length=max_title
        )
        description = analysis.description
        keywords = merge_keywords(phrases, ARTICLE_LOCATION_KEYWORDS)
        slug = resolve_slug(title, content.slug_hint)

    record = MetadataRecord(
        title=meta_title,
        description=description,
        keywords=keywords,
        slug=slug,
        alt_text=generate_alt_text(content, site_name),
        og_image=content.image_url or None,
    )

    logger.debug(
        "Generated metadata",
        extra={
            "kind": content.kind.value,
            "title_length": len(record.title),
            "description_length": len(record.description),
            "keyword_count": len(record.keywords),
            "slug": record.slug,
        },
    )
    return record


class DeterministicMetadataGenerator:
    """MetadataGenerator backed by text analysis only.

    Usage:
        generator = DeterministicMetadataGenerator()
        record = await generator.generate(ContentInput(title="...", body_html="..."))
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    def build(self, content: ContentInput) -> MetadataRecord:
        """Synchronous generation for callers outside an event loop."""
        return generate_metadata(content, self._settings)

    async def generate(self, content: ContentInput) -> MetadataRecord:
        return self.build(content)


# =============================================================================
# MANUAL OVERRIDES
# =============================================================================


def needs_auto_seo(value: str | None) -> bool:
    """Check whether a stored field is empty or still a placeholder."""
    if not value or not value.strip():
        return True
    lowered = value.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def merge_metadata(generated: MetadataRecord, manual: MetadataRecord) -> MetadataRecord:
    """Merge generated metadata with manual values; usable manual values win."""
    return MetadataRecord(
        title=generated.title if needs_auto_seo(manual.title) else manual.title,
        description=(
            generated.description
            if needs_auto_seo(manual.description)
            else manual.description
        ),
        keywords=manual.keywords or generated.keywords,
        slug=generated.slug if needs_auto_seo(manual.slug) else manual.slug,
        alt_text=generated.alt_text if needs_auto_seo(manual.alt_text) else manual.alt_text,
        og_image=manual.og_image or generated.og_image,
    )


def normalize_route_path(path: str) -> str:
    """Route path with a leading slash and no trailing slash (except the root)."""
    normalized = path if path.startswith("/") else f"/{path}"
    if len(normalized) > 1:
        normalized = normalized.rstrip("/") or "/"
    return normalized


def generate_canonical_url(path: str, base_url: str | None = None) -> str:
    """Build a canonical URL from a route path."""
    base = (base_url or get_settings().site_base_url).rstrip("/")
    return base + normalize_route_path(path)
