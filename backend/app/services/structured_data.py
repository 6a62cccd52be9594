"""JSON-LD structured data (schema.org) for page heads.

Builds plain dicts for:
- The agency itself (RealEstateAgent, used on the home page)
- Blog posts (BlogPosting)
- Property listings (RealEstateListing, or Product for wider support)
- Area guides (Place)

Values that are unknown are left out rather than emitted as null. The
document applier serializes one of these objects into the single
script#schema-json-ld element of the head.
"""

import math
import re
from datetime import UTC, datetime
from typing import Any

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.schemas.seo import ContentInput, EntityKind, MetadataRecord

logger = get_logger(__name__)

SCHEMA_CONTEXT = "https://schema.org"
CURRENCY = "GBP"
IN_STOCK = "https://schema.org/InStock"
NEW_CONDITION = "https://schema.org/NewCondition"

DEFAULT_ORGANIZATION_DESCRIPTION = "Luxury Real Estate Specialists in London"
PRICE_RANGE = "££££"
ORGANIZATION_ADDRESS: dict[str, str] = {
    "@type": "PostalAddress",
    "streetAddress": "102-104 Church Road",
    "addressLocality": "Teddington",
    "postalCode": "TW11 8PY",
    "addressCountry": "UK",
}
AREA_REGION = "London"
AREA_COUNTRY = "UK"


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def logo_url(base_url: str, logo: str | None = None) -> str:
    """Organization logo, defaulting to /logo.png on the site."""
    return logo or f"{base_url.rstrip('/')}/logo.png"


def schema_price(price: float | int | str | None) -> str | None:
    """Plain numeric price string such as "1200000", or None when unknown."""
    if price is None:
        return None
    if isinstance(price, str):
        digits = re.sub(r"[^0-9.]", "", price)
        return digits or None
    amount = float(price)
    if not math.isfinite(amount) or amount <= 0:
        return None
    return f"{amount:.0f}" if amount.is_integer() else str(amount)


def _offer(price: float | int | str | None, **extra: str) -> dict[str, Any] | None:
    amount = schema_price(price)
    if amount is None:
        return None
    return {
        "@type": "Offer",
        **extra,
        "priceCurrency": CURRENCY,
        "price": amount,
        "availability": IN_STOCK,
    }


# =============================================================================
# SCHEMA BUILDERS
# =============================================================================


def organization_schema(
    site_name: str,
    base_url: str,
    logo: str | None = None,
    description: str = DEFAULT_ORGANIZATION_DESCRIPTION,
) -> dict[str, Any]:
    """RealEstateAgent schema for the agency."""
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "RealEstateAgent",
        "name": site_name,
        "image": logo_url(base_url, logo),
        "description": description,
        "address": dict(ORGANIZATION_ADDRESS),
        "priceRange": PRICE_RANGE,
        "url": base_url.rstrip("/"),
    }


def article_schema(
    headline: str,
    date_published: str,
    site_name: str,
    base_url: str,
    date_modified: str | None = None,
    image: str | None = None,
    author: str | None = None,
    description: str | None = None,
    logo: str | None = None,
) -> dict[str, Any]:
    """BlogPosting schema; the modified date defaults to the published date."""
    return _compact(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "BlogPosting",
            "headline": headline,
            "image": [image] if image else [],
            "datePublished": date_published,
            "dateModified": date_modified or date_published,
            "author": [{"@type": "Person", "name": author or site_name}],
            "publisher": {
                "@type": "Organization",
                "name": site_name,
                "logo": {"@type": "ImageObject", "url": logo_url(base_url, logo)},
            },
            "description": description,
        }
    )


def real_estate_listing_schema(
    name: str,
    description: str,
    date_posted: str,
    image: str | None = None,
    price: float | int | str | None = None,
) -> dict[str, Any]:
    """RealEstateListing schema for a property."""
    return _compact(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "RealEstateListing",
            "name": name,
            "image": [image] if image else [],
            "description": description,
            "datePosted": date_posted,
            "offers": _offer(price),
        }
    )


def product_schema(
    name: str,
    description: str,
    url: str,
    brand: str,
    image: str | None = None,
    price: float | int | str | None = None,
) -> dict[str, Any]:
    """Product schema for a property, for consumers without RealEstateListing support."""
    offer = _offer(price, url=url)
    if offer is not None:
        offer["itemCondition"] = NEW_CONDITION
    return _compact(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Product",
            "name": name,
            "image": [image] if image else [],
            "description": description,
            "brand": {"@type": "Brand", "name": brand},
            "offers": offer,
        }
    )


def place_schema(
    name: str,
    description: str,
    image: str | None = None,
) -> dict[str, Any]:
    """Place schema for an area guide."""
    return _compact(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Place",
            "name": name,
            "description": description,
            "image": image,
            "address": {
                "@type": "PostalAddress",
                "addressLocality": name,
                "addressRegion": AREA_REGION,
                "addressCountry": AREA_COUNTRY,
            },
        }
    )


def schema_for_content(
    content: ContentInput,
    record: MetadataRecord,
    url: str,
    published_at: datetime | None = None,
    as_product: bool = False,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Pick and build the schema for a piece of content.

    Args:
        content: Content the record was generated from
        record: Generated or edited metadata for the content
        url: Canonical URL of the page
        published_at: Publication time, defaults to now
        as_product: Describe listings as a Product instead of a RealEstateListing
        settings: Settings providing the site name and base URL

    Returns:
        BlogPosting, RealEstateListing (or Product) or Place schema carrying
        the page url
    """
    settings = settings or get_settings()
    published = (published_at or datetime.now(UTC)).isoformat()
    image = content.image_url or record.og_image

    if content.kind == EntityKind.PROPERTY_LISTING and as_product:
        listing = content.listing
        schema = product_schema(
            name=content.title or record.title,
            description=record.description,
            url=url,
            brand=settings.site_name,
            image=image,
            price=listing.price if listing else None,
        )
    elif content.kind == EntityKind.PROPERTY_LISTING:
        listing = content.listing
        schema = real_estate_listing_schema(
            name=content.title or record.title,
            description=record.description,
            date_posted=published,
            image=image,
            price=listing.price if listing else None,
        )
    elif content.kind == EntityKind.AREA_GUIDE:
        schema = place_schema(
            name=content.title or record.title,
            description=record.description,
            image=image,
        )
    else:
        schema = article_schema(
            headline=content.title or record.title,
            date_published=published,
            site_name=settings.site_name,
            base_url=settings.site_base_url,
            image=image,
            description=record.description,
        )
    schema.setdefault("url", url)

    logger.debug(
        "Built structured data",
        extra={"kind": content.kind.value, "schema_type": schema["@type"]},
    )
    return schema
