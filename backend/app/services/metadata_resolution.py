"""Metadata resolution cascade for page renders.

Merges partial metadata from five ranked layers into one complete record:

1. Live page context (set by the current view)
2. Route defaults (caller overrides, else the built-in ROUTE_DEFAULTS table)
3. Per-entity stored metadata (static page record)
4. Legacy per-route settings
5. Global site defaults

Each field is resolved independently by taking the first layer that defines
it; terminal defaults guarantee a non-empty result. The global title
template is applied only to titles supplied above the site defaults.

Features:
- Explicit typed layers with a single first-defined-wins reducer
- Concurrent layer loading; a failed fetch counts as an absent layer
- Canonical URL, robots and site extras resolved alongside the record
- JSON-LD structured data carried through (the agency schema on the home page)

ERROR LOGGING REQUIREMENTS:
- Log layer fetch failures at WARNING with the layer name and path
- Log validation failures with field names and rejected values
"""

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, TypeVar

from pydantic import ValidationError

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.repositories.seo import (
    SEO_GLOBAL_KEY,
    SEO_ROUTES_KEY,
    EntityStore,
    SettingsStore,
)
from app.schemas.seo import (
    GlobalSEOSettings,
    PageContext,
    RouteSEOSetting,
    StaticPageMetadata,
    normalize_keywords,
)
from app.services.metadata_generation import generate_canonical_url, normalize_route_path
from app.services.structured_data import organization_schema

logger = get_logger(__name__)

T = TypeVar("T")

# Terminal defaults
DEFAULT_DESCRIPTION = (
    "Luxury property sales and lettings in Richmond, Surrey, and London."
)
DEFAULT_KEYWORDS = ["luxury", "real estate", "richmond"]
DEFAULT_OG_TYPE = "website"

TITLE_TEMPLATE_MARKER = "%s"

RESOLVED_FIELDS = ("title", "description", "keywords", "og_image", "og_type")

HOME_ROUTE = "/"

# Built-in defaults per route. Titles are bare; the global template adds the
# site suffix.
ROUTE_DEFAULTS: dict[str, PageContext] = {
    HOME_ROUTE: PageContext(
        title="Estate Agents Richmond, Twickenham & Teddington",
        description=(
            "Independent estate agents in Richmond, Twickenham and Teddington. "
            "Director-led service with 30+ years experience. Book your free "
            "valuation today."
        ),
        keywords=[
            "estate agents Richmond",
            "estate agents Twickenham",
            "estate agents Teddington",
            "property for sale",
            "luxury real estate",
        ],
        type="website",
    ),
    "/properties": PageContext(
        title="Property for Sale Richmond, Twickenham & Teddington",
        description=(
            "Browse homes for sale in Richmond, Twickenham, Teddington, Kew and "
            "Ham. Family houses, period properties and riverside homes. View our "
            "current listings."
        ),
        keywords=[
            "property for sale",
            "houses for sale Twickenham",
            "homes for sale Richmond",
            "Teddington property",
            "luxury properties",
        ],
        type="website",
    ),
    "/about": PageContext(
        title="About Us | Estate Agents Richmond",
        description=(
            "Meet Darren Bartlett and the team. 30+ years selling homes in "
            "Richmond, Twickenham and Teddington. Director-led service, honest "
            "advice, exceptional results."
        ),
        keywords=[
            "about estate agents",
            "Richmond estate agents",
            "boutique agency",
            "director-led service",
        ],
        type="website",
    ),
    "/insights": PageContext(
        title="Property Insights & News",
        description=(
            "Expert insights, market trends and property news from our team of "
            "real estate professionals."
        ),
        keywords=["property insights", "real estate news", "market trends", "property blog"],
        type="website",
    ),
    "/contact": PageContext(
        title="Contact Us | Estate Agents Teddington",
        description=(
            "Get in touch with Bartlett & Partners. Based in Teddington, serving "
            "Richmond, Twickenham and surrounding areas. Call 020 8614 1441 or "
            "book a free valuation."
        ),
        keywords=["contact estate agent", "Teddington", "Richmond", "property enquiry"],
        type="website",
    ),
}


class LayerSource(IntEnum):
    """Metadata layers in precedence order (lower value wins)."""

    PAGE_CONTEXT = 1
    OVERRIDES = 2
    ENTITY = 3
    ROUTE_SETTINGS = 4
    SITE_DEFAULTS = 5


@dataclass
class MetadataLayer:
    """Partial metadata contributed by one source."""

    source: LayerSource
    title: str | None = None
    description: str | None = None
    keywords: list[str] | None = None
    og_image: str | None = None
    og_type: str | None = None


@dataclass
class ResolvedMetadata:
    """Final metadata for one page view."""

    title: str
    description: str
    keywords: list[str]
    og_type: str
    og_image: str | None = None
    canonical_url: str = ""
    noindex: bool = False
    site_name: str | None = None
    twitter_handle: str | None = None
    facebook_app_id: str | None = None
    favicon: str | None = None
    structured_data: dict[str, Any] | None = None
    sources: dict[str, LayerSource | None] = field(default_factory=dict)


@dataclass
class LoadedLayers:
    """Stored layers fetched for a path."""

    entity: MetadataLayer | None = None
    route: MetadataLayer | None = None
    site_defaults: MetadataLayer | None = None
    global_settings: GlobalSEOSettings | None = None


# =============================================================================
# REDUCER
# =============================================================================


def is_defined(value: Any) -> bool:
    """None, blank strings and empty lists count as undefined."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list | tuple):
        return len(value) > 0
    return True


def first_defined(values: Iterable[T | None]) -> T | None:
    """Return the first defined value, or None."""
    for value in values:
        if is_defined(value):
            return value
    return None


def field_source(layers: Sequence[MetadataLayer], name: str) -> LayerSource | None:
    """Source of the layer that supplies a field, or None for the terminal default."""
    return first_defined(
        layer.source if is_defined(getattr(layer, name)) else None for layer in layers
    )


def apply_title_template(title: str, template: str) -> str:
    """Substitute a title into a template with a single %s marker.

    Templates without the marker leave the title unchanged.
    """
    if TITLE_TEMPLATE_MARKER not in template:
        return title
    return template.replace(TITLE_TEMPLATE_MARKER, title, 1)


# =============================================================================
# LAYER BUILDERS
# =============================================================================


def layer_from_page_context(
    source: LayerSource,
    context: PageContext | None,
) -> MetadataLayer | None:
    """Layer from per-render values (page context or overrides)."""
    if context is None:
        return None
    return MetadataLayer(
        source=source,
        title=context.title,
        description=context.description,
        keywords=normalize_keywords(context.keywords) or None,
        og_image=context.og_image,
        og_type=context.type,
    )


def layer_from_static_page(page: StaticPageMetadata | None) -> MetadataLayer | None:
    """Layer from an entity's stored metadata; keywords are stored comma-separated."""
    if page is None:
        return None
    return MetadataLayer(
        source=LayerSource.ENTITY,
        title=page.meta_title,
        description=page.meta_description,
        keywords=normalize_keywords(page.keywords) or None,
        og_image=page.og_image,
    )


def layer_from_route_setting(setting: RouteSEOSetting | None) -> MetadataLayer | None:
    """Layer from a legacy per-route settings entry."""
    if setting is None:
        return None
    return MetadataLayer(
        source=LayerSource.ROUTE_SETTINGS,
        title=setting.title,
        description=setting.description,
        keywords=normalize_keywords(setting.keywords) or None,
        og_image=setting.og_image,
    )


def layer_from_global_settings(
    global_settings: GlobalSEOSettings | None,
) -> MetadataLayer | None:
    """Layer from global site defaults; the organization logo is the default image."""
    if global_settings is None:
        return None
    return MetadataLayer(
        source=LayerSource.SITE_DEFAULTS,
        title=global_settings.site_name,
        description=global_settings.default_description,
        keywords=normalize_keywords(global_settings.default_keywords) or None,
        og_image=global_settings.organization_logo,
    )


def route_defaults_layer(
    path: str,
    route_defaults: Mapping[str, PageContext] = ROUTE_DEFAULTS,
) -> MetadataLayer | None:
    """Overrides layer from the built-in defaults for a route, if any."""
    return layer_from_page_context(
        LayerSource.OVERRIDES, route_defaults.get(normalize_route_path(path))
    )


# =============================================================================
# RESOLUTION
# =============================================================================


def resolve_metadata(
    layers: Iterable[MetadataLayer | None],
    global_settings: GlobalSEOSettings | None = None,
    canonical_url: str = "",
    noindex: bool = False,
    settings: Settings | None = None,
    structured_data: dict[str, Any] | None = None,
) -> ResolvedMetadata:
    """Resolve layers into final page metadata.

    Args:
        layers: Layers in any order; None entries are absent layers
        global_settings: Global settings providing the title template and extras
        canonical_url: Canonical URL for the page
        noindex: Whether the page must not be indexed
        settings: Settings providing the terminal site name
        structured_data: JSON-LD object to carry through to the applier

    Returns:
        ResolvedMetadata with every required field non-empty
    """
    settings = settings or get_settings()
    ordered = sorted(
        (layer for layer in layers if layer is not None),
        key=lambda layer: layer.source,
    )

    def pick(name: str) -> Any:
        return first_defined(getattr(layer, name) for layer in ordered)

    sources = {name: field_source(ordered, name) for name in RESOLVED_FIELDS}

    title = (pick("title") or settings.site_name).strip()
    template = global_settings.title_template if global_settings else None
    title_source = sources["title"]
    if template and title_source is not None and title_source < LayerSource.SITE_DEFAULTS:
        title = apply_title_template(title, template)

    keywords = pick("keywords")
    resolved = ResolvedMetadata(
        title=title,
        description=(pick("description") or DEFAULT_DESCRIPTION).strip(),
        keywords=list(keywords) if keywords else list(DEFAULT_KEYWORDS),
        og_type=pick("og_type") or DEFAULT_OG_TYPE,
        og_image=pick("og_image"),
        canonical_url=canonical_url,
        noindex=noindex,
        site_name=global_settings.site_name if global_settings else None,
        twitter_handle=global_settings.twitter_handle if global_settings else None,
        facebook_app_id=global_settings.facebook_app_id if global_settings else None,
        favicon=global_settings.site_favicon if global_settings else None,
        structured_data=structured_data,
        sources=sources,
    )

    logger.debug(
        "Resolved page metadata",
        extra={
            "title_source": title_source.name if title_source else None,
            "layer_count": len(ordered),
            "noindex": noindex,
        },
    )
    return resolved


class MetadataLayerLoader:
    """Loads the stored layers (entity, route settings, site defaults) for a path.

    The three fetches run concurrently; a failed or malformed fetch is logged
    and treated as an absent layer.
    """

    def __init__(self, settings_store: SettingsStore, entity_store: EntityStore) -> None:
        self._settings_store = settings_store
        self._entity_store = entity_store

    async def load(self, path: str) -> LoadedLayers:
        results = await asyncio.gather(
            self._settings_store.get(SEO_GLOBAL_KEY),
            self._settings_store.get(SEO_ROUTES_KEY),
            self._entity_store.get_static_page_by_slug(path),
            return_exceptions=True,
        )
        raw_global, raw_routes, raw_page = (
            self._settled(name, path, result)
            for name, result in zip(("global", "routes", "entity"), results, strict=True)
        )

        global_settings = self._parse_global(raw_global, path)
        return LoadedLayers(
            entity=layer_from_static_page(self._parse_static_page(raw_page, path)),
            route=layer_from_route_setting(self._find_route(raw_routes, path)),
            site_defaults=layer_from_global_settings(global_settings),
            global_settings=global_settings,
        )

    @staticmethod
    def _settled(name: str, path: str, result: Any) -> Any:
        if isinstance(result, Exception):
            logger.warning(
                "Metadata layer fetch failed, treating layer as absent",
                extra={
                    "layer": name,
                    "path": path,
                    "error_type": type(result).__name__,
                    "error_message": str(result),
                },
            )
            return None
        if isinstance(result, BaseException):
            raise result
        return result

    @staticmethod
    def _parse_global(raw: Any, path: str) -> GlobalSEOSettings | None:
        if raw is None or isinstance(raw, GlobalSEOSettings):
            return raw
        try:
            return GlobalSEOSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "Invalid global SEO settings, treating layer as absent",
                extra={"path": path, "errors": e.errors(include_url=False)},
            )
            return None

    @staticmethod
    def _parse_static_page(raw: Any, path: str) -> StaticPageMetadata | None:
        if raw is None or isinstance(raw, StaticPageMetadata):
            return raw
        try:
            return StaticPageMetadata.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "Invalid static page metadata, treating layer as absent",
                extra={"path": path, "errors": e.errors(include_url=False)},
            )
            return None

    @staticmethod
    def _find_route(raw: Any, path: str) -> RouteSEOSetting | None:
        if not isinstance(raw, list):
            return None
        for entry in raw:
            try:
                setting = (
                    entry
                    if isinstance(entry, RouteSEOSetting)
                    else RouteSEOSetting.model_validate(entry)
                )
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid route SEO setting",
                    extra={"path": path, "errors": e.errors(include_url=False)},
                )
                continue
            if setting.page_route == path:
                return setting
        return None


async def resolve_page_metadata(
    path: str,
    loader: MetadataLayerLoader,
    page_context: PageContext | None = None,
    overrides: PageContext | None = None,
    noindex: bool = False,
    canonical: str | None = None,
    settings: Settings | None = None,
    structured_data: dict[str, Any] | None = None,
    route_defaults: Mapping[str, PageContext] = ROUTE_DEFAULTS,
) -> ResolvedMetadata:
    """Resolve the full metadata for one page view.

    Args:
        path: Route path being rendered
        loader: Loader for the stored layers
        page_context: Live values set by the current view (layer 1)
        overrides: Route default values (layer 2), replacing the built-in
            route defaults for this path
        noindex: Whether the page must not be indexed
        canonical: Explicit canonical URL, otherwise built from the path
        settings: Settings providing the site base URL and name
        structured_data: JSON-LD object for the page; the home page gets the
            agency schema when none is given
        route_defaults: Built-in defaults keyed by normalized route path

    Returns:
        ResolvedMetadata ready for the document applier
    """
    settings = settings or get_settings()
    loaded = await loader.load(path)

    override_layer = (
        layer_from_page_context(LayerSource.OVERRIDES, overrides)
        if overrides is not None
        else route_defaults_layer(path, route_defaults)
    )
    layers = [
        layer_from_page_context(LayerSource.PAGE_CONTEXT, page_context),
        override_layer,
        loaded.entity,
        loaded.route,
        loaded.site_defaults,
    ]

    if structured_data is None and normalize_route_path(path) == HOME_ROUTE:
        global_settings = loaded.global_settings
        structured_data = organization_schema(
            site_name=(global_settings.site_name if global_settings else None)
            or settings.site_name,
            base_url=settings.site_base_url,
            logo=global_settings.organization_logo if global_settings else None,
        )

    return resolve_metadata(
        layers,
        loaded.global_settings,
        canonical_url=canonical or generate_canonical_url(path, settings.site_base_url),
        noindex=noindex,
        settings=settings,
        structured_data=structured_data,
    )
