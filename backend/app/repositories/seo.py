"""SEO data access: key-value settings and published entities.

The persistent entity store and the key-value settings store are external
collaborators. This module defines the interfaces the SEO services depend on
plus in-memory implementations used as the default backing for the API and
in tests.

ERROR LOGGING REQUIREMENTS:
- Log method entry/exit at DEBUG level with parameters (sanitized)
- Include keys and slugs in all logs
"""

import copy
from typing import Any, Protocol

from app.core.logging import get_logger
from app.schemas.seo import PublishedEntity, StaticPageMetadata

logger = get_logger(__name__)

# Settings store keys
SEO_GLOBAL_KEY = "seo_global"
SEO_ROUTES_KEY = "seo_settings"


class SettingsStore(Protocol):
    """Key-value store for site-wide settings."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> bool: ...


class EntityStore(Protocol):
    """Read access to stored entities used by resolution and the sitemap."""

    async def get_static_page_by_slug(self, slug: str) -> StaticPageMetadata | None: ...

    async def get_published_entities(self) -> list[PublishedEntity]: ...


class InMemorySettingsStore:
    """SettingsStore backed by a dict.

    Values are deep-copied on the way in and out so callers cannot mutate
    stored state by accident.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        logger.debug(
            "InMemorySettingsStore initialized",
            extra={"keys": sorted(self._values)},
        )

    async def get(self, key: str) -> Any | None:
        value = self._values.get(key)
        logger.debug("Settings get", extra={"key": key, "found": value is not None})
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any) -> bool:
        self._values[key] = copy.deepcopy(value)
        logger.debug("Settings set", extra={"key": key})
        return True


class InMemoryEntityStore:
    """EntityStore holding static pages and published entities in memory."""

    def __init__(
        self,
        static_pages: list[StaticPageMetadata] | None = None,
        published: list[PublishedEntity] | None = None,
    ) -> None:
        self._static_pages: dict[str, StaticPageMetadata] = {
            page.slug: page for page in static_pages or []
        }
        self._published: list[PublishedEntity] = list(published or [])

    async def get_static_page_by_slug(self, slug: str) -> StaticPageMetadata | None:
        page = self._static_pages.get(slug)
        logger.debug(
            "Static page lookup",
            extra={"slug": slug, "found": page is not None},
        )
        return page

    async def get_published_entities(self) -> list[PublishedEntity]:
        return list(self._published)

    def save_static_page(self, page: StaticPageMetadata) -> None:
        """Insert or replace a static page's stored metadata."""
        self._static_pages[page.slug] = page
        logger.debug("Static page saved", extra={"slug": page.slug})

    def add_published(self, entity: PublishedEntity) -> None:
        """Add a published entity."""
        self._published.append(entity)
        logger.debug(
            "Published entity added",
            extra={"kind": entity.kind, "slug": entity.slug},
        )


# Process-wide default stores
_settings_store: InMemorySettingsStore | None = None
_entity_store: InMemoryEntityStore | None = None


def get_settings_store() -> InMemorySettingsStore:
    """Dependency returning the shared settings store."""
    global _settings_store
    if _settings_store is None:
        _settings_store = InMemorySettingsStore()
        logger.info("Settings store initialized")
    return _settings_store


def get_entity_store() -> InMemoryEntityStore:
    """Dependency returning the shared entity store."""
    global _entity_store
    if _entity_store is None:
        _entity_store = InMemoryEntityStore()
        logger.info("Entity store initialized")
    return _entity_store
