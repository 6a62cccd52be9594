"""XML sitemap generation from static routes and published entities.

Static pages and area guides come from fixed lists; published articles and
property listings come from the entity store. Every literal value is XML
escaped.

ERROR LOGGING REQUIREMENTS:
- Log entity fetch failures at WARNING and continue with static entries
"""

from dataclasses import dataclass
from datetime import date
from urllib.parse import urlsplit
from xml.sax.saxutils import escape

from app.core.logging import get_logger
from app.repositories.seo import EntityStore
from app.schemas.seo import PublishedEntity
from app.services.metadata_generation import normalize_route_path

logger = get_logger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
XML_ESCAPES = {'"': "&quot;", "'": "&apos;"}

# (path, changefreq, priority)
STATIC_PAGES: list[tuple[str, str, float]] = [
    ("/", "daily", 1.0),
    ("/properties", "daily", 0.9),
    ("/insights", "weekly", 0.7),
    ("/about", "monthly", 0.7),
    ("/contact", "monthly", 0.8),
]

AREA_GUIDES = ["richmond", "twickenham", "teddington", "kew", "ham"]
AREA_GUIDE_CHANGEFREQ = "monthly"
AREA_GUIDE_PRIORITY = 0.7

ARTICLE_PATH_PREFIX = "/blog/"
ARTICLE_CHANGEFREQ = "monthly"
ARTICLE_PRIORITY = 0.6

PROPERTY_PATH_PREFIX = "/properties/"
PROPERTY_CHANGEFREQ = "weekly"
PROPERTY_PRIORITY = 0.8


@dataclass
class SitemapEntry:
    """One <url> element."""

    loc: str
    lastmod: str
    changefreq: str
    priority: float

    def to_xml(self) -> str:
        return (
            "  <url>\n"
            f"    <loc>{escape(self.loc, XML_ESCAPES)}</loc>\n"
            f"    <lastmod>{escape(self.lastmod, XML_ESCAPES)}</lastmod>\n"
            f"    <changefreq>{escape(self.changefreq, XML_ESCAPES)}</changefreq>\n"
            f"    <priority>{self.priority:.1f}</priority>\n"
            "  </url>\n"
        )


def static_entries(base_url: str, today: date) -> list[SitemapEntry]:
    """Entries for fixed pages and area guides."""
    base = base_url.rstrip("/")
    lastmod = today.isoformat()
    entries = [
        SitemapEntry(base + path, lastmod, changefreq, priority)
        for path, changefreq, priority in STATIC_PAGES
    ]
    entries.extend(
        SitemapEntry(
            f"{base}/area-guides/{area}",
            lastmod,
            AREA_GUIDE_CHANGEFREQ,
            AREA_GUIDE_PRIORITY,
        )
        for area in AREA_GUIDES
    )
    return entries


def entity_entries(
    entities: list[PublishedEntity],
    base_url: str,
    today: date,
) -> list[SitemapEntry]:
    """Entries for published articles then properties; entities without a slug are skipped."""
    base = base_url.rstrip("/")
    articles: list[SitemapEntry] = []
    properties: list[SitemapEntry] = []

    for entity in entities:
        if not entity.slug:
            continue
        if entity.kind == "article":
            lastmod = entity.updated_at.date() if entity.updated_at else today
            articles.append(
                SitemapEntry(
                    base + ARTICLE_PATH_PREFIX + entity.slug,
                    lastmod.isoformat(),
                    ARTICLE_CHANGEFREQ,
                    ARTICLE_PRIORITY,
                )
            )
        elif entity.kind == "property":
            properties.append(
                SitemapEntry(
                    base + PROPERTY_PATH_PREFIX + entity.slug,
                    today.isoformat(),
                    PROPERTY_CHANGEFREQ,
                    PROPERTY_PRIORITY,
                )
            )
        else:
            logger.debug(
                "Skipping entity of unknown kind",
                extra={"kind": entity.kind, "slug": entity.slug},
            )

    return articles + properties


async def get_sitemap_entries(
    entity_store: EntityStore,
    base_url: str,
    today: date | None = None,
) -> list[SitemapEntry]:
    """Collect all sitemap entries; a failed entity fetch leaves only static entries."""
    today = today or date.today()
    entries = static_entries(base_url, today)

    try:
        entities = await entity_store.get_published_entities()
    except Exception as e:
        logger.warning(
            "Failed to fetch published entities for sitemap",
            extra={"error_type": type(e).__name__, "error_message": str(e)},
        )
        return entries

    entries.extend(entity_entries(entities, base_url, today))
    return entries


def render_sitemap(entries: list[SitemapEntry]) -> str:
    """Render entries as a sitemap XML document."""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>\n',
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n',
    ]
    parts.extend(entry.to_xml() for entry in entries)
    parts.append("</urlset>")
    return "".join(parts)


async def generate_sitemap(
    entity_store: EntityStore,
    base_url: str,
    today: date | None = None,
) -> str:
    """Generate the sitemap XML string.

    Args:
        entity_store: Source of published entities
        base_url: Site base URL prefixed to every path
        today: Date used for lastmod where no better date exists

    Returns:
        Sitemap XML document
    """
    entries = await get_sitemap_entries(entity_store, base_url, today)
    logger.info("Generated sitemap", extra={"url_count": len(entries)})
    return render_sitemap(entries)


def is_in_sitemap(path: str, entries: list[SitemapEntry] | None = None) -> bool:
    """Check whether a route path is listed, by default among the static entries."""
    normalized = normalize_route_path(path)
    if entries is None:
        entries = static_entries("", date.today())
    return any((urlsplit(entry.loc).path or "/") == normalized for entry in entries)
