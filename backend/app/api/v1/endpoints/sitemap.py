"""Sitemap endpoint, mounted at the application root.

- GET /sitemap.xml - XML sitemap of static pages and published entities
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from app.core.config import get_settings
from app.core.logging import get_logger
from app.repositories.seo import InMemoryEntityStore, get_entity_store
from app.services.sitemap import generate_sitemap

logger = get_logger(__name__)

router = APIRouter()

SITEMAP_CACHE_CONTROL = "public, max-age=3600, s-maxage=3600"


@router.get(
    "/sitemap.xml",
    summary="XML sitemap",
    response_class=Response,
    responses={200: {"content": {"application/xml": {}}}},
)
async def sitemap(
    request: Request,
    entity_store: InMemoryEntityStore = Depends(get_entity_store),
) -> Response:
    """Return the XML sitemap."""
    xml = await generate_sitemap(entity_store, get_settings().site_base_url)
    logger.debug(
        "Sitemap served",
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return Response(
        content=xml,
        media_type="application/xml",
        headers={"Cache-Control": SITEMAP_CACHE_CONTROL},
    )
