"""API v1 router and endpoint organization."""

from fastapi import APIRouter

from app.api.v1.endpoints import seo, sitemap

router = APIRouter(prefix="/api/v1", tags=["v1"])

# Include domain-specific routers
router.include_router(seo.router, prefix="/seo", tags=["SEO"])

# Served from the site root rather than under /api/v1
sitemap_router = sitemap.router

__all__ = ["router", "sitemap_router"]
