"""Tests for the SEO API endpoints and the sitemap route.

Tests cover:
- Health endpoints
- POST /api/v1/seo/generate with and without the text generation service
- POST /api/v1/seo/score
- POST /api/v1/seo/resolve with stored layers, page context and route defaults
- POST /api/v1/seo/structured-data
- GET /sitemap.xml content and caching headers
- Structured validation errors and request ids
- Lifespan startup and shutdown
"""

import json
import signal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient

from app.integrations.text_generation import CompletionResult

ARTICLE_PAYLOAD = {
    "title": "Stamp Duty Changes in Twickenham",
    "bodyHtml": (
        "<p>Stamp duty is rising for buyers across Twickenham this spring.</p>"
        "<p>The Bank of England raised rates again this quarter.</p>"
    ),
    "category": "Market Updates",
}


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, client: TestClient) -> None:
        """Health check returns ok with a request id header."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert response.headers["X-Request-ID"]

    def test_integrations_health(self, client: TestClient) -> None:
        """Integration health reports configuration without secrets."""
        response = client.get("/health/integrations")

        assert response.status_code == 200
        body = response.json()["text_generation"]
        assert set(body) == {"api_key_set", "model"}


# ---------------------------------------------------------------------------
# Generate
# ---------------------------------------------------------------------------


class TestGenerateEndpoint:
    """Tests for POST /api/v1/seo/generate."""

    def test_deterministic_generation(
        self, client: TestClient, mock_text_client: MagicMock
    ) -> None:
        """Without use_ai no text generation call is made."""
        response = client.post(
            "/api/v1/seo/generate", json={"content": ARTICLE_PAYLOAD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"].endswith(" | Bartlett & Partners")
        assert len(body["title"]) <= 60
        assert len(body["description"]) <= 155
        assert 3 <= len(body["keywords"]) <= 8
        assert body["slug"] == "stamp-duty-changes-in-twickenham"
        mock_text_client.complete.assert_not_awaited()

    def test_ai_failure_falls_back(
        self, client: TestClient, mock_text_client: MagicMock
    ) -> None:
        """A failed text generation call still returns the deterministic record."""
        deterministic = client.post(
            "/api/v1/seo/generate", json={"content": ARTICLE_PAYLOAD}
        ).json()

        response = client.post(
            "/api/v1/seo/generate", json={"content": ARTICLE_PAYLOAD, "use_ai": True}
        )

        assert response.status_code == 200
        assert response.json() == deterministic
        mock_text_client.complete.assert_awaited_once()

    def test_ai_reply_used(self, client: TestClient, mock_text_client: MagicMock) -> None:
        """Valid generated fields are returned."""
        mock_text_client.complete.return_value = CompletionResult(
            success=True,
            text=json.dumps(
                {
                    "metaTitle": "Stamp Duty in Twickenham | Bartlett & Partners",
                    "metaDescription": "What the stamp duty changes mean for Twickenham buyers.",
                    "keywords": ["stamp duty", "twickenham", "first time buyers"],
                    "slug": "stamp-duty-twickenham",
                    "altText": "Twickenham high street",
                }
            ),
        )

        response = client.post(
            "/api/v1/seo/generate", json={"content": ARTICLE_PAYLOAD, "use_ai": True}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Stamp Duty in Twickenham | Bartlett & Partners"
        assert body["slug"] == "stamp-duty-twickenham"
        assert body["alt_text"] == "Twickenham high street"

    def test_listing_generation(self, client: TestClient) -> None:
        """Listings are generated from their attributes."""
        response = client.post(
            "/api/v1/seo/generate",
            json={
                "content": {
                    "kind": "property_listing",
                    "listing": {
                        "beds": 2,
                        "property_type": "flat",
                        "location": "Kew",
                        "price": 650000,
                        "status": "Available",
                    },
                }
            },
        )

        assert response.status_code == 200
        assert response.json()["title"].startswith("2 bed flat for sale in Kew")

    def test_validation_error(self, client: TestClient) -> None:
        """Invalid payloads get a structured 422 body."""
        response = client.post(
            "/api/v1/seo/generate", json={"content": {"kind": "castle"}}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert "content.kind" in body["error"]
        assert body["request_id"] == response.headers["X-Request-ID"]


# ---------------------------------------------------------------------------
# Score
# ---------------------------------------------------------------------------


class TestScoreEndpoint:
    """Tests for POST /api/v1/seo/score."""

    def test_score_record(self, client: TestClient) -> None:
        """A complete record without content scores 95."""
        response = client.post(
            "/api/v1/seo/score",
            json={
                "record": {
                    "title": "Riverside Homes in Twickenham | Bartlett & Partners",
                    "description": ("Riverside homes " * 10)[:160],
                    "keywords": "twickenham, riverside, estate agents",
                    "slug": "/blog/riverside-homes",
                    "og_image": "https://cdn.example.com/riverside.jpg",
                }
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 95
        assert body["label"] == "Excellent"
        assert body["color"] == "bg-emerald-500"
        assert body["recommendations"] == []
        assert body["breakdown"]["content"] == 7

    def test_score_empty_record(self, client: TestClient) -> None:
        """An empty record scores Poor with recommendations."""
        response = client.post(
            "/api/v1/seo/score",
            json={"record": {}, "content": "", "index_enabled": False},
        )

        body = response.json()
        assert body["score"] == 5
        assert body["label"] == "Poor"
        assert "Allow search engines to index this page" in body["recommendations"]


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------


class TestResolveEndpoint:
    """Tests for POST /api/v1/seo/resolve."""

    @pytest.mark.asyncio
    async def test_resolve_static_page(self, async_client: AsyncClient) -> None:
        """Stored static page metadata is templated and rendered."""
        response = await async_client.post("/api/v1/seo/resolve", json={"path": "/our-story"})

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "About Us | Bartlett & Partners"
        assert body["description"] == "Meet the team behind Bartlett & Partners."
        assert body["canonical_url"] == "https://bartlettandpartners.com/our-story"
        assert body["og_type"] == "website"
        assert (
            '<link rel="canonical" href="https://bartlettandpartners.com/our-story">'
            in body["head_html"]
        )
        assert '<meta name="twitter:site" content="@bartlettpartners">' in body["head_html"]

    @pytest.mark.asyncio
    async def test_resolve_with_page_context(self, async_client: AsyncClient) -> None:
        """Page context wins over stored layers and noindex is rendered."""
        response = await async_client.post(
            "/api/v1/seo/resolve",
            json={
                "path": "/book-a-valuation",
                "page_context": {"title": "Book a Valuation", "type": "article"},
                "noindex": True,
            },
        )

        body = response.json()
        assert body["title"] == "Book a Valuation | Bartlett & Partners"
        assert body["description"] == "Get in touch with our Twickenham office."
        assert body["og_type"] == "article"
        assert body["noindex"] is True
        assert '<meta name="robots" content="noindex, nofollow">' in body["head_html"]

    @pytest.mark.asyncio
    async def test_resolve_home_page_defaults(self, async_client: AsyncClient) -> None:
        """The home page uses its route defaults and the agency schema."""
        response = await async_client.post("/api/v1/seo/resolve", json={"path": "/"})

        body = response.json()
        assert body["title"] == (
            "Estate Agents Richmond, Twickenham & Teddington | Bartlett & Partners"
        )
        assert body["structured_data"]["@type"] == "RealEstateAgent"
        assert '<script id="schema-json-ld" type="application/ld+json">' in body["head_html"]

    @pytest.mark.asyncio
    async def test_resolve_with_structured_data(self, async_client: AsyncClient) -> None:
        """Supplied structured data is echoed and rendered into the head."""
        schema = {"@context": "https://schema.org", "@type": "Place", "name": "Kew"}

        response = await async_client.post(
            "/api/v1/seo/resolve",
            json={"path": "/area-guides/kew", "structured_data": schema},
        )

        body = response.json()
        assert body["structured_data"] == schema
        assert '"@type":"Place","name":"Kew"' in body["head_html"]

    def test_resolve_requires_path(self, client: TestClient) -> None:
        """A missing path is a validation error."""
        response = client.post("/api/v1/seo/resolve", json={})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Structured data
# ---------------------------------------------------------------------------


class TestStructuredDataEndpoint:
    """Tests for POST /api/v1/seo/structured-data."""

    def test_article_schema(self, client: TestClient) -> None:
        """Articles get a BlogPosting built from generated metadata."""
        response = client.post(
            "/api/v1/seo/structured-data",
            json={
                "content": ARTICLE_PAYLOAD,
                "path": "/blog/stamp-duty-changes",
                "published_at": "2024-03-01T09:30:00+00:00",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["@type"] == "BlogPosting"
        assert body["headline"] == "Stamp Duty Changes in Twickenham"
        assert body["datePublished"] == "2024-03-01T09:30:00+00:00"
        assert body["url"] == "https://bartlettandpartners.com/blog/stamp-duty-changes"

    def test_listing_as_product(self, client: TestClient) -> None:
        """Listings can be requested as Product schema."""
        response = client.post(
            "/api/v1/seo/structured-data",
            json={
                "content": {
                    "kind": "property_listing",
                    "listing": {"beds": 2, "location": "Kew", "price": "£650,000"},
                },
                "path": "/properties/2-bed-flat-kew",
                "as_product": True,
            },
        )

        body = response.json()
        assert body["@type"] == "Product"
        assert body["offers"]["price"] == "650000"

    def test_requires_path(self, client: TestClient) -> None:
        """A missing path is a validation error."""
        response = client.post(
            "/api/v1/seo/structured-data", json={"content": ARTICLE_PAYLOAD}
        )

        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Sitemap
# ---------------------------------------------------------------------------


class TestSitemapEndpoint:
    """Tests for GET /sitemap.xml."""

    def test_sitemap(self, client: TestClient) -> None:
        """The sitemap lists static pages and published entities."""
        response = client.get("/sitemap.xml")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.headers["cache-control"] == "public, max-age=3600, s-maxage=3600"
        assert "<loc>https://bartlettandpartners.com/</loc>" in response.text
        assert (
            "<loc>https://bartlettandpartners.com/blog/stamp-duty-changes</loc>"
            in response.text
        )
        assert "<lastmod>2024-03-01</lastmod>" in response.text
        assert (
            "<loc>https://bartlettandpartners.com/properties/3-bed-house-richmond</loc>"
            in response.text
        )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


class TestLifespan:
    """Tests for application startup and shutdown."""

    def test_startup_and_shutdown_leave_signal_handlers(self, app) -> None:
        """Running the lifespan does not replace the server's signal handlers."""
        before = signal.getsignal(signal.SIGTERM)

        with TestClient(app) as test_client:
            assert test_client.get("/health").status_code == 200
            assert signal.getsignal(signal.SIGTERM) is before

        assert signal.getsignal(signal.SIGTERM) is before
