"""Pytest configuration and fixtures.

Provides fixtures for:
- Settings override for testing
- Sample content inputs for each entity kind
- In-memory settings and entity stores
- Mocked text generation client
- FastAPI test clients
"""

from collections.abc import AsyncGenerator, Generator
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings, get_settings
from app.integrations.text_generation import (
    CompletionResult,
    TextGenerationClient,
    get_text_generation,
)
from app.repositories.seo import (
    SEO_GLOBAL_KEY,
    SEO_ROUTES_KEY,
    InMemoryEntityStore,
    InMemorySettingsStore,
    get_entity_store,
    get_settings_store,
)
from app.schemas.seo import (
    ContentInput,
    EntityKind,
    ListingAttributes,
    PublishedEntity,
    StaticPageMetadata,
)

# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


def get_test_settings() -> Settings:
    """Get test settings without external credentials."""
    return Settings(
        app_name="Test App",
        app_version="0.0.1",
        debug=True,
        environment="test",
        log_level="DEBUG",
        log_format="text",
        site_name="Bartlett & Partners",
        site_base_url="https://bartlettandpartners.com",
        openai_api_key=None,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Session-scoped test settings."""
    return get_test_settings()


# ---------------------------------------------------------------------------
# Content Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def article_content() -> ContentInput:
    """Market update article with enough text for two sentences."""
    return ContentInput(
        title="Stamp Duty Changes in Twickenham",
        body_html=(
            "<p>Stamp duty is rising for buyers across Twickenham this spring.</p>"
            "<p>The Bank of England raised rates again this quarter, and stamp duty "
            "thresholds are changing for first time buyers in Teddington.</p>"
        ),
        category="Market Updates",
        image_url="https://cdn.example.com/stamp-duty.jpg",
    )


@pytest.fixture
def listing_content() -> ContentInput:
    """Property listing without free-text description."""
    return ContentInput(
        title="",
        body_html="",
        kind=EntityKind.PROPERTY_LISTING,
        listing=ListingAttributes(
            beds=3,
            baths=2,
            sqft=1450,
            price=1_200_000,
            property_type="house",
            location="Richmond",
            status="Available",
        ),
    )


@pytest.fixture
def area_guide_content() -> ContentInput:
    """Area guide without body content."""
    return ContentInput(title="Teddington", body_html="", kind=EntityKind.AREA_GUIDE)


# ---------------------------------------------------------------------------
# Store Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def global_seo_settings() -> dict:
    """Stored global SEO settings in their camelCase stored shape."""
    return {
        "siteName": "Bartlett & Partners",
        "titleTemplate": "%s | Bartlett & Partners",
        "defaultDescription": "Independent estate agents in Twickenham and Teddington.",
        "defaultKeywords": ["estate agents", "twickenham", "teddington"],
        "organizationLogo": "https://cdn.example.com/logo.png",
        "site_favicon": "https://cdn.example.com/favicon.svg",
        "twitterHandle": "bartlettpartners",
        "facebookAppId": "1234567890",
    }


@pytest.fixture
def settings_store(global_seo_settings: dict) -> InMemorySettingsStore:
    """Settings store with global settings and one legacy route entry."""
    return InMemorySettingsStore(
        {
            SEO_GLOBAL_KEY: global_seo_settings,
            SEO_ROUTES_KEY: [
                {
                    "page_route": "/book-a-valuation",
                    "title": "Contact Us",
                    "description": "Get in touch with our Twickenham office.",
                    "keywords": ["contact", "estate agents"],
                }
            ],
        }
    )


@pytest.fixture
def entity_store() -> InMemoryEntityStore:
    """Entity store with one static page and published entities."""
    return InMemoryEntityStore(
        static_pages=[
            StaticPageMetadata(
                slug="/our-story",
                meta_title="About Us",
                meta_description="Meet the team behind Bartlett & Partners.",
                keywords="about us, estate agents, richmond",
            )
        ],
        published=[
            PublishedEntity(
                kind="article",
                slug="stamp-duty-changes",
                updated_at=datetime(2024, 3, 1, 9, 30),
            ),
            PublishedEntity(kind="property", slug="3-bed-house-richmond"),
        ],
    )


# ---------------------------------------------------------------------------
# Text Generation Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_text_client() -> MagicMock:
    """Text generation client double with an AsyncMock complete()."""
    client = MagicMock(spec=TextGenerationClient)
    client.available = True
    client.model = "gpt-4o-mini"
    client.complete = AsyncMock(
        return_value=CompletionResult(success=False, error="not configured")
    )
    return client


# ---------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app():
    """Create FastAPI app for testing."""
    from app.main import create_app

    return create_app()


@pytest.fixture
def client(
    app,
    settings_store: InMemorySettingsStore,
    entity_store: InMemoryEntityStore,
    mock_text_client: MagicMock,
) -> Generator[TestClient, None, None]:
    """Create synchronous test client with in-memory stores."""
    app.dependency_overrides[get_settings] = get_test_settings
    app.dependency_overrides[get_settings_store] = lambda: settings_store
    app.dependency_overrides[get_entity_store] = lambda: entity_store
    app.dependency_overrides[get_text_generation] = lambda: mock_text_client

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(
    app,
    settings_store: InMemorySettingsStore,
    entity_store: InMemoryEntityStore,
    mock_text_client: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for testing async endpoints."""
    app.dependency_overrides[get_settings] = get_test_settings
    app.dependency_overrides[get_settings_store] = lambda: settings_store
    app.dependency_overrides[get_entity_store] = lambda: entity_store
    app.dependency_overrides[get_text_generation] = lambda: mock_text_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
