"""Unit tests for deterministic metadata generation.

Tests cover:
- Meta title suffixing, category labels and truncation
- Article, property listing and area guide records
- Record invariants (lengths, keyword count, slug shape)
- Slug hints, degenerate input and manual override merging
- Canonical URL building
"""

import re

import pytest

from app.core.config import Settings
from app.schemas.seo import ContentInput, EntityKind, MetadataRecord
from app.services.metadata_generation import (
    DeterministicMetadataGenerator,
    generate_canonical_url,
    generate_meta_title,
    generate_metadata,
    merge_keywords,
    merge_metadata,
    needs_auto_seo,
    resolve_slug,
)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
SUFFIX = " | Bartlett & Partners"


def assert_record_invariants(record: MetadataRecord) -> None:
    assert len(record.title) <= 60
    assert record.title.endswith(SUFFIX)
    assert record.description
    assert len(record.description) <= 155
    assert 3 <= len(record.keywords) <= 8
    assert len({keyword.lower() for keyword in record.keywords}) == len(record.keywords)
    assert SLUG_PATTERN.match(record.slug)
    assert record.alt_text


# ---------------------------------------------------------------------------
# Meta titles
# ---------------------------------------------------------------------------


class TestGenerateMetaTitle:
    """Tests for generate_meta_title."""

    def test_long_title_truncated_before_suffix(self) -> None:
        """Long titles get an ellipsis before the untouched suffix."""
        title = (
            "A Very Long Article Title That Exceeds The Sixty Character "
            "Search Engine Limit By A Wide Margin"
        )

        result = generate_meta_title(title, suffix=" | Acme")

        assert len(result) <= 60
        assert result.endswith(" | Acme")
        assert result.endswith("... | Acme")

    def test_short_title_gets_category_label(self) -> None:
        """Short titles get the category label when it still fits."""
        result = generate_meta_title("Stamp Duty Changes", "Market Updates", suffix=SUFFIX)

        assert result == "Stamp Duty Changes - Market Update" + SUFFIX
        assert len(result) <= 60

    def test_label_not_repeated(self) -> None:
        """A title already containing the label is left alone."""
        result = generate_meta_title("Area Guide", "Area Guides", suffix=SUFFIX)

        assert result == "Area Guide" + SUFFIX

    def test_unknown_category_ignored(self) -> None:
        """Categories without a label add nothing."""
        assert generate_meta_title("Kew", "Gardening", suffix=SUFFIX) == "Kew" + SUFFIX

    @pytest.mark.parametrize(
        "title",
        [
            "",
            "Kew",
            "Twickenham Riverside Apartments With Private Moorings And Gardens",
            "x" * 200,
        ],
    )
    @pytest.mark.parametrize("suffix", [" | Acme", SUFFIX])
    def test_length_and_suffix_always_hold(self, title: str, suffix: str) -> None:
        """Any title fits in 60 characters and keeps the suffix."""
        result = generate_meta_title(title, "Market Updates", suffix=suffix)

        assert len(result) <= 60
        assert result.endswith(suffix)


# ---------------------------------------------------------------------------
# Records per entity kind
# ---------------------------------------------------------------------------


class TestGenerateMetadata:
    """Tests for generate_metadata across entity kinds."""

    def test_article_record(
        self, article_content: ContentInput, test_settings: Settings
    ) -> None:
        """Articles combine extracted phrases with location keywords."""
        record = generate_metadata(article_content, test_settings)

        assert_record_invariants(record)
        assert record.title == "Stamp Duty Changes in Twickenham" + SUFFIX
        assert record.description.startswith("Stamp duty is rising")
        assert record.keywords[0] == "stamp duty"
        assert "twickenham" in record.keywords
        assert record.slug == "stamp-duty-changes-in-twickenham"
        assert record.og_image == "https://cdn.example.com/stamp-duty.jpg"
        assert "property market analysis" in (record.alt_text or "")

    def test_listing_record_uses_attribute_template(
        self, listing_content: ContentInput, test_settings: Settings
    ) -> None:
        """Listings without free text get a templated description and headline."""
        record = generate_metadata(listing_content, test_settings)

        assert_record_invariants(record)
        assert record.title.startswith("3 bed house for sale in Richmond")
        assert "3 bed" in record.description
        assert "£1.2m" in record.description
        assert record.keywords[:2] == ["richmond", "house"]
        assert record.slug.startswith("3-bed-house-for-sale-in-richmond")
        assert record.alt_text == "3 bedroom house in Richmond - exterior view"

    def test_listing_with_nan_price_omits_price(
        self, listing_content: ContentInput, test_settings: Settings
    ) -> None:
        """A non-finite price is left out of the title and description."""
        listing = listing_content.listing.model_copy(update={"price": float("nan")})
        content = listing_content.model_copy(update={"listing": listing})

        record = generate_metadata(content, test_settings)

        assert_record_invariants(record)
        assert "nan" not in record.title.lower()
        assert "£" not in record.description
        assert record.title.startswith("3 bed house for sale in Richmond")

    def test_area_guide_record(
        self, area_guide_content: ContentInput, test_settings: Settings
    ) -> None:
        """Area guides get a guide title, template description and area keywords."""
        record = generate_metadata(area_guide_content, test_settings)

        assert_record_invariants(record)
        assert record.title == "Teddington Property Guide" + SUFFIX
        assert record.description.startswith("Discover Teddington.")
        assert "living in teddington" in record.keywords
        assert record.slug == "teddington"

    def test_empty_article_is_well_formed(self, test_settings: Settings) -> None:
        """Empty content still yields a complete record."""
        record = generate_metadata(
            ContentInput(title="New Article", body_html=""), test_settings
        )

        assert_record_invariants(record)
        assert "New Article" in record.description
        assert record.keywords == ["twickenham", "teddington", "estate agents"]

    def test_degenerate_title_gets_placeholder_slug(self, test_settings: Settings) -> None:
        """A title without alphanumerics falls back to a fixed slug."""
        record = generate_metadata(ContentInput(title="???", body_html=""), test_settings)

        assert record.slug == "untitled"

    def test_accepts_camel_case_input(self, test_settings: Settings) -> None:
        """bodyHtml and slugHint aliases are accepted."""
        content = ContentInput.model_validate(
            {
                "title": "Spring Market Report",
                "bodyHtml": "<p>Buyers returned to Teddington in numbers this spring.</p>",
                "slugHint": "spring-report-2024",
                "kind": EntityKind.ARTICLE,
            }
        )

        record = generate_metadata(content, test_settings)

        assert record.slug == "spring-report-2024"
        assert record.description.startswith("Buyers returned")

    @pytest.mark.asyncio
    async def test_generator_interface(
        self, article_content: ContentInput, test_settings: Settings
    ) -> None:
        """The async generator returns the same record as the sync builder."""
        generator = DeterministicMetadataGenerator(test_settings)

        record = await generator.generate(article_content)

        assert record == generator.build(article_content)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    """Tests for slug, keyword and override helpers."""

    def test_short_slug_hint_ignored(self) -> None:
        """Hints of five characters or fewer are not considered intentional."""
        assert resolve_slug("Kew Gardens Guide", "kew") == "kew-gardens-guide"

    def test_long_slug_hint_kept(self) -> None:
        """Longer hints are normalized and kept."""
        assert resolve_slug("Kew Gardens Guide", "Kew-Guide-2024") == "kew-guide-2024"

    def test_merge_keywords_dedupes_and_caps(self) -> None:
        """Keyword groups are merged case-insensitively and capped."""
        merged = merge_keywords(
            ["Twickenham", "garden", "flat"],
            ["twickenham", "a", "b", "c", "d", "e", "f"],
        )

        assert merged == ["twickenham", "garden", "flat", "a", "b", "c", "d", "e"]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, True),
            ("   ", True),
            ("Placeholder title", True),
            ("Add meta description here", True),
            ("Riverside homes in Kew", False),
        ],
    )
    def test_needs_auto_seo(self, value: str | None, expected: bool) -> None:
        """Empty and placeholder values need generated metadata."""
        assert needs_auto_seo(value) is expected

    def test_merge_metadata_prefers_usable_manual_values(self) -> None:
        """Manual values win unless empty or placeholders."""
        generated = MetadataRecord(
            title="Generated" + SUFFIX,
            description="Generated description.",
            keywords=["a", "b", "c"],
            slug="generated",
            alt_text="Generated alt",
        )
        manual = MetadataRecord(
            title="Hand written title",
            description="placeholder",
            keywords=[],
            slug="",
            og_image="https://cdn.example.com/manual.jpg",
        )

        merged = merge_metadata(generated, manual)

        assert merged.title == "Hand written title"
        assert merged.description == "Generated description."
        assert merged.keywords == ["a", "b", "c"]
        assert merged.slug == "generated"
        assert merged.alt_text == "Generated alt"
        assert merged.og_image == "https://cdn.example.com/manual.jpg"

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/about/", "https://example.com/about"),
            ("contact", "https://example.com/contact"),
            ("/", "https://example.com/"),
        ],
    )
    def test_generate_canonical_url(self, path: str, expected: str) -> None:
        """Paths are normalized onto the base URL."""
        assert generate_canonical_url(path, "https://example.com/") == expected
