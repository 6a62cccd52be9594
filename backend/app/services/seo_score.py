"""SEO quality scoring for metadata records.

Scores a MetadataRecord against a fixed 100-point rubric:
- Meta title presence and length (20)
- Meta description presence and length (20)
- Focus keyword count (10)
- Content length proxy (10, or a flat 7 when no content is supplied)
- Heading structure proxy (8 when a title is present)
- Clean URL slug (10)
- Social sharing image (10)
- Indexing and sitemap inclusion (5 each)

The content and heading components are proxies: they do not inspect real
document structure.

Features:
- Pure and synchronous, recomputed on every call (no caching)
- Per-component breakdown alongside the total
- Recommendations re-check each rubric condition independently of the score
"""

import re

from app.core.logging import get_logger
from app.schemas.seo import MetadataRecord, ScoreLabel, ScoreReport

logger = get_logger(__name__)

MAX_SCORE = 100

# Meta title (chars)
TITLE_PRESENT_POINTS = 10
TITLE_OPTIMAL_RANGE = (50, 70)
TITLE_ACCEPTABLE_RANGE = (40, 80)

# Meta description (chars)
DESCRIPTION_PRESENT_POINTS = 10
DESCRIPTION_OPTIMAL_RANGE = (150, 180)
DESCRIPTION_ACCEPTABLE_RANGE = (120, 200)

OPTIMAL_LENGTH_POINTS = 10
ACCEPTABLE_LENGTH_POINTS = 5

# Keywords
MIN_KEYWORDS = 3
KEYWORDS_FULL_POINTS = 10
KEYWORDS_PARTIAL_POINTS = 5

# Content length (chars)
SUBSTANTIAL_CONTENT_LENGTH = 300
SOME_CONTENT_LENGTH = 100
CONTENT_FULL_POINTS = 10
CONTENT_PARTIAL_POINTS = 5
CONTENT_UNKNOWN_POINTS = 7

HEADING_PROXY_POINTS = 8

CLEAN_SLUG_POINTS = 10
OTHER_SLUG_POINTS = 5
CLEAN_SLUG_PATTERN = re.compile(r"^/[a-z0-9\-/]*$")

OG_IMAGE_POINTS = 10
INDEX_ENABLED_POINTS = 5
SITEMAP_ENABLED_POINTS = 5

# Label and colour thresholds
EXCELLENT_THRESHOLD = 90
GOOD_THRESHOLD = 70
NEEDS_WORK_THRESHOLD = 50


def _in_range(length: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= length <= bounds[1]


def _length_points(text: str, optimal: tuple[int, int], acceptable: tuple[int, int]) -> int:
    if _in_range(len(text), optimal):
        return OPTIMAL_LENGTH_POINTS
    if _in_range(len(text), acceptable):
        return ACCEPTABLE_LENGTH_POINTS
    return 0


def is_clean_slug(slug: str) -> bool:
    """Check a slug as given against the clean URL pattern.

    Only route paths such as "/blog/stamp-duty" qualify; a bare slug has no
    leading slash and earns the lower slug points.
    """
    return bool(CLEAN_SLUG_PATTERN.match(slug))


def score_breakdown(
    record: MetadataRecord,
    content: str | None = None,
    index_enabled: bool = True,
    sitemap_enabled: bool = True,
) -> dict[str, int]:
    """Points earned per rubric component."""
    breakdown = {
        "title": 0,
        "description": 0,
        "keywords": 0,
        "content": 0,
        "heading": 0,
        "slug": 0,
        "og_image": 0,
        "indexing": 0,
        "sitemap": 0,
    }

    if record.title:
        breakdown["title"] = TITLE_PRESENT_POINTS + _length_points(
            record.title, TITLE_OPTIMAL_RANGE, TITLE_ACCEPTABLE_RANGE
        )
        breakdown["heading"] = HEADING_PROXY_POINTS

    if record.description:
        breakdown["description"] = DESCRIPTION_PRESENT_POINTS + _length_points(
            record.description, DESCRIPTION_OPTIMAL_RANGE, DESCRIPTION_ACCEPTABLE_RANGE
        )

    keyword_count = len(record.keywords)
    if keyword_count >= MIN_KEYWORDS:
        breakdown["keywords"] = KEYWORDS_FULL_POINTS
    elif keyword_count >= 1:
        breakdown["keywords"] = KEYWORDS_PARTIAL_POINTS

    if content is None:
        breakdown["content"] = CONTENT_UNKNOWN_POINTS
    elif len(content) >= SUBSTANTIAL_CONTENT_LENGTH:
        breakdown["content"] = CONTENT_FULL_POINTS
    elif len(content) >= SOME_CONTENT_LENGTH:
        breakdown["content"] = CONTENT_PARTIAL_POINTS

    if record.slug:
        breakdown["slug"] = (
            CLEAN_SLUG_POINTS if is_clean_slug(record.slug) else OTHER_SLUG_POINTS
        )

    if record.og_image:
        breakdown["og_image"] = OG_IMAGE_POINTS
    if index_enabled:
        breakdown["indexing"] = INDEX_ENABLED_POINTS
    if sitemap_enabled:
        breakdown["sitemap"] = SITEMAP_ENABLED_POINTS

    return breakdown


def calculate_seo_score(
    record: MetadataRecord,
    content: str | None = None,
    index_enabled: bool = True,
    sitemap_enabled: bool = True,
) -> int:
    """Calculate the 0-100 SEO score.

    Args:
        record: Metadata to evaluate (generated or hand-edited)
        content: Body content, or None when no content field exists
        index_enabled: Whether search engines may index the page
        sitemap_enabled: Whether the page is listed in the sitemap

    Returns:
        Score clamped to [0, 100]
    """
    total = sum(score_breakdown(record, content, index_enabled, sitemap_enabled).values())
    return max(0, min(MAX_SCORE, total))


def get_seo_score_label(score: int) -> ScoreLabel:
    """Qualitative label for a score."""
    if score >= EXCELLENT_THRESHOLD:
        return ScoreLabel.EXCELLENT
    if score >= GOOD_THRESHOLD:
        return ScoreLabel.GOOD
    if score >= NEEDS_WORK_THRESHOLD:
        return ScoreLabel.NEEDS_WORK
    return ScoreLabel.POOR


def get_seo_score_color(score: int) -> str:
    """Display colour class for a score."""
    if score >= EXCELLENT_THRESHOLD:
        return "bg-emerald-500"
    if score >= GOOD_THRESHOLD:
        return "bg-yellow-500"
    return "bg-red-500"


def get_seo_recommendations(
    record: MetadataRecord,
    content: str | None = None,
    index_enabled: bool = True,
    sitemap_enabled: bool = True,
) -> list[str]:
    """One suggestion per unmet rubric condition, in rubric order.

    Titles and descriptions that only reach the acceptable band still get
    a suggestion, so the list can be non-empty at high scores.
    """
    recommendations: list[str] = []

    title_length = len(record.title)
    if not record.title:
        recommendations.append("Add a meta title (50-60 characters)")
    elif title_length < TITLE_OPTIMAL_RANGE[0]:
        recommendations.append("Meta title is too short (aim for 50-60 characters)")
    elif title_length > TITLE_OPTIMAL_RANGE[1]:
        recommendations.append(
            "Meta title is too long (it may be cut off in search results)"
        )

    description_length = len(record.description)
    if not record.description:
        recommendations.append("Add a meta description (150-160 characters)")
    elif description_length < DESCRIPTION_OPTIMAL_RANGE[0]:
        recommendations.append(
            "Meta description is too short (aim for 150-160 characters)"
        )
    elif description_length > DESCRIPTION_OPTIMAL_RANGE[1]:
        recommendations.append("Meta description is too long (it may be cut off)")

    if not record.keywords:
        recommendations.append("Add focus keywords for better targeting")
    elif len(record.keywords) < MIN_KEYWORDS:
        recommendations.append(f"Add at least {MIN_KEYWORDS} focus keywords")

    if content is not None and len(content) < SUBSTANTIAL_CONTENT_LENGTH:
        recommendations.append(
            f"Add more content (at least {SUBSTANTIAL_CONTENT_LENGTH} characters)"
        )

    if not record.slug:
        recommendations.append("Add a URL slug")
    elif not is_clean_slug(record.slug):
        recommendations.append(
            "Optimize URL slug (use lowercase letters, numbers, and hyphens only)"
        )

    if not record.og_image:
        recommendations.append("Add an Open Graph image for social media sharing")

    if not index_enabled:
        recommendations.append("Allow search engines to index this page")
    if not sitemap_enabled:
        recommendations.append("Include this page in the sitemap")

    return recommendations


def score_metadata(
    record: MetadataRecord,
    content: str | None = None,
    index_enabled: bool = True,
    sitemap_enabled: bool = True,
) -> ScoreReport:
    """Score a metadata record and explain how to improve it.

    Args:
        record: Metadata to evaluate
        content: Body content, or None when the entity has no content field
        index_enabled: Whether search engines may index the page
        sitemap_enabled: Whether the page is listed in the sitemap

    Returns:
        ScoreReport with score, label, colour, recommendations and breakdown
    """
    breakdown = score_breakdown(record, content, index_enabled, sitemap_enabled)
    score = max(0, min(MAX_SCORE, sum(breakdown.values())))
    report = ScoreReport(
        score=score,
        label=get_seo_score_label(score),
        color=get_seo_score_color(score),
        recommendations=get_seo_recommendations(
            record, content, index_enabled, sitemap_enabled
        ),
        breakdown=breakdown,
    )

    logger.debug(
        "Scored metadata",
        extra={
            "score": report.score,
            "label": report.label.value,
            "recommendation_count": len(report.recommendations),
        },
    )
    return report
