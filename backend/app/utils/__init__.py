"""Utility modules for the application.

This package contains shared utility functions and classes.
"""

from app.utils.text_analysis import (
    ContentAnalysis,
    analyze_content,
    extract_description,
    extract_key_phrases,
    slugify,
    strip_html,
    truncate_at_word_boundary,
)

__all__ = [
    "ContentAnalysis",
    "analyze_content",
    "extract_description",
    "extract_key_phrases",
    "slugify",
    "strip_html",
    "truncate_at_word_boundary",
]
