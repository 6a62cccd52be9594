"""Repositories layer - Data access and persistence.

Repositories abstract the external entity and settings stores from the
service layer.
"""

from app.repositories.seo import (
    SEO_GLOBAL_KEY,
    SEO_ROUTES_KEY,
    EntityStore,
    InMemoryEntityStore,
    InMemorySettingsStore,
    SettingsStore,
)

__all__ = [
    "SEO_GLOBAL_KEY",
    "SEO_ROUTES_KEY",
    "EntityStore",
    "InMemoryEntityStore",
    "InMemorySettingsStore",
    "SettingsStore",
]
