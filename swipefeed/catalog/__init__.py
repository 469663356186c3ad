"""Regional catalog providers."""

from swipefeed.catalog.provider import (
    DEFAULT_SEED_PATH,
    InMemoryCatalog,
    filter_by_mood,
    load_default_catalog,
)

__all__ = [
    "DEFAULT_SEED_PATH",
    "InMemoryCatalog",
    "filter_by_mood",
    "load_default_catalog",
]
