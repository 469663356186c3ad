"""In-memory regional catalog provider."""

import json
from pathlib import Path
from typing import Any, Mapping, Sequence

from swipefeed.config import config
from swipefeed.core.contracts import Movie, MoodFilter, UnknownRegionError
from swipefeed.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SEED_PATH = Path(__file__).parent / "seed_movies.json"

SHORT_RUNTIME_MINUTES = 100


def filter_by_mood(items: Sequence[Movie], mood: MoodFilter | str) -> list[Movie]:
    """Filter movies by a mood selection.

    "short" keeps movies up to 100 minutes; other moods keep movies
    carrying the mood label.

    Args:
        items: Movies to filter
        mood: Mood filter

    Returns:
        Filtered list, catalog order preserved
    """
    mood = MoodFilter(mood)
    if mood is MoodFilter.SHORT:
        return [m for m in items if 0 < m.runtime <= SHORT_RUNTIME_MINUTES]
    return [m for m in items if mood.value in m.moods]


class InMemoryCatalog:
    """Catalog provider backed by per-region movie lists."""

    def __init__(self, regions: Mapping[str, Sequence[Movie]]) -> None:
        self._regions: dict[str, tuple[Movie, ...]] = {
            region.upper(): tuple(movies) for region, movies in regions.items()
        }
        self._index: dict[str, dict[str, Movie]] = {
            region: {m.id: m for m in movies} for region, movies in self._regions.items()
        }

    @property
    def regions(self) -> list[str]:
        return sorted(self._regions)

    def has_region(self, region: str) -> bool:
        return region.upper() in self._regions

    def list_items(self, region: str) -> list[Movie]:
        """All movies available in a region.

        Raises:
            UnknownRegionError: If the region is not configured
        """
        try:
            return list(self._regions[region.upper()])
        except KeyError:
            raise UnknownRegionError(region) from None

    def filter_by_mood(self, items: Sequence[Movie], mood: MoodFilter | str) -> list[Movie]:
        return filter_by_mood(items, mood)

    def get_movie(self, region: str, movie_id: str) -> Movie | None:
        """Look up a single movie in a region."""
        return self._index.get(region.upper(), {}).get(movie_id)

    def catalog_size(self, region: str) -> int:
        return len(self._regions.get(region.upper(), ()))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryCatalog":
        """Build from a seed document.

        The document holds a ``movies`` list and an ``availability`` map of
        region -> {movie_id: [service ids]}.
        """
        movies = {str(record["id"]): record for record in data.get("movies", [])}
        regions: dict[str, list[Movie]] = {}

        for region, available in data.get("availability", {}).items():
            region_movies = []
            for movie_id, services in available.items():
                record = movies.get(str(movie_id))
                if record is None:
                    logger.warning(f"Availability for unknown movie {movie_id} in {region}")
                    continue
                region_movies.append(Movie.from_dict({**record, "services": services}))
            regions[region] = region_movies

        return cls(regions)

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryCatalog":
        """Load a catalog seed file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        logger.info(
            f"Loaded catalog from {path}: "
            + ", ".join(f"{r}={catalog.catalog_size(r)}" for r in catalog.regions)
        )
        return catalog


def load_default_catalog(path: str | Path | None = None) -> InMemoryCatalog:
    """Load a catalog from ``path``, then CATALOG_PATH, then the bundled seed."""
    return InMemoryCatalog.from_json(path or config.catalog_path or DEFAULT_SEED_PATH)
