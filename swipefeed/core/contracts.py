"""Domain contracts and type definitions."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Protocol, Sequence

from swipefeed.logging import get_logger

logger = get_logger(__name__)


class SwipeAction(str, Enum):
    """Feedback a user can give on a single card."""

    LIKE = "like"
    PASS = "pass"
    SAVE = "save"

    @classmethod
    def coerce(cls, action: "str | SwipeAction") -> "SwipeAction":
        """Accept either an enum member or its string value.

        Raises:
            ValueError: If the action is not one of like/pass/save
        """
        if isinstance(action, cls):
            return action
        try:
            return cls(str(action).lower())
        except ValueError:
            raise ValueError(f"Unknown swipe action: {action!r}") from None


class Mood(str, Enum):
    """Mood labels carried by catalog items."""

    CALM = "calm"
    FUN = "fun"
    INTENSE = "intense"


class MoodFilter(str, Enum):
    """Mood filters a user can pick for a feed."""

    CALM = "calm"
    FUN = "fun"
    INTENSE = "intense"
    SHORT = "short"


class Era(str, Enum):
    """Release era labels."""

    CLASSIC = "classic"
    MODERN = "modern"
    RECENT = "recent"


class FeedBucket(str, Enum):
    """Selection strategy used to pick an item from the scored pool."""

    EXPLOIT = "exploit"
    EXPLORE = "explore"
    WILDCARD = "wildcard"


class CandidateBucket(str, Enum):
    """Quality tiers maintained by the candidate store."""

    TRENDING = "trending"
    TOP_RATED = "top_rated"
    POPULAR = "popular"
    NEW_NOTEWORTHY = "new_noteworthy"
    HIDDEN_GEMS = "hidden_gems"
    PERSONALIZED = "personalized"


class FeedConfigurationError(Exception):
    """Raised when a feed is constructed with invalid inputs."""


class UnknownRegionError(FeedConfigurationError):
    """Raised when the catalog has no entry for a region."""

    def __init__(self, region: str) -> None:
        super().__init__(f"No catalog configured for region {region!r}")
        self.region = region


class InvalidProfileError(FeedConfigurationError):
    """Raised when a taste profile has a malformed shape."""


def _as_tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _known_moods(movie_id: str, value: Any) -> tuple[str, ...]:
    moods = []
    for label in _as_tuple(value):
        try:
            moods.append(Mood(label.lower()).value)
        except ValueError:
            logger.warning(f"Dropping unknown mood {label!r} on movie {movie_id}")
    return tuple(moods)


def _known_era(movie_id: str, value: Any) -> str | None:
    if not value:
        return None
    try:
        return Era(str(value).lower()).value
    except ValueError:
        logger.warning(f"Dropping unknown era {value!r} on movie {movie_id}")
        return None


@dataclass(frozen=True)
class Movie:
    """A catalog item. Read-only from the engine's point of view."""

    id: str
    title: str
    year: int = 0
    runtime: int = 0
    poster_url: str | None = None
    genres: tuple[str, ...] = ()
    moods: tuple[str, ...] = ()
    era: str | None = None
    popularity: float | None = None
    rating_avg: float = 0.0
    rating_count: int = 0
    release_date: date | None = None
    directors: tuple[str, ...] = ()
    cast: tuple[str, ...] = ()
    services: tuple[str, ...] = ()

    @property
    def primary_genre(self) -> str | None:
        return self.genres[0] if self.genres else None

    @property
    def primary_director(self) -> str | None:
        return self.directors[0] if self.directors else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Movie":
        """Create from a catalog record.

        Missing optional fields become empty tuples or None. Mood and era
        labels outside the known sets are dropped with a warning.
        """
        movie_id = str(data["id"])
        popularity = data.get("popularity")
        return cls(
            id=movie_id,
            title=str(data.get("title", "")),
            year=int(data.get("year") or 0),
            runtime=int(data.get("runtime") or 0),
            poster_url=data.get("poster_url"),
            genres=_as_tuple(data.get("genres")),
            moods=_known_moods(movie_id, data.get("moods", data.get("mood"))),
            era=_known_era(movie_id, data.get("era")),
            popularity=float(popularity) if popularity is not None else None,
            rating_avg=float(data.get("rating_avg") or 0.0),
            rating_count=int(data.get("rating_count") or 0),
            release_date=_parse_date(data.get("release_date")),
            directors=_as_tuple(data.get("directors")),
            cast=_as_tuple(data.get("cast")),
            services=_as_tuple(data.get("services")),
        )


WEIGHT_DIMENSIONS = ("genres", "mood_weights", "era_weights", "directors", "cast")


@dataclass
class TasteProfile:
    """Weighted preferences of a single user.

    Weight maps hold values in [-1, 1]. Instances are replaced wholesale;
    use the functions in ``swipefeed.core.learning`` to derive new ones.
    """

    genres: dict[str, float] = field(default_factory=dict)
    mood_weights: dict[str, float] = field(default_factory=dict)
    era_weights: dict[str, float] = field(default_factory=dict)
    directors: dict[str, float] = field(default_factory=dict)
    cast: dict[str, float] = field(default_factory=dict)
    preferred_runtime: float = 110.0
    like_count: int = 0
    pass_count: int = 0
    save_count: int = 0
    consecutive_passes: int = 0
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def affinity(self, dimension: str, label: str | None) -> float:
        """Weight for a label, 0.0 when absent."""
        if label is None:
            return 0.0
        weights: dict[str, float] = getattr(self, dimension)
        return weights.get(label, 0.0)

    @property
    def total_interactions(self) -> int:
        return self.like_count + self.pass_count + self.save_count

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "genres": dict(self.genres),
            "mood_weights": dict(self.mood_weights),
            "era_weights": dict(self.era_weights),
            "directors": dict(self.directors),
            "cast": dict(self.cast),
            "preferred_runtime": self.preferred_runtime,
            "like_count": self.like_count,
            "pass_count": self.pass_count,
            "save_count": self.save_count,
            "consecutive_passes": self.consecutive_passes,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TasteProfile":
        """Create from a dictionary produced by ``to_dict``.

        Raises:
            InvalidProfileError: If the data does not describe a profile
        """
        if not isinstance(data, dict):
            raise InvalidProfileError("Taste profile must be a mapping")

        maps: dict[str, dict[str, float]] = {}
        for dimension in WEIGHT_DIMENSIONS:
            raw = data.get(dimension) or {}
            if not isinstance(raw, dict):
                raise InvalidProfileError(f"{dimension} must be a mapping")
            try:
                maps[dimension] = {str(k): float(v) for k, v in raw.items()}
            except (TypeError, ValueError):
                raise InvalidProfileError(f"{dimension} contains a non-numeric weight") from None

        try:
            counters = {
                name: int(data.get(name, 0))
                for name in ("like_count", "pass_count", "save_count", "consecutive_passes")
            }
            preferred_runtime = float(data.get("preferred_runtime", 110.0))
        except (TypeError, ValueError):
            raise InvalidProfileError("Counters and runtime must be numeric") from None

        last_updated_raw = data.get("last_updated")
        if isinstance(last_updated_raw, datetime):
            last_updated = last_updated_raw
        elif last_updated_raw:
            try:
                last_updated = datetime.fromisoformat(str(last_updated_raw))
            except ValueError:
                raise InvalidProfileError("last_updated is not an ISO timestamp") from None
        else:
            last_updated = datetime.now(timezone.utc)

        profile = cls(
            **maps,
            preferred_runtime=preferred_runtime,
            last_updated=last_updated,
            **counters,
        )
        validate_profile(profile)
        return profile


def validate_profile(profile: Any) -> TasteProfile:
    """Check that a value is a well-formed taste profile.

    Raises:
        InvalidProfileError: On wrong type, out-of-range weights or negative counters
    """
    if not isinstance(profile, TasteProfile):
        raise InvalidProfileError(
            f"Expected TasteProfile, got {type(profile).__name__}"
        )

    for dimension in WEIGHT_DIMENSIONS:
        weights = getattr(profile, dimension)
        if not isinstance(weights, dict):
            raise InvalidProfileError(f"{dimension} must be a mapping")
        for label, weight in weights.items():
            if not isinstance(weight, (int, float)) or not -1.0 <= weight <= 1.0:
                raise InvalidProfileError(
                    f"{dimension}[{label!r}] = {weight!r} is outside [-1, 1]"
                )

    for name in ("like_count", "pass_count", "save_count", "consecutive_passes"):
        if getattr(profile, name) < 0:
            raise InvalidProfileError(f"{name} must be non-negative")

    if profile.preferred_runtime < 0:
        raise InvalidProfileError("preferred_runtime must be non-negative")

    return profile


@dataclass
class FeedItem:
    """A movie ready to be shown, with the reason it was picked."""

    movie: Movie
    bucket: FeedBucket | CandidateBucket
    score: float
    reason: str = ""


@dataclass
class FeedStats:
    """Diagnostic snapshot of a feed engine."""

    queue_length: int
    history_size: int
    bucket_ratios: dict[str, float]
    fallback_level: int
    candidate_store: dict[str, int] | None = None


class CatalogProvider(Protocol):
    """Protocol for the regional catalog collaborator."""

    def has_region(self, region: str) -> bool:
        """Whether the provider knows the region at all."""
        ...

    def list_items(self, region: str) -> list[Movie]:
        """All items available in a region. Idempotent, side-effect free."""
        ...

    def filter_by_mood(self, items: Sequence[Movie], mood: MoodFilter | str) -> list[Movie]:
        """Pure mood filter."""
        ...
