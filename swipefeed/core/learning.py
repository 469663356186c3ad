"""Taste profile learning: update and decay logic."""

from datetime import datetime, timezone

from swipefeed.core.contracts import (
    WEIGHT_DIMENSIONS,
    Movie,
    SwipeAction,
    TasteProfile,
)
from swipefeed.logging import get_logger

logger = get_logger(__name__)

# Signed weight delta per action. Save is a stronger signal than like.
ACTION_DELTAS: dict[SwipeAction, float] = {
    SwipeAction.LIKE: 0.15,
    SwipeAction.SAVE: 0.20,
    SwipeAction.PASS: -0.08,
}

# Per-dimension multipliers applied on top of the action delta
DIMENSION_MULTIPLIERS: dict[str, float] = {
    "genres": 1.0,
    "mood_weights": 1.0,
    "era_weights": 0.5,
    "directors": 1.5,
    "cast": 1.0,
}

DEFAULT_DECAY_FACTOR = 0.95
DEFAULT_RUNTIME = 110.0
RECENT_ERA_PRIOR = 0.1


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def create_default_profile(now: datetime | None = None) -> TasteProfile:
    """Create a fresh profile with a mild recency prior.

    Args:
        now: Timestamp for last_updated (defaults to current UTC time)

    Returns:
        New TasteProfile
    """
    return TasteProfile(
        genres={},
        mood_weights={"calm": 0.0, "fun": 0.0, "intense": 0.0},
        era_weights={"classic": 0.0, "modern": 0.0, "recent": RECENT_ERA_PRIOR},
        directors={},
        cast={},
        preferred_runtime=DEFAULT_RUNTIME,
        last_updated=now or datetime.now(timezone.utc),
    )


def reset_taste_profile(now: datetime | None = None) -> TasteProfile:
    """Explicit profile reset. The only path that lowers counters."""
    logger.info("Taste profile reset to defaults")
    return create_default_profile(now)


def _labels_for(movie: Movie, dimension: str) -> tuple[str, ...]:
    if dimension == "genres":
        return movie.genres
    if dimension == "mood_weights":
        return movie.moods
    if dimension == "era_weights":
        return (movie.era,) if movie.era else ()
    if dimension == "directors":
        return movie.directors
    return movie.cast


def _apply_delta(weights: dict[str, float], labels: tuple[str, ...], delta: float) -> dict[str, float]:
    updated = dict(weights)
    # A label listed twice on one item still moves its weight once
    for label in dict.fromkeys(labels):
        updated[label] = clamp(updated.get(label, 0.0) + delta)
    return updated


def update_taste_profile(
    profile: TasteProfile,
    movie: Movie,
    action: SwipeAction | str,
    now: datetime | None = None,
) -> TasteProfile:
    """Derive a new profile from a single swipe.

    The input profile is never mutated.

    Args:
        profile: Current profile
        movie: Movie the user swiped on
        action: like, pass or save
        now: Timestamp for last_updated (defaults to current UTC time)

    Returns:
        New TasteProfile with weights clamped to [-1, 1]

    Raises:
        ValueError: If the action is unknown
    """
    action = SwipeAction.coerce(action)
    delta = ACTION_DELTAS[action]

    maps = {
        dimension: _apply_delta(
            getattr(profile, dimension),
            _labels_for(movie, dimension),
            delta * DIMENSION_MULTIPLIERS[dimension],
        )
        for dimension in WEIGHT_DIMENSIONS
    }

    like_count = profile.like_count
    pass_count = profile.pass_count
    save_count = profile.save_count
    consecutive_passes = profile.consecutive_passes
    preferred_runtime = profile.preferred_runtime

    if action is SwipeAction.PASS:
        pass_count += 1
        consecutive_passes += 1
    else:
        # Running mean over liked and saved runtimes
        n = like_count + save_count + 1
        if movie.runtime > 0:
            preferred_runtime = (preferred_runtime * (n - 1) + movie.runtime) / n
        if action is SwipeAction.LIKE:
            like_count += 1
        else:
            save_count += 1
        consecutive_passes = 0

    return TasteProfile(
        **maps,
        preferred_runtime=preferred_runtime,
        like_count=like_count,
        pass_count=pass_count,
        save_count=save_count,
        consecutive_passes=consecutive_passes,
        last_updated=now or datetime.now(timezone.utc),
    )


def decay_taste_profile(
    profile: TasteProfile,
    factor: float = DEFAULT_DECAY_FACTOR,
) -> TasteProfile:
    """Fade every weight toward zero. Counters are left untouched.

    Meant to run once per session start, never from inside the feed.

    Args:
        profile: Current profile
        factor: Multiplier in (0, 1]

    Returns:
        New TasteProfile
    """
    if not 0.0 < factor <= 1.0:
        raise ValueError(f"Decay factor must be in (0, 1], got {factor}")

    maps = {
        dimension: {label: weight * factor for label, weight in getattr(profile, dimension).items()}
        for dimension in WEIGHT_DIMENSIONS
    }

    return TasteProfile(
        **maps,
        preferred_runtime=profile.preferred_runtime,
        like_count=profile.like_count,
        pass_count=profile.pass_count,
        save_count=profile.save_count,
        consecutive_passes=profile.consecutive_passes,
        last_updated=profile.last_updated,
    )
