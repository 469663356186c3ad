"""Movie scoring and exploit/explore/wildcard bucket allocation."""

import math
import random
from dataclasses import dataclass
from typing import Sequence

from swipefeed.core.contracts import FeedBucket, Movie, TasteProfile

# Score point budget
POPULARITY_MULTIPLIER = 0.3
DEFAULT_POPULARITY = 50.0
GENRE_SCALE = 20.0
GENRE_BOUNDS = (-15.0, 30.0)
MOOD_SCALE = 15.0
MOOD_BOUNDS = (-10.0, 15.0)
ERA_SCALE = 10.0
RUNTIME_BONUS_CAP = 15.0
RUNTIME_PENALTY_PER_MINUTE = 0.2
DIRECTOR_SCALE = 10.0
CAST_SCALE = 5.0

# Bucket allocation
BASE_EXPLOIT_RATIO = 0.6
BASE_EXPLORE_RATIO = 0.3
BASE_WILDCARD_RATIO = 0.1
COLD_START_EXPLORE_BONUS = 0.2
PASS_STREAK_EXPLORE_THRESHOLD = 5
PASS_STREAK_EXPLORE_BONUS = 0.2
CONFIDENCE_INTERACTIONS = 30

# Percentile cut points for exploit / explore slices
EXPLOIT_CUTOFF = 0.3
EXPLORE_CUTOFF = 0.7


@dataclass
class ScoredMovie:
    """Movie with its computed score."""

    movie: Movie
    score: float


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def score_movie(movie: Movie, profile: TasteProfile) -> float:
    """Score a movie against a taste profile.

    Score formula (points, additive):
    - popularity * 0.3 (missing popularity counts as 50)
    - genre affinity sum * 20, clamped to [-15, 30]
    - mood affinity sum * 15, clamped to [-10, 15]
    - era affinity * 10
    - runtime proximity: max(0, 15 - |runtime - preferred| * 0.2)
    - director affinity sum * 10, cast affinity sum * 5

    No single dimension can veto an otherwise strong match.

    Args:
        movie: Movie to score
        profile: Taste profile

    Returns:
        Numeric score, higher is better
    """
    popularity = movie.popularity if movie.popularity is not None else DEFAULT_POPULARITY
    score = popularity * POPULARITY_MULTIPLIER

    genre_sum = sum(profile.affinity("genres", g) for g in movie.genres)
    score += _clamp(genre_sum * GENRE_SCALE, GENRE_BOUNDS)

    mood_sum = sum(profile.affinity("mood_weights", m) for m in movie.moods)
    score += _clamp(mood_sum * MOOD_SCALE, MOOD_BOUNDS)

    score += profile.affinity("era_weights", movie.era) * ERA_SCALE

    runtime_diff = abs(movie.runtime - profile.preferred_runtime)
    score += max(0.0, RUNTIME_BONUS_CAP - runtime_diff * RUNTIME_PENALTY_PER_MINUTE)

    score += sum(profile.affinity("directors", d) for d in movie.directors) * DIRECTOR_SCALE
    score += sum(profile.affinity("cast", c) for c in movie.cast) * CAST_SCALE

    return score


def score_pool(movies: Sequence[Movie], profile: TasteProfile) -> list[ScoredMovie]:
    """Score movies and sort by score descending.

    Ties keep catalog order so results are reproducible.
    """
    scored = [ScoredMovie(movie=m, score=score_movie(m, profile)) for m in movies]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def get_bucket_ratios(profile: TasteProfile) -> dict[FeedBucket, float]:
    """Calculate normalized exploit/explore/wildcard ratios.

    Exploitation grows with interaction count; a long pass streak pushes
    the feed toward exploration.

    Args:
        profile: Taste profile

    Returns:
        Dict of bucket -> probability, summing to 1
    """
    confidence = min(1.0, profile.total_interactions / CONFIDENCE_INTERACTIONS)
    pass_streak_bonus = (
        PASS_STREAK_EXPLORE_BONUS
        if profile.consecutive_passes >= PASS_STREAK_EXPLORE_THRESHOLD
        else 0.0
    )

    exploit = BASE_EXPLOIT_RATIO * confidence
    explore = BASE_EXPLORE_RATIO + (1 - confidence) * COLD_START_EXPLORE_BONUS + pass_streak_bonus
    wildcard = BASE_WILDCARD_RATIO

    total = exploit + explore + wildcard
    return {
        FeedBucket.EXPLOIT: exploit / total,
        FeedBucket.EXPLORE: explore / total,
        FeedBucket.WILDCARD: wildcard / total,
    }


def select_bucket(profile: TasteProfile, rng: random.Random) -> FeedBucket:
    """Draw a bucket according to the profile's ratios.

    Args:
        profile: Taste profile
        rng: Injected random source

    Returns:
        Selected FeedBucket
    """
    ratios = get_bucket_ratios(profile)
    draw = rng.random()

    if draw < ratios[FeedBucket.EXPLOIT]:
        return FeedBucket.EXPLOIT
    if draw < ratios[FeedBucket.EXPLOIT] + ratios[FeedBucket.EXPLORE]:
        return FeedBucket.EXPLORE
    return FeedBucket.WILDCARD


def bucket_slice(scored: Sequence[ScoredMovie], bucket: FeedBucket) -> Sequence[ScoredMovie]:
    """Slice of a score-sorted pool a bucket draws from.

    exploit: top 30% (at least one), explore: 30th-70th percentile
    (whole pool when that slice is empty), wildcard: whole pool.
    """
    if bucket is FeedBucket.EXPLOIT:
        return scored[: max(1, math.ceil(len(scored) * EXPLOIT_CUTOFF))]
    if bucket is FeedBucket.EXPLORE:
        middle = scored[
            math.ceil(len(scored) * EXPLOIT_CUTOFF): math.ceil(len(scored) * EXPLORE_CUTOFF)
        ]
        return middle or scored
    return scored


def pick_from_pool(
    scored: Sequence[ScoredMovie],
    bucket: FeedBucket,
    rng: random.Random,
) -> ScoredMovie | None:
    """Pick one scored movie uniformly from a bucket's slice.

    Args:
        scored: Pool sorted by score descending
        bucket: Selection bucket
        rng: Injected random source

    Returns:
        Selected candidate, or None for an empty pool
    """
    if not scored:
        return None
    return rng.choice(bucket_slice(scored, bucket))
