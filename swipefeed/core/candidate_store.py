"""Quality-filtered candidate buckets with diversity-aware serving."""

import math
import random
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Sequence

from swipefeed.core.contracts import CandidateBucket, Movie, SwipeAction, TasteProfile
from swipefeed.core.diversity import DEFAULT_DIVERSITY_RULES, DiversityRules, passes_diversity_check
from swipefeed.core.scoring import score_movie
from swipefeed.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BucketThresholds:
    """Numeric filters a movie must pass to enter a bucket."""

    min_rating: float | None = None
    min_vote_count: int | None = None
    max_vote_count: int | None = None
    min_popularity: float | None = None
    max_age_days: int | None = None


BUCKET_THRESHOLDS: dict[CandidateBucket, BucketThresholds] = {
    CandidateBucket.TRENDING: BucketThresholds(min_rating=5.5, min_vote_count=100, min_popularity=40),
    CandidateBucket.TOP_RATED: BucketThresholds(min_rating=7.0, min_vote_count=1000),
    CandidateBucket.POPULAR: BucketThresholds(min_rating=6.0, min_vote_count=500, min_popularity=50),
    CandidateBucket.NEW_NOTEWORTHY: BucketThresholds(min_rating=6.5, min_vote_count=100, max_age_days=365),
    CandidateBucket.HIDDEN_GEMS: BucketThresholds(min_rating=7.5, min_vote_count=100, max_vote_count=5000),
    CandidateBucket.PERSONALIZED: BucketThresholds(min_rating=5.0, min_vote_count=50),
}

# Share of draws per bucket
BUCKET_DISTRIBUTION: dict[CandidateBucket, float] = {
    CandidateBucket.PERSONALIZED: 0.50,
    CandidateBucket.TRENDING: 0.15,
    CandidateBucket.TOP_RATED: 0.15,
    CandidateBucket.POPULAR: 0.10,
    CandidateBucket.NEW_NOTEWORTHY: 0.05,
    CandidateBucket.HIDDEN_GEMS: 0.05,
}

MAX_SELECTION_ATTEMPTS = 10
SESSION_HISTORY_LIMIT = 100
NEW_RELEASE_WINDOW_DAYS = 365
HIDDEN_GEM_VOTE_CEILING = 5000


@dataclass
class Candidate:
    """Movie placed in a bucket with its bucket-local score."""

    movie: Movie
    bucket: CandidateBucket
    score: float


def days_since_release(movie: Movie, today: date) -> float | None:
    """Age in days, or None when the release date is unknown."""
    if movie.release_date is None:
        return None
    return float((today - movie.release_date).days)


def passes_threshold(movie: Movie, thresholds: BucketThresholds, today: date) -> bool:
    """Check a movie against a bucket's numeric filters."""
    if thresholds.min_rating is not None and movie.rating_avg < thresholds.min_rating:
        return False
    if thresholds.min_vote_count is not None and movie.rating_count < thresholds.min_vote_count:
        return False
    if thresholds.max_vote_count is not None and movie.rating_count > thresholds.max_vote_count:
        return False
    if thresholds.min_popularity is not None:
        if movie.popularity is None or movie.popularity < thresholds.min_popularity:
            return False
    if thresholds.max_age_days is not None:
        age = days_since_release(movie, today)
        if age is None or age > thresholds.max_age_days:
            return False
    return True


class CandidateStore:
    """Six quality buckets per region, served one movie at a time.

    Every bucket is kept sorted by its own score. Only the personalized
    bucket depends on the taste profile.
    """

    def __init__(
        self,
        movies: Iterable[Movie],
        profile: TasteProfile,
        seen_ids: Iterable[str] = (),
        rng: random.Random | None = None,
        diversity_rules: DiversityRules = DEFAULT_DIVERSITY_RULES,
        today: date | None = None,
    ) -> None:
        self.profile = profile
        self.rng = rng or random.Random()
        self.diversity_rules = diversity_rules
        self.today = today or datetime.now(timezone.utc).date()
        self.seen_ids: set[str] = set(seen_ids)
        self.session_history: list[str] = []
        self.buckets: dict[CandidateBucket, list[Candidate]] = {}
        self._movies_by_id: dict[str, Movie] = {}
        self._initialize_buckets(movies)

    def _initialize_buckets(self, movies: Iterable[Movie]) -> None:
        """Filter movies into buckets and sort each bucket."""
        self.buckets = {bucket: [] for bucket in BUCKET_THRESHOLDS}

        for movie in movies:
            self._movies_by_id[movie.id] = movie
            if movie.id in self.seen_ids:
                continue
            for bucket, thresholds in BUCKET_THRESHOLDS.items():
                if passes_threshold(movie, thresholds, self.today):
                    self.buckets[bucket].append(
                        Candidate(
                            movie=movie,
                            bucket=bucket,
                            score=self.score_for_bucket(movie, bucket),
                        )
                    )

        for candidates in self.buckets.values():
            candidates.sort(key=lambda c: c.score, reverse=True)

        logger.debug(
            "Candidate buckets built: "
            + ", ".join(f"{b.value}={len(c)}" for b, c in self.buckets.items())
        )

    def score_for_bucket(self, movie: Movie, bucket: CandidateBucket) -> float:
        """Bucket-local score.

        Args:
            movie: Movie to score
            bucket: Bucket it belongs to

        Returns:
            Score used for ordering inside the bucket
        """
        popularity = movie.popularity or 0.0
        rating = movie.rating_avg

        if bucket is CandidateBucket.TRENDING:
            return popularity * 2 + rating * 5
        if bucket is CandidateBucket.TOP_RATED:
            return rating * 10 + math.log10(movie.rating_count + 1) * 5
        if bucket is CandidateBucket.POPULAR:
            return popularity + rating * 3
        if bucket is CandidateBucket.NEW_NOTEWORTHY:
            age = days_since_release(movie, self.today)
            recency = max(0.0, NEW_RELEASE_WINDOW_DAYS - age) if age is not None else 0.0
            return recency * 0.3 + rating * 5
        if bucket is CandidateBucket.HIDDEN_GEMS:
            vote_penalty_relief = max(0, HIDDEN_GEM_VOTE_CEILING - movie.rating_count) / 1000
            return rating * 8 + vote_penalty_relief * 3
        return score_movie(movie, self.profile)

    def select_bucket(self) -> CandidateBucket:
        """Draw a bucket according to the fixed distribution."""
        draw = self.rng.random()
        cumulative = 0.0
        for bucket, weight in BUCKET_DISTRIBUTION.items():
            cumulative += weight
            if draw < cumulative:
                return bucket
        return CandidateBucket.PERSONALIZED

    def _recent_movies(self) -> list[Movie]:
        recent_ids = self.session_history[-self.diversity_rules.window:]
        return [self._movies_by_id[i] for i in recent_ids if i in self._movies_by_id]

    def _mark_shown(self, movie_id: str) -> None:
        self.session_history.append(movie_id)
        if len(self.session_history) > SESSION_HISTORY_LIMIT:
            self.session_history.pop(0)

    def _first_unshown(
        self,
        candidates: Sequence[Candidate],
        accept: Callable[[Movie], bool] | None = None,
    ) -> Candidate | None:
        shown = set(self.session_history)
        for candidate in candidates:
            if candidate.movie.id in shown:
                continue
            if accept is None or accept(candidate.movie):
                return candidate
        return None

    def get_next(self, accept: Callable[[Movie], bool] | None = None) -> Candidate | None:
        """Serve the next candidate.

        Tries up to ``MAX_SELECTION_ATTEMPTS`` bucket draws, taking the best
        unshown candidate that passes the diversity check, then falls back.
        Only the returned candidate is marked as shown.

        Args:
            accept: Optional caller filter; rejected movies are skipped and
                stay available for later draws

        Returns:
            Candidate, or None when no bucket holds an acceptable movie
        """
        for _ in range(MAX_SELECTION_ATTEMPTS):
            bucket = self.select_bucket()
            candidate = self._first_unshown(self.buckets[bucket], accept)
            if candidate is None:
                continue
            if passes_diversity_check(candidate.movie, self._recent_movies(), self.diversity_rules):
                self._mark_shown(candidate.movie.id)
                return candidate

        return self._get_fallback_candidate(accept)

    def _get_fallback_candidate(self, accept: Callable[[Movie], bool] | None = None) -> Candidate | None:
        """Fallback ladder used when bucket draws yield nothing.

        Largest bucket first, any candidate not shown this session; then a
        random repeat from the largest bucket.
        """
        by_size = sorted(self.buckets.values(), key=len, reverse=True)

        for candidates in by_size:
            candidate = self._first_unshown(candidates, accept)
            if candidate is not None:
                logger.debug(f"Candidate store fallback served {candidate.movie.id}")
                self._mark_shown(candidate.movie.id)
                return candidate

        if by_size and by_size[0]:
            repeats = [c for c in by_size[0] if accept is None or accept(c.movie)]
            if repeats:
                logger.debug("Candidate store exhausted this session, allowing repeats")
                return self.rng.choice(repeats)

        return None

    def record_swipe(self, movie_id: str, action: SwipeAction | str) -> None:
        """Remove a swiped movie from every bucket.

        Args:
            movie_id: Movie ID
            action: like, pass or save
        """
        action = SwipeAction.coerce(action)
        self.seen_ids.add(movie_id)
        for bucket, candidates in self.buckets.items():
            self.buckets[bucket] = [c for c in candidates if c.movie.id != movie_id]
        logger.debug(f"Removed {movie_id} from candidate buckets after {action.value}")

    def update_taste_profile(self, profile: TasteProfile) -> None:
        """Re-score and re-sort the personalized bucket only."""
        self.profile = profile
        personalized = self.buckets[CandidateBucket.PERSONALIZED]
        for candidate in personalized:
            candidate.score = score_movie(candidate.movie, profile)
        personalized.sort(key=lambda c: c.score, reverse=True)

    def get_stats(self) -> dict[str, int]:
        """Bucket sizes plus session counters."""
        stats = {bucket.value: len(candidates) for bucket, candidates in self.buckets.items()}
        stats["session_history"] = len(self.session_history)
        stats["seen"] = len(self.seen_ids)
        return stats

    def has_content(self) -> bool:
        return any(self.buckets.values())

    def total_count(self) -> int:
        return sum(len(candidates) for candidates in self.buckets.values())
