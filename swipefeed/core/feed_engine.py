"""Feed engine: ready-to-serve queue, history window and fallback ladder."""

import random
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence

from swipefeed.core.anti_repeat import DEFAULT_HISTORY_WINDOW, HistoryWindow, is_item_allowed
from swipefeed.core.candidate_store import CandidateStore
from swipefeed.core.contracts import (
    CatalogProvider,
    FeedConfigurationError,
    FeedItem,
    FeedStats,
    Movie,
    MoodFilter,
    SwipeAction,
    TasteProfile,
    UnknownRegionError,
    validate_profile,
)
from swipefeed.core.diversity import DEFAULT_DIVERSITY_RULES, DiversityRules, passes_diversity_check
from swipefeed.core.rationale import generate_reason
from swipefeed.core.scoring import (
    ScoredMovie,
    bucket_slice,
    get_bucket_ratios,
    pick_from_pool,
    score_pool,
    select_bucket,
)
from swipefeed.logging import get_logger

if TYPE_CHECKING:
    from swipefeed.config import Config

logger = get_logger(__name__)

# Fallback ladder levels
LEVEL_NORMAL = 0
LEVEL_ALLOW_REPEATS = 1
LEVEL_ALLOW_SWIPED = 2
LEVEL_ANY = 3


@dataclass(frozen=True)
class FeedSettings:
    """Engine tunables, passed explicitly to each engine."""

    queue_size: int = 40
    refill_threshold: int = 15
    history_window: int = DEFAULT_HISTORY_WINDOW
    store_share: float = 0.5
    use_candidate_store: bool = True
    diversity_rules: DiversityRules = DEFAULT_DIVERSITY_RULES

    @classmethod
    def from_config(cls, cfg: "Config") -> "FeedSettings":
        """Build settings from application config."""
        return cls(
            queue_size=cfg.feed_queue_size,
            refill_threshold=cfg.feed_refill_threshold,
            history_window=cfg.feed_history_window,
            use_candidate_store=cfg.feed_use_candidate_store,
        )


def _coerce_mood(mood: MoodFilter | str | None) -> MoodFilter | None:
    if mood is None or mood == "":
        return None
    try:
        return MoodFilter(mood)
    except ValueError:
        raise FeedConfigurationError(f"Unknown mood filter: {mood!r}") from None


class FeedEngine:
    """Infinite per-session feed over a regional catalog.

    Fallback ladder, recomputed on every refill:
    - 0: not liked/passed/saved, not in history window, mood-matching
    - 1: history window ignored
    - 2: liked/passed allowed again, saved still excluded
    - 3: whole regional catalog, history window cleared

    Not thread-safe. One instance per session.
    """

    def __init__(
        self,
        region: str,
        profile: TasteProfile,
        liked_ids: Iterable[str] = (),
        passed_ids: Iterable[str] = (),
        saved_ids: Iterable[str] = (),
        mood: MoodFilter | str | None = None,
        *,
        catalog: CatalogProvider,
        rng: random.Random | None = None,
        candidate_store: CandidateStore | None = None,
        settings: FeedSettings | None = None,
    ) -> None:
        if not catalog.has_region(region):
            raise UnknownRegionError(region)

        self.region = region
        self.catalog = catalog
        self.profile = validate_profile(profile)
        self.liked_ids: set[str] = set(liked_ids)
        self.passed_ids: set[str] = set(passed_ids)
        self.saved_ids: set[str] = set(saved_ids)
        self.mood = _coerce_mood(mood)
        self.rng = rng or random.Random()
        self.candidate_store = candidate_store
        self.settings = settings or FeedSettings()

        self.queue: deque[FeedItem] = deque()
        self.history = HistoryWindow(self.settings.history_window)
        self._served: deque[Movie] = deque(maxlen=self.settings.diversity_rules.window)
        self.fallback_level = LEVEL_NORMAL

        self._refill_queue()

    # -- candidate pools -------------------------------------------------

    def _catalog_items(self) -> list[Movie]:
        return self.catalog.list_items(self.region)

    def _mood_items(self, items: list[Movie]) -> list[Movie]:
        if self.mood is None:
            return items
        return self.catalog.filter_by_mood(items, self.mood)

    def _candidate_pool(self) -> tuple[int, list[Movie]]:
        """Walk the fallback ladder until a level yields candidates.

        Returns:
            Tuple of (fallback level, candidate movies)
        """
        items = self._catalog_items()
        mood_items = self._mood_items(items)

        pool = [
            m
            for m in mood_items
            if m.id not in self.saved_ids
            and is_item_allowed(m.id, self.history, self.liked_ids, self.passed_ids)
        ]
        if pool:
            return LEVEL_NORMAL, pool

        pool = [
            m
            for m in mood_items
            if m.id not in self.liked_ids
            and m.id not in self.passed_ids
            and m.id not in self.saved_ids
        ]
        if pool:
            return LEVEL_ALLOW_REPEATS, pool

        pool = [m for m in mood_items if m.id not in self.saved_ids]
        if pool:
            return LEVEL_ALLOW_SWIPED, pool

        return LEVEL_ANY, items

    # -- refill ----------------------------------------------------------

    def _recent_movies(self) -> list[Movie]:
        """Served tail followed by queued movies, in serving order."""
        return list(self._served) + [item.movie for item in self.queue]

    def _restore_diversity(self, start: int = 0, stop: int | None = None) -> None:
        """Reorder queued items so each passes the caps against what precedes it.

        A failing item swaps places with the first later queued item that
        passes; it stays put when none does. Only applied at levels 0 and 1.

        Args:
            start: First queue position to check
            stop: Position to stop at, the end of the queue by default
        """
        if self.fallback_level > LEVEL_ALLOW_REPEATS:
            return

        rules = self.settings.diversity_rules
        recent = self._recent_movies()
        offset = len(self._served)
        stop = len(self.queue) if stop is None else min(stop, len(self.queue))

        for index in range(start, stop):
            preceding = recent[:offset + index]
            if passes_diversity_check(self.queue[index].movie, preceding, rules):
                continue
            for later in range(index + 1, len(self.queue)):
                if passes_diversity_check(self.queue[later].movie, preceding, rules):
                    self.queue[index], self.queue[later] = self.queue[later], self.queue[index]
                    recent[offset + index], recent[offset + later] = (
                        recent[offset + later],
                        recent[offset + index],
                    )
                    break

    def _diversify(
        self,
        picked: ScoredMovie,
        scored: Sequence[ScoredMovie],
        slice_: Sequence[ScoredMovie],
        recent: Sequence[Movie],
    ) -> ScoredMovie:
        """Swap a pick that breaks the diversity caps for one that does not.

        Looks in the bucket's slice first, then the whole pool. Keeps the
        original pick when nothing passes.
        """
        rules = self.settings.diversity_rules
        if passes_diversity_check(picked.movie, recent, rules):
            return picked
        for pool in (slice_, scored):
            for candidate in pool:
                if passes_diversity_check(candidate.movie, recent, rules):
                    return candidate
        return picked

    def _draw_from_allocator(
        self,
        scored: list[ScoredMovie],
        level: int,
        recent: Sequence[Movie],
    ) -> FeedItem | None:
        bucket = select_bucket(self.profile, self.rng)
        picked = pick_from_pool(scored, bucket, self.rng)
        if picked is None:
            return None

        if level <= LEVEL_ALLOW_REPEATS:
            picked = self._diversify(picked, scored, bucket_slice(scored, bucket), recent)

        scored.remove(picked)
        return FeedItem(
            movie=picked.movie,
            bucket=bucket,
            score=picked.score,
            reason=generate_reason(bucket, picked.movie, self.profile, level),
        )

    def _draw_from_store(
        self,
        store: CandidateStore,
        eligible: dict[str, ScoredMovie],
        recent: Sequence[Movie],
    ) -> FeedItem | None:
        rules = self.settings.diversity_rules
        candidate = store.get_next(
            accept=lambda movie: movie.id in eligible and passes_diversity_check(movie, recent, rules)
        )
        if candidate is None:
            return None
        return FeedItem(
            movie=candidate.movie,
            bucket=candidate.bucket,
            score=candidate.score,
            reason=generate_reason(candidate.bucket, candidate.movie, self.profile),
        )

    def _refill_queue(self, emergency: bool = False) -> None:
        """Top the queue back up to the target length.

        Args:
            emergency: Skip the ladder and serve from the whole catalog
        """
        if emergency:
            level, pool = LEVEL_ANY, self._catalog_items()
            logger.warning("Emergency refill with an empty queue", extra={"region": self.region})
        else:
            level, pool = self._candidate_pool()

        if level != self.fallback_level:
            logger.info(
                f"Feed fallback level {self.fallback_level} -> {level}",
                extra={"region": self.region, "fallback_level": level},
            )
        self.fallback_level = level

        if level == LEVEL_ANY:
            self.history.clear()

        queued_ids = {item.movie.id for item in self.queue}
        scored = score_pool([m for m in pool if m.id not in queued_ids], self.profile)
        recent = self._recent_movies()

        store = self.candidate_store
        if level != LEVEL_NORMAL or store is None or not store.has_content():
            store = None
        eligible = {s.movie.id: s for s in scored} if store is not None else {}

        needed = self.settings.queue_size - len(self.queue)
        added = 0
        while added < needed and scored:
            item = None
            if store is not None and self.rng.random() < self.settings.store_share:
                item = self._draw_from_store(store, eligible, recent)
                if item is not None:
                    scored.remove(eligible[item.movie.id])
            if item is None:
                item = self._draw_from_allocator(scored, level, recent)
            if item is None:
                break

            eligible.pop(item.movie.id, None)
            self.queue.append(item)
            recent.append(item.movie)
            added += 1

        logger.debug(
            f"Refilled {added} items at level={level}, pool={len(pool)}, queue={len(self.queue)}"
        )

    # -- public API ------------------------------------------------------

    def get_next(self) -> FeedItem | None:
        """Serve the next item.

        Returns:
            FeedItem, or None only when the regional catalog is empty
        """
        if len(self.queue) < self.settings.refill_threshold:
            self._refill_queue()

        if not self.queue:
            self._refill_queue(emergency=True)

        if not self.queue:
            return None

        self._restore_diversity(stop=1)
        item = self.queue.popleft()
        self.history.add(item.movie.id)
        self._served.append(item.movie)
        return item

    def peek(self, count: int = 3) -> list[FeedItem]:
        """Look ahead without consuming, for prefetching.

        Args:
            count: Number of upcoming items

        Returns:
            Up to ``count`` queued items
        """
        if len(self.queue) < count + 5:
            self._refill_queue()
        if not self.queue:
            self._refill_queue(emergency=True)
        return list(self.queue)[:count]

    def record_swipe(self, movie_id: str, action: SwipeAction | str) -> None:
        """Record a swipe and drop the movie from the pending queue.

        Args:
            movie_id: Movie ID
            action: like, pass or save

        Raises:
            ValueError: If the action is unknown
        """
        action = SwipeAction.coerce(action)
        if action is SwipeAction.LIKE:
            self.liked_ids.add(movie_id)
        elif action is SwipeAction.PASS:
            self.passed_ids.add(movie_id)
        else:
            self.saved_ids.add(movie_id)

        # Neighbours of a removed item become adjacent
        for index, item in enumerate(self.queue):
            if item.movie.id == movie_id:
                del self.queue[index]
                self._restore_diversity(start=index)
                break

        if self.candidate_store is not None:
            self.candidate_store.record_swipe(movie_id, action)

    def update_profile(self, profile: TasteProfile) -> None:
        """Replace the taste profile used for subsequent refills."""
        self.profile = validate_profile(profile)
        if self.candidate_store is not None:
            self.candidate_store.update_taste_profile(self.profile)

    def get_stats(self) -> FeedStats:
        """Diagnostic snapshot."""
        return FeedStats(
            queue_length=len(self.queue),
            history_size=len(self.history),
            bucket_ratios={bucket.value: ratio for bucket, ratio in get_bucket_ratios(self.profile).items()},
            fallback_level=self.fallback_level,
            candidate_store=self.candidate_store.get_stats() if self.candidate_store else None,
        )

    def has_content(self) -> bool:
        """True iff the regional catalog is non-empty."""
        return len(self._catalog_items()) > 0


def create_feed_engine(
    region: str,
    profile: TasteProfile,
    liked_ids: Iterable[str] = (),
    passed_ids: Iterable[str] = (),
    saved_ids: Iterable[str] = (),
    mood: MoodFilter | str | None = None,
    *,
    catalog: CatalogProvider,
    rng: random.Random | None = None,
    settings: FeedSettings | None = None,
) -> FeedEngine:
    """Build a feed engine, attaching a candidate store when enabled.

    Raises:
        UnknownRegionError: If the catalog does not know the region
        InvalidProfileError: If the profile is malformed
    """
    settings = settings or FeedSettings()
    rng = rng or random.Random()

    if not catalog.has_region(region):
        raise UnknownRegionError(region)

    liked, passed, saved = set(liked_ids), set(passed_ids), set(saved_ids)

    store = None
    if settings.use_candidate_store:
        store = CandidateStore(
            catalog.list_items(region),
            validate_profile(profile),
            seen_ids=liked | passed | saved,
            rng=rng,
            diversity_rules=settings.diversity_rules,
        )

    return FeedEngine(
        region,
        profile,
        liked,
        passed,
        saved,
        mood,
        catalog=catalog,
        rng=rng,
        candidate_store=store,
        settings=settings,
    )
