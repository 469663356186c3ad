"""Per-session feed ownership and storage rehydration.

Each session key owns exactly one FeedEngine. Calls into a session are
serialized by that session's lock; the registry lock only guards the
session map itself.
"""

import random
import threading
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from swipefeed.catalog.provider import InMemoryCatalog
from swipefeed.config import config
from swipefeed.core.contracts import FeedItem, FeedStats, MoodFilter, SwipeAction, TasteProfile
from swipefeed.core.feed_engine import FeedEngine, FeedSettings, create_feed_engine
from swipefeed.core.learning import create_default_profile, decay_taste_profile, update_taste_profile
from swipefeed.logging import get_logger
from swipefeed.storage import ProfilesRepo, SwipesRepo

logger = get_logger(__name__)


class FeedSession:
    """One user's feed: engine, current profile and a lock."""

    def __init__(
        self,
        session_key: str,
        engine: FeedEngine,
        profile: TasteProfile,
        catalog: InMemoryCatalog,
    ) -> None:
        self.session_key = session_key
        self.engine = engine
        self.catalog = catalog
        self._profile = profile
        self._lock = threading.Lock()

    @property
    def profile(self) -> TasteProfile:
        return self._profile

    def next(self) -> FeedItem | None:
        with self._lock:
            return self.engine.get_next()

    def peek(self, count: int = 3) -> list[FeedItem]:
        with self._lock:
            return self.engine.peek(count)

    def swipe(self, item_id: str, action: SwipeAction | str) -> TasteProfile:
        """Apply a swipe to the engine and the taste profile.

        Swipes on IDs the catalog does not know are still recorded, but
        leave the profile unchanged.

        Returns:
            The updated profile
        """
        action = SwipeAction.coerce(action)
        with self._lock:
            movie = self.catalog.get_movie(self.engine.region, item_id)
            self.engine.record_swipe(item_id, action)
            if movie is None:
                logger.warning(
                    f"Swipe on unknown item {item_id}",
                    extra={"session_key": self.session_key, "region": self.engine.region},
                )
                return self._profile

            self._profile = update_taste_profile(self._profile, movie, action)
            self.engine.update_profile(self._profile)
            return self._profile

    def stats(self) -> FeedStats:
        with self._lock:
            return self.engine.get_stats()


class SessionRegistry:
    """Maps session keys to their FeedSession."""

    def __init__(self) -> None:
        self._sessions: dict[str, FeedSession] = {}
        self._lock = threading.Lock()

    def get(self, session_key: str) -> FeedSession | None:
        with self._lock:
            return self._sessions.get(session_key)

    def get_or_create(self, session_key: str, factory: Callable[[], FeedSession]) -> FeedSession:
        """Return the session for a key, building it on first use.

        Args:
            session_key: Session key
            factory: Builds a new FeedSession

        Returns:
            The session owned by this key
        """
        with self._lock:
            session = self._sessions.get(session_key)
            if session is None:
                session = factory()
                self._sessions[session_key] = session
                logger.info("Feed session opened", extra={"session_key": session_key})
            return session

    def put(self, session: FeedSession) -> None:
        with self._lock:
            self._sessions[session.session_key] = session

    def close(self, session_key: str) -> bool:
        """Drop a session. Returns True if it existed."""
        with self._lock:
            existed = self._sessions.pop(session_key, None) is not None
        if existed:
            logger.info("Feed session closed", extra={"session_key": session_key})
        return existed

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_key: object) -> bool:
        with self._lock:
            return session_key in self._sessions


async def open_feed_session(
    db_session: AsyncSession,
    user_id: str,
    region: str | None,
    catalog: InMemoryCatalog,
    mood: MoodFilter | str | None = None,
    rng: random.Random | None = None,
    settings: FeedSettings | None = None,
) -> FeedSession:
    """Rehydrate a user's feed from storage.

    Decays the stored profile once (session start), stores the decayed
    profile and builds a fresh engine.

    Args:
        db_session: Database session
        user_id: User ID, also used as the session key
        region: Region code, or None for DEFAULT_REGION
        catalog: Catalog provider
        mood: Optional mood filter
        rng: Optional seeded random source
        settings: Engine settings (defaults to application config)

    Returns:
        FeedSession

    Raises:
        UnknownRegionError: If the catalog does not know the region
    """
    region = region or config.default_region
    profiles_repo = ProfilesRepo(db_session)
    swipes_repo = SwipesRepo(db_session)

    profile = await profiles_repo.get_profile(user_id)
    if profile is None:
        profile = create_default_profile()
    else:
        profile = decay_taste_profile(profile, config.profile_decay_factor)
    await profiles_repo.save_profile(user_id, profile)

    swipes = await swipes_repo.list_swipe_ids(user_id)

    engine = create_feed_engine(
        region,
        profile,
        swipes.liked,
        swipes.passed,
        swipes.saved,
        mood,
        catalog=catalog,
        rng=rng,
        settings=settings or FeedSettings.from_config(config),
    )

    logger.info(
        f"Rehydrated feed for user={user_id}: liked={len(swipes.liked)} "
        f"passed={len(swipes.passed)} saved={len(swipes.saved)}",
        extra={"session_key": user_id, "region": region},
    )
    return FeedSession(user_id, engine, profile, catalog)


async def persist_swipe(
    db_session: AsyncSession,
    feed_session: FeedSession,
    item_id: str,
    action: SwipeAction | str,
) -> TasteProfile:
    """Apply a swipe and store both the swipe and the new profile.

    Args:
        db_session: Database session
        feed_session: Session whose key is the user ID
        item_id: Item ID
        action: like, pass or save

    Returns:
        The updated profile
    """
    action = SwipeAction.coerce(action)
    profile = feed_session.swipe(item_id, action)

    await SwipesRepo(db_session).record_swipe(feed_session.session_key, item_id, action)
    await ProfilesRepo(db_session).save_profile(feed_session.session_key, profile)
    return profile
