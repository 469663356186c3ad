"""Repository for taste profile persistence."""

import json
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from swipefeed.core.contracts import InvalidProfileError, TasteProfile
from swipefeed.core.learning import reset_taste_profile
from swipefeed.logging import get_logger
from swipefeed.storage.models import Swipe, UserProfile

logger = get_logger(__name__)


class ProfilesRepo:
    """Repository for per-user taste profiles."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_profile(self, user_id: str) -> TasteProfile | None:
        """Load a user's taste profile.

        A stored profile that cannot be decoded is logged and treated as
        missing, so the caller starts from a default profile.

        Args:
            user_id: User ID

        Returns:
            TasteProfile or None if not stored
        """
        stmt = select(UserProfile.profile_json).where(UserProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        raw = result.scalar_one_or_none()
        if raw is None:
            return None

        try:
            return TasteProfile.from_dict(json.loads(raw))
        except (json.JSONDecodeError, InvalidProfileError) as e:
            logger.warning(f"Discarding unreadable profile for user={user_id}: {e}")
            return None

    async def save_profile(self, user_id: str, profile: TasteProfile) -> None:
        """Store a profile (upsert).

        Args:
            user_id: User ID
            profile: Profile to store
        """
        now = datetime.now(timezone.utc)
        profile_json = json.dumps(profile.to_dict(), ensure_ascii=False, separators=(",", ":"))

        insert_stmt = sqlite_insert(UserProfile).values(
            user_id=user_id,
            profile_json=profile_json,
            created_at=now,
            updated_at=now,
        )
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={"profile_json": profile_json, "updated_at": now},
        )
        await self.session.execute(upsert_stmt)
        await self.session.commit()

    async def reset_profile(self, user_id: str) -> TasteProfile:
        """Reset a user to a default profile and forget their swipes.

        Args:
            user_id: User ID

        Returns:
            The new default profile
        """
        profile = reset_taste_profile()
        await self.save_profile(user_id, profile)

        stmt = select(UserProfile).where(UserProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        record = result.scalar_one()
        record.reset_at = datetime.now(timezone.utc)

        await self.session.execute(delete(Swipe).where(Swipe.user_id == user_id))
        await self.session.commit()

        logger.info(f"Reset profile and swipes for user={user_id}")
        return profile
