"""Repository for swipe outcome operations."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from swipefeed.core.contracts import SwipeAction
from swipefeed.storage.models import Swipe


@dataclass
class SwipeSets:
    """Liked, passed and saved item IDs of a user."""

    liked: set[str] = field(default_factory=set)
    passed: set[str] = field(default_factory=set)
    saved: set[str] = field(default_factory=set)


class SwipesRepo:
    """Repository for user swipe outcomes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record_swipe(self, user_id: str, item_id: str, action: SwipeAction | str) -> None:
        """Store a swipe. A later swipe on the same item replaces the earlier one.

        Args:
            user_id: User ID
            item_id: Item ID
            action: like, pass or save
        """
        action = SwipeAction.coerce(action)
        now = datetime.now(timezone.utc)

        insert_stmt = sqlite_insert(Swipe).values(
            user_id=user_id,
            item_id=item_id,
            action=action.value,
            created_at=now,
        )
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["user_id", "item_id"],
            set_={"action": action.value, "created_at": now},
        )
        await self.session.execute(upsert_stmt)
        await self.session.commit()

    async def list_swipe_ids(self, user_id: str) -> SwipeSets:
        """Get all swiped item IDs grouped by action.

        Args:
            user_id: User ID

        Returns:
            SwipeSets
        """
        stmt = select(Swipe.item_id, Swipe.action).where(Swipe.user_id == user_id)
        result = await self.session.execute(stmt)

        sets = SwipeSets()
        for row in result.all():
            if row.action == SwipeAction.LIKE.value:
                sets.liked.add(row.item_id)
            elif row.action == SwipeAction.PASS.value:
                sets.passed.add(row.item_id)
            elif row.action == SwipeAction.SAVE.value:
                sets.saved.add(row.item_id)
        return sets

    async def clear_swipes(self, user_id: str) -> int:
        """Delete all swipes of a user.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(delete(Swipe).where(Swipe.user_id == user_id))
        await self.session.commit()
        return result.rowcount
