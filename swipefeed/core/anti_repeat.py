"""Anti-repeat logic for the feed."""

from collections import OrderedDict
from typing import Iterator

DEFAULT_HISTORY_WINDOW = 100


class HistoryWindow:
    """Bounded FIFO set of recently served item IDs.

    Adding beyond capacity evicts the oldest entry. Re-adding an ID that
    is already present moves it to the newest position.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_WINDOW) -> None:
        if capacity < 1:
            raise ValueError("History window capacity must be at least 1")
        self.capacity = capacity
        self._ids: OrderedDict[str, None] = OrderedDict()

    def add(self, item_id: str) -> str | None:
        """Record a served item.

        Args:
            item_id: Item ID

        Returns:
            The evicted item ID, if any
        """
        if item_id in self._ids:
            self._ids.move_to_end(item_id)
            return None

        self._ids[item_id] = None
        if len(self._ids) > self.capacity:
            evicted, _ = self._ids.popitem(last=False)
            return evicted
        return None

    def clear(self) -> None:
        self._ids.clear()

    def recent(self, count: int) -> list[str]:
        """The newest ``count`` IDs, oldest first."""
        if count <= 0:
            return []
        return list(self._ids)[-count:]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)


def is_item_allowed(
    item_id: str,
    history: HistoryWindow,
    liked_ids: set[str],
    passed_ids: set[str],
) -> bool:
    """Check if an item may be served under normal (level 0) rules.

    An item is allowed if it was neither liked nor passed and was not
    served within the history window.
    """
    return item_id not in liked_ids and item_id not in passed_ids and item_id not in history
