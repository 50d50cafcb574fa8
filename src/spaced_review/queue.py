"""Due-queue construction."""
from datetime import datetime
from typing import Iterable, Iterator, Optional

from spaced_review.models import ReviewState


def queue_order(entry: tuple[str, ReviewState]) -> tuple:
    """Most overdue first, then most lapses, then id."""
    item_id, state = entry
    return (state.next_due_at, -state.lapse_count, item_id)


class ReviewQueue:
    """Ordered, finite and restartable sequence of due item ids.

    Holds a snapshot of the store's answer at build time; sorting happens on
    first iteration and every ``iter()`` starts from the beginning.
    """

    def __init__(self, entries: Iterable[tuple[str, ReviewState]], limit: Optional[int] = None):
        self._entries = tuple(entries)
        self._limit = limit
        self._ordered: Optional[tuple[str, ...]] = None

    def _ids(self) -> tuple[str, ...]:
        if self._ordered is None:
            ordered = tuple(item_id for item_id, _ in sorted(self._entries, key=queue_order))
            self._ordered = ordered[: self._limit] if self._limit is not None else ordered
        return self._ordered

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids())

    def __len__(self) -> int:
        return len(self._ids())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __repr__(self) -> str:
        return f"ReviewQueue({list(self._ids())!r})"


class ReviewQueueBuilder:
    def __init__(self, store) -> None:
        self.store = store

    def build(
        self,
        owner_id: str,
        as_of: datetime,
        set_id: Optional[str] = None,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ReviewQueue:
        """Query the store for due items and wrap them in a ReviewQueue.

        Store failures propagate; only a genuinely empty result gives an
        empty queue.
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        entries = self.store.query_due(owner_id, set_id, as_of, timeout=timeout)
        return ReviewQueue(entries, limit=limit)
