"""Scheduler: the single authority for review-state transitions."""
from datetime import datetime
from typing import Callable, Optional

import structlog

from spaced_review.config import Settings, settings as default_settings
from spaced_review.errors import ItemNotFound, StoreUnavailable, VersionConflict
from spaced_review.models import AnswerOutcome, ReviewState
from spaced_review.policy import next_state, validate_outcome
from spaced_review.queue import ReviewQueue, ReviewQueueBuilder
from spaced_review.store import ReviewStore

log = structlog.get_logger(__name__)

Policy = Callable[[ReviewState, AnswerOutcome, Settings], ReviewState]


def _require_aware(value: datetime, name: str) -> None:
    if not isinstance(value, datetime) or value.tzinfo is None:
        raise ValueError(f"{name} must be a timezone-aware datetime, got {value!r}")


class Scheduler:
    """Mediates between answer events and persisted review state.

    Holds no mutable state of its own; one instance can serve concurrent
    requests as long as the store does.
    """

    def __init__(
        self,
        store: ReviewStore,
        cfg: Optional[Settings] = None,
        policy: Policy = next_state,
    ) -> None:
        self.store = store
        self.cfg = cfg or default_settings
        self.policy = policy
        self.queue_builder = ReviewQueueBuilder(store)

    def record_answer(
        self,
        item_id: str,
        owner_id: str,
        remembered: bool,
        at: datetime,
        timeout: Optional[float] = None,
    ) -> ReviewState:
        """Apply one answer to an item and persist the transition.

        Raises:
            InvalidOutcome: malformed answer event.
            ItemNotFound: unknown item or owned by someone else.
            StoreUnavailable: store failure, or contention past the retry bound.
        """
        outcome = AnswerOutcome(remembered=remembered, at=at)
        validate_outcome(outcome)

        for attempt in range(1, self.cfg.max_write_attempts + 1):
            current = self.store.get_review_state(item_id, owner_id, timeout=timeout)
            if current is None:
                raise ItemNotFound(item_id)
            new_state = self.policy(current, outcome, self.cfg)
            try:
                committed = self.store.put_review_state(
                    item_id, current.version, new_state, timeout=timeout, remembered=remembered,
                )
            except VersionConflict:
                log.info("version_conflict", item_id=item_id, attempt=attempt,
                         expected_version=current.version)
                continue
            log.info(
                "answer_recorded", item_id=item_id, remembered=remembered,
                interval_days=committed.interval_days, ease_factor=committed.ease_factor,
                version=committed.version,
            )
            return committed

        log.warning("write_attempts_exhausted", item_id=item_id,
                    attempts=self.cfg.max_write_attempts)
        raise StoreUnavailable(
            f"could not commit answer for {item_id} after "
            f"{self.cfg.max_write_attempts} attempts"
        )

    def get_due_queue(
        self,
        owner_id: str,
        as_of: datetime,
        set_id: Optional[str] = None,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> ReviewQueue:
        _require_aware(as_of, "as_of")
        return self.queue_builder.build(owner_id, as_of, set_id=set_id, limit=limit, timeout=timeout)

    def due_query(
        self,
        owner_id: str,
        as_of: datetime,
        set_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> list[str]:
        return list(self.get_due_queue(owner_id, as_of, set_id=set_id, timeout=timeout))

    def count_due(
        self,
        owner_id: str,
        as_of: datetime,
        set_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> int:
        return len(self.get_due_queue(owner_id, as_of, set_id=set_id, timeout=timeout))
