"""Data classes for the review domain model."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_EASE = 2.5


@dataclass(frozen=True)
class ReviewState:
    """Scheduling state of one item.

    Only ``Scheduler.record_answer`` produces new instances for persisted
    items; ``version`` is the store's optimistic concurrency token.
    """
    next_due_at: datetime
    last_answered_at: Optional[datetime] = None
    interval_days: int = 0
    ease_factor: float = DEFAULT_EASE
    lapse_count: int = 0
    version: int = 0

    @classmethod
    def initial(cls, created_at: datetime, ease_factor: float = DEFAULT_EASE) -> "ReviewState":
        """State of a freshly created item: due at its creation instant."""
        return cls(next_due_at=created_at, ease_factor=ease_factor)

    def is_due(self, as_of: datetime) -> bool:
        return self.next_due_at <= as_of


@dataclass(frozen=True)
class AnswerOutcome:
    remembered: bool
    at: datetime


@dataclass
class ProblemSet:
    id: str
    owner_id: str
    name: str
    created_at: datetime
    description: Optional[str] = None


@dataclass
class Item:
    id: str
    set_id: str
    owner_id: str
    created_at: datetime
    question_image_url: Optional[str] = None
    answer_image_url: Optional[str] = None
