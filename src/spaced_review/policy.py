"""Interval policy: an SM-2 flavoured expanding-interval scheme.

The policy is a pure function of the current state and one answer
outcome. It never reads a clock or touches storage, so any replacement
formula with the same signature can be handed to the Scheduler.
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from spaced_review.config import Settings, settings as default_settings
from spaced_review.errors import InvalidOutcome
from spaced_review.models import AnswerOutcome, ReviewState


def validate_outcome(outcome: AnswerOutcome) -> None:
    """Reject malformed answer events."""
    if not isinstance(outcome.remembered, bool):
        raise InvalidOutcome(f"remembered must be a bool, got {outcome.remembered!r}")
    if outcome.at is None:
        raise InvalidOutcome("answer timestamp is required")
    if not isinstance(outcome.at, datetime):
        raise InvalidOutcome(f"answer timestamp must be a datetime, got {outcome.at!r}")
    if outcome.at.tzinfo is None or outcome.at.utcoffset() is None:
        raise InvalidOutcome("answer timestamp must be timezone-aware")


def clamp_ease(ease_factor: float, cfg: Settings) -> float:
    return min(cfg.max_ease, max(cfg.min_ease, round(ease_factor, 2)))


def next_state(
    current: ReviewState,
    outcome: AnswerOutcome,
    cfg: Optional[Settings] = None,
) -> ReviewState:
    """Compute the scheduling state after one answer.

    Args:
        current: State before the answer. Out-of-range ease or interval
            values are clamped first so every input maps to a valid state.
        outcome: Whether the item was remembered and when.
        cfg: Ease bounds and step sizes; module settings when omitted.

    Returns:
        New ReviewState with the same ``version`` as ``current``.
    """
    validate_outcome(outcome)
    cfg = cfg or default_settings

    interval = max(0, int(current.interval_days))
    ease = clamp_ease(current.ease_factor, cfg)
    lapses = max(0, int(current.lapse_count))

    if outcome.remembered:
        new_interval = max(1, round(interval * ease))
        new_interval = min(new_interval, cfg.max_interval_days)
        new_ease = clamp_ease(ease + cfg.ease_bonus, cfg)
        new_lapses = 0
    else:
        # Lapse: halve toward short spacing but never back to 0
        new_interval = max(1, interval // 2)
        new_interval = min(new_interval, cfg.max_interval_days)
        new_ease = clamp_ease(ease - cfg.ease_penalty, cfg)
        new_lapses = lapses + 1

    try:
        next_due_at = outcome.at + timedelta(days=new_interval)
        next_due_at.astimezone(timezone.utc)  # must stay storable as UTC
    except OverflowError as e:
        raise InvalidOutcome(
            f"answer at {outcome.at.isoformat()} leaves no room for a {new_interval}-day interval"
        ) from e

    return replace(
        current,
        last_answered_at=outcome.at,
        next_due_at=next_due_at,
        interval_days=new_interval,
        ease_factor=new_ease,
        lapse_count=new_lapses,
    )
