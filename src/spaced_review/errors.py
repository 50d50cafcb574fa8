"""Error taxonomy for the review scheduler."""


class SchedulerError(Exception):
    """Base class for every error raised by the scheduling engine."""


class ItemNotFound(SchedulerError):
    """The item does not exist or is not owned by the caller."""

    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class SetNotFound(SchedulerError):
    """The problem set does not exist or is not owned by the caller."""

    def __init__(self, set_id: str):
        super().__init__(f"Problem set not found: {set_id}")
        self.set_id = set_id


class VersionConflict(SchedulerError):
    """A conditional write lost the race against another writer."""

    def __init__(self, item_id: str, expected_version: int):
        super().__init__(f"Version conflict on {item_id} (expected v{expected_version})")
        self.item_id = item_id
        self.expected_version = expected_version


class StoreUnavailable(SchedulerError):
    """The store failed, timed out, or stayed contended past the retry bound."""


class InvalidOutcome(SchedulerError, ValueError):
    """Malformed answer event, rejected before any state is touched."""
