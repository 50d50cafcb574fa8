"""Runtime settings loaded from the environment."""
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".spaced_review" / "review.db")


class Settings(BaseSettings):
    """Scheduler settings.

    Every field can be overridden with a ``SPACED_REVIEW_`` prefixed
    environment variable, e.g. ``SPACED_REVIEW_MAX_EASE=2.8``.
    """

    model_config = SettingsConfigDict(env_prefix="SPACED_REVIEW_", extra="ignore")

    db_path: str = Field(default=DEFAULT_DB_PATH, description="Path to the SQLite database")

    # --- interval policy ---
    initial_ease: float = Field(default=2.5, description="Ease factor given to new items")
    min_ease: float = Field(default=1.3, gt=0, description="Ease factor floor")
    max_ease: float = Field(default=3.0, description="Ease factor ceiling")
    ease_bonus: float = Field(default=0.1, ge=0, description="Ease added on a successful recall")
    ease_penalty: float = Field(default=0.2, ge=0, description="Ease removed on a lapse")
    max_interval_days: int = Field(default=365, ge=1, description="Longest spacing between reviews")

    # --- store access ---
    max_write_attempts: int = Field(
        default=3, ge=1, description="Read-compute-write attempts before giving up on contention",
    )
    store_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Default busy timeout for each store call",
    )

    session_size: int = Field(default=15, ge=1, description="Items per interactive review session")
    log_level: str = Field(default="INFO")

    @model_validator(mode="after")
    def _check_ease_bounds(self) -> "Settings":
        if not self.min_ease <= self.initial_ease <= self.max_ease:
            raise ValueError(
                f"initial_ease {self.initial_ease} must lie within "
                f"[{self.min_ease}, {self.max_ease}]"
            )
        return self


settings = Settings()
