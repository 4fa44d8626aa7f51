"""Runtime configuration for the release store and duplicate checks."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(slots=True)
class StoreSettings:
    """Release store settings."""

    busy_timeout_ms: int = 5_000
    delete_batch_size: int = 500
    retention_hours: int = 0


@dataclass(slots=True)
class QuerySettings:
    """Pagination defaults for release search."""

    default_page_size: int = 20
    max_page_size: int = 500


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".release_guard.db")
    log_level: str = "WARNING"
    store: StoreSettings = field(default_factory=StoreSettings)
    query: QuerySettings = field(default_factory=QuerySettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("RELEASE_GUARD_DB_PATH", ".release_guard.db")),
            log_level=os.getenv("RELEASE_GUARD_LOG_LEVEL", "WARNING").strip().upper(),
            store=StoreSettings(
                busy_timeout_ms=_env_int("RELEASE_GUARD_BUSY_TIMEOUT_MS", 5_000),
                delete_batch_size=_env_int("RELEASE_GUARD_DELETE_BATCH_SIZE", 500),
                retention_hours=_env_int("RELEASE_GUARD_RETENTION_HOURS", 0),
            ),
            query=QuerySettings(
                default_page_size=_env_int("RELEASE_GUARD_DEFAULT_PAGE_SIZE", 20),
                max_page_size=_env_int("RELEASE_GUARD_MAX_PAGE_SIZE", 500),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if any value is out of range."""

        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"RELEASE_GUARD_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}: "
                f"{self.log_level!r}",
            )
        if self.store.busy_timeout_ms <= 0:
            raise ValueError("RELEASE_GUARD_BUSY_TIMEOUT_MS must be > 0.")
        if self.store.delete_batch_size <= 0:
            raise ValueError("RELEASE_GUARD_DELETE_BATCH_SIZE must be > 0.")
        if self.store.retention_hours < 0:
            raise ValueError("RELEASE_GUARD_RETENTION_HOURS must be >= 0.")
        if self.query.default_page_size <= 0:
            raise ValueError("RELEASE_GUARD_DEFAULT_PAGE_SIZE must be > 0.")
        if self.query.max_page_size < self.query.default_page_size:
            raise ValueError(
                "RELEASE_GUARD_MAX_PAGE_SIZE must be >= RELEASE_GUARD_DEFAULT_PAGE_SIZE.",
            )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error
