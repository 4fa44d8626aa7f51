"""Error taxonomy and cancellation context shared by store and detector operations."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta


@dataclass(slots=True)
class ReleaseGuardError(Exception):
    """Base error returned by store, detector and guard operations."""

    message: str
    code: str = "release_guard_error"
    retryable: bool = False

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class NotFoundError(ReleaseGuardError):
    """Lookup by ID matched no row."""

    code: str = "not_found"


@dataclass(slots=True)
class InvalidArgumentError(ReleaseGuardError):
    """Malformed query parameters, profile or candidate."""

    code: str = "invalid_argument"


@dataclass(slots=True)
class ConflictError(ReleaseGuardError):
    """Constraint violation while writing to the store."""

    code: str = "conflict"


@dataclass(slots=True)
class OperationCanceledError(ReleaseGuardError):
    """Caller canceled the operation before it completed."""

    code: str = "canceled"


@dataclass(slots=True)
class DeadlineExceededError(ReleaseGuardError):
    """Caller deadline passed before the operation completed."""

    code: str = "deadline_exceeded"
    retryable: bool = True


@dataclass(slots=True)
class StoreUnavailableError(ReleaseGuardError):
    """Underlying database could not be reached or is locked."""

    code: str = "unavailable"
    retryable: bool = True


@dataclass(slots=True)
class OperationContext:
    """Cancellation and deadline carrier passed into repository operations.

    The repository calls :meth:`raise_if_done` before doing work and again
    before committing, so a context that is canceled mid-operation leaves no
    partial mutation behind.
    """

    deadline: datetime | None = None
    _canceled: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def with_timeout(cls, seconds: float) -> OperationContext:
        return cls(deadline=datetime.now(tz=UTC) + timedelta(seconds=seconds))

    def cancel(self) -> None:
        self._canceled.set()

    @property
    def canceled(self) -> bool:
        return self._canceled.is_set()

    def raise_if_done(self) -> None:
        if self._canceled.is_set():
            raise OperationCanceledError("Operation canceled by caller.")
        if self.deadline is not None and datetime.now(tz=UTC) >= self.deadline:
            raise DeadlineExceededError(
                f"Operation deadline exceeded (deadline={self.deadline.isoformat()}).",
            )


def check_context(ctx: OperationContext | None) -> None:
    """Raise if the optional context is canceled or past its deadline."""

    if ctx is not None:
        ctx.raise_if_done()
