"""Common utilities and types for folder reconciliation."""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# Per-field update statuses
UNCHANGED = 'unchanged'
APPLIED = 'applied'
FAILED = 'failed'
SKIPPED = 'skipped'


class OperationTimeoutError(Exception):
    """Call context deadline expired."""


class OperationCancelledError(Exception):
    """Call context was cancelled by the caller."""


@dataclass
class CallContext:
    """Deadline and cancellation for one driver invocation.

    Passed explicitly into every remote call. Long-running tasks call
    check() between polls so the caller's deadline is honoured while
    waiting.

    Attributes:
        timeout: Seconds from creation until the deadline (None = no deadline)
    """
    timeout: Optional[float] = None
    deadline: Optional[float] = field(default=None, init=False)
    _cancelled: threading.Event = field(default_factory=threading.Event, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.timeout is not None:
            self.deadline = time.monotonic() + self.timeout

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise if the context is cancelled or past its deadline."""
        if self.cancelled:
            raise OperationCancelledError("Operation cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise OperationTimeoutError(f"Operation timed out after {self.timeout}s")

    def sleep(self, interval: float) -> None:
        """Wait up to interval seconds, waking early on cancel."""
        remaining = self.remaining()
        if remaining is not None:
            interval = min(interval, remaining)
        self._cancelled.wait(interval)
        self.check()


@dataclass
class UpdateResult:
    """Per-field outcome of an update.

    Attributes:
        name: Status of the name field (unchanged, applied, failed, skipped)
        parent: Status of the parent field
        absent: True when the folder no longer exists remotely
    """
    name: str = UNCHANGED
    parent: str = UNCHANGED
    absent: bool = False

    @property
    def applied_fields(self) -> list[str]:
        return [f for f in ('name', 'parent') if getattr(self, f) == APPLIED]

    @property
    def pending_fields(self) -> list[str]:
        """Fields that changed but did not converge."""
        return [f for f in ('name', 'parent') if getattr(self, f) in (FAILED, SKIPPED)]

    @property
    def complete(self) -> bool:
        return not self.absent and not self.pending_fields

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'parent': self.parent,
            'absent': self.absent,
        }
