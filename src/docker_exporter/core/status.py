"""Process-wide "last error per named operation" registry.

Top-level client operations report their outcome here so health endpoints
or the CLI can inspect which daemon calls are currently failing. A failure
sets the named slot, a success clears it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationError:
    """Most recent failure of a named operation."""

    operation: str
    error: BaseException
    timestamp: datetime

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


class ErrorRegistry:
    """Thread-safe map of operation name to its last error."""

    def __init__(self) -> None:
        self._errors: dict[str, OperationError] = {}
        self._lock = threading.Lock()

    def set_error(self, operation: str, error: BaseException | None) -> None:
        """Record the outcome of ``operation``.

        Args:
            operation: Operation name (see ``core.constants.OP_*``)
            error: The failure, or None to mark the operation as healthy
        """
        with self._lock:
            if error is None:
                if self._errors.pop(operation, None) is not None:
                    logger.debug(f"Operation {operation} recovered")
                return
            self._errors[operation] = OperationError(operation, error, datetime.now())

    def get(self, operation: str) -> OperationError | None:
        with self._lock:
            return self._errors.get(operation)

    def snapshot(self) -> dict[str, OperationError]:
        """Return a copy of all current errors keyed by operation."""
        with self._lock:
            return dict(self._errors)

    @property
    def healthy(self) -> bool:
        with self._lock:
            return not self._errors

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()


# Default registry shared by every client in the process.
registry = ErrorRegistry()
