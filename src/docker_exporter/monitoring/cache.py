"""FreshnessCache - time-bounded cache for expensive daemon calls.

Some daemon endpoints (container listing with sizes, system disk usage) walk
the storage driver and can take seconds. A FreshnessCache holds the last
loaded value of such a call and only reloads it once it is older than its
TTL, so any number of callers polling at any cadence cost at most one daemon
call per freshness window.

Example:
    ```python
    cache = FreshnessCache("disk_usage", ttl=300, loader=lambda: api.df())
    usage = cache.get()  # loads
    usage = cache.get()  # served from cache for the next 5 minutes
    ```
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


def _identity(value: T) -> T:
    return value


def copy_mapping(value: Mapping[K, V]) -> dict[K, V]:
    """Copier for mapping payloads with immutable values."""
    return dict(value)


class FreshnessCache(Generic[T]):
    """Single-value cache with a loader, a TTL and copy-on-read.

    Refreshes are serialized per instance: while one caller runs the loader,
    concurrent callers wait on the lock and then receive the freshly stored
    value, so the loader runs at most once per staleness window.

    A failed refresh leaves the previous value and its load time untouched
    and re-raises the loader's exception. The next ``get()`` retries right
    away; ``peek()`` still returns the stale value.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        loader: Callable[[], T],
        copier: Callable[[T], T] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            name: Name used in log messages
            ttl: Freshness window in seconds; 0 reloads on every call
            loader: Zero-argument callable producing a new value
            copier: Produces a safe-to-hand-out copy of the value. Required
                when the value is a mutable aggregate; defaults to identity.
            clock: Monotonic time source (seconds)
        """
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        self.name = name
        self.ttl = ttl
        self._loader = loader
        self._copier = copier or _identity
        self._clock = clock
        self._lock = threading.Lock()
        self._value: T | None = None
        self._loaded_at: float | None = None
        self._last_error: BaseException | None = None

    def get(self) -> T:
        """Return the current value, reloading it when stale.

        Raises:
            Exception: Whatever the loader raised, unwrapped
        """
        with self._lock:
            now = self._clock()
            if self._loaded_at is None or now - self._loaded_at >= self.ttl:
                try:
                    value = self._loader()
                except Exception as e:
                    self._last_error = e
                    logger.warning(f"Refreshing {self.name} failed: {e}")
                    raise
                self._value = value
                self._loaded_at = now
                self._last_error = None
                logger.debug(f"Refreshed {self.name}")
            return self._copier(self._value)

    def peek(self) -> T | None:
        """Return a copy of the last loaded value without refreshing.

        Returns:
            The last successfully loaded value, or None if nothing was loaded
        """
        with self._lock:
            if self._loaded_at is None:
                return None
            return self._copier(self._value)

    def invalidate(self) -> None:
        """Force the next ``get()`` to reload; the stale value stays peekable."""
        with self._lock:
            if self._loaded_at is not None:
                self._loaded_at = self._clock() - self.ttl

    @property
    def last_error(self) -> BaseException | None:
        """Error of the most recent refresh attempt, None after a success."""
        with self._lock:
            return self._last_error

    @property
    def loaded(self) -> bool:
        with self._lock:
            return self._loaded_at is not None
