"""Rate limiting for key-set refreshes triggered by cache misses.

A token carrying an unknown ``kid`` makes the resolver consider a refresh.
Without a limit, an unreachable endpoint, or an attacker sending random
``kid`` values, would turn every request into an outbound JWKS fetch.

RefreshThrottle keys its decision off the wall-clock time elapsed since the
cache's last *successful* refresh, read from the KeyCache itself. It keeps no
timing state of its own, so the decision is the same for every concurrent
caller: once a refresh commits, all misses inside the interval are refused
regardless of how many threads are asking.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .key_cache import KeyCache

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL: Final[float] = 60.0 * 5
"""Default minimum seconds between miss-triggered refreshes."""

_DEFAULT_ALERT_THRESHOLD: Final[int] = 5
"""Consecutive denials before a warning is logged."""


class RefreshThrottle:
    """Decides whether a cache miss may trigger a key-set refresh.

    A cache that has never been refreshed is always allowed to fetch, so the
    first verification is never throttled. After that, a refresh is allowed
    only once ``min_interval`` seconds have passed since the last one.

    Denied attempts are counted and a warning is logged every
    ``alert_threshold`` denials. The counter only drives logging and never
    changes a decision.

    Attributes:
        _cache: Cache whose ``last_refresh_time`` drives the decision.
        _min_interval: Minimum seconds between allowed refreshes.
        _alert_threshold: Denials between warnings.
        _lock: Guards the denial counter.
        _denied: Denials since the last allowed refresh.
    """

    def __init__(
        self,
        cache: KeyCache,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        alert_threshold: int = _DEFAULT_ALERT_THRESHOLD,
    ) -> None:
        """Initialize the throttle.

        Args:
            cache: The key cache the refreshes commit into.
            min_interval: Minimum seconds between refreshes. Cognito rotates
                keys rarely, so minutes are typical.
            alert_threshold: Number of denials between warning logs.

        Raises:
            ValueError: If min_interval or alert_threshold are invalid.
        """
        if alert_threshold < 1:
            raise ValueError(f"alert_threshold must be at least 1, got {alert_threshold}")

        self._cache = cache
        self._min_interval = _check_interval(min_interval)
        self._alert_threshold = alert_threshold

        self._lock = threading.Lock()
        self._denied: int = 0

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @min_interval.setter
    def min_interval(self, seconds: float) -> None:
        self._min_interval = _check_interval(seconds)

    def elapsed(self, now: float) -> float:
        """Seconds since the last refresh.

        Returns ``min_interval`` when there has been no refresh yet, which
        makes a never-fetched cache immediately eligible.
        """
        last = self._cache.last_refresh_time
        if last is None:
            return self._min_interval
        return now - last

    def allow(self) -> bool:
        """Check whether a refresh may run now.

        Returns:
            True if the interval has elapsed (the denial counter is reset).
            False if the last refresh is too recent.
        """
        elapsed = self.elapsed(time.time())

        with self._lock:
            if elapsed < self._min_interval:
                self._denied += 1
                if self._denied % self._alert_threshold == 0:
                    logger.warning(
                        "JWKS refresh throttled: %d denials, %.1fs since last refresh (min %.1fs)",
                        self._denied,
                        elapsed,
                        self._min_interval,
                    )
                return False

            self._denied = 0
            return True

    @property
    def denied(self) -> int:
        """Denials since the last allowed refresh."""
        with self._lock:
            return self._denied


def _check_interval(seconds: float) -> float:
    if seconds <= 0:
        raise ValueError(f"min_interval must be positive, got {seconds}")
    return float(seconds)
