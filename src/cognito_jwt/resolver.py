"""Key resolution: cache lookup, refresh throttling and refresh-then-retry.

KeyResolver decides, for a given ``kid``, whether to serve from the cache,
fetch the key set and serve, or refuse.

Concurrency note: two threads that miss at the same moment may both find the
throttle open and both fetch. There is no single-flight coalescing; the
throttle bounds the fetch rate per interval, not the number in flight.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from .errors import CacheMiss, KeyNotFound, Throttled

if TYPE_CHECKING:
    from .key_cache import KeyCache, KeyRecord
    from .protocols import KeySetFetcher
    from .refresh_gate import RefreshThrottle

logger = logging.getLogger(__name__)


class KeyResolver:
    """Maps a ``kid`` to a KeyRecord, refreshing the key set when allowed.

    Resolution Strategy:
        1. Cache hit: return immediately. A cached ``kid`` is trusted no
           matter how old the cache is.
        2. Miss, throttle closed: raise Throttled without any network call.
        3. Miss, throttle open: fetch the key set, commit it, look up once
           more. Still missing raises KeyNotFound.

    The non-blocking variant stops after step 1 and raises CacheMiss.

    Attributes:
        _cache: Shared key cache, owned by the KeySet.
        _fetcher: Performs the network round trip.
        _throttle: Refresh rate limiter reading the cache's timestamp.
    """

    def __init__(
        self,
        cache: KeyCache,
        fetcher: KeySetFetcher,
        throttle: RefreshThrottle,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._throttle = throttle

    def resolve_blocking(self, key_id: str) -> KeyRecord:
        """Resolve ``key_id``, fetching the key set on a miss if the throttle allows.

        Raises:
            Throttled: Miss, and the last refresh was too recent to retry.
            KeyNotFound: Miss even after a fresh fetch.
            NetworkError: The fetch itself failed.
        """
        record = self._cache.lookup(key_id)
        if record is not None:
            logger.debug("JWKS cache hit for kid=%s", key_id)
            return record

        if not self._throttle.allow():
            raise Throttled()

        logger.debug("JWKS cache miss for kid=%s, refreshing key set", key_id)
        self.refresh()

        record = self._cache.lookup(key_id)
        if record is None:
            raise KeyNotFound(f"Failed to get key set entry for kid {key_id!r}")
        return record

    def resolve_nonblocking(self, key_id: str) -> KeyRecord:
        """Resolve ``key_id`` from the cache only.

        Never performs I/O, never waits on a refresh and never mutates the
        cache.

        Raises:
            CacheMiss: ``key_id`` is not cached. Carries the last refresh time.
        """
        record = self._cache.lookup(key_id)
        if record is None:
            raise CacheMiss(self._cache.last_refresh_time)
        return record

    def refresh(self) -> None:
        """Fetch the key set and commit it, ignoring the throttle.

        The fetch runs outside the cache lock. If it raises, nothing is
        committed and the refresh time is unchanged.
        """
        records = self._fetcher.fetch()
        self._cache.replace_all(records, now=time.time())
        logger.info("JWKS refreshed: %d key(s) committed", len(records))
