"""In-memory cache of verification keys.

KeyCache holds every key seen in the remote key set, keyed by ``kid``, plus
the time of the last successful refresh. It is shared between request
threads and guarded by a single lock:

- Lookups and refreshes each take the lock once, so a reader sees either the
  whole old key set or the whole new one, never a partial update.
- The network fetch never happens under the lock; only the final
  ``replace_all`` does.
- Refreshes insert or overwrite entries but never remove them. Keys from a
  rotated-out signer stay usable until the process restarts.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jwt import PyJWK


@dataclass(frozen=True, slots=True)
class KeyRecord:
    """An immutable verification key.

    Attributes:
        key_id: The ``kid`` published in the key set.
        algorithm: JWA algorithm tag, e.g. "RS256".
        key: Parsed public key, usable directly by ``jwt.decode``.
    """

    key_id: str
    algorithm: str
    key: PyJWK


class KeyCache:
    """Thread-safe ``kid`` -> KeyRecord table with a last-refresh timestamp.

    Example:
        ```python
        cache = KeyCache()
        cache.replace_all([record], now=time.time())
        cache.lookup(record.key_id)  # -> record
        ```
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, KeyRecord] = {}
        self._last_refresh_time: float | None = None

    def lookup(self, key_id: str) -> KeyRecord | None:
        """Return the cached record for ``key_id`` or None. Never does I/O."""
        with self._lock:
            return self._entries.get(key_id)

    def replace_all(self, records: Iterable[KeyRecord], now: float) -> None:
        """Insert or overwrite ``records`` and stamp the refresh time.

        The whole update is a single critical section. ``now`` never moves
        the refresh time backwards, so a wall-clock step back cannot reopen
        the throttle window early.
        """
        records = list(records)
        with self._lock:
            for record in records:
                self._entries[record.key_id] = record
            if self._last_refresh_time is None or now > self._last_refresh_time:
                self._last_refresh_time = now

    @property
    def last_refresh_time(self) -> float | None:
        """Unix timestamp of the last successful refresh, None before the first."""
        with self._lock:
            return self._last_refresh_time

    def snapshot(self) -> Mapping[str, KeyRecord]:
        """Read-only copy of the current entries."""
        with self._lock:
            return MappingProxyType(dict(self._entries))

    def __contains__(self, key_id: object) -> bool:
        with self._lock:
            return key_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
