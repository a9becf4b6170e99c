"""
Expiring cache of volume locations.

Maps a volume ID to the locations the master last reported for it. Entries
expire after a TTL and are removed lazily on access and by a periodic sweep
running in a background thread. The cache only accelerates lookups: every
caller must cope with a miss and with a stale hit.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from common.constants import (
    LOCATION_CACHE_TTL_SECONDS,
    LOCATION_CACHE_SWEEP_INTERVAL_SECONDS
)
from common.logging_config import get_logger
from weedclient.models import Location, VolumeLocations

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """
    Single cache entry.

    Attributes:
        locations: Immutable location set for the volume
        expires_at: Clock reading after which the entry is dropped
    """
    locations: VolumeLocations
    expires_at: float


class LocationCache:
    """
    Thread-safe expiring cache for volume locations.

    Entries are replaced whole under a lock, so a put racing a sweep leaves
    either the new entry or nothing, never a partial location set.
    """

    def __init__(
        self,
        ttl: float = LOCATION_CACHE_TTL_SECONDS,
        sweep_interval: float = LOCATION_CACHE_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize location cache.

        Args:
            ttl: Seconds after insertion when an entry expires
            sweep_interval: Seconds between background sweeps
            clock: Monotonic time source
        """
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._lock = threading.RLock()
        self._sweeper_lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._sweeper: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, volume_id: str) -> Optional[VolumeLocations]:
        """
        Return cached locations for a volume, or None on miss or expiry.

        Args:
            volume_id: Volume ID

        Returns:
            Location tuple, or None
        """
        with self._lock:
            entry = self._entries.get(volume_id)
            if entry is None:
                return None

            if self._clock() >= entry.expires_at:
                del self._entries[volume_id]
                logger.debug(f"Location cache entry expired [volume_id={volume_id}]")
                return None

            return entry.locations

    def put(self, volume_id: str, locations: Iterable[Location]) -> None:
        """
        Store locations for a volume, overwriting any previous entry.

        Args:
            volume_id: Volume ID
            locations: Non-empty locations, primary first

        Raises:
            ValueError: If locations is empty
        """
        frozen = tuple(locations)
        if not frozen:
            raise ValueError(f"Refusing to cache empty location set for volume {volume_id}")

        with self._lock:
            self._entries[volume_id] = CacheEntry(
                locations=frozen,
                expires_at=self._clock() + self.ttl
            )

        logger.debug(f"Location cache updated [volume_id={volume_id}, locations={len(frozen)}]")

    def sweep(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                volume_id for volume_id, entry in self._entries.items()
                if now >= entry.expires_at
            ]
            for volume_id in expired:
                del self._entries[volume_id]

        if expired:
            logger.debug(f"Location cache swept {len(expired)} expired entry(ies)")

        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def start(self) -> None:
        """
        Start the background sweep thread.

        The thread is a daemon and is started only once; subsequent calls
        are no-ops while it is alive.
        """
        with self._sweeper_lock:
            if self._sweeper is not None and self._sweeper.is_alive():
                return

            self._stop_event.clear()
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                daemon=True,
                name="LocationCacheSweep"
            )
            self._sweeper.start()

        logger.debug(f"Location cache sweeper started [interval={self.sweep_interval}s]")

    def close(self) -> None:
        """Stop the sweep thread and drop all entries."""
        self._stop_event.set()

        with self._sweeper_lock:
            sweeper = self._sweeper
            self._sweeper = None

        if sweeper is not None and sweeper.is_alive():
            sweeper.join(timeout=5.0)
            logger.debug("Location cache sweeper stopped")

        self.clear()

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(timeout=self.sweep_interval):
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Error in location cache sweep: {e}", exc_info=True)
