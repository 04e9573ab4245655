"""
Duplicate call filter.

Recorders at different sites often capture the same transmission and upload
it within seconds of each other. The gate remembers recent call fingerprints
in a bounded LRU cache and tells the caller whether a fingerprint was seen.
"""

import threading

from cachetools import LRUCache

from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class DedupGate:
    """
    Thread-safe, fixed-capacity set of recently seen call fingerprints.

    Eviction only ever causes a very late resubmission to slip through as
    new; a fingerprint that was never inserted is never reported as seen.
    """

    def __init__(self, max_size: int = 1000):
        if max_size < 1:
            raise ValueError(f"Dedup cache size must be positive, got {max_size}")
        self._seen: LRUCache = LRUCache(maxsize=max_size)
        self._lock = threading.Lock()
        self.max_size = max_size

    def check_and_mark(self, fingerprint: str) -> bool:
        """
        Record ``fingerprint`` and report whether it was already present.

        The membership test and the insert happen under one lock, so two
        concurrent submissions of the same call cannot both be treated as new.

        Args:
            fingerprint: Call dedup key

        Returns:
            True if the fingerprint was already present (duplicate)
        """
        with self._lock:
            if fingerprint in self._seen:
                return True
            self._seen[fingerprint] = True
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __contains__(self, fingerprint: str) -> bool:
        with self._lock:
            return fingerprint in self._seen
