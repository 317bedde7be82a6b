"""DummySite cache backed by a kopf in-memory index.

kopf lists and watches DummySites, re-lists after a dropped or expired watch
and keeps ``site_index`` current. The classes here are the operator's view of
that mirror: decoded reads, the readiness flag and per-identity locks.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from .models import SiteDescriptor, SiteKey

logger = logging.getLogger(__name__)


def index_site(namespace: Optional[str], name: Optional[str], body: Mapping[str, Any]) -> Dict[SiteKey, Dict[str, Any]]:
    """Map one DummySite to its index entry.

    The raw object is stored as a deep copy, so later reads never alias
    kopf's own body.
    """
    if not name:
        return {}
    return {SiteKey(namespace or "default", name): copy.deepcopy(dict(body))}


class SiteCache:
    """Read-only view over the DummySite index.

    The index maps each ``SiteKey`` to a store of raw objects. A name can
    briefly hold two objects while a deleted site is recreated; the most
    recently indexed one wins.
    """

    def __init__(self, index: Mapping[SiteKey, Any]):
        self.index = index

    def get(self, key: SiteKey) -> Optional[SiteDescriptor]:
        """Return the decoded object for ``key``, or None if it is not cached.

        Raises:
            SpecValidationError: If the cached object's spec cannot be decoded
        """
        store = self.index.get(key)
        objects = list(store) if store is not None else []
        if not objects:
            return None
        return SiteDescriptor.from_object(copy.deepcopy(objects[-1]))

    def keys(self) -> List[SiteKey]:
        return list(self.index)


class CacheSync:
    """Readiness flag, set once the initial list has populated the index."""

    def __init__(self) -> None:
        self._synced = threading.Event()

    @property
    def has_synced(self) -> bool:
        return self._synced.is_set()

    def mark_synced(self, count: Optional[int] = None) -> None:
        if self._synced.is_set():
            return
        self._synced.set()
        if count is None:
            logger.info("DummySite index populated")
        else:
            logger.info("DummySite index populated: %d objects", count)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until synced; False if ``timeout`` expired first."""
        return self._synced.wait(timeout)


class SiteLocks:
    """One lock per DummySite identity.

    kopf serializes change handlers per object, but the resync timer runs
    beside them, so each pass takes the identity's lock first.
    """

    def __init__(self) -> None:
        self._locks: Dict[SiteKey, threading.Lock] = {}
        self._guard = threading.Lock()

    def for_key(self, key: SiteKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
