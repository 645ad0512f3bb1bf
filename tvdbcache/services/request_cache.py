"""Per-client memoization of idempotent api reads."""

import logging
import math
import threading
from typing import Any, Callable, Hashable, Mapping

from cachetools import Cache
from cachetools.keys import hashkey

from tvdbcache.services.classifier import Outcome

logger = logging.getLogger(__name__)

Loader = Callable[[str, dict[str, Any], str], Outcome]


def normalize_params(params: Mapping[str, Any] | None) -> frozenset:
    """Order-independent form of a query mapping.

    Values are compared by their query-string form, so ``1`` and ``"1"`` are
    the same parameter value.
    """
    if not params:
        return frozenset()
    return frozenset((str(k), str(v)) for k, v in params.items() if v is not None)


class RequestCache:
    """Memoizes the outcome of each GET for the lifetime of its client.

    Successes, 404s and failures are all kept: a key reaches the network
    at most once. There is no expiry and no eviction, so data changed
    remotely during a session is not seen again. Exceptions raised by the
    loader are not stored.
    """

    method = "GET"

    def __init__(self, loader: Loader):
        self._loader = loader
        self._outcomes: Cache = Cache(maxsize=math.inf)
        self._lock = threading.Lock()
        self._key_locks: dict[Hashable, threading.Lock] = {}

    def make_key(
        self, path: str, params: Mapping[str, Any] | None, language: str
    ) -> Hashable:
        return hashkey(self.method, path, normalize_params(params), language)

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._outcomes

    def fetch(
        self, path: str, params: Mapping[str, Any] | None, language: str
    ) -> Outcome:
        """Return the memoized outcome for the key, loading it once if needed."""
        key = self.make_key(path, params, language)
        with self._lock:
            if key in self._outcomes:
                logger.debug("Cache hit: %s %s [%s]", self.method, path, language)
                return self._outcomes[key]
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # Another caller may have loaded it while we waited
            with self._lock:
                if key in self._outcomes:
                    return self._outcomes[key]

            logger.debug("Cache miss: %s %s [%s]", self.method, path, language)
            query = {k: v for k, v in (params or {}).items() if v is not None}
            outcome = self._loader(path, query, language)

            with self._lock:
                self._outcomes[key] = outcome
                self._key_locks.pop(key, None)
        return outcome
