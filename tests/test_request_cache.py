import threading
import time

import pytest

from tvdbcache.services.classifier import EMPTY, Failure, Success
from tvdbcache.services.request_cache import RequestCache, normalize_params


class CountingLoader:
    def __init__(self, outcome=None, delay: float = 0.0):
        self.outcome = outcome if outcome is not None else Success({"data": []})
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, path, params, language):
        with self._lock:
            self.calls.append((path, params, language))
        if self.delay:
            time.sleep(self.delay)
        return self.outcome


def test_same_key_loads_once():
    loader = CountingLoader()
    cache = RequestCache(loader)

    first = cache.fetch("/series/1", None, "en")
    second = cache.fetch("/series/1", None, "en")

    assert first is second
    assert len(loader.calls) == 1
    assert len(cache) == 1


def test_parameter_order_does_not_matter():
    loader = CountingLoader()
    cache = RequestCache(loader)

    cache.fetch("/series/1/episodes/query", {"airedSeason": 1, "page": 2}, "en")
    cache.fetch("/series/1/episodes/query", {"page": "2", "airedSeason": "1"}, "en")

    assert len(loader.calls) == 1


def test_language_and_params_are_part_of_the_key():
    loader = CountingLoader()
    cache = RequestCache(loader)

    cache.fetch("/series/1", None, "en")
    cache.fetch("/series/1", None, "it")
    cache.fetch("/series/1", {"page": 1}, "en")

    assert [c[2] for c in loader.calls] == ["en", "it", "en"]
    assert cache.make_key("/series/1", None, "en") in cache
    assert cache.make_key("/series/2", None, "en") not in cache


@pytest.mark.parametrize("outcome", [EMPTY, Failure(500, "Database down")])
def test_empty_and_failure_are_memoized(outcome):
    loader = CountingLoader(outcome)
    cache = RequestCache(loader)

    assert cache.fetch("/episodes/9", None, "en") == outcome
    assert cache.fetch("/episodes/9", None, "en") == outcome
    assert len(loader.calls) == 1


def test_loader_exception_is_not_memoized():
    calls = []

    def flaky(path, params, language):
        calls.append(path)
        if len(calls) == 1:
            raise ConnectionError("connection reset")
        return Success({"data": {"id": 1}})

    cache = RequestCache(flaky)
    with pytest.raises(ConnectionError):
        cache.fetch("/series/1", None, "en")

    assert cache.fetch("/series/1", None, "en").data == {"id": 1}
    assert len(calls) == 2


def test_none_params_are_dropped_before_loading():
    loader = CountingLoader()
    cache = RequestCache(loader)

    cache.fetch("/search/series", {"name": "Lost", "imdbId": None}, "en")
    cache.fetch("/search/series", {"name": "Lost"}, "en")

    assert loader.calls == [("/search/series", {"name": "Lost"}, "en")]


def test_normalize_params():
    assert normalize_params(None) == frozenset()
    assert normalize_params({"a": 1, "b": "x"}) == normalize_params({"b": "x", "a": "1"})
    assert normalize_params({"a": 1}) != normalize_params({"a": 2})


def test_concurrent_callers_share_one_load():
    loader = CountingLoader(Success({"data": {"id": 1}}), delay=0.05)
    cache = RequestCache(loader)
    results = []
    results_lock = threading.Lock()

    def worker():
        outcome = cache.fetch("/series/1", {"b": 2, "a": 1}, "en")
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(loader.calls) == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)
