import pytest
from typing import Any, Callable, NamedTuple

from tvdbcache.client import TVDBClient
from tvdbcache.core.config import Settings
from tvdbcache.core.transport import RawResponse


class Call(NamedTuple):
    method: str
    path: str
    params: dict
    headers: dict


def ok(data: Any) -> RawResponse:
    return RawResponse(200, {"data": data}, "OK")


class FakeTransport:
    """In-memory stand-in for Transport that records every request.

    Routes map (method, path) to a RawResponse or to a callable
    ``(params, headers) -> RawResponse``. Unknown routes answer 404.
    """

    def __init__(self):
        self.calls: list[Call] = []
        self.routes: dict[tuple[str, str], RawResponse | Callable] = {
            ("POST", "/login"): RawResponse(200, {"token": "token-1"}, "OK"),
        }
        self.closed = False

    def route(self, path: str, response, method: str = "GET") -> None:
        self.routes[(method, path)] = response

    def _respond(self, method, path, params, headers) -> RawResponse:
        self.calls.append(Call(method, path, dict(params or {}), dict(headers or {})))
        response = self.routes.get((method, path))
        if response is None:
            return RawResponse(404, {"Error": "Resource not found"}, "Not Found")
        if callable(response):
            return response(dict(params or {}), dict(headers or {}))
        return response

    def get(self, path, query=None, headers=None) -> RawResponse:
        return self._respond("GET", path, query, headers)

    def post(self, path, body=None, headers=None) -> RawResponse:
        return self._respond("POST", path, body, headers)

    def close(self) -> None:
        self.closed = True

    def count(self, path: str, method: str = "GET") -> int:
        return sum(1 for c in self.calls if c.method == method and c.path == path)

    def gets(self) -> list[Call]:
        return [c for c in self.calls if c.method == "GET"]


def by_language(**payloads) -> Callable:
    """Route answering a different ``data`` payload per Accept-Language."""

    def respond(params, headers):
        language = headers.get("Accept-Language")
        if language not in payloads:
            return RawResponse(404, {"Error": "No translation"}, "Not Found")
        return ok(payloads[language])

    return respond


SERIES_LISTING = {
    "id": 121361,
    "seriesName": "Game of Thrones",
    "aliases": ["GoT"],
    "banner": "graphical/121361-g19.jpg",
    "firstAired": "2011-04-17",
    "overview": "Seven noble families fight for control.",
    "status": "Ended",
}

SERIES_DETAIL = {
    **SERIES_LISTING,
    "added": "2008-01-01",
    "network": "HBO",
    "rating": "TV-MA",
    "runtime": "55",
    "siteRating": 9.4,
    "imdbId": "tt0944947",
}

SERIES_DETAIL_IT = {
    **SERIES_DETAIL,
    "seriesName": "Il Trono di Spade",
    "overview": "Sette famiglie nobili.",
}


@pytest.fixture
def settings():
    return Settings(api_key="test-key", language="en", _env_file=None)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(settings, transport):
    return TVDBClient(settings=settings, transport=transport)
