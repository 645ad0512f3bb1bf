"""Client for the TVDB json api version 2.

Every GET goes through a per-client RequestCache, so a given
(path, params, language) reaches the network once per client. Records
returned by listings are partial and complete themselves on demand.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Mapping

from tvdbcache.core.config import Settings, get_settings
from tvdbcache.core.errors import AuthenticationFailure, TVDBError
from tvdbcache.core.transport import Transport
from tvdbcache.models.media import Completeness, Episode, Record, Series, image_url
from tvdbcache.services import pagination
from tvdbcache.services.classifier import Outcome, classify, error_message, unwrap
from tvdbcache.services.completion import EntityCompletionTracker
from tvdbcache.services.request_cache import RequestCache
from tvdbcache.services.search import best_match

logger = logging.getLogger(__name__)

ENTITY_TYPES = {Series.KIND: Series, Episode.KIND: Episode}


class TVDBClient:
    """Blocking TVDB client with memoized reads and lazy entities.

    Example:
        client = TVDBClient(api_key="...")
        got = client.best_search("Game of Thrones")
        with client.with_language("it"):
            print(got["1x1"].name)
    """

    def __init__(
        self,
        api_key: str | None = None,
        language: str | None = None,
        settings: Settings | None = None,
        transport: Transport | None = None,
    ):
        self._settings = settings or get_settings()
        api_key = (api_key or self._settings.api_key or "").strip()
        if not api_key:
            raise TVDBError("TVDB_API_KEY is not set.")
        self._api_key = api_key
        self._language = language or self._settings.language
        self._local = threading.local()
        self._token: str | None = None
        self.transport = transport or Transport(self._settings)
        self.cache = RequestCache(self._load)
        self.tracker = EntityCompletionTracker(self.fetch_entity)
        self.login()

    # Language

    @property
    def language(self) -> str:
        """Default language of this client."""
        return self._language

    @language.setter
    def language(self, value: str) -> None:
        self._language = str(value)

    @property
    def active_language(self) -> str:
        """Scoped override of the current thread, else the default language."""
        return getattr(self._local, "language", None) or self._language

    def resolve_language(self, language: str | None) -> str:
        return str(language) if language else self.active_language

    @contextmanager
    def with_language(self, language: str) -> Iterator["TVDBClient"]:
        """Read data in ``language`` inside the block (current thread only).

        The previous language is restored on every exit, errors included.
        """
        previous = getattr(self._local, "language", None)
        self._local.language = str(language)
        try:
            yield self
        finally:
            self._local.language = previous

    # Authentication

    def _headers(self, language: str | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if language:
            headers["Accept-Language"] = language
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _take_token(self, response, action: str) -> str:
        if response.status != 200:
            message = error_message(response.body, response.reason)
            logger.error("TVDB %s failed with HTTP %s: %s", action, response.status, message)
            raise AuthenticationFailure(response.status, message)
        token = response.body.get("token") if isinstance(response.body, dict) else None
        if not token:
            logger.error("TVDB %s answered without a token", action)
            raise AuthenticationFailure(response.status, f"No token in {action} response")
        self._token = token
        return token

    def login(self) -> str:
        """Exchange the api key for a token (``POST /login``, never memoized)."""
        response = self.transport.post(
            "/login", {"apikey": self._api_key}, self._headers()
        )
        self._take_token(response, "login")
        logger.info("Logged in to %s", self._settings.base_url)
        return self._token

    def refresh_token(self) -> str:
        """Refresh the api token (``GET /refresh_token``, never memoized)."""
        response = self.transport.get("/refresh_token", {}, self._headers())
        self._take_token(response, "token refresh")
        logger.info("Refreshed TVDB token")
        return self._token

    # Memoized reads

    def _load(self, path: str, params: dict[str, Any], language: str) -> Outcome:
        response = self.transport.get(path, params, self._headers(language))
        return classify(response.status, response.body, response.reason)

    def _get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        language: str | None = None,
    ) -> Outcome:
        return self.cache.fetch(path, params, self.resolve_language(language))

    def fetch_entity(self, kind: str, entity_id: int, language: str | None = None) -> Outcome:
        """Outcome of the detail endpoint ``/{kind}/{id}``."""
        return self._get(f"/{kind}/{int(entity_id)}", None, language)

    def fetch_listing(
        self,
        kind: str,
        parent_id: int,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        language: str | None = None,
    ) -> Outcome:
        """Outcome of a listing endpoint ``/{kind}/{parent_id}/{endpoint}``."""
        path = f"/{kind}/{int(parent_id)}/{endpoint.strip('/')}"
        return self._get(path, params, language)

    def _records(self, outcome: Outcome) -> List[Record]:
        return [Record.model_validate(item) for item in unwrap(outcome, []) or []]

    def _record(self, outcome: Outcome) -> Record | None:
        data = unwrap(outcome)
        return Record.model_validate(data) if data is not None else None

    def _entity(self, kind: str, outcome: Outcome, language: str):
        data = unwrap(outcome)
        if data is None:
            return None
        return ENTITY_TYPES[kind](self, data, language, Completeness.COMPLETE)

    def _entities(self, kind: str, outcome: Outcome, language: str) -> list:
        items = unwrap(outcome, []) or []
        return [ENTITY_TYPES[kind](self, item, language) for item in items]

    # Endpoints

    def languages(self) -> List[Record]:
        """All languages usable as Accept-Language (``GET /languages``)."""
        return self._records(self._get("/languages"))

    def language_info(self, language_id: int) -> Record | None:
        """``GET /languages/{id}``."""
        return self._record(self._get(f"/languages/{int(language_id)}"))

    def search(
        self,
        name: str | None = None,
        imdbId: str | None = None,
        zap2itId: str | None = None,
        language: str | None = None,
    ) -> List[Series]:
        """Search series by name, IMDB id or Zap2it id (``GET /search/series``)."""
        language = self.resolve_language(language)
        params = {"name": name, "imdbId": imdbId, "zap2itId": zap2itId}
        params = {k: v for k, v in params.items() if v is not None}
        outcome = self._get("/search/series", params, language)
        return self._entities(Series.KIND, outcome, language)

    def best_search(self, name: str, language: str | None = None) -> Series | None:
        """Return the series that best matches ``name``."""
        return best_match(self.search(name=name, language=language), name)

    def series(self, series_id: int, language: str | None = None) -> Series | None:
        """Full record of a series (``GET /series/{id}``)."""
        language = self.resolve_language(language)
        return self._entity(Series.KIND, self.fetch_entity(Series.KIND, series_id, language), language)

    def series_summary(self, series_id: int) -> Record | None:
        """Episodes and seasons summary (``GET /series/{id}/episodes/summary``)."""
        return self._record(self.fetch_listing(Series.KIND, series_id, "episodes/summary"))

    def episodes(
        self,
        series_id: int,
        params: Mapping[str, Any] | None = None,
        language: str | None = None,
    ) -> List[Episode]:
        """One page of episodes, without aggregation.

        Filters other than ``page`` use ``/series/{id}/episodes/query``.
        """
        language = self.resolve_language(language)
        params = dict(params or {})
        endpoint = "episodes/query" if set(params) - {"page"} else "episodes"
        outcome = self.fetch_listing(Series.KIND, series_id, endpoint, params, language)
        return self._entities(Episode.KIND, outcome, language)

    def list_episodes(
        self,
        series_id: int,
        params: Mapping[str, Any] | None = None,
        language: str | None = None,
    ) -> List[Episode]:
        """Every episode of a series sorted by (season, episode).

        An explicit ``page`` parameter returns that page only.
        """
        return pagination.list_episodes(
            self.episodes, series_id, params, self.resolve_language(language)
        )

    def actors(self, series_id: int) -> List[Record]:
        """``GET /series/{id}/actors``."""
        return self._records(self.fetch_listing(Series.KIND, series_id, "actors"))

    def episode(self, episode_id: int, language: str | None = None) -> Episode | None:
        """Full record of an episode (``GET /episodes/{id}``)."""
        language = self.resolve_language(language)
        return self._entity(Episode.KIND, self.fetch_entity(Episode.KIND, episode_id, language), language)

    def images_summary(self, series_id: int) -> Record | None:
        """``GET /series/{id}/images``."""
        return self._record(self.fetch_listing(Series.KIND, series_id, "images"))

    def images(self, series_id: int, params: Mapping[str, Any]) -> List[Record]:
        """``GET /series/{id}/images/query`` filtered by keyType, resolution, subKey."""
        return self._records(self.fetch_listing(Series.KIND, series_id, "images/query", params))

    def image_url(self, path: str | None) -> str | None:
        """Absolute url of a relative image path returned by the api."""
        return image_url(path, self._settings.image_base_url)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "TVDBClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
