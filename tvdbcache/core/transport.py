"""Blocking HTTP transport to the TVDB api."""

import logging
from typing import Any, Mapping, NamedTuple

import niquests

from tvdbcache.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class RawResponse(NamedTuple):
    """Status, parsed JSON body and reason phrase of a completed call."""

    status: int
    body: Any
    reason: str


class Transport:
    """Thin wrapper over a niquests session.

    Connection errors and undecodable success payloads are raised as-is.
    No retries are configured.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self._settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.session = niquests.Session()
        if settings.proxy:
            self.session.proxies = {"http": settings.proxy, "https": settings.proxy}

    def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.session:
            self.session.close()

    def get(
        self,
        path: str,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RawResponse:
        response = self.session.get(
            self.base_url + path,
            params=dict(query or {}),
            headers=dict(headers or {}),
            timeout=self._settings.request_timeout,
        )
        return self._build(response)

    def post(
        self,
        path: str,
        body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RawResponse:
        response = self.session.post(
            self.base_url + path,
            json=dict(body or {}),
            headers=dict(headers or {}),
            timeout=self._settings.request_timeout,
        )
        return self._build(response)

    @staticmethod
    def _build(response: niquests.Response) -> RawResponse:
        status = response.status_code or 0
        reason = response.reason or ""
        if not response.content:
            return RawResponse(status, None, reason)
        if status == 200:
            return RawResponse(status, response.json(), reason)
        # Error pages are not always JSON
        try:
            body = response.json()
        except ValueError:
            logger.debug("Non-JSON body on HTTP %s for %s", status, response.url)
            body = None
        return RawResponse(status, body, reason)
