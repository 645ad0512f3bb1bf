"""Lazy, memoizing client for the TVDB json api version 2."""

from tvdbcache.client import TVDBClient
from tvdbcache.core.errors import AuthenticationFailure, RequestFailure, TVDBError
from tvdbcache.models.media import Completeness, Episode, Record, Series

# Short alias of the client
TVDB = TVDBClient

__all__ = [
    "TVDB",
    "TVDBClient",
    "TVDBError",
    "RequestFailure",
    "AuthenticationFailure",
    "Completeness",
    "Series",
    "Episode",
    "Record",
]
