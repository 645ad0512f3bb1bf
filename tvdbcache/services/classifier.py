"""Classification of raw api responses into outcomes."""

from typing import Any, NamedTuple

from tvdbcache.core.errors import RequestFailure


class Success(NamedTuple):
    """HTTP 200. ``payload`` is the parsed response body."""

    payload: Any

    @property
    def data(self) -> Any:
        if isinstance(self.payload, dict):
            return self.payload.get("data")
        return None


class Empty(NamedTuple):
    """HTTP 404: the resource does not exist."""


EMPTY = Empty()


class Failure(NamedTuple):
    """Any status other than 200 and 404."""

    status_code: int
    message: str


Outcome = Success | Empty | Failure


def error_message(body: Any, reason: str) -> str:
    """Return the api ``Error`` field if present, else the transport reason."""
    if isinstance(body, dict) and body.get("Error"):
        return str(body["Error"])
    return reason


def classify(status: int, body: Any, reason: str = "") -> Outcome:
    """Map a status code and parsed body to an outcome."""
    if status == 200:
        return Success(body)
    if status == 404:
        return EMPTY
    return Failure(status, error_message(body, reason))


def unwrap(outcome: Outcome, empty: Any = None) -> Any:
    """Return the ``data`` of a success, ``empty`` for a 404, raise on failure."""
    if isinstance(outcome, Success):
        return outcome.data
    if isinstance(outcome, Failure):
        raise RequestFailure(outcome.status_code, outcome.message)
    return empty
