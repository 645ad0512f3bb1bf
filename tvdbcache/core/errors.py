"""Domain exceptions raised by the TVDB client."""


class TVDBError(Exception):
    """Base class for every error raised by tvdbcache."""


class RequestFailure(TVDBError):
    """A read answered with a status other than 200 or 404.

    ``message`` is the API's ``Error`` field when the body carries one,
    otherwise the transport's reason phrase.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __repr__(self) -> str:
        return f"RequestFailure(status_code={self.status_code!r}, message={self.message!r})"


class AuthenticationFailure(RequestFailure):
    """Login or token refresh was refused. Not retried."""
