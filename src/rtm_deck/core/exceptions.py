"""Exceptions raised by DAOs and widgets."""

from typing import Optional


class DaoError(Exception):
    """Base class for every DAO failure."""


class EndpointUrlNotDefined(DaoError):
    """No URL template configured for a fetch method."""


class EndpointUrlNotAssembled(DaoError):
    """A URL template still has placeholders without values."""


class FetchNotImplemented(DaoError, AttributeError):
    """A fetch operation was requested that the DAO does not declare."""


class ParserNotFound(DaoError):
    """No parser is registered for the requested response format."""


class ResponseParseError(DaoError):
    """The response body could not be parsed in the declared format."""


class CacheNotConfigured(DaoError):
    """request_with_cache() was called on a DAO without a cache store."""


class CacheWriteError(DaoError):
    """A parsed payload could not be written to the cache store."""


class RequestFailed(DaoError):
    """Transport level failure, keeps the HTTP status of the original error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WidgetError(Exception):
    """Base class for widget polling failures."""


class MissingHashError(WidgetError):
    """The resource endpoint answered without a value hash."""


class WidgetServerError(WidgetError):
    """The resource endpoint answered with an error body."""

    def __init__(self, message: str, error_type: str):
        super().__init__(f"{message} (type: {error_type})")
        self.message = message
        self.error_type = error_type
