"""Exceptions raised by the query and cache layers."""


class QueryError(ValueError):
    """Base exception for client-side query errors."""

    pass


class InvalidParameterError(QueryError):
    """Raised when a query parameter cannot be interpreted."""

    pass


class InvalidCursorError(QueryError):
    """Raised when a pagination cursor cannot be decoded or applied."""

    pass


class DataSourceError(Exception):
    """Raised when the underlying data store fails."""

    pass


class CacheInvariantError(RuntimeError):
    """Raised when the cache store ends up in an impossible state."""

    pass


class NotFoundError(LookupError):
    """Raised when the addressed resource does not exist."""

    pass
