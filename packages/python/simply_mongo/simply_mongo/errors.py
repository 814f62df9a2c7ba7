"""Errors raised by the simply_mongo connection layer."""


class SimplyMongoError(Exception):
    """Base class for all library errors."""


class NotInitializedError(SimplyMongoError):
    """Raised when the shared connection is requested before it was created."""


class ConnectionNotReadyError(SimplyMongoError):
    """Raised when the database handle is used before it has been selected."""


class ConnectionFailedError(SimplyMongoError):
    """Raised by ``wait_ready`` when the initial connection attempt failed."""


class InvalidCallbackError(SimplyMongoError, TypeError):
    """Raised when a readiness callback is not callable."""


class DuplicateCallbackError(SimplyMongoError, ValueError):
    """Raised when the same readiness callback is registered twice."""
