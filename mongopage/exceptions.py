from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from pymongo.errors import (
    ConnectionFailure,
    ExecutionTimeout,
    NetworkTimeout,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)


class MongoPageError(Exception):
    """Base exception for all mongopage errors."""

    code = "MongoPageError"

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class MissingSortSpecError(MongoPageError):
    """Raised when no sort fields are supplied."""

    code = "MissingSortSpec"

    def __init__(
        self,
        message: str = "A sort specification with at least one field is required "
        "for keyset pagination",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)


class InvalidSortDirectionError(MongoPageError):
    """Raised when a sort direction is neither ascending nor descending."""

    code = "InvalidSortDirection"

    def __init__(
        self, field: str, direction: Any, original_error: Exception | None = None
    ) -> None:
        super().__init__(
            f"Invalid sort direction {direction!r} for field '{field}': "
            "expected 1, -1, 'asc' or 'desc'",
            original_error,
        )
        self.field = field
        self.direction = direction


class UnsupportedSortSpecError(MongoPageError):
    """Raised when the sort spec names secondary fields other than the tiebreak field."""

    code = "UnsupportedSortSpec"

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


class MalformedCursorError(MongoPageError):
    """Raised when a pagination cursor cannot be decoded or carries an invalid id."""

    code = "MalformedCursor"

    def __init__(
        self,
        message: str = "Malformed pagination cursor",
        cursor: Any | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.cursor = cursor


class IncompatibleSortValueError(MongoPageError):
    """Raised when a sort value cannot be compared with the store's native ordering."""

    code = "IncompatibleSortValue"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.field = field
        self.value = value


class InvalidLimitError(MongoPageError):
    """Raised when the page size is not a positive integer."""

    code = "InvalidLimit"

    def __init__(self, limit: Any, original_error: Exception | None = None) -> None:
        super().__init__(f"Page limit must be a positive integer, got {limit!r}", original_error)
        self.limit = limit


class LimitExceededError(MongoPageError):
    """Raised when the requested page size exceeds the configured maximum."""

    code = "LimitExceeded"

    def __init__(
        self, limit: int, max_limit: int, original_error: Exception | None = None
    ) -> None:
        super().__init__(
            f"Page limit {limit} exceeds the maximum of {max_limit}", original_error
        )
        self.limit = limit
        self.max_limit = max_limit


class InvalidCollectionNameError(MongoPageError):
    """Raised when a collection name violates the store's naming constraints."""

    code = "InvalidCollectionName"

    def __init__(self, collection: Any, original_error: Exception | None = None) -> None:
        super().__init__(f"Invalid collection name: {collection!r}", original_error)
        self.collection = collection


class InvalidRequestError(MongoPageError):
    """Raised when dispatcher arguments fail validation."""

    code = "InvalidRequest"

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


class StoreUnavailableError(MongoPageError):
    """Raised when the document store fails to serve a fetch."""

    code = "StoreUnavailable"

    def __init__(
        self,
        message: str = "Document store unavailable",
        collection: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.collection = collection


class SerializationError(MongoPageError):
    """Raised when a document value has no JSON representation."""

    code = "SerializationError"

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


@contextmanager
def handle_store_errors(collection: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches pymongo.errors.PyMongoError
    and raises StoreUnavailableError with a message describing the failure.

    Args:
        collection: Optional collection name for better error messages

    Usage:
        with handle_store_errors(collection="events"):
            list(db["events"].find(...))
    """
    target = collection or "unknown"
    try:
        yield
    except ExecutionTimeout as e:
        raise StoreUnavailableError(
            f"Query on '{target}' exceeded its time limit: {e}", target, e
        ) from e
    except OperationFailure as e:
        raise StoreUnavailableError(
            f"Query on '{target}' failed (code {e.code}): {e}", target, e
        ) from e
    except (NetworkTimeout, ServerSelectionTimeoutError) as e:
        raise StoreUnavailableError(
            f"Timed out reaching the store for '{target}': {e}", target, e
        ) from e
    except ConnectionFailure as e:
        raise StoreUnavailableError(
            f"Lost connection to the store for '{target}': {e}", target, e
        ) from e
    except PyMongoError as e:
        # Unknown driver error: wrap in generic StoreUnavailableError
        raise StoreUnavailableError(
            f"Store error on '{target}' ({type(e).__name__}): {e}", target, e
        ) from e
