from .config import PaginationConfig
from .cursor import Cursor, cursor_from_wire, decode_cursor, encode_cursor
from .exceptions import (
    IncompatibleSortValueError,
    InvalidCollectionNameError,
    InvalidLimitError,
    InvalidRequestError,
    InvalidSortDirectionError,
    LimitExceededError,
    MalformedCursorError,
    MissingSortSpecError,
    MongoPageError,
    SerializationError,
    StoreUnavailableError,
    UnsupportedSortSpecError,
)
from .fetcher import fetch_page
from .ids import IdCodec, ObjectIdCodec, UUIDCodec
from .pagination import ErrorResult, PageResult
from .paginator import Paginator, paginated_query
from .predicate import build_predicate
from .serializer import DocumentSerializer
from .sorting import SortDirection, SortSpec, parse_sort_spec
from .store import DocumentStore, MongoDocumentStore

__all__ = [
    "Paginator",
    "paginated_query",
    "PaginationConfig",
    "PageResult",
    "ErrorResult",
    # Building blocks
    "Cursor",
    "encode_cursor",
    "decode_cursor",
    "cursor_from_wire",
    "SortSpec",
    "SortDirection",
    "parse_sort_spec",
    "build_predicate",
    "fetch_page",
    "DocumentSerializer",
    # Store
    "DocumentStore",
    "MongoDocumentStore",
    "IdCodec",
    "ObjectIdCodec",
    "UUIDCodec",
    # Exceptions
    "MongoPageError",
    "MissingSortSpecError",
    "InvalidSortDirectionError",
    "UnsupportedSortSpecError",
    "MalformedCursorError",
    "IncompatibleSortValueError",
    "InvalidLimitError",
    "LimitExceededError",
    "InvalidCollectionNameError",
    "InvalidRequestError",
    "SerializationError",
    "StoreUnavailableError",
]
