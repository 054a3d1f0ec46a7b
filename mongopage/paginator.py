"""
Keyset pagination over a document store.

Each page request runs Start -> PredicateBuilt -> Fetched -> Shaped -> Done in
one call. The only I/O is the single store fetch; nothing is kept between
requests, so concurrent requests share no mutable state and need no locks.

Consistency is approximate-snapshot, not serializable: a document inserted or
deleted between two page fetches, or one whose sort field changes, can be
skipped or (rarely) returned twice. Pages over a collection that does not
change between calls concatenate to exactly the full sorted result set.
"""

import re
from collections.abc import Mapping
from typing import Any

from ._logging import logger, redact_cursor
from .config import PaginationConfig
from .cursor import Cursor
from .exceptions import InvalidCollectionNameError, MongoPageError
from .fetcher import FetchResult, fetch_page, get_path, strip_fields, validate_limit
from .pagination import ErrorResult, PageResult
from .predicate import CursorInput, build_predicate
from .serializer import DocumentSerializer
from .sorting import RawSortSpec, SortSpec, parse_sort_spec
from .store import DocumentStore

_COLLECTION_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def validate_collection_name(name: Any) -> str:
    """
    Checks a collection name against MongoDB's naming rules.

    Raises:
        InvalidCollectionNameError: If the name is empty, has characters outside
            [A-Za-z0-9_.-], contains "..", or targets a system collection
    """
    if (
        not isinstance(name, str)
        or not _COLLECTION_NAME_PATTERN.match(name)
        or name.startswith(".")
        or name.endswith(".")
        or ".." in name
        or name.startswith("system.")
    ):
        raise InvalidCollectionNameError(name)
    return name


class Paginator:
    """
    Serves keyset-paginated queries against one document store.

    Usage:
        paginator = Paginator(MongoDocumentStore(client["shop"]))

        page = paginator.paginate("orders", {"status": "paid"}, {"created_at": -1}, limit=50)
        while page.has_more:
            page = paginator.paginate(
                "orders", {"status": "paid"}, {"created_at": -1},
                limit=50, cursor=page.next_cursor,
            )
    """

    def __init__(
        self,
        store: DocumentStore,
        config: PaginationConfig | None = None,
        serializer: DocumentSerializer | None = None,
    ) -> None:
        self.store = store
        self.config = config or PaginationConfig()
        self.serializer = serializer or DocumentSerializer(
            max_depth=self.config.max_depth,
            max_array_length=self.config.max_array_length,
        )

    def paginate(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        sort: "RawSortSpec | SortSpec | None" = None,
        limit: int | None = None,
        cursor: CursorInput | None = None,
        projection: Mapping[str, Any] | None = None,
    ) -> PageResult:
        """
        Fetches one page.

        Args:
            collection: Collection name
            filter: Query document; None matches everything
            sort: Sort specification, e.g. {"date": 1}; _id is appended as tiebreak
            limit: Page size (defaults to config.default_limit)
            cursor: None for the first page, else the next_cursor of the previous
                page (Cursor, token string, or {"lastId", "lastValue"} mapping)
            projection: Optional field inclusion/exclusion map

        Returns:
            PageResult with has_more and next_cursor consistent with documents

        Raises:
            MongoPageError: Any error of the taxonomy; nothing partial is returned
        """
        # Start
        validate_collection_name(collection)
        sort_spec = parse_sort_spec(sort, self.config.tiebreak_field)
        if limit is None:
            limit = self.config.default_limit
        validate_limit(limit, self.config.max_limit)

        log_context = {
            "collection": collection,
            "limit": limit,
            "has_cursor": cursor is not None,
        }
        if cursor is not None:
            log_context["cursor_hash"] = redact_cursor(cursor)
        logger.debug("Pagination state: Start", extra={**log_context, "state": "Start"})

        # PredicateBuilt
        predicate = build_predicate(
            filter, sort_spec, cursor, self.store.ids, self.config.tiebreak_field
        )
        logger.debug(
            "Pagination state: PredicateBuilt", extra={**log_context, "state": "PredicateBuilt"}
        )

        # Fetched
        fetched = fetch_page(
            self.store,
            collection,
            predicate,
            sort_spec,
            projection,
            limit,
            self.config.max_limit,
        )
        logger.debug(
            "Pagination state: Fetched",
            extra={**log_context, "state": "Fetched", "fetched": len(fetched.documents)},
        )

        # Shaped
        page = self._shape(fetched, sort_spec, limit)

        # Done
        logger.info(
            "Page served",
            extra={**log_context, "state": "Done", "count": page.count, "has_more": page.has_more},
        )
        return page

    def paginated_query(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        sort: "RawSortSpec | SortSpec | None" = None,
        limit: int | None = None,
        cursor: CursorInput | None = None,
        projection: Mapping[str, Any] | None = None,
    ) -> PageResult | ErrorResult:
        """
        Same as paginate(), but errors of the taxonomy come back as ErrorResult.
        """
        try:
            return self.paginate(collection, filter, sort, limit, cursor, projection)
        except MongoPageError as e:
            logger.warning(
                "Paginated query failed",
                extra={"collection": collection, "error_code": e.code, "error": e.message},
            )
            return ErrorResult.from_exception(e)

    def to_wire(self, result: PageResult | ErrorResult) -> dict[str, Any]:
        """Encodes a result in the caller-facing JSON shape."""
        if isinstance(result, ErrorResult):
            return result.to_wire()
        return result.to_wire(self.store.ids, self.serializer)

    def _shape(self, fetched: FetchResult, sort_spec: SortSpec, limit: int) -> PageResult:
        documents = fetched.documents
        has_more = len(documents) > limit
        next_cursor = None

        if has_more:
            # Drop the sentinel; the new last document positions the next page
            documents = documents[:limit]
            last = documents[-1]
            # Issued with its token: a page never carries a cursor that cannot be sent back
            next_cursor = Cursor.issue(
                get_path(last, sort_spec.tiebreak_field),
                get_path(last, sort_spec.field),
                self.store.ids,
            )

        strip_fields(documents, fetched.injected_fields)
        return PageResult(documents=documents, has_more=has_more, next_cursor=next_cursor)


def paginated_query(
    store: DocumentStore,
    collection: str,
    filter: Mapping[str, Any] | None = None,
    sort: "RawSortSpec | SortSpec | None" = None,
    limit: int | None = None,
    cursor: CursorInput | None = None,
    projection: Mapping[str, Any] | None = None,
    config: PaginationConfig | None = None,
) -> PageResult | ErrorResult:
    """
    One-shot helper: builds a Paginator for the store and serves a single page.
    """
    return Paginator(store, config).paginated_query(
        collection, filter, sort, limit, cursor, projection
    )
