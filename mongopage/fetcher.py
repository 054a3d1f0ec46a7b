"""
Bounded page fetch against the document store.

Every fetch asks for limit + 1 documents. The extra one is a sentinel: its
presence is how the paginator learns that another page exists, without a
separate count() round trip that could race with concurrent writes. The
sentinel is never returned to the caller.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ._logging import logger
from .config import MAX_PAGE_SIZE
from .exceptions import (
    IncompatibleSortValueError,
    InvalidLimitError,
    LimitExceededError,
    MongoPageError,
    StoreUnavailableError,
)
from .predicate import check_sort_value
from .sorting import SortSpec
from .store import DocumentStore

_MISSING = object()


@dataclass
class FetchResult:
    """
    Raw outcome of one store call.

    Attributes:
        documents: Up to limit + 1 documents in sort order
        injected_fields: Projection paths added so the cursor fields are present;
            they must be stripped before documents reach the caller
    """

    documents: list[dict[str, Any]]
    injected_fields: tuple[str, ...] = field(default_factory=tuple)


def validate_limit(limit: Any, max_limit: int = MAX_PAGE_SIZE) -> int:
    """
    Checks a requested page size.

    Raises:
        InvalidLimitError: If limit is not an int, or is below 1
        LimitExceededError: If limit is above max_limit (it is never clamped)
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidLimitError(limit)
    if limit > max_limit:
        raise LimitExceededError(limit, max_limit)
    return limit


def _covers(key: str, path: str) -> bool:
    return key == path or path.startswith(key + ".")


def prepare_projection(
    projection: Mapping[str, Any] | None, required_fields: Iterable[str]
) -> tuple[dict[str, Any] | None, tuple[str, ...]]:
    """
    Normalizes a projection and makes sure the required fields survive it.

    Boolean and numeric values become 1/0. Exclusions that would hide a
    required field are dropped; in an inclusion projection, missing required
    fields are added. Every path changed this way is reported so it can be
    removed from the returned documents again.

    Returns:
        (projection or None for full documents, injected paths)
    """
    if not projection:
        return None, ()

    normalized: dict[str, Any] = {}
    for key, value in projection.items():
        if isinstance(value, (bool, int, float)):
            normalized[key] = 1 if value else 0
        else:
            # Projection operators ($slice, $elemMatch) pass through untouched
            normalized[key] = value

    inclusive = any(value == 1 for key, value in normalized.items() if key != "_id")
    injected: list[str] = []

    for path in required_fields:
        for key in [k for k, v in normalized.items() if v == 0 and _covers(k, path)]:
            del normalized[key]
            injected.append(key)

        # _id is returned by inclusion projections unless excluded
        if inclusive and path != "_id":
            included = any(v == 1 and _covers(k, path) for k, v in normalized.items())
            if not included:
                normalized[path] = 1
                injected.append(path)

    return (normalized or None), tuple(injected)


def get_path(document: Mapping[str, Any], path: str) -> Any:
    """Reads a dotted path from a document; missing paths read as None."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return None
    return current


def strip_fields(documents: Iterable[dict[str, Any]], paths: Iterable[str]) -> None:
    """Removes dotted paths from documents in place, pruning emptied parents."""
    paths = tuple(paths)
    if not paths:
        return
    for document in documents:
        for path in paths:
            _pop_path(document, path.split("."))


def _pop_path(document: dict[str, Any], parts: list[str]) -> None:
    head = parts[0]
    if len(parts) == 1:
        document.pop(head, None)
        return
    child = document.get(head)
    if isinstance(child, dict):
        _pop_path(child, parts[1:])
        if not child:
            del document[head]


def check_page_sort_values(documents: list[dict[str, Any]], sort_spec: SortSpec) -> None:
    """
    Rejects pages whose primary sort values cannot be resumed from.

    Range comparisons only match values of the cursor's own type bracket, so a
    field mixing, say, strings and numbers would silently drop documents on
    later pages. Nulls and missing values are allowed alongside one bracket.
    """
    if sort_spec.sorts_by_tiebreak:
        return

    brackets: dict[str, Any] = {}
    for document in documents:
        value = get_path(document, sort_spec.field)
        bracket = check_sort_value(sort_spec.field, value)
        if bracket != "null":
            brackets.setdefault(bracket, value)

    if len(brackets) > 1:
        raise IncompatibleSortValueError(
            f"Sort field '{sort_spec.field}' mixes value types "
            f"({', '.join(sorted(brackets))}); keyset pagination needs a single type",
            field=sort_spec.field,
            value=list(brackets.values()),
        )


def fetch_page(
    store: DocumentStore,
    collection: str,
    predicate: Mapping[str, Any],
    sort_spec: SortSpec,
    projection: Mapping[str, Any] | None,
    limit: Any,
    max_limit: int = MAX_PAGE_SIZE,
) -> FetchResult:
    """
    Fetches up to limit + 1 documents ordered by (primary field, tiebreak field).

    Args:
        store: Document store to query
        collection: Collection name
        predicate: Query document built by build_predicate
        sort_spec: Validated sort order
        projection: Optional inclusion/exclusion map; None returns full documents
        limit: Requested page size
        max_limit: Largest accepted page size

    Returns:
        FetchResult with the raw documents, sentinel included

    Raises:
        InvalidLimitError / LimitExceededError: For out-of-range limits
        StoreUnavailableError: If the store call fails for any reason
        IncompatibleSortValueError: If the fetched sort values are not comparable
    """
    limit = validate_limit(limit, max_limit)

    required = [sort_spec.field]
    if not sort_spec.sorts_by_tiebreak:
        required.append(sort_spec.tiebreak_field)
    projection_doc, injected = prepare_projection(projection, required)

    logger.info(
        "Fetching page",
        extra={
            "collection": collection,
            "limit": limit,
            "sort_field": sort_spec.field,
            "direction": int(sort_spec.direction),
            "has_projection": projection_doc is not None,
        },
    )

    try:
        documents = list(
            store.find(collection, predicate, projection_doc, sort_spec.to_mongo(), limit + 1)
        )
    except MongoPageError:
        raise
    except Exception as e:
        # Any other store implementation failure keeps the same error surface
        raise StoreUnavailableError(
            f"Fetch from '{collection}' failed: {type(e).__name__}: {e}",
            collection=collection,
            original_error=e,
        ) from e

    check_page_sort_values(documents, sort_spec)
    return FetchResult(documents=documents, injected_fields=injected)
