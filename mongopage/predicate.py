"""
Keyset predicate construction.

Given the caller's filter, the sort order and the cursor of the previous page,
builds the query that resumes strictly after the last returned document:

    ascending:  (f > v) OR (f == v AND id > last_id)
    descending: (f < v) OR (f == v AND id < last_id)

The caller's filter is AND-ed with that clause as a separate conjunct, never
merged key by key, so a filter that also constrains f or id keeps its meaning.

MongoDB only compares values of the same type bracket ($gt: "a" never matches
a number), so a cursor value must be a comparable BSON scalar. Null is the
lowest bracket and $gt: null matches nothing, so null cursor values get their
own "after" branch, and descending pages also reach null and missing values
once the non-null ones run out.

A non-null cursor also matches every non-null value outside its own bracket.
A field that mixes types would otherwise lose the other-type documents without
a trace once the walk has moved past page one; with that branch they reach the
fetched window and the page is rejected as IncompatibleSortValue.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Union
from uuid import UUID

from bson import Decimal128, Int64, ObjectId, Timestamp
from bson.binary import Binary

from .cursor import Cursor, cursor_from_wire, decode_cursor
from .exceptions import IncompatibleSortValueError
from .sorting import RawSortSpec, SortDirection, SortSpec, parse_sort_spec

if TYPE_CHECKING:
    from .ids import IdCodec

CursorInput = Union[str, Mapping[str, Any], Cursor]


def type_bracket(value: Any) -> str | None:
    """
    Returns the BSON comparison bracket of a sort value.

    Values in different brackets never satisfy a range comparison with each
    other. Bracket names double as $type aliases. None means the value cannot
    be used as a keyset position (documents, arrays and non-BSON Python objects).
    """
    if value is None:
        return "null"
    # bool before int: True is an int in Python but its own bracket in BSON
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float, Int64, Decimal128)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, ObjectId):
        return "objectId"
    if isinstance(value, datetime):
        return "date"
    if isinstance(value, Timestamp):
        return "timestamp"
    if isinstance(value, (bytes, Binary, UUID)):
        return "binData"
    return None


def check_sort_value(field: str, value: Any) -> str:
    """
    Verifies that a sort value can drive a range comparison.

    Returns:
        The value's type bracket

    Raises:
        IncompatibleSortValueError: For arrays, documents and unsupported types
    """
    bracket = type_bracket(value)
    if bracket is None:
        raise IncompatibleSortValueError(
            f"Sort field '{field}' holds a {type(value).__name__}, which has no "
            "consistent ordering for keyset pagination",
            field=field,
            value=value,
        )
    return bracket


def resolve_cursor(cursor: CursorInput, ids: "IdCodec") -> Cursor:
    """Normalizes a token string, wire mapping or Cursor into a Cursor."""
    if isinstance(cursor, Cursor):
        return cursor
    if isinstance(cursor, Mapping):
        return cursor_from_wire(cursor, ids)
    return decode_cursor(cursor, ids)


def keyset_clause(sort_spec: SortSpec, cursor: Cursor) -> dict[str, Any]:
    """
    Builds the clause selecting documents strictly after the cursor position.
    """
    field = sort_spec.field
    id_field = sort_spec.tiebreak_field
    op = sort_spec.direction.comparison

    if sort_spec.sorts_by_tiebreak:
        return {id_field: {op: cursor.last_id}}

    value = cursor.last_value
    bracket = check_sort_value(field, value)
    tie: dict[str, Any] = {field: value, id_field: {op: cursor.last_id}}

    if value is None:
        if sort_spec.direction is SortDirection.DESCENDING:
            # Nothing sorts below null: only the remaining ties are left
            return tie
        return {"$or": [{field: {"$ne": None}}, tie]}

    branches: list[dict[str, Any]] = [{field: {op: value}}]
    if sort_spec.direction is SortDirection.DESCENDING:
        # Nulls and missing values come last in descending order, but $lt never matches them
        branches.append({field: None})
    branches.append({field: {"$not": {"$type": bracket}, "$ne": None}})
    branches.append(tie)
    return {"$or": branches}


def build_predicate(
    base_filter: Mapping[str, Any] | None,
    sort: "RawSortSpec | SortSpec | None",
    cursor: CursorInput | None,
    ids: "IdCodec",
    tiebreak_field: str = "_id",
) -> dict[str, Any]:
    """
    Builds the final query predicate for a page request.

    Args:
        base_filter: The caller's query document, treated as opaque
        sort: Sort specification (validated here)
        cursor: None for the first page, otherwise a token, wire mapping or Cursor
        ids: Identifier codec used to decode the cursor id
        tiebreak_field: Unique identifier field appended to the sort

    Returns:
        The caller's filter unchanged on the first page, otherwise
        {"$and": [filter, keyset_clause]} (or the clause alone for an empty filter)

    Raises:
        MissingSortSpecError: If the sort spec has no fields
        InvalidSortDirectionError: If a direction is not recognized
        MalformedCursorError: If the cursor does not decode
        IncompatibleSortValueError: If the cursor value is not comparable
    """
    sort_spec = parse_sort_spec(sort, tiebreak_field)
    filter_doc = dict(base_filter or {})

    if cursor is None:
        return filter_doc

    clause = keyset_clause(sort_spec, resolve_cursor(cursor, ids))
    if not filter_doc:
        return clause
    return {"$and": [filter_doc, clause]}
