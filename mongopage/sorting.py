from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

from .exceptions import InvalidSortDirectionError, MissingSortSpecError, UnsupportedSortSpecError

# Mapping ({"date": 1}) or pymongo-style list of pairs ([("date", 1)])
RawSortSpec = Union[Mapping[str, Any], Sequence[tuple[str, Any]], str]

_DIRECTION_ALIASES = {
    "asc": 1,
    "ascending": 1,
    "desc": -1,
    "descending": -1,
}


class SortDirection(IntEnum):
    ASCENDING = 1
    DESCENDING = -1

    @property
    def comparison(self) -> str:
        """Query operator selecting values that come after a given value in this order."""
        return "$gt" if self is SortDirection.ASCENDING else "$lt"

    @classmethod
    def parse(cls, field: str, value: Any) -> "SortDirection":
        """
        Parses a declared direction.

        Accepts 1/-1 (pymongo.ASCENDING / pymongo.DESCENDING) and the strings
        asc, ascending, desc, descending in any case.

        Raises:
            InvalidSortDirectionError: For anything else, including booleans
        """
        if isinstance(value, str):
            value = _DIRECTION_ALIASES.get(value.strip().lower(), value)
        if isinstance(value, bool) or not isinstance(value, int) or value not in (1, -1):
            raise InvalidSortDirectionError(field, value)
        return cls(value)


@dataclass(frozen=True)
class SortSpec:
    """
    A validated sort order: one primary field plus the implicit tiebreak field.

    The tiebreak field follows the primary field's direction, so documents
    sharing a primary value are ordered by their identifier.
    """

    field: str
    direction: SortDirection
    tiebreak_field: str = "_id"

    @property
    def sorts_by_tiebreak(self) -> bool:
        return self.field == self.tiebreak_field

    def to_mongo(self) -> list[tuple[str, int]]:
        """Returns the sort in pymongo's list-of-pairs form."""
        if self.sorts_by_tiebreak:
            return [(self.field, int(self.direction))]
        return [(self.field, int(self.direction)), (self.tiebreak_field, int(self.direction))]


def _sort_items(sort: Any) -> list[tuple[Any, Any]]:
    if sort is None:
        return []
    if isinstance(sort, str):
        # pymongo semantics: a bare key sorts ascending
        return [(sort, 1)]
    if isinstance(sort, Mapping):
        return list(sort.items())
    if isinstance(sort, Sequence):
        items = []
        for entry in sort:
            if not isinstance(entry, Sequence) or isinstance(entry, str) or len(entry) != 2:
                raise UnsupportedSortSpecError(
                    f"Sort entries must be (field, direction) pairs, got {entry!r}"
                )
            items.append((entry[0], entry[1]))
        return items
    raise UnsupportedSortSpecError(
        f"Sort specification must be a mapping or a list of pairs, got {type(sort).__name__}"
    )


def parse_sort_spec(sort: "RawSortSpec | SortSpec | None", tiebreak_field: str = "_id") -> SortSpec:
    """
    Validates a caller-supplied sort specification.

    The first entry becomes the primary sort field. Later entries may only
    restate the tiebreak field in the same direction; the cursor carries a
    single sort value, so any other secondary field cannot be resumed.

    Args:
        sort: Mapping, list of (field, direction) pairs, bare field name or SortSpec
        tiebreak_field: The unique identifier field appended to the order

    Returns:
        SortSpec for the primary field

    Raises:
        MissingSortSpecError: If no sort fields are given
        InvalidSortDirectionError: If any direction is not recognized
        UnsupportedSortSpecError: If the spec is malformed or has other secondary fields
    """
    if isinstance(sort, SortSpec):
        if sort.tiebreak_field != tiebreak_field:
            return SortSpec(sort.field, sort.direction, tiebreak_field)
        return sort

    items = _sort_items(sort)
    if not items:
        raise MissingSortSpecError()

    seen: set[str] = set()
    parsed: list[tuple[str, SortDirection]] = []
    for field, raw_direction in items:
        if not isinstance(field, str) or not field:
            raise UnsupportedSortSpecError(
                f"Sort field names must be non-empty strings, got {field!r}"
            )
        if field in seen:
            raise UnsupportedSortSpecError(f"Sort field '{field}' is listed more than once")
        seen.add(field)
        parsed.append((field, SortDirection.parse(field, raw_direction)))

    primary_field, primary_direction = parsed[0]
    for field, direction in parsed[1:]:
        if field != tiebreak_field:
            raise UnsupportedSortSpecError(
                f"Only one sort field is supported, plus the tiebreak field "
                f"'{tiebreak_field}'; got secondary field '{field}'"
            )
        if direction != primary_direction:
            raise UnsupportedSortSpecError(
                f"Tiebreak field '{tiebreak_field}' must be sorted in the same "
                f"direction as '{primary_field}'"
            )

    return SortSpec(primary_field, primary_direction, tiebreak_field)
