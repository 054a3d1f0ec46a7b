"""
The "paginated-query" tool: argument decoding and result encoding for a
request dispatcher (an MCP server, an HTTP route, a CLI).

The dispatcher hands over the caller's raw JSON arguments and gets a JSON-safe
dict back. Invalid arguments come back as an InvalidRequest error result, the
same way every other failure does.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import InvalidRequestError
from .pagination import ErrorResult
from .paginator import Paginator
from .serializer import DocumentSerializer

TOOL_NAME = "paginated-query"
TOOL_DESCRIPTION = "Run a MongoDB query with cursor-based pagination"


class CursorArguments(BaseModel):
    """The nextCursor object of a previous page, passed back as-is."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    last_id: str = Field(alias="lastId", description="Tiebreak id of the last document")
    last_value: Any = Field(
        alias="lastValue", description="Sort field value of the last document"
    )
    token: str | None = Field(default=None, description="Opaque cursor token")


class PaginatedQueryArguments(BaseModel):
    """
    Arguments of the paginated-query tool.

    The cursor can be given as the token string, as the whole nextCursor
    object, or through the legacy lastId/lastValue pair.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    collection_name: str = Field(
        alias="collectionName", min_length=1, description="Name of the collection to query"
    )
    filter: dict[str, Any] = Field(
        default_factory=dict, description="MongoDB query filter (JSON object)"
    )
    sort: dict[str, Any] | list[tuple[str, Any]] | None = Field(
        default=None, description="Sort specification (JSON object), e.g. {\"date\": 1}"
    )
    limit: int | None = Field(
        default=None, strict=True, description="Maximum number of documents to return"
    )
    cursor: str | CursorArguments | None = Field(
        default=None, description="nextCursor (or its token) from the previous page"
    )
    last_id: str | None = Field(
        default=None, alias="lastId", description="ObjectId of the last document from previous page"
    )
    last_value: Any = Field(
        default=None,
        alias="lastValue",
        description="Value of the sort field from the last document of previous page",
    )
    projection: dict[str, Any] | None = Field(
        default=None, description="Fields to include/exclude (JSON object)"
    )
    pretty: bool = True
    max_depth: int | None = Field(
        default=None, ge=1, le=10, alias="maxDepth", description="Truncate nesting below this depth"
    )
    max_array_length: int | None = Field(
        default=None,
        ge=1,
        le=100,
        alias="maxArrayLength",
        description="Truncate arrays to this many elements",
    )

    @model_validator(mode="after")
    def _check_cursor_forms(self) -> "PaginatedQueryArguments":
        if self.cursor is not None and self.last_id is not None:
            raise ValueError("Pass either 'cursor' or 'lastId'/'lastValue', not both")
        if self.last_id is None and "last_value" in self.model_fields_set:
            raise ValueError("'lastValue' requires 'lastId'")
        if self.last_id is not None and "last_value" not in self.model_fields_set:
            raise ValueError("'lastId' requires 'lastValue'")
        return self

    def resolved_cursor(self) -> str | dict[str, Any] | None:
        """Returns the cursor in a form accepted by Paginator.paginate()."""
        if isinstance(self.cursor, str):
            return self.cursor
        if isinstance(self.cursor, CursorArguments):
            if self.cursor.token:
                return self.cursor.token
            return {"lastId": self.cursor.last_id, "lastValue": self.cursor.last_value}
        if self.last_id is not None:
            return {"lastId": self.last_id, "lastValue": self.last_value}
        return None


def input_schema() -> dict[str, Any]:
    """JSON schema of the tool arguments, for dispatcher registration."""
    return PaginatedQueryArguments.model_json_schema(by_alias=True)


def _summarize(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(p) for p in detail["loc"]) or "arguments"
        parts.append(f"{location}: {detail['msg']}")
    return "; ".join(parts)


def run_paginated_query(paginator: Paginator, arguments: Mapping[str, Any]) -> dict[str, Any]:
    """
    Decodes tool arguments, serves one page and encodes the result.

    Returns:
        {"results": [...], "pagination": {...}} on success, or
        {"isError": True, "error": {"type": ..., "message": ...}}
    """
    wire, _ = _run(paginator, arguments)
    return wire


def tool_response(paginator: Paginator, arguments: Mapping[str, Any]) -> dict[str, Any]:
    """
    Runs the tool and wraps the result as a text content response:
    {"content": [{"type": "text", "text": ...}], "isError": bool}.
    """
    wire, pretty = _run(paginator, arguments)
    is_error = bool(wire.get("isError"))
    if is_error:
        error_info = wire["error"]
        text = f"Error executing paginated query: {error_info['type']}: {error_info['message']}"
    else:
        text = render_text(wire, pretty=pretty)
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def _run(paginator: Paginator, arguments: Mapping[str, Any]) -> tuple[dict[str, Any], bool]:
    """Returns the wire result and whether its text should be pretty-printed."""
    try:
        args = PaginatedQueryArguments.model_validate(dict(arguments))
    except ValidationError as e:
        error = InvalidRequestError(f"Invalid arguments: {_summarize(e)}", original_error=e)
        return ErrorResult.from_exception(error).to_wire(), True
    return _execute(paginator, args), args.pretty


def _execute(paginator: Paginator, args: PaginatedQueryArguments) -> dict[str, Any]:
    result = paginator.paginated_query(
        args.collection_name,
        args.filter,
        args.sort,
        args.limit,
        args.resolved_cursor(),
        args.projection,
    )
    if isinstance(result, ErrorResult):
        return result.to_wire()

    serializer = paginator.serializer
    if args.max_depth is not None or args.max_array_length is not None:
        serializer = DocumentSerializer(
            max_depth=args.max_depth if args.max_depth is not None else serializer.max_depth,
            max_array_length=(
                args.max_array_length
                if args.max_array_length is not None
                else serializer.max_array_length
            ),
        )
    return result.to_wire(paginator.store.ids, serializer)


def render_text(wire: Mapping[str, Any], pretty: bool = True) -> str:
    """Renders a wire result as the JSON text a tool response carries."""
    return DocumentSerializer().to_json(dict(wire), pretty=pretty)
