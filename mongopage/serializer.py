import json
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from bson import Int64, ObjectId, json_util
from bson.binary import UuidRepresentation

from .exceptions import SerializationError

_RELAXED_OPTIONS = json_util.JSONOptions(
    json_mode=json_util.JSONMode.RELAXED, uuid_representation=UuidRepresentation.STANDARD
)


class DocumentSerializer:
    """
    Converts BSON documents into JSON-safe values for the wire.

    Architectural Note:
    -------------------
    Documents are schemaless and arbitrarily deep. Callers (often LLM agents)
    read them as text, so large nested values can be cut down on request:
    containers nested deeper than max_depth are replaced by a placeholder, and
    arrays longer than max_array_length keep their first elements plus a
    "... N more items" marker. Both limits default to None, which keeps
    documents whole.

    Scalars follow the shapes a JavaScript client would see: ObjectId as its
    hex string, dates as ISO 8601 UTC strings with a 'Z' suffix, UUIDs as
    strings. Other BSON types use relaxed Extended JSON.
    """

    def __init__(
        self, max_depth: int | None = None, max_array_length: int | None = None
    ) -> None:
        self.max_depth = max_depth
        self.max_array_length = max_array_length

    def format_documents(self, documents: list[dict[str, Any]]) -> list[Any]:
        """Formats each document, starting at depth 0."""
        return [self._format_value(document, 0) for document in documents]

    def to_json(self, data: Any, pretty: bool = True) -> str:
        """Dumps already formatted data as JSON text."""
        return json.dumps(data, indent=2 if pretty else None, ensure_ascii=False)

    def _format_value(self, value: Any, depth: int) -> Any:
        """
        Recursively formats one value.

        Containers below max_depth are replaced by "[Object]" / "[Array]".
        """
        too_deep = self.max_depth is not None and depth > self.max_depth
        if isinstance(value, dict):
            if too_deep:
                return "[Object]"
            return {str(k): self._format_value(v, depth + 1) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            if too_deep:
                return "[Array]"
            kept = value if self.max_array_length is None else value[: self.max_array_length]
            items = [self._format_value(v, depth + 1) for v in kept]
            hidden = len(value) - len(kept)
            if hidden > 0:
                items.append(f"... {hidden} more items")
            return items
        return self._format_scalar(value)

    def _format_scalar(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, str)):
            return value
        if isinstance(value, Int64):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value == value and value not in (
            float("inf"),
            float("-inf"),
        ):
            return value
        if isinstance(value, ObjectId):
            return str(value)
        if isinstance(value, datetime):
            # Naive datetimes from pymongo are UTC
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc).replace(tzinfo=None)
            return value.isoformat(timespec="milliseconds") + "Z"
        if isinstance(value, UUID):
            return str(value)
        try:
            return json.loads(json_util.dumps(value, json_options=_RELAXED_OPTIONS))
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Failed to serialize value of type {type(value).__name__}: {e!s}",
                original_error=e,
            ) from e
