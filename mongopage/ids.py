"""
Identifier codecs for the tiebreak field.

A codec knows the canonical string form of the store's identifier type, how to
validate it, and how to turn it back into the native value used in queries.
"""

import re
from typing import Any, Protocol
from uuid import UUID

from bson import ObjectId
from bson.binary import Binary, UuidRepresentation

from .exceptions import IncompatibleSortValueError

_UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class IdCodec(Protocol):
    """Canonical string encoding and validity predicate for identifiers."""

    name: str

    def is_valid(self, value: Any) -> bool: ...

    def parse(self, value: str) -> Any: ...

    def format(self, value: Any) -> str: ...


class ObjectIdCodec:
    """MongoDB ObjectId: 24 hexadecimal characters."""

    name = "ObjectId"

    def is_valid(self, value: Any) -> bool:
        return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)

    def parse(self, value: str) -> ObjectId:
        if not self.is_valid(value):
            raise ValueError(f"{value!r} is not a valid ObjectId")
        return ObjectId(value)

    def format(self, value: Any) -> str:
        if not isinstance(value, ObjectId):
            raise IncompatibleSortValueError(
                f"Expected an ObjectId tiebreak value, got {type(value).__name__}", value=value
            )
        return str(value)


class UUIDCodec:
    """
    UUID identifiers in canonical hyphenated form.

    Stores must be configured with the standard UUID representation so that
    uuid.UUID values are compared as binary subtype 4.
    """

    name = "UUID"

    def is_valid(self, value: Any) -> bool:
        return isinstance(value, str) and _UUID_PATTERN.match(value) is not None

    def parse(self, value: str) -> UUID:
        if not self.is_valid(value):
            raise ValueError(f"{value!r} is not a valid UUID")
        return UUID(value)

    def format(self, value: Any) -> str:
        if isinstance(value, Binary) and value.subtype == 4:
            value = value.as_uuid(UuidRepresentation.STANDARD)
        if not isinstance(value, UUID):
            raise IncompatibleSortValueError(
                f"Expected a UUID tiebreak value, got {type(value).__name__}", value=value
            )
        return str(value)
