"""
Cursor encoding for keyset pagination.

A cursor is the (tiebreak id, primary sort value) pair of the last document of
a page. The opaque token is URL-safe base64 of canonical MongoDB Extended JSON,
which keeps the sort value's BSON type: an int stays an int, a date stays a
date, and the next page compares against the same type the store holds.

Cursors are not stored anywhere. A token stays usable for as long as it decodes
and its id is a well-formed identifier for the store.
"""

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bson import json_util
from bson.binary import UuidRepresentation
from bson.errors import BSONError

from .exceptions import IncompatibleSortValueError, MalformedCursorError

if TYPE_CHECKING:
    from .ids import IdCodec

_TOKEN_FIELDS = {"id", "value"}

_CANONICAL_OPTIONS = json_util.JSONOptions(
    json_mode=json_util.JSONMode.CANONICAL, uuid_representation=UuidRepresentation.STANDARD
)
_RELAXED_OPTIONS = json_util.JSONOptions(
    json_mode=json_util.JSONMode.RELAXED, uuid_representation=UuidRepresentation.STANDARD
)


@dataclass(frozen=True)
class Cursor:
    """
    Decoded position in a sorted result set.

    Attributes:
        last_id: Native tiebreak identifier of the last returned document
        last_value: Primary sort field value of that document, BSON type preserved
        token: Opaque token for this position, when already encoded or decoded
    """

    last_id: Any
    last_value: Any
    token: str | None = field(default=None, compare=False, repr=False)

    @classmethod
    def issue(cls, last_id: Any, last_value: Any, ids: "IdCodec") -> "Cursor":
        """
        Creates a cursor together with its token.

        Raises:
            IncompatibleSortValueError: If the value has no BSON representation
        """
        return cls(last_id, last_value, encode_cursor(last_id, last_value, ids))

    def encode(self, ids: "IdCodec") -> str:
        if self.token is not None:
            return self.token
        return encode_cursor(self.last_id, self.last_value, ids)

    def to_wire(self, ids: "IdCodec") -> dict[str, Any]:
        """
        Returns the JSON-safe form handed back to callers.

        lastValue uses relaxed Extended JSON ({"$date": ...} for dates) so the
        mapping can be passed back unchanged and still decode to the same type.
        """
        return {
            "lastId": ids.format(self.last_id),
            "lastValue": json.loads(
                json_util.dumps(self.last_value, json_options=_RELAXED_OPTIONS)
            ),
            "token": self.encode(ids),
        }


def encode_cursor(last_id: Any, last_value: Any, ids: "IdCodec") -> str:
    """
    Encodes a cursor token.

    Args:
        last_id: Native identifier of the last document (e.g. ObjectId)
        last_value: Primary sort field value of the last document
        ids: Identifier codec of the store

    Returns:
        URL-safe base64 token without padding

    Raises:
        IncompatibleSortValueError: If the value has no BSON representation
    """
    payload = {"id": ids.format(last_id), "value": last_value}
    try:
        raw = json_util.dumps(payload, json_options=_CANONICAL_OPTIONS)
    except (TypeError, ValueError) as e:
        raise IncompatibleSortValueError(
            f"Sort value of type {type(last_value).__name__} cannot be encoded in a cursor",
            value=last_value,
            original_error=e,
        ) from e
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: Any, ids: "IdCodec") -> Cursor:
    """
    Decodes a cursor token produced by encode_cursor.

    Raises:
        MalformedCursorError: If the token does not decode, or its id segment
            is not a valid identifier for the store
    """
    if not isinstance(token, str) or not token:
        raise MalformedCursorError("Cursor token must be a non-empty string", cursor=token)

    # Restore base64 padding stripped by encode_cursor
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        payload = json_util.loads(raw.decode("utf-8"), json_options=_CANONICAL_OPTIONS)
    except (ValueError, TypeError, binascii.Error, BSONError) as e:
        raise MalformedCursorError(
            f"Cursor token could not be decoded: {token!r}", cursor=token, original_error=e
        ) from e

    if not isinstance(payload, dict) or set(payload) != _TOKEN_FIELDS:
        raise MalformedCursorError(f"Cursor token has an unexpected shape: {token!r}", cursor=token)

    cursor = _make_cursor(payload["id"], payload["value"], ids, token)
    return Cursor(cursor.last_id, cursor.last_value, token)


def cursor_from_wire(data: Mapping[str, Any], ids: "IdCodec") -> Cursor:
    """
    Builds a cursor from its wire mapping: {"lastId": ..., "lastValue": ...}.

    A relaxed or canonical Extended JSON lastValue ({"$date": ...}) is restored
    to its BSON type; plain scalars are used as given.
    """
    if "lastId" not in data or "lastValue" not in data:
        raise MalformedCursorError(
            "Cursor mapping requires both 'lastId' and 'lastValue'", cursor=dict(data)
        )
    value = data["lastValue"]
    if isinstance(value, Mapping):
        try:
            value = json_util.object_hook(dict(value), json_options=_RELAXED_OPTIONS)
        except (ValueError, TypeError, BSONError) as e:
            raise MalformedCursorError(
                f"Cursor lastValue could not be decoded: {value!r}",
                cursor=dict(data),
                original_error=e,
            ) from e
    return _make_cursor(data["lastId"], value, ids, data)


def _make_cursor(raw_id: Any, value: Any, ids: "IdCodec", source: Any) -> Cursor:
    if not ids.is_valid(raw_id):
        raise MalformedCursorError(
            f"Cursor id {raw_id!r} is not a valid {ids.name}", cursor=source
        )
    return Cursor(last_id=ids.parse(raw_id), last_value=value)
