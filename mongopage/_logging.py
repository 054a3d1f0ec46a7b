import hashlib
import logging
from collections.abc import Mapping
from typing import Any

from .cursor import Cursor

logger = logging.getLogger("mongopage")

# Applications opt in to mongopage logs by configuring logging themselves
logger.addHandler(logging.NullHandler())


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8", "backslashreplace")).hexdigest()[:8]


def redact_cursor(cursor: Any) -> str:
    """
    Fingerprints a cursor for logging.

    Sort values can hold user data (emails, names), so logs carry a short hash
    of the cursor instead. The same token always gives the same fingerprint,
    which is enough to follow one client through consecutive pages.
    """
    if isinstance(cursor, Cursor):
        if cursor.token:
            return _digest(cursor.token)
        return _digest(repr((cursor.last_id, cursor.last_value)))
    if isinstance(cursor, Mapping):
        if cursor.get("token"):
            return _digest(str(cursor["token"]))
        return _digest(repr((cursor.get("lastId"), cursor.get("lastValue"))))
    return _digest(str(cursor))
