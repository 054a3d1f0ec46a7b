from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from pymongo.database import Database

from ._logging import logger
from .exceptions import handle_store_errors
from .ids import IdCodec, ObjectIdCodec


class DocumentStore(Protocol):
    """
    The document store capability consumed by the paginator.

    find() runs one bounded, sorted query and returns the documents in order.
    ids knows the canonical string form of the tiebreak identifier type.
    """

    ids: IdCodec

    def find(
        self,
        collection: str,
        predicate: Mapping[str, Any],
        projection: Mapping[str, Any] | None,
        sort: Sequence[tuple[str, int]],
        limit: int,
    ) -> list[dict[str, Any]]: ...


class MongoDocumentStore:
    """
    DocumentStore backed by a pymongo Database.

    The store holds no per-request state; one instance can serve concurrent
    page requests because pymongo's client is thread-safe.

    Usage:
        client = MongoClient("mongodb://localhost:27017")
        store = MongoDocumentStore(client["shop"])
    """

    def __init__(self, database: Database, ids: IdCodec | None = None) -> None:
        self.database = database
        self.ids = ids or ObjectIdCodec()

    def find(
        self,
        collection: str,
        predicate: Mapping[str, Any],
        projection: Mapping[str, Any] | None,
        sort: Sequence[tuple[str, int]],
        limit: int,
    ) -> list[dict[str, Any]]:
        """
        Runs the query and drains the cursor.

        The cursor is closed on the way out, including when the caller is
        interrupted mid-fetch, so the server-side cursor is killed instead of
        being left to time out.
        """
        logger.debug(
            "Running find",
            extra={"collection": collection, "limit": limit, "sort": list(sort)},
        )
        with handle_store_errors(collection=collection):
            with self.database[collection].find(
                dict(predicate),
                projection=dict(projection) if projection else None,
                sort=list(sort),
                limit=limit,
            ) as cursor:
                return list(cursor)
