"""
Result envelopes returned by the paginator.

PageResult carries one page of documents and the cursor for the next page.
ErrorResult carries a tagged error instead; callers check is_error.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .serializer import DocumentSerializer

if TYPE_CHECKING:
    from .cursor import Cursor
    from .exceptions import MongoPageError
    from .ids import IdCodec


@dataclass
class PageResult:
    """
    Represents a single page of results with pagination cursor.

    Attributes:
        documents: Documents of this page, in sort order, sentinel removed
        has_more: True if at least one more document follows this page
        next_cursor: Position of the last document (None if no more pages)
    """

    documents: list[dict[str, Any]]
    has_more: bool
    next_cursor: "Cursor | None"

    is_error = False

    def __post_init__(self) -> None:
        # A page never advertises more results without a way to reach them
        if self.has_more != (self.next_cursor is not None):
            raise ValueError("has_more must be True exactly when next_cursor is set")

    @property
    def count(self) -> int:
        """Number of documents in this page."""
        return len(self.documents)

    def to_wire(
        self, ids: "IdCodec", serializer: DocumentSerializer | None = None
    ) -> dict[str, Any]:
        """
        Returns the JSON-safe envelope sent to callers:
        {"results": [...], "pagination": {"hasMore", "count", "nextCursor"}}.
        """
        serializer = serializer or DocumentSerializer()
        return {
            "results": serializer.format_documents(self.documents),
            "pagination": {
                "hasMore": self.has_more,
                "count": self.count,
                "nextCursor": self.next_cursor.to_wire(ids) if self.next_cursor else None,
            },
        }


@dataclass
class ErrorResult:
    """
    A failed page request.

    Attributes:
        code: Error tag, e.g. "MalformedCursor" or "StoreUnavailable"
        message: Human-readable description
    """

    code: str
    message: str

    is_error = True

    @classmethod
    def from_exception(cls, error: "MongoPageError") -> "ErrorResult":
        return cls(code=error.code, message=error.message)

    def to_wire(self) -> dict[str, Any]:
        return {"isError": True, "error": {"type": self.code, "message": self.message}}
