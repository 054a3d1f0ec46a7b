from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 1000


@dataclass(frozen=True)
class PaginationConfig:
    """
    Options shared by every page request served by a Paginator.

    Attributes:
        default_limit: Page size used when the caller does not pass one
        max_limit: Largest page size accepted; larger requests fail, they are never clamped
        tiebreak_field: Unique, totally ordered field appended to every sort
        max_depth: Nesting depth kept when documents are formatted for the wire;
            None keeps every level
        max_array_length: Array elements kept when documents are formatted for the
            wire; None keeps every element
    """

    default_limit: int = DEFAULT_PAGE_SIZE
    max_limit: int = MAX_PAGE_SIZE
    tiebreak_field: str = "_id"
    max_depth: int | None = None
    max_array_length: int | None = None

    def __post_init__(self) -> None:
        if self.max_limit < 1:
            raise ValueError(f"max_limit must be positive, got {self.max_limit}")
        if not 1 <= self.default_limit <= self.max_limit:
            raise ValueError(
                f"default_limit must be between 1 and max_limit ({self.max_limit}), "
                f"got {self.default_limit}"
            )
        if not self.tiebreak_field:
            raise ValueError("tiebreak_field must be a non-empty field name")
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.max_array_length is not None and self.max_array_length < 1:
            raise ValueError(f"max_array_length must be positive, got {self.max_array_length}")
