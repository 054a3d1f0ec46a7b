"""
Unit tests for the bounded page fetch.
"""

from datetime import datetime

import pytest
from pymongo.errors import AutoReconnect

from mongopage.exceptions import (
    IncompatibleSortValueError,
    InvalidLimitError,
    LimitExceededError,
    MalformedCursorError,
    StoreUnavailableError,
)
from mongopage.fetcher import (
    check_page_sort_values,
    fetch_page,
    get_path,
    prepare_projection,
    strip_fields,
    validate_limit,
)
from mongopage.sorting import SortDirection, SortSpec
from tests.helpers.documents import make_event, oid

BY_DATE = SortSpec("date", SortDirection.ASCENDING)


@pytest.mark.unit
class TestFetchPage:
    """Test the store call made for one page."""

    def test_requests_one_extra_document(self, mock_store):
        predicate = {"kind": "odd"}

        fetch_page(mock_store, "events", predicate, BY_DATE, None, 10)

        mock_store.find.assert_called_once_with(
            "events", predicate, None, [("date", 1), ("_id", 1)], 11
        )

    def test_descending_sort_is_passed_through(self, mock_store):
        fetch_page(mock_store, "events", {}, SortSpec("date", SortDirection.DESCENDING), None, 5)

        args = mock_store.find.call_args[0]
        assert args[3] == [("date", -1), ("_id", -1)]
        assert args[4] == 6

    def test_returns_documents_in_store_order(self, mock_store):
        docs = [make_event(1), make_event(2), make_event(3)]
        mock_store.find.return_value = docs

        result = fetch_page(mock_store, "events", {}, BY_DATE, None, 2)

        assert result.documents == docs
        assert result.injected_fields == ()

    @pytest.mark.parametrize("limit", [0, -3, "10", 2.5, None, True])
    def test_invalid_limit(self, mock_store, limit):
        with pytest.raises(InvalidLimitError):
            fetch_page(mock_store, "events", {}, BY_DATE, None, limit)

        mock_store.find.assert_not_called()

    def test_limit_above_maximum_is_rejected_not_clamped(self, mock_store):
        with pytest.raises(LimitExceededError) as exc_info:
            fetch_page(mock_store, "events", {}, BY_DATE, None, 51, max_limit=50)

        assert exc_info.value.limit == 51
        assert exc_info.value.max_limit == 50
        mock_store.find.assert_not_called()

    def test_store_errors_are_wrapped(self, mock_store):
        mock_store.find.side_effect = RuntimeError("socket closed")

        with pytest.raises(StoreUnavailableError, match="socket closed") as exc_info:
            fetch_page(mock_store, "events", {}, BY_DATE, None, 10)

        assert exc_info.value.collection == "events"
        assert isinstance(exc_info.value.original_error, RuntimeError)

    def test_driver_errors_are_wrapped(self, mock_store):
        mock_store.find.side_effect = AutoReconnect("primary stepped down")

        with pytest.raises(StoreUnavailableError):
            fetch_page(mock_store, "events", {}, BY_DATE, None, 10)

    def test_library_errors_pass_through(self, mock_store):
        mock_store.find.side_effect = MalformedCursorError("bad")

        with pytest.raises(MalformedCursorError):
            fetch_page(mock_store, "events", {}, BY_DATE, None, 10)

    def test_mixed_sort_value_types_are_rejected(self, mock_store):
        mock_store.find.return_value = [
            {"_id": oid(1), "date": datetime(2024, 1, 1)},
            {"_id": oid(2), "date": "2024-01-02"},
        ]

        with pytest.raises(IncompatibleSortValueError, match="mixes value types"):
            fetch_page(mock_store, "events", {}, BY_DATE, None, 10)

    def test_projection_keeps_cursor_fields(self, mock_store):
        result = fetch_page(mock_store, "events", {}, BY_DATE, {"kind": 1}, 10)

        projection = mock_store.find.call_args[0][2]
        assert projection == {"kind": 1, "date": 1}
        assert result.injected_fields == ("date",)


@pytest.mark.unit
class TestValidateLimit:
    def test_accepts_bounds(self):
        assert validate_limit(1, 1000) == 1
        assert validate_limit(1000, 1000) == 1000

    def test_bool_is_not_a_limit(self):
        with pytest.raises(InvalidLimitError):
            validate_limit(False)


@pytest.mark.unit
class TestPrepareProjection:
    """Test projection normalization around the cursor fields."""

    REQUIRED = ["date", "_id"]

    def test_no_projection(self):
        assert prepare_projection(None, self.REQUIRED) == (None, ())
        assert prepare_projection({}, self.REQUIRED) == (None, ())

    def test_inclusion_adds_sort_field(self):
        projection, injected = prepare_projection({"name": True}, self.REQUIRED)

        assert projection == {"name": 1, "date": 1}
        assert injected == ("date",)

    def test_inclusion_that_already_has_sort_field(self):
        projection, injected = prepare_projection({"date": 1, "name": 1}, self.REQUIRED)

        assert projection == {"date": 1, "name": 1}
        assert injected == ()

    def test_exclusion_of_sort_field_is_dropped(self):
        projection, injected = prepare_projection({"date": 0, "payload": 0}, self.REQUIRED)

        assert projection == {"payload": 0}
        assert injected == ("date",)

    def test_excluding_id_in_inclusion_projection(self):
        projection, injected = prepare_projection({"name": 1, "_id": 0}, self.REQUIRED)

        assert projection == {"name": 1, "date": 1}
        assert set(injected) == {"date", "_id"}

    def test_excluding_parent_of_nested_sort_field(self):
        projection, injected = prepare_projection({"meta": 0}, ["meta.created", "_id"])

        assert projection is None
        assert injected == ("meta",)

    def test_operators_pass_through(self):
        projection, _ = prepare_projection(
            {"tags": {"$slice": 2}, "name": 1}, self.REQUIRED
        )

        assert projection["tags"] == {"$slice": 2}


@pytest.mark.unit
class TestDocumentPaths:
    def test_get_path(self):
        doc = {"a": {"b": {"c": 3}}, "x": None}

        assert get_path(doc, "a.b.c") == 3
        assert get_path(doc, "a.missing") is None
        assert get_path(doc, "x.y") is None
        assert get_path(doc, "x") is None

    def test_strip_fields_prunes_emptied_parents(self):
        docs = [{"_id": 1, "meta": {"created": 5}, "name": "a"}]

        strip_fields(docs, ["meta.created", "_id"])

        assert docs == [{"name": "a"}]

    def test_strip_fields_keeps_siblings(self):
        docs = [{"meta": {"created": 5, "author": "x"}}]

        strip_fields(docs, ["meta.created"])

        assert docs == [{"meta": {"author": "x"}}]

    def test_strip_fields_ignores_missing_paths(self):
        docs = [{"name": "a"}]

        strip_fields(docs, ["date", "meta.created"])

        assert docs == [{"name": "a"}]


@pytest.mark.unit
class TestCheckPageSortValues:
    def test_nulls_mix_with_one_bracket(self):
        docs = [{"_id": oid(1)}, {"_id": oid(2), "date": None}, {"_id": oid(3), "date": 5}]

        check_page_sort_values(docs, SortSpec("date", SortDirection.ASCENDING))

    def test_int_and_float_share_a_bracket(self):
        docs = [{"_id": oid(1), "score": 1}, {"_id": oid(2), "score": 1.5}]

        check_page_sort_values(docs, SortSpec("score", SortDirection.ASCENDING))

    def test_array_sort_value_is_rejected(self):
        docs = [{"_id": oid(1), "tags": ["a", "b"]}]

        with pytest.raises(IncompatibleSortValueError):
            check_page_sort_values(docs, SortSpec("tags", SortDirection.ASCENDING))

    def test_sorting_by_id_is_not_checked(self):
        docs = [{"_id": 1}, {"_id": "two"}]

        check_page_sort_values(docs, SortSpec("_id", SortDirection.ASCENDING))
