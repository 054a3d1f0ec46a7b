"""
Unit tests for the paginated-query tool layer.
"""

import json

import pytest

from mongopage.cursor import encode_cursor
from mongopage.tool import (
    TOOL_NAME,
    PaginatedQueryArguments,
    input_schema,
    run_paginated_query,
    tool_response,
)
from tests.helpers.documents import make_event, oid


@pytest.mark.unit
class TestArguments:
    """Test decoding of raw tool arguments."""

    def test_minimal(self):
        args = PaginatedQueryArguments.model_validate({"collectionName": "events"})

        assert args.collection_name == "events"
        assert args.filter == {}
        assert args.resolved_cursor() is None

    def test_token_cursor(self):
        args = PaginatedQueryArguments.model_validate({"collectionName": "e", "cursor": "abc"})

        assert args.resolved_cursor() == "abc"

    def test_next_cursor_object_prefers_token(self):
        args = PaginatedQueryArguments.model_validate(
            {"collectionName": "e", "cursor": {"lastId": "x", "lastValue": 1, "token": "tok"}}
        )

        assert args.resolved_cursor() == "tok"

    def test_next_cursor_object_without_token(self):
        args = PaginatedQueryArguments.model_validate(
            {"collectionName": "e", "cursor": {"lastId": "x", "lastValue": {"$date": "2024"}}}
        )

        assert args.resolved_cursor() == {"lastId": "x", "lastValue": {"$date": "2024"}}

    def test_legacy_last_id_and_value(self):
        args = PaginatedQueryArguments.model_validate(
            {"collectionName": "e", "lastId": "x", "lastValue": None}
        )

        assert args.resolved_cursor() == {"lastId": "x", "lastValue": None}

    def test_cursor_and_last_id_conflict(self):
        with pytest.raises(ValueError):
            PaginatedQueryArguments.model_validate(
                {"collectionName": "e", "cursor": "abc", "lastId": "x", "lastValue": 1}
            )

    def test_last_value_without_last_id(self):
        with pytest.raises(ValueError):
            PaginatedQueryArguments.model_validate({"collectionName": "e", "lastValue": 1})

    def test_last_id_without_last_value(self):
        with pytest.raises(ValueError, match="lastValue"):
            PaginatedQueryArguments.model_validate({"collectionName": "e", "lastId": "x"})

    def test_truncation_is_off_unless_asked(self):
        args = PaginatedQueryArguments.model_validate({"collectionName": "e"})

        assert args.max_depth is None
        assert args.max_array_length is None

    def test_unknown_argument(self):
        with pytest.raises(ValueError):
            PaginatedQueryArguments.model_validate({"collectionName": "e", "skip": 10})

    def test_schema_uses_wire_names(self):
        schema = input_schema()

        assert "collectionName" in schema["properties"]
        assert "maxArrayLength" in schema["properties"]
        assert schema["required"] == ["collectionName"]


@pytest.mark.unit
class TestRunPaginatedQuery:
    """Test the wire results of the tool."""

    def test_success(self, mock_paginator, mock_store):
        mock_store.find.return_value = [make_event(n) for n in range(1, 4)]

        wire = run_paginated_query(
            mock_paginator, {"collectionName": "events", "sort": {"date": 1}, "limit": 2}
        )

        assert [d["seq"] for d in wire["results"]] == [1, 2]
        assert wire["pagination"]["hasMore"] is True
        assert wire["pagination"]["nextCursor"]["lastId"] == str(oid(2))

    def test_token_cursor_is_forwarded(self, mock_paginator, mock_store):
        token = encode_cursor(oid(2), 2, mock_store.ids)

        run_paginated_query(
            mock_paginator, {"collectionName": "events", "sort": {"seq": 1}, "cursor": token}
        )

        predicate = mock_store.find.call_args[0][1]
        assert predicate["$or"][0] == {"seq": {"$gt": 2}}

    def test_invalid_arguments(self, mock_paginator, mock_store):
        wire = run_paginated_query(mock_paginator, {"collectionName": "", "limit": "ten"})

        assert wire["isError"] is True
        assert wire["error"]["type"] == "InvalidRequest"
        assert "collectionName" in wire["error"]["message"]
        assert "limit" in wire["error"]["message"]
        mock_store.find.assert_not_called()

    def test_paginator_errors(self, mock_paginator):
        wire = run_paginated_query(mock_paginator, {"collectionName": "events"})

        assert wire == {
            "isError": True,
            "error": {
                "type": "MissingSortSpec",
                "message": "A sort specification with at least one field is required "
                "for keyset pagination",
            },
        }

    def test_truncation_options(self, mock_paginator, mock_store):
        mock_store.find.return_value = [{"_id": oid(1), "seq": 1, "tags": list(range(5))}]

        wire = run_paginated_query(
            mock_paginator,
            {"collectionName": "events", "sort": {"seq": 1}, "maxArrayLength": 2},
        )

        assert wire["results"][0]["tags"] == [0, 1, "... 3 more items"]

    def test_results_are_whole_by_default(self, mock_paginator, mock_store):
        nested = {"l1": {"l2": {"l3": {"l4": {"l5": 1}}}}}
        mock_store.find.return_value = [
            {"_id": oid(1), "seq": 1, "tags": list(range(30)), **nested}
        ]

        wire = run_paginated_query(mock_paginator, {"collectionName": "events", "sort": {"seq": 1}})

        assert wire["results"][0]["tags"] == list(range(30))
        assert wire["results"][0]["l1"] == nested["l1"]

    def test_depth_option_keeps_arrays_whole(self, mock_paginator, mock_store):
        mock_store.find.return_value = [
            {"_id": oid(1), "seq": 1, "tags": list(range(30)), "a": {"b": {"c": 1}}}
        ]

        wire = run_paginated_query(
            mock_paginator, {"collectionName": "events", "sort": {"seq": 1}, "maxDepth": 1}
        )

        assert wire["results"][0]["a"] == {"b": "[Object]"}
        assert wire["results"][0]["tags"] == list(range(30))

    def test_legacy_last_id_alone_is_rejected(self, mock_paginator, mock_store):
        wire = run_paginated_query(
            mock_paginator, {"collectionName": "events", "sort": {"seq": 1}, "lastId": str(oid(2))}
        )

        assert wire["isError"] is True
        assert wire["error"]["type"] == "InvalidRequest"
        assert "lastValue" in wire["error"]["message"]
        mock_store.find.assert_not_called()


@pytest.mark.unit
class TestToolResponse:
    def test_text_content(self, mock_paginator, mock_store):
        mock_store.find.return_value = [make_event(1)]

        response = tool_response(
            mock_paginator, {"collectionName": "events", "sort": {"date": 1}, "pretty": False}
        )

        assert response["isError"] is False
        text = response["content"][0]["text"]
        assert "\n" not in text
        assert json.loads(text)["pagination"]["count"] == 1

    def test_error_text(self, mock_paginator):
        response = tool_response(
            mock_paginator, {"collectionName": "events", "sort": {"date": "up"}}
        )

        assert response["isError"] is True
        assert response["content"][0]["text"].startswith(
            "Error executing paginated query: InvalidSortDirection: "
        )

    def test_invalid_arguments_text(self, mock_paginator, mock_store):
        response = tool_response(mock_paginator, {"collectionName": "events", "pretty": "maybe"})

        assert response["isError"] is True
        assert response["content"][0]["text"].startswith(
            "Error executing paginated query: InvalidRequest: "
        )
        mock_store.find.assert_not_called()

    def test_tool_name(self):
        assert TOOL_NAME == "paginated-query"
