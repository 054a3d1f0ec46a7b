"""
FastAPI Integration Example

Exposes the paginated-query tool over HTTP and a typed endpoint that pages
through one collection with a cursor query parameter.
"""

import os
from typing import Any

from fastapi import FastAPI, HTTPException, status
from pymongo import MongoClient

from mongopage import MongoDocumentStore, PaginationConfig, Paginator
from mongopage.tool import input_schema, run_paginated_query

client = MongoClient(os.environ.get("MONGODB_URI", "mongodb://localhost:27017"))
paginator = Paginator(
    MongoDocumentStore(client[os.environ.get("MONGODB_DB", "shop")]),
    PaginationConfig(default_limit=25, max_limit=200),
)

app = FastAPI(title="mongopage + FastAPI Example")

_ERROR_STATUS = {
    "StoreUnavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.get("/tools/paginated-query/schema")
def tool_schema() -> dict[str, Any]:
    """Argument schema for tool registration"""
    return input_schema()


@app.post("/tools/paginated-query")
def paginated_query_tool(arguments: dict[str, Any]) -> dict[str, Any]:
    """Run the tool with raw JSON arguments"""
    return run_paginated_query(paginator, arguments)


@app.get("/orders")
def list_orders(
    status_filter: str | None = None, limit: int = 25, cursor: str | None = None
) -> dict[str, Any]:
    """Newest orders first; pass pagination.nextCursor.token back as ?cursor="""
    query = {"status": status_filter} if status_filter else {}
    result = paginator.paginated_query(
        "orders", query, {"created_at": -1}, limit=limit, cursor=cursor
    )
    wire = paginator.to_wire(result)
    if result.is_error:
        raise HTTPException(
            status_code=_ERROR_STATUS.get(result.code, status.HTTP_400_BAD_REQUEST),
            detail=wire["error"],
        )
    return wire


# Run with: uvicorn main:app --reload
# Visit: http://localhost:8000/docs
