"""
Shared pytest fixtures and configuration for mongopage tests.

This module provides common fixtures used across unit and integration tests,
including mocked document stores and mongomock-backed collections.
"""

from datetime import timedelta
from typing import Any
from unittest.mock import MagicMock

import mongomock
import pytest

from mongopage import MongoDocumentStore, ObjectIdCodec, Paginator
from tests.helpers.documents import BASE_DATE, make_event


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against mongomock")


@pytest.fixture
def mock_store():
    """
    Creates a fully mocked document store.

    find() returns no documents unless a test sets find.return_value.
    """
    store = MagicMock()
    store.ids = ObjectIdCodec()
    store.find.return_value = []
    return store


@pytest.fixture
def mock_paginator(mock_store):
    return Paginator(mock_store)


@pytest.fixture
def mongo_db():
    """A fresh in-memory database per test."""
    client = mongomock.MongoClient()
    yield client["mongopage_test"]
    client.close()


@pytest.fixture
def store(mongo_db):
    return MongoDocumentStore(mongo_db)


@pytest.fixture
def paginator(store):
    return Paginator(store)


@pytest.fixture
def events(mongo_db) -> list[dict[str, Any]]:
    """
    25 events, one per day, inserted in reverse order so that insertion
    order never matches sort order by accident.

    Returns the documents in ascending (date, _id) order.
    """
    docs = [make_event(n) for n in range(1, 26)]
    mongo_db["events"].insert_many([dict(d) for d in reversed(docs)])
    return docs


@pytest.fixture
def tied_events(mongo_db) -> list[dict[str, Any]]:
    """
    Ten events where dates repeat: pairs and a triple share the same day.

    Returns the documents in ascending (date, _id) order.
    """
    days = [1, 1, 2, 3, 3, 3, 4, 5, 5, 6]
    docs = [
        make_event(n, date=BASE_DATE + timedelta(days=day)) for n, day in enumerate(days, start=1)
    ]
    mongo_db["tied"].insert_many([dict(d) for d in reversed(docs)])
    return docs
