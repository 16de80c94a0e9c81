"""
Soft delete test configuration

Provides an in-memory collection seeded with active and deleted documents,
and a mocked motor collection for asserting the exact calls made.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from mongo_soft_delete.databases.memory import InMemoryCollection
from mongo_soft_delete.middlewares.soft_delete import SoftDeleteMiddleware

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
ACTOR_ID = ObjectId("65f000000000000000000001")


def seed_documents():
    return [
        {"_id": 1, "name": "alpha", "status": "active"},
        {"_id": 2, "name": "beta", "status": "active", "deleted": False},
        {"_id": 3, "name": "gamma", "status": "archived", "deleted": True,
         "deletedAt": datetime(2024, 1, 1, tzinfo=timezone.utc)},
        {"_id": 4, "name": "delta", "status": "archived"},
    ]


@pytest.fixture
def memory_collection():
    return InMemoryCollection("items", seed_documents())


@pytest.fixture
def middleware(memory_collection):
    return SoftDeleteMiddleware(memory_collection)


@pytest.fixture
def mock_collection():
    """Mocked AsyncIOMotorCollection, find/aggregate/list_indexes are sync like motor's"""
    collection = MagicMock()
    collection.name = "items"
    for method in (
        "find_one",
        "count_documents",
        "update_one",
        "update_many",
        "find_one_and_update",
        "insert_one",
        "insert_many",
        "index_information",
        "create_index",
        "create_indexes",
        "drop_index",
    ):
        setattr(collection, method, AsyncMock())
    return collection


@pytest.fixture
def mocked_middleware(mock_collection):
    return SoftDeleteMiddleware(mock_collection, clock=lambda: FIXED_NOW)
