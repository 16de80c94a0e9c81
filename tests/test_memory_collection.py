"""Tests for the in-memory collection handle."""

import pytest
from bson import ObjectId
from pymongo import IndexModel
from pymongo.errors import BulkWriteError, DuplicateKeyError, OperationFailure

from mongo_soft_delete.databases.memory import InMemoryCollection, apply_update, matches

DOC = {
    "_id": 1,
    "name": "alpha",
    "count": 5,
    "flag": 1,
    "tags": ["red", "blue"],
    "owner": {"id": "u1", "roles": [{"name": "admin"}]},
}


@pytest.mark.parametrize(
    "filter_, expected",
    [
        (None, True),
        ({}, True),
        ({"name": "alpha"}, True),
        ({"name": "beta"}, False),
        ({"owner.id": "u1"}, True),
        ({"owner.roles.name": "admin"}, True),
        ({"tags": "red"}, True),
        ({"tags": ["red", "blue"]}, True),
        ({"missing": None}, True),
        ({"missing": {"$exists": False}}, True),
        ({"name": {"$exists": True}}, True),
        ({"count": {"$gt": 4, "$lte": 5}}, True),
        ({"count": {"$lt": 5}}, False),
        ({"name": {"$nin": ["alpha"]}}, False),
        ({"deleted": {"$ne": True}}, True),
        ({"flag": True}, False),
        ({"flag": {"$ne": True}}, True),
        ({"$and": [{}, {"name": "alpha"}]}, True),
        ({"$or": [{"name": "beta"}, {"count": 5}]}, True),
        ({"$nor": [{"name": "alpha"}]}, False),
    ],
)
def test_matches(filter_, expected):
    assert matches(DOC, filter_) is expected


def test_unknown_operator_raises_operation_failure():
    with pytest.raises(OperationFailure):
        matches(DOC, {"name": {"$regex": "^a"}})
    with pytest.raises(OperationFailure):
        matches(DOC, {"$where": "true"})


def test_apply_update_operators():
    doc = {"_id": 1, "a": 1, "b": 2}

    changed = apply_update(doc, {"$set": {"c.d": 3}, "$unset": {"b": ""}, "$inc": {"a": 2, "n": 1}})

    assert changed is True
    assert doc == {"_id": 1, "a": 3, "c": {"d": 3}, "n": 1}
    assert apply_update(doc, {"$set": {"a": 3}}) is False


def test_apply_update_requires_operators():
    with pytest.raises(ValueError):
        apply_update({}, {"a": 1})
    with pytest.raises(OperationFailure):
        apply_update({}, {"$push": {"a": 1}})


@pytest.mark.asyncio
async def test_insert_assigns_object_id_and_copies():
    collection = InMemoryCollection("things")
    document = {"name": "x", "nested": {"k": 1}}

    result = await collection.insert_one(document)
    document["nested"]["k"] = 2

    assert isinstance(result.inserted_id, ObjectId)
    assert document["_id"] == result.inserted_id
    stored = await collection.find_one({"_id": result.inserted_id})
    assert stored["nested"] == {"k": 1}


@pytest.mark.asyncio
async def test_duplicate_id_raises():
    collection = InMemoryCollection("things", [{"_id": 1}])

    with pytest.raises(DuplicateKeyError):
        await collection.insert_one({"_id": 1})

    with pytest.raises(BulkWriteError) as exc_info:
        await collection.insert_many([{"_id": 2}, {"_id": 1}, {"_id": 3}])
    assert exc_info.value.details["nInserted"] == 1
    assert await collection.count_documents({}) == 2


@pytest.mark.asyncio
async def test_insert_many_requires_documents():
    with pytest.raises(TypeError):
        await InMemoryCollection().insert_many([])


@pytest.mark.asyncio
async def test_upsert_is_not_supported():
    with pytest.raises(NotImplementedError):
        await InMemoryCollection().update_one({"a": 1}, {"$set": {"a": 2}}, upsert=True)


@pytest.mark.asyncio
async def test_cursor_sort_skip_limit_projection():
    collection = InMemoryCollection("things", [{"_id": i, "v": i % 3, "w": i} for i in range(6)])

    docs = await collection.find({}, {"w": 1, "_id": 0}).sort([("v", -1), ("w", 1)]).skip(1).limit(3).to_list()

    assert docs == [{"w": 5}, {"w": 1}, {"w": 4}]

    seen = [doc["_id"] async for doc in collection.find({"v": 0}, sort=[("_id", -1)])]
    assert seen == [3, 0]


def test_aggregate_unknown_stage():
    with pytest.raises(OperationFailure):
        InMemoryCollection().aggregate([{"$lookup": {}}])


@pytest.mark.asyncio
async def test_index_management():
    collection = InMemoryCollection("things")

    names = await collection.create_indexes([IndexModel([("a", 1), ("b", -1)], name="ab")])

    assert names == ["ab"]
    info = await collection.index_information()
    assert info["ab"]["key"] == [("a", 1), ("b", -1)]

    with pytest.raises(OperationFailure):
        await collection.drop_index("_id_")
    with pytest.raises(OperationFailure):
        await collection.drop_index("nope")

    await collection.drop_index("ab")
    assert list(await collection.index_information()) == ["_id_"]
