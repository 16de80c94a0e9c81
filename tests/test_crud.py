"""Tests for the typed CRUD helper and the soft delete models."""

from datetime import datetime, timezone
from typing import Optional
from unittest.mock import MagicMock, patch

import pytest
from beanie import PydanticObjectId
from bson import ObjectId
from pydantic import Field, ValidationError

from mongo_soft_delete.crud.base import BaseCRUD
from mongo_soft_delete.databases.memory import InMemoryCollection
from mongo_soft_delete.middlewares.soft_delete import SoftDeleteMiddleware
from mongo_soft_delete.models import SoftDeleteDocument, SoftDeleteMixin

from tests.conftest import ACTOR_ID


class Item(SoftDeleteMixin):
    id: Optional[PydanticObjectId] = Field(default=None, alias="_id")
    name: str
    updated_at: Optional[datetime] = None


class Note(SoftDeleteDocument):
    text: str


@pytest.fixture
def raw_collection():
    return InMemoryCollection("items")


@pytest.fixture
def item_crud(raw_collection):
    return BaseCRUD(Item, SoftDeleteMiddleware(raw_collection))


@pytest.mark.asyncio
async def test_create_and_get(item_crud, raw_collection):
    item = await item_crud.create(Item(name="widget"))

    assert isinstance(item.id, ObjectId)
    assert item.is_deleted() is False
    raw = await raw_collection.find_one({"_id": item.id})
    assert "deletedAt" not in raw

    fetched = await item_crud.get_by_id(str(item.id))
    assert fetched.name == "widget"
    assert (await item_crud.get_one({"name": "widget"})).id == item.id


@pytest.mark.asyncio
async def test_create_from_mapping_drops_none(item_crud, raw_collection):
    item = await item_crud.create({"name": "gizmo", "updated_at": None})

    raw = await raw_collection.find_one({"_id": item.id})
    assert "updated_at" not in raw


@pytest.mark.asyncio
async def test_list_and_count_skip_deleted(item_crud):
    created = [await item_crud.create({"name": f"item-{i}"}) for i in range(4)]
    await item_crud.soft_delete(created[0].id)

    items = await item_crud.list()
    assert [item.name for item in items] == ["item-1", "item-2", "item-3"]
    assert [item.name for item in await item_crud.list(limit=1, skip=1)] == ["item-2"]
    assert await item_crud.count() == 3
    assert await item_crud.count({"name": "item-0"}) == 0


@pytest.mark.asyncio
async def test_soft_delete_hides_document(item_crud, raw_collection):
    item = await item_crud.create({"name": "widget"})

    assert await item_crud.soft_delete(item.id, deleted_by=ACTOR_ID) is True

    assert await item_crud.get_by_id(item.id) is None
    raw = await raw_collection.find_one({"_id": item.id})
    stored = Item.model_validate(raw)
    assert stored.is_deleted() is True
    assert stored.deleted_by == ACTOR_ID
    assert stored.deleted_at is not None


@pytest.mark.asyncio
async def test_update_sets_fields_and_timestamp(item_crud, raw_collection):
    item = await item_crud.create({"name": "widget"})

    assert await item_crud.update(item.id, {"name": "renamed", "deleted": True}) is True

    raw = await raw_collection.find_one({"_id": item.id})
    assert raw["name"] == "renamed"
    assert raw["deleted"] is False
    assert raw["updated_at"] is not None


@pytest.mark.asyncio
async def test_update_deleted_document_does_not_match(item_crud):
    item = await item_crud.create({"name": "widget"})
    await item_crud.soft_delete(item.id)

    assert await item_crud.update(item.id, {"name": "renamed"}) is False


@pytest.mark.asyncio
async def test_update_without_fields_is_a_no_op(raw_collection):
    class Plain(SoftDeleteMixin):
        id: Optional[PydanticObjectId] = Field(default=None, alias="_id")
        name: str

    crud = BaseCRUD(Plain, SoftDeleteMiddleware(raw_collection))
    item = await crud.create({"name": "widget"})

    assert await crud.update(item.id, {"name": None}) is False


def test_mixin_reads_wire_aliases():
    deleted_at = datetime(2024, 5, 1, tzinfo=timezone.utc)

    item = Item.model_validate({"name": "x", "deleted": True, "deletedAt": deleted_at, "deletedBy": "user-1"})

    assert item.is_deleted() is True
    assert item.deleted_at == deleted_at
    assert item.deleted_by == "user-1"
    dumped = item.model_dump(by_alias=True, exclude_none=True)
    assert dumped["deletedAt"] == deleted_at
    assert dumped["deletedBy"] == "user-1"


def test_mixin_defaults_to_active():
    item = Item(name="x")
    assert item.deleted is False
    assert item.deleted_at is None
    assert item.deleted_by is None


def test_document_soft_delete_collection():
    motor_collection = MagicMock()

    with patch.object(Note, "get_motor_collection", return_value=motor_collection):
        collection = Note.soft_delete_collection()

    assert isinstance(collection, SoftDeleteMiddleware)
    assert collection.collection is motor_collection


@pytest.mark.asyncio
async def test_invalid_mapping_is_not_stored(item_crud, raw_collection):
    with pytest.raises(ValidationError):
        await item_crud.create({"title": "no name field"})

    assert await raw_collection.count_documents({}) == 0


@pytest.mark.asyncio
async def test_mapping_and_model_create_write_same_shape(item_crud, raw_collection):
    from_mapping = await item_crud.create({"name": "a"})
    from_model = await item_crud.create(Item(name="b"))

    raw_mapping = await raw_collection.find_one({"_id": from_mapping.id})
    raw_model = await raw_collection.find_one({"_id": from_model.id})
    assert set(raw_mapping) == set(raw_model) == {"_id", "name", "deleted"}
    assert raw_mapping["deleted"] is False
