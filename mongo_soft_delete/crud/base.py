from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from bson import ObjectId
from pydantic import BaseModel

from mongo_soft_delete.consts import DELETED_AT_FIELD, DELETED_BY_FIELD, DELETED_FIELD
from mongo_soft_delete.middlewares.soft_delete import SoftDeleteMiddleware
from mongo_soft_delete.utils.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Only soft_delete() may write these
PROTECTED_FIELDS = {"_id", DELETED_FIELD, DELETED_AT_FIELD, DELETED_BY_FIELD}


def _object_id(id: Any) -> Any:
    if isinstance(id, str) and ObjectId.is_valid(id):
        return ObjectId(id)
    return id


class BaseCRUD(Generic[ModelT]):
    """Typed access to a soft delete collection, deleted documents are never returned"""

    def __init__(self, model: Type[ModelT], collection: SoftDeleteMiddleware):
        self.model = model
        self.collection = collection

    def _validate(self, doc: Optional[Dict[str, Any]]) -> Optional[ModelT]:
        if doc is None:
            return None
        return self.model.model_validate(doc)

    async def get_by_id(self, id: Any) -> Optional[ModelT]:
        doc = await self.collection.find_one({"_id": _object_id(id)})
        return self._validate(doc)

    async def get_one(self, filter_: Dict[str, Any]) -> Optional[ModelT]:
        doc = await self.collection.find_one(dict(filter_))
        return self._validate(doc)

    async def list(
        self,
        filter_: Optional[Dict[str, Any]] = None,
        limit: int = 50,
        skip: int = 0,
    ) -> List[ModelT]:
        cursor = self.collection.find(dict(filter_ or {}))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=None)
        return [self.model.model_validate(doc) for doc in docs]

    async def count(self, filter_: Optional[Dict[str, Any]] = None) -> int:
        return await self.collection.count_documents(dict(filter_ or {}))

    async def create(self, obj_in: BaseModel | Dict[str, Any]) -> ModelT:
        # Validate before writing so a rejected document is never stored
        if isinstance(obj_in, self.model):
            model = obj_in
        elif isinstance(obj_in, BaseModel):
            model = self.model.model_validate(obj_in.model_dump(by_alias=True))
        else:
            model = self.model.model_validate(dict(obj_in))
        data = model.model_dump(by_alias=True, exclude_none=True)
        result = await self.collection.insert_one(data)
        data["_id"] = result.inserted_id
        return self.model.model_validate(data)

    async def update(self, id: Any, obj_in: BaseModel | Dict[str, Any]) -> bool:
        """Set the given fields on a non deleted document, True if one matched"""
        if isinstance(obj_in, BaseModel):
            update_data = obj_in.model_dump(by_alias=True, exclude_unset=True)
        else:
            update_data = {k: v for k, v in obj_in.items() if v is not None}
        update_data = {k: v for k, v in update_data.items() if k not in PROTECTED_FIELDS}

        if "updated_at" in self.model.model_fields:
            update_data["updated_at"] = datetime.now(timezone.utc)

        if not update_data:
            logger.warning(f"Nothing to update for {self.model.__name__} {id}")
            return False

        result = await self.collection.update_by_id(_object_id(id), {"$set": update_data})
        return result.matched_count > 0

    async def soft_delete(self, id: Any, deleted_by: Any = None) -> bool:
        result = await self.collection.soft_delete_by_id(_object_id(id), deleted_by=deleted_by)
        return result.matched_count > 0
