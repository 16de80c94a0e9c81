from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from pymongo.results import InsertManyResult, InsertOneResult, UpdateResult

from mongo_soft_delete.consts import (
    DELETED_AT_FIELD,
    DELETED_BY_FIELD,
    DELETED_FIELD,
    not_deleted_filter,
)
from mongo_soft_delete.core.exceptions import InvalidPipelineError
from mongo_soft_delete.middlewares.base import BaseSoftDeleteMiddleware, Filter, Pipeline
from mongo_soft_delete.utils.logging import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IndexView:
    """Index introspection forwarded to the wrapped collection"""

    def __init__(self, collection: Any):
        self._collection = collection

    def list(self, **kwargs):
        return self._collection.list_indexes(**kwargs)

    async def information(self, **kwargs) -> Dict[str, Any]:
        return await self._collection.index_information(**kwargs)

    async def create_one(self, keys: Any, **kwargs) -> str:
        return await self._collection.create_index(keys, **kwargs)

    async def create_many(self, indexes: Sequence[Any], **kwargs) -> List[str]:
        return await self._collection.create_indexes(indexes, **kwargs)

    async def drop_one(self, index_or_name: Any, **kwargs) -> None:
        await self._collection.drop_index(index_or_name, **kwargs)


class SoftDeleteMiddleware(BaseSoftDeleteMiddleware):
    """
    Soft delete decorator around a motor collection

    The wrapped handle is kept in ``collection`` and every call maps to exactly
    one call on it. Operations not listed here are not exposed; use
    ``collection`` directly when a raw, unfiltered operation is needed.

    Args:
        collection: ``AsyncIOMotorCollection`` or any handle with the same methods
        clock: Returns the timestamp stored in ``deletedAt``, UTC now by default
    """

    def __init__(self, collection: Any, clock: Optional[Callable[[], datetime]] = None):
        self.collection = collection
        self._clock = clock or _utcnow

    @property
    def name(self) -> str:
        return self.collection.name

    def find(self, filter: Filter = None, *args, **kwargs):
        """Find documents that are not soft deleted"""
        filter = self._add_soft_delete_filter(filter)
        return self.collection.find(filter, *args, **kwargs)

    async def find_one(self, filter: Filter | Any = None, *args, **kwargs) -> Optional[Mapping[str, Any]]:
        """Find a single document that is not soft deleted"""
        filter = self._add_soft_delete_filter(filter)
        return await self.collection.find_one(filter, *args, **kwargs)

    async def count_documents(self, filter: Filter = None, **kwargs) -> int:
        filter = self._add_soft_delete_filter(filter)
        return await self.collection.count_documents(filter, **kwargs)

    async def soft_delete_one(self, filter: Filter, deleted_by: Any = None, **kwargs) -> UpdateResult:
        """Flag the first document matching filter as deleted"""
        update = self._create_soft_delete_update(deleted_by)
        result = await self.collection.update_one(filter, update, **kwargs)
        self._log_soft_delete("soft_delete_one", result)
        return result

    async def soft_delete_many(self, filter: Filter, deleted_by: Any = None, **kwargs) -> UpdateResult:
        """Flag every document matching filter as deleted"""
        update = self._create_soft_delete_update(deleted_by)
        result = await self.collection.update_many(filter, update, **kwargs)
        self._log_soft_delete("soft_delete_many", result)
        return result

    async def soft_delete_by_id(self, id: Any, deleted_by: Any = None, **kwargs) -> UpdateResult:
        """Flag the document with the given _id as deleted"""
        update = self._create_soft_delete_update(deleted_by)
        result = await self.collection.update_one({"_id": id}, update, **kwargs)
        self._log_soft_delete("soft_delete_by_id", result)
        return result

    def aggregate(self, pipeline: Pipeline, **kwargs):
        """
        Run an aggregation that never sees soft deleted documents

        A ``$match`` on the deleted flag is prepended, so it always runs before
        the caller's stages. ``pipeline`` may be a list or tuple of stages or a
        single stage mapping.

        Raises:
            InvalidPipelineError: pipeline has any other shape. Nothing is sent
                to the database in that case.
        """
        if isinstance(pipeline, Mapping):
            stages = [pipeline]
        elif isinstance(pipeline, (list, tuple)):
            stages = list(pipeline)
        else:
            error = InvalidPipelineError(pipeline)
            logger.warning(
                f"Rejected aggregation on {self._collection_name}: {error.message}",
                extra={"collection": self._collection_name},
            )
            raise error

        new_pipeline = [{"$match": not_deleted_filter()}, *stages]
        logger.debug(
            f"aggregate on {self._collection_name} with pipeline {new_pipeline}",
            extra={"collection": self._collection_name},
        )
        return self.collection.aggregate(new_pipeline, **kwargs)

    async def update_by_id(self, id: Any, update: Any, **kwargs) -> UpdateResult:
        """Update a single non deleted document by _id"""
        filter = {
            "_id": id,
            DELETED_FIELD: {"$ne": True},
        }
        return await self.collection.update_one(filter, update, **kwargs)

    async def update_one(self, filter: Filter, update: Any, **kwargs) -> UpdateResult:
        filter = self._add_soft_delete_filter(filter)
        return await self.collection.update_one(filter, update, **kwargs)

    async def update_many(self, filter: Filter, update: Any, **kwargs) -> UpdateResult:
        filter = self._add_soft_delete_filter(filter)
        return await self.collection.update_many(filter, update, **kwargs)

    async def find_one_and_update(self, filter: Filter, update: Any, **kwargs) -> Optional[Mapping[str, Any]]:
        filter = self._add_soft_delete_filter(filter)
        return await self.collection.find_one_and_update(filter, update, **kwargs)

    async def insert_one(self, document: Any, **kwargs) -> InsertOneResult:
        return await self.collection.insert_one(document, **kwargs)

    async def insert_many(self, documents: List[Any], **kwargs) -> InsertManyResult:
        return await self.collection.insert_many(documents, **kwargs)

    @property
    def indexes(self) -> IndexView:
        return IndexView(self.collection)

    @property
    def _collection_name(self) -> str:
        return getattr(self.collection, "name", type(self.collection).__name__)

    def _add_soft_delete_filter(self, filter: Any) -> Dict[str, Any]:
        """AND the caller's filter with the not-deleted clause, never merging into it"""
        # A bare value is an _id, as in pymongo find_one
        if filter is not None and not isinstance(filter, Mapping):
            filter = {"_id": filter}
        if not filter:
            combined = not_deleted_filter()
        else:
            combined = {"$and": [filter, not_deleted_filter()]}
        logger.debug(
            f"Soft delete filter on {self._collection_name}: {combined}",
            extra={"collection": self._collection_name},
        )
        return combined

    def _create_soft_delete_update(self, deleted_by: Any = None) -> Dict[str, Any]:
        payload = {
            DELETED_FIELD: True,
            DELETED_AT_FIELD: self._clock(),
        }
        # None and "" both mean no actor
        if deleted_by is not None and deleted_by != "":
            payload[DELETED_BY_FIELD] = deleted_by
        return {"$set": payload}

    def _log_soft_delete(self, operation: str, result: UpdateResult) -> None:
        if getattr(result, "acknowledged", False):
            logger.info(
                f"{operation} on {self._collection_name}: "
                f"matched={result.matched_count} modified={result.modified_count}",
                extra={"collection": self._collection_name},
            )
