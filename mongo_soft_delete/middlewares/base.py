from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Sequence, Union

from pymongo.results import InsertManyResult, InsertOneResult, UpdateResult

Filter = Optional[Mapping[str, Any]]
Pipeline = Union[Sequence[Mapping[str, Any]], Mapping[str, Any]]


class BaseSoftDeleteMiddleware(ABC):
    """
    Collection operations with soft delete semantics

    Reads and updates never see documents flagged ``deleted: true``, deletes
    only flag documents, inserts and index introspection pass straight through.
    """

    @abstractmethod
    def find(self, filter: Filter = None, *args, **kwargs) -> Any:
        ...

    @abstractmethod
    async def find_one(self, filter: Filter | Any = None, *args, **kwargs) -> Optional[Mapping[str, Any]]:
        ...

    @abstractmethod
    async def count_documents(self, filter: Filter = None, **kwargs) -> int:
        ...

    @abstractmethod
    async def soft_delete_one(self, filter: Filter, deleted_by: Any = None, **kwargs) -> UpdateResult:
        ...

    @abstractmethod
    async def soft_delete_many(self, filter: Filter, deleted_by: Any = None, **kwargs) -> UpdateResult:
        ...

    @abstractmethod
    async def soft_delete_by_id(self, id: Any, deleted_by: Any = None, **kwargs) -> UpdateResult:
        ...

    @abstractmethod
    def aggregate(self, pipeline: Pipeline, **kwargs) -> Any:
        ...

    @abstractmethod
    async def update_by_id(self, id: Any, update: Any, **kwargs) -> UpdateResult:
        ...

    @abstractmethod
    async def update_one(self, filter: Filter, update: Any, **kwargs) -> UpdateResult:
        ...

    @abstractmethod
    async def update_many(self, filter: Filter, update: Any, **kwargs) -> UpdateResult:
        ...

    @abstractmethod
    async def find_one_and_update(self, filter: Filter, update: Any, **kwargs) -> Optional[Mapping[str, Any]]:
        ...

    @abstractmethod
    async def insert_one(self, document: Any, **kwargs) -> InsertOneResult:
        ...

    @abstractmethod
    async def insert_many(self, documents: List[Any], **kwargs) -> InsertManyResult:
        ...

    @property
    @abstractmethod
    def indexes(self) -> Any:
        ...
