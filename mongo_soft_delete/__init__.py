from mongo_soft_delete.consts import DELETED_AT_FIELD, DELETED_BY_FIELD, DELETED_FIELD
from mongo_soft_delete.core.exceptions import (
    DatabaseNotConnectedError,
    InvalidPipelineError,
    SoftDeleteError,
)
from mongo_soft_delete.middlewares import BaseSoftDeleteMiddleware, IndexView, SoftDeleteMiddleware
from mongo_soft_delete.databases import InMemoryCollection, MongoDB, mongodb
from mongo_soft_delete.models import SoftDeleteDocument, SoftDeleteMixin
from mongo_soft_delete.crud import BaseCRUD

__all__ = [
    "DELETED_FIELD",
    "DELETED_AT_FIELD",
    "DELETED_BY_FIELD",
    "SoftDeleteError",
    "InvalidPipelineError",
    "DatabaseNotConnectedError",
    "BaseSoftDeleteMiddleware",
    "SoftDeleteMiddleware",
    "IndexView",
    "InMemoryCollection",
    "MongoDB",
    "mongodb",
    "SoftDeleteMixin",
    "SoftDeleteDocument",
    "BaseCRUD",
]
