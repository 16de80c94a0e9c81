from mongo_soft_delete.models.soft_delete_mixin import SoftDeleteMixin
from mongo_soft_delete.models.base import SoftDeleteDocument

__all__ = [
    "SoftDeleteMixin",
    "SoftDeleteDocument",
]
