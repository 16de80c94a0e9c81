from beanie import Document

from mongo_soft_delete.middlewares.soft_delete import SoftDeleteMiddleware
from mongo_soft_delete.models.soft_delete_mixin import SoftDeleteMixin


class SoftDeleteDocument(Document, SoftDeleteMixin):
    """Beanie document carrying the soft delete fields"""

    @classmethod
    def soft_delete_collection(cls) -> SoftDeleteMiddleware:
        """Soft delete view of this document's collection"""
        return SoftDeleteMiddleware(cls.get_motor_collection())
