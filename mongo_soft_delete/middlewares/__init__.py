from mongo_soft_delete.middlewares.base import BaseSoftDeleteMiddleware
from mongo_soft_delete.middlewares.soft_delete import IndexView, SoftDeleteMiddleware

__all__ = ["BaseSoftDeleteMiddleware", "SoftDeleteMiddleware", "IndexView"]
