from mongo_soft_delete.crud.base import BaseCRUD

__all__ = ["BaseCRUD"]
