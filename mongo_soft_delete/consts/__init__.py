from mongo_soft_delete.consts.soft_delete import (
    DELETED_FIELD,
    DELETED_AT_FIELD,
    DELETED_BY_FIELD,
    not_deleted_filter,
)

__all__ = ["DELETED_FIELD", "DELETED_AT_FIELD", "DELETED_BY_FIELD", "not_deleted_filter"]
