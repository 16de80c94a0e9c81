from typing import Any, Dict

DELETED_FIELD = "deleted"
DELETED_AT_FIELD = "deletedAt"
DELETED_BY_FIELD = "deletedBy"


def not_deleted_filter() -> Dict[str, Any]:
    """Filter matching documents whose deleted flag is absent or false"""
    return {DELETED_FIELD: {"$ne": True}}
