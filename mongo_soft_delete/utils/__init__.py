from mongo_soft_delete.utils.logging import get_logger, setup_logging
from mongo_soft_delete.utils.sentry import init_sentry


__all__ = [
    "get_logger",
    "setup_logging",
    "init_sentry",
]
