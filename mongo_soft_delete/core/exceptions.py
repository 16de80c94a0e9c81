from typing import Any, Dict, Optional


class SoftDeleteError(Exception):
    def __init__(
        self,
        message: str,
        *,
        code: str = "soft_delete_error",
        details: Optional[Dict[str, Any]] = None,  # Additional details for the error
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class InvalidPipelineError(SoftDeleteError, TypeError):
    """Aggregation pipeline is not a list, tuple or single stage mapping"""

    def __init__(self, pipeline: Any):
        type_name = type(pipeline).__name__
        super().__init__(
            f"pipeline must be a list, tuple or mapping of stages, got {type_name}",
            code="invalid_pipeline",
            details={"type": type_name},
        )


class DatabaseNotConnectedError(SoftDeleteError):
    def __init__(self, message: str = "MongoDB is not connected, call connect() first"):
        super().__init__(message, code="database_not_connected")
