"""
Error types raised by the lineage store and services.

Each error carries the HTTP status the API layer answers with.
"""
from typing import Any, Dict, Optional


class LineageError(Exception):
    status_code = 500
    error_type = "lineage_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.error_type, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(LineageError):
    status_code = 400
    error_type = "validation_error"


class NotFoundError(LineageError):
    status_code = 404
    error_type = "not_found"


class ConflictError(LineageError):
    """Duplicate (source, target) creation lost a race and could not be resolved."""
    status_code = 409
    error_type = "conflict"


class StoreUnavailableError(LineageError):
    """The edge store could not be reached. Fatal to the current request."""
    status_code = 503
    error_type = "store_unavailable"
