"""
Recall — Data Layer Errors

Raised by recall.content.store, turned into JSON error responses by the
app's exception handler. The view controller never raises; it reports through effects.
"""

from typing import Any, Dict, Optional


class RecallError(Exception):
    """Base class for all data-layer errors."""
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        data = {"error": str(self)}
        data.update(self.details)
        return data


class InvalidCredentials(RecallError):
    status_code = 401


class PermissionDenied(RecallError):
    status_code = 403


class SaveLimitReached(PermissionDenied):
    """Non-admin users can keep only a few saved memorization texts."""

    def __init__(self, limit: int, current_count: int):
        super().__init__(
            f"Save limit reached. You can only save up to {limit} memorization practices. "
            "Please delete an existing practice to save a new one.",
            {"limit": limit, "current_count": current_count},
        )


class ContentNotFound(RecallError):
    status_code = 404


class InvalidContent(RecallError):
    status_code = 400
