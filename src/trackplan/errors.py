"""Domain error taxonomy for the catalog engine.

Validation, missing-row and conflict errors are raised to the caller and mapped to 4xx by the
HTTP layer. Benign unique-constraint races and payload decode failures never reach this module:
they are absorbed where they happen. Everything else propagates untouched.
"""
from __future__ import annotations
from typing import Any


class TrackingPlanError(Exception):
    status_code = 500
    code = "tracking_plan_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.code, "message": self.message}


class CatalogValidationError(TrackingPlanError):
    status_code = 400
    code = "validation_error"


class CatalogNotFoundError(TrackingPlanError):
    status_code = 404
    code = "not_found"


class CatalogConflictError(TrackingPlanError):
    status_code = 409
    code = "conflict"

    def __init__(self, message: str, conflict: dict[str, Any] | None = None):
        super().__init__(message)
        self.conflict = conflict or {}

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        if self.conflict:
            out["conflictData"] = self.conflict
        return out


__all__ = ["TrackingPlanError", "CatalogValidationError", "CatalogNotFoundError", "CatalogConflictError"]
