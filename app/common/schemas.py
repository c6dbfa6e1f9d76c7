from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from app.features.auth.errors import AuthError

T = TypeVar("T")

# RESULT AND ENVELOPE SCHEMAS

class ServiceResult(BaseModel, Generic[T]):
    """Outcome of a service call: either ``data`` (ok) or ``error`` (not ok)."""
    ok: bool
    data: Optional[T] = None
    error: Optional[AuthError] = None

    @classmethod
    def success(cls, data: T) -> "ServiceResult[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: AuthError) -> "ServiceResult[T]":
        return cls(ok=False, error=error)


class SuccessEnvelope(BaseModel):
    """Uniform success wrapper: ``{"success": true, "data": ...}``"""
    success: bool = True
    data: Any


class ErrorEnvelope(BaseModel):
    """Uniform failure wrapper: ``{"success": false, "error": {...}}``"""
    success: bool = False
    error: AuthError

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
