"""Closed set of signup / terms-agreement error codes and their user-facing messages."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel


class AuthErrorCode(str, Enum):
    EMAIL_ALREADY_EXISTS = "EMAIL_ALREADY_EXISTS"
    USER_CREATION_FAILED = "USER_CREATION_FAILED"
    PROFILE_CREATION_FAILED = "PROFILE_CREATION_FAILED"
    TERMS_AGREEMENT_FAILED = "TERMS_AGREEMENT_FAILED"
    TERMS_ALREADY_AGREED = "TERMS_ALREADY_AGREED"
    INVALID_USER_ID = "INVALID_USER_ID"
    DATABASE_ERROR = "DATABASE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


AUTH_ERROR_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.EMAIL_ALREADY_EXISTS: "이미 등록된 이메일입니다",
    AuthErrorCode.USER_CREATION_FAILED: "사용자 생성에 실패했습니다",
    AuthErrorCode.PROFILE_CREATION_FAILED: "프로필 생성에 실패했습니다",
    AuthErrorCode.TERMS_AGREEMENT_FAILED: "약관 동의 처리에 실패했습니다",
    AuthErrorCode.TERMS_ALREADY_AGREED: "이미 약관에 동의했습니다",
    AuthErrorCode.INVALID_USER_ID: "올바르지 않은 사용자 ID입니다",
    AuthErrorCode.DATABASE_ERROR: "데이터베이스 오류가 발생했습니다",
    AuthErrorCode.VALIDATION_ERROR: "입력값이 올바르지 않습니다",
}


class AuthError(BaseModel):
    """Serializable error payload placed inside the ``error`` envelope key."""

    code: AuthErrorCode
    message: str
    details: Optional[List[Any]] = None

    @classmethod
    def of(cls, code: AuthErrorCode, details: Optional[List[Any]] = None) -> "AuthError":
        return cls(code=code, message=AUTH_ERROR_MESSAGES[code], details=details)


class AuthServiceError(Exception):
    """Raised inside the auth services to short-circuit with a taxonomy member.

    Never propagates past the service functions; they convert it into a failed
    ``ServiceResult``.
    """

    def __init__(self, code: AuthErrorCode, cause: Exception | None = None) -> None:
        super().__init__(code.value)
        self.error = AuthError.of(code)
        self.cause = cause

    @property
    def code(self) -> AuthErrorCode:
        return self.error.code
