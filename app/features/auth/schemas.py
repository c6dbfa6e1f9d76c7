from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictBool, field_validator
from pydantic_core import PydanticCustomError

UserRoleName = Literal["learner", "instructor"]
USER_ROLES: tuple[str, ...] = ("learner", "instructor")

# Lookaheads require each class somewhere; the trailing class only constrains
# the first character. Matched from the start, never full-matched.
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]",
    re.ASCII,
)
PASSWORD_MIN_LENGTH = 8
PHONE_NUMBER_PATTERN = re.compile(r"010-\d{4}-\d{4}", re.ASCII)
UUID_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
NAME_MAX_LENGTH = 50


def utf16_length(value: str) -> int:
    """Length in UTF-16 code units, the unit browsers and JS validators count in."""
    return len(value.encode("utf-16-le")) // 2


def is_valid_phone_number(value: str) -> bool:
    return PHONE_NUMBER_PATTERN.fullmatch(value) is not None


def is_valid_password(value: str) -> bool:
    return utf16_length(value) >= PASSWORD_MIN_LENGTH and PASSWORD_PATTERN.match(value) is not None


class CamelModel(BaseModel):
    """Accept and emit camelCase keys on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)


# ----------------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------------

class SignupRequest(CamelModel):
    email: EmailStr
    password: str
    role: UserRoleName
    name: str
    phone_number: str = Field(alias="phoneNumber")
    agree_to_terms: StrictBool = Field(alias="agreeToTerms")

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        if utf16_length(v) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError("password_too_short", "비밀번호는 최소 8자 이상이어야 합니다")
        if PASSWORD_PATTERN.match(v) is None:
            raise PydanticCustomError(
                "password_complexity", "비밀번호는 대소문자, 숫자, 특수문자를 포함해야 합니다"
            )
        return v

    @field_validator("role", mode="before")
    @classmethod
    def _check_role(cls, v: object) -> object:
        if v not in USER_ROLES:
            raise PydanticCustomError("invalid_role", "역할을 선택해주세요 (학습자 또는 강사)")
        return v

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not v:
            raise PydanticCustomError("name_required", "이름을 입력해주세요")
        if utf16_length(v) > NAME_MAX_LENGTH:
            raise PydanticCustomError("name_too_long", "이름은 50자를 초과할 수 없습니다")
        return v

    @field_validator("phone_number")
    @classmethod
    def _check_phone_number(cls, v: str) -> str:
        if not is_valid_phone_number(v):
            raise PydanticCustomError(
                "invalid_phone_number", "올바른 휴대폰번호 형식이 아닙니다 (010-XXXX-XXXX)"
            )
        return v

    @field_validator("agree_to_terms")
    @classmethod
    def _check_agreement(cls, v: bool) -> bool:
        if v is not True:
            raise PydanticCustomError("terms_not_agreed", "약관에 동의해야 합니다")
        return v


class TermsAgreementRequest(CamelModel):
    user_id: str = Field(alias="userId")

    @field_validator("user_id")
    @classmethod
    def _check_user_id(cls, v: str) -> str:
        if UUID_PATTERN.fullmatch(v) is None:
            raise PydanticCustomError("invalid_uuid", "올바른 사용자 ID가 아닙니다")
        return v


# ----------------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------------

class UserProfile(CamelModel):
    id: str
    email: str
    role: UserRoleName
    name: str
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class TermsAgreement(CamelModel):
    id: str
    user_id: str = Field(alias="userId")
    agreed_at: str = Field(alias="agreedAt")


class SignupResponse(BaseModel):
    user: UserProfile
    message: str


class TermsAgreementResponse(BaseModel):
    agreement: TermsAgreement
    message: str
