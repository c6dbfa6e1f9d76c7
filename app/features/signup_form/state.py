"""Signup form state as immutable values plus a reducer.

``reduce(state, action)`` is the only way state changes; the controller feeds it
actions and keeps the latest result.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from app.features.auth.schemas import is_valid_phone_number

NAME_REQUIRED = "이름을 입력해주세요"
PHONE_REQUIRED = "휴대폰번호를 입력해주세요"
PHONE_INVALID = "올바른 휴대폰번호 형식이 아닙니다 (010-XXXX-XXXX)"
TERMS_REQUIRED = "약관에 동의해야 합니다"

def _no_errors() -> Mapping[str, str]:
    return MappingProxyType({})


class FormPhase(str, Enum):
    idle = "idle"
    submitting = "submitting"
    success = "success"
    failed = "failed"


@dataclass(frozen=True)
class SignupFormValues:
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    role: str = "learner"
    name: str = ""
    phone_number: str = ""
    agree_to_terms: bool = False

    def to_request(self) -> dict[str, Any]:
        """Wire payload for POST /auth/signup (confirm_password stays client-side)."""
        return {
            "email": self.email,
            "password": self.password,
            "role": self.role,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "agreeToTerms": self.agree_to_terms,
        }


@dataclass(frozen=True)
class SignupFormState:
    values: SignupFormValues = field(default_factory=SignupFormValues)
    phase: FormPhase = FormPhase.idle
    field_errors: Mapping[str, str] = field(default_factory=_no_errors)
    error_message: Optional[str] = None
    info_message: Optional[str] = None

    @property
    def is_submitting(self) -> bool:
        return self.phase is FormPhase.submitting


# Actions ---------------------------------------------------------------------

@dataclass(frozen=True)
class FieldChanged:
    name: str
    value: Any


@dataclass(frozen=True)
class SubmitStarted:
    pass


@dataclass(frozen=True)
class ValidationFailed:
    field_errors: Mapping[str, str]


@dataclass(frozen=True)
class SubmitSucceeded:
    info_message: str


@dataclass(frozen=True)
class SubmitFailed:
    error_message: str


@dataclass(frozen=True)
class Reset:
    pass


FormAction = Union[FieldChanged, SubmitStarted, ValidationFailed, SubmitSucceeded, SubmitFailed, Reset]


def reduce(state: SignupFormState, action: FormAction) -> SignupFormState:
    if isinstance(action, FieldChanged):
        values = replace(state.values, **{action.name: action.value})
        phase = state.phase if state.is_submitting else FormPhase.idle
        return replace(state, values=values, phase=phase)
    if isinstance(action, SubmitStarted):
        return replace(
            state,
            phase=FormPhase.submitting,
            field_errors=_no_errors(),
            error_message=None,
            info_message=None,
        )
    if isinstance(action, ValidationFailed):
        return replace(state, phase=FormPhase.failed, field_errors=MappingProxyType(dict(action.field_errors)))
    if isinstance(action, SubmitSucceeded):
        return SignupFormState(phase=FormPhase.success, info_message=action.info_message)
    if isinstance(action, SubmitFailed):
        return replace(state, phase=FormPhase.failed, error_message=action.error_message)
    if isinstance(action, Reset):
        return SignupFormState()
    raise TypeError(f"Unknown form action: {action!r}")


def validate_form(values: SignupFormValues) -> dict[str, str]:
    """Client-side subset of the server rules; keys are wire field names."""
    errors: dict[str, str] = {}
    if not values.name.strip():
        errors["name"] = NAME_REQUIRED
    if not values.phone_number.strip():
        errors["phoneNumber"] = PHONE_REQUIRED
    elif not is_valid_phone_number(values.phone_number):
        errors["phoneNumber"] = PHONE_INVALID
    if not values.agree_to_terms:
        errors["agreeToTerms"] = TERMS_REQUIRED
    return errors


def is_submit_disabled(state: SignupFormState) -> bool:
    v = state.values
    return (
        state.is_submitting
        or not v.email.strip()
        or not v.password.strip()
        or v.password != v.confirm_password
        or not v.name.strip()
        or not v.phone_number.strip()
        or not v.agree_to_terms
    )
