"""Registration and terms-agreement orchestration.

Both entry points return a ``ServiceResult`` and never raise: provider and
storage failures are classified into an ``AuthErrorCode`` here, and anything
unrecognised collapses to ``DATABASE_ERROR``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AuthError as SupabaseAuthError

from app.common.schemas import ServiceResult
from .errors import AuthError, AuthErrorCode, AuthServiceError
from .repository import (
    QueryTimeoutError,
    RecordNotReturnedError,
    identity_repository,
    terms_agreement_repository,
    user_repository,
)
from .schemas import (
    SignupRequest,
    SignupResponse,
    TermsAgreement,
    TermsAgreementRequest,
    TermsAgreementResponse,
    UserProfile,
)

logger = logging.getLogger("auth.service")

SIGNUP_SUCCESS_MESSAGE = "회원가입이 완료되었습니다"
TERMS_SUCCESS_MESSAGE = "약관 동의가 완료되었습니다"

_ALREADY_REGISTERED_CODES = {"user_already_exists", "email_exists"}
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"

# Storage failures that still mean "the write did not happen".
_STORAGE_FAILURES = (APIError, httpx.HTTPError, QueryTimeoutError)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, APIError):
        return f"code={exc.code} message={exc.message}"
    return f"{type(exc).__name__}: {exc}"


def is_already_registered(exc: BaseException) -> bool:
    """True when an auth error means the email already has an identity."""
    code = str(getattr(exc, "code", None) or "").lower()
    if code in _ALREADY_REGISTERED_CODES:
        return True
    message = getattr(exc, "message", None) or str(exc)
    return "already registered" in str(message).lower()


# ----------------------------------------------------------------------------
# Registration
# ----------------------------------------------------------------------------

async def _create_identity(signup: SignupRequest) -> str:
    try:
        body = await identity_repository.sign_up(signup.email, signup.password)
    except SupabaseAuthError as exc:
        if is_already_registered(exc):
            logger.info("signup rejected: email already registered")
            raise AuthServiceError(AuthErrorCode.EMAIL_ALREADY_EXISTS, exc)
        logger.warning("auth sign_up failed: %s", exc)
        raise AuthServiceError(AuthErrorCode.USER_CREATION_FAILED, exc)
    except (httpx.HTTPError, QueryTimeoutError) as exc:
        logger.warning("auth sign_up unreachable: %s", _describe(exc))
        raise AuthServiceError(AuthErrorCode.USER_CREATION_FAILED, exc)

    # Auto-confirm projects answer with a session wrapping the user; otherwise the user itself.
    user = body.get("user") if isinstance(body.get("user"), dict) else body
    user_id = user.get("id")
    if not user_id:
        logger.warning("auth sign_up returned no user id")
        raise AuthServiceError(AuthErrorCode.USER_CREATION_FAILED)
    return str(user_id)


async def _discard_identity(user_id: str) -> None:
    """Compensate a failed profile insert by deleting the identity just created."""
    try:
        deleted = await identity_repository.delete(user_id)
    except Exception:
        logger.exception("failed to delete orphaned identity user_id=%s", user_id)
        return
    if deleted:
        logger.info("deleted orphaned identity user_id=%s", user_id)
    else:
        logger.warning("orphaned identity left behind (no service role key) user_id=%s", user_id)


async def _insert_profile(user_id: str, signup: SignupRequest) -> Dict[str, Any]:
    try:
        return await user_repository.create_user(
            user_id=user_id,
            email=signup.email,
            role=signup.role,
            name=signup.name,
            phone_number=signup.phone_number,
        )
    except _STORAGE_FAILURES as exc:
        logger.error("Profile creation error: %s", _describe(exc))
        await _discard_identity(user_id)
        raise AuthServiceError(AuthErrorCode.PROFILE_CREATION_FAILED, exc)
    except Exception:
        await _discard_identity(user_id)
        raise


async def register_user(signup: SignupRequest) -> ServiceResult[SignupResponse]:
    """Create the auth identity, then its profile row."""
    try:
        user_id = await _create_identity(signup)
        row = await _insert_profile(user_id, signup)
        now = _now_iso()
        profile = UserProfile(
            id=user_id,
            email=signup.email,
            role=signup.role,
            name=signup.name,
            phone_number=signup.phone_number,
            created_at=_as_iso(row.get("created_at")) or now,
            updated_at=_as_iso(row.get("updated_at")) or now,
        )
    except AuthServiceError as exc:
        return ServiceResult.failure(exc.error)
    except Exception:
        logger.exception("User registration error")
        return ServiceResult.failure(AuthError.of(AuthErrorCode.DATABASE_ERROR))

    logger.info("registered user_id=%s role=%s", user_id, signup.role)
    return ServiceResult.success(SignupResponse(user=profile, message=SIGNUP_SUCCESS_MESSAGE))


# ----------------------------------------------------------------------------
# Terms agreement
# ----------------------------------------------------------------------------

async def _insert_agreement(user_id: str) -> Dict[str, Any]:
    try:
        return await terms_agreement_repository.create(user_id)
    except APIError as exc:
        if exc.code == PG_UNIQUE_VIOLATION:
            raise AuthServiceError(AuthErrorCode.TERMS_ALREADY_AGREED, exc)
        if exc.code == PG_FOREIGN_KEY_VIOLATION:
            raise AuthServiceError(AuthErrorCode.INVALID_USER_ID, exc)
        logger.error("Terms agreement error: %s", _describe(exc))
        raise AuthServiceError(AuthErrorCode.TERMS_AGREEMENT_FAILED, exc)
    except (RecordNotReturnedError, httpx.HTTPError, QueryTimeoutError) as exc:
        logger.error("Terms agreement error: %s", _describe(exc))
        raise AuthServiceError(AuthErrorCode.TERMS_AGREEMENT_FAILED, exc)


async def _find_agreement(user_id: str) -> Optional[Dict[str, Any]]:
    """Fast-path duplicate check; a failed read falls through to the guarded insert."""
    try:
        return await terms_agreement_repository.get_by_user_id(user_id)
    except _STORAGE_FAILURES as exc:
        logger.warning("Terms agreement lookup failed, relying on insert: %s", _describe(exc))
        return None


async def agree_to_terms(request: TermsAgreementRequest) -> ServiceResult[TermsAgreementResponse]:
    """Record that ``request.user_id`` accepted the terms, at most once."""
    user_id = request.user_id
    try:
        existing = await _find_agreement(user_id)
        if existing:
            raise AuthServiceError(AuthErrorCode.TERMS_ALREADY_AGREED)
        row = await _insert_agreement(user_id)
        agreement = TermsAgreement(
            id=str(row["id"]),
            user_id=str(row.get("user_id", user_id)),
            agreed_at=_as_iso(row.get("agreed_at")) or _now_iso(),
        )
    except AuthServiceError as exc:
        return ServiceResult.failure(exc.error)
    except Exception:
        logger.exception("Terms agreement error")
        return ServiceResult.failure(AuthError.of(AuthErrorCode.DATABASE_ERROR))

    return ServiceResult.success(
        TermsAgreementResponse(agreement=agreement, message=TERMS_SUCCESS_MESSAGE)
    )
