import asyncio
import uuid

import httpx
import pytest
from postgrest.exceptions import APIError
from supabase import AuthApiError

from app.core.config import get_settings
from app.features.auth import repository
from app.features.auth.errors import AuthErrorCode
from app.features.auth.schemas import SignupRequest, TermsAgreementRequest
from app.features.auth.service import agree_to_terms, is_already_registered, register_user

pytestmark = pytest.mark.anyio


def _api_error(code: str, message: str = "boom") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


@pytest.fixture
def signup(signup_payload):
    return SignupRequest.model_validate(signup_payload)


# ----------------------------------------------------------------------------
# register_user
# ----------------------------------------------------------------------------

async def test_register_user_creates_identity_and_profile(fake_supabase, signup):
    result = await register_user(signup)

    assert result.ok is True
    user = result.data.user
    assert user.role == "learner"
    assert user.email == "a@b.com"
    assert user.id == fake_supabase.auth.identities["a@b.com"]
    assert result.data.message == "회원가입이 완료되었습니다"
    [row] = fake_supabase.tables["users"]
    assert row["id"] == user.id
    assert row["phone_number"] == "010-1234-5678"
    assert user.created_at == row["created_at"]


async def test_register_user_existing_email(fake_supabase, signup):
    fake_supabase.auth.identities["a@b.com"] = str(uuid.uuid4())

    result = await register_user(signup)

    assert result.ok is False
    assert result.error.code == AuthErrorCode.EMAIL_ALREADY_EXISTS
    assert result.error.message == "이미 등록된 이메일입니다"
    assert fake_supabase.tables["users"] == []


async def test_register_user_provider_failure(fake_supabase, signup):
    fake_supabase.auth.sign_up_error = (
        422,
        {"code": 422, "error_code": "signup_disabled", "msg": "Signups not allowed for this instance"},
    )

    result = await register_user(signup)

    assert result.error.code == AuthErrorCode.USER_CREATION_FAILED
    assert fake_supabase.tables["users"] == []


async def test_register_user_without_identifier(fake_supabase, signup):
    fake_supabase.auth.return_user = False

    result = await register_user(signup)

    assert result.error.code == AuthErrorCode.USER_CREATION_FAILED


async def test_profile_failure_deletes_identity(fake_supabase, signup):
    fake_supabase.insert_errors["users"] = _api_error("42501", "permission denied for table users")

    result = await register_user(signup)

    assert result.error.code == AuthErrorCode.PROFILE_CREATION_FAILED
    assert len(fake_supabase.auth.admin.deleted) == 1
    assert "a@b.com" not in fake_supabase.auth.identities


async def test_profile_failure_without_service_role_keeps_error(fake_supabase, signup):
    fake_supabase.admin_enabled = False
    fake_supabase.insert_errors["users"] = _api_error("23505")

    result = await register_user(signup)

    assert result.error.code == AuthErrorCode.PROFILE_CREATION_FAILED
    assert fake_supabase.auth.admin.deleted == []


async def test_cleanup_failure_does_not_mask_profile_error(fake_supabase, signup):
    fake_supabase.insert_errors["users"] = _api_error("42501")
    fake_supabase.auth.admin.error = RuntimeError("admin api down")

    result = await register_user(signup)

    assert result.error.code == AuthErrorCode.PROFILE_CREATION_FAILED


async def test_unexpected_exception_maps_to_database_error(fake_supabase, signup):
    fake_supabase.insert_errors["users"] = TypeError("unexpected row shape")

    result = await register_user(signup)

    assert result.ok is False
    assert result.error.code == AuthErrorCode.DATABASE_ERROR
    # Identity is still compensated.
    assert len(fake_supabase.auth.admin.deleted) == 1


async def test_sign_up_session_is_not_kept_on_shared_client(fake_supabase, signup):
    fake_supabase.auth.auto_confirm = True

    result = await register_user(signup)
    follow_up = await agree_to_terms(TermsAgreementRequest(user_id=str(uuid.uuid4())))

    assert result.ok is True
    assert follow_up.ok is True
    [request] = fake_supabase.auth.sign_up_requests
    anon_key = get_settings().supabase_anon_key
    assert request.headers["Authorization"] == f"Bearer {anon_key}"
    assert request.headers["apikey"] == anon_key
    assert await fake_supabase.auth.get_session() is None


async def test_sign_up_awaiting_confirmation_returns_bare_user(fake_supabase, signup):
    fake_supabase.auth.auto_confirm = False

    result = await register_user(signup)

    assert result.ok is True
    assert result.data.user.id == fake_supabase.auth.identities["a@b.com"]


async def test_sign_up_transport_failure(fake_supabase, signup):
    fake_supabase.auth.sign_up_error = httpx.ConnectError("connection refused")

    result = await register_user(signup)

    assert result.error.code == AuthErrorCode.USER_CREATION_FAILED
    assert fake_supabase.tables["users"] == []


async def test_profile_transport_failure_is_profile_error(fake_supabase, signup):
    fake_supabase.insert_errors["users"] = httpx.ReadTimeout("read timed out")

    result = await register_user(signup)

    assert result.error.code == AuthErrorCode.PROFILE_CREATION_FAILED
    assert len(fake_supabase.auth.admin.deleted) == 1


async def test_slow_call_raises_query_timeout(monkeypatch):
    monkeypatch.setattr(get_settings(), "supabase_query_timeout", 0.01)

    with pytest.raises(repository.QueryTimeoutError):
        await repository.user_repository._exec(asyncio.sleep(1), op="users.insert")


def test_is_already_registered_matches_message_or_code():
    assert is_already_registered(AuthApiError("User already registered", 400, None))
    assert is_already_registered(AuthApiError("whatever", 422, "email_exists"))
    assert not is_already_registered(AuthApiError("Password should be at least 6 characters", 422, "weak_password"))


# ----------------------------------------------------------------------------
# agree_to_terms
# ----------------------------------------------------------------------------

async def test_agree_to_terms_inserts_once(fake_supabase):
    user_id = str(uuid.uuid4())
    request = TermsAgreementRequest(user_id=user_id)

    first = await agree_to_terms(request)
    second = await agree_to_terms(request)

    assert first.ok is True
    assert first.data.agreement.user_id == user_id
    assert first.data.agreement.agreed_at
    assert first.data.message == "약관 동의가 완료되었습니다"
    assert second.ok is False
    assert second.error.code == AuthErrorCode.TERMS_ALREADY_AGREED
    assert len(fake_supabase.tables["terms_agreements"]) == 1


async def test_agree_to_terms_unique_violation_is_already_agreed(fake_supabase, monkeypatch):
    async def _no_existing(user_id):
        return None

    # Simulate a racing request that inserted between the pre-check and our insert.
    user_id = str(uuid.uuid4())
    fake_supabase.tables["terms_agreements"].append({"id": "x", "user_id": user_id})
    monkeypatch.setattr(repository.terms_agreement_repository, "get_by_user_id", _no_existing)

    result = await agree_to_terms(TermsAgreementRequest(user_id=user_id))

    assert result.error.code == AuthErrorCode.TERMS_ALREADY_AGREED


async def test_agree_to_terms_unknown_user(fake_supabase):
    fake_supabase.insert_errors["terms_agreements"] = _api_error("23503", "violates foreign key constraint")

    result = await agree_to_terms(TermsAgreementRequest(user_id=str(uuid.uuid4())))

    assert result.error.code == AuthErrorCode.INVALID_USER_ID


async def test_agree_to_terms_insert_failure(fake_supabase):
    fake_supabase.insert_errors["terms_agreements"] = _api_error("42501")

    result = await agree_to_terms(TermsAgreementRequest(user_id=str(uuid.uuid4())))

    assert result.error.code == AuthErrorCode.TERMS_AGREEMENT_FAILED
    assert result.error.message == "약관 동의 처리에 실패했습니다"


async def test_agree_to_terms_unexpected_exception(fake_supabase):
    fake_supabase.insert_errors["terms_agreements"] = TypeError("unexpected row shape")

    result = await agree_to_terms(TermsAgreementRequest(user_id=str(uuid.uuid4())))

    assert result.error.code == AuthErrorCode.DATABASE_ERROR


async def test_agree_to_terms_insert_timeout(fake_supabase):
    fake_supabase.insert_errors["terms_agreements"] = repository.QueryTimeoutError("timed out")

    result = await agree_to_terms(TermsAgreementRequest(user_id=str(uuid.uuid4())))

    assert result.error.code == AuthErrorCode.TERMS_AGREEMENT_FAILED


async def test_agree_to_terms_lookup_failure_falls_through_to_insert(fake_supabase):
    fake_supabase.select_errors["terms_agreements"] = httpx.ConnectError("connection refused")
    user_id = str(uuid.uuid4())

    result = await agree_to_terms(TermsAgreementRequest(user_id=user_id))

    assert result.ok is True
    assert [r["user_id"] for r in fake_supabase.tables["terms_agreements"]] == [user_id]
