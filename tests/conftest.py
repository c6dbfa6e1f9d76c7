import sys
import os

import httpx
import pytest

# Ensure repo root on sys.path for imports like `app...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "dummy-key")

from fakesupabase import FakeSupabase  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_supabase(monkeypatch):
    """Route every Supabase call made by the auth repositories to an in-memory fake."""
    from app.features.auth import repository

    fake = FakeSupabase()
    fake.admin_enabled = True

    async def _get_supabase():
        return fake

    async def _get_supabase_admin():
        return fake if fake.admin_enabled else None

    monkeypatch.setattr(repository, "get_supabase", _get_supabase)
    monkeypatch.setattr(repository, "get_supabase_admin", _get_supabase_admin)
    monkeypatch.setattr(
        repository,
        "_auth_http_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(fake.auth.handle_sign_up)),
    )
    return fake


@pytest.fixture
def signup_payload():
    return {
        "email": "a@b.com",
        "password": "Abcd1234!",
        "role": "learner",
        "name": "Kim",
        "phoneNumber": "010-1234-5678",
        "agreeToTerms": True,
    }
