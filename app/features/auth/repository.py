from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx
from supabase import AuthApiError

from app.core.config import get_settings
from app.db.supabase import get_supabase, get_supabase_admin

logger = logging.getLogger("auth.repository")

USERS_TABLE = "users"
TERMS_AGREEMENTS_TABLE = "terms_agreements"


class RecordNotReturnedError(RuntimeError):
    """Insert reported success but returned no row to read back."""


class QueryTimeoutError(RuntimeError):
    """A Supabase call did not finish within ``SUPABASE_QUERY_TIMEOUT``."""


def _auth_http_client() -> httpx.AsyncClient:
    timeout = httpx.Timeout(connect=3, read=5, write=5, pool=5)
    limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
    return httpx.AsyncClient(timeout=timeout, limits=limits)


def _auth_headers() -> Dict[str, str]:
    key = get_settings().supabase_anon_key
    return {"apikey": key, "Authorization": f"Bearer {key}", "Content-Type": "application/json"}


def _auth_api_error(r: httpx.Response) -> AuthApiError:
    """Best available message and error code from a GoTrue error body."""
    msg = None
    code = None
    try:
        data = r.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        msg = data.get("msg") or data.get("message") or data.get("error_description") or data.get("error")
        code = data.get("error_code")
        if code is None and isinstance(data.get("code"), str):
            code = data["code"]
    return AuthApiError(str(msg or r.text.strip() or f"HTTP {r.status_code}"), r.status_code, code)


class _SupabaseRepository:
    async def _exec(self, awaitable, op: str):
        timeout = get_settings().supabase_query_timeout
        t0 = time.perf_counter()
        try:
            resp = await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            raise QueryTimeoutError(f"Supabase {op} timed out after {timeout}s")
        ms = int((time.perf_counter() - t0) * 1000)
        if ms > 50:
            logger.info("supabase_%s_ms=%d", op, ms)
        return resp


class IdentityRepository(_SupabaseRepository):
    """Supabase Auth identities (auth.users). Owned by the provider."""

    async def sign_up(self, email: str, password: str) -> Dict[str, Any]:
        """POST /auth/v1/signup with the anon key.

        Goes over a short-lived HTTP client rather than the shared Supabase
        client, so a session issued for the new user is never stored anywhere
        and later table calls keep running with the anon key.
        """
        async with _auth_http_client() as http:
            r = await self._exec(
                http.post(
                    f"{get_settings().auth_base}/signup",
                    headers=_auth_headers(),
                    json={"email": email, "password": password},
                ),
                op="auth.sign_up",
            )
        if r.status_code not in (200, 201):
            raise _auth_api_error(r)
        try:
            body = r.json()
        except ValueError:
            raise AuthApiError("Sign-up response was not JSON", r.status_code, None)
        return body if isinstance(body, dict) else {}

    async def delete(self, user_id: str) -> bool:
        """Remove an identity through the admin API; False when no service key is set."""
        admin = await get_supabase_admin()
        if admin is None:
            return False
        await self._exec(admin.auth.admin.delete_user(user_id), op="auth.admin.delete_user")
        return True


class UserRepository(_SupabaseRepository):
    async def create_user(
        self,
        user_id: str,
        email: str,
        role: str,
        name: str,
        phone_number: Optional[str],
    ) -> Dict[str, Any]:
        client = await get_supabase()
        record = {
            "id": user_id,
            "email": email,
            "role": role,
            "name": name,
            "phone_number": phone_number,
        }
        resp = await self._exec(client.table(USERS_TABLE).insert(record).execute(), op="users.insert")
        data = getattr(resp, "data", None)
        # Insert succeeded; representation may be empty under RLS without select rights.
        return data[0] if data else record


class TermsAgreementRepository(_SupabaseRepository):
    async def get_by_user_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        client = await get_supabase()
        resp = await self._exec(
            client.table(TERMS_AGREEMENTS_TABLE).select("id").eq("user_id", user_id).limit(1).execute(),
            op="terms_agreements.select_by_user_id",
        )
        data = getattr(resp, "data", None)
        if not data:
            return None
        return data[0] if isinstance(data, list) else data

    async def create(self, user_id: str) -> Dict[str, Any]:
        client = await get_supabase()
        resp = await self._exec(
            client.table(TERMS_AGREEMENTS_TABLE).insert({"user_id": user_id}).execute(),
            op="terms_agreements.insert",
        )
        if not getattr(resp, "data", None):
            raise RecordNotReturnedError("terms_agreements insert returned no row")
        return resp.data[0]


identity_repository = IdentityRepository()
user_repository = UserRepository()
terms_agreement_repository = TermsAgreementRepository()
