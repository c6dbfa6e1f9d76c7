from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger("signup_form.api")

SIGNUP_PATH = "/auth/signup"


@dataclass(frozen=True)
class ApiResult:
    ok: bool
    status_code: int
    data: Optional[dict[str, Any]] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None


def _extract_error(body: Any) -> tuple[Optional[str], Optional[str]]:
    if not isinstance(body, dict):
        return None, None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("code"), error.get("message")
    msg = body.get("message") or body.get("detail")
    return None, msg if isinstance(msg, str) else None


class SignupApiClient:
    """Thin httpx wrapper around the signup endpoint."""

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            timeout = httpx.Timeout(connect=3, read=10, write=5, pool=5)
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        return self._client

    async def signup(self, payload: dict[str, Any]) -> ApiResult:
        r = await self._get_client().post(SIGNUP_PATH, json=payload)
        try:
            body = r.json()
        except ValueError:
            body = None

        if r.status_code not in (200, 201) or not isinstance(body, dict) or not body.get("success"):
            code, msg = _extract_error(body)
            logger.info("signup request failed status=%s code=%s", r.status_code, code)
            return ApiResult(ok=False, status_code=r.status_code, error_code=code, error_message=msg)
        return ApiResult(ok=True, status_code=r.status_code, data=body.get("data"))

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
