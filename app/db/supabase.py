"""Supabase client utilities.

Provides:
- A lazily created, module-level cached **async** client via `get_supabase()`
  (anon key; used for table access). It never signs anyone in, so it
  keeps sending the anon key.
- A second cached client via `get_supabase_admin()` built with the service-role
  key, used only for admin calls such as deleting an orphaned identity.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from supabase import AsyncClient, create_async_client

from app.core.config import get_settings

_client: Optional[AsyncClient] = None
_admin_client: Optional[AsyncClient] = None
_lock = asyncio.Lock()


async def get_supabase() -> AsyncClient:
    """Return a cached `AsyncClient` instance (lazy-created, lock-guarded)."""
    global _client
    if _client is not None:
        return _client
    async with _lock:
        if _client is None:
            settings = get_settings()
            try:
                _client = await create_async_client(settings.supabase_url, settings.supabase_key)
            except Exception as exc:  # pragma: no cover (network/init failure)
                raise RuntimeError("Could not create Supabase async client") from exc
    return _client


async def get_supabase_admin() -> Optional[AsyncClient]:
    """Return the service-role client, or ``None`` when no service key is configured."""
    global _admin_client
    settings = get_settings()
    if not settings.has_service_role:
        return None
    if _admin_client is not None:
        return _admin_client
    async with _lock:
        if _admin_client is None:
            try:
                _admin_client = await create_async_client(
                    settings.supabase_url, settings.supabase_service_role_key
                )
            except Exception as exc:  # pragma: no cover (network/init failure)
                raise RuntimeError("Could not create Supabase admin client") from exc
    return _admin_client


__all__ = ["get_supabase", "get_supabase_admin"]
