from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Optional, Protocol

from supabase import AsyncClient

from app.db.supabase import get_supabase

logger = logging.getLogger("signup_form.session")

SessionStatus = Literal["authenticated", "unauthenticated", "loading"]


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str]
    app_metadata: dict[str, Any] = field(default_factory=dict)
    user_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CurrentUserSnapshot:
    status: SessionStatus
    user: Optional[CurrentUser] = None


class SessionStore(Protocol):
    @property
    def is_authenticated(self) -> bool: ...

    @property
    def is_loading(self) -> bool: ...

    async def refresh(self) -> None: ...


class SupabaseSessionStore:
    """Caches the visitor's Supabase session; ``refresh()`` re-reads it."""

    def __init__(self, client_factory: Callable[[], Awaitable[AsyncClient]] = get_supabase) -> None:
        self._client_factory = client_factory
        self.snapshot = CurrentUserSnapshot(status="loading")

    @property
    def is_authenticated(self) -> bool:
        return self.snapshot.status == "authenticated"

    @property
    def is_loading(self) -> bool:
        return self.snapshot.status == "loading"

    async def refresh(self) -> None:
        client = await self._client_factory()
        session = await client.auth.get_session()
        user = getattr(session, "user", None) if session else None
        if user is None:
            self.snapshot = CurrentUserSnapshot(status="unauthenticated")
            return
        self.snapshot = CurrentUserSnapshot(
            status="authenticated",
            user=CurrentUser(
                id=str(user.id),
                email=getattr(user, "email", None),
                app_metadata=dict(getattr(user, "app_metadata", None) or {}),
                user_metadata=dict(getattr(user, "user_metadata", None) or {}),
            ),
        )
        logger.debug("session refreshed user_id=%s", user.id)
