"""Signup form controller.

Drives the form reducer, talks to ``POST /auth/signup`` and owns the delayed
navigation to the login page. The delayed navigation is an ``asyncio`` task
that lives only as long as the controller: ``close()`` (or leaving the
``async with`` block) cancels it.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from app.core.config import get_settings
from app.features.auth.redirects import get_role_home_label
from .api import SignupApiClient
from .session import SessionStore, SupabaseSessionStore
from .state import (
    FieldChanged,
    FormAction,
    Reset,
    SignupFormState,
    SubmitFailed,
    SubmitStarted,
    SubmitSucceeded,
    ValidationFailed,
    is_submit_disabled,
    reduce,
    validate_form,
)

logger = logging.getLogger("signup_form")

Navigate = Callable[[str], Union[None, Awaitable[None]]]

LOGIN_PATH = "/login"
SIGNUP_FAILED_FALLBACK = "회원가입에 실패했습니다."
SIGNUP_UNEXPECTED_ERROR = "회원가입 처리 중 문제가 발생했습니다."


def signup_success_message(role: str) -> str:
    return f"회원가입이 완료되었습니다. 로그인 후 {get_role_home_label(role)}로 이동합니다."


class SignupFormController:
    def __init__(
        self,
        api: SignupApiClient,
        session: SessionStore,
        navigate: Navigate,
        redirect_delay: float = 2.0,
        login_path: str = LOGIN_PATH,
    ) -> None:
        self.api = api
        self.session = session
        self._navigate = navigate
        self.redirect_delay = redirect_delay
        self.login_path = login_path
        self.state = SignupFormState()
        self._redirect_task: Optional[asyncio.Task] = None
        self._closed = False

    async def __aenter__(self) -> "SignupFormController":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- state ---------------------------------------------------------------

    def dispatch(self, action: FormAction) -> SignupFormState:
        self.state = reduce(self.state, action)
        return self.state

    def change(self, name: str, value: Any) -> SignupFormState:
        return self.dispatch(FieldChanged(name, value))

    @property
    def submit_disabled(self) -> bool:
        return is_submit_disabled(self.state)

    @property
    def should_render(self) -> bool:
        return not self.session.is_authenticated

    @property
    def redirect_pending(self) -> bool:
        return self._redirect_task is not None and not self._redirect_task.done()

    # -- lifecycle -----------------------------------------------------------

    async def _go(self, path: str) -> None:
        result = self._navigate(path)
        if inspect.isawaitable(result):
            await result

    async def enter(self, query: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """Bounce an authenticated visitor away; returns the target path, else None."""
        if self.session.is_loading:
            await self.session.refresh()
        if not self.session.is_authenticated:
            return None
        target = (query or {}).get("redirectedFrom") or "/"
        await self._go(target)
        return target

    async def submit(self) -> bool:
        if self.submit_disabled:
            return False

        self.dispatch(SubmitStarted())
        errors = validate_form(self.state.values)
        if errors:
            self.dispatch(ValidationFailed(errors))
            return False

        values = self.state.values
        try:
            result = await self.api.signup(values.to_request())
            if not result.ok:
                self.dispatch(SubmitFailed(result.error_message or SIGNUP_FAILED_FALLBACK))
                return False
            await self.session.refresh()
        except Exception:
            logger.exception("Signup error")
            self.dispatch(SubmitFailed(SIGNUP_UNEXPECTED_ERROR))
            return False

        self.dispatch(SubmitSucceeded(signup_success_message(values.role)))
        self._schedule_redirect()
        return True

    def _schedule_redirect(self) -> None:
        if self._closed:
            return
        self._cancel_redirect()
        self._redirect_task = asyncio.create_task(self._redirect_later())

    async def _redirect_later(self) -> None:
        await asyncio.sleep(self.redirect_delay)
        self.dispatch(Reset())
        await self._go(self.login_path)

    def _cancel_redirect(self) -> None:
        if self._redirect_task is not None and not self._redirect_task.done():
            self._redirect_task.cancel()

    async def wait_for_redirect(self) -> None:
        if self._redirect_task is not None:
            await self._redirect_task

    async def close(self) -> None:
        self._closed = True
        task = self._redirect_task
        self._cancel_redirect()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._redirect_task = None
        await self.api.aclose()


def create_signup_form(navigate: Navigate, session: Optional[SessionStore] = None) -> SignupFormController:
    """Controller wired from settings (API base URL, redirect delay) and the Supabase session."""
    settings = get_settings()
    return SignupFormController(
        api=SignupApiClient(settings.signup_api_base_url),
        session=session if session is not None else SupabaseSessionStore(),
        navigate=navigate,
        redirect_delay=settings.signup_redirect_delay,
    )
