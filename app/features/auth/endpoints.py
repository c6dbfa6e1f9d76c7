from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Type

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app.common.schemas import ErrorEnvelope, ServiceResult, SuccessEnvelope
from .errors import AuthError, AuthErrorCode
from .schemas import SignupRequest, TermsAgreementRequest
from .service import agree_to_terms, register_user

logger = logging.getLogger("auth.endpoints")

router = APIRouter(prefix="/auth", tags=["auth"])


def _validation_details(exc: ValidationError) -> list[dict[str, Any]]:
    # Inputs are left out so passwords are never echoed back.
    return [
        {
            "path": [str(part) for part in err["loc"]],
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors(include_url=False, include_context=False, include_input=False)
    ]


def _error_response(error: AuthError, status_code: int) -> JSONResponse:
    return JSONResponse(ErrorEnvelope(error=error).to_json(), status_code=status_code)


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    return json.loads(raw or b"null")


async def _handle(
    request: Request,
    schema: Type[BaseModel],
    service: Callable[[Any], Awaitable[ServiceResult]],
    label: str,
) -> JSONResponse:
    """Parse -> validate -> service -> envelope, shared by both auth endpoints."""
    try:
        try:
            body = await _read_json(request)
        except ValueError:
            details = [{"path": [], "message": "Invalid JSON body", "type": "json_invalid"}]
            return _error_response(AuthError.of(AuthErrorCode.VALIDATION_ERROR, details), status.HTTP_400_BAD_REQUEST)

        try:
            payload = schema.model_validate(body)
        except ValidationError as exc:
            details = _validation_details(exc)
            logger.info("%s validation failed fields=%s", label, [d["path"] for d in details])
            return _error_response(AuthError.of(AuthErrorCode.VALIDATION_ERROR, details), status.HTTP_400_BAD_REQUEST)

        result = await service(payload)
        if not result.ok or result.data is None:
            error = result.error or AuthError.of(AuthErrorCode.DATABASE_ERROR)
            return _error_response(AuthError(code=error.code, message=error.message), status.HTTP_400_BAD_REQUEST)

        envelope = SuccessEnvelope(data=result.data.model_dump(mode="json", by_alias=True))
        return JSONResponse(envelope.model_dump(mode="json"), status_code=status.HTTP_201_CREATED)
    except Exception:
        logger.exception("%s error", label)
        return _error_response(AuthError.of(AuthErrorCode.DATABASE_ERROR), status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(request: Request) -> JSONResponse:
    """Register an identity plus profile row. Body: SignupRequest (camelCase)."""
    return await _handle(request, SignupRequest, register_user, "Signup")


@router.post("/terms-agreement", status_code=status.HTTP_201_CREATED)
async def terms_agreement(request: Request) -> JSONResponse:
    """Record a terms-of-service agreement. Body: ``{"userId": "<uuid>"}``."""
    return await _handle(request, TermsAgreementRequest, agree_to_terms, "Terms agreement")
