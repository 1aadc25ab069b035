# sitebuilder/api/errors.py
"""
Translate domain errors into HTTP responses.

Bodies keep the same shape as HTTPException raised by hand:
``{"detail": {"code": ..., "message": ...}}``.
"""
from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from sitebuilder.core.errors import (
    AuthorizationError,
    Conflict,
    FeatureNotAllowed,
    InternalError,
    InvalidOrderKey,
    InvalidReorder,
    InvalidTeamChange,
    PlanLimitExceeded,
    ResourceNotFound,
    SelfReferential,
    SiblingNotFound,
    SiteBuilderError,
    TeamChangeNotAllowed,
)
from sitebuilder.core.logging import get_logger

logger = get_logger(__name__)

NOT_FOUND_DETAIL = {"code": "not_found", "message": "Resource not found."}

_UNPROCESSABLE = (SiblingNotFound, SelfReferential, InvalidReorder, InvalidOrderKey, InvalidTeamChange)


def _error(status_code: int, detail: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


async def _handle_not_found(request: Request, exc: SiteBuilderError) -> JSONResponse:
    # Guard failures and missing resources look the same from outside.
    logger.info(
        "%s %s -> 404 (%s: %s)",
        request.method,
        request.url.path,
        exc.code,
        exc.message,
        extra={"reason": exc.code},
    )
    return _error(status.HTTP_404_NOT_FOUND, NOT_FOUND_DETAIL)


async def _handle_plan_limit(request: Request, exc: PlanLimitExceeded) -> JSONResponse:
    return _error(
        status.HTTP_403_FORBIDDEN,
        {
            "code": exc.code,
            "message": "Plan limit reached. Upgrade your plan to add more.",
            "limit": exc.limit,
            "current": exc.current,
            "max": exc.maximum,
            "upgrade_to": exc.upgrade_to,
        },
    )


async def _handle_feature_not_allowed(request: Request, exc: FeatureNotAllowed) -> JSONResponse:
    return _error(
        status.HTTP_403_FORBIDDEN,
        {
            "code": exc.code,
            "message": exc.message,
            "feature": exc.feature,
            "upgrade_to": exc.upgrade_to,
        },
    )


async def _handle_unprocessable(request: Request, exc: SiteBuilderError) -> JSONResponse:
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, {"code": exc.code, "message": exc.message})


async def _handle_forbidden(request: Request, exc: SiteBuilderError) -> JSONResponse:
    return _error(status.HTTP_403_FORBIDDEN, {"code": exc.code, "message": exc.message})


async def _handle_conflict(request: Request, exc: Conflict) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, {"code": exc.code, "message": exc.message})


async def _handle_internal(request: Request, exc: SiteBuilderError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"code": InternalError.code, "message": "Something went wrong. Please try again."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthorizationError, _handle_not_found)
    app.add_exception_handler(ResourceNotFound, _handle_not_found)
    app.add_exception_handler(PlanLimitExceeded, _handle_plan_limit)
    app.add_exception_handler(FeatureNotAllowed, _handle_feature_not_allowed)
    for exc_type in _UNPROCESSABLE:
        app.add_exception_handler(exc_type, _handle_unprocessable)
    app.add_exception_handler(TeamChangeNotAllowed, _handle_forbidden)
    app.add_exception_handler(Conflict, _handle_conflict)
    # InternalError and anything else from the domain that slipped through.
    app.add_exception_handler(SiteBuilderError, _handle_internal)
