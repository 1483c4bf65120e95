from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _error_payload(
    *,
    error: str,
    type_: str,
    code: str | None = None,
    details: Any | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": error, "code": code, "type": type_}
    if details is not None:
        payload["details"] = details
    return payload


class AirlinkException(Exception):
    """Base exception for AirLink.

    Raised from services and translated by the registered FastAPI handlers on
    the HTTP surface. On the WebSocket surface the relay catches these and
    reports them to the originating connection only.
    """

    status_code: int = 400
    default_code: str | None = None

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        self.message = message
        self.code = code if code is not None else self.default_code
        self.status_code = status_code if status_code is not None else self.status_code
        self.details = details
        super().__init__(message)


class SessionNotFound(AirlinkException):
    """No active session with the requested code."""

    status_code = 404
    default_code = "session_not_found"

    def __init__(self, code: str, **kwargs: Any) -> None:
        self.session_code = code
        super().__init__("Session not found", details={"code": code}, **kwargs)


class WrongPassword(AirlinkException):
    status_code = 401
    default_code = "wrong_password"

    def __init__(self, code: str, **kwargs: Any) -> None:
        self.session_code = code
        super().__init__("Wrong password", details={"code": code}, **kwargs)


class FileTooLarge(AirlinkException):
    status_code = 413
    default_code = "file_too_large"

    def __init__(self, declared_size: int, max_size: int, **kwargs: Any) -> None:
        self.declared_size = declared_size
        self.max_size = max_size
        super().__init__(
            f"File too large ({declared_size} bytes, limit {max_size})",
            details={"fileSize": declared_size, "maxFileSize": max_size},
            **kwargs,
        )


class FileQuotaExceeded(AirlinkException):
    status_code = 409
    default_code = "file_quota_exceeded"

    def __init__(self, file_count: int, max_files: int, **kwargs: Any) -> None:
        self.file_count = file_count
        self.max_files = max_files
        super().__init__(
            f"File limit reached for this session ({max_files} files)",
            details={"fileCount": file_count, "maxFiles": max_files},
            **kwargs,
        )


class MalformedEvent(AirlinkException):
    """A client event is missing a required field or is not valid JSON."""

    status_code = 422
    default_code = "malformed_event"


class NotSessionMember(AirlinkException):
    """The connection addressed a session it has not joined."""

    status_code = 403
    default_code = "not_a_member"

    def __init__(self, code: str, **kwargs: Any) -> None:
        self.session_code = code
        super().__init__("Join the session before sending to it", details={"code": code}, **kwargs)


def register_exception_handlers(app: FastAPI) -> None:
    """Register AirLink's exception handlers on a FastAPI app."""

    @app.exception_handler(AirlinkException)
    async def _airlink_exception_handler(_request: Request, exc: AirlinkException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(
                error=exc.message,
                code=exc.code,
                type_=exc.__class__.__name__,
                details=exc.details,
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=_error_payload(
                error="Validation error",
                code="validation_error",
                type_=exc.__class__.__name__,
                details=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = getattr(exc, "detail", None)
        if isinstance(detail, str):
            error = detail
            details = None
        else:
            error = "Request failed"
            details = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(
                error=error,
                code="http_exception",
                type_=exc.__class__.__name__,
                details=details,
            ),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content=_error_payload(
                error="Internal server error",
                code="internal_error",
                type_="InternalServerError",
            ),
        )
