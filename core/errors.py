"""Uniform `{error, code?}` error responses."""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "SERVER_ERROR",
}


class ApiError(HTTPException):
    """HTTPException that carries a code and extra response keys (e.g. requiresAuth)."""

    def __init__(self, status_code: int, message: str, *, code: Optional[str] = None, **extra: Any):
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.extra = extra


def error_body(message: str, code: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message}
    if code:
        body["code"] = code
    body.update(extra)
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    extra: Dict[str, Any] = dict(getattr(exc, "extra", {}) or {})
    if isinstance(detail, dict):
        extra.update({k: v for k, v in detail.items() if k not in ("error", "message")})
        message = detail.get("error") or detail.get("message") or "Request failed"
    else:
        message = str(detail)

    code = getattr(exc, "code", None) or ERROR_CODES.get(exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, code, **extra),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Invalid JSON body", "INVALID_JSON"),
        )

    details = [
        {
            "path": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in errors
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request data", "VALIDATION_ERROR", details=details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"UNHANDLED | method={request.method} | path={request.url.path} | error={exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", "SERVER_ERROR"),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
