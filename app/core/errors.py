import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class NotFoundError(HTTPException):
    """Raised when a resource does not exist or is not visible to the caller."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    """Raised when the resource is not in a state that allows the operation."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class EmptyPatchError(HTTPException):
    """Raised when a PATCH body carries no recognised field."""

    def __init__(self, detail: str = "Empty patch"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def error_body(detail) -> dict:
    """Render an exception detail as the {ok: false, error, details?} envelope."""
    if isinstance(detail, dict):
        body = {"ok": False, "error": detail.get("message") or detail.get("error") or "Error"}
        extra = {k: v for k, v in detail.items() if k not in ("message", "error")}
        if extra:
            body["details"] = extra
        return body
    return {"ok": False, "error": str(detail)}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"ok": False, "error": "Invalid body", "details": exc.errors()}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
