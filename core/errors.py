# core/errors.py
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for every business or store failure the engine reports."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.kind,
            "message": self.message,
            **self.data,
        }


class BadRequestError(AppError):
    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class QuotaExceededError(AppError):
    """Free-tier limit hit; the client shows an upgrade prompt."""

    kind = "quota_exceeded"
    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, message: str, quota: str):
        super().__init__(
            message,
            {"quota": quota, "isPremiumUser": False, "notify": True},
        )
        self.quota = quota


class ForbiddenError(AppError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class UnauthorizedError(AppError):
    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, notify: bool = False):
        super().__init__(message, {"notify": True} if notify else None)
        self.notify = notify


class NotFoundError(AppError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class StoreError(AppError):
    """Storage-layer failure, kept apart from the business taxonomy."""

    kind = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, transient: bool = True):
        super().__init__(message)
        self.transient = transient


# ================================================================
#  ✅ Exception handler (boundary of every operation)
# ================================================================
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]
    error = BadRequestError("Invalid request payload", {"errors": jsonable_encoder(errors)})
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    error = StoreError("A database error occurred.")
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
