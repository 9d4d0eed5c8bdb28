"""Error taxonomy and the JSON error handlers installed by the app factory.

Every error response body has the shape ``{"error": <message>}``:

- ``ExpenseValidationError`` subclasses are client errors (400) carrying a
  human-readable message.
- ``StorageError`` wraps database failures (500); the detail is logged, never
  returned.
- Anything else falls through to the catch-all handler (500).
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger("expense_api.errors")


class ExpenseValidationError(Exception):
    """Submitted expense rejected by a business rule."""

    code = "validation_error"
    message = "Invalid expense"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidAmount(ExpenseValidationError):
    code = "invalid_amount"
    message = "Amount must be a positive number"


class MissingCategory(ExpenseValidationError):
    code = "missing_category"
    message = "Category required"


class DescriptionTooLong(ExpenseValidationError):
    code = "description_too_long"
    message = "Description must be under 255 characters"


class MissingDate(ExpenseValidationError):
    code = "missing_date"
    message = "Date required"


class InvalidDate(ExpenseValidationError):
    code = "invalid_date"
    message = "Invalid date format"


class FutureDate(ExpenseValidationError):
    code = "future_date"
    message = "Date cannot be in the future"


class StorageError(Exception):
    """Unexpected failure of the persistence layer."""


def expense_validation_handler(request: Request, exc: ExpenseValidationError):  # type: ignore
    logger.info(
        "expense rejected",
        extra={"fields": {"code": exc.code, "path": request.url.path}},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": exc.message},
    )


def request_validation_handler(request: Request, exc: RequestValidationError):  # type: ignore
    logger.info("malformed request", extra={"fields": {"detail": exc.errors()}})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


def storage_error_handler(request: Request, exc: StorageError):  # type: ignore
    logger.error("storage failure", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal error"},
    )


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Not found"
    else:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Unexpected server error"},
    )
