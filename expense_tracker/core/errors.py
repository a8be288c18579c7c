from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger("expense_tracker.errors")


class DomainError(ValueError):
    """Base class for errors raised by the conversion / recurrence core."""


class CurrencyNotFound(DomainError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"currency '{code}' not found")


class InvalidFrequency(DomainError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(f"invalid recurring frequency {value!r}")


class RateRefreshError(DomainError):
    """Every configured rate provider failed."""


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": "not_found",
                "detail": f"No route for {request.method} {request.url.path}",
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def currency_not_found_handler(request: Request, exc: CurrencyNotFound):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "currency_not_found", "detail": str(exc), "code": exc.code},
    )


def invalid_frequency_handler(request: Request, exc: InvalidFrequency):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_frequency", "detail": str(exc)},
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            # ctx may carry exception instances which are not JSON serializable
            "detail": [
                {k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()
            ],
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
