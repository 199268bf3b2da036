from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.request_context import request_id_ctx_var

PUBLIC_API_PREFIX = "/api/public/"


class AdmissionError(Exception):
    """A booking request that was not committed.

    Every subclass is terminal for the request that raised it; nothing in the
    admission path retries on its own.
    """

    code = "admission_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Booking could not be created"

    def __init__(self, message: str | None = None, details: list[str] | None = None) -> None:
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class BookingValidationError(AdmissionError):
    code = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class EventTypeNotFoundError(AdmissionError):
    code = "event_type_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Event type not found or inactive"


class SlotTakenError(AdmissionError):
    code = "slot_taken"
    status_code = status.HTTP_409_CONFLICT
    message = "This time slot was just booked by someone else. Please select a different time."


class RateLimitedError(AdmissionError):
    code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class StorageFailureError(AdmissionError):
    code = "storage_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Failed to create booking. Please try again."


def _error_payload(code: str, message: str, detail):
    return {
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
        "detail": detail,
        "request_id": request_id_ctx_var.get(),
    }


def _public_error_payload(code: str, message: str, details: list | None) -> dict:
    payload = {"error": message, "code": code, "request_id": request_id_ctx_var.get()}
    if details:
        payload["details"] = details
    return payload


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            code=f"http_{exc.status_code}",
            message=str(exc.detail),
            detail=exc.detail,
        ),
        headers=exc.headers,
    )


async def admission_exception_handler(_: Request, exc: AdmissionError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content=_public_error_payload(code=exc.code, message=exc.message, details=exc.details),
        headers=headers,
    )


def _describe_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if request.url.path.startswith(PUBLIC_API_PREFIX):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_public_error_payload(
                code=BookingValidationError.code,
                message=BookingValidationError.message,
                details=[_describe_validation_error(error) for error in exc.errors()],
            ),
        )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            code="validation_error",
            message="Request validation failed",
            detail=jsonable_encoder(exc.errors()),
        ),
    )
