"""
Error taxonomy for the unlock protocol and the HTTP layer.

Every error carries a stable ``code`` (returned to clients), the HTTP status it
maps to, and whether the caller may retry the same attempt unchanged.
Only TransientStoreFailure is retryable.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class MuseLinkError(Exception):
    code = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable = False
    default_message = "Internal error"

    def __init__(self, message: str | None = None, **details) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ActorNotFound(MuseLinkError):
    code = "actor_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Artist not found"


class ResourceNotFound(MuseLinkError):
    code = "request_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Request not found"


class ResourceClosed(MuseLinkError):
    code = "request_closed"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Request is closed"


class AlreadyGranted(MuseLinkError):
    code = "already_unlocked"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Request already unlocked by this artist"


class QuotaExhausted(MuseLinkError):
    code = "quota_exhausted"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Request has no unlock slots left"


class InsufficientCredits(MuseLinkError):
    code = "insufficient_credits"
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Not enough credits"


class PaymentConflict(MuseLinkError):
    code = "payment_conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Payment was already applied to another user"


class TransientStoreFailure(MuseLinkError):
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_message = "Storage temporarily unavailable, retry later"


class Unauthorized(MuseLinkError):
    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class Forbidden(MuseLinkError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class InvalidInput(MuseLinkError):
    code = "invalid_input"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid input"


RETRY_AFTER_SECONDS = 1


async def muselink_error_handler(request: Request, exc: MuseLinkError) -> JSONResponse:
    body = {
        "error": {
            "code": exc.code,
            "message": exc.message,
            "retryable": exc.retryable,
        }
    }
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
    if isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)
