# bodyid/helpers/errors.py
"""
Error taxonomy shared by every service.

Services raise these; the handlers registered in bodyid.main render them as
{"kind": ..., "message": ...} with the matching HTTP status.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BodyIDError(Exception):
    """Base exception for all handled API errors."""

    kind = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"kind": self.kind, "message": self.message}
        if self.suggestion:
            body["suggestion"] = self.suggestion
        return body


class ValidationError(BodyIDError):
    """Malformed or missing input."""

    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(BodyIDError):
    """Missing or invalid session credential."""

    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(BodyIDError):
    """Authenticated but not allowed to touch this resource."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(BodyIDError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(BodyIDError):
    """Duplicate, or the entity is already in a terminal state."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class PreconditionFailed(BodyIDError):
    """Valid request, but the entity is in the wrong state for it."""

    kind = "precondition_failed"
    status_code = status.HTTP_412_PRECONDITION_FAILED


class UpstreamFailure(BodyIDError):
    """A third-party OCR, AI, payment or storage call failed or is not configured."""

    kind = "upstream_failure"
    status_code = status.HTTP_502_BAD_GATEWAY


class DuplicateKey(Conflict):
    kind = "duplicate_key"


class InvalidCredentials(Unauthorized):
    kind = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class SignatureInvalid(ValidationError):
    kind = "signature_invalid"


# ============================================================
# ✅ Exception handlers
# ============================================================
async def bodyid_error_handler(request: Request, exc: BodyIDError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"kind": ValidationError.kind, "message": message},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"kind": "internal_error", "message": "Server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BodyIDError, bodyid_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
