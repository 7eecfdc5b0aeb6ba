import logging
import uuid

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'self'",
}


class ServiceError(Exception):
    """Base of the error taxonomy; carries the HTTP status and a client-safe message."""

    status_code = 500
    default_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(ServiceError):
    status_code = 401
    default_message = "Authentication required"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Student not found"


class ConflictError(ServiceError):
    status_code = 409
    default_message = "Student ID or email already exists"


class InternalError(ServiceError):
    """Infrastructure failure. The message is for logs only; clients get a generic one."""

    status_code = 500


class StoreError(InternalError):
    default_message = "Student store operation failed"


class CredentialHashError(InternalError):
    default_message = "Stored password hash could not be verified"


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def error_response(*, message: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    payload = {"success": False, "error": message}
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, InternalError):
        logger.error(
            "Internal error | request_id=%s path=%s error=%s",
            get_request_id(request),
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return error_response(message=INTERNAL_ERROR_MESSAGE, status_code=exc.status_code)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return error_response(message=exc.message, status_code=exc.status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        message=str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


def _field_name(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
    return ".".join(loc) or "body"


def describe_validation_errors(errors: list[dict]) -> str:
    missing = []
    invalid = []
    for error in errors:
        name = _field_name(error)
        if error.get("type") == "missing":
            missing.append(name)
        else:
            reason = str(error.get("msg", "is invalid")).removeprefix("Value error, ")
            invalid.append(f"{name}: {reason}")
    parts = []
    if missing:
        parts.append("Missing required fields: " + ", ".join(missing))
    if invalid:
        parts.append("Invalid fields: " + "; ".join(invalid))
    return ". ".join(parts) or "Request validation failed"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(message=describe_validation_errors(exc.errors()), status_code=400)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception | request_id=%s", get_request_id(request), exc_info=exc)
    return error_response(message=INTERNAL_ERROR_MESSAGE, status_code=500)


async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("x-request-id")
    request.state.request_id = incoming or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["x-request-id"] = request.state.request_id
    return response


async def security_headers_middleware(request: Request, call_next):
    # Unmapped exceptions are answered here so the 500 still passes through the header middlewares.
    try:
        response = await call_next(request)
    except Exception as exc:  # noqa: BLE001
        response = await unhandled_exception_handler(request, exc)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response
