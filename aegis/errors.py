import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from aegis.utils.response import send_error

logger = logging.getLogger(__name__)

SERVER_ERROR = "Internal server error"


class ApiError(Exception):
    status_code = 500
    default_message = SERVER_ERROR

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = 400
    default_message = "Bad request"


class AuthError(ApiError):
    status_code = 401
    default_message = "Unauthorized access"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "User already exists"


class ValidationError(ApiError):
    """Payload rejected by a rule set; ``errors`` lists every failed rule."""

    status_code = 422
    default_message = "Validation error"

    def __init__(self, errors: list[dict]):
        self.errors = errors
        super().__init__(", ".join(e["msg"] for e in errors) or None)


class ServerError(ApiError):
    pass


class RuleViolations(ValueError):
    """Raised by a schema validator when one value breaks several rules.

    Each message becomes its own ``{field, msg}`` entry in the 422 body.
    """

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__(", ".join(messages))


_UNIQUE_FIELDS = {
    "email": "Email already registered",
    "username": "Username already taken",
}


def conflict_message(exc: IntegrityError) -> str | None:
    """Map a unique-constraint violation to a client message.

    SQLite reports "UNIQUE constraint failed: users.email", PostgreSQL
    reports 'Key (email)=(...) already exists', so look for the column name.
    """
    text = str(exc.orig).lower()
    if "unique" not in text and "duplicate" not in text and "already exists" not in text:
        return None
    for field, message in _UNIQUE_FIELDS.items():
        if f".{field}" in text or f"({field})" in text or f"_{field}" in text:
            return message
    return ConflictError.default_message


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or str(loc[-1])


def _flatten(exc: RequestValidationError) -> list[dict]:
    errors = []
    for e in exc.errors():
        field = _field_name(e["loc"])
        cause = e.get("ctx", {}).get("error")
        if isinstance(cause, ValueError):
            # drop pydantic's "Value error, " prefix; our validators word their own messages
            messages = getattr(cause, "messages", None) or [str(cause)]
        else:
            messages = [e["msg"]]
        errors.extend({"field": field, "msg": m} for m in messages)
    return errors


def install_error_handlers(app: FastAPI) -> None:
    settings = app.state.context.settings

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return send_error(exc.status_code, exc.message, errors=getattr(exc, "errors", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(_flatten(exc))
        return send_error(error.status_code, error.message, errors=error.errors)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        message = conflict_message(exc)
        if message is None:
            logger.exception("Integrity error on %s %s", request.method, request.url.path, exc_info=exc)
            return send_error(500, SERVER_ERROR)
        logger.info("Unique constraint rejected write on %s: %s", request.url.path, message)
        return send_error(409, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else SERVER_ERROR
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.url.path} not found"
        return send_error(exc.status_code, message)

    # Registered on Exception, Starlette serves this from its outermost
    # middleware and re-raises afterwards so the server still sees the error.
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        error = ServerError()
        stack = None
        if settings.is_development:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return send_error(error.status_code, error.message, stack=stack)
