"""Error types raised by the support backend and their HTTP translations"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import traceback

logger = logging.getLogger(__name__)


class SupportBotError(Exception):
    """Base for errors carrying a message and structured details"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InputValidationError(SupportBotError):
    """Raised when a request is missing required fields or names an unknown ledger"""


class DatabaseError(SupportBotError):
    """Record Store is unavailable or a bulk write failed"""


class NotificationError(SupportBotError):
    """Telegram transport failure; never leaves the notifier"""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.status_code = status_code
        super().__init__(message, details)


async def input_validation_error_handler(request: Request, exc: InputValidationError):
    # Chat clients expect the bare {"error": ...} shape
    logger.warning(f"⚠️ Rejected request on {request.url.path}: {exc.message} {exc.details}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message})


async def database_error_handler(request: Request, exc: DatabaseError):
    logger.error(f"❌ Database error on {request.url.path}: {exc.message} {exc.details}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": exc.message, "details": exc.details}
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON bodies, e.g. an import without rows"""
    logger.warning(f"⚠️ Invalid request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Invalid request data", "details": exc.errors()}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.url.path}: {exc}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "An unexpected error occurred"}
    )


def register_error_handlers(app):
    """Attach every handler above to the FastAPI app"""
    app.add_exception_handler(InputValidationError, input_validation_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
