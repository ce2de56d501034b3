"""
Error taxonomy shared by the course, enrollment and review services.
Services raise these; the HTTP layer maps each kind to a status code.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, ExecutionTimeout, PyMongoError
import logging

logger = logging.getLogger(__name__)

# ConnectionFailure covers AutoReconnect, NetworkTimeout and ServerSelectionTimeoutError
TRANSIENT_STORE_ERRORS = (ConnectionFailure, ExecutionTimeout)


class ServiceError(Exception):
    """Base error: a stable kind plus one human-readable message"""

    kind = "Error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ServiceError):
    kind = "NotFound"
    status_code = 404


class Conflict(ServiceError):
    kind = "Conflict"
    status_code = 409


class Forbidden(ServiceError):
    kind = "Forbidden"
    status_code = 403


class InvalidInput(ServiceError):
    kind = "InvalidInput"
    status_code = 400


class Transient(ServiceError):
    kind = "Transient"
    status_code = 503


def error_body(kind: str, message: str) -> dict:
    return {"success": False, "error": kind, "message": message}


# ==================== EXCEPTION HANDLERS ====================

async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.kind, exc.message))


async def store_error_handler(request: Request, exc: PyMongoError):
    """Connection failures and timeouts surface as Transient, no retry"""
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=Transient.status_code,
        content=error_body(Transient.kind, "Database temporarily unavailable"),
    )
