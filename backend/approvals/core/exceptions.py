"""
Error taxonomy for the approvals core and the FastAPI handlers that render it.
Serializes exceptions into structured logs and JSON error bodies.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import logging
from typing import Any


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None, details: Any = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Malformed or semantically invalid input. Caller-fixable, never retried."""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppException):
    """A rule over current data rejects the request; details carry the conflicting record."""
    status_code = status.HTTP_400_BAD_REQUEST


class StateError(AppException):
    """The requested transition is illegal from the entity's current state."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(AppException):
    """The actor lacks entitlement for the requested action."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppException):
    """The referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class ServiceUnavailableError(AppException):
    """An external collaborator (org lookup, repository) could not be reached."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class AuditWriteError(AppException):
    """The audit append failed, so the state change it describes must not stand."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, entity: Any = None, audit_entry: Any = None):
        self.entity = entity
        self.audit_entry = audit_entry
        super().__init__(
            message,
            details={
                "entity_id": getattr(entity, "id", None),
                "action": getattr(audit_entry, "action", None),
            },
        )


class PartialFailureError(AuditWriteError):
    """
    The primary write is durable but its audit record is missing.

    ``entity`` holds the mutated record so the caller can raise a compliance alert.
    """


def _serialize_details(details: Any) -> Any:
    """Convert exception details to a JSON-serializable shape."""
    if details is None:
        return None
    if hasattr(details, "model_dump"):
        return details.model_dump(mode="json")
    if isinstance(details, dict):
        return {key: _serialize_details(value) for key, value in details.items()}
    if isinstance(details, (list, tuple)):
        return [_serialize_details(value) for value in details]
    if isinstance(details, (str, int, float, bool)):
        return details
    return str(details)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle approvals-core exceptions."""
    details = _serialize_details(exc.details)
    log = logger.critical if isinstance(exc, PartialFailureError) else (
        logger.error if exc.status_code >= 500 else logger.warning
    )
    log(
        f"Application exception: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "error_kind": type(exc).__name__,
            "details": details,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "kind": type(exc).__name__,
                "message": exc.message,
                "details": details,
                "path": request.url.path,
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the approvals-core exception handlers with a FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
