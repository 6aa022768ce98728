# snfoods/core/errors.py
"""
Domain errors for the order workflow.

Every error is an HTTPException so services can raise them in the same
places they would raise an HTTP error, and FastAPI renders them without a
translation layer. `kind` is a stable identifier clients and tests can
match on; `detail` is the human-readable message surfaced to the caller.
"""
from fastapi import HTTPException, status
from sqlalchemy.exc import OperationalError, SQLAlchemyError


class OrderWorkflowError(HTTPException):
    kind: str = "order_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(OrderWorkflowError):
    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(OrderWorkflowError):
    kind = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(OrderWorkflowError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(OrderWorkflowError):
    kind = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class ConcurrentUpdateError(OrderWorkflowError):
    kind = "concurrent_update"
    status_code = status.HTTP_409_CONFLICT


class NoRecipientError(OrderWorkflowError):
    kind = "no_recipient"
    status_code = 422


class PersistenceError(OrderWorkflowError):
    kind = "persistence_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DispatchError(OrderWorkflowError):
    kind = "dispatch_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class RemoteTimeoutError(OrderWorkflowError):
    kind = "timeout"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT


# Postgres SQLSTATE for "canceling statement due to statement timeout"
_PG_QUERY_CANCELED = "57014"


def storage_error(exc: SQLAlchemyError, action: str) -> OrderWorkflowError:
    """
    Map a SQLAlchemy failure to PersistenceError, or RemoteTimeoutError
    when Postgres cancelled the statement because of statement_timeout.
    """
    if isinstance(exc, OperationalError):
        pgcode = getattr(exc.orig, "pgcode", None)
        if pgcode == _PG_QUERY_CANCELED or "statement timeout" in str(exc.orig):
            return RemoteTimeoutError(f"Timed out while trying to {action}")
    return PersistenceError(f"Failed to {action}: {exc.__class__.__name__}")
