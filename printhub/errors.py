"""
Error taxonomy for PrintHub.

Exception Hierarchy:
    PrintHubError (base)
    ├── ValidationError        - missing / malformed field (400)
    ├── NotFoundError          - referenced order / record absent (404)
    ├── InvalidStatusError     - status outside the allowed set (400)
    ├── AuthenticationError    - not logged in / bad credentials (401)
    ├── PermissionDeniedError  - caller lacks the required role (403)
    ├── ServiceClosedError     - shop is closed, checkout blocked (503)
    └── UpstreamError          - storage / collaborator unavailable (500)
        └── OrderPlacementError - order written, linking its print jobs failed

Only ValidationError exposes its details to the caller. Every other error is
reported with a generic message so storage details never leak.
"""
from functools import wraps
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from printhub.logger import get_logger

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Something went wrong, please try again"


class PrintHubError(Exception):
    """
    Base exception for all PrintHub errors.
    """

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_payload(self) -> Dict[str, Any]:
        '''Body returned to the HTTP caller'''
        return {"message": self.message, "error": self.error_code}


class ValidationError(PrintHubError):
    """
    A required field is missing or malformed.
    """

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        super().__init__(message, {"field": field})
        self.field = field

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["field"] = self.field
        return payload


class NotFoundError(PrintHubError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} not found", {"entity": entity, "id": identifier})
        self.entity = entity
        self.identifier = identifier


class InvalidStatusError(PrintHubError):
    status_code = 400
    error_code = "INVALID_STATUS"

    def __init__(self, status: Any, allowed):
        allowed = list(allowed)
        super().__init__(
            f"Invalid status. Must be one of: {', '.join(allowed)}",
            {"status": status, "allowed": allowed},
        )
        self.status = status


class AuthenticationError(PrintHubError):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Login required"):
        super().__init__(message)


class PermissionDeniedError(PrintHubError):
    status_code = 403
    error_code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Access denied. Admin role required."):
        super().__init__(message)


class ServiceClosedError(PrintHubError):
    """
    Checkout attempted while an admin has closed the shop.
    """

    status_code = 503
    error_code = "SHOP_CLOSED"

    def __init__(self, reason: str, updated_at=None):
        super().__init__("Service temporarily unavailable", {"reason": reason})
        self.reason = reason
        self.updated_at = updated_at

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["reason"] = self.reason
        payload["is_open"] = False
        payload["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return payload


class UpstreamError(PrintHubError):
    """
    The database or another collaborator failed. The caller only ever sees
    the generic message.
    """

    status_code = 500
    error_code = "UPSTREAM_ERROR"

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)

    def to_payload(self) -> Dict[str, Any]:
        return {"message": GENERIC_FAILURE_MESSAGE, "error": self.error_code}


class OrderPlacementError(UpstreamError):
    """
    The order row was written but reconciling its print jobs failed.
    The order id is reported so staff can reconcile by hand.
    """

    error_code = "ORDER_PLACEMENT_FAILED"

    def __init__(self, order_id: str):
        super().__init__(details={"order_id": order_id})
        self.order_id = order_id

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["order_id"] = self.order_id
        return payload


def translate_storage_errors(func):
    '''
    Convert SQLAlchemy errors raised inside a service / repository call into
    UpstreamError. Domain errors pass through untouched.
    '''
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception(f"storage failure in {func.__qualname__}: {e}")
            raise UpstreamError() from e
    return wrapper
