"""Error taxonomy for the marketplace API.

Every error carries a stable ``code`` that the client can switch on and the
HTTP status it maps to. ``app.main`` renders them into the JSON envelope::

    {"success": false, "error": {"code": "NOT_FOUND", "message": "..."}}
"""
from typing import Any, Optional

from fastapi import status


class MarketplaceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "SERVER_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"success": False, "error": error}


class NotAuthenticated(MarketplaceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "NOT_AUTHENTICATED"
    default_message = "Authentication required"


class InvalidCredentials(MarketplaceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class Forbidden(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You don't have permission to access this resource"


class NotApproved(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "NOT_APPROVED"
    default_message = "Vendor profile is not approved yet"


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ValidationFailed(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid request data"


class EmailExists(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "EMAIL_EXISTS"
    default_message = "User with this email already exists"


class VendorExists(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VENDOR_EXISTS"
    default_message = "User already has a vendor profile"


class PaymentExists(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "PAYMENT_EXISTS"
    default_message = "Payment already exists for this order"


class InvalidStatus(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_STATUS"
    default_message = "Invalid status"


class PaymentFailed(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "PAYMENT_FAILED"
    default_message = "Payment was declined"
