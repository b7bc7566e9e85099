"""
Typed exceptions for the inventory tracker.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to, so route handlers can raise them directly and the app-level exception
handler turns them into responses.

    InventoryTrackerError
    |
    +-- ValidationError        400  VALIDATION_ERROR
    +-- ConflictError          409
    |   +-- DuplicateEmail          DUPLICATE_EMAIL
    |   +-- DuplicateSku            DUPLICATE_SKU
    +-- AuthFailure            401  AUTH_FAILED
    +-- TokenError             401  TOKEN_INVALID
    +-- Forbidden              403  FORBIDDEN
    +-- NotFound               404  NOT_FOUND
    +-- StoreUnavailable       500  STORE_UNAVAILABLE
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class InventoryTrackerError(Exception):
    """Base exception for all inventory tracker errors."""

    code: str = "INVENTORY_TRACKER_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(InventoryTrackerError):
    """Input is malformed or out of range. Carries field-level errors."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, errors: list[FieldError], message: str = "Validation failed"):
        self.errors = list(errors)
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([FieldError(field, message)], message)


class ConflictError(InventoryTrackerError):
    """A uniqueness constraint would be violated."""

    code = "CONFLICT"
    status_code = 409


class DuplicateEmail(ConflictError):
    code = "DUPLICATE_EMAIL"

    def __init__(self, email: str):
        self.email = email
        super().__init__("User already exists with this email")


class DuplicateSku(ConflictError):
    code = "DUPLICATE_SKU"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"SKU already exists: {sku}")


class AuthFailure(InventoryTrackerError):
    """Credentials did not match. Deliberately says nothing about which part."""

    code = "AUTH_FAILED"
    status_code = 401

    def __init__(self):
        super().__init__("Invalid email or password")


class TokenError(InventoryTrackerError):
    """Token could not establish an identity.

    ``reason`` is one of ``missing``, ``malformed``, ``expired``,
    ``invalid-signature`` or ``unknown-user``. It is for logs and tests only;
    callers always get the same 401 body.
    """

    code = "TOKEN_INVALID"
    status_code = 401

    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid-signature"
    MALFORMED = "malformed"
    MISSING = "missing"
    UNKNOWN_USER = "unknown-user"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__("Not authorized, token failed")


class Forbidden(InventoryTrackerError):
    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__("Not authorized to access this item")


class NotFound(InventoryTrackerError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__("Item not found")


class StoreUnavailable(InventoryTrackerError):
    code = "STORE_UNAVAILABLE"
    status_code = 500

    def __init__(self, message: str = "Server error, please try again later"):
        super().__init__(message)
