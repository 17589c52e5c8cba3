"""
Custom exceptions for the storefront application.
"""


class ShopError(Exception):
    """Base exception for storefront operations"""
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ShopError):
    """Raised when a product, cart or cart item does not exist"""
    kind = "not_found"
    status_code = 404


class InvalidStateError(ShopError):
    """Raised when an operation is not allowed in the current state"""
    kind = "invalid_state"
    status_code = 400


class UnauthorizedError(ShopError):
    """Raised when an operation requires an authenticated account"""
    kind = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ConflictError(ShopError):
    """Raised when a concurrent write was detected"""
    kind = "conflict"
    status_code = 409


class ValidationError(ShopError):
    """Raised when validation fails"""
    kind = "validation"
    status_code = 400


class StoreUnavailableError(ShopError):
    """Raised when the Redis store cannot be reached"""
    kind = "store_unavailable"
    status_code = 503
