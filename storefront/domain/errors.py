"""Errors raised by the cart, order and catalog services."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BadRequestError(StorefrontError):
    """Malformed or inconsistent input."""


class InsufficientStockError(BadRequestError):
    """A requested quantity exceeds the product's live stock."""


class UnauthorizedError(StorefrontError):
    """Missing or invalid credential, or the caller does not own the resource."""


class ForbiddenError(StorefrontError):
    """Authenticated, but the caller's role may not perform the operation."""


class NotFoundError(StorefrontError):
    pass


class ConflictError(StorefrontError):
    """A concurrent writer won; the caller may retry."""


class OrderNumberTakenError(ConflictError):
    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(f"Order number {order_number} is already taken")
