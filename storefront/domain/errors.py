"""
Error kinds raised by the cart, order and guest services.

Every error carries the identifiers a caller needs to render a precise
message; the API layer maps them to HTTP responses via ``status_code``.
"""


class StoreError(Exception):
    """Base exception for storefront operations"""

    kind = "StoreError"
    status_code = 400


class NotFoundError(StoreError):
    kind = "NotFound"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class ProductUnavailableError(StoreError):
    """Raised when a product has been deactivated"""

    kind = "Unavailable"
    status_code = 409

    def __init__(self, product_id: int, name: str | None = None):
        self.product_id = product_id
        self.name = name
        super().__init__(f"Product {name or product_id} is no longer available")


class InsufficientStockError(StoreError):
    kind = "InsufficientStock"
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int, name: str | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.name = name
        super().__init__(
            f"Insufficient stock for {name or product_id}: "
            f"requested {requested}, available {available}"
        )


class EmptyCartError(StoreError):
    kind = "EmptyCart"
    status_code = 400

    def __init__(self, cart_id: int | None = None):
        self.cart_id = cart_id
        super().__init__("Cart is empty")


class AddressNotFoundError(StoreError):
    kind = "AddressNotFound"
    status_code = 404

    def __init__(self, address_id: int):
        self.address_id = address_id
        super().__init__(f"Address not found: {address_id}")


class InvalidStatusError(StoreError):
    """Raised for unknown status values and backward transitions"""

    kind = "InvalidStatus"
    status_code = 400

    def __init__(self, value, current: str | None = None):
        self.value = value
        self.current = current
        if current is None:
            msg = f"Invalid status: {value}"
        else:
            msg = f"Invalid status transition: {current} -> {value}"
        super().__init__(msg)


class ValidationError(StoreError):
    kind = "ValidationError"
    status_code = 422

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ConflictError(StoreError):
    kind = "Conflict"
    status_code = 409

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
