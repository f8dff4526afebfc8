"""
Typed errors raised by the inventory services.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer maps it to, so callers catch by type instead of parsing messages:

    InventoryError
    |
    +-- NotFound
    |   +-- ProductNotFound
    |   +-- MovementNotFound
    |   +-- OrderNotFound
    |   +-- AlertNotFound
    |   +-- CatalogEntryNotFound
    |
    +-- ValidationError
    +-- InsufficientStock
    +-- ConcurrencyConflict

Services roll back the session before any of these leave them, so a caught
error never leaves partial stock effects behind.
"""


class InventoryError(Exception):
    code = "INVENTORY_ERROR"
    status_code = 400

    def __init__(self, message: str, **data):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, **self.data}


# --- Not found ---

class NotFound(InventoryError):
    code = "NOT_FOUND"
    status_code = 404


class ProductNotFound(NotFound):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found", product_id=product_id)
        self.product_id = product_id


class MovementNotFound(NotFound):
    code = "MOVEMENT_NOT_FOUND"

    def __init__(self, movement_id: int):
        super().__init__(f"Stock movement {movement_id} not found", movement_id=movement_id)
        self.movement_id = movement_id


class OrderNotFound(NotFound):
    code = "ORDER_NOT_FOUND"

    def __init__(self, kind: str, order_id: int):
        super().__init__(f"{kind} {order_id} not found", order_id=order_id)
        self.order_id = order_id


class AlertNotFound(NotFound):
    code = "ALERT_NOT_FOUND"

    def __init__(self, alert_id: int):
        super().__init__(f"Low stock alert {alert_id} not found", alert_id=alert_id)
        self.alert_id = alert_id


class CatalogEntryNotFound(NotFound):
    code = "CATALOG_ENTRY_NOT_FOUND"

    def __init__(self, kind: str, entry_id: int):
        super().__init__(f"{kind} {entry_id} not found", entry_id=entry_id)


# --- Business rule failures ---

class ValidationError(InventoryError):
    """Input out of the allowed range or an illegal state transition."""
    code = "VALIDATION_ERROR"
    status_code = 422


class InsufficientStock(InventoryError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product {product_id}. Available: {available} units, requested: {requested}",
            product_id=product_id, available=available, requested=requested,
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class ConcurrencyConflict(InventoryError):
    code = "CONCURRENCY_CONFLICT"
    status_code = 409
