"""
Domain errors raised by the service layer.

Every error subclasses ValueError so callers that only care about
"bad request vs. server failure" can keep catching ValueError. The HTTP
layer reads `code` and `status_code` to build the error body.
"""


class DomainError(ValueError):
    code = "domain_error"
    status_code = 400

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)


# --- Validation errors (rejected before any write) ---

class EmptyOrder(DomainError):
    """Order must contain at least one line."""
    code = "empty_order"


class InvalidBillOfMaterials(DomainError):
    """Bill of materials is invalid."""
    code = "invalid_bom"


class InvalidShift(DomainError):
    """Shift end time must be later than its start time."""
    code = "invalid_shift"


# --- Referential errors ---

class IngredientNotFound(DomainError):
    """Ingredient not found or inactive."""
    code = "ingredient_not_found"
    status_code = 404

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient {ingredient_id} not found or inactive.")


class ProductNotFound(DomainError):
    """Product not found."""
    code = "product_not_found"
    status_code = 404

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found.")


class OrderNotFound(DomainError):
    """Order not found."""
    code = "order_not_found"
    status_code = 404

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found.")


class OrderNotFoundOrEmpty(OrderNotFound):
    """Order not found or has no lines."""
    code = "order_not_found_or_empty"

    def __init__(self, order_id: int):
        self.order_id = order_id
        DomainError.__init__(self, f"Order {order_id} not found or has no items.")


class ShiftNotFound(DomainError):
    """Shift not found."""
    code = "shift_not_found"
    status_code = 404

    def __init__(self, shift_id: int):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} not found.")


# --- State errors (rejected without writing) ---

class OrderAlreadyCompleted(DomainError):
    """Order is no longer open and cannot be completed."""
    code = "order_already_completed"
    status_code = 409

    def __init__(self, order_id: int, status: str = None):
        self.order_id = order_id
        detail = f" (status: {status})" if status else ""
        super().__init__(f"Order {order_id} cannot be completed{detail}.")


class OrderNotOpen(DomainError):
    """Order is not open."""
    code = "order_not_open"
    status_code = 409

    def __init__(self, order_id: int, status: str = None):
        self.order_id = order_id
        detail = f" (status: {status})" if status else ""
        super().__init__(f"Order {order_id} is not open{detail}.")


# --- Unexpected failure inside a fulfillment transaction ---

class CompletionFailed(DomainError):
    """Order completion failed; no changes were applied."""
    code = "completion_failed"
    status_code = 500

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Completing order {order_id} failed; no changes were applied.")
