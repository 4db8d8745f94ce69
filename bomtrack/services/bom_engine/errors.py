"""
BOM Engine Errors

Raised for inputs the engine cannot evaluate. "No active recipe" and
zero-quantity components are normal states and never raise.
"""


class BomEngineError(Exception):
    """Base class for engine failures reported back to callers."""


class InvalidQuantityError(BomEngineError, ValueError):
    def __init__(self, quantity, field: str = 'quantity'):
        self.quantity = quantity
        self.field = field
        super().__init__(f"{field} must be greater than 0 (got {quantity!r})")


class ProductNotFoundError(BomEngineError, LookupError):
    def __init__(self, product_id, tenant_id=None):
        self.product_id = product_id
        self.tenant_id = tenant_id
        super().__init__(f"Product {product_id} not found")


class NotBomManagedError(BomEngineError):
    def __init__(self, product_id, inventory_management_type=None):
        self.product_id = product_id
        self.inventory_management_type = inventory_management_type
        super().__init__(f"Product {product_id} does not use BOM inventory management")
