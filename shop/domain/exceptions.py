class DomainException(Exception):
    pass


class NotFoundError(DomainException):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class CustomerNotFoundError(NotFoundError):
    pass


class AddressNotFoundError(NotFoundError):
    pass


class ProductNotFoundError(NotFoundError):
    pass


class CategoryNotFoundError(NotFoundError):
    pass


class CartItemNotFoundError(NotFoundError):
    pass


class InvalidOrderStateError(DomainException):
    pass


class InsufficientStockError(DomainException):
    def __init__(self, product_id: int, available: int, required: int):
        self.product_id = product_id
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient stock for product {product_id}. Available: {available}, required: {required}"
        )


class InvalidStockError(DomainException):
    pass


class DuplicateEmailError(DomainException):
    pass


class DuplicateCategoryError(DomainException):
    pass


class ResourceInUseError(DomainException):
    """Delete refused: other rows still reference the target"""
    pass


class TransactionFailureError(DomainException):
    pass
