import logging

from shop.domain.models import Product
from shop.domain.exceptions import InsufficientStockError, ProductNotFoundError
from shop.application.interfaces import ProductRepository

logger = logging.getLogger(__name__)


class StockLedger:
    """Reserve / release / debit on the product counters.

    Works inside the caller's transaction: it never commits. The invariant
    kept here is 0 <= reserved <= stock for every product.
    """

    def __init__(self, products: ProductRepository):
        self._products = products

    async def reserve(self, product_id: int, quantity: int) -> Product:
        """Hold `quantity` units of an active product for an unpaid order.

        Returns the product as read before the reservation, so the caller can
        capture its current price.
        """
        self._check_quantity(quantity)

        product = await self._products.get_active_for_update(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found or inactive")

        if not await self._products.try_reserve(product_id, quantity):
            current = await self._products.get_by_id(product_id)
            available = current.available if current else 0
            logger.warning(f"Reservation refused for product {product_id}: available {available}, required {quantity}")
            raise InsufficientStockError(product_id, available, quantity)

        logger.info(f"Reserved {quantity} units of product {product_id}")
        return product

    async def release(self, product_id: int, quantity: int) -> None:
        """Give back a reservation. The counter never goes below zero."""
        self._check_quantity(quantity)

        if not await self._products.release(product_id, quantity):
            raise ProductNotFoundError(f"Product {product_id} not found")
        logger.info(f"Released {quantity} reserved units of product {product_id}")

    async def debit(self, product_id: int, quantity: int) -> None:
        """Remove sold units from on-hand stock and consume their reservation."""
        self._check_quantity(quantity)

        if not await self._products.try_debit(product_id, quantity):
            current = await self._products.get_by_id(product_id)
            if not current:
                raise ProductNotFoundError(f"Product {product_id} not found")
            logger.warning(f"Debit refused for product {product_id}: stock {current.stock}, required {quantity}")
            raise InsufficientStockError(product_id, current.stock, quantity)

        logger.info(f"Debited {quantity} units of product {product_id}")

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")
