import logging
from datetime import datetime, timezone
from pydantic import BaseModel, Field

from shop.domain.models import Cart
from shop.domain.exceptions import (
    CartItemNotFoundError, CustomerNotFoundError, InsufficientStockError, ProductNotFoundError
)

logger = logging.getLogger(__name__)


class AddCartItemDTO(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


class UpdateCartItemDTO(BaseModel):
    quantity: int = Field(ge=1)


async def _get_or_create_cart(uow, customer_id: int, for_update: bool = False) -> Cart:
    """Each customer has exactly one cart, created on first access"""
    cart = await uow.carts.get_by_customer(customer_id, for_update=for_update)
    if cart:
        return cart

    if not await uow.customers.get_by_id(customer_id):
        raise CustomerNotFoundError(f"Customer {customer_id} not found")

    cart = await uow.carts.create(customer_id)
    logger.info(f"Cart {cart.id} created for customer {customer_id}")
    return cart


async def _check_available(uow, product_id: int, quantity: int) -> None:
    # A cart holds no reservation: units are checked, never set aside
    product = await uow.products.get_by_id(product_id)
    if not product or not product.active:
        raise ProductNotFoundError(f"Product {product_id} not found or inactive")
    if product.available < quantity:
        raise InsufficientStockError(product_id, product.available, quantity)


class GetCartUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> Cart:
        async with self._uow() as uow:
            cart = await _get_or_create_cart(uow, customer_id)
            await uow.commit()
            return cart


class AddCartItemUseCase:
    """Adds a product; a product already in the cart has its quantity increased"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int, dto: AddCartItemDTO) -> Cart:
        async with self._uow() as uow:
            cart = await _get_or_create_cart(uow, customer_id, for_update=True)

            existing = cart.find_item(dto.product_id)
            quantity = dto.quantity + (existing.quantity if existing else 0)
            await _check_available(uow, dto.product_id, quantity)

            if existing:
                await uow.carts.set_quantity(existing.id, quantity)
            else:
                await uow.carts.add_item(cart.id, dto.product_id, quantity)
            await uow.carts.touch(cart.id, datetime.now(timezone.utc))
            await uow.commit()

            logger.info(f"Cart {cart.id}: product {dto.product_id} now x{quantity}")
            return await uow.carts.get_by_customer(customer_id)


class UpdateCartItemUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int, item_id: int, dto: UpdateCartItemDTO) -> Cart:
        async with self._uow() as uow:
            cart = await _get_or_create_cart(uow, customer_id, for_update=True)
            item = await uow.carts.get_item(item_id)
            if not item or item.cart_id != cart.id:
                raise CartItemNotFoundError(f"Item {item_id} not found in this cart")

            await _check_available(uow, item.product_id, dto.quantity)

            await uow.carts.set_quantity(item_id, dto.quantity)
            await uow.carts.touch(cart.id, datetime.now(timezone.utc))
            await uow.commit()
            return await uow.carts.get_by_customer(customer_id)


class RemoveCartItemUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int, item_id: int) -> Cart:
        async with self._uow() as uow:
            cart = await _get_or_create_cart(uow, customer_id, for_update=True)
            item = await uow.carts.get_item(item_id)
            if not item or item.cart_id != cart.id:
                raise CartItemNotFoundError(f"Item {item_id} not found in this cart")

            await uow.carts.remove_item(item_id)
            await uow.carts.touch(cart.id, datetime.now(timezone.utc))
            await uow.commit()
            return await uow.carts.get_by_customer(customer_id)


class ClearCartUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> Cart:
        async with self._uow() as uow:
            cart = await _get_or_create_cart(uow, customer_id, for_update=True)
            await uow.carts.clear(cart.id)
            await uow.carts.touch(cart.id, datetime.now(timezone.utc))
            await uow.commit()
            logger.info(f"Cart {cart.id} cleared")
            return await uow.carts.get_by_customer(customer_id)
