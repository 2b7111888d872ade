import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List
from pydantic import BaseModel, Field

from shop.domain.models import Order, OrderStatus, to_money
from shop.domain.exceptions import AddressNotFoundError, CustomerNotFoundError
from shop.application.stock_ledger import StockLedger


logger = logging.getLogger(__name__)


class OrderItemDTO(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class CreateOrderDTO(BaseModel):
    customer_id: int
    address_id: int
    items: List[OrderItemDTO] = Field(min_length=1)


class CreateOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_data: CreateOrderDTO) -> Order:
        logger.info(f"Creating order for customer {order_data.customer_id} with {len(order_data.items)} items")

        # Single transaction: any failed reservation rolls back the order,
        # its items and every reservation made before it
        async with self._uow() as uow:
            # 1. Customer and address
            customer = await uow.customers.get_by_id(order_data.customer_id)
            if not customer:
                raise CustomerNotFoundError(f"Customer {order_data.customer_id} not found")

            address = await uow.addresses.get_by_id(order_data.address_id)
            if not address:
                raise AddressNotFoundError(f"Address {order_data.address_id} not found")

            # 2. Order shell
            order_id = await uow.orders.create(
                customer_id=customer.id,
                address_id=address.id,
                status=OrderStatus.AWAITING_PAYMENT,
                created_at=datetime.now(timezone.utc)
            )

            # 3. Reserve stock, capture price, create item
            ledger = StockLedger(uow.products)
            subtotal = Decimal("0.00")
            total_quantity = 0
            for item in order_data.items:
                product = await ledger.reserve(item.product_id, item.quantity)
                unit_price = to_money(product.price)
                item_subtotal = to_money(unit_price * item.quantity)
                await uow.orders.add_item(
                    order_id=order_id,
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    subtotal=item_subtotal
                )
                subtotal += item_subtotal
                total_quantity += item.quantity

            # 4. Totals
            await uow.orders.update_totals(order_id, subtotal, subtotal, total_quantity)
            await uow.commit()

            order = await uow.orders.get_by_id(order_id)

        logger.info(f"Order {order_id} created: total {order.total}, {order.total_quantity} units, status {order.status.value}")
        return order
