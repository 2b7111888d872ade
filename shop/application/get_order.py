from typing import List

from shop.domain.models import Order
from shop.domain.exceptions import OrderNotFoundError


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: int) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Order {order_id} not found")
            return order


class ListCustomerOrdersUseCase:
    """Orders of a customer, newest first"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> List[Order]:
        async with self._uow() as uow:
            return await uow.orders.list_by_customer(customer_id)
