import logging

from shop.domain.models import Order, OrderStatus, TERMINAL_STATUSES
from shop.domain.exceptions import InvalidOrderStateError, OrderNotFoundError

logger = logging.getLogger(__name__)


class UpdateOrderStatusUseCase:
    """Administrative status change outside of payment.

    Does not touch stock, so it is limited to non-terminal transitions:
    PAGO and CANCELADO are reached only through payment processing or
    expiration, which keep the stock ledger consistent.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: int, new_status: OrderStatus) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id, for_update=True)
            if not order:
                raise OrderNotFoundError(f"Order {order_id} not found")

            if order.status == OrderStatus.PAID:
                raise InvalidOrderStateError("Cannot change the status of a paid order")
            if order.status == OrderStatus.CANCELLED:
                raise InvalidOrderStateError("Cannot change the status of a cancelled order")
            if new_status in TERMINAL_STATUSES:
                raise InvalidOrderStateError(
                    f"Status {new_status.value} is set by payment processing or expiration only"
                )

            await uow.orders.update_status(order_id, new_status)
            await uow.commit()
            logger.info(f"Order {order_id}: {order.status.value} -> {new_status.value}")

            return await uow.orders.get_by_id(order_id)
