import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from shop.domain.models import OrderStatus, Payment, PaymentMethod, PaymentStatus
from shop.domain.exceptions import InvalidOrderStateError, OrderNotFoundError
from shop.application.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class ProcessPaymentDTO(BaseModel):
    order_id: int
    method: PaymentMethod
    status: PaymentStatus
    # informational only, the order total is charged
    declared_amount: Optional[Decimal] = None


class ProcessPaymentUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: ProcessPaymentDTO) -> Payment:
        logger.info(f"Processing payment for order {dto.order_id}: {dto.method.value}, {dto.status.value}")

        async with self._uow() as uow:
            order = await uow.orders.get_by_id(dto.order_id, for_update=True)
            if not order:
                raise OrderNotFoundError(f"Order {dto.order_id} not found")

            # Payment is attempted only once
            if not order.can_be_paid():
                logger.warning(f"Order {order.id} cannot be paid (status: {order.status.value})")
                raise InvalidOrderStateError(
                    f"Order {order.id} is not awaiting payment (status: {order.status.value})"
                )

            if dto.declared_amount is not None and dto.declared_amount != order.total:
                logger.info(f"Declared amount {dto.declared_amount} ignored, charging order total {order.total}")

            payment = await uow.payments.create(
                order_id=order.id,
                method=dto.method,
                amount=order.total,
                status=dto.status,
                created_at=datetime.now(timezone.utc)
            )

            ledger = StockLedger(uow.products)
            if dto.status == PaymentStatus.PAID:
                for item in order.items:
                    await ledger.debit(item.product_id, item.quantity)
                new_status = OrderStatus.PAID
            else:
                for item in order.items:
                    await ledger.release(item.product_id, item.quantity)
                new_status = OrderStatus.CANCELLED

            await uow.orders.update_status(order.id, new_status)
            await uow.commit()

        logger.info(f"Order {order.id} marked {new_status.value}, payment {payment.id}")
        return payment
