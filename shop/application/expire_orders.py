import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from shop.domain.models import OrderStatus
from shop.application.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class ExpireOrdersUseCase:
    """Cancels unpaid orders older than the timeout and releases their reservations.

    Each order is handled in its own transaction. The order row is locked and
    its status re-checked before anything is released, so a crashed or
    concurrent run can never release the same order twice.
    """

    def __init__(self, unit_of_work, timeout_minutes: int = 30):
        self._uow = unit_of_work
        self._timeout = timedelta(minutes=timeout_minutes)
        self._running = asyncio.Lock()

    async def __call__(self, now: Optional[datetime] = None) -> int:
        """Returns the number of cancelled orders."""
        if self._running.locked():
            logger.warning("Previous expiration sweep still running, skipping")
            return 0

        async with self._running:
            cutoff = (now or datetime.now(timezone.utc)) - self._timeout

            async with self._uow() as uow:
                expired_ids = await uow.orders.get_expired_ids(created_before=cutoff)

            if not expired_ids:
                logger.info("No expired orders found")
                return 0

            logger.info(f"Found {len(expired_ids)} expired orders")

            cancelled = 0
            for order_id in expired_ids:
                try:
                    if await self._expire(order_id):
                        cancelled += 1
                except Exception as e:
                    logger.error(f"Failed to expire order {order_id}: {e}", exc_info=True)

            logger.info(f"Expiration sweep finished: {cancelled} of {len(expired_ids)} orders cancelled")
            return cancelled

    async def _expire(self, order_id: int) -> bool:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id, for_update=True)
            if not order or not order.can_be_expired():
                logger.info(f"Order {order_id} already resolved, skipping")
                return False

            ledger = StockLedger(uow.products)
            for item in order.items:
                await ledger.release(item.product_id, item.quantity)

            await uow.orders.update_status(order_id, OrderStatus.CANCELLED)
            await uow.commit()

        logger.info(f"Order {order_id} expired and cancelled")
        return True
