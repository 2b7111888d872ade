import asyncio
import logging

from shop.database import AsyncSessionLocal
from shop.infrastructure.unit_of_work import UnitOfWork
from shop.application.expire_orders import ExpireOrdersUseCase
from shop.config import settings

logger = logging.getLogger(__name__)


async def expiration_worker(
    session_factory=AsyncSessionLocal,
    interval_seconds: int = settings.EXPIRATION_SWEEP_INTERVAL_SECONDS,
    timeout_minutes: int = settings.ORDER_EXPIRATION_MINUTES
):
    """Worker that cancels unpaid orders past the timeout"""
    logger.info(f"Expiration worker started: every {interval_seconds}s, timeout {timeout_minutes} min")

    # one use case for the worker lifetime, its lock prevents overlapping sweeps
    use_case = ExpireOrdersUseCase(
        unit_of_work=UnitOfWork(session_factory),
        timeout_minutes=timeout_minutes
    )

    while True:
        try:
            cancelled = await use_case()
            if cancelled:
                logger.info(f"Cancelled {cancelled} expired orders")

        except asyncio.CancelledError:
            logger.info("Expiration worker stopped")
            raise
        except Exception as e:
            logger.error(f"Error in expiration worker: {e}", exc_info=True)

        await asyncio.sleep(interval_seconds)


async def main():
    await expiration_worker()


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(main())
