import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from shop.config import settings
from shop.database import AsyncSessionLocal, create_tables
from shop.presentation.api import router
from shop.presentation.expiration_worker import expiration_worker

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    # 1. Tables
    await create_tables()
    logger.info("Tables created")

    # 2. Expiration sweeper in the background
    worker = None
    if settings.EXPIRATION_WORKER_ENABLED:
        worker = asyncio.create_task(expiration_worker(AsyncSessionLocal))
        logger.info("Expiration worker scheduled")

    yield

    logger.info("Application shutting down...")
    if worker:
        worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker


app = FastAPI(
    title="Shop Service",
    description="Orders, payments and stock reservations",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    # DTO validation inside the use case layer
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors(include_url=False, include_context=False))}
    )


@app.get("/")
async def root():
    return {"message": "Shop Service is running"}


@app.get("/health")
async def health():
    return {"status": "healthy", "expiration_worker": settings.EXPIRATION_WORKER_ENABLED}
