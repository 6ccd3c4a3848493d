import asyncio
import contextlib
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from farmout_dispatch.api.dependencies import run_expiry_sweep
from farmout_dispatch.api.deps import engine
from farmout_dispatch.api.routers.farmout import router as farmout_router
from farmout_dispatch.api.routers.health import router as health_router
from farmout_dispatch.api.routers.webhooks import router as webhooks_router
from farmout_dispatch.api.routers.worker import router as worker_router
from farmout_dispatch.config import get_settings
from farmout_dispatch.domain.errors import (
    ConfigurationError,
    ConflictError,
    DomainError,
    FarmoutNotEnabledError,
    InvalidFarmoutTransitionError,
    NotFoundError,
    OptimisticLockError,
)
from farmout_dispatch.infrastructure.db.tables import metadata
from farmout_dispatch.infrastructure.messaging.expiry_worker import ExpirySweepWorker

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Initialize DB tables (for dev/demo purposes)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    worker_task = None
    if settings.run_expiry_worker:
        worker = ExpirySweepWorker(
            run_sweep=lambda: run_expiry_sweep(settings),
            poll_interval_seconds=settings.expiry_sweep_interval_seconds,
        )
        worker_task = asyncio.create_task(worker.start())
    yield
    # Cleanup
    if worker_task is not None:
        await worker.stop()
        worker_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker_task
    await engine.dispose()

app = FastAPI(
    title="Farmout Dispatch API",
    version="0.1.0",
    lifespan=lifespan
)


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(
        exc,
        (ConflictError, OptimisticLockError, FarmoutNotEnabledError, InvalidFarmoutTransitionError),
    ):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ConfigurationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    status_code = _status_for(exc)
    logger.warning(
        "Domain error",
        extra={"code": exc.code, "path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(farmout_router, prefix="/api/v1", tags=["Farmout"])
app.include_router(webhooks_router, prefix="/api/v1", tags=["Webhooks"])
app.include_router(worker_router, prefix="/api/v1", tags=["Worker"])
