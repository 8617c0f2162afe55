from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mytv import __version__
from mytv.config import settings, setup_logging
from mytv.database import close_db, init_db
from mytv.dependencies import reset_dependencies
from mytv.errors import EpgError, FeedError, IptvError
from mytv.schemas import ErrorDetail, StandardErrorResponse
from mytv.services.scheduler_service import feed_scheduler

from mytv.routers import main_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting MyTV Feed Service...")

    try:
        if settings.cache_backend == "sqlite":
            logger.info("Initializing cache database...")
            await init_db()

        if settings.scheduler_enabled:
            logger.info("Starting scheduler...")
            feed_scheduler.start()
        else:
            logger.info("Scheduler disabled")

        logger.info("MyTV Feed Service started successfully")
    except Exception as e:
        logger.error(f"Failed to start MyTV Feed Service: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down MyTV Feed Service...")

    try:
        feed_scheduler.shutdown()
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    await close_db()
    reset_dependencies()
    logger.info("MyTV Feed Service stopped")


app = FastAPI(
    title="MyTV Feed Service",
    version=__version__,
    lifespan=lifespan
)

app.include_router(main_router)


def _error_code(exc: FeedError) -> str:
    if isinstance(exc, EpgError):
        return "EPG_FAILED"
    if isinstance(exc, IptvError):
        return "IPTV_FAILED"
    return "FEED_FAILED"


@app.exception_handler(FeedError)
async def feed_error_handler(request: Request, exc: FeedError):
    """Turn feed failures into a standard 502 error body"""
    logger.error(f"Feed error for {request.method} {request.url.path}: {exc}")

    cause = exc.__cause__
    response = StandardErrorResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        error=ErrorDetail(
            code=_error_code(exc),
            message=str(exc),
            context={
                "resource": exc.resource,
                "cause": type(cause).__name__ if cause else None,
            },
        ),
    )
    return JSONResponse(status_code=502, content=response.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    errors = []
    for error in exc.errors():
        error_dict = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input", ""))[:100]
        }
        errors.append(error_dict)

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors
        }
    )
