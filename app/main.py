import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import build_reconfirmation_poller
from app.api.deps import engine
from app.api.routers.bookings import router as bookings_router
from app.api.routers.health import router as health_router
from app.api.routers.reconfirmation import router as reconfirmation_router
from app.api.routers.subscriptions import router as subscriptions_router
from app.api.routers.webhooks import router as webhooks_router
from app.config import get_settings
from app.domain.errors import (
    BookingNotFoundError,
    DomainError,
    InvalidInputError,
    InvalidItemDetailsError,
    InvalidSignatureError,
    ProviderError,
    QuoteAlreadyConvertedError,
    QuoteNotFoundError,
    SubscriptionNotFoundError,
)
from app.infrastructure.db.engine import create_tables

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidInputError: 400,
    InvalidItemDetailsError: 400,
    InvalidSignatureError: 400,
    QuoteNotFoundError: 404,
    BookingNotFoundError: 404,
    SubscriptionNotFoundError: 404,
    QuoteAlreadyConvertedError: 409,
    ProviderError: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if not settings.use_in_memory:
        await create_tables(engine)

    poller = build_reconfirmation_poller(settings)
    app.state.reconfirmation_poller = poller
    if settings.reconfirmation_poller_enabled:
        poller.start()
    yield
    # Cleanup
    await poller.stop()
    await engine.dispose()

app = FastAPI(
    title="Booking Orchestrator API",
    version="0.1.0",
    lifespan=lifespan
)


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error(
            "Domain error returned as server error",
            extra={"code": exc.code, "path": request.url.path, "error": exc.message},
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

    # Log the full error with context for internal debugging
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

    # Return a generic error to the client without exposing internal details
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(bookings_router, tags=["Bookings"])
app.include_router(webhooks_router, tags=["Webhooks"])
app.include_router(reconfirmation_router, tags=["Reconfirmation"])
app.include_router(subscriptions_router, tags=["Subscriptions"])
