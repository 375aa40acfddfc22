"""
UnityShop Marketplace Application

REST backend for the multi-vendor marketplace: cart, checkout through a
hosted payment processor, orders, promo codes and realtime notifications.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from pydantic import ValidationError as SchemaError
from pymongo.errors import PyMongoError

# Load environment variables before settings are read
load_dotenv()

from .core.config import Settings, settings as default_settings
from .core.errors import MarketplaceError, UpstreamError
from .core.store import DocumentStore
from .routes import (
    cart_router,
    payment_router,
    notifications_router,
    orders_router,
    promo_router,
    reviews_router,
    realtime_router,
)
from .security import ChannelAuthenticator
from .services import ChannelRegistry, PaymentProcessorClient

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    settings = app.state.settings
    logger.info("Marketplace starting up...")
    logger.info(f"Database: {settings.database_name}")
    logger.info(f"Payments configured: {settings.payments_configured}")

    yield

    logger.info("Marketplace shutting down...")
    await app.state.payments.close()
    await app.state.store.close()


def _first_error(exc) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
    message = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    payments: Optional[PaymentProcessorClient] = None,
) -> FastAPI:
    """
    Build the application with its process-wide handles.

    Args:
        settings: Configuration (defaults to environment settings)
        store: Document store handle (defaults to a MongoDB handle)
        payments: Payment processor client (defaults to the Stripe API)
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.app_name,
        description="Multi-vendor marketplace backend",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store or DocumentStore(
        settings.mongodb_url,
        settings.database_name,
        timeout_ms=settings.mongodb_timeout_ms,
    )
    app.state.payments = payments or PaymentProcessorClient(
        secret_key=settings.stripe_secret_key,
        base_url=settings.stripe_api_base,
        timeout=settings.payment_timeout_seconds,
    )
    app.state.channels = ChannelRegistry()
    app.state.channel_auth = ChannelAuthenticator(
        secret=settings.channel_token_secret,
        algorithm=settings.channel_token_algorithm,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        if isinstance(exc, UpstreamError):
            logger.error(f"{request.method} {request.url.path} failed upstream: {exc.message}")
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _first_error(exc)})

    @app.exception_handler(SchemaError)
    async def schema_error_handler(request: Request, exc: SchemaError):
        # Document schemas enforce invariants (quantity, code format) at the boundary
        return JSONResponse(status_code=400, content={"detail": _first_error(exc)})

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.error(f"{request.method} {request.url.path} database error: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Database unavailable"})

    app.include_router(cart_router)
    app.include_router(payment_router)
    app.include_router(notifications_router)
    app.include_router(orders_router)
    app.include_router(promo_router)
    app.include_router(reviews_router)
    app.include_router(realtime_router)

    @app.get("/")
    async def home():
        return {
            "message": "UnityShop Marketplace API",
            "docs": "/docs",
            "endpoints": {
                "cart": "/cart",
                "payment": "/payment",
                "notifications": "/notifications",
                "orders": "/orders",
                "promo": "/promo",
                "reviews": "/reviews",
                "realtime": "/ws",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "marketplace",
            "database_connected": app.state.store.is_connected,
            "payments_configured": settings.payments_configured,
            "realtime_connections": app.state.channels.connection_count,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "marketplace.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )
