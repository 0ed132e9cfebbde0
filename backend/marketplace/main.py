"""
Marketplace - Backend API
Suppliers, phone verification and product catalog
"""
import time
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from marketplace.api import admin, attributes, categories, products, suppliers, uploads, users, verification
from marketplace.connectors.storage_connector import SupabaseStorageConnector
from marketplace.connectors.whatsapp_connector import WappiConnector
from marketplace.core.config import settings
from marketplace.core.database import Database
from marketplace.core.errors import MarketplaceError, RateLimitedError
from marketplace.core.logging_config import setup_logging
from marketplace.core.rate_limit import RateLimiter

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared pool and collaborators; close them on shutdown"""
    app.state.db = Database.from_settings(settings)
    app.state.db.open()
    app.state.sender = WappiConnector()
    app.state.storage = SupabaseStorageConnector()
    app.state.otp_rate_limiter = RateLimiter()
    logger.info(f"{settings.API_TITLE} {settings.API_VERSION} started")
    try:
        yield
    finally:
        app.state.sender.close()
        app.state.db.close()
        logger.info(f"{settings.API_TITLE} stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    debug=settings.API_DEBUG,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    """Map the error taxonomy to HTTP; 5xx responses carry a generic message only"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    headers = None
    if isinstance(exc, RateLimitedError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "detail": exc.client_message},
        headers=headers
    )


# Include API routers
app.include_router(verification.router, prefix="/api/v1/verification", tags=["Verification"])
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(suppliers.router, prefix="/api/v1/suppliers", tags=["Suppliers"])
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(categories.router, prefix="/api/v1/categories", tags=["Categories"])
app.include_router(attributes.router, prefix="/api/v1/attributes", tags=["Attributes"])
app.include_router(uploads.router, prefix="/api/v1/uploads", tags=["Uploads"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": settings.API_TITLE,
        "status": "online",
        "version": settings.API_VERSION
    }


@app.get("/health")
def health(request: Request):
    """Health check - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    db = getattr(request.app.state, "db", None)
    if db is None or not db.is_open:
        db_status = "disconnected"
        db_error = "database pool is not open"
    else:
        try:
            db_latency_ms = db.ping()
            db_status = "connected"
        except MarketplaceError as e:
            db_status = "disconnected"
            db_error = e.client_message
            logger.warning(f"Health check database ping failed: {e.message}")

    status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": status,
        "service": "marketplace-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
            "connection_timeout_s": settings.DB_CONNECT_TIMEOUT
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2)
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("marketplace.main:app", host=settings.API_HOST, port=settings.API_PORT)
