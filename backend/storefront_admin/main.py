"""
Storefront Admin - Backend API
Admin backend for a single Shopify store: catalog, orders, uploads
"""
import time
import logging
from pathlib import Path
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront_admin.core.config import settings
from storefront_admin.core.database import get_db_connection_dict_with_retry, init_database, CONNECTION_TIMEOUT
from storefront_admin.core.errors import StorefrontAdminError
from storefront_admin.api import auth, products, orders, upload, sync, dashboard, generation

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.INIT_DATABASE_ON_STARTUP:
        init_database()
    yield


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ============================================================================
# Error rendering - every error body carries a "message"
# ============================================================================

@app.exception_handler(StorefrontAdminError)
async def storefront_error_handler(request: Request, exc: StorefrontAdminError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_detail=not settings.is_production),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} raised {exc.__class__.__name__}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "kind": "internal_error"},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")

    return JSONResponse(
        status_code=400,
        content={
            "message": message,
            "kind": "validation_error",
            "errors": jsonable_encoder(errors, custom_encoder={Exception: str}),
        },
    )


# Include API routers
app.include_router(auth.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(upload.router)
app.include_router(sync.router)
app.include_router(dashboard.router)
app.include_router(generation.router)

# Locally stored images (used when Cloudinary is not configured)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
async def root():
    """Service banner"""
    return {
        "message": "Storefront Admin API",
        "status": "online",
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Minimal retry, this must answer fast
        conn = get_db_connection_dict_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()

        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check database failure: {e}")
        db_status = "disconnected"
        db_error = str(e)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "storefront-admin-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": None if settings.is_production else db_error,
            "connection_timeout_s": CONNECTION_TIMEOUT,
        },
        "integrations": {
            "shopify": bool(settings.SHOPIFY_STORE_NAME and settings.SHOPIFY_ACCESS_TOKEN),
            "cloudinary": bool(settings.CLOUDINARY_CLOUD_NAME),
            "email": bool(settings.EMAIL_USER and settings.EMAIL_PASS),
            "sms": bool(settings.TWILIO_ACCOUNT_SID),
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront_admin.main:app", host=settings.API_HOST, port=settings.PORT, reload=not settings.is_production)
