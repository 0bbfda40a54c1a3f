"""
Quotes API - Main Application

Customer-facing quote and artwork approval links plus the staff back office
that prepares and sends them.

SECURITY FEATURES:
- Conditional API docs (disabled in production)
- Customer tokens scrubbed from error reports
- Structured logging without sensitive data
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.api.admin.router import admin_router
from app.api.public.router import public_router
from app.config import settings
from app.core.sentry import init_sentry
from app.database import init_db
from app.exceptions import ApiException, create_exception_handlers
from app.middleware import CorrelationIdMiddleware
# Import all models to register them with SQLAlchemy metadata before init_db()
from app import models  # noqa: F401

# Configure secure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.SITE_NAME} quotes API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    init_sentry()
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # SECURITY: Don't log full exception details which may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - some features may not work")
    yield
    logger.info("Shutting down quotes API...")


# SECURITY: Conditionally enable docs based on settings
docs_url = "/docs" if settings.DOCS_ENABLED else None
redoc_url = "/redoc" if settings.DOCS_ENABLED else None

app = FastAPI(
    title=f"{settings.SITE_NAME} Quotes API",
    description="Quote and artwork approval for custom merchandise orders",
    version=settings.VERSION,
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

# CORS middleware
# SECURITY: Restrict origins to known frontend URLs
allowed_origins = [settings.FRONTEND_URL]
if settings.PUBLIC_BASE_URL not in allowed_origins:
    allowed_origins.append(settings.PUBLIC_BASE_URL)
if not settings.is_production:
    allowed_origins.extend([
        "http://localhost:3000",  # Next.js dev server
        "http://localhost:5173",  # Vite dev server
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Error responses: {"error", "code", "traceId", "details"?}
handlers = create_exception_handlers(allowed_origins)
app.add_exception_handler(ApiException, handlers["api"])
app.add_exception_handler(StarletteHTTPException, handlers["http"])
app.add_exception_handler(RequestValidationError, handlers["validation"])
app.add_exception_handler(Exception, handlers["generic"])

# Include routers
app.include_router(public_router)
app.include_router(admin_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
