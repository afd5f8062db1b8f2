"""
Portfolio Dashboard API - Main Application
FastAPI application with CORS, error handling, middleware, and logging
"""
from contextlib import asynccontextmanager
from datetime import datetime
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from portfolio_dashboard.api.routes import (
    dashboard_router,
    financials_router,
    properties_router,
    system_router,
)
from portfolio_dashboard.core.config import settings
from portfolio_dashboard.core.exceptions import DataAccessError, FinancialValidationError
from portfolio_dashboard.database import close_db_connection, init_db, test_connection


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# ==================== STARTUP & SHUTDOWN ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run on application startup and shutdown"""
    logger.info("=" * 70)
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info("=" * 70)
    logger.info(f"Environment: {'Production' if not settings.DEBUG else 'Development'}")
    logger.info(f"Data backend: {settings.DATA_BACKEND}")

    if settings.DATA_BACKEND.lower() == "sql":
        # Degraded mode on failure: /health reports it, routes return 500
        logger.info("Testing database connection...")
        if test_connection():
            logger.info("Initializing database tables...")
            if not init_db():
                logger.warning("[WARN] Database init returned False - tables may not exist")
        else:
            logger.warning("[WARN] Database connection failed - continuing in degraded mode")

    if not settings.AUTH_ENABLED:
        logger.warning("[WARN] AUTH_ENABLED is false - all requests run as the local user")

    logger.info("[OK] Application startup complete!")
    yield

    logger.info("Shutting down application...")
    close_db_connection()
    logger.info("Application shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.PROJECT_DESCRIPTION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)


# ==================== MIDDLEWARE ====================


# Compression: GZip responses
app.add_middleware(GZipMiddleware, minimum_size=1000)


# CORS: Cross-Origin Resource Sharing
allowed_origins = list(dict.fromkeys([settings.FRONTEND_URL, *settings.ALLOWED_ORIGINS]))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Length", "Content-Disposition"],
    max_age=3600,
)


# ==================== ROUTERS ====================


app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(financials_router, prefix="/api/financials", tags=["Financials"])
app.include_router(properties_router, prefix="/api/properties", tags=["Properties"])
app.include_router(system_router, prefix="/api", tags=["System"])


# ==================== ERROR HANDLERS ====================


@app.exception_handler(FinancialValidationError)
async def financial_validation_handler(request: Request, exc: FinancialValidationError):
    """Rejected financial input"""
    logger.warning(f"Invalid financial input on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "Invalid financial data", **exc.to_dict()},
    )


@app.exception_handler(DataAccessError)
async def data_access_handler(request: Request, exc: DataAccessError):
    """Storage failures"""
    logger.error(f"Data access error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Database error",
            "message": str(exc),
        }
    )


def jsonable_errors(exc: RequestValidationError):
    # ctx may hold exception instances
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed response"""
    logger.warning(f"Validation error on {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "detail": "Validation error",
            "errors": jsonable_errors(exc),
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

    # Don't expose internal errors in production
    error_message = str(exc) if settings.DEBUG else "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "detail": error_message,
            "timestamp": datetime.utcnow().isoformat()
        }
    )


# ==================== HEALTH ENDPOINTS ====================


@app.get("/", tags=["System"])
async def root():
    """Root endpoint - API information"""
    return {
        "success": True,
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "app_name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/api/docs",
        "status": "operational",
        "environment": "production" if not settings.DEBUG else "development"
    }


@app.get("/health", tags=["System"])
def health_check():
    """Health check endpoint for monitoring"""
    if settings.DATA_BACKEND.lower() != "sql":
        return {
            "success": True,
            "status": "healthy",
            "backend": settings.DATA_BACKEND,
            "timestamp": datetime.utcnow().isoformat(),
        }

    connection_ok = test_connection()
    return {
        "success": True,
        "status": "healthy" if connection_ok else "degraded",
        "database": "connected" if connection_ok else "disconnected",
        "timestamp": datetime.utcnow().isoformat(),
    }


# ==================== REQUEST LOGGING ====================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    # Skip logging for health checks
    if request.url.path == "/health":
        return await call_next(request)

    start_time = datetime.utcnow()
    client_host = request.client.host if request.client else "-"
    logger.info(f">> {request.method} {request.url.path} - {client_host}")

    try:
        response = await call_next(request)
        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info(f"<< {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
        return response
    except Exception as e:
        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.error(f"[ERROR] {request.method} {request.url.path} - Error: {str(e)} ({duration:.2f}s)")
        raise
