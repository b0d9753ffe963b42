"""
FastAPI application entry point for the PV Test Manager.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from pvtest.config import get_settings
from pvtest.db.database import init_db
from contextlib import asynccontextmanager
import logging

logger = logging.getLogger(__name__)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting PV Test Manager API")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    # Shutdown
    logger.info("Shutting down PV Test Manager API")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Backend API for photovoltaic test management: experiments, measurements and alerts",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and include routers
from pvtest.api import experiments, data, alerts, devices, templates

# Include all API routers with /api prefix
app.include_router(
    experiments.router,
    prefix="/api",
    tags=["experiments"]
)
app.include_router(
    data.router,
    prefix="/api",
    tags=["data"]
)
app.include_router(
    alerts.router,
    prefix="/api",
    tags=["alerts"]
)
app.include_router(
    devices.router,
    prefix="/api",
    tags=["devices"]
)
app.include_router(
    templates.router,
    prefix="/api",
    tags=["templates"]
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    try:
        from pvtest.db.database import SessionLocal
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()

        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "database": "connected"
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "error": str(e)
        }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "PV Test Manager API",
        "version": settings.app_version,
        "docs": "/api/docs",
        "endpoints": {
            "experiments": "/api/experiments",
            "data": "/api/experiments/{experiment_id}/data",
            "alerts": "/api/alerts",
            "devices": "/api/devices",
            "templates": "/api/templates"
        }
    }
