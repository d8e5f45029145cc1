"""Main FastAPI application entry point.

Provides CORS, health endpoints, resource search, document upload and the
course/specialization taxonomy.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path

# Import routers
from app.routers import health, resources, upload, courses, files
from app.db.config import SessionLocal
from app.services.taxonomy_seed import seed_taxonomy
from app.utils.errors import LibraryError
from app.utils.validation import flatten_errors

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Application metadata
APP_NAME = "University Resource Library API"
VERSION = "1.0.0"
DESCRIPTION = """
University Resource Library Backend API

## Features

* **Resources**: Search academic documents by text, category, course and specialization
* **Upload**: Validated upload of PDFs and images to blob storage
* **Courses**: Course and specialization taxonomy with idempotent creation
* **Health Check**: Monitor application status
"""

# Initialize FastAPI app
app = FastAPI(
    title=APP_NAME,
    description=DESCRIPTION,
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware configuration
cors_origins = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-Seq"],
)

# Global exception handlers


@app.exception_handler(LibraryError)
async def library_exception_handler(request: Request, exc: LibraryError):
    """Render domain errors with their error/message/details payload"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            **exc.to_dict(),
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
):
    """Malformed request bodies are client errors, reported per field"""
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Validation failed",
            "details": flatten_errors(exc.errors()),
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions with consistent error format"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )

# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(resources.router, prefix="/api/v1")
app.include_router(upload.router, prefix="/api/v1")
app.include_router(courses.router, prefix="/api/v1")
app.include_router(files.router, prefix="/api/v1")

# Root endpoint


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "name": APP_NAME,
        "version": VERSION,
        "status": "running",
        "environment": os.getenv("ENVIRONMENT", "development"),
        "timestamp": datetime.utcnow().isoformat(),
        "docs": "/docs",
        "health": "/api/v1/health"
    }


def _flag(name: str) -> bool:
    return os.getenv(name, "false").lower() in {"1", "true", "yes"}


def run_migrations() -> bool:
    """Run ``alembic upgrade head`` from the project root."""
    logger.info("AUTO_MIGRATE enabled: running 'alembic upgrade head'")
    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            cwd=str(PROJECT_ROOT),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        logger.error(
            "Alembic not found - ensure it's installed in the environment"
        )
        return False
    if result.returncode != 0:
        logger.error(
            "Alembic upgrade failed (code %s): %s\n%s",
            result.returncode,
            result.stdout,
            result.stderr,
        )
        return False
    logger.info("Alembic migration applied successfully")
    return True

# Application startup event


@app.on_event("startup")
async def startup_event():
    """Application startup tasks"""
    logger.info(f"Starting {APP_NAME} v{VERSION}")
    logger.info(f"Environment: {os.getenv('ENVIRONMENT', 'development')}")
    logger.info(f"CORS Origins: {cors_origins}")
    if _flag("AUTO_MIGRATE"):
        run_migrations()
    if _flag("SEED_TAXONOMY"):
        async with SessionLocal() as session:
            await seed_taxonomy(session)

# Application shutdown event


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown tasks"""
    logger.info(f"Shutting down {APP_NAME}")

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=True,
        log_level="info"
    )
