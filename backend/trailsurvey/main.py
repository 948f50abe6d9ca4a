"""
Trail Survey - FastAPI Backend

Main application entry point and configuration.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trailsurvey.api.sessions import router as sessions_router
from trailsurvey.services.repository import get_repository


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Where stopped trails are written (can be overridden via environment)
DEFAULT_EXPORT_FOLDER = Path("./data/trails")
EXPORT_FOLDER_ENV = "TRAIL_EXPORT_FOLDER"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Trail Survey Backend")

    repo = get_repository()
    if repo.export_folder is None:
        export_folder = Path(os.getenv(EXPORT_FOLDER_ENV, str(DEFAULT_EXPORT_FOLDER)))
        repo.set_export_folder(export_folder)
        logger.info(f"Trail exports go to: {export_folder}")

    yield

    # Shutdown
    logger.info("Shutting down Trail Survey Backend")


# Create FastAPI app
app = FastAPI(
    title="Trail Survey",
    description="""
    Backend API for trail accessibility surveys.

    ## Features
    - Ingest device attitude + GPS samples from the field app
    - Smooth and zero-reference pitch/roll into slope and cross slope grades
    - Select waypoints and project colored corridor lines for the map
    - Export/import trails as CSV

    ## Data Flow
    1. Create a session via POST /sessions
    2. Start tracking via POST /sessions/{id}/start
    3. Push samples via POST /sessions/{id}/samples
    4. Render via GET /sessions/{id}/corridor
    5. Stop via POST /sessions/{id}/stop (writes the CSV)
    """,
    version="0.1.0",
    lifespan=lifespan,
)


# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(sessions_router)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": "Trail Survey",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    repo = get_repository()

    return {
        "status": "healthy",
        "export_folder": str(repo.export_folder) if repo.export_folder else None,
        "session_count": len(repo),
    }
