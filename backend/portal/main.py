"""
FastAPI application entry point for the whitelist portal.

This is the main app that:
- Initializes FastAPI with CORS
- Registers all API routers
- Provides health check endpoint
- Seeds missing data files on startup
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.config import settings
from portal import storage
from portal.services.discord import discord_client
from portal.storage import StorageError
# Import API routers
from portal.api import activity_log, application_types, applications, auth, moderation, notifications

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    On startup: Create any missing collection file in the data directory
    On shutdown: Close the Discord HTTP session
    """
    # Startup
    logger.info("🚀 Starting whitelist portal API...")
    created = await storage.seed_data_files(storage.get_store())
    logger.info(f"📁 Data directory: {settings.data_dir} ({len(created)} files created)")
    logger.info(f"🔧 Debug mode: {settings.debug}")
    if not discord_client.configured:
        logger.warning("Discord bot token or guild id missing: roles resolve empty and messages are not sent")

    yield

    # Shutdown
    logger.info("👋 Shutting down whitelist portal API...")
    await discord_client.close()


# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.server_name} Portal API",
    description="Whitelist and staff application portal",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
# Set ALLOWED_ORIGINS environment variable with comma-separated domains
allowed_origins = [
    "http://localhost:3000",  # Local development
]

if settings.allowed_origins:
    allowed_origins.extend(settings.allowed_origins.split(','))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Storage unavailable"})


# Health check endpoint
@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "Whitelist Portal API",
        "version": "1.0.0",
    }


# Root endpoint
@app.get("/")
async def root():
    """API root with basic info."""
    return {
        "message": f"{settings.server_name} Portal API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Register API routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(application_types.router, prefix="/api/admin/application-types", tags=["application-types"])
app.include_router(moderation.router, prefix="/api/admin/users", tags=["moderation"])
app.include_router(activity_log.router, prefix="/api/activity-log", tags=["activity-log"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
