"""
FastAPI application entry point for the media merge service.

The service renders one output video per request by driving ffmpeg:
1. Video merge (concatenate clips, then compose audio, music and subtitles)
2. Image slideshow (images shown in order over an audio track)
"""

import asyncio
import logging
import os
import shutil
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from merge_service.config import get_settings
from merge_service.routers import health, merge
from merge_service.services.ffmpeg_engine import FFmpegEngine
from merge_service.services.merge_pipeline import MergePipeline

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup and shutdown events.
    Prepares directories and the render pipeline on startup.
    """
    settings = get_settings()
    logger.info("Starting media merge service...")

    os.makedirs(settings.output_directory, exist_ok=True)
    os.makedirs(settings.temp_directory, exist_ok=True)
    logger.info(f"Output directory: {os.path.abspath(settings.output_directory)}")
    logger.info(f"Temp directory: {settings.temp_directory}")

    # Limits how many jobs run ffmpeg at the same time
    app.state.job_semaphore = asyncio.Semaphore(settings.max_concurrent_jobs)
    logger.info(f"Max concurrent jobs: {settings.max_concurrent_jobs}")

    engine = FFmpegEngine(settings)
    app.state.engine = engine
    app.state.merge_pipeline = MergePipeline(engine, settings)

    _verify_external_tools(engine)

    logger.info("Media merge service ready to accept requests.")

    yield

    logger.info("Shutting down media merge service...")
    app.state.merge_pipeline = None
    app.state.engine = None
    app.state.job_semaphore = None

    # Job workspaces are removed per job; drop whatever an aborted job left
    if os.path.isdir(settings.temp_directory):
        try:
            shutil.rmtree(settings.temp_directory)
        except OSError as e:
            logger.warning(f"Failed to clean up temp directory: {e}")

    logger.info("Shutdown complete")


def _verify_external_tools(engine: FFmpegEngine):
    """Verify that required external tools are available."""
    tools = {
        "FFmpeg for video rendering": engine.ffmpeg_available(),
        "FFprobe for output metadata": engine.ffprobe_available(),
    }

    for description, available in tools.items():
        if available:
            logger.info(f"✓ {description} available")
        else:
            logger.warning(f"✗ {description} NOT FOUND - merges will fail")


# Create FastAPI application
app = FastAPI(
    title="Media Merge Service",
    description="""
Renders a single video from clips or images, an audio track, optional
background music and optional subtitles.

## Endpoints

- `POST /vdo/merge` - concatenate clips and compose them with audio
- `POST /img/merge` - render an image slideshow with audio
- `GET /merge/{file}` - download a rendered file
- `GET /health` - service health
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report missing or malformed body fields as a 400 with the field names."""
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        name = loc[0] if loc else "body"
        if name not in fields:
            fields.append(name)

    logger.info(f"Rejected request to {request.url.path}: invalid fields {fields}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Missing or invalid fields: {', '.join(fields)}", "fields": fields},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors with the same {error} body as merge failures."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(merge.router, tags=["Merge"])

# Rendered outputs (directory is created by lifespan when missing)
app.mount(
    settings.static_url_prefix,
    StaticFiles(directory=settings.output_directory, check_dir=False),
    name="merge",
)


@app.get("/")
async def root():
    """Root endpoint with basic info."""
    settings = get_settings()
    return {
        "service": settings.app_name,
        "version": "1.0.0",
        "status": "running",
        "features": {
            "video_merge": "Concatenation + audio mix + subtitles",
            "image_merge": "Slideshow + audio mix + subtitles",
        },
        "docs": "/docs",
    }
