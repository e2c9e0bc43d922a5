"""
Health check endpoints for the merge service.
"""

import os
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from merge_service.config import get_available_profiles, get_settings
from merge_service.schemas.responses import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Basic health check endpoint.

    Returns 200 if the service is running.
    """
    return HealthResponse(
        status="OK",
        message="Media merge service is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        features={
            "video_merge": "/vdo/merge",
            "image_merge": "/img/merge",
            "background_music": True,
            "subtitles": True,
            "remote_inputs": True,
            "device_profiles": get_available_profiles(),
        },
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Returns whether ffmpeg, ffprobe and the output directory are usable.
    """
    settings = get_settings()
    engine = getattr(request.app.state, "engine", None)

    ffmpeg_ready = engine is not None and engine.ffmpeg_available()
    ffprobe_ready = engine is not None and engine.ffprobe_available()
    output_ready = os.path.isdir(settings.output_directory) and os.access(
        settings.output_directory, os.W_OK
    )

    return ReadinessResponse(
        ready=ffmpeg_ready and ffprobe_ready and output_ready,
        ffmpeg="ready" if ffmpeg_ready else "not_found",
        ffprobe="ready" if ffprobe_ready else "not_found",
        output_directory="writable" if output_ready else "unavailable",
    )
