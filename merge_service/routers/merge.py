"""
Merge API endpoints.

POST /vdo/merge concatenates clips and lays audio, music and subtitles over
them; POST /img/merge renders a slideshow from images. Both block until the
output is rendered and probed.
"""

import asyncio
import logging
import os
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from merge_service.config import get_resolution, get_settings
from merge_service.schemas.requests import MergeRequest
from merge_service.schemas.responses import (
    ErrorResponse,
    ImageInputsSummary,
    MergeResponse,
    VideoInputsSummary,
)
from merge_service.services import reference_resolver
from merge_service.services.ffmpeg_engine import EngineError
from merge_service.services.merge_pipeline import MergeJob, MergePipeline
from merge_service.services.reference_resolver import MissingReferencesError

logger = logging.getLogger(__name__)

router = APIRouter()

MergeKind = Literal["video", "image"]

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid fields"},
    404: {"model": ErrorResponse, "description": "Local input files not found"},
    500: {"model": ErrorResponse, "description": "Rendering failed"},
}


def get_merge_pipeline(request: Request) -> MergePipeline:
    """Get the merge pipeline from app state (initialized at startup)."""
    pipeline = getattr(request.app.state, "merge_pipeline", None)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Merge pipeline not initialized",
        )
    return pipeline


def get_job_semaphore(request: Request) -> asyncio.Semaphore:
    """Get the render slot semaphore from app state."""
    semaphore = getattr(request.app.state, "job_semaphore", None)
    if semaphore is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Job semaphore not initialized",
        )
    return semaphore


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    body = ErrorResponse(error=message, **extra)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def summarize_inputs(payload: MergeRequest, kind: MergeKind):
    """Report which inputs are local files and which are remote URLs."""
    classify = reference_resolver.classify
    sequence = [classify(ref) for ref in payload.inputvdo]
    common = {
        "audio": classify(payload.inputaud),
        "bgm": classify(payload.inputbgm) if payload.inputbgm else None,
        "subtitle": classify(payload.subtitle) if payload.subtitle else None,
    }
    if kind == "image":
        return ImageInputsSummary(images=sequence, **common)
    return VideoInputsSummary(videos=sequence, **common)


def build_job(payload: MergeRequest, job_id: str) -> MergeJob:
    """Resolve every reference and pick the output resolution."""
    settings = get_settings()
    media_root = settings.media_root

    def resolve(reference):
        return reference_resolver.resolve(reference, media_root) if reference else None

    return MergeJob(
        job_id=job_id,
        output_path=os.path.abspath(os.path.join(settings.output_directory, payload.filename)),
        inputs=[resolve(ref) for ref in payload.inputvdo],
        audio=resolve(payload.inputaud),
        bgm=resolve(payload.inputbgm),
        subtitle=resolve(payload.subtitle),
        resolution=get_resolution(payload.device),
    )


async def run_merge(
    payload: MergeRequest,
    kind: MergeKind,
    pipeline: MergePipeline,
    semaphore: asyncio.Semaphore,
):
    """
    Validate references, render and build the response.

    Errors are mapped to 404 (missing local inputs) and 500 (everything
    raised while resolving, building or rendering).
    """
    settings = get_settings()
    job_id = uuid.uuid4().hex[:12]
    logger.info(f"[{job_id}] {kind} merge requested: {payload.filename} ({len(payload.inputvdo)} input(s))")

    try:
        reference_resolver.ensure_exist(
            [payload.inputvdo, payload.inputaud, payload.inputbgm, payload.subtitle],
            settings.media_root,
        )
    except MissingReferencesError as e:
        logger.warning(f"[{job_id}] {e}")
        return error_response(status.HTTP_404_NOT_FOUND, "Input files not found", missing=e.missing)

    try:
        job = build_job(payload, job_id)
        async with semaphore:
            if kind == "image":
                result = await pipeline.merge_images(job)
            else:
                result = await pipeline.merge_videos(job)
    except EngineError as e:
        logger.error(f"[{job_id}] Merge failed: {e}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except Exception as e:
        logger.exception(f"[{job_id}] Unexpected merge failure")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or type(e).__name__)

    return MergeResponse(
        file=payload.filename,
        url=settings.build_public_url(payload.filename),
        duration=result.duration,
        resolution=result.resolution,
        inputs=summarize_inputs(payload, kind),
    )


@router.post("/vdo/merge", response_model=MergeResponse, responses=ERROR_RESPONSES)
async def merge_videos(
    payload: MergeRequest,
    pipeline: MergePipeline = Depends(get_merge_pipeline),
    semaphore: asyncio.Semaphore = Depends(get_job_semaphore),
):
    """
    Concatenate video clips and compose them with audio.

    - Clips are joined in the given order without re-encoding
    - Primary audio replaces the clip audio; background music is mixed at 10%
    - Optional subtitles are burned in after scaling to the device resolution
    """
    return await run_merge(payload, "video", pipeline, semaphore)


@router.post("/img/merge", response_model=MergeResponse, responses=ERROR_RESPONSES)
async def merge_images(
    payload: MergeRequest,
    pipeline: MergePipeline = Depends(get_merge_pipeline),
    semaphore: asyncio.Semaphore = Depends(get_job_semaphore),
):
    """
    Render a slideshow from images with audio.

    Each image is shown for a fixed duration (IMAGE_DURATION_SECONDS), in
    the given order, letterboxed into the device resolution.
    """
    return await run_merge(payload, "image", pipeline, semaphore)
