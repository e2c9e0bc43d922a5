"""
Services for the merge service.

Includes:
- Reference resolution (local vs remote inputs)
- Filter graph construction
- FFmpeg engine boundary and the merge pipeline
"""

from merge_service.services.ffmpeg_engine import (
    EngineCommand,
    EngineError,
    EngineInput,
    FFmpegEngine,
    MediaMetadata,
    ProbeError,
)
from merge_service.services.merge_pipeline import MergeJob, MergePipeline, MergeResult
from merge_service.services.reference_resolver import MissingReferencesError

__all__ = [
    # Engine
    "EngineCommand",
    "EngineInput",
    "EngineError",
    "ProbeError",
    "FFmpegEngine",
    "MediaMetadata",
    # Pipeline
    "MergeJob",
    "MergePipeline",
    "MergeResult",
    "MissingReferencesError",
]
