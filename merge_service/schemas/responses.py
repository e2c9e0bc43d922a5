"""
Response schemas for the merge API.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class VideoInputsSummary(BaseModel):
    """Which inputs of a video merge were local files or remote URLs."""

    videos: List[str] = Field(..., description="'local' or 'remote' per clip, in order")
    audio: str = Field(..., description="'local' or 'remote'")
    bgm: Optional[str] = Field(default=None, description="'local', 'remote' or null when absent")
    subtitle: Optional[str] = Field(default=None, description="'local', 'remote' or null when absent")


class ImageInputsSummary(BaseModel):
    """Which inputs of a slideshow were local files or remote URLs."""

    images: List[str] = Field(..., description="'local' or 'remote' per image, in order")
    audio: str = Field(..., description="'local' or 'remote'")
    bgm: Optional[str] = Field(default=None, description="'local', 'remote' or null when absent")
    subtitle: Optional[str] = Field(default=None, description="'local', 'remote' or null when absent")


class MergeResponse(BaseModel):
    """Successful merge result."""

    status: str = Field(default="success", description="Always 'success'")
    file: str = Field(..., description="Output file name")
    url: str = Field(..., description="URL under which the output is served")
    duration: float = Field(..., description="Output duration in seconds, as probed")
    resolution: str = Field(..., description="Output resolution as WIDTHxHEIGHT")
    inputs: VideoInputsSummary | ImageInputsSummary

    class Config:
        json_schema_extra = {
            "example": {
                "status": "success",
                "file": "out.mp4",
                "url": "/merge/out.mp4",
                "duration": 42.5,
                "resolution": "1920x1080",
                "inputs": {
                    "videos": ["local", "remote"],
                    "audio": "local",
                    "bgm": None,
                    "subtitle": None,
                },
            }
        }


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(..., description="Error message")
    missing: Optional[List[str]] = Field(default=None, description="Missing local paths (404 only)")
    fields: Optional[List[str]] = Field(default=None, description="Invalid request fields (400 only)")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Human readable status")
    timestamp: str = Field(..., description="Server time (ISO 8601, UTC)")
    features: dict[str, Any] = Field(default_factory=dict, description="Supported features")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service can render")
    ffmpeg: str = Field(..., description="ffmpeg status")
    ffprobe: str = Field(..., description="ffprobe status")
    output_directory: str = Field(..., description="Output directory status")
