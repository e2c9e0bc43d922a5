"""
Pydantic schemas for request/response models.
"""

from merge_service.schemas.requests import MergeRequest
from merge_service.schemas.responses import (
    ErrorResponse,
    HealthResponse,
    ImageInputsSummary,
    MergeResponse,
    ReadinessResponse,
    VideoInputsSummary,
)

__all__ = [
    "MergeRequest",
    "MergeResponse",
    "VideoInputsSummary",
    "ImageInputsSummary",
    "ErrorResponse",
    "HealthResponse",
    "ReadinessResponse",
]
