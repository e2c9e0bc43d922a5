"""
Request schemas for the merge API.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MergeRequest(BaseModel):
    """Request body for /vdo/merge and /img/merge."""

    filename: str = Field(..., min_length=1, description="Output file name inside the output directory")
    inputvdo: list[str] = Field(
        ...,
        min_length=1,
        description="Video clips (or images for /img/merge) as local paths or http(s) URLs, in order",
    )
    inputaud: str = Field(..., min_length=1, description="Primary audio track")
    inputbgm: Optional[str] = Field(default=None, description="Optional background music, mixed at 10%")
    subtitle: Optional[str] = Field(default=None, description="Optional subtitle file burned into the video")
    device: Optional[str] = Field(
        default=None,
        description="Device profile: 'mp' (720x1280), 'ml' (1280x720), 'pc' (1920x1080)",
    )

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, value: str) -> str:
        """Only bare file names are accepted; outputs never leave the output directory."""
        value = value.strip()
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError("filename must be a plain file name without directories")
        return value

    @field_validator("inputvdo")
    @classmethod
    def validate_inputs(cls, value: list[str]) -> list[str]:
        if any(not item or not item.strip() for item in value):
            raise ValueError("inputvdo entries must be non-empty")
        return value

    @field_validator("inputbgm", "subtitle", "device")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        """Treat empty optional strings as absent."""
        if value is not None and not value.strip():
            return None
        return value

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "filename": "out.mp4",
                "inputvdo": ["clips/a.mp4", "https://example.com/b.mp4"],
                "inputaud": "audio/voice.mp3",
                "inputbgm": "audio/music.mp3",
                "subtitle": "subs/captions.srt",
                "device": "pc",
            }
        }
