"""
Configuration module using Pydantic Settings for environment variable management.

Only deployment-specific values are exposed as environment variables. Encoding
settings are hardcoded so every rendered file uses the same output contract.
"""

import os
import tempfile
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


# ============================================================
# DEVICE PROFILES
# ============================================================

class DeviceProfile:
    """
    Device profile tokens accepted in merge requests.

    Each token selects a fixed output resolution tier.
    """
    MOBILE_PORTRAIT = "mp"
    MOBILE_LANDSCAPE = "ml"
    DESKTOP = "pc"


DEFAULT_RESOLUTION = "1280x720"

RESOLUTION_PROFILES = {
    DeviceProfile.MOBILE_PORTRAIT: "720x1280",
    DeviceProfile.MOBILE_LANDSCAPE: "1280x720",
    DeviceProfile.DESKTOP: "1920x1080",
}


def get_resolution(device: Optional[str]) -> str:
    """
    Get the output resolution for a device profile token.

    Unknown or missing tokens fall back to 1280x720.

    Returns:
        Resolution string in "WIDTHxHEIGHT" form
    """
    return RESOLUTION_PROFILES.get(device, DEFAULT_RESOLUTION)


def parse_resolution(resolution: str) -> tuple[int, int]:
    """Split a "WIDTHxHEIGHT" string into integers."""
    width, height = resolution.lower().split("x")
    return int(width), int(height)


def get_available_profiles() -> list[dict]:
    """
    Get list of device profiles with their resolutions.

    Returns:
        List of profile info dicts, used by the health endpoint
    """
    return [
        {"id": DeviceProfile.MOBILE_PORTRAIT, "name": "Mobile Portrait", "resolution": "720x1280"},
        {"id": DeviceProfile.MOBILE_LANDSCAPE, "name": "Mobile Landscape", "resolution": "1280x720"},
        {"id": DeviceProfile.DESKTOP, "name": "Desktop / Laptop", "resolution": "1920x1080"},
    ]


class Settings(BaseSettings):
    """
    Application settings.

    Only essential configuration is loaded from environment variables.
    All encoding settings are hardcoded for consistency.
    """

    # ============================================================
    # ENVIRONMENT VARIABLES (minimal set)
    # ============================================================

    # Application
    app_name: str = "media-merge-service"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    # External tools (e.g. /data/data/com.termux/files/usr/bin/ffmpeg on Termux)
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Storage
    output_directory: str = "./merge"
    temp_directory: str = os.path.join(tempfile.gettempdir(), "media-merge")
    media_root: Optional[str] = None  # Base for relative local references (default: cwd)

    # Public URL prefix for rendered files, e.g. http://localhost:3000
    # When unset, response URLs are host-relative (/merge/<file>)
    public_base_url: Optional[str] = None

    # Performance tuning
    max_workers: int = 2  # Max concurrently rendering jobs
    engine_timeout_seconds: float = 1800.0  # Kill ffmpeg/ffprobe after this long
    image_duration_seconds: float = 5.0  # Display time per slideshow image

    # ============================================================
    # HARDCODED SETTINGS (not configurable via env vars)
    # ============================================================

    @property
    def max_concurrent_jobs(self) -> int:
        return self.max_workers

    @property
    def static_url_prefix(self) -> str:
        return "/merge"

    # Encoding
    @property
    def video_codec(self) -> str:
        return "libx264"

    @property
    def ffmpeg_preset(self) -> str:
        return "veryfast"

    @property
    def ffmpeg_crf(self) -> int:
        return 22

    @property
    def pixel_format(self) -> str:
        return "yuv420p"

    @property
    def audio_codec(self) -> str:
        return "aac"

    @property
    def audio_bitrate(self) -> str:
        return "192k"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def build_public_url(self, filename: str) -> str:
        """Build the URL under which a rendered file is served."""
        path = f"{self.static_url_prefix}/{filename}"
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}{path}"
        return path


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
