"""
Unit tests for configuration and device profiles.
"""

import pytest

from merge_service.config import (
    Settings,
    get_available_profiles,
    get_resolution,
    parse_resolution,
)


class TestDeviceProfiles:
    """Tests for the device profile to resolution mapping."""

    @pytest.mark.parametrize(
        "device,expected",
        [("mp", "720x1280"), ("ml", "1280x720"), ("pc", "1920x1080")],
    )
    def test_known_profiles(self, device, expected):
        assert get_resolution(device) == expected

    @pytest.mark.parametrize("device", [None, "", "tv", "PC", "tablet"])
    def test_unknown_profiles_fall_back(self, device):
        assert get_resolution(device) == "1280x720"

    def test_parse_resolution(self):
        assert parse_resolution("720x1280") == (720, 1280)
        assert parse_resolution("1920X1080") == (1920, 1080)

    def test_available_profiles_match_table(self):
        for profile in get_available_profiles():
            assert get_resolution(profile["id"]) == profile["resolution"]


class TestSettings:
    """Tests for Settings defaults and URL building."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.port == 3000
        assert settings.ffmpeg_path == "ffmpeg"
        assert settings.ffmpeg_preset == "veryfast"
        assert settings.ffmpeg_crf == 22
        assert settings.audio_bitrate == "192k"

    def test_host_relative_url(self):
        settings = Settings(_env_file=None, public_base_url=None)
        assert settings.build_public_url("out.mp4") == "/merge/out.mp4"

    def test_absolute_url(self):
        settings = Settings(_env_file=None, public_base_url="http://localhost:3000/")
        assert settings.build_public_url("out.mp4") == "http://localhost:3000/merge/out.mp4"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("FFMPEG_PATH", "/data/data/com.termux/files/usr/bin/ffmpeg")
        settings = Settings(_env_file=None)
        assert settings.port == 8080
        assert settings.ffmpeg_path == "/data/data/com.termux/files/usr/bin/ffmpeg"
