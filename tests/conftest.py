"""
Pytest configuration and fixtures.
"""

import os
import sys
import tempfile

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Point settings at scratch directories before the app module is imported
_TEST_ROOT = tempfile.mkdtemp(prefix="merge-service-tests-")
os.environ["OUTPUT_DIRECTORY"] = os.path.join(_TEST_ROOT, "merge")
os.environ["TEMP_DIRECTORY"] = os.path.join(_TEST_ROOT, "tmp")
os.environ.pop("PUBLIC_BASE_URL", None)

from merge_service.config import get_settings  # noqa: E402
from merge_service.services.ffmpeg_engine import EngineError, MediaMetadata, ProbeError  # noqa: E402

get_settings.cache_clear()


class FakeEngine:
    """Records engine commands instead of running ffmpeg."""

    def __init__(self, duration: float = 12.5):
        self.duration = duration
        self.commands = []
        self.manifests = []
        self.probed = []
        self.fail_on_call = None  # 0-based index of the run() call that fails
        self.error_message = "ffmpeg failed: Invalid data found when processing input"
        self.write_partial_output = False
        self.probe_error = False

    async def run(self, command, on_progress=None):
        call_index = len(self.commands)
        self.commands.append(command)

        for engine_input in command.inputs:
            if "concat" in engine_input.options:
                with open(engine_input.source, encoding="utf-8") as f:
                    self.manifests.append(f.read())

        if self.fail_on_call == call_index:
            if self.write_partial_output:
                with open(command.output_path, "wb") as f:
                    f.write(b"partial")
            raise EngineError(self.error_message)

        if on_progress is not None:
            on_progress(1.0)
        with open(command.output_path, "wb") as f:
            f.write(b"rendered")

    async def probe(self, path):
        self.probed.append(path)
        if self.probe_error:
            raise ProbeError("ffprobe failed: moov atom not found")
        return MediaMetadata(duration=self.duration, format_name="mov,mp4,m4a,3gp,3g2,mj2")

    def ffmpeg_available(self):
        return True

    def ffprobe_available(self):
        return True


@pytest.fixture
def settings():
    """Settings bound to the test directories."""
    settings = get_settings()
    os.makedirs(settings.output_directory, exist_ok=True)
    os.makedirs(settings.temp_directory, exist_ok=True)
    return settings


@pytest.fixture
def fake_engine():
    """Engine double that records commands."""
    return FakeEngine()


@pytest.fixture
def media_files(tmp_path):
    """Create placeholder local media files."""
    files = {}
    for name in ["a.mp4", "b.mp4", "audio.mp3", "music.mp3", "subs.srt", "1.png", "2.png", "3.png"]:
        path = tmp_path / name
        path.write_bytes(b"placeholder")
        files[name] = str(path)
    return files
