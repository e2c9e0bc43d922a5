"""
FFmpeg Engine - the single boundary to the external transcoding engine.

Commands are described as plain EngineCommand values and executed as
subprocesses, so the rest of the service can be exercised with a fake engine.
"""

import asyncio
import json
import logging
import os
import shutil
import subprocess
import tempfile
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from merge_service.config import Settings, get_settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Tail of engine stderr surfaced in error messages
STDERR_TAIL_CHARS = 1000


class EngineError(Exception):
    """Raised when the transcoding engine fails, times out or cannot start."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        super().__init__(message)


class ProbeError(EngineError):
    """Raised when the metadata probe fails."""
    pass


@dataclass
class EngineInput:
    """A single engine input with the options that precede it."""

    source: str
    options: list[str] = field(default_factory=list)


@dataclass
class EngineCommand:
    """Complete description of one engine invocation."""

    inputs: list[EngineInput]
    output_path: str
    video_filters: list[str] = field(default_factory=list)
    filter_complex: Optional[str] = None
    output_options: list[str] = field(default_factory=list)

    def to_args(self, binary: str = "ffmpeg") -> list[str]:
        """Render the command as an argv list."""
        args = [binary, "-y", "-hide_banner", "-loglevel", "error", "-nostdin"]
        for engine_input in self.inputs:
            args.extend(engine_input.options)
            args.extend(["-i", engine_input.source])
        if self.video_filters:
            args.extend(["-vf", ",".join(self.video_filters)])
        if self.filter_complex:
            args.extend(["-filter_complex", self.filter_complex])
        args.extend(self.output_options)
        args.append(self.output_path)
        return args


@dataclass
class MediaMetadata:
    """Structural metadata reported by the probe."""

    duration: float  # Seconds
    size_bytes: Optional[int] = None
    format_name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


def parse_progress_line(line: str) -> Optional[float]:
    """
    Parse one line of ffmpeg's -progress feed.

    Returns:
        Processed seconds for out_time_us/out_time_ms lines, otherwise None
    """
    key, _, value = line.strip().partition("=")
    # out_time_ms is reported in microseconds as well
    if key not in ("out_time_us", "out_time_ms"):
        return None
    try:
        return int(value) / 1_000_000
    except ValueError:
        return None


class FFmpegEngine:
    """
    Runs ffmpeg and ffprobe as subprocesses.

    Features:
    - Progress reporting from the -progress key/value feed
    - Bounded wait with subprocess kill on timeout
    - JSON-based metadata probing
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.ffmpeg_path = self.settings.ffmpeg_path
        self.ffprobe_path = self.settings.ffprobe_path
        self.timeout = self.settings.engine_timeout_seconds

    @staticmethod
    def _tool_available(path: str) -> bool:
        if os.path.isabs(path):
            return os.path.isfile(path) and os.access(path, os.X_OK)
        return shutil.which(path) is not None

    def ffmpeg_available(self) -> bool:
        return self._tool_available(self.ffmpeg_path)

    def ffprobe_available(self) -> bool:
        return self._tool_available(self.ffprobe_path)

    def is_available(self) -> bool:
        """Check that both ffmpeg and ffprobe can be executed."""
        return self.ffmpeg_available() and self.ffprobe_available()

    async def run(
        self,
        command: EngineCommand,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Run one engine invocation to completion.

        Args:
            command: The invocation to run
            on_progress: Called with processed seconds as the engine advances

        Raises:
            EngineError: If the engine exits non-zero, cannot start or times out
        """
        args = command.to_args(self.ffmpeg_path)
        # Progress feed goes to stdout, diagnostics to stderr
        args[-1:-1] = ["-progress", "pipe:1", "-nostats"]
        logger.debug(f"Running: {' '.join(args)}")

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, lambda: self._run_sync(args, on_progress))

    def _run_sync(self, args: list[str], on_progress: Optional[ProgressCallback]) -> None:
        with tempfile.TemporaryFile() as stderr_file:
            try:
                process = subprocess.Popen(
                    args,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    text=True,
                )
            except OSError as e:
                raise EngineError(f"Failed to start ffmpeg: {e}") from e

            timed_out = threading.Event()

            def kill_on_timeout():
                timed_out.set()
                process.kill()

            timer = threading.Timer(self.timeout, kill_on_timeout)
            timer.start()
            try:
                for line in process.stdout:
                    seconds = parse_progress_line(line)
                    if seconds is not None and on_progress is not None:
                        on_progress(seconds)
                returncode = process.wait()
            finally:
                timer.cancel()
                # Still running only when the progress loop raised
                if process.poll() is None:
                    process.kill()
                    process.wait()
                process.stdout.close()

            stderr_file.seek(0)
            stderr = stderr_file.read().decode(errors="replace").strip()

        if timed_out.is_set():
            raise EngineError(f"ffmpeg timed out after {self.timeout:.0f}s", stderr)
        if returncode != 0:
            error_msg = stderr[-STDERR_TAIL_CHARS:] if stderr else f"exit code {returncode}"
            raise EngineError(f"ffmpeg failed: {error_msg}", stderr)

    async def probe(self, path: str) -> MediaMetadata:
        """
        Read container and stream metadata of a media file.

        Raises:
            ProbeError: If ffprobe fails or reports no duration
        """
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            path,
        ]

        loop = asyncio.get_event_loop()
        try:
            result = await loop.run_in_executor(
                None,
                lambda: subprocess.run(cmd, capture_output=True, timeout=self.timeout),
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out after {self.timeout:.0f}s") from e
        except OSError as e:
            raise ProbeError(f"Failed to start ffprobe: {e}") from e

        if result.returncode != 0:
            error_msg = result.stderr.decode(errors="replace").strip() if result.stderr else ""
            raise ProbeError(f"ffprobe failed: {error_msg or f'exit code {result.returncode}'}", error_msg)

        return parse_probe_output(result.stdout)


def parse_probe_output(raw: bytes) -> MediaMetadata:
    """
    Build MediaMetadata from ffprobe JSON output.

    Raises:
        ProbeError: If the output is not JSON or carries no duration
    """
    try:
        data = json.loads(raw or b"{}")
    except json.JSONDecodeError as e:
        raise ProbeError(f"ffprobe returned invalid JSON: {e}") from e

    fmt = data.get("format", {})
    try:
        duration = float(fmt["duration"])
    except (KeyError, TypeError, ValueError) as e:
        raise ProbeError("ffprobe reported no duration") from e

    metadata = MediaMetadata(
        duration=duration,
        size_bytes=int(fmt["size"]) if fmt.get("size") else None,
        format_name=fmt.get("format_name"),
    )

    for stream in data.get("streams", []):
        if stream.get("codec_type") == "video":
            metadata.width = stream.get("width")
            metadata.height = stream.get("height")
            break

    return metadata
