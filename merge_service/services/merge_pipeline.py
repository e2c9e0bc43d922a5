"""
Merge Pipeline - drives the engine through the video and slideshow workflows.

Video merge runs two stages in order:
1. Concatenation: stream-copy every clip into one intermediate file
2. Composition: scale, burn subtitles, mix audio and encode the output

Image slideshow runs a single composition stage over looped image inputs.
Each stage starts only after its predecessor succeeded; the first failure
aborts the job. Renders land in the job workspace and are moved into the
output directory only once probed, so a failed job never touches an
existing output.
"""

import logging
import os
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from merge_service.config import Settings, get_settings, parse_resolution
from merge_service.services import filter_graph
from merge_service.services.ffmpeg_engine import (
    EngineCommand,
    EngineInput,
    FFmpegEngine,
)

logger = logging.getLogger(__name__)

# Protocols the concat demuxer may open for manifest entries
CONCAT_PROTOCOLS = "file,http,https,tcp,tls,crypto"


@dataclass(frozen=True)
class MergeJob:
    """A validated merge job with every reference already resolved."""

    job_id: str
    output_path: str
    inputs: list[str]  # Clips or images, in order
    audio: str
    resolution: str
    bgm: Optional[str] = None
    subtitle: Optional[str] = None


@dataclass
class MergeResult:
    """Result of a successful merge."""

    output_path: str
    duration: float
    resolution: str


@contextmanager
def job_workspace(root: str, job_id: str) -> Iterator[str]:
    """
    Scratch directory for one job, removed on every exit path.

    Yields:
        Absolute path of {root}/{job_id}
    """
    workspace = os.path.abspath(os.path.join(root, job_id))
    os.makedirs(workspace, exist_ok=True)
    try:
        yield workspace
    finally:
        shutil.rmtree(workspace, ignore_errors=True)
        logger.debug(f"[{job_id}] Removed workspace {workspace}")


def escape_concat_entry(path: str) -> str:
    """Quote a path for a concat demuxer manifest line."""
    return "'" + path.replace("'", "'\\''") + "'"


def write_concat_manifest(manifest_path: str, inputs: list[str]) -> None:
    """Write the concat demuxer manifest listing inputs in order."""
    with open(manifest_path, "w", encoding="utf-8") as f:
        for path in inputs:
            f.write(f"file {escape_concat_entry(path)}\n")


class MergePipeline:
    """
    Builds and sequences engine commands for merge jobs.

    The engine is injected so tests can record commands instead of
    spawning ffmpeg.
    """

    def __init__(self, engine: FFmpegEngine, settings: Optional[Settings] = None):
        self.engine = engine
        self.settings = settings or get_settings()

    def _encode_options(self, video_map: str) -> list[str]:
        """Output options shared by both composition stages."""
        return [
            "-map", video_map,
            "-map", f"[{filter_graph.AUDIO_OUTPUT_LABEL}]",
            "-c:v", self.settings.video_codec,
            "-preset", self.settings.ffmpeg_preset,
            "-crf", str(self.settings.ffmpeg_crf),
            "-pix_fmt", self.settings.pixel_format,
            "-c:a", self.settings.audio_codec,
            "-b:a", self.settings.audio_bitrate,
            "-shortest",
        ]

    def build_concat_command(self, manifest_path: str, intermediate_path: str) -> EngineCommand:
        """Concatenation stage: join clips without re-encoding."""
        return EngineCommand(
            inputs=[
                EngineInput(
                    source=manifest_path,
                    options=[
                        "-f", "concat",
                        "-safe", "0",
                        "-protocol_whitelist", CONCAT_PROTOCOLS,
                    ],
                )
            ],
            output_options=["-c", "copy"],
            output_path=intermediate_path,
        )

    def build_composition_command(
        self, job: MergeJob, merged_path: str, output_path: str
    ) -> EngineCommand:
        """Composition stage: merged video at 0, audio at 1, music at 2."""
        inputs = [EngineInput(merged_path), EngineInput(job.audio)]
        if job.bgm:
            inputs.append(EngineInput(job.bgm))

        return EngineCommand(
            inputs=inputs,
            video_filters=filter_graph.build_video_filters(job.resolution, job.subtitle),
            filter_complex=filter_graph.video_merge_audio_filter(has_bgm=bool(job.bgm)),
            output_options=self._encode_options("0:v"),
            output_path=output_path,
        )

    def build_slideshow_command(self, job: MergeJob, output_path: str) -> EngineCommand:
        """Single-stage slideshow: images 0..N-1, audio at N, music at N+1."""
        duration = f"{self.settings.image_duration_seconds:g}"
        inputs = [
            EngineInput(image, ["-loop", "1", "-t", duration])
            for image in job.inputs
        ]
        inputs.append(EngineInput(job.audio))
        if job.bgm:
            inputs.append(EngineInput(job.bgm))

        width, height = parse_resolution(job.resolution)
        video_graph = filter_graph.build_slideshow_video_graph(
            image_count=len(job.inputs),
            width=width,
            height=height,
            video_filters=filter_graph.build_video_filters(job.resolution, job.subtitle),
        )
        audio_graph = filter_graph.slideshow_audio_filter(len(job.inputs), has_bgm=bool(job.bgm))

        return EngineCommand(
            inputs=inputs,
            filter_complex=f"{video_graph};{audio_graph}",
            output_options=self._encode_options(f"[{filter_graph.VIDEO_OUTPUT_LABEL}]"),
            output_path=output_path,
        )

    async def merge_videos(self, job: MergeJob) -> MergeResult:
        """
        Concatenate clips, then compose the final output.

        Raises:
            EngineError: If either stage or the probe fails
        """
        with job_workspace(self.settings.temp_directory, job.job_id) as workspace:
            manifest_path = os.path.join(workspace, "concat.txt")
            merged_path = os.path.join(workspace, "merged.mp4")
            staged_path = self._staged_output_path(job, workspace)
            write_concat_manifest(manifest_path, job.inputs)

            logger.info(f"[{job.job_id}] Stage 1/2: concatenating {len(job.inputs)} clip(s)")
            await self.engine.run(
                self.build_concat_command(manifest_path, merged_path),
                on_progress=self._progress_logger(job.job_id, "concat"),
            )

            logger.info(f"[{job.job_id}] Stage 2/2: composing at {job.resolution}")
            await self.engine.run(
                self.build_composition_command(job, merged_path, staged_path),
                on_progress=self._progress_logger(job.job_id, "compose"),
            )

            return await self._publish(job, staged_path)

    async def merge_images(self, job: MergeJob) -> MergeResult:
        """
        Render a slideshow from images with audio.

        Raises:
            EngineError: If the stage or the probe fails
        """
        with job_workspace(self.settings.temp_directory, job.job_id) as workspace:
            staged_path = self._staged_output_path(job, workspace)

            logger.info(
                f"[{job.job_id}] Rendering slideshow of {len(job.inputs)} image(s) "
                f"at {job.resolution}"
            )
            await self.engine.run(
                self.build_slideshow_command(job, staged_path),
                on_progress=self._progress_logger(job.job_id, "slideshow"),
            )

            return await self._publish(job, staged_path)

    @staticmethod
    def _staged_output_path(job: MergeJob, workspace: str) -> str:
        """Render target inside the workspace; keeps the container extension."""
        extension = os.path.splitext(job.output_path)[1] or ".mp4"
        return os.path.join(workspace, f"output{extension}")

    async def _publish(self, job: MergeJob, staged_path: str) -> MergeResult:
        """
        Probe the staged render and move it into the output directory.

        A failed probe leaves the output directory untouched; the staged
        file goes away with the workspace.
        """
        metadata = await self.engine.probe(staged_path)
        os.makedirs(os.path.dirname(job.output_path), exist_ok=True)
        shutil.move(staged_path, job.output_path)
        logger.info(f"[{job.job_id}] Output ready: {job.output_path} ({metadata.duration:.2f}s)")
        return MergeResult(
            output_path=job.output_path,
            duration=metadata.duration,
            resolution=job.resolution,
        )

    @staticmethod
    def _progress_logger(job_id: str, stage: str):
        def log_progress(seconds: float) -> None:
            logger.debug(f"[{job_id}] {stage}: {seconds:.1f}s processed")
        return log_progress
