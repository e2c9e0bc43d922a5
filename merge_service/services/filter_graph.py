"""
Filter-Graph Builder - video filter chains and audio mix graphs for ffmpeg.

Input indexing rules:
- Video merge: the composition stage sees the merged video at 0, the
  primary audio at 1 and background music at 2.
- Image slideshow: N images occupy 0..N-1, the primary audio sits at N
  and background music at N+1.
"""

from typing import Optional

AUDIO_OUTPUT_LABEL = "aout"
VIDEO_OUTPUT_LABEL = "vout"

PRIMARY_GAIN = 1.0
BACKGROUND_GAIN = 0.1
SUBTITLE_STYLE = "FontSize=32,Outline=1,Shadow=1"


def escape_filter_path(path: str) -> str:
    """
    Escape a file path or URL for use inside an ffmpeg filter argument.

    Two levels apply. At option level every ':' and "'" is backslash-escaped
    so URLs and drive letters survive the filter's key=value parser. At
    graph level the value is single-quoted, with quotes closed, escaped and
    reopened. Backslashes become forward slashes first.

    Returns:
        Quoted path safe for a filter expression
    """
    escaped = path.replace("\\", "/")
    escaped = escaped.replace("'", "\\'").replace(":", "\\:")
    escaped = escaped.replace("'", "'\\''")
    return f"'{escaped}'"


def build_video_filters(resolution: str, subtitle: Optional[str] = None) -> list[str]:
    """
    Build the ordered video filter list.

    Scaling always comes first; subtitle burn-in is appended when a
    subtitle reference is given so captions render at output resolution.

    Args:
        resolution: Target size as "WIDTHxHEIGHT"
        subtitle: Resolved subtitle path or URL

    Returns:
        Filters in application order
    """
    filters = [f"scale={resolution}"]
    if subtitle:
        filters.append(
            f"subtitles={escape_filter_path(subtitle)}:force_style='{SUBTITLE_STYLE}'"
        )
    return filters


def build_audio_filter(audio_index: int, bgm_index: Optional[int] = None) -> str:
    """
    Build the audio filter graph feeding the [aout] bus.

    Without background music the primary track passes through at full gain.
    With background music the two tracks are mixed (primary 1.0, music 0.1)
    and the mix stops at the end of the shorter track.

    Args:
        audio_index: Engine input index of the primary audio
        bgm_index: Engine input index of the background music, if any
    """
    if bgm_index is None:
        return f"[{audio_index}:a]volume={PRIMARY_GAIN}[{AUDIO_OUTPUT_LABEL}]"

    return (
        f"[{audio_index}:a]volume={PRIMARY_GAIN}[a1];"
        f"[{bgm_index}:a]volume={BACKGROUND_GAIN}[a2];"
        f"[a1][a2]amix=inputs=2:duration=shortest[{AUDIO_OUTPUT_LABEL}]"
    )


def video_merge_audio_filter(has_bgm: bool) -> str:
    """Audio graph for the composition stage of a video merge."""
    return build_audio_filter(1, 2 if has_bgm else None)


def slideshow_audio_filter(image_count: int, has_bgm: bool) -> str:
    """Audio graph for an image slideshow with image_count image inputs."""
    return build_audio_filter(image_count, image_count + 1 if has_bgm else None)


def build_slideshow_video_graph(
    image_count: int,
    width: int,
    height: int,
    video_filters: list[str],
) -> str:
    """
    Build the video part of a slideshow filter graph.

    Every image is fitted into the target frame (letterboxed), the images
    are concatenated in input order and the ordered video filters are
    applied to the result, producing the [vout] bus.
    """
    if image_count < 1:
        raise ValueError("Slideshow needs at least one image")

    chains = []
    for i in range(image_count):
        chains.append(
            f"[{i}:v]scale={width}:{height}:force_original_aspect_ratio=decrease,"
            f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1[img{i}]"
        )

    labels = "".join(f"[img{i}]" for i in range(image_count))
    chains.append(f"{labels}concat=n={image_count}:v=1:a=0[slides]")
    chains.append(f"[slides]{','.join(video_filters)}[{VIDEO_OUTPUT_LABEL}]")
    return ";".join(chains)
