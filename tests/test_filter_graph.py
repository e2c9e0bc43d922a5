"""
Unit tests for video filter and audio graph construction.
"""

import pytest

from merge_service.services import filter_graph


class TestVideoFilters:
    """Tests for the ordered video filter list."""

    def test_scale_only(self):
        assert filter_graph.build_video_filters("1920x1080") == ["scale=1920x1080"]

    def test_scale_before_subtitles(self):
        filters = filter_graph.build_video_filters("720x1280", "/media/subs.srt")
        assert filters == [
            "scale=720x1280",
            "subtitles='/media/subs.srt':force_style='FontSize=32,Outline=1,Shadow=1'",
        ]

    def test_remote_subtitle(self):
        filters = filter_graph.build_video_filters("1280x720", "https://cdn.example.com/s.srt")
        assert filters[1] == (
            "subtitles='https\\://cdn.example.com/s.srt'"
            ":force_style='FontSize=32,Outline=1,Shadow=1'"
        )

    def test_escape_colons_in_url_with_port(self):
        assert filter_graph.escape_filter_path("https://127.0.0.1:9/s.srt") == (
            "'https\\://127.0.0.1\\:9/s.srt'"
        )

    def test_escape_windows_drive(self):
        assert filter_graph.escape_filter_path("C:\\media\\subs.srt") == "'C\\:/media/subs.srt'"

    def test_escape_single_quote(self):
        assert filter_graph.escape_filter_path("/media/it's.srt") == "'/media/it\\'\\''s.srt'"


class TestAudioFilter:
    """Tests for audio graph construction."""

    def test_video_merge_without_music(self):
        assert filter_graph.video_merge_audio_filter(has_bgm=False) == "[1:a]volume=1.0[aout]"

    def test_video_merge_with_music(self):
        assert filter_graph.video_merge_audio_filter(has_bgm=True) == (
            "[1:a]volume=1.0[a1];[2:a]volume=0.1[a2];"
            "[a1][a2]amix=inputs=2:duration=shortest[aout]"
        )

    def test_slideshow_indices_follow_image_count(self):
        graph = filter_graph.slideshow_audio_filter(3, has_bgm=True)
        assert graph.startswith("[3:a]volume=1.0[a1];[4:a]volume=0.1[a2];")
        assert "[1:a]" not in graph
        assert "[2:a]" not in graph

    def test_slideshow_without_music(self):
        assert filter_graph.slideshow_audio_filter(5, has_bgm=False) == "[5:a]volume=1.0[aout]"


class TestSlideshowGraph:
    """Tests for the slideshow video graph."""

    def test_normalizes_and_concatenates_in_order(self):
        graph = filter_graph.build_slideshow_video_graph(2, 1280, 720, ["scale=1280x720"])
        chains = graph.split(";")

        assert chains[0].startswith("[0:v]scale=1280:720:force_original_aspect_ratio=decrease")
        assert chains[1].startswith("[1:v]")
        assert chains[2] == "[img0][img1]concat=n=2:v=1:a=0[slides]"
        assert chains[3] == "[slides]scale=1280x720[vout]"

    def test_subtitles_applied_after_concat(self):
        filters = filter_graph.build_video_filters("1280x720", "/s.srt")
        graph = filter_graph.build_slideshow_video_graph(1, 1280, 720, filters)
        assert graph.endswith(
            "[slides]scale=1280x720,subtitles='/s.srt':force_style='FontSize=32,Outline=1,Shadow=1'[vout]"
        )

    def test_requires_images(self):
        with pytest.raises(ValueError):
            filter_graph.build_slideshow_video_graph(0, 1280, 720, ["scale=1280x720"])
