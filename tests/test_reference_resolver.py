"""
Unit tests for reference classification and validation.
"""

import os

import pytest

from merge_service.services import reference_resolver
from merge_service.services.reference_resolver import MissingReferencesError


class TestClassification:
    """Tests for remote/local classification."""

    @pytest.mark.parametrize(
        "reference",
        ["http://example.com/a.mp4", "https://example.com/a.mp4", "HTTPS://EXAMPLE.COM/A.MP4", "Http://x/y"],
    )
    def test_remote(self, reference):
        assert reference_resolver.is_remote(reference)
        assert reference_resolver.classify(reference) == "remote"

    @pytest.mark.parametrize(
        "reference",
        ["a.mp4", "/abs/a.mp4", "ftp://example.com/a.mp4", "httpfile.mp4", "./http://x"],
    )
    def test_local(self, reference):
        assert not reference_resolver.is_remote(reference)
        assert reference_resolver.classify(reference) == "local"


class TestResolve:
    """Tests for reference resolution."""

    def test_remote_untouched(self):
        url = "https://example.com/clip.mp4"
        assert reference_resolver.resolve(url) == url

    def test_relative_uses_media_root(self, tmp_path):
        assert reference_resolver.resolve("a.mp4", str(tmp_path)) == str(tmp_path / "a.mp4")

    def test_relative_defaults_to_cwd(self):
        assert reference_resolver.resolve("a.mp4") == os.path.abspath("a.mp4")

    def test_absolute_ignores_media_root(self, tmp_path):
        assert reference_resolver.resolve("/data/a.mp4", str(tmp_path)) == "/data/a.mp4"


class TestValidate:
    """Tests for existence checks."""

    def test_existing_local_files(self, media_files):
        assert reference_resolver.validate([media_files["a.mp4"], media_files["b.mp4"]]) == []

    def test_single_reference(self, tmp_path):
        missing = str(tmp_path / "nope.mp3")
        assert reference_resolver.validate(missing) == [missing]

    def test_remote_never_checked(self):
        assert reference_resolver.validate(["https://unreachable.invalid/a.mp4"]) == []

    def test_none_and_empty_skipped(self):
        assert reference_resolver.validate(None) == []
        assert reference_resolver.validate([None, ""]) == []

    def test_preserves_order(self, tmp_path, media_files):
        refs = [str(tmp_path / "x.mp4"), media_files["a.mp4"], str(tmp_path / "y.mp4")]
        assert reference_resolver.validate(refs) == [str(tmp_path / "x.mp4"), str(tmp_path / "y.mp4")]

    def test_ensure_exist_aggregates_categories(self, tmp_path, media_files):
        videos = [media_files["a.mp4"], str(tmp_path / "gone.mp4")]
        audio = str(tmp_path / "gone.mp3")
        subtitle = str(tmp_path / "gone.srt")

        with pytest.raises(MissingReferencesError) as exc_info:
            reference_resolver.ensure_exist([videos, audio, None, subtitle])

        assert exc_info.value.missing == [
            str(tmp_path / "gone.mp4"),
            str(tmp_path / "gone.mp3"),
            str(tmp_path / "gone.srt"),
        ]

    def test_ensure_exist_passes(self, media_files):
        reference_resolver.ensure_exist([[media_files["a.mp4"]], media_files["audio.mp3"], None, None])
