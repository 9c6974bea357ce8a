"""
Unit tests for ClipSynthesizer.

Covers keyframe timing, the verify-after-write check and the single
recreate attempt for clips that come back empty.
"""

import pytest

from common.src.sprites.animation import Controller
from pipeline.src.core.exceptions import (
    ArtifactWriteError,
    CorruptClipError,
    EmptyGroupError,
    InvalidSettingsError,
)
from pipeline.src.services.clip_service import ClipSynthesizer

CLIP_PATH = "Assets/Generated/Hero/Hero_Walk.clip"


@pytest.fixture
def walk_frames(make_frames):
    return make_frames("Hero_Walk_1", "Hero_Walk_2", "Hero_Walk_3")


class TestClipSynthesis:
    """Tests for the normal write path."""

    def test_writes_clip_at_deterministic_path(self, store, settings, walk_frames):
        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames)

        assert result.success
        assert result.path == CLIP_PATH
        assert result.attempts == 1
        assert store.paths() == [CLIP_PATH]

        clip = store.load_clip(CLIP_PATH)
        assert clip.frame_names() == ["Hero_Walk_1", "Hero_Walk_2", "Hero_Walk_3"]
        assert [key.time for key in clip.keyframes] == pytest.approx([0.0, 1 / 12, 2 / 12])
        assert clip.loop is True

    def test_returns_persisted_clip(self, store, settings, walk_frames):
        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames)

        assert result.data == store.load_clip(CLIP_PATH)

    def test_frame_rate_and_loop_overrides(self, store, settings, walk_frames):
        result = ClipSynthesizer(store, settings).synthesize(
            "Hero", "Walk", walk_frames, frame_rate=24, loop=False,
        )

        clip = result.unwrap()
        assert clip.frame_rate == 24.0
        assert clip.loop is False
        assert clip.keyframes[1].time == pytest.approx(1 / 24)

    def test_overwrites_existing_clip(self, store, settings, make_frames):
        synthesizer = ClipSynthesizer(store, settings)
        synthesizer.synthesize("Hero", "Walk", make_frames("Hero_Walk_1", "Hero_Walk_2", "Hero_Walk_3"))

        result = synthesizer.synthesize("Hero", "Walk", make_frames("Hero_Walk_9"))

        assert result.data.frame_names() == ["Hero_Walk_9"]
        assert store.paths() == [CLIP_PATH]

    def test_unreadable_existing_clip_is_overwritten(self, store, settings, walk_frames):
        store.save_controller(CLIP_PATH, Controller(character="Hero"))

        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames)

        assert result.success
        assert store.load_clip(CLIP_PATH).keyframe_count == 3

    def test_animation_name_sanitized_in_path(self, store, settings, make_frames):
        result = ClipSynthesizer(store, settings).synthesize("Hero", "Run Fast", make_frames("Hero_Run Fast_1"))

        assert result.path == "Assets/Generated/Hero/Hero_Run_Fast.clip"
        assert result.data.animation == "Run Fast"

    def test_empty_frames(self, store, settings):
        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", [])

        assert not result.success
        assert isinstance(result.error, EmptyGroupError)
        assert store.paths() == []

    def test_invalid_frame_rate(self, store, settings, walk_frames):
        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames, frame_rate=0)

        assert not result.success
        assert result.error_code == InvalidSettingsError.code
        with pytest.raises(InvalidSettingsError):
            result.unwrap()

    def test_write_error_becomes_failure(self, store, settings, walk_frames, monkeypatch):
        def refuse(path, clip):
            raise PermissionError(f"Permission denied: {path}")

        monkeypatch.setattr(store, "save_clip", refuse)

        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames)

        assert not result.success
        assert isinstance(result.error, ArtifactWriteError)
        assert result.error.path == CLIP_PATH
        assert (result.error.character, result.error.animation) == ("Hero", "Walk")
        assert "Permission denied" in result.error.reason


class TestClipRecreate:
    """Tests for the verify/recreate loop."""

    def test_recreates_once_after_empty_read_back(self, flaky_store, settings, walk_frames):
        """An empty first write is deleted and rebuilt exactly once."""
        store = flaky_store(drop_first=1)

        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames)

        assert result.success
        assert result.attempts == 2
        assert store.save_counts[CLIP_PATH] == 2
        assert store.delete_counts[CLIP_PATH] == 1
        assert store.load_clip(CLIP_PATH).keyframe_count == 3

    def test_double_failure_raises_corrupt_clip(self, flaky_store, settings, walk_frames):
        """A second empty read back fails the clip and leaves no artifact behind."""
        store = flaky_store(always_drop=["Hero_Walk"])

        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames)

        assert not result.success
        assert isinstance(result.error, CorruptClipError)
        assert result.error.path == CLIP_PATH
        assert result.error.character == "Hero"
        assert result.error.animation == "Walk"
        assert store.save_counts[CLIP_PATH] == 2
        assert not store.exists(CLIP_PATH)

    def test_no_third_attempt(self, flaky_store, settings, walk_frames):
        store = flaky_store(drop_first=2)

        result = ClipSynthesizer(store, settings).synthesize("Hero", "Walk", walk_frames)

        assert not result.success
        assert store.clip_saves == 2
