"""
Clip synthesis service.

Turns an ordered frame list into a clip artifact and verifies the write.

Freshly created artifacts occasionally fail to persist their first keyframe
write on the host store. Every write is therefore read back: a clip that
comes back with zero keyframes is deleted and rebuilt exactly once, and a
second empty read-back fails the clip with CorruptClipError.
"""

from typing import Optional, Sequence

from common.src.sprites.animation import Clip, FrameAsset
from common.src.sprites.paths import ArtifactPaths
from pipeline.src.core.config import PipelineSettings
from pipeline.src.core.exceptions import (
    ArtifactDecodeError,
    ArtifactWriteError,
    CorruptClipError,
    EmptyGroupError,
    InvalidSettingsError,
)
from pipeline.src.core.logging_config import get_logger
from pipeline.src.schemas.service_results import ClipServiceResult
from pipeline.src.store.artifact_store import ArtifactStore

logger = get_logger(__name__)


class ClipSynthesizer:
    """Creates or overwrites clip artifacts at their deterministic paths."""

    def __init__(self, store: ArtifactStore, settings: PipelineSettings):
        self.store = store
        self.settings = settings
        self.paths = ArtifactPaths(settings.output_root_folder)

    def synthesize(
        self,
        character: str,
        animation: str,
        ordered_frames: Sequence[FrameAsset],
        frame_rate: Optional[float] = None,
        loop: Optional[bool] = None,
    ) -> ClipServiceResult[Clip]:
        """
        Write the clip for one character animation.

        Args:
            character: Character name.
            animation: Animation name.
            ordered_frames: Frames in playback order (non-empty).
            frame_rate: Frames per second, defaults to settings.default_frame_rate.
            loop: Loop flag, defaults to settings.loop_all_clips.

        Returns:
            ClipServiceResult holding the persisted clip and its path, or the
            EmptyGroupError / InvalidSettingsError / CorruptClipError /
            ArtifactWriteError failure.
        """
        frame_rate = self.settings.default_frame_rate if frame_rate is None else frame_rate
        loop = self.settings.loop_all_clips if loop is None else loop
        path = self.paths.clip_path(character, animation)

        if not ordered_frames:
            return ClipServiceResult.from_error(EmptyGroupError(
                f"No frames for '{character}/{animation}'", character=character, animation=animation,
            ))
        if frame_rate <= 0:
            return ClipServiceResult.from_error(InvalidSettingsError(
                f"frame_rate must be > 0, got {frame_rate}", character=character, animation=animation,
            ))

        try:
            return self._write_verified(path, character, animation, ordered_frames, frame_rate, loop)
        except OSError as e:
            error = ArtifactWriteError(path, str(e), character=character, animation=animation)
            logger.error(error.message, extra={"path": path})
            return ClipServiceResult.from_error(error)

    def _write_verified(
        self,
        path: str,
        character: str,
        animation: str,
        ordered_frames: Sequence[FrameAsset],
        frame_rate: float,
        loop: bool,
    ) -> ClipServiceResult[Clip]:
        self.store.ensure_folder(self.paths.character_folder(character))

        clip = self._load_existing(path) or Clip(character=character, animation=animation)
        clip.character = character
        clip.animation = animation
        self._write(path, clip, ordered_frames, frame_rate, loop)

        keys = self.store.count_clip_keyframes(path)
        if keys > 0:
            return self._success(path, attempts=1)

        logger.warning(
            "Clip read back with 0 keyframes, recreating",
            extra={"path": path, "frames": len(ordered_frames)},
        )
        self.store.delete(path)

        fresh = Clip(character=character, animation=animation)
        self._write(path, fresh, ordered_frames, frame_rate, loop)

        keys = self.store.count_clip_keyframes(path)
        if keys > 0:
            return self._success(path, attempts=2)

        # Never leave an empty clip behind for a controller to reference
        self.store.delete(path)
        error = CorruptClipError(path, character, animation)
        logger.error(error.message, extra={"path": path})
        return ClipServiceResult.from_error(error)

    def _load_existing(self, path: str) -> Optional[Clip]:
        try:
            return self.store.load_clip(path)
        except ArtifactDecodeError as e:
            logger.warning("Existing clip unreadable, overwriting", extra={"path": path, "error": e.reason})
            return None

    def _write(
        self,
        path: str,
        clip: Clip,
        frames: Sequence[FrameAsset],
        frame_rate: float,
        loop: bool,
    ) -> None:
        clip.write_keyframes(frames, frame_rate)
        clip.loop = loop
        self.store.save_clip(path, clip)

    def _success(self, path: str, attempts: int) -> ClipServiceResult[Clip]:
        persisted = self.store.load_clip(path)
        logger.debug(
            "Clip written",
            extra={"path": path, "keyframes": persisted.keyframe_count, "attempts": attempts},
        )
        return ClipServiceResult.success_with_clip(persisted, path, attempts)
