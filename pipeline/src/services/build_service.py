"""
Build orchestration for the animation pipeline.

Runs the whole compiler: collect frames, group them, write every clip, then
every controller, all inside a single store batch. Failures of one clip or
one character are recorded and the run continues with the others.
"""

from typing import Dict, Optional, Sequence

from common.src.sprites.animation import Clip, FrameAsset
from pipeline.src.core.config import PipelineSettings
from pipeline.src.core.exceptions import EmptyGroupError, PipelineError, StoreTransactionError
from pipeline.src.core.logging_config import get_logger
from pipeline.src.schemas.reports import FailureRecord, RunReport
from pipeline.src.services.clip_service import ClipSynthesizer
from pipeline.src.services.controller_service import ControllerSynthesizer
from pipeline.src.services.frame_grouper import CharacterGroup, FrameGrouper, collect_frames
from pipeline.src.store.artifact_store import ArtifactStore

logger = get_logger(__name__)


class BuildService:
    """Compiles a frame pool into clips and controllers."""

    def __init__(
        self,
        store: ArtifactStore,
        settings: PipelineSettings,
        clip_synthesizer: Optional[ClipSynthesizer] = None,
        controller_synthesizer: Optional[ControllerSynthesizer] = None,
    ):
        self.store = store
        self.settings = settings
        self.grouper = FrameGrouper()
        self.clips = clip_synthesizer or ClipSynthesizer(store, settings)
        self.controllers = controller_synthesizer or ControllerSynthesizer(store, settings)

    def build_all(self, frames: Optional[Sequence[FrameAsset]] = None) -> RunReport:
        """
        Build every clip and controller for the frame pool.

        Args:
            frames: Frame pool. Defaults to the frames found in
                settings.sprite_root_folders.

        Returns:
            RunReport with totals, per-character lines and every failure.

        Raises:
            StoreTransactionError: If the output root or the store batch cannot
                be opened. Artifact write errors only fail their clip or character.
        """
        if frames is None:
            frames = collect_frames(self.store, self.settings.sprite_root_folders)

        report = RunReport(frames_scanned=len(frames))
        if not frames:
            logger.warning(
                "No sprites found in the configured folders",
                extra={"folders": self.settings.sprite_root_folders},
            )
            return report

        groups = self.grouper.group(frames)
        try:
            self.store.ensure_folder(self.settings.output_root_folder)
        except OSError as e:
            raise StoreTransactionError(f"Cannot create output root: {e}") from e

        with self.store.batch():
            for character in groups.characters():
                self._build_character(character, report)

        logger.info(
            "Build finished",
            extra={
                "clips_touched": report.clips_touched,
                "controllers_touched": report.controllers_touched,
                "failures": len(report.failures),
            },
        )
        return report

    def _build_character(self, character: CharacterGroup, report: RunReport) -> None:
        clips_by_animation: Dict[str, Clip] = {}

        for animation in character.animations():
            ordered = animation.ordered_frames()
            if not ordered:
                self._record(report, EmptyGroupError(
                    "Animation has no valid frames", character=character.name, animation=animation.name,
                ))
                continue

            result = self.clips.synthesize(character.name, animation.name, ordered)
            if result.success:
                clips_by_animation[animation.name] = result.data
                report.clips_touched += 1
            else:
                self._record(report, result.error, character.name, animation.name)

        if not clips_by_animation:
            report.lines.append(f"- {character.name}: Clips=0 (no valid sprites matched naming)")
            self._record(report, EmptyGroupError(
                "No clip could be built", character=character.name,
            ))
            return

        result = self.controllers.synthesize(character.name, clips_by_animation)
        if not result.success:
            report.lines.append(f"- {character.name}: Clips={len(clips_by_animation)} Controller=FAILED")
            self._record(report, result.error, character.name)
            return

        report.controllers_touched += 1
        report.lines.append(f"- {character.name}: Clips={len(clips_by_animation)} Controller=OK")

    @staticmethod
    def _record(
        report: RunReport,
        error: Optional[PipelineError],
        character: Optional[str] = None,
        animation: Optional[str] = None,
    ) -> None:
        error = error or PipelineError("Unknown failure")
        failure = FailureRecord(
            character=error.character or character or "",
            animation=error.animation or animation,
            error_code=error.code,
            message=error.message,
        )
        report.failures.append(failure)
        logger.error(str(failure), extra={"error_code": error.code})

