"""
Pipeline output validation and repair.

validate() compares the generated artifacts against the current frame pool,
validate_project() checks every generated artifact under the output root, and
auto_fix() re-links states that lost their motion to the clip they should play.
"""

from typing import Dict, List, Optional, Sequence

from common.src.sprites.animation import Clip, Controller, FrameAsset, anim_id
from common.src.sprites.naming import sanitize_file_part
from common.src.sprites.paths import ArtifactPaths, CLIP_EXTENSION, CONTROLLER_EXTENSION
from pipeline.src.core.config import PipelineSettings
from pipeline.src.core.exceptions import ArtifactDecodeError
from pipeline.src.core.logging_config import get_logger
from pipeline.src.schemas.reports import FixReport, Issue, IssueKind
from pipeline.src.services.frame_grouper import FrameGrouper, collect_frames
from pipeline.src.store.artifact_store import ArtifactStore

logger = get_logger(__name__)


class PipelineValidator:
    """Reports, and optionally repairs, structural defects in generated artifacts."""

    def __init__(self, store: ArtifactStore, settings: PipelineSettings):
        self.store = store
        self.settings = settings
        self.paths = ArtifactPaths(settings.output_root_folder)
        self.grouper = FrameGrouper()

    # =========================================================================
    # Validation against the frame pool
    # =========================================================================

    def validate(self, frames: Optional[Sequence[FrameAsset]] = None) -> List[Issue]:
        """
        Check every character/animation expected from the frame pool.

        Args:
            frames: Frame pool to check against. Defaults to the frames found
                in settings.sprite_root_folders.

        Returns:
            All findings, in character/animation order. Empty when clean.
        """
        if frames is None:
            frames = collect_frames(self.store, self.settings.sprite_root_folders)

        groups = self.grouper.group(frames)
        issues: List[Issue] = []

        for character in groups.characters():
            controller_path = self.paths.controller_path(character.name)
            issue_count = len(issues)
            controller = self._load_controller(character.name, controller_path, issues)
            if controller is None and len(issues) == issue_count:
                issues.append(Issue(
                    kind=IssueKind.MISSING_CONTROLLER,
                    character=character.name,
                    location=controller_path,
                    reason="Missing controller",
                ))

            for animation in character.animations():
                clip_path = self.paths.clip_path(character.name, animation.name)
                issue_count = len(issues)
                clip = self._load_clip(character.name, animation.name, clip_path, issues)
                if clip is None:
                    if len(issues) == issue_count:
                        issues.append(Issue(
                            kind=IssueKind.MISSING_CLIP,
                            character=character.name,
                            name=animation.name,
                            location=clip_path,
                            reason="Missing clip",
                        ))
                    continue
                if clip.keyframe_count == 0:
                    issues.append(self._empty_clip_issue(character.name, animation.name, clip_path))

            if controller is not None:
                issues.extend(self._check_controller(controller, controller_path))

        self._log_result(issues)
        return issues

    # =========================================================================
    # Project-wide validation
    # =========================================================================

    def validate_project(self) -> List[Issue]:
        """
        Check every clip and controller under the output root.

        Unlike validate(), this does not need the frame pool, so it also
        finds stale artifacts of characters whose frames were removed.
        """
        issues: List[Issue] = []
        root = self.settings.output_root_folder

        for clip_path in self.store.list_artifacts(root, CLIP_EXTENSION):
            character = ArtifactPaths.character_from_artifact_path(clip_path) or ""
            clip = self._load_clip(character, None, clip_path, issues)
            if clip is not None and clip.keyframe_count == 0:
                issues.append(self._empty_clip_issue(character, clip.animation, clip_path))

        for controller_path in self.store.list_artifacts(root, CONTROLLER_EXTENSION):
            character = ArtifactPaths.character_from_artifact_path(controller_path) or ""
            controller = self._load_controller(character, controller_path, issues)
            if controller is not None:
                issues.extend(self._check_controller(controller, controller_path))

        self._log_result(issues)
        return issues

    # =========================================================================
    # Repair
    # =========================================================================

    def auto_fix(self, frames: Optional[Sequence[FrameAsset]] = None) -> FixReport:
        """
        Assign missing motions from the clips found at their expected paths.

        A state is only fixed when <folder>/<Character>_<State>.clip exists and
        has at least one keyframe. Nothing is fabricated. Validation is always
        re-run afterwards so the caller can check the remaining issues.
        """
        report = FixReport()

        with self.store.batch():
            for controller_path in self.store.list_artifacts(
                self.settings.output_root_folder, CONTROLLER_EXTENSION
            ):
                try:
                    controller = self.store.load_controller(controller_path)
                except ArtifactDecodeError as e:
                    logger.warning("Skipping unreadable controller", extra={"path": controller_path, "error": e.reason})
                    continue
                if controller is None:
                    continue

                report.controllers_scanned += 1
                changed = False

                for state in controller.states:
                    if state.motion:
                        continue

                    expected = ArtifactPaths.expected_clip_path_for_state(controller_path, state.name)
                    if expected is None or self.store.count_clip_keyframes(expected) == 0:
                        continue

                    state.motion = expected
                    report.states_fixed += 1
                    report.fixed.append(f"{controller.character}/{state.name} -> {expected}")
                    changed = True
                    logger.info(
                        "Assigned missing motion",
                        extra={"character": controller.character, "state": state.name, "clip": expected},
                    )

                if changed:
                    report.controllers_fixed += 1
                    self.store.save_controller(controller_path, controller)

        report.remaining_issues = self.validate(frames)
        return report

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_controller(self, controller: Controller, controller_path: str) -> List[Issue]:
        issues: List[Issue] = []

        for state in controller.states:
            if not state.motion:
                issues.append(Issue(
                    kind=IssueKind.MISSING_MOTION,
                    character=controller.character,
                    name=state.name,
                    location=controller_path,
                    reason=f"State '{state.name}' has no motion",
                ))
            elif not self.store.exists(state.motion):
                issues.append(Issue(
                    kind=IssueKind.DANGLING_MOTION,
                    character=controller.character,
                    name=state.name,
                    location=state.motion,
                    reason=f"State '{state.name}' plays a clip that does not exist",
                ))

        seen: Dict[int, str] = {}
        for state in controller.states:
            value = anim_id(state.name)
            other = seen.get(value)
            if other is not None and other.lower() != state.name.lower():
                issues.append(Issue(
                    kind=IssueKind.ANIM_ID_COLLISION,
                    character=controller.character,
                    name=state.name,
                    location=controller_path,
                    reason=f"States '{other}' and '{state.name}' share anim id {value}",
                ))
            else:
                seen[value] = state.name

        # Distinct states whose names sanitize to the same clip file
        files: Dict[str, str] = {}
        for state in controller.states:
            file_part = sanitize_file_part(state.name).lower()
            other = files.get(file_part)
            if other is not None and other.lower() != state.name.lower():
                clip_path = ArtifactPaths.expected_clip_path_for_state(controller_path, state.name)
                issues.append(Issue(
                    kind=IssueKind.CLIP_PATH_COLLISION,
                    character=controller.character,
                    name=state.name,
                    location=clip_path or controller_path,
                    reason=f"States '{other}' and '{state.name}' write the same clip file",
                ))
            else:
                files[file_part] = state.name

        return issues

    def _load_controller(self, character: str, path: str, issues: List[Issue]) -> Optional[Controller]:
        try:
            return self.store.load_controller(path)
        except ArtifactDecodeError as e:
            issues.append(Issue(
                kind=IssueKind.UNREADABLE_ARTIFACT,
                character=character,
                location=path,
                reason=f"Controller cannot be read: {e.reason}",
            ))
            return None

    def _load_clip(
        self,
        character: str,
        animation: Optional[str],
        path: str,
        issues: List[Issue],
    ) -> Optional[Clip]:
        try:
            return self.store.load_clip(path)
        except ArtifactDecodeError as e:
            issues.append(Issue(
                kind=IssueKind.UNREADABLE_ARTIFACT,
                character=character,
                name=animation,
                location=path,
                reason=f"Clip cannot be read: {e.reason}",
            ))
            return None

    @staticmethod
    def _empty_clip_issue(character: str, animation: str, path: str) -> Issue:
        return Issue(
            kind=IssueKind.EMPTY_CLIP,
            character=character,
            name=animation,
            location=path,
            reason="Clip has 0 keyframes (broken)",
        )

    @staticmethod
    def _log_result(issues: List[Issue]) -> None:
        if not issues:
            logger.info("Validation OK")
            return
        logger.warning(
            f"Validation FAILED: {len(issues)} issue(s). Fix: run 'animpipe build'",
            extra={"issue_count": len(issues)},
        )
