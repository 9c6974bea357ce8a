"""
Controller synthesis service.

Builds or re-synchronizes the per-character controller:

- one state per animation (existing states are reused, never deleted)
- default state = alphabetically first animation (case-insensitive)
- one AnyState transition per state, taken when AnimId == anim_id(state)

Re-running on the same input leaves the controller unchanged: transitions
driven solely by the AnimId parameter are removed before they are re-added.
"""

from typing import Dict

from common.src.sprites.animation import Clip, Controller, DEFAULT_TRANSITION_DURATION, anim_id
from common.src.sprites.paths import ArtifactPaths
from pipeline.src.core.config import PipelineSettings
from pipeline.src.core.exceptions import ArtifactDecodeError, ArtifactWriteError, MissingRequiredClipError
from pipeline.src.core.logging_config import get_logger
from pipeline.src.schemas.service_results import ControllerServiceResult
from pipeline.src.store.artifact_store import ArtifactStore

logger = get_logger(__name__)


class ControllerSynthesizer:
    """Creates or updates controller artifacts at their deterministic paths."""

    def __init__(self, store: ArtifactStore, settings: PipelineSettings):
        self.store = store
        self.settings = settings
        self.paths = ArtifactPaths(settings.output_root_folder)

    @property
    def parameter_name(self) -> str:
        return self.settings.anim_id_parameter_name

    def synthesize(
        self,
        character: str,
        clips_by_animation: Dict[str, Clip],
    ) -> ControllerServiceResult[Controller]:
        """
        Wire a character's clips into its controller.

        Args:
            character: Character name.
            clips_by_animation: Animation name -> clip (non-empty).

        Returns:
            ControllerServiceResult with the persisted controller and
            reconciliation counts, or a MissingRequiredClipError /
            ArtifactDecodeError / ArtifactWriteError failure.
        """
        if not clips_by_animation:
            return ControllerServiceResult.from_error(MissingRequiredClipError(
                f"No clips to wire into the controller of '{character}'", character=character,
            ))

        path = self.paths.controller_path(character)
        try:
            self.store.ensure_folder(self.paths.character_folder(character))
        except OSError as e:
            return self._write_failed(path, character, e)

        try:
            controller = self.store.load_controller(path)
        except ArtifactDecodeError as e:
            e.character = character
            logger.error("Existing controller unreadable", extra={"path": path, "error": e.reason})
            return ControllerServiceResult.from_error(e)

        created = controller is None
        if created:
            controller = Controller(character=character)

        parameter = controller.ensure_int_parameter(self.parameter_name)

        animation_names = sorted(clips_by_animation, key=str.lower)
        default_animation = animation_names[0]

        states_added = 0
        for animation in animation_names:
            if controller.find_state(animation) is None:
                states_added += 1
            state = controller.find_or_add_state(animation)
            clip = clips_by_animation[animation]
            state.motion = self.paths.clip_path(clip.character, clip.animation)

        controller.default_state = controller.find_state(default_animation).name

        transitions_removed = controller.remove_parameter_transitions(self.parameter_name)

        for animation in animation_names:
            state = controller.find_state(animation)
            controller.add_any_state_transition(
                destination=state.name,
                parameter=self.parameter_name,
                value=anim_id(animation),
                duration=DEFAULT_TRANSITION_DURATION,
            )

        parameter.default_value = anim_id(default_animation)

        try:
            self.store.save_controller(path, controller)
        except OSError as e:
            return self._write_failed(path, character, e)

        logger.info(
            "Created controller" if created else "Updated controller",
            extra={
                "path": path,
                "states": len(controller.states),
                "default_state": controller.default_state,
                "transitions_removed": transitions_removed,
            },
        )

        return ControllerServiceResult.success_with_controller(
            controller,
            path=path,
            created=created,
            states_added=states_added,
            transitions_removed=transitions_removed,
            transitions_added=len(animation_names),
        )

    @staticmethod
    def _write_failed(path: str, character: str, error: OSError) -> ControllerServiceResult[Controller]:
        failure = ArtifactWriteError(path, str(error), character=character)
        logger.error(failure.message, extra={"path": path})
        return ControllerServiceResult.from_error(failure)
