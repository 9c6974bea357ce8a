"""
Animation artifacts produced by the sprite animation pipeline.

Defines frame references, keyframed clips and the per-character controller
state machine (states, int parameter, AnyState transitions).
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


# Blend duration (seconds) used for every generated AnyState transition
DEFAULT_TRANSITION_DURATION = 0.05

DEFAULT_ANIM_ID_PARAMETER = "AnimId"


def anim_id(animation: str) -> int:
    """
    Compute the integer id used to select an animation on a controller.

    The id is derived from the lowercased animation name, so "Walk" and "walk"
    map to the same value. The hash is deterministic across runs, processes
    and platforms (unlike the builtin hash()).

    Args:
        animation: Animation (state) name.

    Returns:
        Signed 32-bit integer.
    """
    digest = hashlib.md5(animation.lower().encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big", signed=True)


# =============================================================================
# Frames and Clips
# =============================================================================

@dataclass(frozen=True)
class FrameAsset:
    """
    A still image usable as one keyframe.

    Attributes:
        name: Asset name, following the Character_Animation[_###] convention
        handle: Opaque store reference to the image (e.g. relative path)
    """
    name: str
    handle: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "handle": self.handle}

    @classmethod
    def from_dict(cls, data: dict) -> "FrameAsset":
        return cls(name=data["name"], handle=data.get("handle", ""))


@dataclass(frozen=True)
class Keyframe:
    """A frame reference placed at a point in time."""
    time: float
    frame: FrameAsset


@dataclass
class Clip:
    """
    Ordered, timed sequence of frame references.

    Attributes:
        character: Character the clip belongs to
        animation: Animation name (clip identity together with character)
        frame_rate: Frames per second, always > 0
        loop: Whether playback loops
        keyframes: Keyframes in playback order
    """
    character: str
    animation: str
    frame_rate: float = 12.0
    loop: bool = True
    keyframes: List[Keyframe] = field(default_factory=list)

    @property
    def keyframe_count(self) -> int:
        return len(self.keyframes)

    @property
    def length(self) -> float:
        """Playback length in seconds."""
        return len(self.keyframes) / self.frame_rate if self.keyframes else 0.0

    def clear_keyframes(self) -> None:
        self.keyframes = []

    def write_keyframes(self, frames: Iterable[FrameAsset], frame_rate: float) -> None:
        """
        Replace all keyframes with one keyframe per frame.

        Keyframe i is placed at i / frame_rate. Existing keyframes are
        discarded first, there is no merge.
        """
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be > 0, got {frame_rate}")

        self.clear_keyframes()
        self.frame_rate = float(frame_rate)
        self.keyframes = [
            Keyframe(time=i / self.frame_rate, frame=frame)
            for i, frame in enumerate(frames)
        ]

    def frame_names(self) -> List[str]:
        return [key.frame.name for key in self.keyframes]

    def to_dict(self) -> dict:
        return {
            "character": self.character,
            "animation": self.animation,
            "frame_rate": self.frame_rate,
            "loop": self.loop,
            "keyframes": [
                {"time": key.time, "frame": key.frame.to_dict()}
                for key in self.keyframes
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Clip":
        return cls(
            character=data["character"],
            animation=data["animation"],
            frame_rate=float(data.get("frame_rate", 12.0)),
            loop=bool(data.get("loop", True)),
            keyframes=[
                Keyframe(time=float(key["time"]), frame=FrameAsset.from_dict(key["frame"]))
                for key in data.get("keyframes") or []
            ],
        )


# =============================================================================
# Controller State Machine
# =============================================================================

class ParameterType(str, Enum):
    """Controller parameter types."""
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    TRIGGER = "trigger"


class ConditionMode(str, Enum):
    """Comparison applied by a transition condition."""
    EQUALS = "equals"
    NOT_EQUAL = "not_equal"
    GREATER = "greater"
    LESS = "less"
    IF = "if"
    IF_NOT = "if_not"


@dataclass
class ControllerParameter:
    name: str
    type: ParameterType = ParameterType.INT
    default_value: Any = 0


@dataclass(frozen=True)
class TransitionCondition:
    mode: ConditionMode
    parameter: str
    threshold: int = 0


@dataclass
class AnimatorState:
    """
    A controller state.

    Attributes:
        name: State name, equal to the animation name
        motion: Path of the clip played in this state, None when unassigned
    """
    name: str
    motion: Optional[str] = None


@dataclass
class AnyStateTransition:
    """Transition evaluable from any current state."""
    destination: str
    conditions: List[TransitionCondition] = field(default_factory=list)
    has_exit_time: bool = False
    has_fixed_duration: bool = True
    duration: float = DEFAULT_TRANSITION_DURATION
    can_transition_to_self: bool = False

    def is_single_condition_on(self, parameter: str) -> bool:
        """True if the transition has exactly one condition and it reads `parameter`."""
        return (
            len(self.conditions) == 1
            and self.conditions[0].parameter.lower() == parameter.lower()
        )


@dataclass
class Controller:
    """
    Per-character animation state machine.

    States are looked up case-insensitively by name. The controller is driven
    by setting an int parameter to anim_id(state name).
    """
    character: str
    parameters: List[ControllerParameter] = field(default_factory=list)
    states: List[AnimatorState] = field(default_factory=list)
    default_state: Optional[str] = None
    any_state_transitions: List[AnyStateTransition] = field(default_factory=list)

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    def get_parameter(self, name: str) -> Optional[ControllerParameter]:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None

    def ensure_int_parameter(self, name: str) -> ControllerParameter:
        """Return the int parameter `name`, declaring it if needed."""
        parameter = self.get_parameter(name)
        if parameter is None:
            parameter = ControllerParameter(name=name, type=ParameterType.INT, default_value=0)
            self.parameters.append(parameter)
        elif parameter.type != ParameterType.INT:
            parameter.type = ParameterType.INT
            parameter.default_value = 0
        return parameter

    # -------------------------------------------------------------------------
    # States
    # -------------------------------------------------------------------------

    def find_state(self, name: str) -> Optional[AnimatorState]:
        key = name.lower()
        for state in self.states:
            if state.name.lower() == key:
                return state
        return None

    def find_or_add_state(self, name: str) -> AnimatorState:
        state = self.find_state(name)
        if state is None:
            state = AnimatorState(name=name)
            self.states.append(state)
        return state

    def state_names(self) -> List[str]:
        return [state.name for state in self.states]

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def remove_parameter_transitions(self, parameter: str) -> int:
        """
        Remove AnyState transitions driven solely by `parameter`.

        Returns:
            Number of transitions removed.
        """
        kept = [
            transition for transition in self.any_state_transitions
            if not transition.is_single_condition_on(parameter)
        ]
        removed = len(self.any_state_transitions) - len(kept)
        self.any_state_transitions = kept
        return removed

    def add_any_state_transition(
        self,
        destination: str,
        parameter: str,
        value: int,
        duration: float = DEFAULT_TRANSITION_DURATION,
    ) -> AnyStateTransition:
        transition = AnyStateTransition(
            destination=destination,
            conditions=[TransitionCondition(ConditionMode.EQUALS, parameter, value)],
            has_exit_time=False,
            has_fixed_duration=True,
            duration=duration,
            can_transition_to_self=False,
        )
        self.any_state_transitions.append(transition)
        return transition

    def transitions_to(self, state_name: str) -> List[AnyStateTransition]:
        key = state_name.lower()
        return [t for t in self.any_state_transitions if t.destination.lower() == key]

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "character": self.character,
            "parameters": [
                {"name": p.name, "type": p.type.value, "default_value": p.default_value}
                for p in self.parameters
            ],
            "states": [{"name": s.name, "motion": s.motion} for s in self.states],
            "default_state": self.default_state,
            "any_state_transitions": [
                {
                    "destination": t.destination,
                    "conditions": [
                        {"mode": c.mode.value, "parameter": c.parameter, "threshold": c.threshold}
                        for c in t.conditions
                    ],
                    "has_exit_time": t.has_exit_time,
                    "has_fixed_duration": t.has_fixed_duration,
                    "duration": t.duration,
                    "can_transition_to_self": t.can_transition_to_self,
                }
                for t in self.any_state_transitions
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Controller":
        def get_transition(raw: Dict[str, Any]) -> AnyStateTransition:
            return AnyStateTransition(
                destination=raw["destination"],
                conditions=[
                    TransitionCondition(
                        mode=ConditionMode(c["mode"]),
                        parameter=c["parameter"],
                        threshold=int(c.get("threshold", 0)),
                    )
                    for c in raw.get("conditions") or []
                ],
                has_exit_time=bool(raw.get("has_exit_time", False)),
                has_fixed_duration=bool(raw.get("has_fixed_duration", True)),
                duration=float(raw.get("duration", DEFAULT_TRANSITION_DURATION)),
                can_transition_to_self=bool(raw.get("can_transition_to_self", False)),
            )

        return cls(
            character=data["character"],
            parameters=[
                ControllerParameter(
                    name=p["name"],
                    type=ParameterType(p.get("type", ParameterType.INT.value)),
                    default_value=p.get("default_value", 0),
                )
                for p in data.get("parameters") or []
            ],
            states=[
                AnimatorState(name=s["name"], motion=s.get("motion"))
                for s in data.get("states") or []
            ],
            default_state=data.get("default_state"),
            any_state_transitions=[
                get_transition(t) for t in data.get("any_state_transitions") or []
            ],
        )
