"""
Sprite Animation Data - Shared types for the sprite animation pipeline.

This module provides the naming convention parser, the clip and controller
artifact model, and deterministic artifact paths.

## Components

- **naming**: Frame name parsing (Character_Animation[_###])
- **animation**: FrameAsset, Clip and Controller state machine types
- **paths**: Artifact path construction utilities

## Quick Start

```python
from common.src.sprites import (
    ArtifactPaths,
    Clip,
    FrameAsset,
    anim_id,
    parse_frame_name,
)

parsed = parse_frame_name("Hero_Walk_003")
# ParsedName(character='Hero', animation='Walk', frame_index=3)

clip = Clip(character=parsed.character, animation=parsed.animation)
clip.write_keyframes([FrameAsset("Hero_Walk_003")], frame_rate=12)

paths = ArtifactPaths("Assets/Animations/Characters")
paths.clip_path("Hero", "Walk")
# 'Assets/Animations/Characters/Hero/Hero_Walk.clip'

anim_id("Walk") == anim_id("walk")
```
"""

# =============================================================================
# Naming - Frame name convention
# =============================================================================

from .naming import (
    NotMatched,
    ParsedName,
    parse_frame_name,
    try_parse_frame_name,
    parse_character,
    extract_frame_index,
    format_frame_name,
    sanitize_file_part,
)

# =============================================================================
# Animation - Clip and controller artifacts
# =============================================================================

from .animation import (
    FrameAsset,
    Keyframe,
    Clip,
    ParameterType,
    ConditionMode,
    ControllerParameter,
    TransitionCondition,
    AnimatorState,
    AnyStateTransition,
    Controller,
    DEFAULT_TRANSITION_DURATION,
    DEFAULT_ANIM_ID_PARAMETER,
    anim_id,
)

# =============================================================================
# Paths - Artifact path construction
# =============================================================================

from .paths import (
    ArtifactPaths,
    CLIP_EXTENSION,
    CONTROLLER_EXTENSION,
    normalize_path,
)

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Naming
    "NotMatched",
    "ParsedName",
    "parse_frame_name",
    "try_parse_frame_name",
    "parse_character",
    "extract_frame_index",
    "format_frame_name",
    "sanitize_file_part",

    # Dataclasses
    "FrameAsset",
    "Keyframe",
    "Clip",
    "ControllerParameter",
    "TransitionCondition",
    "AnimatorState",
    "AnyStateTransition",
    "Controller",

    # Enums
    "ParameterType",
    "ConditionMode",

    # Constants
    "DEFAULT_TRANSITION_DURATION",
    "DEFAULT_ANIM_ID_PARAMETER",
    "CLIP_EXTENSION",
    "CONTROLLER_EXTENSION",

    # Functions
    "anim_id",
    "normalize_path",

    # Path utilities
    "ArtifactPaths",
]
