"""
Artifact path builders for generated animation assets.

Every generated artifact lives at a deterministic location derived from the
character and animation names:

    <output_root>/<Character>/<Character>_<Animation>.clip
    <output_root>/<Character>/<Character>.controller

Paths always use forward slashes, regardless of platform.
"""

import posixpath
from typing import Optional

from .naming import sanitize_file_part

CLIP_EXTENSION = ".clip"
CONTROLLER_EXTENSION = ".controller"


def normalize_path(path: str) -> str:
    """Convert backslashes to forward slashes and drop trailing separators."""
    normalized = (path or "").replace("\\", "/")
    while len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


class ArtifactPaths:
    """
    Utility class for constructing artifact paths below an output root.

    All paths are store paths (relative to the project root).
    """

    def __init__(self, output_root: str):
        self.output_root = normalize_path(output_root)

    def character_folder(self, character: str) -> str:
        return posixpath.join(self.output_root, character)

    def clip_path(self, character: str, animation: str) -> str:
        """
        Get the clip path for a character animation.

        Example:
            ArtifactPaths("Animations").clip_path("Hero", "Run Fast")
            -> "Animations/Hero/Hero_Run_Fast.clip"
        """
        file_name = f"{character}_{sanitize_file_part(animation)}{CLIP_EXTENSION}"
        return posixpath.join(self.character_folder(character), file_name)

    def controller_path(self, character: str) -> str:
        file_name = f"{character}{CONTROLLER_EXTENSION}"
        return posixpath.join(self.character_folder(character), file_name)

    @staticmethod
    def character_from_artifact_path(path: str) -> Optional[str]:
        """
        Get the character a generated artifact belongs to.

        The character is the name of the folder holding the artifact.
        """
        folder = posixpath.dirname(normalize_path(path))
        character = posixpath.basename(folder)
        return character or None

    @staticmethod
    def expected_clip_path_for_state(controller_path: str, state_name: str) -> Optional[str]:
        """
        Derive the clip a controller state should play from the controller location.

        Returns None when the controller does not sit in a character folder.
        """
        folder = posixpath.dirname(normalize_path(controller_path))
        character = posixpath.basename(folder)
        if not character:
            return None
        file_name = f"{character}_{sanitize_file_part(state_name)}{CLIP_EXTENSION}"
        return posixpath.join(folder, file_name)
