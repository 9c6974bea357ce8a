"""
Frame grouping service.

Aggregates a flat pool of frame assets into
character -> animation -> ordered frames using the naming convention.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from common.src.sprites.animation import FrameAsset
from common.src.sprites.naming import NotMatched, extract_frame_index, parse_frame_name
from pipeline.src.core.logging_config import get_logger
from pipeline.src.store.artifact_store import ArtifactStore

logger = get_logger(__name__)


def frame_sort_key(frame: FrameAsset) -> Tuple[int, str, str, str]:
    """
    Playback ordering for frames of one animation.

    Frame index first (natural numeric order), then name case-insensitive.
    Exact name and handle are final tie-breaks so the order never depends on
    the order frames were enumerated in.
    """
    return (extract_frame_index(frame.name), frame.name.lower(), frame.name, frame.handle)


@dataclass
class AnimationGroup:
    """Frames of one character animation. `name` keeps the first-seen casing."""
    name: str
    frames: List[FrameAsset] = field(default_factory=list)

    def ordered_frames(self) -> List[FrameAsset]:
        return sorted(self.frames, key=frame_sort_key)


@dataclass
class CharacterGroup:
    """All animations of one character, keyed case-insensitively."""
    name: str
    _animations: Dict[str, AnimationGroup] = field(default_factory=dict)

    def add(self, animation: str, frame: FrameAsset) -> None:
        key = animation.lower()
        group = self._animations.get(key)
        if group is None:
            group = AnimationGroup(name=animation)
            self._animations[key] = group
        group.frames.append(frame)

    def get(self, animation: str) -> Optional[AnimationGroup]:
        return self._animations.get(animation.lower())

    def animations(self) -> List[AnimationGroup]:
        """Animation groups in case-insensitive lexicographic order."""
        return [self._animations[key] for key in sorted(self._animations)]

    def animation_names(self) -> List[str]:
        return [group.name for group in self.animations()]

    @property
    def frame_count(self) -> int:
        return sum(len(group.frames) for group in self._animations.values())

    def __len__(self) -> int:
        return len(self._animations)


class AnimationGroups:
    """
    Result of grouping a frame pool.

    Lookups are case-insensitive; iteration is in case-insensitive
    lexicographic order of character names.
    """

    def __init__(self):
        self._characters: Dict[str, CharacterGroup] = {}
        self.unmatched: List[str] = []

    def add(self, character: str, animation: str, frame: FrameAsset) -> None:
        key = character.lower()
        group = self._characters.get(key)
        if group is None:
            group = CharacterGroup(name=character)
            self._characters[key] = group
        group.add(animation, frame)

    def get(self, character: str) -> Optional[CharacterGroup]:
        return self._characters.get(character.lower())

    def __getitem__(self, character: str) -> CharacterGroup:
        group = self.get(character)
        if group is None:
            raise KeyError(character)
        return group

    def __contains__(self, character: object) -> bool:
        return isinstance(character, str) and character.lower() in self._characters

    def __iter__(self) -> Iterator[CharacterGroup]:
        return iter(self.characters())

    def __len__(self) -> int:
        return len(self._characters)

    def characters(self) -> List[CharacterGroup]:
        return [self._characters[key] for key in sorted(self._characters)]

    def character_names(self) -> List[str]:
        return [group.name for group in self.characters()]

    def to_mapping(self) -> Dict[str, Dict[str, List[FrameAsset]]]:
        """Plain nested dict with ordered frame lists, in output order."""
        return {
            character.name: {
                animation.name: animation.ordered_frames()
                for animation in character.animations()
            }
            for character in self.characters()
        }


class FrameGrouper:
    """Groups frame assets by character and animation."""

    def group(self, frames: Iterable[FrameAsset]) -> AnimationGroups:
        """
        Group frames by the names they carry.

        Frames whose names do not follow Character_Animation[_###] are skipped.

        Args:
            frames: Flat pool of frame assets.

        Returns:
            AnimationGroups with case-insensitive keys.
        """
        groups = AnimationGroups()

        for frame in frames:
            if frame is None:
                continue
            try:
                parsed = parse_frame_name(frame.name)
            except NotMatched as e:
                logger.debug("Skipping frame", extra={"frame": frame.name, "reason": e.reason})
                groups.unmatched.append(frame.name)
                continue
            groups.add(parsed.character, parsed.animation, frame)

        logger.debug(
            "Grouped frames",
            extra={"characters": len(groups), "unmatched": len(groups.unmatched)},
        )
        return groups


def collect_frames(store: ArtifactStore, folders: Sequence[str]) -> List[FrameAsset]:
    """
    Enumerate frame assets below the configured root folders.

    Blank folder entries are ignored. Missing folders are logged and skipped.
    """
    frames: List[FrameAsset] = []
    for folder in folders:
        if not folder or not folder.strip():
            continue
        if not store.is_valid_folder(folder):
            logger.warning("Folder not found", extra={"folder": folder})
            continue
        frames.extend(store.find_frames(folder))
    return frames
