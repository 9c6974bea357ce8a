"""
Read-only frame pool reports.

Lists the characters and animation groups the pipeline would build from the
current frame pool, plus the frame names that do not follow the convention.
Also dumps the keyframes of a single generated clip.
"""

import posixpath
from typing import Dict, Iterable, List, Optional

from common.src.sprites.animation import Clip, FrameAsset
from common.src.sprites.naming import parse_character
from pipeline.src.schemas.reports import AnimationSummary, CharacterSummary
from pipeline.src.services.frame_grouper import AnimationGroups, FrameGrouper

# Keys printed at the start and end of a clip dump
HEAD_KEYS = 5
TAIL_KEYS = 2


class ReportTool:
    """Summaries of detected characters and animation groups."""

    def __init__(self, grouper: Optional[FrameGrouper] = None):
        self.grouper = grouper or FrameGrouper()

    def detect_characters(self, frames: Iterable[FrameAsset]) -> List[CharacterSummary]:
        """
        Count frames per character.

        Only the character prefix has to parse. Ordered by frame count
        descending, then name case-insensitive.
        """
        counts: Dict[str, CharacterSummary] = {}
        for frame in frames:
            character = parse_character(frame.name)
            if character is None:
                continue
            key = character.lower()
            summary = counts.get(key)
            if summary is None:
                counts[key] = CharacterSummary(character=character, frame_count=1)
            else:
                summary.frame_count += 1

        return sorted(counts.values(), key=lambda s: (-s.frame_count, s.character.lower()))

    def summarize_groups(self, groups: AnimationGroups) -> List[CharacterSummary]:
        """Per character and animation frame counts, in output order."""
        summaries = []
        for character in groups.characters():
            animations = [
                AnimationSummary(
                    animation=animation.name,
                    frame_count=len(animation.frames),
                    frames=[frame.name for frame in animation.ordered_frames()],
                )
                for animation in character.animations()
            ]
            summaries.append(CharacterSummary(
                character=character.name,
                frame_count=character.frame_count,
                animations=animations,
            ))
        return summaries

    def unmatched_names(self, frames: Iterable[FrameAsset]) -> List[str]:
        """Frame names the pipeline would skip, sorted case-insensitively."""
        groups = self.grouper.group(frames)
        return sorted(groups.unmatched, key=lambda name: (name.lower(), name))

    def format_report(self, frames: Iterable[FrameAsset]) -> str:
        """Human-readable report of the frame pool."""
        frames = list(frames)
        characters = self.detect_characters(frames)
        if not characters:
            return "No characters detected. (Naming doesn't match Character_AnimName...)"

        groups = self.grouper.group(frames)
        lines = [f"Detected Characters: {len(characters)}"]
        lines.extend(f"{summary.character}  ->  {summary.frame_count} sprites" for summary in characters)

        lines.append("")
        lines.append("Animation groups:")
        for summary in self.summarize_groups(groups):
            lines.append(f"{summary.character}:")
            lines.extend(
                f"  {animation.animation}: {animation.frame_count} frames"
                for animation in summary.animations
            )

        if groups.unmatched:
            lines.append("")
            lines.append(f"Skipped (naming not matched): {len(groups.unmatched)}")
            lines.extend(
                f"  {name}" for name in sorted(groups.unmatched, key=lambda n: (n.lower(), n))
            )

        return "\n".join(lines)

    def format_clip(self, path: str, clip: Clip) -> str:
        """
        Human-readable dump of a clip's keyframes.

        Prints the first five and last two keys, with "..." in between when
        keys were left out.
        """
        name = posixpath.splitext(posixpath.basename(path))[0]
        count = clip.keyframe_count
        lines = [
            f"Clip={name} Path='{path}' Keys={count}",
            f"FrameRate={clip.frame_rate:g} Loop={clip.loop} Length={clip.length:.3f}s",
        ]
        if count == 0:
            lines.append("Clip has no keyframes.")
            return "\n".join(lines)

        head = min(HEAD_KEYS, count)
        shown = list(range(head))
        if count > HEAD_KEYS + TAIL_KEYS:
            shown.append(None)
        shown.extend(range(max(count - TAIL_KEYS, head), count))

        for index in shown:
            if index is None:
                lines.append("...")
                continue
            key = clip.keyframes[index]
            lines.append(f"Key[{index}] t={key.time:.3f} frame={key.frame.name or 'NULL'}")
        return "\n".join(lines)
