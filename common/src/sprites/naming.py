"""
Frame naming convention for sprite animation sources.

Frame assets are named ``Character_Animation[_###]``. The character is
everything before the first underscore, the optional trailing digit run is the
frame index, and the animation name is whatever sits in between.

Examples:
    Hero_Walk       -> ("Hero", "Walk", 0)
    Hero_Walk_7     -> ("Hero", "Walk", 7)
    Hero_Walk7      -> ("Hero", "Walk7", 7)
    Hero_7          -> ("Hero", "7", 7)
"""

from dataclasses import dataclass
from typing import Optional

INT32_MAX = 2**31 - 1

ASCII_DIGITS = frozenset("0123456789")

# Characters that are not allowed in artifact file names on any platform
INVALID_FILE_CHARS = frozenset('<>:"/\\|?*')


class NotMatched(ValueError):
    """Raised when a frame name does not follow the naming convention."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Frame name '{name}' not matched: {reason}")
        self.name = name
        self.reason = reason


@dataclass(frozen=True)
class ParsedName:
    """
    Decomposed frame name.

    Attributes:
        character: Character the frame belongs to (trimmed, non-empty)
        animation: Animation name (trimmed, non-empty)
        frame_index: Trailing frame number, 0 when absent. Only used for ordering.
    """
    character: str
    animation: str
    frame_index: int = 0


def _trailing_digits_start(name: str) -> int:
    """Index of the first character of the trailing ASCII digit run (len(name) if none)."""
    i = len(name)
    while i > 0 and name[i - 1] in ASCII_DIGITS:
        i -= 1
    return i


def extract_frame_index(name: str) -> int:
    """
    Parse the trailing digit run of a frame name.

    Returns 0 when the name has no trailing digits or when the number does
    not fit a signed 32-bit integer.
    """
    digits = name[_trailing_digits_start(name):]
    if not digits:
        return 0
    value = int(digits)
    if value > INT32_MAX:
        return 0
    return value


def parse_character(name: str) -> Optional[str]:
    """Return only the character part of a frame name, or None."""
    if not name or not name.strip():
        return None
    first_underscore = name.find("_")
    if first_underscore <= 0:
        return None
    character = name[:first_underscore].strip()
    return character or None


def parse_frame_name(name: str) -> ParsedName:
    """
    Decompose a frame name into character, animation and frame index.

    Args:
        name: Frame asset name, e.g. "Hero_Walk_003".

    Returns:
        ParsedName for the frame.

    Raises:
        NotMatched: If the name has no character separator, an empty
            character, or an empty animation name.
    """
    first_underscore = name.find("_")
    if first_underscore < 0:
        raise NotMatched(name, "no underscore")
    if first_underscore == 0:
        raise NotMatched(name, "name starts with an underscore")

    character = name[:first_underscore].strip()
    if not character:
        raise NotMatched(name, "empty character")

    digits_start = _trailing_digits_start(name)
    if digits_start < len(name):
        last_non_digit = digits_start - 1
        separator = name.rfind("_", 0, last_non_digit + 1)
        if separator > first_underscore:
            animation = name[first_underscore + 1:separator]
        else:
            # The digits are glued to the animation name itself
            animation = name[first_underscore + 1:]
    else:
        animation = name[first_underscore + 1:]

    animation = animation.strip()
    if not animation:
        raise NotMatched(name, "empty animation name")

    return ParsedName(
        character=character,
        animation=animation,
        frame_index=extract_frame_index(name),
    )


def try_parse_frame_name(name: str) -> Optional[ParsedName]:
    """Like parse_frame_name, but returns None instead of raising."""
    try:
        return parse_frame_name(name)
    except NotMatched:
        return None


def format_frame_name(
    character: str,
    animation: str,
    index: Optional[int] = None,
    pad: int = 0,
) -> str:
    """
    Build a frame name from its parts.

    Args:
        character: Character name (must not contain underscores).
        animation: Animation name.
        index: Optional frame index appended as "_###".
        pad: Zero-pad the index to this many digits.

    Returns:
        Frame name such as "Hero_Walk_007".
    """
    name = f"{character}_{animation}"
    if index is not None:
        name = f"{name}_{index:0{pad}d}"
    return name


def sanitize_file_part(text: str) -> str:
    """
    Make an animation or state name safe for use inside a file name.

    Invalid file name characters and spaces are replaced with underscores.
    """
    cleaned = "".join(
        "_" if ch in INVALID_FILE_CHARS or ord(ch) < 32 else ch
        for ch in (text or "")
    )
    return cleaned.replace(" ", "_")
