"""
Unit tests for the frame naming convention.

Covers the Character_Animation[_###] parser, frame index extraction and the
file name helpers used for artifact paths.
"""

import pytest

from common.src.sprites.naming import (
    INT32_MAX,
    NotMatched,
    ParsedName,
    extract_frame_index,
    format_frame_name,
    parse_character,
    parse_frame_name,
    sanitize_file_part,
    try_parse_frame_name,
)


class TestParseFrameName:
    """Tests for parse_frame_name()."""

    def test_name_without_index(self):
        """A_B should parse to character A, animation B, index 0."""
        assert parse_frame_name("A_B") == ParsedName("A", "B", 0)

    def test_name_with_separated_index(self):
        """A_B_7 should strip the index block from the animation name."""
        assert parse_frame_name("A_B_7") == ParsedName("A", "B", 7)

    def test_digits_glued_to_animation(self):
        """A_B7 keeps the digits in the animation name but still orders by them."""
        assert parse_frame_name("A_B7") == ParsedName("A", "B7", 7)

    def test_numeric_animation_name(self):
        """When the only underscore is the character separator the remainder is the animation."""
        assert parse_frame_name("A_7") == ParsedName("A", "7", 7)

    def test_multi_part_animation_name(self):
        """Underscores inside the animation name are kept."""
        parsed = parse_frame_name("Hero_Walk_Left_003")

        assert parsed.character == "Hero"
        assert parsed.animation == "Walk_Left"
        assert parsed.frame_index == 3

    def test_names_are_trimmed(self):
        """Surrounding whitespace of character and animation is removed."""
        parsed = parse_frame_name(" Hero _ Walk _2")

        assert parsed.character == "Hero"
        assert parsed.animation == "Walk"
        assert parsed.frame_index == 2

    @pytest.mark.parametrize("name", ["Hero", "", "_Walk", "_Walk_1", " _Walk", "Hero_", "Hero_  ", "Hero__7"])
    def test_unmatched_names(self, name):
        """Names violating the convention should raise NotMatched."""
        with pytest.raises(NotMatched) as exc_info:
            parse_frame_name(name)

        assert exc_info.value.name == name
        assert exc_info.value.reason

    def test_not_matched_is_value_error(self):
        """NotMatched should be catchable as ValueError."""
        with pytest.raises(ValueError):
            parse_frame_name("NoSeparator")

    def test_try_parse_returns_none(self):
        """try_parse_frame_name should swallow NotMatched."""
        assert try_parse_frame_name("NoSeparator") is None
        assert try_parse_frame_name("Hero_Idle") == ParsedName("Hero", "Idle", 0)


class TestFrameIndex:
    """Tests for extract_frame_index()."""

    def test_no_trailing_digits(self):
        assert extract_frame_index("Hero_Walk") == 0

    def test_leading_zeros(self):
        assert extract_frame_index("Hero_Walk_007") == 7

    def test_only_trailing_run_counts(self):
        """Digits in the middle of the name are ignored."""
        assert extract_frame_index("Hero2_Walk3_10") == 10

    def test_overflow_falls_back_to_zero(self):
        """An index that does not fit a signed 32-bit int counts as 0."""
        assert extract_frame_index(f"Hero_Walk_{INT32_MAX}") == INT32_MAX
        assert extract_frame_index(f"Hero_Walk_{INT32_MAX + 1}") == 0


class TestParseCharacter:
    """Tests for parse_character()."""

    def test_character_prefix(self):
        assert parse_character("Hero_Walk_1") == "Hero"

    def test_character_only_needs_separator(self):
        """The animation part is not checked."""
        assert parse_character("Hero_") == "Hero"

    @pytest.mark.parametrize("name", ["", "   ", "Hero", "_Walk", " _Walk"])
    def test_no_character(self, name):
        assert parse_character(name) is None


class TestFormatFrameName:
    """Tests for format_frame_name() against the parser."""

    @pytest.mark.parametrize("index,expected_index", [(None, 0), (0, 0), (7, 7), (42, 42)])
    def test_formatted_name_parses_back(self, index, expected_index):
        """Formatted names should parse back into their parts."""
        name = format_frame_name("Hero", "Walk", index, pad=3)

        assert parse_frame_name(name) == ParsedName("Hero", "Walk", expected_index)

    def test_padding(self):
        assert format_frame_name("Hero", "Walk", 7, pad=3) == "Hero_Walk_007"
        assert format_frame_name("Hero", "Walk") == "Hero_Walk"


class TestSanitizeFilePart:
    """Tests for sanitize_file_part()."""

    def test_spaces_replaced(self):
        assert sanitize_file_part("Run Fast") == "Run_Fast"

    def test_invalid_characters_replaced(self):
        assert sanitize_file_part('a<b>c:d"e/f\\g|h?i*j') == "a_b_c_d_e_f_g_h_i_j"

    def test_control_characters_replaced(self):
        assert sanitize_file_part("Walk\tLeft") == "Walk_Left"

    def test_clean_name_unchanged(self):
        assert sanitize_file_part("Walk_Left2") == "Walk_Left2"
