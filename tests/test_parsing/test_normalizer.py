"""Tests for TextNormalizer."""

import pytest

from syllabus_sync.parsing.normalizer import (
    TextNormalizer,
    analyze_text,
    extract_text_blocks,
    split_into_lines,
)


@pytest.fixture
def normalizer():
    return TextNormalizer()


class TestLineRepairs:
    """Tests for broken-line repairs."""

    def test_keeps_separate_labels(self, normalizer):
        assert normalizer.normalize("line1\nline2") == "line1\nline2"

    def test_merges_lowercase_continuation(self, normalizer):
        result = normalizer.normalize("This is a sentence\nthat continues here")
        assert result == "This is a sentence that continues here"

    def test_merges_continuation_after_number(self, normalizer):
        assert normalizer.normalize("Assignment 1\nis due Friday") == "Assignment 1 is due Friday"

    def test_keeps_break_after_terminal_punctuation(self, normalizer):
        assert normalizer.normalize("First item.\nsecond item") == "First item.\nsecond item"

    def test_repairs_hyphenated_break(self, normalizer):
        assert normalizer.normalize("Submit the assign-\nment online") == "Submit the assignment online"

    def test_joins_dangling_preposition(self, normalizer):
        assert normalizer.normalize("Meet in the\nLibrary") == "Meet in the Library"

    def test_does_not_merge_across_blank_line(self, normalizer):
        assert normalizer.normalize("Week one\n\nreading list") == "Week one\n\nreading list"


class TestWhitespace:
    """Tests for whitespace and line-ending cleanup."""

    def test_collapses_spaces_and_tabs(self, normalizer):
        assert normalizer.normalize("Quiz  1\t\tSept 19") == "Quiz 1 Sept 19"

    def test_normalizes_line_endings(self, normalizer):
        assert normalizer.normalize("Quiz 1\r\nLab 2\rFinal") == "Quiz 1\nLab 2\nFinal"

    def test_collapses_blank_lines(self, normalizer):
        assert normalizer.normalize("Quiz 1\n\n\n\nLab 2") == "Quiz 1\n\nLab 2"

    def test_strips_outer_whitespace(self, normalizer):
        assert normalizer.normalize("  \n Quiz 1 \n  ") == "Quiz 1"

    def test_preserves_punctuation(self, normalizer):
        text = "Midterm (Ch. 1-5): worth 25%!"
        assert normalizer.normalize(text) == text

    def test_empty_string(self, normalizer):
        assert normalizer.normalize("") == ""

    def test_rejects_non_string(self, normalizer):
        with pytest.raises(TypeError):
            normalizer.normalize(None)


class TestHelpers:
    """Tests for line/block splitting and text stats."""

    def test_split_into_lines_drops_blanks(self):
        assert split_into_lines("Quiz 1\n\n  Lab 2  \n") == ["Quiz 1", "Lab 2"]

    def test_extract_text_blocks(self):
        assert extract_text_blocks("Week 1\nQuiz 1\n\nWeek 2\nLab 2") == [
            "Week 1\nQuiz 1",
            "Week 2\nLab 2",
        ]

    def test_analyze_text(self):
        stats = analyze_text("Line 1\nLine 2\nLine 3")
        assert stats.character_count == 20
        assert stats.line_count == 3
        assert stats.avg_chars_per_line == 6.67
        assert stats.complexity == "low"
