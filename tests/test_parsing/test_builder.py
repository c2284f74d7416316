"""Tests for EventCandidateBuilder."""

from datetime import datetime, timedelta

import pytest

from syllabus_sync.parsing.builder import (
    EventCandidateBuilder,
    analyze_candidates,
    normalize_title,
    title_similarity,
)
from syllabus_sync.parsing.config import ParsingConfig
from syllabus_sync.parsing.schemas import EventCandidate


def _candidate(
    title: str = "Quiz 1",
    event_type: str = "QUIZ",
    start: datetime = datetime(2025, 9, 19),
    confidence: float = 0.8,
    source_text: str | None = None,
    keywords: list[str] | None = None,
) -> EventCandidate:
    """Helper to create an EventCandidate with sensible defaults."""
    return EventCandidate(
        id=f"{title}-{start:%m%d}-{confidence}".replace(" ", "_"),
        type=event_type,
        title=title,
        start=start,
        confidence=confidence,
        source_line_index=0,
        source_text=source_text or title,
        matched_keywords=keywords or [],
    )


class TestBuildSingleLine:
    """Tests for candidates built from one line."""

    def test_assignment_line(self, builder):
        result = builder.build(
            "Assignment 1: Hello World - Due September 15, 2025",
            course_code="CS101",
            default_year=2025,
        )
        assert len(result.candidates) == 1
        candidate = result.candidates[0]
        assert candidate.type == "ASSIGNMENT"
        assert candidate.title == "Assignment 1: Hello World"
        assert candidate.notes == "Hello World"
        assert candidate.start == datetime(2025, 9, 15)
        assert candidate.end is None
        assert candidate.all_day is True
        assert candidate.location is None
        assert candidate.course_code == "CS101"
        assert candidate.confidence == pytest.approx(1.0)
        assert len(candidate.id) == 16

    def test_timed_lab_with_room(self, builder):
        result = builder.build("Lab 2 in Room 204 on Sept 19, 2025 at 2:00 pm")
        candidate = result.candidates[0]
        assert candidate.type == "LAB"
        assert candidate.start == datetime(2025, 9, 19, 14, 0)
        assert candidate.end == datetime(2025, 9, 19, 15, 30)
        assert candidate.all_day is False
        assert candidate.location == "Room 204"
        assert candidate.notes is None
        assert candidate.confidence == pytest.approx(0.737)

    def test_parenthetical_notes_dropped_from_title(self, builder):
        result = builder.build("Quiz 1 on Sept 26, 2025 (covers chapters 1-3)")
        candidate = result.candidates[0]
        assert candidate.title == "Quiz 1 on Sept 26, 2025"
        assert candidate.notes == "covers chapters 1-3"

    def test_hall_location(self, builder):
        result = builder.build("Final Exam in Hall 101 - December 15, 2025")
        candidate = result.candidates[0]
        assert candidate.type == "FINAL"
        assert candidate.location == "Hall 101"
        assert candidate.notes is None

    def test_range_sets_end(self, builder):
        result = builder.build("Group project work Sept 15-22", default_year=2025)
        candidate = result.candidates[0]
        assert candidate.type == "ASSIGNMENT"
        assert candidate.start == datetime(2025, 9, 15)
        assert candidate.end == datetime(2025, 9, 22)

    def test_title_falls_back_to_type_label(self, builder):
        result = builder.build("(Quiz 2) Sept 19, 2025")
        assert result.candidates[0].title == "Quiz 2"


class TestBuildDocument:
    """Tests for multi-line documents."""

    def test_sample_syllabus(self, builder, sample_syllabus):
        result = builder.build(sample_syllabus, course_code="CS 101", default_year=2025)
        types = [c.type for c in result.candidates]
        assert types == ["ASSIGNMENT", "QUIZ", "MIDTERM", "LAB", "FINAL"]
        assert len({c.id for c in result.candidates}) == 5
        assert result.stats.total_lines == 7
        assert result.stats.lines_with_dates == 5
        assert result.stats.candidates_after_dedup == 5
        assert result.stats.warnings == []

    def test_candidates_in_source_order(self, builder, sample_syllabus):
        result = builder.build(sample_syllabus, default_year=2025)
        indices = [c.source_line_index for c in result.candidates]
        assert indices == sorted(indices)

    def test_date_from_neighboring_line(self, builder):
        result = builder.build("Midterm Exam\nDate: October 20, 2025")
        assert len(result.candidates) == 1
        candidate = result.candidates[0]
        assert candidate.type == "MIDTERM"
        assert candidate.start == datetime(2025, 10, 20)
        assert candidate.source_line_index == 0
        assert candidate.confidence == pytest.approx(0.8865)

    def test_context_window_respected(self):
        builder = EventCandidateBuilder(ParsingConfig(context_window=1))
        result = builder.build("Midterm Exam\nRoom changes posted online\nOctober 20, 2025")
        assert result.candidates == []
        assert "1 event line(s) had no nearby date" in result.stats.warnings

    def test_warnings_without_dates(self, builder):
        result = builder.build("Assignment 1 due soon")
        assert result.candidates == []
        assert "No dates found in text" in result.stats.warnings

    def test_warning_without_event_lines(self, builder):
        result = builder.build("Welcome to the course\nSeptember 15, 2025")
        assert result.candidates == []
        assert "No event-type lines found in text" in result.stats.warnings

    def test_empty_text(self, builder):
        result = builder.build("")
        assert result.candidates == []
        assert result.stats.total_lines == 0

    def test_min_confidence_filters_lines(self):
        builder = EventCandidateBuilder(ParsingConfig(min_confidence=0.95))
        result = builder.build("Quiz 1 on Sept 19, 2025\nFinal Exam - December 15, 2025")
        assert [c.type for c in result.candidates] == ["FINAL"]

    def test_ids_stable_across_runs(self, builder, sample_syllabus):
        first = builder.build(sample_syllabus, course_code="CS 101", default_year=2025)
        second = builder.build(sample_syllabus, course_code="CS 101", default_year=2025)
        assert [c.id for c in first.candidates] == [c.id for c in second.candidates]

    def test_ids_depend_on_course_code(self, builder):
        text = "Quiz 1 on Sept 19, 2025"
        a = builder.build(text, course_code="CS101").candidates[0]
        b = builder.build(text, course_code="CS102").candidates[0]
        assert a.id != b.id

    def test_rejects_non_string(self, builder):
        with pytest.raises(TypeError):
            builder.build(None)


class TestDeduplicate:
    """Tests for near-duplicate collapsing."""

    def test_same_day_similar_titles_keep_higher_confidence(self, builder):
        low = _candidate("Quiz 1", confidence=0.6)
        high = _candidate("Quiz 1 ", confidence=0.9, source_text="Quiz 1 again")
        result = builder.deduplicate([low, high])
        assert len(result) == 1
        assert result[0].confidence == 0.9

    def test_lower_confidence_duplicate_does_not_replace(self, builder):
        high = _candidate("Quiz 1", confidence=0.9)
        low = _candidate("Quiz 1", confidence=0.5, source_text="Quiz 1 again")
        result = builder.deduplicate([high, low])
        assert result == [high]

    def test_different_types_kept(self, builder):
        quiz = _candidate("Quiz 1")
        lab = _candidate("Lab 1", event_type="LAB")
        assert len(builder.deduplicate([quiz, lab])) == 2

    def test_same_week_identical_titles(self, builder):
        a = _candidate("Quiz 1", start=datetime(2025, 9, 19), source_text="line a")
        b = _candidate("Quiz 1", start=datetime(2025, 9, 23), source_text="line b")
        assert len(builder.deduplicate([a, b])) == 1

    def test_far_apart_kept(self, builder):
        a = _candidate("Quiz 1", start=datetime(2025, 9, 19), source_text="line a")
        b = _candidate("Quiz 1", start=datetime(2025, 10, 19), source_text="line b")
        assert len(builder.deduplicate([a, b])) == 2

    def test_shared_keyword_within_week(self, builder):
        a = _candidate("Reading check", start=datetime(2025, 9, 19), keywords=["quiz"])
        b = _candidate("Pop test", start=datetime(2025, 9, 24), keywords=["quiz"])
        assert len(builder.deduplicate([a, b])) == 1

    def test_idempotent(self, builder):
        candidates = [
            _candidate("Quiz 1", confidence=0.6),
            _candidate("Quiz 1", confidence=0.9, source_text="Quiz 1 again"),
            _candidate("Lab 1", event_type="LAB", start=datetime(2025, 9, 20)),
            _candidate("Quiz 2", start=datetime(2025, 11, 1)),
        ]
        once = builder.deduplicate(candidates)
        assert builder.deduplicate(once) == once

    def test_replacement_collapses_later_survivor(self, builder):
        essay = _candidate("Essay draft", start=datetime(2025, 9, 1), confidence=0.5,
                           keywords=["essay"])
        problems = _candidate("Problem set", start=datetime(2025, 9, 4), confidence=0.5,
                              keywords=["problem set"])
        revised = _candidate("Essay draft v2", start=datetime(2025, 9, 2), confidence=0.9,
                             keywords=["essay", "problem set"])

        once = builder.deduplicate([essay, problems, revised])

        assert [c.title for c in once] == ["Essay draft v2"]
        assert builder.deduplicate(once) == once

    def test_dedup_can_be_disabled(self):
        builder = EventCandidateBuilder(ParsingConfig(deduplicate=False))
        result = builder.build("Quiz 1 on Sept 19, 2025 and Sept 26, 2025")
        assert result.stats.candidates_generated == 2
        assert len(result.candidates) == 2


class TestHelpers:
    """Tests for title helpers and candidate analysis."""

    def test_normalize_title(self):
        assert normalize_title("  Quiz #1: Intro!! ") == "quiz 1 intro"

    def test_title_similarity(self):
        assert title_similarity("Quiz 1", "Quiz 1") == 1.0
        assert title_similarity("Quiz 1", "Quiz 2") == pytest.approx(5 / 6)
        assert title_similarity("", "") == 1.0

    def test_analyze_candidates(self, builder, sample_syllabus):
        result = builder.build(sample_syllabus, course_code="CS 101", default_year=2025)
        summary = analyze_candidates(result.candidates, result.stats)
        assert summary["type_distribution"]["QUIZ"] == 1
        assert summary["type_distribution"]["OTHER"] == 0
        assert summary["monthly_distribution"]["2025-10"] == 2
        assert sum(summary["confidence_distribution"].values()) == 5

    def test_default_duration_only_for_sessions(self, builder):
        result = builder.build("Lecture 3 on Sept 17, 2025 at 10:30")
        candidate = result.candidates[0]
        assert candidate.end - candidate.start == timedelta(minutes=90)
