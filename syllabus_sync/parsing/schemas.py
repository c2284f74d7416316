"""Schema definitions for syllabus parsing.

Provides the EventType literal plus the transient dataclasses passed
between the date extractor, line classifier and candidate builder.
None of these objects outlive a single parse.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

EventType = Literal[
    "ASSIGNMENT",
    "QUIZ",
    "MIDTERM",
    "FINAL",
    "LAB",
    "LECTURE",
    "OTHER",
]

VALID_EVENT_TYPES: set[str] = {
    "ASSIGNMENT",
    "QUIZ",
    "MIDTERM",
    "FINAL",
    "LAB",
    "LECTURE",
    "OTHER",
}

# Human-readable label used when a title has to be synthesized
TYPE_LABELS: dict[str, str] = {
    "ASSIGNMENT": "Assignment",
    "QUIZ": "Quiz",
    "MIDTERM": "Midterm Exam",
    "FINAL": "Final Exam",
    "LAB": "Lab Session",
    "LECTURE": "Lecture",
    "OTHER": "Event",
}

DatePatternType = Literal[
    "full_date",
    "short_date",
    "numeric_date",
    "iso_date",
    "weekday_date",
    "month_day",
    "week_of",
    "date_range",
]


@dataclass
class DateMatch:
    """
    A date reference found in normalized text.

    Attributes:
        start: Character offset where the match starts.
        end: Character offset where the match ends (exclusive).
        text: The literal matched text.
        date: Resolved calendar date (midnight), or None if unresolvable.
        confidence: Match confidence (0.0-1.0).
        pattern_type: Which pattern rule produced the match.
        is_range: True for "Sept 15-22" style ranges.
        end_date: Range end, when is_range is set.
    """

    start: int
    end: int
    text: str
    date: datetime | None
    confidence: float
    pattern_type: str
    is_range: bool = False
    end_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "date": self.date.isoformat() if self.date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "confidence": self.confidence,
            "pattern_type": self.pattern_type,
            "is_range": self.is_range,
        }


@dataclass
class ContextFlags:
    """Contextual cues detected on a line."""

    has_due_date: bool = False
    has_weight: bool = False
    has_numbering: bool = False
    has_negation: bool = False


@dataclass
class ClassificationResult:
    """
    Event-type guess for a single line.

    Attributes:
        type: Predicted event type (OTHER when nothing matched).
        confidence: Classification confidence, never above 1.0.
        matched_keywords: Keywords of the winning type found on the line.
        context: Due-date, weight, numbering and negation flags.
        line_index: Position of the line in the document.
        text: The classified line.
    """

    type: str
    confidence: float
    matched_keywords: list[str] = field(default_factory=list)
    context: ContextFlags = field(default_factory=ContextFlags)
    line_index: int = 0
    text: str = ""


@dataclass
class EventCandidate:
    """
    A provisional event produced by the builder, not yet validated.

    Attributes:
        id: 16 hex characters, stable for identical input.
        type: Event type of the source line.
        title: Generated title.
        start: Concrete zone-naive start.
        confidence: Candidate confidence (0.0-1.0).
        source_line_index: Index of the line that produced the candidate.
        source_text: The line itself.
        course_code: Course code, if known at build time.
        end: Range end or default duration end.
        all_day: False only when the line carries a clock time.
        location: Room or building, if detected.
        notes: Extra description, if detected.
        matched_keywords: Classification keywords for the line.
        date_matches: The date match this candidate was built from.
    """

    id: str
    type: str
    title: str
    start: datetime
    confidence: float
    source_line_index: int
    source_text: str
    course_code: str | None = None
    end: datetime | None = None
    all_day: bool = True
    location: str | None = None
    notes: str | None = None
    matched_keywords: list[str] = field(default_factory=list)
    date_matches: list[DateMatch] = field(default_factory=list)


@dataclass
class BuildStats:
    """Counters gathered while building candidates for one document."""

    total_lines: int = 0
    lines_with_dates: int = 0
    lines_with_types: int = 0
    candidates_generated: int = 0
    candidates_after_dedup: int = 0
    average_confidence: float = 0.0
    processing_time_ms: float = 0.0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_lines": self.total_lines,
            "lines_with_dates": self.lines_with_dates,
            "lines_with_types": self.lines_with_types,
            "candidates_generated": self.candidates_generated,
            "candidates_after_dedup": self.candidates_after_dedup,
            "average_confidence": round(self.average_confidence, 4),
            "processing_time_ms": round(self.processing_time_ms, 2),
            "warnings": list(self.warnings),
        }


@dataclass
class BuildResult:
    """Candidates plus the stats describing how they were produced."""

    candidates: list[EventCandidate]
    stats: BuildStats
