"""Keyword classifier for syllabus lines.

Scores each line against per-type keyword families and detects
contextual cues (due dates, grade weights, numbering, negation) that
adjust the final confidence.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from syllabus_sync.parsing.schemas import ClassificationResult, ContextFlags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordFamily:
    """Primary and secondary keywords for one event type, with its weight."""

    primary: tuple[str, ...]
    secondary: tuple[str, ...]
    weight: float


# Declaration order breaks ties between types with equal scores
EVENT_KEYWORDS: dict[str, KeywordFamily] = {
    "ASSIGNMENT": KeywordFamily(
        primary=(
            "assignment", "homework", "hw", "project", "paper", "essay", "report",
            "case study", "problem set", "problem sets", "pset", "exercise", "task", "work",
            "coursework", "classwork", "written assignment", "take-home", "takehome",
            "individual project", "group project", "team project", "final project",
            "research paper", "term paper", "research project", "thesis",
            "assgn", "assn", "assign", "proj", "hmwk",
        ),
        secondary=(
            "deliverable", "submission", "writeup", "write-up", "analysis",
            "reflection", "response", "review", "summary", "critique",
            "portfolio", "journal", "blog post", "discussion post",
        ),
        weight=0.9,
    ),
    "QUIZ": KeywordFamily(
        primary=(
            "quiz", "pop quiz", "surprise quiz", "quick quiz", "mini quiz",
            "checkpoint", "check", "evaluation", "review",
            "quiz bowl", "knowledge check", "comprehension check", "quick check",
            "spot quiz", "unannounced quiz", "reading quiz", "concept check",
            "qz", "q", "pop-quiz",
        ),
        secondary=(
            "short test", "mini test", "brief assessment", "quick assessment",
            "participation check", "attendance quiz", "prep quiz",
        ),
        weight=0.88,
    ),
    "MIDTERM": KeywordFamily(
        primary=(
            "midterm", "mid-term", "mid term", "midterm exam", "midterm test",
            "middle exam", "halfway exam", "semester exam", "mid-semester exam",
            "midterm assessment", "midterm evaluation", "interim exam",
            "mid-quarter exam", "mid-session exam", "progress exam",
        ),
        secondary=("comprehensive exam", "major test", "significant assessment"),
        weight=0.95,
    ),
    "FINAL": KeywordFamily(
        primary=(
            "final", "final exam", "final test", "final assessment",
            "final evaluation", "comprehensive final", "cumulative final",
            "end-of-term exam", "semester final", "course final",
            "final examination", "terminal exam", "culminating exam",
            "capstone exam", "exit exam",
        ),
        secondary=(
            "comprehensive exam", "cumulative test", "course conclusion",
            "end assessment", "closing exam",
        ),
        weight=0.95,
    ),
    "LAB": KeywordFamily(
        primary=(
            "lab", "laboratory", "lab session", "lab work", "lab report",
            "lab exercise", "practical", "practicum",
            "hands-on", "hands on", "workshop", "studio", "fieldwork",
            "field work", "experiment", "demonstration", "demo",
            "computer lab", "coding lab", "programming lab",
            "wet lab", "dry lab", "virtual lab", "simulation",
        ),
        secondary=(
            "practice session", "applied work", "implementation",
            "technical session", "skill building",
        ),
        weight=0.85,
    ),
    "LECTURE": KeywordFamily(
        primary=(
            "lecture", "class", "meeting", "seminar",
            "presentation", "lesson", "instruction", "teaching",
            "class session", "course meeting", "academic session",
            "educational session", "learning session", "study session",
            "discussion", "symposium", "colloquium",
            "webinar", "online session", "virtual class", "zoom session",
            "video conference", "live stream",
        ),
        secondary=(
            "tutorial", "review session", "office hours", "consultation",
            "guest speaker", "guest lecture", "special session",
        ),
        weight=0.75,
    ),
}

DUE_DATE_PHRASES: tuple[str, ...] = (
    "due", "deadline", "submit", "submission", "turn in", "hand in",
    "deliver", "complete by", "finish by", "must be completed",
    "expected", "required by", "needed by", "should be submitted",
    "upload by", "post by", "send by", "email by",
)

WEIGHT_PHRASES: tuple[str, ...] = (
    "worth", "weight", "weighted", "percent", "points", "pts",
    "grade", "graded", "scored", "marks", "credit", "credits",
    "counts for", "contributes", "portion", "percentage",
    "out of", "total points", "possible points",
)

NEGATION_PHRASES: tuple[str, ...] = (
    "no", "not", "cancel", "cancelled", "canceled", "postpone", "postponed",
    "skip", "skipped", "omit", "omitted", "exclude", "excluded",
    "except", "unless", "without", "instead of", "rather than",
)

_NUMBERING_PATTERNS: tuple[re.Pattern[str], ...] = (
    # "Assignment 2", "Quiz #3", "Lab iv", "Project b"
    re.compile(r"\b(?:assignment|homework|hw|quiz|lab|project|paper|exam|test)\s*#?\s*(?:\d+|[ivx]+|[a-z])\b", re.IGNORECASE),
    # "second quiz"
    re.compile(r"\b(?:first|second|third|fourth|fifth|sixth|seventh|eighth|ninth|tenth)\s+(?:assignment|homework|quiz|lab|project|exam|test)\b", re.IGNORECASE),
    # "quiz two"
    re.compile(r"\b(?:assignment|homework|quiz|lab|project|exam|test)\s+(?:one|two|three|four|five|six|seven|eight|nine|ten)\b", re.IGNORECASE),
)

# Numbered or weighted cues that keep a negated line alive
_STRONG_INDICATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?:assignment|quiz|exam|test|lab)\s*#?\s*\d+\b", re.IGNORECASE),
    re.compile(r"\bdue\s+(?:date|by|on)\b", re.IGNORECASE),
    re.compile(r"\bworth\s+\d+\s*(?:%|percent|points)", re.IGNORECASE),
)

SECONDARY_KEYWORD_FACTOR = 0.7
SECONDARY_CONTRIBUTION = 0.5
EXTRA_MATCH_FACTOR = 0.3
NEGATION_PENALTY = 0.5


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    """Word-bounded pattern; spaces and hyphens inside a phrase are interchangeable."""
    parts = [re.escape(p) for p in re.split(r"[-\s]+", phrase) if p]
    return re.compile(r"\b" + r"[-\s]*".join(parts) + r"\b", re.IGNORECASE)


class LineClassifier:
    """
    Keyword-based event-type classifier for single lines.

    Keyword patterns are compiled lazily on first use and shared across
    calls. The classifier holds no per-document state.

    Usage:
        classifier = LineClassifier()
        result = classifier.classify("Quiz 3 - worth 5%")
    """

    def __init__(self) -> None:
        self._patterns: dict[str, re.Pattern[str]] | None = None

    @property
    def patterns(self) -> dict[str, re.Pattern[str]]:
        """Lazy-compile keyword and cue patterns on first access."""
        if self._patterns is None:
            phrases: set[str] = set(DUE_DATE_PHRASES) | set(WEIGHT_PHRASES) | set(NEGATION_PHRASES)
            for family in EVENT_KEYWORDS.values():
                phrases.update(family.primary)
                phrases.update(family.secondary)
            self._patterns = {phrase: _phrase_pattern(phrase) for phrase in phrases}
        return self._patterns

    def classify(self, line: str, line_index: int = 0) -> ClassificationResult:
        """
        Classify a single line.

        Args:
            line: Normalized line text.
            line_index: Position of the line, carried onto the result.

        Returns:
            ClassificationResult; OTHER at confidence 0 if nothing matched.

        Raises:
            TypeError: If line is not a string.
        """
        if not isinstance(line, str):
            raise TypeError(f"classify expects a string input, got {type(line).__name__}")

        text = line.strip().lower()
        if not text:
            return ClassificationResult(type="OTHER", confidence=0.0, line_index=line_index, text=line)

        context = self._detect_context(text)

        best_type = "OTHER"
        best_confidence = 0.0
        best_keywords: list[str] = []
        for event_type, family in EVENT_KEYWORDS.items():
            confidence, keywords = self._score_family(text, family)
            if confidence > best_confidence:
                best_type, best_confidence, best_keywords = event_type, confidence, keywords

        if best_type == "OTHER":
            return ClassificationResult(
                type="OTHER",
                confidence=0.0,
                context=context,
                line_index=line_index,
                text=line,
            )

        confidence = self._apply_context(best_confidence, context, text)

        return ClassificationResult(
            type=best_type,
            confidence=min(confidence, 1.0),
            matched_keywords=best_keywords,
            context=context,
            line_index=line_index,
            text=line,
        )

    def classify_lines(self, lines: list[str]) -> list[ClassificationResult]:
        """Classify each line, recording its index."""
        return [self.classify(line, line_index=i) for i, line in enumerate(lines)]

    # ── Scoring ──────────────────────────────────────────

    def _score_family(self, text: str, family: KeywordFamily) -> tuple[float, list[str]]:
        """
        Score one keyword family against a line.

        The best single primary keyword dominates; further matches add 30%
        of their score. Secondary keywords count at a reduced weight.
        """
        matched: list[str] = []
        total = 0.0
        best_single = 0.0

        for keyword in family.primary:
            if self.patterns[keyword].search(text):
                matched.append(keyword)
                score = self._keyword_score(keyword, text) * family.weight
                total += score
                best_single = max(best_single, score)

        for keyword in family.secondary:
            if self.patterns[keyword].search(text):
                matched.append(keyword)
                score = self._keyword_score(keyword, text) * family.weight * SECONDARY_KEYWORD_FACTOR
                total += score * SECONDARY_CONTRIBUTION

        confidence = min(best_single + (total - best_single) * EXTRA_MATCH_FACTOR, 1.0)
        return confidence, matched

    def _keyword_score(self, keyword: str, text: str) -> float:
        """Longer, multi-word and line-leading keywords score higher."""
        score = 0.6
        if len(keyword) > 8:
            score += 0.3
        elif len(keyword) > 5:
            score += 0.2
        elif len(keyword) > 3:
            score += 0.1

        if " " in keyword or "-" in keyword:
            score += 0.2

        m = self.patterns[keyword].search(text)
        if m is not None and not text[: m.start()].strip():
            score += 0.1

        return min(score, 1.0)

    def _detect_context(self, text: str) -> ContextFlags:
        return ContextFlags(
            has_due_date=any(self.patterns[p].search(text) for p in DUE_DATE_PHRASES),
            has_weight="%" in text or any(self.patterns[p].search(text) for p in WEIGHT_PHRASES),
            has_numbering=any(p.search(text) for p in _NUMBERING_PATTERNS),
            has_negation=any(self.patterns[p].search(text) for p in NEGATION_PHRASES),
        )

    @staticmethod
    def _apply_context(confidence: float, context: ContextFlags, text: str) -> float:
        if context.has_due_date:
            confidence += 0.15
        if context.has_weight:
            confidence += 0.1
        if context.has_numbering:
            confidence += 0.1

        if len(text) < 5:
            confidence *= 0.5
        elif len(text) < 10:
            confidence *= 0.8

        if context.has_negation and not has_strong_indicator(text):
            confidence *= NEGATION_PENALTY

        return confidence


def has_strong_indicator(text: str) -> bool:
    """True if the line carries a numbered item, explicit due phrasing or a weight."""
    return any(p.search(text) for p in _STRONG_INDICATORS)


@dataclass
class ClassificationStats:
    """Summary of classifications over a document."""

    total_lines: int = 0
    type_distribution: dict[str, int] = field(default_factory=dict)
    average_confidence: float = 0.0
    high_confidence_lines: int = 0
    low_confidence_lines: int = 0
    top_keywords: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_lines": self.total_lines,
            "type_distribution": dict(self.type_distribution),
            "average_confidence": round(self.average_confidence, 4),
            "high_confidence_lines": self.high_confidence_lines,
            "low_confidence_lines": self.low_confidence_lines,
            "top_keywords": [{"keyword": k, "count": c} for k, c in self.top_keywords],
        }


def analyze_classifications(results: list[ClassificationResult]) -> ClassificationStats:
    """
    Summarize classification results.

    High confidence is >= 0.7, low is <= 0.3; top keywords lists the ten
    most frequent matched keywords.
    """
    stats = ClassificationStats(
        total_lines=len(results),
        type_distribution={t: 0 for t in (*EVENT_KEYWORDS, "OTHER")},
    )
    if not results:
        return stats

    keyword_counts: Counter[str] = Counter()
    for result in results:
        stats.type_distribution[result.type] += 1
        if result.confidence >= 0.7:
            stats.high_confidence_lines += 1
        if result.confidence <= 0.3:
            stats.low_confidence_lines += 1
        keyword_counts.update(result.matched_keywords)

    stats.average_confidence = sum(r.confidence for r in results) / len(results)
    stats.top_keywords = keyword_counts.most_common(10)
    return stats
