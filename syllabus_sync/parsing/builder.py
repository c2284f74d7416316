"""Event candidate builder.

Fuses per-line classifications with nearby date matches into event
candidates, derives titles, locations and notes from the source line,
scores each candidate and collapses near-duplicates.
"""

from __future__ import annotations

import hashlib
import logging
import re
import time
from collections import Counter
from datetime import datetime, timedelta
from typing import Any

from rapidfuzz.distance import Levenshtein

from syllabus_sync.parsing.classifier import EVENT_KEYWORDS, LineClassifier
from syllabus_sync.parsing.config import ParsingConfig
from syllabus_sync.parsing.dates import DateExtractor
from syllabus_sync.parsing.normalizer import TextNormalizer, split_into_lines
from syllabus_sync.parsing.schemas import (
    TYPE_LABELS,
    BuildResult,
    BuildStats,
    ClassificationResult,
    DateMatch,
    EventCandidate,
)

logger = logging.getLogger(__name__)


# Title cleanup
_LEAD_IN = re.compile(r"^(?:due|deadline|submit|turn\s+in|hand\s+in)[\s:]+", re.IGNORECASE)
_DUE_TAIL = re.compile(r"\s*[-:]\s*due\s+.*", re.IGNORECASE)
_PARENTHETICAL = re.compile(r"\s*\(.*?\)\s*")
_IDENTIFIER = re.compile(
    r"\b(?:assignment|hw|quiz|lab|project|exam|test)\s*#?\s*(\d+|[ivx]+|[a-z])\b",
    re.IGNORECASE,
)
MAX_TITLE_LENGTH = 100

# Clock times: "10:30", "2:00 pm", "9am"
_CLOCK_TIME = re.compile(r"\b(\d{1,2}):(\d{2})\b\s*(am|pm)?", re.IGNORECASE)
_HOUR_TIME = re.compile(r"\b(\d{1,2})\s*(am|pm)\b", re.IGNORECASE)

# Location patterns, tried in order
_ROOM_LOCATION = re.compile(
    r"\b((?:room|rm\.?|classroom|hall|auditorium|building|bldg\.?)\s+[A-Za-z]?\d+[A-Za-z]?)\b",
    re.IGNORECASE,
)
_BUILDING_NUMBER_LOCATION = re.compile(r"\b([A-Z][A-Za-z]+\s+\d+[A-Za-z]?)\b")
_PREPOSITION_LOCATION = re.compile(
    r"\b(?i:in|at|location:?)\s+([A-Z0-9][A-Za-z0-9\-]*(?:\s+[A-Z0-9][A-Za-z0-9\-]*)*)"
)
_VALID_LOCATION = re.compile(r"^[A-Za-z0-9\-\s.]+$")
MAX_LOCATION_LENGTH = 50

# Words that never start a location ("Assignment 2", "Chapter 4", "September 15")
_NON_LOCATION_WORDS: frozenset[str] = frozenset(
    {kw for family in EVENT_KEYWORDS.values() for kw in family.primary if " " not in kw}
    | {
        "exam", "test", "chapter", "chapters", "unit", "section", "part", "week",
        "day", "module", "problem", "question", "questions", "page", "pages",
        "step", "phase", "version", "grade", "points",
        "january", "february", "march", "april", "may", "june", "july",
        "august", "september", "october", "november", "december",
        "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept",
        "oct", "nov", "dec",
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
        "sunday", "mon", "tue", "wed", "thu", "fri", "sat", "sun",
    }
)

# Notes patterns
_SEPARATOR_NOTES = re.compile(r"[-:](?!\d)\s*(.+)")
_NOTES_DUE_TAIL = re.compile(r"\s*[-:]?\s*\bdue\b.*$", re.IGNORECASE)
_NOTES_MONTH_TAIL = re.compile(
    r"(?:^|\s*[-:,]\s*)\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2}.*$",
    re.IGNORECASE,
)
_NOTES_NUMERIC_TAIL = re.compile(r"(?:^|\s*[-:,]\s*)\d{1,2}/\d{1,2}/\d{2,4}.*$")
_PAREN_NOTES = re.compile(r"\(([^)]+)\)")
_CLAUSE_NOTES = re.compile(
    r"\b(?:include|includes|with|on|about|cover|covers|covering)\s+(.+?)(?:\s*[-:]\s*due|\s*$)",
    re.IGNORECASE,
)

_ONE_DAY = timedelta(days=1)
_ONE_WEEK = timedelta(days=7)
SAME_DAY_SIMILARITY = 0.5
SAME_WEEK_SIMILARITY = 0.85


class EventCandidateBuilder:
    """
    Builds event candidates from raw syllabus text.

    Each qualifying line paired with each relevant date produces exactly
    one candidate. Collaborators default to fresh instances and may be
    injected for testing.

    Usage:
        builder = EventCandidateBuilder()
        result = builder.build(text, course_code="CS101", default_year=2025)
        for candidate in result.candidates:
            ...
    """

    def __init__(
        self,
        config: ParsingConfig | None = None,
        normalizer: TextNormalizer | None = None,
        date_extractor: DateExtractor | None = None,
        classifier: LineClassifier | None = None,
    ):
        self._config = config or ParsingConfig()
        self._normalizer = normalizer or TextNormalizer()
        self._date_extractor = date_extractor or DateExtractor()
        self._classifier = classifier or LineClassifier()

    def build(
        self,
        raw_text: str,
        course_code: str | None = None,
        default_year: int | None = None,
    ) -> BuildResult:
        """
        Build event candidates from raw text.

        Args:
            raw_text: Unnormalized syllabus text.
            course_code: Course code stamped on every candidate.
            default_year: Year for dates written without one.

        Returns:
            BuildResult with candidates in source order and build stats.

        Raises:
            TypeError: If raw_text is not a string.
        """
        started = time.perf_counter()
        stats = BuildStats()

        normalized = self._normalizer.normalize(raw_text)
        lines = split_into_lines(normalized)
        stats.total_lines = len(lines)
        if not lines:
            stats.processing_time_ms = (time.perf_counter() - started) * 1000
            return BuildResult(candidates=[], stats=stats)

        all_dates = self._date_extractor.extract(normalized, default_year=default_year)
        stats.lines_with_dates = sum(1 for line in lines if self._dates_in_line(line, all_dates))
        if not all_dates:
            stats.warnings.append("No dates found in text")

        classifications = self._classifier.classify_lines(lines)
        stats.lines_with_types = sum(1 for c in classifications if c.type != "OTHER")
        if stats.lines_with_types == 0:
            stats.warnings.append("No event-type lines found in text")

        candidates: list[EventCandidate] = []
        undated_lines = 0
        for index, (line, classification) in enumerate(zip(lines, classifications)):
            if classification.type == "OTHER":
                continue
            if classification.confidence < self._config.min_confidence:
                continue

            dates = self._dates_in_line(line, all_dates)
            if not dates:
                dates = self._context_dates(index, lines, all_dates)
            if not dates:
                undated_lines += 1
                continue

            for date_match in dates:
                candidate = self._create_candidate(
                    line, index, classification, date_match, course_code
                )
                if candidate is not None:
                    candidates.append(candidate)

        if undated_lines:
            stats.warnings.append(f"{undated_lines} event line(s) had no nearby date")

        stats.candidates_generated = len(candidates)
        if self._config.deduplicate:
            candidates = self.deduplicate(candidates)
        stats.candidates_after_dedup = len(candidates)

        if candidates:
            stats.average_confidence = sum(c.confidence for c in candidates) / len(candidates)
        stats.processing_time_ms = (time.perf_counter() - started) * 1000

        logger.debug(
            "Built %d candidates from %d lines (%d before dedup)",
            stats.candidates_after_dedup,
            stats.total_lines,
            stats.candidates_generated,
        )
        return BuildResult(candidates=candidates, stats=stats)

    # ── Date Lookup ──────────────────────────────────────

    @staticmethod
    def _dates_in_line(line: str, all_dates: list[DateMatch]) -> list[DateMatch]:
        """Date matches whose literal text appears in the line (case-insensitive)."""
        lowered = line.lower()
        return [d for d in all_dates if d.date is not None and d.text.lower() in lowered]

    def _context_dates(
        self, index: int, lines: list[str], all_dates: list[DateMatch]
    ) -> list[DateMatch]:
        """Distinct dates found on the surrounding lines within the context window."""
        window = self._config.context_window
        lo = max(0, index - window)
        hi = min(len(lines) - 1, index + window)

        found: list[DateMatch] = []
        seen_texts: set[str] = set()
        for i in range(lo, hi + 1):
            if i == index:
                continue
            for date_match in self._dates_in_line(lines[i], all_dates):
                if date_match.text in seen_texts:
                    continue
                seen_texts.add(date_match.text)
                found.append(date_match)
        return found

    # ── Candidate Synthesis ──────────────────────────────

    def _create_candidate(
        self,
        line: str,
        index: int,
        classification: ClassificationResult,
        date_match: DateMatch,
        course_code: str | None,
    ) -> EventCandidate | None:
        """Create one candidate for a line-date pairing, or None below min confidence."""
        if date_match.date is None:
            return None

        confidence = self._compute_confidence(classification, date_match, line)
        if confidence < self._config.min_confidence:
            return None

        title = self._generate_title(line, classification.type, classification.matched_keywords)
        all_day = not self._has_clock_time(f"{date_match.text} {line}")

        start = date_match.date
        clock = self._parse_clock_time(line)
        if clock is not None and not date_match.is_range:
            start = start.replace(hour=clock[0], minute=clock[1])

        end: datetime | None = None
        if date_match.end_date is not None:
            end = date_match.end_date
        elif classification.type in ("LAB", "LECTURE"):
            end = start + timedelta(minutes=self._config.default_event_minutes)

        return EventCandidate(
            id=self._candidate_id(course_code, index, date_match, classification.type),
            course_code=course_code,
            type=classification.type,
            title=title,
            start=start,
            end=end,
            all_day=all_day,
            location=self._extract_location(line),
            notes=self._extract_notes(line),
            confidence=confidence,
            source_line_index=index,
            source_text=line,
            matched_keywords=list(classification.matched_keywords),
            date_matches=[date_match],
        )

    @staticmethod
    def _candidate_id(
        course_code: str | None, index: int, date_match: DateMatch, event_type: str
    ) -> str:
        """16 hex characters, identical for identical input."""
        key = f"{course_code or ''}|{index}|{date_match.start}|{date_match.text}|{event_type}"
        return hashlib.sha256(key.encode()).hexdigest()[:16]

    @staticmethod
    def _compute_confidence(
        classification: ClassificationResult,
        date_match: DateMatch,
        line: str,
    ) -> float:
        """
        Compute candidate confidence.

        0.6 x line confidence + 0.3 x date confidence.
        +0.1 if both exceed 0.7.
        +0.05 each for due-date, weight and numbering cues.
        x0.9 for lines under 20 characters, x0.5 when negated.
        Clamped to [0, 1].
        """
        confidence = classification.confidence * 0.6 + date_match.confidence * 0.3
        if classification.confidence > 0.7 and date_match.confidence > 0.7:
            confidence += 0.1

        context = classification.context
        if context.has_due_date:
            confidence += 0.05
        if context.has_weight:
            confidence += 0.05
        if context.has_numbering:
            confidence += 0.05

        if len(line) < 20:
            confidence *= 0.9
        if context.has_negation:
            confidence *= 0.5

        return max(0.0, min(confidence, 1.0))

    @staticmethod
    def _generate_title(line: str, event_type: str, keywords: list[str]) -> str:
        """
        Derive a title from the source line.

        Falls back to the type label plus any identifier ("Assignment 2")
        when the cleaned line is too short or lost every matched keyword.
        """
        title = _LEAD_IN.sub("", line.strip())
        title = _DUE_TAIL.sub("", title)
        title = _PARENTHETICAL.sub(" ", title)
        title = re.sub(r"\s+", " ", title).strip()

        lowered = title.lower()
        if len(title) < 3 or not any(k.lower() in lowered for k in keywords):
            title = TYPE_LABELS.get(event_type, TYPE_LABELS["OTHER"])
            ident = _IDENTIFIER.search(line)
            if ident:
                title = f"{title} {ident.group(1).upper()}"

        if len(title) > MAX_TITLE_LENGTH:
            title = title[: MAX_TITLE_LENGTH - 3] + "..."
        return title

    @staticmethod
    def _has_clock_time(text: str) -> bool:
        return bool(re.search(r"\b\d{1,2}:\d{2}\b", text) or _HOUR_TIME.search(text))

    @staticmethod
    def _parse_clock_time(line: str) -> tuple[int, int] | None:
        """First clock time on the line as (hour, minute), or None if absent or invalid."""
        m = _CLOCK_TIME.search(line)
        if m:
            hour, minute, meridiem = int(m.group(1)), int(m.group(2)), m.group(3)
        else:
            m = _HOUR_TIME.search(line)
            if not m:
                return None
            hour, minute, meridiem = int(m.group(1)), 0, m.group(2)

        if meridiem:
            if not 1 <= hour <= 12:
                return None
            hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)
        if hour > 23 or minute > 59:
            return None
        return hour, minute

    @staticmethod
    def _extract_location(line: str) -> str | None:
        """First plausible location among the ordered location patterns."""
        m = _ROOM_LOCATION.search(line)
        if m and _valid_location(m.group(1)):
            return m.group(1).strip()

        for m in _BUILDING_NUMBER_LOCATION.finditer(line):
            candidate = m.group(1).strip()
            if candidate.split()[0].lower() in _NON_LOCATION_WORDS:
                continue
            if _valid_location(candidate):
                return candidate

        for m in _PREPOSITION_LOCATION.finditer(line):
            candidate = m.group(1).strip()
            if candidate.split()[0].lower() in _NON_LOCATION_WORDS:
                continue
            if _valid_location(candidate):
                return candidate

        return None

    @staticmethod
    def _extract_notes(line: str) -> str | None:
        """First notes fragment: after a separator, in parentheses, or an 'about' clause."""
        m = _SEPARATOR_NOTES.search(line)
        if m:
            candidate = _strip_date_tails(_NOTES_DUE_TAIL.sub("", m.group(1).strip()))
            if 3 < len(candidate) < 200:
                return candidate

        m = _PAREN_NOTES.search(line)
        if m:
            candidate = m.group(1).strip()
            if 3 < len(candidate) < 100:
                return candidate

        m = _CLAUSE_NOTES.search(line)
        if m:
            candidate = _strip_date_tails(m.group(1).strip())
            if 3 < len(candidate) < 200:
                return candidate

        return None

    # ── Deduplication ────────────────────────────────────

    def deduplicate(self, candidates: list[EventCandidate]) -> list[EventCandidate]:
        """
        Collapse near-duplicate candidates.

        Candidates are visited in generation order. A duplicate of an
        already kept candidate replaces it in place only when its
        confidence is strictly higher. A replacement can duplicate a
        later survivor, so passes repeat until nothing collapses.
        """
        kept = self._deduplicate_pass(candidates)
        while True:
            collapsed = self._deduplicate_pass(kept)
            if len(collapsed) == len(kept):
                return kept
            kept = collapsed

    def _deduplicate_pass(self, candidates: list[EventCandidate]) -> list[EventCandidate]:
        kept: list[EventCandidate] = []
        for candidate in candidates:
            for i, existing in enumerate(kept):
                if self._is_duplicate(candidate, existing):
                    if candidate.confidence > existing.confidence:
                        kept[i] = candidate
                    break
            else:
                kept.append(candidate)
        return kept

    @staticmethod
    def _is_duplicate(a: EventCandidate, b: EventCandidate) -> bool:
        if a.type != b.type:
            return False

        title_a = normalize_title(a.title)
        title_b = normalize_title(b.title)
        if a.source_text == b.source_text and title_a == title_b:
            return True

        delta = abs(a.start - b.start)
        shared_keyword = bool(
            {k.lower() for k in a.matched_keywords} & {k.lower() for k in b.matched_keywords}
        )

        if delta <= _ONE_DAY:
            return title_similarity(a.title, b.title) >= SAME_DAY_SIMILARITY or shared_keyword
        if delta <= _ONE_WEEK:
            return (
                title_a == title_b
                or title_similarity(a.title, b.title) >= SAME_WEEK_SIMILARITY
                or shared_keyword
            )
        return False


def _strip_date_tails(value: str) -> str:
    value = _NOTES_MONTH_TAIL.sub("", value)
    return _NOTES_NUMERIC_TAIL.sub("", value).strip()


def _valid_location(value: str) -> bool:
    value = value.strip()
    return 0 < len(value) <= MAX_LOCATION_LENGTH and bool(_VALID_LOCATION.match(value))


def normalize_title(title: str) -> str:
    """Lowercase alphanumeric words joined by single spaces."""
    return " ".join(re.sub(r"[^a-z0-9]+", " ", title.lower()).split())


def title_similarity(a: str, b: str) -> float:
    """Edit-distance similarity: (len(longer) - distance) / len(longer)."""
    if not a and not b:
        return 1.0
    return Levenshtein.normalized_similarity(a, b)


def analyze_candidates(candidates: list[EventCandidate], stats: BuildStats) -> dict[str, Any]:
    """
    Distribution summary for built candidates.

    Confidence buckets: high >= 0.8, medium >= 0.5, low otherwise.
    Monthly distribution is keyed by YYYY-MM of the start.
    """
    confidence_buckets = {"high": 0, "medium": 0, "low": 0}
    for c in candidates:
        if c.confidence >= 0.8:
            confidence_buckets["high"] += 1
        elif c.confidence >= 0.5:
            confidence_buckets["medium"] += 1
        else:
            confidence_buckets["low"] += 1

    type_counts = Counter(c.type for c in candidates)
    return {
        **stats.to_dict(),
        "type_distribution": {t: type_counts.get(t, 0) for t in TYPE_LABELS},
        "confidence_distribution": confidence_buckets,
        "monthly_distribution": dict(Counter(c.start.strftime("%Y-%m") for c in candidates)),
        "average_events_per_line": (
            len(candidates) / stats.total_lines if stats.total_lines else 0.0
        ),
    }
