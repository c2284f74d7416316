"""Date extraction for syllabus text.

Scans normalized text with an ordered list of pattern rules, each
carrying a declared base confidence. Overlapping matches are adjudicated
strictly by confidence; rule order only decides between equal
confidences.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable

from syllabus_sync.parsing.schemas import DateMatch

logger = logging.getLogger(__name__)


# Month name → number mapping
_MONTH_MAP: dict[str, int] = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4,
    "jun": 6, "jul": 7, "aug": 8, "sep": 9,
    "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

# Weekday name → datetime.weekday() index (Monday == 0)
_WEEKDAY_MAP: dict[str, int] = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
    "mon": 0, "tue": 1, "wed": 2, "thu": 3,
    "fri": 4, "sat": 5, "sun": 6,
}

# Reusable pattern fragments
_FULL_MONTH = r"january|february|march|april|may|june|july|august|september|october|november|december"
_SHORT_MONTH = r"jan|feb|mar|apr|may|jun|jul|aug|sept|sep|oct|nov|dec"
_ANY_MONTH = rf"{_FULL_MONTH}|{_SHORT_MONTH}"
_WEEKDAY = r"sunday|monday|tuesday|wednesday|thursday|friday|saturday|sun|mon|tue|wed|thu|fri|sat"
_ORDINAL = r"(?:st|nd|rd|th)?"

# Two-digit years below this pivot are 20xx, the rest 19xx
_TWO_DIGIT_YEAR_PIVOT = 50

NUMERIC_AMBIGUITY_PENALTY = 0.9
WEEKDAY_MISMATCH_PENALTY = 0.7


@dataclass(frozen=True)
class DateRule:
    """
    A date pattern rule.

    Attributes:
        name: Pattern type tag stored on each DateMatch.
        pattern: Compiled, case-insensitive regex.
        confidence: Declared base confidence for matches of this rule.
    """

    name: str
    pattern: re.Pattern[str]
    confidence: float


def _build_rules() -> list[DateRule]:
    """
    Build the ordered date rules.

    Order matters only for equal confidences: the earlier rule wins.

    Returns:
        List of DateRule objects in evaluation order.
    """
    specs: list[tuple[str, str, float]] = [
        # "September 15, 2025", "September 15th 2025"
        ("full_date", rf"\b({_FULL_MONTH})\s+(\d{{1,2}}){_ORDINAL},?\s+(\d{{4}})\b", 0.95),
        # "Sept 15, 2025", "Oct. 1st, 2025"
        ("short_date", rf"\b({_SHORT_MONTH})\.?\s+(\d{{1,2}}){_ORDINAL},?\s+(\d{{4}})\b", 0.90),
        # "9/15/2025", "09/15/25"
        ("numeric_date", r"\b(\d{1,2})/(\d{1,2})/(\d{2,4})\b", 0.80),
        # "2025-09-15"
        ("iso_date", r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b", 0.95),
        # "Monday, September 15", "Fri Sept 19th"
        ("weekday_date", rf"\b({_WEEKDAY}),?\s+({_ANY_MONTH})\.?\s+(\d{{1,2}}){_ORDINAL}\b", 0.85),
        # "September 15", "Sept 15th" (year missing)
        ("month_day", rf"\b({_ANY_MONTH})\.?\s+(\d{{1,2}}){_ORDINAL}\b", 0.63),
        # "Week of September 15"
        ("week_of", rf"\bweek\s+of\s+({_ANY_MONTH})\.?\s+(\d{{1,2}}){_ORDINAL}\b", 0.75),
        # "Sept 15-22", "October 1 - November 15"
        (
            "date_range",
            rf"\b({_ANY_MONTH})\.?\s+(\d{{1,2}}){_ORDINAL}\s*[-–—]\s*(?:({_ANY_MONTH})\.?\s+)?(\d{{1,2}}){_ORDINAL}\b",
            0.80,
        ),
    ]
    return [
        DateRule(name=name, pattern=re.compile(pattern, re.IGNORECASE), confidence=conf)
        for name, pattern, conf in specs
    ]


def _make_date(year: int, month: int, day: int) -> datetime | None:
    """Construct a calendar date, or None if it does not exist (e.g. Feb 30)."""
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


class DateExtractor:
    """
    Rule-based date extractor for normalized syllabus text.

    Lazily compiles rules on first use. Year-less dates resolve against
    default_year, which falls back to the current calendar year.

    Usage:
        extractor = DateExtractor(default_year=2025)
        matches = extractor.extract("Quiz 1 on Sept 19")
    """

    def __init__(self, default_year: int | None = None):
        self._default_year = default_year
        self._rules: list[DateRule] | None = None

    @property
    def rules(self) -> list[DateRule]:
        """Lazy-compile rules on first access."""
        if self._rules is None:
            self._rules = _build_rules()
        return self._rules

    def extract(self, text: str, default_year: int | None = None) -> list[DateMatch]:
        """
        Extract date references from text.

        Args:
            text: Normalized text to scan.
            default_year: Overrides the extractor's default year for this call.

        Returns:
            Non-overlapping DateMatch objects sorted by start offset.

        Raises:
            TypeError: If text is not a string.
        """
        if not isinstance(text, str):
            raise TypeError(f"extract expects a string input, got {type(text).__name__}")

        year = default_year or self._default_year or date.today().year

        # (match, rule index) pairs, in evaluation order
        found: list[tuple[DateMatch, int]] = []
        for rule_index, rule in enumerate(self.rules):
            resolver = self._resolvers[rule.name]
            for match in rule.pattern.finditer(text):
                date_match = resolver(self, match, rule, year)
                if date_match is None:
                    continue
                found.append((date_match, rule_index))

        return self._resolve_overlaps(found)

    # ── Resolvers ────────────────────────────────────────

    def _resolve_month_day_year(
        self, match: re.Match, rule: DateRule, year: int
    ) -> DateMatch | None:
        """full_date, short_date, month_day and week_of share one layout."""
        month = _MONTH_MAP.get(match.group(1).lower())
        day = int(match.group(2))
        resolved_year = int(match.group(3)) if match.re.groups >= 3 else year
        if month is None:
            return None
        parsed = _make_date(resolved_year, month, day)
        if parsed is None:
            return None
        return self._to_match(match, rule, parsed, rule.confidence)

    def _resolve_numeric(
        self, match: re.Match, rule: DateRule, year: int
    ) -> DateMatch | None:
        first, second, raw_year = (int(g) for g in match.groups())
        if raw_year < 100:
            raw_year += 2000 if raw_year < _TWO_DIGIT_YEAR_PIVOT else 1900
        elif raw_year < 1000:
            return None

        # Month/day first, day/month as a fallback
        parsed = _make_date(raw_year, first, second) or _make_date(raw_year, second, first)
        if parsed is None:
            return None
        return self._to_match(match, rule, parsed, rule.confidence * NUMERIC_AMBIGUITY_PENALTY)

    def _resolve_iso(
        self, match: re.Match, rule: DateRule, year: int
    ) -> DateMatch | None:
        iso_year, month, day = (int(g) for g in match.groups())
        parsed = _make_date(iso_year, month, day)
        if parsed is None:
            return None
        return self._to_match(match, rule, parsed, rule.confidence)

    def _resolve_weekday(
        self, match: re.Match, rule: DateRule, year: int
    ) -> DateMatch | None:
        weekday = _WEEKDAY_MAP.get(match.group(1).lower())
        month = _MONTH_MAP.get(match.group(2).lower())
        if weekday is None or month is None:
            return None
        parsed = _make_date(year, month, int(match.group(3)))
        if parsed is None:
            return None

        confidence = rule.confidence
        if parsed.weekday() != weekday:
            # Kept at reduced confidence rather than rejected
            confidence *= WEEKDAY_MISMATCH_PENALTY
        return self._to_match(match, rule, parsed, confidence)

    def _resolve_range(
        self, match: re.Match, rule: DateRule, year: int
    ) -> DateMatch | None:
        start_month = _MONTH_MAP.get(match.group(1).lower())
        end_month_raw = match.group(3)
        end_month = _MONTH_MAP.get(end_month_raw.lower()) if end_month_raw else start_month
        if start_month is None or end_month is None:
            return None

        # Both ends share the year, so cross-year ranges can end before they start
        start = _make_date(year, start_month, int(match.group(2)))
        end = _make_date(year, end_month, int(match.group(4)))
        if start is None or end is None:
            return None

        date_match = self._to_match(match, rule, start, rule.confidence)
        date_match.is_range = True
        date_match.end_date = end
        return date_match

    _resolvers: dict[str, Callable[..., DateMatch | None]] = {
        "full_date": _resolve_month_day_year,
        "short_date": _resolve_month_day_year,
        "month_day": _resolve_month_day_year,
        "week_of": _resolve_month_day_year,
        "numeric_date": _resolve_numeric,
        "iso_date": _resolve_iso,
        "weekday_date": _resolve_weekday,
        "date_range": _resolve_range,
    }

    # ── Helpers ──────────────────────────────────────────

    @staticmethod
    def _to_match(
        match: re.Match, rule: DateRule, parsed: datetime, confidence: float
    ) -> DateMatch:
        return DateMatch(
            start=match.start(),
            end=match.end(),
            text=match.group(0),
            date=parsed,
            confidence=confidence,
            pattern_type=rule.name,
        )

    @staticmethod
    def _resolve_overlaps(found: list[tuple[DateMatch, int]]) -> list[DateMatch]:
        """
        Keep the highest-confidence match of every overlapping group.

        Candidates are considered by descending confidence, then rule order,
        then offset; each is accepted only if it overlaps nothing accepted.
        """
        ordered = sorted(found, key=lambda item: (-item[0].confidence, item[1], item[0].start))

        accepted: list[DateMatch] = []
        for candidate, _ in ordered:
            if any(_overlaps(candidate, kept) for kept in accepted):
                continue
            accepted.append(candidate)

        accepted.sort(key=lambda m: m.start)
        return accepted


def _overlaps(a: DateMatch, b: DateMatch) -> bool:
    return a.start < b.end and b.start < a.end


def extract_dates(text: str, default_year: int | None = None) -> list[DateMatch]:
    """Extract dates with a default DateExtractor."""
    return DateExtractor(default_year=default_year).extract(text)


_RELATIVE_WEEKDAY = re.compile(rf"^(next|this)\s+({_WEEKDAY})$")


def parse_relative_date(base: date, text: str) -> date | None:
    """
    Resolve "next <weekday>" or "this <weekday>" against a base date.

    "this" includes the base date itself; "next" is always strictly after it.

    Args:
        base: Reference date.
        text: Relative phrase, case-insensitive.

    Returns:
        The resolved date, or None if the phrase is not recognized.
    """
    m = _RELATIVE_WEEKDAY.match(text.lower().strip())
    if not m:
        return None

    target = _WEEKDAY_MAP[m.group(2)]
    days_ahead = target - base.weekday()
    if m.group(1) == "next":
        if days_ahead <= 0:
            days_ahead += 7
    elif days_ahead < 0:
        days_ahead += 7
    return base + timedelta(days=days_ahead)


@dataclass
class DateExtractionStats:
    """Summary of a date extraction pass."""

    total_dates: int = 0
    ranges: int = 0
    average_confidence: float = 0.0
    type_distribution: dict[str, int] = field(default_factory=dict)
    earliest_date: datetime | None = None
    latest_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_dates": self.total_dates,
            "ranges": self.ranges,
            "average_confidence": round(self.average_confidence, 4),
            "type_distribution": dict(self.type_distribution),
            "earliest_date": self.earliest_date.isoformat() if self.earliest_date else None,
            "latest_date": self.latest_date.isoformat() if self.latest_date else None,
        }


def analyze_date_extraction(matches: list[DateMatch]) -> DateExtractionStats:
    """Compute DateExtractionStats for a list of matches."""
    stats = DateExtractionStats(
        total_dates=len(matches),
        ranges=sum(1 for m in matches if m.is_range),
    )
    if not matches:
        return stats

    stats.average_confidence = sum(m.confidence for m in matches) / len(matches)
    stats.type_distribution = dict(Counter(m.pattern_type for m in matches))

    resolved = [m.date for m in matches if m.date is not None]
    if resolved:
        stats.earliest_date = min(resolved)
        stats.latest_date = max(resolved)
    return stats
