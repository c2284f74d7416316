"""Course code detection.

Finds the earliest course-code-looking token in syllabus text, e.g.
"CS101", "ENGG*3990", "MATH-151", "COMMERCE 4BB3".
"""

from __future__ import annotations

import re

_COURSE_CODE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # CS101, CS 101, ENGG*3990, MATH-151
    re.compile(r"\b([A-Z]{2,4}\s?[*\-]?\s?\d{3,4}[A-Z]?)\b"),
    # ENGG 33 90
    re.compile(r"\b([A-Z]{2,4}\s?\d{2}[A-Z]?\s?\d{2})\b"),
    # PSY C 101
    re.compile(r"\b([A-Z]{2,4}\s?[A-Z]\s?\d{3})\b"),
    # COMMERCE 4BB3
    re.compile(r"\b([A-Z]{6,12}\s+\d{1,2}[A-Z]{1,2}\d{1,2})\b"),
)


def sanitize_course_code(value: str) -> str:
    """Collapse whitespace, drop spaces around '*' and '-', and uppercase."""
    value = re.sub(r"\s+", " ", value)
    value = re.sub(r"\s*([*\-])\s*", r"\1", value)
    return value.upper().strip()


def detect_course_code(text: str | None) -> str | None:
    """
    Detect the course code that appears earliest in the text.

    Args:
        text: Raw or normalized syllabus text.

    Returns:
        Sanitized course code, or None if nothing looks like one.
    """
    if not text:
        return None

    first_seen: dict[str, int] = {}
    for pattern in _COURSE_CODE_PATTERNS:
        for match in pattern.finditer(text):
            value = sanitize_course_code(match.group(1))
            if len(value) < 2:
                continue
            first_seen[value] = min(first_seen.get(value, match.start()), match.start())

    if not first_seen:
        return None
    # Earliest offset wins; pattern order breaks ties
    return min(first_seen.items(), key=lambda item: item[1])[0]
