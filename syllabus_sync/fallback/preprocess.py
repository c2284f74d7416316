"""Text preprocessing ahead of the model prompt.

Tags lines that look like events with ``[EVENT:<TYPE>]`` and marks
percentages with a weight suffix so the model can spot graded items.
"""

import re

# First match wins; more specific phrases come first.
_MARKER_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("IMPORTANT", re.compile(r"\bimportant\s+dates\b", re.IGNORECASE)),
    ("FINAL", re.compile(r"\bfinal\s+exam\b", re.IGNORECASE)),
    ("FINAL", re.compile(r"\bfinals?\b", re.IGNORECASE)),
    ("MIDTERM", re.compile(r"\bmidterm\b", re.IGNORECASE)),
    ("PROJECT", re.compile(r"\bmini[-\s]?project\b", re.IGNORECASE)),
    ("PROJECT", re.compile(r"\bproject\b", re.IGNORECASE)),
    ("ASSIGNMENT", re.compile(r"\bassignment\b", re.IGNORECASE)),
    ("LECTURE", re.compile(r"\blectures?\b", re.IGNORECASE)),
    ("LECTURE", re.compile(r"\bclass(?:es)?\s+meet(?:ings)?\b", re.IGNORECASE)),
    ("LECTURE", re.compile(r"\bmeeting\s+times?\b", re.IGNORECASE)),
    ("EXAM", re.compile(r"\bexam\b", re.IGNORECASE)),
]

WEIGHT_SUFFIX = " — WEIGHT"


def find_marker(line: str) -> str | None:
    """Return the ``[EVENT:<TYPE>]`` tag for a line, if any pattern matches."""
    for marker_type, pattern in _MARKER_PATTERNS:
        if pattern.search(line):
            return f"[EVENT:{marker_type}]"
    return None


def _process_line(line: str) -> str:
    if not line:
        return line

    marker = find_marker(line)
    result = f"{marker} {line}" if marker else line

    # Only the first percentage is tagged
    pct = result.find("%")
    if pct != -1 and result[pct + 1 : pct + 1 + len(WEIGHT_SUFFIX)] != WEIGHT_SUFFIX:
        result = result[: pct + 1] + WEIGHT_SUFFIX + result[pct + 1 :]
    return result


def preprocess_for_model(text: str) -> str:
    """Apply event markers and weight suffixes line by line."""
    return "\n".join(_process_line(line) for line in re.split(r"\r?\n", text))
