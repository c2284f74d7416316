"""Text normalizer for syllabus parsing.

Cleans raw text pulled out of PDFs or pasted by users so the date
extractor and line classifier see one logical statement per line.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Literal

# A word split by a trailing hyphen: "assign-\nment"
_HYPHEN_BREAK = re.compile(r"([a-zA-Z])-[ \t]*\n[ \t]*([a-z])")

# Two lowercase fragments split by a newline: "assign\nment"
_FRAGMENT_BREAK = re.compile(r"\b([a-z]{2,})[ \t]*\n[ \t]*([a-z]{2,})\b")

# Line ending in a preposition/article followed by a capitalized word
_DANGLING_WORD_BREAK = re.compile(
    r"\b(to|the|a|an|in|on|at|of|for|with|from|by|and|or)[ \t]*\n[ \t]*([A-Z]\S*)"
)

# Any line followed by a lowercase continuation
_LOWERCASE_BREAK = re.compile(r"(\S+)[ \t]*\n[ \t]*([a-z]\S*)")

_LABEL_WITH_NUMBER = re.compile(r"^[a-z]+[0-9]+$", re.IGNORECASE)
_LABEL_WORD = re.compile(r"^[a-z]+[0-9]*$")
_TERMINAL_PUNCTUATION = (".", "!", "?")

# Second halves that are real words, so the pair is two words, not a fragment
_COMMON_WORDS: frozenset[str] = frozenset({
    "the", "that", "this", "and", "but", "for", "with", "from", "are",
    "were", "was", "has", "have", "can", "will", "may", "should", "could",
    "would", "here", "there", "when", "where", "what", "how", "why", "who",
})

_MIN_FRAGMENT_MERGE = 6
_MAX_FRAGMENT_MERGE = 15


class TextNormalizer:
    """
    Stateless cleaner for raw syllabus text.

    Repairs are applied in a fixed order: Unicode NFC, line endings,
    hyphenated breaks, broken word fragments, dangling prepositions,
    lowercase continuations, then whitespace and blank-line collapsing.

    Usage:
        normalizer = TextNormalizer()
        clean = normalizer.normalize(raw_text)
    """

    def normalize(self, text: str) -> str:
        """
        Normalize raw text.

        Args:
            text: Raw syllabus text.

        Returns:
            Cleaned text with at most one blank line between paragraphs.

        Raises:
            TypeError: If text is not a string.
        """
        if not isinstance(text, str):
            raise TypeError(
                f"normalize expects a string input, got {type(text).__name__}"
            )

        normalized = unicodedata.normalize("NFC", text)
        normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")

        for repair in (
            self._repair_hyphen_breaks,
            self._repair_fragment_breaks,
            self._repair_dangling_words,
            self._repair_lowercase_continuations,
        ):
            normalized = repair(normalized)

        normalized = re.sub(r"[ \t]+", " ", normalized)
        normalized = re.sub(r"\n{3,}", "\n\n", normalized)
        normalized = re.sub(r" +\n", "\n", normalized)
        normalized = re.sub(r"\n +", "\n", normalized)
        return normalized.strip()

    @staticmethod
    def _repair_hyphen_breaks(text: str) -> str:
        return _HYPHEN_BREAK.sub(r"\1\2", text)

    @staticmethod
    def _repair_fragment_breaks(text: str) -> str:
        def _merge(match: re.Match) -> str:
            first, second = match.group(1), match.group(2)
            combined = len(first) + len(second)
            if not _MIN_FRAGMENT_MERGE <= combined <= _MAX_FRAGMENT_MERGE:
                return match.group(0)
            if second.lower() in _COMMON_WORDS:
                return match.group(0)
            return first + second

        return _FRAGMENT_BREAK.sub(_merge, text)

    @staticmethod
    def _repair_dangling_words(text: str) -> str:
        return _DANGLING_WORD_BREAK.sub(r"\1 \2", text)

    @staticmethod
    def _repair_lowercase_continuations(text: str) -> str:
        def _merge(match: re.Match) -> str:
            last_word, next_word = match.group(1), match.group(2)
            if last_word.endswith(_TERMINAL_PUNCTUATION):
                return match.group(0)
            # "item1\nitem2" are separate labels
            if _LABEL_WITH_NUMBER.match(last_word) and _LABEL_WORD.match(next_word):
                return match.group(0)
            return f"{last_word} {next_word}"

        return _LOWERCASE_BREAK.sub(_merge, text)


def normalize_text(text: str) -> str:
    """Normalize text with a default TextNormalizer."""
    return TextNormalizer().normalize(text)


def split_into_lines(text: str) -> list[str]:
    """Split normalized text into trimmed, non-empty lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def extract_text_blocks(text: str) -> list[str]:
    """Split normalized text into blocks separated by blank lines."""
    return [block.strip() for block in re.split(r"\n\s*\n", text) if block.strip()]


@dataclass
class TextStats:
    """
    Shape statistics for a normalized document.

    Attributes:
        character_count: Total characters in the text.
        line_count: Non-empty lines.
        block_count: Paragraph blocks.
        avg_chars_per_line: Characters per line, rounded to 2 decimals.
        complexity: low (<40 chars/line), medium (<80), else high.
    """

    character_count: int
    line_count: int
    block_count: int
    avg_chars_per_line: float
    complexity: Literal["low", "medium", "high"]

    def to_dict(self) -> dict[str, object]:
        return {
            "character_count": self.character_count,
            "line_count": self.line_count,
            "block_count": self.block_count,
            "avg_chars_per_line": self.avg_chars_per_line,
            "complexity": self.complexity,
        }


def analyze_text(text: str) -> TextStats:
    """Compute TextStats for normalized text."""
    lines = split_into_lines(text)
    blocks = extract_text_blocks(text)
    avg = len(text) / len(lines) if lines else 0.0

    if avg < 40:
        complexity = "low"
    elif avg < 80:
        complexity = "medium"
    else:
        complexity = "high"

    return TextStats(
        character_count=len(text),
        line_count=len(lines),
        block_count=len(blocks),
        avg_chars_per_line=round(avg, 2),
        complexity=complexity,
    )
