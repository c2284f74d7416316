"""
Heuristic syllabus parsing.

Turns raw syllabus text into event candidates without any external
service: normalize, extract dates, classify lines, then build and
deduplicate candidates.

Components:
- ParsingConfig: Configuration for the heuristic parser
- TextNormalizer: Raw text cleanup and line repair
- DateExtractor: Rule-based date span extraction
- LineClassifier: Keyword-based event-type classification
- EventCandidateBuilder: Candidate synthesis, scoring and deduplication
- detect_course_code: Course code detection
"""

from syllabus_sync.parsing.builder import EventCandidateBuilder
from syllabus_sync.parsing.classifier import LineClassifier
from syllabus_sync.parsing.config import ParsingConfig
from syllabus_sync.parsing.course_code import detect_course_code
from syllabus_sync.parsing.dates import DateExtractor
from syllabus_sync.parsing.normalizer import TextNormalizer
from syllabus_sync.parsing.schemas import (
    ClassificationResult,
    DateMatch,
    EventCandidate,
    EventType,
)

__all__ = [
    "ClassificationResult",
    "DateExtractor",
    "DateMatch",
    "EventCandidate",
    "EventCandidateBuilder",
    "EventType",
    "LineClassifier",
    "ParsingConfig",
    "TextNormalizer",
    "detect_course_code",
]
