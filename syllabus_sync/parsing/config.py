"""Configuration for the heuristic parsing pipeline.

Uses Pydantic settings for environment-based configuration,
following the same pattern as the other component configs.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParsingConfig(BaseSettings):
    """
    Configuration for the heuristic syllabus parser.

    All settings can be overridden via environment variables with PARSING_ prefix.
    Example: PARSING_MIN_CONFIDENCE=0.4

    Attributes:
        min_confidence: Minimum line and candidate confidence to keep an event.
        deduplicate: Collapse near-duplicate candidates.
        context_window: Lines searched on each side when a line has no date.
        default_event_minutes: Duration given to labs and lectures without an end.
    """

    model_config = SettingsConfigDict(
        env_prefix="PARSING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    min_confidence: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a line or candidate to be kept.",
    )
    deduplicate: bool = Field(
        default=True,
        description="Collapse near-duplicate candidates.",
    )
    context_window: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Lines searched on each side for a date when a line has none.",
    )
    default_event_minutes: int = Field(
        default=90,
        ge=1,
        le=600,
        description="Duration assigned to LAB and LECTURE events without an end.",
    )
