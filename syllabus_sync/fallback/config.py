"""Configuration for the model fallback path.

Provides Pydantic settings for the completion endpoint, credentials,
routing threshold, retry policy and cost caps. All settings can be
overridden via FALLBACK_* environment variables.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FallbackConfig(BaseSettings):
    """Configuration for the confidence-gated model fallback.

    Example:
        FALLBACK_API_KEY=sk-...
        FALLBACK_CONFIDENCE_THRESHOLD=0.7
        FALLBACK_DAILY_BUDGET=0
    """

    model_config = SettingsConfigDict(
        env_prefix="FALLBACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Allow model calls when heuristic confidence is low",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the completion endpoint",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier sent with each request",
    )
    endpoint: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Completion endpoint URL",
    )
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    # Routing
    confidence_threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Mean heuristic confidence below which the model is consulted",
    )

    # Retry policy
    timeout_seconds: float = Field(
        default=20.0,
        ge=1.0,
        le=120.0,
        description="Per-attempt request timeout",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Extra attempts after the first",
    )
    backoff_base_seconds: float = Field(default=0.3, ge=0.0)
    backoff_jitter_seconds: float = Field(default=0.2, ge=0.0)

    # Cost caps
    per_client_cap: int = Field(
        default=10,
        ge=0,
        description="Model calls allowed per client identifier per UTC day",
    )
    daily_budget: float = Field(
        default=1.0,
        ge=0.0,
        description="Daily spending cap in USD; 0 disables the cap",
    )
    cost_per_call: float = Field(
        default=0.02,
        ge=0.0,
        description="Estimated USD cost of one model call",
    )
