"""
Model fallback client.

Provides:
- RetryConfig: exponential backoff with additive jitter
- FallbackError: failure with a stable error code
- extract_response_text(): ordered decoding of the endpoint's response shapes
- ModelFallbackClient: async client that turns syllabus text into EventItems

Every failure surfaces as a FallbackError; callers keep their heuristic
result when one is raised.
"""

import asyncio
import json
import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.fallback.prompts import build_parse_request
from syllabus_sync.validation.schemas import EventItem, ValidationConfig
from syllabus_sync.validation.validator import EventValidator

logger = logging.getLogger(__name__)

# Stable error codes
CONFIG_MISSING = "CONFIG_MISSING"
HTTP_STATUS = "HTTP_STATUS"
NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT = "TIMEOUT"
EMPTY_RESPONSE = "EMPTY_RESPONSE"
INVALID_JSON = "INVALID_JSON"
INVALID_SHAPE = "INVALID_SHAPE"
SCHEMA_INVALID = "SCHEMA_INVALID"

_STRUCTURED_OUTPUT_PARAM = "response_format"


class FallbackError(Exception):
    """Raised when a fallback call cannot produce a usable event list."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.response_body = response_body


@dataclass
class RetryConfig:
    """
    Backoff policy for fallback calls.

    Formula: base_delay * 2^attempt + random(0, jitter_seconds)
    """

    max_retries: int = 2
    base_delay: float = 0.3
    jitter_seconds: float = 0.2

    @classmethod
    def from_config(cls, config: FallbackConfig) -> "RetryConfig":
        return cls(
            max_retries=config.max_retries,
            base_delay=config.backoff_base_seconds,
            jitter_seconds=config.backoff_jitter_seconds,
        )

    def calculate_backoff(self, attempt: int) -> float:
        """
        Backoff before the next attempt.

        Args:
            attempt: The attempt that just failed (0-indexed)
        """
        return self.base_delay * (2**attempt) + random.uniform(0, self.jitter_seconds)

    def is_retryable_status(self, status_code: int) -> bool:
        """408, 429 and any 5xx are retried."""
        return status_code in {408, 429} or 500 <= status_code < 600

    def is_retryable_exception(self, exc: Exception) -> bool:
        return isinstance(
            exc,
            (
                httpx.TimeoutException,
                httpx.ConnectError,
                httpx.ReadError,
            ),
        )


# ── Response Shapes ──────────────────────────────────────────


def _output_text(data: Any) -> Any:
    return data.get("output_text")


def _output_content(data: Any) -> Any:
    return data["output"][0]["content"][0]["text"]


def _chat_message(data: Any) -> Any:
    return data["choices"][0]["message"]["content"]


def _chat_message_parts(data: Any) -> Any:
    return data["choices"][0]["message"]["content"][0]["text"]


# Tried in order; the first to yield non-empty text wins.
RESPONSE_SHAPES: list[tuple[str, Callable[[Any], Any]]] = [
    ("output_text", _output_text),
    ("output_content", _output_content),
    ("chat_message", _chat_message),
    ("chat_message_parts", _chat_message_parts),
]


def extract_response_text(data: Any) -> str:
    """
    Pull the model's text payload out of a decoded response body.

    Raises:
        FallbackError: EMPTY_RESPONSE when no known shape yields text.
    """
    if isinstance(data, dict):
        for name, matcher in RESPONSE_SHAPES:
            try:
                text = matcher(data)
            except (KeyError, IndexError, TypeError):
                continue
            if isinstance(text, str) and text.strip():
                logger.debug(f"Decoded response using {name} shape")
                return text
    raise FallbackError(EMPTY_RESPONSE, "Model returned no extractable content")


def parse_event_payload(text: str) -> list[Any]:
    """
    Decode the model's JSON payload into a list of raw items.

    Accepts a bare array or an object with an ``events`` array.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise FallbackError(INVALID_JSON, f"Invalid JSON from model: {e.msg}") from e

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("events"), list):
        return parsed["events"]
    raise FallbackError(
        INVALID_SHAPE, "Expected a JSON array or an object with an events array"
    )


def _cites_structured_output(body: str) -> bool:
    return _STRUCTURED_OUTPUT_PARAM in body.lower()


class ModelFallbackClient:
    """
    Async client for the model fallback.

    Features:
    - Bounded per-attempt timeout
    - Sequential retries with exponential backoff on 408/429/5xx and timeouts
    - One extra attempt without the structured-output parameter when the
      endpoint rejects it
    - All-or-nothing validation of returned items

    Example:
        client = ModelFallbackClient(FallbackConfig())
        events = await client.parse(text, course_code="CS 101")
        await client.close()
    """

    def __init__(
        self,
        config: FallbackConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
    ):
        self._config = config or FallbackConfig()
        self.retry_config = retry_config or RetryConfig.from_config(self._config)
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def model(self) -> str:
        return self._config.model

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
        return self._client

    def _api_key(self) -> str:
        secret = self._config.api_key
        key = secret.get_secret_value().strip() if secret else ""
        if not key:
            raise FallbackError(CONFIG_MISSING, "Fallback API key is not configured")
        return key

    async def parse(
        self,
        text: str,
        course_code: str,
        term_start: str | None = None,
        term_end: str | None = None,
        timezone: str | None = None,
    ) -> list[EventItem]:
        """
        Extract events from syllabus text with the model.

        Args:
            text: Raw syllabus text; line markers are added before sending.
            course_code: Course code applied to items that omit one.
            term_start: Optional term start passed as context.
            term_end: Optional term end passed as context.
            timezone: Informational timezone label.

        Returns:
            Validated events with zone-naive timestamps.

        Raises:
            FallbackError: On any failure, with a stable code.
        """
        api_key = self._api_key()
        started = time.perf_counter()

        payload = build_parse_request(
            text,
            model=self._config.model,
            course_code=course_code,
            term_start=term_start,
            term_end=term_end,
            timezone=timezone,
            temperature=self._config.temperature,
        )
        data = await self._post_with_retry(payload, api_key)
        items = parse_event_payload(extract_response_text(data))
        events = self._validate_items(items, course_code)

        logger.info(
            f"Model fallback returned {len(events)} events in "
            f"{(time.perf_counter() - started) * 1000:.0f}ms"
        )
        return events

    def _validate_items(self, items: list[Any], course_code: str) -> list[EventItem]:
        validator = EventValidator(ValidationConfig(default_course_code=course_code))
        events: list[EventItem] = []
        problems: list[str] = []
        for i, item in enumerate(items):
            try:
                events.append(validator.validate_item(item))
            except ValidationError as e:
                fields = ", ".join(
                    ".".join(str(p) for p in err["loc"]) or "item" for err in e.errors()
                )
                problems.append(f"item {i + 1}: {fields}")
        if problems:
            raise FallbackError(
                SCHEMA_INVALID, f"Schema validation failed: {' | '.join(problems)}"
            )
        return events

    async def _post_with_retry(self, payload: dict[str, Any], api_key: str) -> Any:
        """POST the request, retrying sequentially per the retry config."""
        client = self._get_client()
        url = self._config.endpoint
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        body = dict(payload)
        max_retries = self.retry_config.max_retries
        attempt = 0
        compat_retry_used = False

        while True:
            try:
                response = await client.post(url, json=body, headers=headers)
            except httpx.HTTPError as e:
                if self.retry_config.is_retryable_exception(e) and attempt < max_retries:
                    backoff = self.retry_config.calculate_backoff(attempt)
                    logger.warning(
                        f"Retryable error {type(e).__name__} from model endpoint, "
                        f"attempt {attempt + 1}/{max_retries + 1}, "
                        f"backing off {backoff:.2f}s"
                    )
                    await asyncio.sleep(backoff)
                    attempt += 1
                    continue
                code = TIMEOUT if isinstance(e, httpx.TimeoutException) else NETWORK_ERROR
                raise FallbackError(
                    code, f"Model request failed after {attempt + 1} attempts: {e}"
                ) from e

            status = response.status_code

            if (
                status == 400
                and attempt == 0
                and not compat_retry_used
                and _STRUCTURED_OUTPUT_PARAM in body
                and _cites_structured_output(response.text)
            ):
                logger.warning("Endpoint rejected structured output, retrying without it")
                body.pop(_STRUCTURED_OUTPUT_PARAM)
                compat_retry_used = True
                continue

            if self.retry_config.is_retryable_status(status):
                if attempt < max_retries:
                    backoff = self.retry_config.calculate_backoff(attempt)
                    logger.warning(
                        f"Retryable status {status} from model endpoint, "
                        f"attempt {attempt + 1}/{max_retries + 1}, "
                        f"backing off {backoff:.2f}s"
                    )
                    await asyncio.sleep(backoff)
                    attempt += 1
                    continue
                raise FallbackError(
                    HTTP_STATUS,
                    f"Model request failed with status {status} after {attempt + 1} attempts",
                    status_code=status,
                    response_body=response.text[:300],
                )

            if status >= 400:
                raise FallbackError(
                    HTTP_STATUS,
                    f"Model request failed with status {status}",
                    status_code=status,
                    response_body=response.text[:300],
                )

            try:
                return response.json()
            except ValueError as e:
                raise FallbackError(INVALID_JSON, "Model response body is not JSON") from e

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
