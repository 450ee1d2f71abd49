"""Async HTTP client for a remote detection service.

WHY: A front end (or a batch job) may run the heuristic analyzers on a
separate server instance instead of in-process. Those calls can fail in
many ways: connection refused, timeouts, 5xx, HTML error pages, replies
missing fields. None of that may crash the pipeline. Every failure must
look exactly like "no usable signal" so the caller falls back to defaults.

HOW: DetectionClient wraps httpx.AsyncClient as an async context manager.
Each method POSTs ``{"content": text}`` to one endpoint, validates the JSON
reply against its schema (jsonschema), and parses it into a
DetectionResult. Any failure becomes a degraded result via _degraded().

RULES:
- Always use the async context manager (async with DetectionClient() as c:)
- Methods never raise for remote failures; they return success=False
- Degraded results carry the hard defaults (boundary 0, indent 5,
  threshold 5), confidence 0, and a user-facing advisory as reasoning
- No automatic retry
- Bearer token is sent only when configured
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import httpx
import jsonschema

from deposition_formatter.api.models import (
    CAPTION_RESPONSE_SCHEMA,
    INDENT_RESPONSE_SCHEMA,
    LINEBREAK_RESPONSE_SCHEMA,
    SPLIT_RESPONSE_SCHEMA,
    caption_from_dict,
    indent_from_dict,
    linebreak_from_dict,
    split_from_dict,
)
from deposition_formatter.config import (
    DEFAULT_INDENT_SPACES,
    DEFAULT_LINE_BREAK_THRESHOLD,
    DETECTION_API_URL,
    load_api_token,
)
from deposition_formatter.core.models import (
    DetectionResult,
    SplitRecommendation,
    SplitValidation,
)

logger = logging.getLogger(__name__)

_TIMEOUT_S = 30.0


class DetectionServiceError(Exception):
    """Raised internally when a detection reply is unusable.

    WHY: Lets the request helper funnel every failure mode (HTTP status,
    decoding, schema, success=false) through one except clause before it
    is converted into a degraded DetectionResult.
    """


def _degraded(default: Any, advisory: str) -> DetectionResult:
    return DetectionResult(
        success=False,
        value=default,
        confidence=0.0,
        reasoning=advisory,
    )


class DetectionClient:
    """Async client for the /transcript/* detection endpoints.

    RULES:
    - base_url defaults to DETECTION_API_URL from config
    - token defaults to load_api_token() (None → no Authorization header)
    - transport is injectable for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or DETECTION_API_URL).rstrip("/")
        self._token = token if token is not None else load_api_token()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> DetectionClient:
        headers = {}
        if self._token:
            headers["Authorization"] = "Bearer {}".format(self._token)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(_TIMEOUT_S),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "DetectionClient must be used as an async context manager: "
                "async with DetectionClient() as client: ..."
            )
        return self._client

    async def _request(
        self,
        path: str,
        content: str,
        schema: Dict[str, Any],
        parse: Callable[[Dict[str, Any]], DetectionResult],
    ) -> DetectionResult:
        client = self._ensure_client()
        try:
            resp = await client.post(path, json={"content": content})
        except httpx.HTTPError as exc:
            raise DetectionServiceError("request failed: {}".format(exc)) from exc

        if resp.status_code != 200:
            raise DetectionServiceError("HTTP {}".format(resp.status_code))
        try:
            data = resp.json()
        except ValueError as exc:
            raise DetectionServiceError("reply is not JSON") from exc
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as exc:
            raise DetectionServiceError("malformed reply: {}".format(exc.message)) from exc
        if not data["success"]:
            raise DetectionServiceError("service reported no result")
        return parse(data)

    async def detect_caption(self, content: str) -> DetectionResult[int]:
        """Ask the service where the caption ends."""
        try:
            return await self._request(
                "/transcript/detect-caption", content, CAPTION_RESPONSE_SCHEMA, caption_from_dict
            )
        except DetectionServiceError as exc:
            logger.warning("Caption detection unavailable: %s", exc)
            return _degraded(0, "Could not automatically detect caption boundary. Please mark it manually.")

    async def detect_indentation(self, content: str) -> DetectionResult[int]:
        """Ask the service for the indentation width."""
        try:
            return await self._request(
                "/transcript/detect-indent", content, INDENT_RESPONSE_SCHEMA, indent_from_dict
            )
        except DetectionServiceError as exc:
            logger.warning("Indentation detection unavailable: %s", exc)
            return _degraded(
                DEFAULT_INDENT_SPACES,
                "Could not detect indentation. Using default value of {} spaces.".format(DEFAULT_INDENT_SPACES),
            )

    async def analyze_line_breaks(self, content: str) -> DetectionResult[int]:
        """Ask the service for the line-break threshold."""
        try:
            return await self._request(
                "/transcript/analyze-linebreaks", content, LINEBREAK_RESPONSE_SCHEMA, linebreak_from_dict
            )
        except DetectionServiceError as exc:
            logger.warning("Line-break analysis unavailable: %s", exc)
            return _degraded(
                DEFAULT_LINE_BREAK_THRESHOLD,
                "Could not analyze line breaks. Using default threshold of {} spaces.".format(
                    DEFAULT_LINE_BREAK_THRESHOLD
                ),
            )

    async def validate_split(self, content: str) -> DetectionResult[SplitValidation]:
        """Ask the service whether the marker sits before testimony."""
        try:
            return await self._request(
                "/transcript/validate-split", content, SPLIT_RESPONSE_SCHEMA, split_from_dict
            )
        except DetectionServiceError as exc:
            logger.warning("Split validation unavailable: %s", exc)
            return _degraded(
                SplitValidation(valid=False, recommendation=SplitRecommendation.CORRECT),
                "Could not validate the caption split. Please review it manually.",
            )
