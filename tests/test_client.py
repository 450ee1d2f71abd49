"""Tests for the remote detection client.

WHY: The client is the one place where the pipeline depends on another
process. Every way that process can misbehave must come back as a
degraded result with safe defaults, never as an exception.

HOW: httpx.MockTransport stands in for the service. Each test wires a
handler, runs the coroutine with asyncio.run(), and checks the parsed or
degraded DetectionResult.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from deposition_formatter.api.client import DetectionClient
from deposition_formatter.core.models import SplitRecommendation


def _run(coro):
    return asyncio.run(coro)


def _json_handler(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)
    return handler


async def _call(method: str, handler, content: str = "text", token=None):
    transport = httpx.MockTransport(handler)
    async with DetectionClient(base_url="http://detect.test", token=token, transport=transport) as client:
        return await getattr(client, method)(content)


# ---------------------------------------------------------------------------
# Successful replies
# ---------------------------------------------------------------------------


class TestSuccessfulReplies:

    def test_detect_caption(self):
        seen = []
        payload = {"success": True, "boundary": 42, "confidence": 0.7, "reasoning": "found Q."}
        result = _run(_call("detect_caption", _json_handler(payload, seen=seen), content="CAPTION\nQ. x"))
        assert result.success is True
        assert result.value == 42
        assert result.confidence == 0.7
        assert seen[0].url.path == "/transcript/detect-caption"
        assert json.loads(seen[0].content) == {"content": "CAPTION\nQ. x"}

    def test_detect_indentation(self):
        payload = {"success": True, "recommended_indent": 4, "confidence": 0.8, "stats": {"sampled_lines": 10}}
        result = _run(_call("detect_indentation", _json_handler(payload)))
        assert result.value == 4
        assert result.stats == {"sampled_lines": 10}

    def test_analyze_line_breaks(self):
        payload = {
            "success": True,
            "recommended_space_threshold": 7,
            "confidence": 0.5,
            "warnings": ["Low number of Q/A markers detected. Manual review recommended."],
        }
        result = _run(_call("analyze_line_breaks", _json_handler(payload)))
        assert result.value == 7
        assert len(result.warnings) == 1

    def test_validate_split(self):
        payload = {
            "success": True,
            "valid": True,
            "recommendation": "FINE_TUNE",
            "confidence": 0.6,
            "before_context": "caption",
            "after_context": "heading",
        }
        result = _run(_call("validate_split", _json_handler(payload)))
        assert result.value.valid is True
        assert result.value.recommendation is SplitRecommendation.FINE_TUNE
        assert result.value.after_context == "heading"

    def test_bearer_token_sent(self):
        seen = []
        payload = {"success": True, "boundary": 0}
        _run(_call("detect_caption", _json_handler(payload, seen=seen), token="s3cret"))
        assert seen[0].headers["Authorization"] == "Bearer s3cret"

    def test_no_token_no_header(self):
        seen = []
        _run(_call("detect_caption", _json_handler({"success": True, "boundary": 0}, seen=seen), token=""))
        assert "Authorization" not in seen[0].headers


# ---------------------------------------------------------------------------
# Degraded replies
# ---------------------------------------------------------------------------


class TestDegradation:

    def test_server_error(self):
        result = _run(_call("detect_caption", _json_handler({"detail": "boom"}, status_code=500)))
        assert result.success is False
        assert result.value == 0
        assert result.confidence == 0.0
        assert "manually" in result.reasoning

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = _run(_call("detect_indentation", handler))
        assert result.success is False
        assert result.value == 5
        assert "default value of 5 spaces" in result.reasoning

    def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        result = _run(_call("analyze_line_breaks", handler))
        assert result.success is False
        assert result.value == 5

    def test_missing_value_field(self):
        result = _run(_call("detect_indentation", _json_handler({"success": True, "confidence": 0.9})))
        assert result.success is False
        assert result.value == 5

    def test_wrong_field_type(self):
        result = _run(_call("detect_caption", _json_handler({"success": True, "boundary": "ten"})))
        assert result.success is False

    def test_service_reports_failure(self):
        payload = {"success": False, "confidence": 0.0, "reasoning": "No marker found in content."}
        result = _run(_call("validate_split", _json_handler(payload)))
        assert result.success is False
        assert result.value.valid is False
        assert result.value.recommendation is SplitRecommendation.CORRECT

    def test_requires_context_manager(self):
        client = DetectionClient(base_url="http://detect.test", token="")
        with pytest.raises(RuntimeError):
            _run(client.detect_caption("x"))
