"""Response schemas for the remote detection service.

WHY: The heuristic analyzers are also reachable over HTTP (see
server/app.py), so a UI or another process can ask a remote instance for a
recommendation. Whatever comes back over the wire has to be checked before
it is trusted: a malformed reply must be treated exactly like a failed one.

HOW: One JSON Schema per endpoint describes the minimum a usable reply
carries. The client validates each reply with jsonschema, then parses it
into a DetectionResult via the from_* helpers below.

RULES:
- Every schema requires "success" (boolean)
- The recommended value field is required only when success is true
- Confidence, when present, is a number in [0, 1]
- Extra fields are allowed (forward compatibility)
"""

from __future__ import annotations

from typing import Any, Dict

from deposition_formatter.core.models import (
    DetectionResult,
    SplitRecommendation,
    SplitValidation,
)

_COMMON_PROPERTIES: Dict[str, Any] = {
    "success": {"type": "boolean"},
    "confidence": {"type": "number", "minimum": 0, "maximum": 1},
    "reasoning": {"type": "string"},
    "stats": {"type": "object"},
    "warnings": {"type": "array", "items": {"type": "string"}},
}


def _schema(value_field: str, value_schema: Dict[str, Any]) -> Dict[str, Any]:
    properties = dict(_COMMON_PROPERTIES)
    properties[value_field] = value_schema
    return {
        "type": "object",
        "properties": properties,
        "required": ["success"],
        "if": {"properties": {"success": {"const": True}}},
        "then": {"required": [value_field]},
    }


CAPTION_RESPONSE_SCHEMA = _schema("boundary", {"type": "integer", "minimum": 0})
INDENT_RESPONSE_SCHEMA = _schema("recommended_indent", {"type": "integer", "minimum": 0})
LINEBREAK_RESPONSE_SCHEMA = _schema("recommended_space_threshold", {"type": "integer", "minimum": 0})
SPLIT_RESPONSE_SCHEMA = _schema("valid", {"type": "boolean"})
SPLIT_RESPONSE_SCHEMA["properties"]["recommendation"] = {
    "enum": [r.value for r in SplitRecommendation],
}


def _common(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "confidence": data.get("confidence", 0.0),
        "reasoning": data.get("reasoning", ""),
        "stats": data.get("stats") or {},
        "warnings": list(data.get("warnings") or []),
    }


def caption_from_dict(data: Dict[str, Any]) -> DetectionResult[int]:
    return DetectionResult(success=True, value=data["boundary"], **_common(data))


def indent_from_dict(data: Dict[str, Any]) -> DetectionResult[int]:
    return DetectionResult(success=True, value=data["recommended_indent"], **_common(data))


def linebreak_from_dict(data: Dict[str, Any]) -> DetectionResult[int]:
    return DetectionResult(success=True, value=data["recommended_space_threshold"], **_common(data))


def split_from_dict(data: Dict[str, Any]) -> DetectionResult[SplitValidation]:
    validation = SplitValidation(
        valid=data["valid"],
        recommendation=SplitRecommendation(data.get("recommendation", "CORRECT")),
        suggested_adjustment=int(data.get("suggested_adjustment", 0)),
        before_context=data.get("before_context", ""),
        after_context=data.get("after_context", ""),
    )
    return DetectionResult(success=True, value=validation, **_common(data))
