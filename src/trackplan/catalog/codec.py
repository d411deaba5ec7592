"""Event payload codec.

Payloads are stored as JSON text on `events.properties`. Decoding is lenient: a
single malformed legacy row must not break listing or bulk rewrites, so anything unreadable
decodes to an empty mapping and is logged.
"""
from __future__ import annotations
import json
import logging
from typing import Any
from prometheus_client import Counter

logger = logging.getLogger(__name__)

PAYLOAD_DECODE_FAILURES = Counter('catalog_payload_decode_failures_total', 'Event payloads that could not be decoded', ['reason'])

CONTEXTUAL_PREFIX = "$"


def decode_properties(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if raw is None:
        return {}
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        logger.warning(f"Unsupported payload type {type(raw).__name__}; treating as empty")
        PAYLOAD_DECODE_FAILURES.labels(reason="unsupported_type").inc()
        return {}
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed event payload ignored: {e}")
        PAYLOAD_DECODE_FAILURES.labels(reason="invalid_json").inc()
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Event payload is a JSON {type(data).__name__}, expected an object; treating as empty")
        PAYLOAD_DECODE_FAILURES.labels(reason="not_an_object").inc()
        return {}
    return data


def encode_properties(mapping: dict[str, Any] | None) -> str:
    return json.dumps(mapping or {}, ensure_ascii=False)


def stringify_value(value: Any) -> str:
    """Canonical text of a payload value, as stored on SuggestedValue.value."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def infer_property_type(value: Any) -> str:
    # bool first: bool is an int subclass
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string"


def is_contextual_value(text: str) -> bool:
    return text.startswith(CONTEXTUAL_PREFIX)
