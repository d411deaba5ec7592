"""Shared helpers for scanning and rewriting event payloads within a product."""
from __future__ import annotations
import json
import logging
import string
from typing import Any, Iterable
from sqlalchemy.orm import Session
from trackplan.config import get_settings
from trackplan.catalog.codec import decode_properties, encode_properties, stringify_value
from trackplan.models.tables import Event, EventHistory, Page

logger = logging.getLogger(__name__)

# Characters that serialize verbatim in any JSON encoder, so a LIKE on the raw text cannot miss a row
_VERBATIM_CHARS = frozenset(string.ascii_letters + string.digits + " !#$%&'()*+,-.:;<=>?@[]^_`{|}~")


def _prefilter_safe(needle: str | None) -> bool:
    if not needle or not all(ch in _VERBATIM_CHARS for ch in needle):
        return False
    # a number's catalog text and its stored JSON can differ (10000000000000000 vs 1e+16)
    try:
        parsed = json.loads(needle)
    except ValueError:
        return True
    return isinstance(parsed, bool) or not isinstance(parsed, (int, float))


def product_events(session: Session, product_id: int, needle: str | None = None) -> list[Event]:
    """All events of a product, optionally narrowed to rows whose raw payload contains `needle`."""
    q = session.query(Event).join(Page, Event.page_id == Page.id).filter(Page.product_id == product_id)
    if needle is not None and get_settings().scan_prefilter_enabled and _prefilter_safe(needle):
        q = q.filter(Event.properties.contains(needle, autoescape=True))
    return q.order_by(Event.id).all()


def iter_decoded(events: Iterable[Event]):
    for ev in events:
        yield ev, decode_properties(ev.properties)


def rename_key(payload: dict[str, Any], old_key: str, new_key: str) -> dict[str, Any]:
    """Rename a key in place, keeping the position of every entry."""
    if new_key in payload and new_key != old_key:
        # Stale entry under the new name; the renamed entry replaces it at the old key's slot.
        logger.warning(f"Payload already holds '{new_key}'; dropping it in favour of renamed '{old_key}'")
    out: dict[str, Any] = {}
    for k, v in payload.items():
        if k == new_key and k != old_key:
            continue
        out[new_key if k == old_key else k] = v
    return out


def value_matches(value: Any, text: str) -> bool:
    """True when a payload value equals `text` or, for strings, contains it literally."""
    if isinstance(value, str):
        return value == text or (bool(text) and text in value)
    if isinstance(value, (list, dict)):
        return False
    return stringify_value(value) == text


def coerce_like(original: Any, new_text: str) -> Any:
    """Replacement for a non-string scalar: keep the JSON type when the new text still parses to it."""
    try:
        parsed = json.loads(new_text)
    except ValueError:
        return new_text
    if isinstance(original, bool):
        return parsed if isinstance(parsed, bool) else new_text
    if isinstance(original, (int, float)) and isinstance(parsed, (int, float)) and not isinstance(parsed, bool):
        return parsed
    if original is None and parsed is None:
        return None
    return new_text


def replace_value(payload: dict[str, Any], old_text: str, new_text: str) -> tuple[dict[str, Any], bool]:
    """Replace a value everywhere it appears at the top level of a payload.

    Exact matches are swapped wholesale; strings that merely contain `old_text` get every literal
    occurrence substituted (plain `str.replace`, never a regex).
    """
    out: dict[str, Any] = {}
    changed = False
    for k, v in payload.items():
        nv = v
        if isinstance(v, str):
            if v == old_text:
                nv = new_text
            elif old_text and old_text in v:
                nv = v.replace(old_text, new_text)
        elif not isinstance(v, (list, dict)) and stringify_value(v) == old_text:
            nv = coerce_like(v, new_text)
        if nv != v or type(nv) is not type(v):
            changed = True
        out[k] = nv
    return out, changed


def strip_value(payload: dict[str, Any], text: str) -> tuple[dict[str, Any], bool]:
    """Drop keys holding exactly `text` and cut literal occurrences of it out of other strings."""
    out: dict[str, Any] = {}
    changed = False
    for k, v in payload.items():
        if isinstance(v, str):
            if v == text:
                changed = True
                continue
            if text and text in v:
                out[k] = v.replace(text, "")
                changed = True
                continue
        elif not isinstance(v, (list, dict)) and stringify_value(v) == text:
            changed = True
            continue
        out[k] = v
    return out, changed


def record_payload_change(
    session: Session, event: Event, before: dict[str, Any], after: dict[str, Any], author: str
) -> EventHistory:
    """Persist the rewritten payload and append a history row holding only the entries that changed."""
    old_part = {k: v for k, v in before.items() if k not in after or after[k] != v}
    new_part = {k: v for k, v in after.items() if k not in before or before[k] != v}
    event.properties = encode_properties(after)
    row = EventHistory(
        event_id=event.id,
        field="properties",
        old_value=json.dumps(old_part, ensure_ascii=False),
        new_value=json.dumps(new_part, ensure_ascii=False),
        author=author,
    )
    session.add(row)
    return row
