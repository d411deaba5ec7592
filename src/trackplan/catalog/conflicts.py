"""Drift detection between an event payload and the product's common-property defaults.

Only flags; never corrects. A default whose key is absent from the event is an omission, reported
separately by `missing_common_properties`.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any
from sqlalchemy.orm import Session, joinedload
from trackplan.catalog.codec import decode_properties, stringify_value
from trackplan.errors import CatalogNotFoundError, CatalogValidationError
from trackplan.models.tables import CommonProperty, Event, Page


@dataclass
class PropertyConflict:
    property_key: str
    current_value: Any
    expected_value: str
    common_property_id: int


@dataclass
class MissingDefault:
    property_key: str
    expected_value: str
    common_property_id: int


def _load(session: Session, product_id: int, event_id: int) -> tuple[dict[str, Any], list[CommonProperty]]:
    ev = session.get(Event, event_id)
    if ev is None:
        raise CatalogNotFoundError("Event not found")
    page = session.get(Page, ev.page_id)
    if page is None or page.product_id != product_id:
        raise CatalogValidationError("Event does not belong to this product")
    defaults = (
        session.query(CommonProperty)
        .options(joinedload(CommonProperty.property), joinedload(CommonProperty.suggested_value))
        .filter(CommonProperty.product_id == product_id)
        .order_by(CommonProperty.id)
        .all()
    )
    return decode_properties(ev.properties), defaults


def detect_conflicts(session: Session, product_id: int, event_id: int) -> list[PropertyConflict]:
    payload, defaults = _load(session, product_id, event_id)
    out: list[PropertyConflict] = []
    for cp in defaults:
        key = cp.property.name
        if key not in payload:
            continue
        expected = cp.suggested_value.value
        if stringify_value(payload[key]) != expected:
            out.append(PropertyConflict(key, payload[key], expected, cp.id))
    return out


def missing_common_properties(session: Session, product_id: int, event_id: int) -> list[MissingDefault]:
    payload, defaults = _load(session, product_id, event_id)
    return [
        MissingDefault(cp.property.name, cp.suggested_value.value, cp.id)
        for cp in defaults
        if cp.property.name not in payload
    ]
