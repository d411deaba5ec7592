"""JSON shapes returned by the HTTP adapter."""
from __future__ import annotations
from dataclasses import asdict, is_dataclass
from typing import Any
from trackplan.catalog.events import event_properties
from trackplan.models.tables import CommonProperty, Event, EventHistory, Page, Product, Property, SuggestedValue


def _ts(dt) -> str | None:
    return dt.isoformat() if dt else None


def product_out(p: Product) -> dict[str, Any]:
    return {"id": p.id, "name": p.name, "description": p.description, "created_at": _ts(p.created_at)}


def page_out(p: Page) -> dict[str, Any]:
    return {"id": p.id, "product_id": p.product_id, "name": p.name, "url": p.url}


def history_out(h: EventHistory) -> dict[str, Any]:
    return {
        "id": h.id,
        "field": h.field,
        "old_value": h.old_value,
        "new_value": h.new_value,
        "author": h.author,
        "created_at": _ts(h.created_at),
    }


def event_out(ev: Event, with_history: bool = False) -> dict[str, Any]:
    out = {
        "id": ev.id,
        "page_id": ev.page_id,
        "name": ev.name,
        "status": ev.status,
        "test_date": _ts(ev.test_date),
        "properties": event_properties(ev),
        "updated_at": _ts(ev.updated_at),
    }
    if with_history:
        out["history"] = [history_out(h) for h in ev.history]
    return out


def value_out(sv: SuggestedValue, with_properties: bool = False) -> dict[str, Any]:
    out = {"id": sv.id, "product_id": sv.product_id, "value": sv.value, "is_contextual": sv.is_contextual}
    if with_properties:
        out["properties"] = [pv.property.name for pv in sv.property_values]
    return out


def property_out(p: Property, with_values: bool = False) -> dict[str, Any]:
    out = {"id": p.id, "product_id": p.product_id, "name": p.name, "type": p.type, "description": p.description}
    if with_values:
        out["suggested_values"] = [value_out(pv.suggested_value) for pv in p.property_values]
    return out


def common_property_out(cp: CommonProperty) -> dict[str, Any]:
    return {
        "id": cp.id,
        "product_id": cp.product_id,
        "property_id": cp.property_id,
        "suggested_value_id": cp.suggested_value_id,
    }


def result_out(obj: Any) -> Any:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if is_dataclass(obj):
        return asdict(obj)
    return obj
