"""Impact analysis and destructive catalog operations.

The impact functions are pure reads used by delete-confirmation flows. The delete functions
recompute membership themselves instead of trusting an earlier impact report, since the payloads
may have changed between the two calls.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, asdict
from typing import Any
from prometheus_client import Counter
from sqlalchemy.orm import Session
from trackplan.catalog.payloads import iter_decoded, product_events, record_payload_change, strip_value, value_matches
from trackplan.errors import CatalogNotFoundError
from trackplan.models.tables import Page, Property, SuggestedValue

logger = logging.getLogger(__name__)

CATALOG_DELETIONS = Counter('catalog_deletions_total', 'Catalog rows deleted with payload cleanup', ['kind'])


@dataclass
class ImpactedEvent:
    id: int
    name: str
    page: str
    page_id: int
    current_value: Any


@dataclass
class ImpactReport:
    events: list[ImpactedEvent] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.events)

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "events": [asdict(e) for e in self.events]}


@dataclass
class DeletionResult:
    id: int
    label: str
    affected_events: int


def _page_names(session: Session, product_id: int) -> dict[int, str]:
    return {pid: name for pid, name in session.query(Page.id, Page.name).filter(Page.product_id == product_id)}


def _get_property(session: Session, property_id: int) -> Property:
    prop = session.get(Property, property_id)
    if prop is None:
        raise CatalogNotFoundError("Property not found")
    return prop


def _get_value(session: Session, value_id: int) -> SuggestedValue:
    sv = session.get(SuggestedValue, value_id)
    if sv is None:
        raise CatalogNotFoundError("Suggested value not found")
    return sv


def property_impact(session: Session, property_id: int) -> ImpactReport:
    prop = _get_property(session, property_id)
    pages = _page_names(session, prop.product_id)
    report = ImpactReport()
    for ev, payload in iter_decoded(product_events(session, prop.product_id, needle=prop.name)):
        if prop.name in payload:
            report.events.append(ImpactedEvent(ev.id, ev.name, pages.get(ev.page_id, ""), ev.page_id, payload[prop.name]))
    return report


def suggested_value_impact(session: Session, value_id: int) -> ImpactReport:
    """Events holding the value exactly, or embedded in a longer string; current_value maps key -> value."""
    sv = _get_value(session, value_id)
    pages = _page_names(session, sv.product_id)
    report = ImpactReport()
    for ev, payload in iter_decoded(product_events(session, sv.product_id, needle=sv.value)):
        hits = {k: v for k, v in payload.items() if value_matches(v, sv.value)}
        if hits:
            report.events.append(ImpactedEvent(ev.id, ev.name, pages.get(ev.page_id, ""), ev.page_id, hits))
    return report


def delete_property(session: Session, property_id: int, *, author: str) -> DeletionResult:
    """Strip the property's key from every payload of the product, then delete the row."""
    prop = _get_property(session, property_id)
    name = prop.name
    affected = 0
    for ev, payload in iter_decoded(product_events(session, prop.product_id, needle=name)):
        if name not in payload:
            continue
        after = {k: v for k, v in payload.items() if k != name}
        record_payload_change(session, ev, payload, after, author)
        affected += 1
    session.delete(prop)
    session.flush()
    CATALOG_DELETIONS.labels(kind="property").inc()
    logger.info(f"Deleted property {property_id} '{name}'; stripped from {affected} events by {author}")
    return DeletionResult(property_id, name, affected)


def delete_suggested_value(session: Session, value_id: int, *, author: str) -> DeletionResult:
    """Remove the value from every payload of the product, then delete the row."""
    sv = _get_value(session, value_id)
    text = sv.value
    affected = 0
    for ev, payload in iter_decoded(product_events(session, sv.product_id, needle=text)):
        after, changed = strip_value(payload, text)
        if not changed:
            continue
        record_payload_change(session, ev, payload, after, author)
        affected += 1
    session.delete(sv)
    session.flush()
    CATALOG_DELETIONS.labels(kind="suggested_value").inc()
    logger.info(f"Deleted suggested value {value_id} '{text}'; cleaned {affected} events by {author}")
    return DeletionResult(value_id, text, affected)
