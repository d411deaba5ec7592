"""Rename propagation for properties and suggested values.

Renaming a catalog row is never a plain column update: every event payload of the product that
still uses the old spelling is rewritten in the same transaction, with one history row per event.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any
from prometheus_client import Counter
from sqlalchemy.orm import Session
from trackplan.catalog.codec import is_contextual_value
from trackplan.catalog.payloads import iter_decoded, product_events, record_payload_change, rename_key, replace_value
from trackplan.errors import CatalogConflictError, CatalogNotFoundError, CatalogValidationError
from trackplan.models.tables import Property, SuggestedValue

logger = logging.getLogger(__name__)

RENAME_EVENTS_REWRITTEN = Counter('catalog_rename_events_rewritten_total', 'Event payloads rewritten by renames', ['kind'])


@dataclass
class RenameResult:
    id: int
    old: str
    new: str
    affected_events: int


@dataclass
class ValueConflict:
    """A value rename that would duplicate an existing row; the caller should offer a merge."""
    value_id: int
    current_value: str
    attempted_value: str
    existing_id: int
    existing_value: str
    existing_is_contextual: bool

    @property
    def merge_proposal(self) -> dict[str, Any]:
        # keep the pre-existing row, retire the one being edited
        return {
            "sourceId": self.value_id,
            "targetId": self.existing_id,
            "keepValue": self.existing_value,
            "removeValue": self.current_value,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "existingValue": {
                "id": self.existing_id,
                "value": self.existing_value,
                "is_contextual": self.existing_is_contextual,
            },
            "mergeProposal": self.merge_proposal,
        }


def rename_property(session: Session, property_id: int, new_name: str, *, author: str) -> RenameResult:
    prop = session.get(Property, property_id)
    if prop is None:
        raise CatalogNotFoundError("Property not found")
    if not new_name or not new_name.strip():
        raise CatalogValidationError("Property name is required")
    old_name = prop.name
    if new_name == old_name:
        return RenameResult(prop.id, old_name, new_name, 0)

    clash = (
        session.query(Property)
        .filter(Property.product_id == prop.product_id, Property.name == new_name, Property.id != prop.id)
        .first()
    )
    if clash is not None:
        raise CatalogConflictError(
            "Property name already exists for this product",
            {"existingProperty": {"id": clash.id, "name": clash.name, "type": clash.type}},
        )

    prop.name = new_name
    affected = 0
    for ev, payload in iter_decoded(product_events(session, prop.product_id, needle=old_name)):
        if old_name not in payload:
            continue
        record_payload_change(session, ev, payload, rename_key(payload, old_name, new_name), author)
        affected += 1
    session.flush()
    RENAME_EVENTS_REWRITTEN.labels(kind="property").inc(affected)
    logger.info(f"Renamed property {prop.id} '{old_name}' -> '{new_name}' ({affected} events rewritten) by {author}")
    return RenameResult(prop.id, old_name, new_name, affected)


def rewrite_value_occurrences(session: Session, product_id: int, old_text: str, new_text: str, *, author: str) -> int:
    """Replace `old_text` by `new_text` in every payload of the product; returns the number of events changed."""
    affected = 0
    for ev, payload in iter_decoded(product_events(session, product_id, needle=old_text)):
        after, changed = replace_value(payload, old_text, new_text)
        if not changed:
            continue
        record_payload_change(session, ev, payload, after, author)
        affected += 1
    return affected


def rename_suggested_value(
    session: Session,
    value_id: int,
    new_value: str,
    *,
    author: str,
    is_contextual: bool | None = None,
) -> RenameResult | ValueConflict:
    sv = session.get(SuggestedValue, value_id)
    if sv is None:
        raise CatalogNotFoundError("Suggested value not found")
    if new_value is None or new_value == "":
        raise CatalogValidationError("Value is required")
    old_value = sv.value
    if new_value == old_value:
        if is_contextual is not None:
            sv.is_contextual = is_contextual
            session.flush()
        return RenameResult(sv.id, old_value, new_value, 0)

    existing = (
        session.query(SuggestedValue)
        .filter(SuggestedValue.product_id == sv.product_id, SuggestedValue.value == new_value, SuggestedValue.id != sv.id)
        .first()
    )
    if existing is not None:
        logger.info(f"Rename of suggested value {sv.id} to '{new_value}' clashes with {existing.id}; proposing merge")
        return ValueConflict(
            value_id=sv.id,
            current_value=old_value,
            attempted_value=new_value,
            existing_id=existing.id,
            existing_value=existing.value,
            existing_is_contextual=existing.is_contextual,
        )

    affected = rewrite_value_occurrences(session, sv.product_id, old_value, new_value, author=author)
    sv.value = new_value
    # manual override wins; otherwise re-derive from the new text
    sv.is_contextual = is_contextual if is_contextual is not None else is_contextual_value(new_value)
    session.flush()
    RENAME_EVENTS_REWRITTEN.labels(kind="suggested_value").inc(affected)
    logger.info(f"Renamed suggested value {sv.id} '{old_value}' -> '{new_value}' ({affected} events rewritten) by {author}")
    return RenameResult(sv.id, old_value, new_value, affected)
