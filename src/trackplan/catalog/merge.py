"""Merging one suggested value into another within a product.

The merge rewrites every payload occurrence of the source text to the target text, hands the source's
property associations and common-property defaults to the target, then deletes the source row.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from prometheus_client import Counter
from sqlalchemy.orm import Session
from trackplan.catalog.rename import rewrite_value_occurrences
from trackplan.errors import CatalogNotFoundError, CatalogValidationError
from trackplan.models.tables import CommonProperty, PropertyValue, SuggestedValue

logger = logging.getLogger(__name__)

CATALOG_MERGES = Counter('catalog_suggested_value_merges_total', 'Suggested value merges performed')


@dataclass
class MergeResult:
    kept_value: str
    removed_value: str
    transferred_associations: list[str] = field(default_factory=list)
    affected_events: int = 0


def merge_suggested_values(session: Session, source_id: int, target_id: int, *, author: str) -> MergeResult:
    """Fold `source` into `target`: rewrite payloads, move associations and defaults, delete the source.

    Associations the target already has are skipped rather than duplicated.
    """
    if source_id == target_id:
        raise CatalogValidationError("Cannot merge a suggested value into itself")
    source = session.get(SuggestedValue, source_id)
    target = session.get(SuggestedValue, target_id)
    if source is None or target is None:
        raise CatalogNotFoundError("One or both suggested values not found")
    if source.product_id != target.product_id:
        raise CatalogValidationError("Cannot merge suggested values from different products")

    affected = rewrite_value_occurrences(session, source.product_id, source.value, target.value, author=author)

    already = {
        pid for (pid,) in session.query(PropertyValue.property_id).filter(PropertyValue.suggested_value_id == target.id)
    }
    transferred: list[str] = []
    # queried by id: the relationship collections may have been loaded before discovery added rows
    source_links = (
        session.query(PropertyValue)
        .filter(PropertyValue.suggested_value_id == source.id)
        .order_by(PropertyValue.id)
        .all()
    )
    for pv in source_links:
        if pv.property_id in already:
            continue
        session.add(PropertyValue(property_id=pv.property_id, suggested_value_id=target.id))
        already.add(pv.property_id)
        transferred.append(pv.property.name)
    for cp in session.query(CommonProperty).filter(CommonProperty.suggested_value_id == source.id).all():
        cp.suggested_value = target

    result = MergeResult(
        kept_value=target.value,
        removed_value=source.value,
        transferred_associations=transferred,
        affected_events=affected,
    )
    # remaining source associations cascade with it
    session.delete(source)
    session.flush()
    CATALOG_MERGES.inc()
    logger.info(
        f"Merged suggested value {source_id} '{result.removed_value}' into {target_id} '{result.kept_value}': "
        f"{len(transferred)} associations transferred, {affected} events rewritten, by {author}"
    )
    return result
