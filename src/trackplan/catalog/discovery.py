"""Auto-discovery: keep the property/value catalog in step with the payloads being written.

`discover` runs inside the caller's transaction, right before the event row it supports is
persisted. It only flushes; committing (or rolling back both catalog rows and the event) is the
caller's job.

Concurrent requests may discover the same key or value at the same time. Rather than
serializing writers, each insert goes through `insert_or_get`: the insert runs in a SAVEPOINT, and
a unique-constraint violation there means another writer already created the row, so we roll back
just the savepoint and read the winner's row.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, TypeVar
from prometheus_client import Counter
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception_type, stop_after_attempt
from trackplan.config import get_settings
from trackplan.catalog.codec import infer_property_type, is_contextual_value, stringify_value
from trackplan.models.tables import Property, SuggestedValue, PropertyValue

logger = logging.getLogger(__name__)

T = TypeVar("T")

CATALOG_AUTO_CREATED = Counter('catalog_auto_created_total', 'Catalog rows created by auto-discovery', ['kind'])
CATALOG_DISCOVERY_RACES = Counter('catalog_discovery_races_total', 'Unique-constraint races absorbed during discovery', ['kind'])


class CatalogRowVanished(Exception):
    """The row that beat us to the insert was gone by the time we re-read it."""


@dataclass
class DiscoveryReport:
    created_properties: list[str] = field(default_factory=list)
    created_values: list[str] = field(default_factory=list)
    created_associations: list[tuple[str, str]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created_properties or self.created_values or self.created_associations)


@retry(stop=stop_after_attempt(2), retry=retry_if_exception_type(CatalogRowVanished), reraise=True)
def insert_or_get(session: Session, model: type[T], lookup: dict[str, Any], defaults: dict[str, Any] | None = None) -> tuple[T, bool]:
    """Return `(row, created)` for the row matching `lookup`, inserting it when missing.

    Only a unique-constraint violation is absorbed; any other error propagates and aborts the
    enclosing transaction. Retried once if the conflicting row disappears before the re-read.
    """
    row = session.query(model).filter_by(**lookup).one_or_none()
    if row is not None:
        return row, False
    kind = model.__tablename__
    try:
        with session.begin_nested():
            row = model(**lookup, **(defaults or {}))
            session.add(row)
            session.flush()
        return row, True
    except IntegrityError as e:
        row = session.query(model).filter_by(**lookup).one_or_none()
        if row is None:
            # Not a lost race (or the winner was deleted meanwhile): let the retry decide.
            raise CatalogRowVanished(f"{kind} {lookup} missing after integrity error") from e
    CATALOG_DISCOVERY_RACES.labels(kind=kind).inc()
    logger.debug(f"{kind} {lookup} created concurrently; reusing existing row")
    return row, False


def discover(session: Session, product_id: int, payload: dict[str, Any] | None) -> DiscoveryReport:
    """Ensure every key/value pair of `payload` has Property, SuggestedValue and PropertyValue rows."""
    report = DiscoveryReport()
    if not payload:
        return report
    settings = get_settings()
    for key, value in payload.items():
        prop, created = insert_or_get(
            session, Property,
            {"product_id": product_id, "name": key},
            {"type": infer_property_type(value), "description": settings.auto_property_description},
        )
        if created:
            report.created_properties.append(key)
            CATALOG_AUTO_CREATED.labels(kind="property").inc()
            logger.info(f"Auto-created property '{key}' ({prop.type}) for product {product_id}")

        text = stringify_value(value)
        sv, created = insert_or_get(
            session, SuggestedValue,
            {"product_id": product_id, "value": text},
            {"is_contextual": is_contextual_value(text)},
        )
        if created:
            report.created_values.append(text)
            CATALOG_AUTO_CREATED.labels(kind="suggested_value").inc()
            logger.info(f"Auto-created suggested value '{text}' (contextual={sv.is_contextual}) for product {product_id}")

        _, created = insert_or_get(
            session, PropertyValue,
            {"property_id": prop.id, "suggested_value_id": sv.id},
        )
        if created:
            report.created_associations.append((key, text))
            CATALOG_AUTO_CREATED.labels(kind="property_value").inc()
            logger.debug(f"Associated '{text}' with property '{key}'")
    return report
