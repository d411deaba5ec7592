"""Event read and write paths. Every payload written here goes through auto-discovery first, in the same transaction."""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any
from sqlalchemy.orm import Session
from trackplan.catalog.codec import decode_properties, encode_properties
from trackplan.catalog.discovery import discover
from trackplan.errors import CatalogNotFoundError, CatalogValidationError
from trackplan.models.tables import EVENT_STATUSES, Event, EventHistory, Page

logger = logging.getLogger(__name__)

UNSET: Any = object()


def normalize_status(status: str | None) -> str | None:
    if status is None:
        return None
    st = status.strip().lower()
    if st not in EVENT_STATUSES:
        raise CatalogValidationError(f"Invalid status. Must be one of: {', '.join(EVENT_STATUSES)}")
    return st


def _check_payload(properties: Any) -> dict[str, Any]:
    if properties is None:
        return {}
    if not isinstance(properties, dict):
        raise CatalogValidationError("Event properties must be an object")
    return properties


def event_properties(event: Event) -> dict[str, Any]:
    return decode_properties(event.properties)


def create_event(
    session: Session,
    page_id: int,
    name: str,
    *,
    properties: dict[str, Any] | None = None,
    status: str | None = None,
    test_date: datetime | None = None,
) -> Event:
    if not name or not name.strip():
        raise CatalogValidationError("Event name is required")
    st = normalize_status(status) or "to_implement"
    payload = _check_payload(properties)
    page = session.get(Page, page_id)
    if page is None:
        raise CatalogNotFoundError("Page not found")
    discover(session, page.product_id, payload)
    ev = Event(page_id=page.id, name=name, status=st, test_date=test_date, properties=encode_properties(payload))
    session.add(ev)
    session.flush()
    logger.info(f"Event created: {ev.id} '{name}' on page {page.id} ({len(payload)} properties)")
    return ev


def update_event(
    session: Session,
    event_id: int,
    *,
    author: str,
    name: str | None = None,
    status: str | None = None,
    test_date: Any = UNSET,
    properties: dict[str, Any] | None = None,
) -> Event:
    """Apply a partial update. Status and name changes are written to the event history."""
    st = normalize_status(status)
    if name is not None and not name.strip():
        raise CatalogValidationError("Event name cannot be empty")
    ev = session.get(Event, event_id)
    if ev is None:
        raise CatalogNotFoundError("Event not found")

    if st is not None and st != ev.status:
        session.add(EventHistory(event_id=ev.id, field="status", old_value=ev.status, new_value=st, author=author))
        ev.status = st
    if name is not None and name != ev.name:
        session.add(EventHistory(event_id=ev.id, field="name", old_value=ev.name, new_value=name, author=author))
        ev.name = name
    if test_date is not UNSET:
        ev.test_date = test_date
    if properties is not None:
        payload = _check_payload(properties)
        discover(session, ev.page.product_id, payload)
        ev.properties = encode_properties(payload)
    session.flush()
    logger.info(f"Event updated: {ev.id} by {author}")
    return ev


def parse_status_filter(raw: str | None) -> list[str] | None:
    """Comma separated status list as sent in a query string; None when absent or blank."""
    if raw is None or not raw.strip():
        return None
    wanted = [s.strip().lower() for s in raw.split(",") if s.strip()]
    invalid = [s for s in wanted if s not in EVENT_STATUSES]
    if invalid:
        raise CatalogValidationError(f"Invalid status values: {', '.join(invalid)}")
    return wanted


def parse_modified_since(raw: str | None) -> datetime | None:
    if raw is None or not raw.strip():
        return None
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError:
        raise CatalogValidationError("Invalid modified_since date format. Use YYYY-MM-DD") from None


def list_events(
    session: Session,
    page_id: int,
    statuses: list[str] | None = None,
    modified_since: datetime | None = None,
) -> list[Event]:
    """Events of a page, newest first, optionally narrowed by status and last modification."""
    if session.get(Page, page_id) is None:
        raise CatalogNotFoundError("Page not found")
    q = session.query(Event).filter(Event.page_id == page_id)
    if statuses:
        q = q.filter(Event.status.in_([normalize_status(s) for s in statuses]))
    if modified_since is not None:
        q = q.filter(Event.updated_at >= modified_since)
    return q.order_by(Event.created_at.desc(), Event.id.desc()).all()


def delete_event(session: Session, event_id: int) -> None:
    ev = session.get(Event, event_id)
    if ev is None:
        raise CatalogNotFoundError("Event not found")
    session.delete(ev)
    session.flush()
    logger.info(f"Event deleted: {event_id}")
