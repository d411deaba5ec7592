from __future__ import annotations
from dataclasses import asdict
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from trackplan.api.deps import get_author, get_db
from trackplan.api.serializers import event_out
from trackplan.catalog import events as event_service
from trackplan.catalog.conflicts import detect_conflicts, missing_common_properties
from trackplan.errors import CatalogNotFoundError
from trackplan.models.tables import Event, Page
from trackplan.validation.catalog import EventIn, EventUpdateIn

router = APIRouter(tags=["events"])


@router.post("/pages/{page_id}/events", status_code=201)
def create_event(page_id: int, body: EventIn, db: Session = Depends(get_db)):
    with db.begin():
        ev = event_service.create_event(
            db, page_id, body.name, properties=body.properties, status=body.status, test_date=body.test_date
        )
    return {"success": True, "data": event_out(ev)}


@router.get("/pages/{page_id}/events")
def list_events(page_id: int, status: str | None = None, modified_since: str | None = None, db: Session = Depends(get_db)):
    rows = event_service.list_events(
        db,
        page_id,
        statuses=event_service.parse_status_filter(status),
        modified_since=event_service.parse_modified_since(modified_since),
    )
    data = [event_out(ev) for ev in rows]
    return {"success": True, "data": data, "count": len(data)}


@router.get("/events/{event_id}")
def get_event(event_id: int, db: Session = Depends(get_db)):
    ev = db.get(Event, event_id)
    if ev is None:
        raise CatalogNotFoundError("Event not found")
    return {"success": True, "data": event_out(ev, with_history=True)}


@router.put("/events/{event_id}")
def update_event(event_id: int, body: EventUpdateIn, db: Session = Depends(get_db), author: str = Depends(get_author)):
    kwargs = {}
    if "test_date" in body.model_fields_set:
        kwargs["test_date"] = body.test_date
    with db.begin():
        ev = event_service.update_event(
            db, event_id, author=author, name=body.name, status=body.status, properties=body.properties, **kwargs
        )
        data = event_out(ev, with_history=True)
    return {"success": True, "data": data}


@router.delete("/events/{event_id}")
def delete_event(event_id: int, db: Session = Depends(get_db)):
    with db.begin():
        event_service.delete_event(db, event_id)
    return {"success": True, "message": "Event deleted successfully"}


@router.get("/events/{event_id}/conflicts")
def event_conflicts(event_id: int, db: Session = Depends(get_db)):
    ev = db.get(Event, event_id)
    if ev is None:
        raise CatalogNotFoundError("Event not found")
    product_id = db.get(Page, ev.page_id).product_id
    conflicts = detect_conflicts(db, product_id, event_id)
    missing = missing_common_properties(db, product_id, event_id)
    return {
        "success": True,
        "data": {
            "conflicts": [asdict(c) for c in conflicts],
            "missing": [asdict(m) for m in missing],
        },
        "count": len(conflicts),
    }
