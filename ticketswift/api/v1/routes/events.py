from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ticketswift.db.session import get_db
from ticketswift.schemas.common import ok
from ticketswift.services import event_service

router = APIRouter(tags=["events"])


@router.get("/events")
def list_events(db: Session = Depends(get_db)):
    return ok([event_service.event_out(e) for e in event_service.list_events(db)])


@router.get("/events/{event_id}")
def get_event(event_id: str, db: Session = Depends(get_db)):
    return ok(event_service.event_out(event_service.get_event(db, event_id)))
