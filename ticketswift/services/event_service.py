import uuid
from sqlalchemy import select
from sqlalchemy.orm import Session

from ticketswift.core.clock import as_utc, iso
from ticketswift.core.errors import EventNotFound, ValidationError
from ticketswift.models.event import Event
from ticketswift.schemas.events import EventIn


def event_out(e: Event) -> dict:
    return {
        "id": e.id,
        "name": e.name,
        "venue": e.venue,
        "activityUrl": e.activity_url,
        "onSaleDate": iso(e.on_sale_date),
        "endDate": iso(e.end_date),
        "actualTicketTime": iso(e.actual_ticket_time),
        "pricePoints": e.price_points,
    }


def list_events(db: Session) -> list[Event]:
    return list(db.execute(select(Event).order_by(Event.end_date.asc())).scalars())


def get_event(db: Session, event_id: str) -> Event:
    e = db.get(Event, event_id)
    if not e:
        raise EventNotFound(event_id=event_id)
    return e


def create_event(db: Session, body: EventIn) -> Event:
    # a date without an offset is taken as UTC
    on_sale, end, ticket_time = as_utc(body.onSaleDate), as_utc(body.endDate), as_utc(body.actualTicketTime)
    if on_sale and end <= on_sale:
        raise ValidationError("End date must be after the on-sale date")
    if body.pricePoints < 0:
        raise ValidationError("Price cannot be negative")
    e = Event(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        venue=body.venue,
        activity_url=body.activityUrl,
        on_sale_date=on_sale,
        end_date=end,
        actual_ticket_time=ticket_time,
        price_points=body.pricePoints,
        code_prefix=(body.codePrefix or "").strip().upper(),
    )
    db.add(e)
    db.commit()
    db.refresh(e)
    return e
