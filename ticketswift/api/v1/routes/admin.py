from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ticketswift.db.session import get_db
from ticketswift.api.deps import require_admin
from ticketswift.core.clock import iso
from ticketswift.models.user import User
from ticketswift.schemas.common import ok
from ticketswift.schemas.events import EventIn
from ticketswift.services import event_service, maintenance_service, order_service

router = APIRouter(tags=["admin"])


@router.post("/admin/events", status_code=201)
def create_event(body: EventIn, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    return ok(event_service.event_out(event_service.create_event(db, body)))


@router.delete("/admin/codes/expired")
def purge_expired_codes(db: Session = Depends(get_db), me: User = Depends(require_admin)):
    return ok(maintenance_service.purge_expired_codes(db))


@router.get("/admin/orders/orphaned")
def orphaned_orders(db: Session = Depends(get_db), me: User = Depends(require_admin)):
    return ok([
        {
            "orderId": o.id,
            "userId": o.user_id,
            "eventId": o.event_id,
            "price": o.price,
            "paidAt": iso(o.paid_at),
        }
        for o in order_service.orphaned_code_orders(db)
    ])
