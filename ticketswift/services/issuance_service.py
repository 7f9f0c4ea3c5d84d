import uuid
from datetime import datetime

from loguru import logger
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ticketswift.core.clock import as_utc, utcnow
from ticketswift.core.config import settings
from ticketswift.core.errors import (
    CodeAlreadyIssued, EventExpired, EventNotFound, InternalError, PaymentNotCompleted,
)
from ticketswift.core.log_config import mask_code
from ticketswift.models.event import Event
from ticketswift.models.order import Order
from ticketswift.models.user import User
from ticketswift.models.verification_code import VerificationCode
from ticketswift.services import code_store, points_service
from ticketswift.services.preference_service import Preferences

MAX_CODE_ATTEMPTS = 10


def _consume_order(db: Session, owner: User, event: Event, order_id: str | None, code_id: str) -> Order:
    order = db.get(Order, order_id) if order_id else None
    if (
        not order
        or order.user_id != owner.id
        or order.purpose != "code"
        or order.event_id != event.id
        or order.status != "completed"
    ):
        raise PaymentNotCompleted(order_id=order_id, owner=owner.id)
    res = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.consumed_by_code_id.is_(None))
        .values(consumed_by_code_id=code_id)
    )
    if res.rowcount != 1:
        raise PaymentNotCompleted("This payment has already been used", order_id=order_id, owner=owner.id)
    return order


def _write_code(db: Session, owner: User, event: Event, prefs: Preferences, code: str, payment_method: str,
                order_id: str | None, now: datetime) -> VerificationCode:
    """Payment and the code row in one commit. Rolls back on any failure."""
    code_id = str(uuid.uuid4())
    points_spent = 0
    consumed_order = None
    try:
        if payment_method == "order":
            consumed_order = _consume_order(db, owner, event, order_id, code_id)
        else:
            points_spent = int(event.price_points or 0)
            points_service.debit_points(
                db, owner.id, points_spent, code_id=code_id, description=f"Verification code for {event.name}",
            )

        vc = VerificationCode(
            id=code_id,
            code=code,
            owner_id=owner.id,
            event_id=event.id,
            seat_keywords_csv=prefs.seat_keywords_csv,
            session_index=prefs.session_index,
            ticket_count=prefs.ticket_count,
            usage_count=0,
            modification_count=0,
            max_modifications=settings.CODE_MAX_MODIFICATIONS,
            status="active",
            order_id=consumed_order.id if consumed_order else None,
            points_spent=points_spent,
            created_at=now,
        )
        db.add(vc)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return vc


def issue_code(db: Session, owner: User, event_id: str, prefs: Preferences, payment_method: str = "points",
               order_id: str | None = None, now: datetime | None = None) -> VerificationCode:
    """Mint a verification code for (owner, event).

    Payment (points debit or order consumption) and the code row are written in
    one transaction: either both are committed or neither is.
    """
    now = now or utcnow()
    event = db.get(Event, event_id) if event_id else None
    if not event:
        raise EventNotFound(event_id=event_id)
    if as_utc(event.end_date) <= now:
        raise EventExpired(event_id=event_id)

    if code_store.find_for_owner_event(db, owner.id, event.id):
        raise CodeAlreadyIssued(owner=owner.id, event_id=event.id)

    for _ in range(MAX_CODE_ATTEMPTS):
        code = code_store.make_code(settings.CODE_LENGTH, event.code_prefix)
        if code_store.code_exists(db, code):
            continue
        try:
            vc = _write_code(db, owner, event, prefs, code, payment_method, order_id, now)
        except IntegrityError:
            # Either a concurrent issuance for this owner and event won, or
            # another code took the same value after our existence check.
            if code_store.find_for_owner_event(db, owner.id, event.id):
                raise CodeAlreadyIssued(owner=owner.id, event_id=event.id)
            logger.warning("code value collided at commit, drawing again owner={} event={}", owner.id, event.id)
            continue
        break
    else:
        raise InternalError(reason="could not allocate a unique verification code")

    db.refresh(vc)
    logger.info("code issued code={} owner={} event={} method={} points={}",
                mask_code(vc.code), owner.id, event.id, payment_method, vc.points_spent)
    return vc
