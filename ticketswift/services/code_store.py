"""Queries and atomic updates on verification_codes.

Services never do read-modify-write on counters or the binding column; every
mutation here is a single conditional UPDATE so concurrent requests on the
same code serialize in the database.
"""
import secrets
import string
from datetime import datetime

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from ticketswift.core.errors import CodeNotFound
from ticketswift.models.event import Event
from ticketswift.models.verification_code import VerificationCode

CODE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def make_code(length: int = 16, prefix: str = "") -> str:
    body = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
    return (prefix or "").upper() + body.upper()


def code_exists(db: Session, code: str) -> bool:
    return db.execute(select(VerificationCode.id).where(VerificationCode.code == code)).first() is not None


def find_for_owner_event(db: Session, owner_id: str, event_id: str) -> VerificationCode | None:
    return db.execute(
        select(VerificationCode).where(VerificationCode.owner_id == owner_id, VerificationCode.event_id == event_id)
    ).scalar_one_or_none()


def get_owned(db: Session, code: str, owner_id: str) -> VerificationCode:
    """Fetch a code scoped to its owner. A foreign code looks exactly like a missing one."""
    if not code:
        raise CodeNotFound()
    vc = db.execute(
        select(VerificationCode).where(VerificationCode.code == code.strip().upper())
    ).scalar_one_or_none()
    if vc is None or vc.owner_id != owner_id:
        raise CodeNotFound(owner_mismatch=vc is not None)
    return vc


def list_for_owner(db: Session, owner_id: str) -> list[tuple[VerificationCode, Event | None]]:
    rows = db.execute(
        select(VerificationCode, Event)
        .outerjoin(Event, Event.id == VerificationCode.event_id)
        .where(VerificationCode.owner_id == owner_id)
        .order_by(VerificationCode.created_at.desc())
    ).all()
    return [(vc, ev) for vc, ev in rows]


def record_usage(db: Session, code_id: str, now: datetime) -> None:
    db.execute(
        update(VerificationCode)
        .where(VerificationCode.id == code_id)
        .values(usage_count=VerificationCode.usage_count + 1, last_used_at=now)
    )


def try_bind(db: Session, code_id: str, *, account: str, device_id: str | None, owner_id: str,
             ip: str | None, now: datetime) -> bool:
    """Set the binding only if none exists. Returns False if another request won."""
    res = db.execute(
        update(VerificationCode)
        .where(VerificationCode.id == code_id, VerificationCode.bound_account.is_(None))
        .values(
            bound_account=account,
            bound_device_id=device_id,
            bound_at=now,
            bound_by_owner_id=owner_id,
            bound_from_ip=ip,
        )
    )
    return res.rowcount == 1


def try_update_preferences(db: Session, code_id: str, *, seat_keywords_csv: str, session_index: int,
                           ticket_count: int, now: datetime) -> bool:
    """Apply an edit if quota remains. Returns False when the cap is reached."""
    res = db.execute(
        update(VerificationCode)
        .where(
            VerificationCode.id == code_id,
            VerificationCode.modification_count < VerificationCode.max_modifications,
        )
        .values(
            seat_keywords_csv=seat_keywords_csv,
            session_index=session_index,
            ticket_count=ticket_count,
            modification_count=VerificationCode.modification_count + 1,
            last_modified_at=now,
        )
    )
    return res.rowcount == 1


def ended_event_ids(db: Session, now: datetime) -> list[str]:
    return list(db.execute(select(Event.id).where(Event.end_date < now)).scalars())


def delete_for_events(db: Session, event_ids: list[str]) -> int:
    if not event_ids:
        return 0
    res = db.execute(delete(VerificationCode).where(VerificationCode.event_id.in_(event_ids)))
    return res.rowcount or 0


def mark_expired_for_events(db: Session, event_ids: list[str]) -> int:
    if not event_ids:
        return 0
    res = db.execute(
        update(VerificationCode)
        .where(VerificationCode.event_id.in_(event_ids), VerificationCode.status != "expired")
        .values(status="expired")
    )
    return res.rowcount or 0
