from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

from ticketswift.core.clock import utcnow
from ticketswift.services import code_store


def purge_expired_codes(db: Session, now: datetime | None = None) -> dict:
    """Delete every code whose event has ended. The only path that removes codes."""
    now = now or utcnow()
    event_ids = code_store.ended_event_ids(db, now)
    deleted = code_store.delete_for_events(db, event_ids)
    db.commit()
    logger.info("purged expired codes deleted={} events={}", deleted, len(event_ids))
    return {"deleted": deleted, "events": len(event_ids)}


def reconcile_code_status(db: Session, now: datetime | None = None) -> dict:
    """Bring the informational status column in line with event end dates."""
    now = now or utcnow()
    updated = code_store.mark_expired_for_events(db, code_store.ended_event_ids(db, now))
    db.commit()
    return {"expired": updated}
