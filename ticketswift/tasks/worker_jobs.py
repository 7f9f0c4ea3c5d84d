from loguru import logger
from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError

from ticketswift.db.session import SessionLocal
from ticketswift.services import maintenance_service, order_service


def purge_expired_codes(session_factory=SessionLocal) -> dict:
    db: Session = session_factory()
    try:
        try:
            return maintenance_service.purge_expired_codes(db)
        except ProgrammingError:
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()


def reconcile_code_status(session_factory=SessionLocal) -> dict:
    db: Session = session_factory()
    try:
        try:
            return maintenance_service.reconcile_code_status(db)
        except ProgrammingError:
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()


def flag_orphaned_orders(session_factory=SessionLocal) -> dict:
    """Log paid code orders that never turned into a code so support can refund them."""
    db: Session = session_factory()
    try:
        try:
            orphans = order_service.orphaned_code_orders(db)
        except ProgrammingError:
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        for o in orphans:
            logger.warning("orphaned code order order={} user={} event={} price={}",
                           o.id, o.user_id, o.event_id, o.price)
        return {"orphaned": len(orphans), "orderIds": [o.id for o in orphans]}
    finally:
        db.close()
