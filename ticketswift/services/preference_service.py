from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

from ticketswift.core.clock import utcnow
from ticketswift.core.errors import InvalidPreferences, ModificationLimitExceeded
from ticketswift.core.log_config import mask_code
from ticketswift.models.verification_code import VerificationCode
from ticketswift.services import code_store


@dataclass(frozen=True)
class Preferences:
    seat_keyword_order: tuple[str, ...] = ()
    session_index: int = 1
    ticket_count: int = 1

    @property
    def seat_keywords_csv(self) -> str:
        return ",".join(self.seat_keyword_order)


def normalize_preferences(seat_keyword_order, session_index, ticket_count) -> Preferences:
    """Validate user input. Raises InvalidPreferences; never clamps."""
    keywords = []
    for kw in seat_keyword_order or []:
        if not isinstance(kw, str):
            raise InvalidPreferences("Seat keywords must be text")
        kw = kw.strip()
        if not kw:
            continue
        if "," in kw:
            raise InvalidPreferences("Seat keywords cannot contain commas")
        keywords.append(kw)
    try:
        session_index = int(session_index)
        ticket_count = int(ticket_count)
    except (TypeError, ValueError):
        raise InvalidPreferences("Session index and ticket count must be whole numbers")
    if session_index < 1:
        raise InvalidPreferences("Session index must be at least 1")
    if ticket_count < 1:
        raise InvalidPreferences("Ticket count must be at least 1")
    return Preferences(tuple(keywords), session_index, ticket_count)


def update_preferences(db: Session, code: str, requester_id: str, prefs: Preferences,
                       now: datetime | None = None) -> VerificationCode:
    """Overwrite a code's preferences, consuming one edit from its quota.

    Takes effect on the next redemption. Raises CodeNotFound or
    ModificationLimitExceeded.
    """
    now = now or utcnow()
    vc = code_store.get_owned(db, code, requester_id)
    if vc.modification_count >= vc.max_modifications:
        raise ModificationLimitExceeded(code=mask_code(vc.code), owner=requester_id)

    applied = code_store.try_update_preferences(
        db, vc.id,
        seat_keywords_csv=prefs.seat_keywords_csv,
        session_index=prefs.session_index,
        ticket_count=prefs.ticket_count,
        now=now,
    )
    if not applied:
        # a concurrent edit used the last slot
        db.rollback()
        raise ModificationLimitExceeded(code=mask_code(vc.code), owner=requester_id)
    db.commit()
    db.refresh(vc)
    logger.info("preferences updated code={} owner={} edits={}/{}",
                mask_code(vc.code), requester_id, vc.modification_count, vc.max_modifications)
    return vc
