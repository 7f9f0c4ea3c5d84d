"""Exchange a verification code for the desktop agent's purchasing configuration."""
import base64
from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

from ticketswift.core.best_effort import best_effort
from ticketswift.core.clock import as_utc, iso, utcnow
from ticketswift.core.errors import CodeExpired, EventNotFound, NoApiKeyConfigured, UserNotFound
from ticketswift.core.log_config import mask_code
from ticketswift.models.event import Event
from ticketswift.models.user import User
from ticketswift.models.verification_code import VerificationCode
from ticketswift.services import code_store

# Sentinel the agent understands as "pick any seat" (automatic selection).
NO_SEAT_PREFERENCE = "自動選擇"


@dataclass(frozen=True)
class PurchaseConfiguration:
    event: dict
    preferences: dict
    api_key: str
    verification_code: str
    user_id: str
    server_time: str

    def to_dict(self) -> dict:
        return {
            "event": self.event,
            "preferences": self.preferences,
            "apiKey": self.api_key,
            "verificationCode": self.verification_code,
            "userId": self.user_id,
            "serverTime": self.server_time,
        }


def encode_api_key(api_key: str) -> str:
    """Base64 wrapping of the user's key.

    Obfuscation only, it keeps the key out of casual view in JSON and logs of
    the agent. It is not encryption; anyone holding the payload can decode it.
    """
    return base64.b64encode(api_key.encode("utf-8")).decode("ascii")


def preferences_payload(vc: VerificationCode) -> dict:
    return {
        "preferredKeywords": vc.seat_keywords or [NO_SEAT_PREFERENCE],
        "preferredIndex": int(vc.session_index or 1),
        "preferredNumbers": int(vc.ticket_count or 1),
    }


def event_summary(event: Event, fallback_id: str) -> dict:
    return {
        "id": event.id or fallback_id,
        "name": event.name or "Untitled event",
        "activityUrl": event.activity_url or "",
        "actualTicketTime": iso(event.actual_ticket_time),
        "venue": event.venue or "",
    }


def is_expired(event: Event, now: datetime) -> bool:
    end = as_utc(event.end_date)
    return end is not None and now > end


def redeem_code(db: Session, code: str, requester_id: str, now: datetime | None = None) -> PurchaseConfiguration:
    now = now or utcnow()
    vc = code_store.get_owned(db, code, requester_id)

    user = db.get(User, vc.owner_id)
    if not user:
        raise UserNotFound(user_id=vc.owner_id, code=mask_code(vc.code))
    if not user.external_api_key:
        raise NoApiKeyConfigured(user_id=user.id, code=mask_code(vc.code))

    event = db.get(Event, vc.event_id)
    if not event:
        raise EventNotFound(event_id=vc.event_id, code=mask_code(vc.code))

    # The stored status is not authoritative; expiry comes from the event.
    if is_expired(event, now):
        raise CodeExpired(event_id=event.id, code=mask_code(vc.code))

    config = PurchaseConfiguration(
        event=event_summary(event, vc.event_id),
        preferences=preferences_payload(vc),
        api_key=encode_api_key(user.external_api_key),
        verification_code=vc.code,
        user_id=vc.owner_id,
        server_time=now.isoformat(),
    )

    with best_effort("redeem.record_usage", db=db, code=mask_code(vc.code), owner=requester_id):
        code_store.record_usage(db, vc.id, now)
        db.commit()

    logger.info("code redeemed code={} owner={} event={}", mask_code(vc.code), requester_id, event.id)
    return config
