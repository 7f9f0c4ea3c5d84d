from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ticketswift.db.session import get_db
from ticketswift.api.deps import get_current_user
from ticketswift.core.clock import iso, utcnow
from ticketswift.models.event import Event
from ticketswift.models.user import User
from ticketswift.models.verification_code import VerificationCode
from ticketswift.schemas.codes import IssueCodeRequest, UpdatePreferencesRequest, PreferencesIn
from ticketswift.schemas.common import ok
from ticketswift.services import code_store
from ticketswift.services.issuance_service import issue_code
from ticketswift.services.preference_service import normalize_preferences, update_preferences
from ticketswift.services.redemption_service import is_expired

router = APIRouter(tags=["codes"])


def _prefs(p: PreferencesIn):
    return normalize_preferences(p.seatKeywordOrder, p.sessionIndex, p.ticketCount)


def preferences_out(vc: VerificationCode) -> dict:
    return {
        "seatKeywordOrder": vc.seat_keywords,
        "sessionIndex": vc.session_index,
        "ticketCount": vc.ticket_count,
    }


def binding_out(vc: VerificationCode) -> dict | None:
    if vc.bound_account is None:
        return None
    return {"externalAccountId": vc.bound_account, "deviceId": vc.bound_device_id, "bindDate": iso(vc.bound_at)}


def code_out(vc: VerificationCode, event: Event | None, now) -> dict:
    effective = "expired" if event is not None and is_expired(event, now) else vc.status
    return {
        "id": vc.id,
        "verificationCode": vc.code,
        "eventId": vc.event_id,
        "event": {
            "name": event.name,
            "venue": event.venue,
            "activityUrl": event.activity_url,
            "endDate": iso(event.end_date),
            "actualTicketTime": iso(event.actual_ticket_time),
        } if event else None,
        "preferences": preferences_out(vc),
        "binding": binding_out(vc),
        "usageCount": vc.usage_count,
        "lastUsed": iso(vc.last_used_at),
        "modificationCount": vc.modification_count,
        "remainingModifications": vc.remaining_modifications,
        "status": vc.status,
        "effectiveStatus": effective,
        "createdAt": iso(vc.created_at),
    }


@router.post("/codes", status_code=201)
def issue(body: IssueCodeRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    """Buy a verification code for an event. The full code is shown here, once."""
    vc = issue_code(
        db, me, body.eventId, _prefs(body.preferences),
        payment_method=body.paymentOutcome.method,
        order_id=body.paymentOutcome.orderId,
    )
    return ok({
        "code": vc.code,
        "eventId": vc.event_id,
        "preferences": preferences_out(vc),
        "pointsSpent": vc.points_spent,
        "createdAt": iso(vc.created_at),
    }, message="Verification code issued")


@router.get("/codes")
def list_codes(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    now = utcnow()
    return ok([code_out(vc, ev, now) for vc, ev in code_store.list_for_owner(db, me.id)])


@router.patch("/codes/{code}/preferences")
def edit_preferences(code: str, body: UpdatePreferencesRequest, db: Session = Depends(get_db),
                     me: User = Depends(get_current_user)):
    vc = update_preferences(db, code, me.id, _prefs(body.preferences))
    return ok({
        "preferences": preferences_out(vc),
        "modificationCount": vc.modification_count,
        "maxModifications": vc.max_modifications,
        "remainingModifications": vc.remaining_modifications,
    }, message="Preferences updated")
