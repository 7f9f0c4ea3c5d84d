"""Endpoints called by the desktop purchasing agent."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from ticketswift.db.session import get_db
from ticketswift.api.deps import get_current_identity
from ticketswift.core.errors import MissingParameters
from ticketswift.core.identity import CallerIdentity
from ticketswift.schemas.codes import BindRequest, RedeemRequest
from ticketswift.schemas.common import ok
from ticketswift.services.binding_service import bind_account
from ticketswift.services.redemption_service import redeem_code

router = APIRouter(tags=["agent"])


@router.post("/agent/verify")
def verify_and_fetch_config(body: RedeemRequest, db: Session = Depends(get_db),
                            caller: CallerIdentity = Depends(get_current_identity)):
    if not (body.verificationCode or "").strip():
        raise MissingParameters("verificationCode is required")
    config = redeem_code(db, body.verificationCode, caller.id)
    return ok(config.to_dict())


@router.post("/agent/bind")
def bind_external_account(body: BindRequest, request: Request, db: Session = Depends(get_db),
                          caller: CallerIdentity = Depends(get_current_identity)):
    ip = request.client.host if request.client else None
    result = bind_account(db, body.verificationCode, caller.id, body.externalAccountId,
                          device_id=body.deviceId, ip=ip)
    return ok(result.to_dict(), message="Already bound" if result.already_bound else "Bound")
