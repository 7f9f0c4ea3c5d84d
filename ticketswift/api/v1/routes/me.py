from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ticketswift.db.session import get_db
from ticketswift.api.deps import get_current_user
from ticketswift.core.clock import iso
from ticketswift.core.policy import RolePolicy, get_role_policy
from ticketswift.models.user import User
from ticketswift.schemas.auth import ApiKeyUpdate
from ticketswift.schemas.common import ok
from ticketswift.services import points_service

router = APIRouter(tags=["me"])


@router.get("/me")
def me(me: User = Depends(get_current_user), policy: RolePolicy = Depends(get_role_policy)):
    """Current user. The external API key itself is never returned."""
    return ok({
        "id": me.id,
        "email": me.email,
        "fullName": me.full_name or "",
        "role": policy.role_for(me),
        "loyaltyPoints": me.loyalty_points,
        "hasApiKey": bool(me.external_api_key),
    })


@router.put("/me/api-key")
def set_api_key(body: ApiKeyUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    key = (body.apiKey or "").strip()
    me.external_api_key = key or None
    db.commit()
    return ok({"hasApiKey": bool(key)}, message="API key saved" if key else "API key removed")


@router.get("/me/points")
def points_history(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    rows = points_service.history(db, me.id)
    return ok({
        "balance": me.loyalty_points,
        "history": [
            {
                "type": t.type,
                "amount": t.amount,
                "orderId": t.order_id or None,
                "description": t.description,
                "balanceAfter": t.balance_after,
                "createdAt": iso(t.created_at),
            }
            for t in rows
        ],
    })
