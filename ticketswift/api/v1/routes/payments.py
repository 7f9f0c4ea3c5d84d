from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from ticketswift.db.session import get_db
from ticketswift.api.deps import get_current_user
from ticketswift.models.user import User
from ticketswift.schemas.common import ok
from ticketswift.schemas.payments import CreateOrderRequest
from ticketswift.services import order_service, points_service

router = APIRouter(tags=["payments"])


@router.get("/payments/packages")
def list_packages():
    return ok([
        {"id": p.id, "name": p.name, "priceNTD": p.price_ntd, "points": p.points}
        for p in points_service.PACKAGES.values()
    ])


@router.post("/payments/orders", status_code=201)
def create_order(body: CreateOrderRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    """Start an ECPay checkout. The browser auto-submits ``paymentForm`` to ECPay."""
    order, form = order_service.create_order(db, me, package_id=body.packageId, event_id=body.eventId)
    return ok({"orderId": order.id, "paymentForm": form})


@router.post("/payments/ecpay/notify", response_class=PlainTextResponse)
async def ecpay_notify(req: Request, db: Session = Depends(get_db)):
    form = await req.form()
    params = {k: str(v) for k, v in form.items()}
    return PlainTextResponse(order_service.handle_notify(db, params))
