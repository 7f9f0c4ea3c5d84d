import secrets
import string
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ticketswift.core.clock import as_utc, utcnow
from ticketswift.core.config import settings
from ticketswift.core.errors import (
    EventExpired, EventNotFound, InvalidCheckValue, InvalidPackage, MissingParameters, OrderNotFound,
)
from ticketswift.models.event import Event
from ticketswift.models.order import Order
from ticketswift.models.user import User
from ticketswift.services import points_service
from ticketswift.services.ecpay import ECPayConfig, build_payment_form, verify_check_mac_value

_BASE36 = string.digits + string.ascii_lowercase


def ecpay_config() -> ECPayConfig:
    return ECPayConfig(
        merchant_id=settings.ECPAY_MERCHANT_ID,
        hash_key=settings.ECPAY_HASH_KEY,
        hash_iv=settings.ECPAY_HASH_IV,
        payment_url=settings.ECPAY_PAYMENT_URL,
        return_url=settings.ECPAY_RETURN_URL,
        client_back_url=settings.ECPAY_CLIENT_BACK_URL,
    )


def make_order_id(now: datetime) -> str:
    """MerchantTradeNo: 'T' + epoch millis + 6 base36 chars, at most 20 chars."""
    millis = int(now.timestamp() * 1000)
    rand = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"T{millis}{rand}"[:20]


def create_order(db: Session, user: User, package_id: int | None = None, event_id: str | None = None,
                 now: datetime | None = None) -> tuple[Order, dict]:
    """Create a pending order and the auto-submit ECPay form for it."""
    now = now or utcnow()
    if package_id is None and not event_id:
        raise MissingParameters("packageId or eventId is required")

    if package_id is not None:
        pkg = points_service.PACKAGES.get(int(package_id))
        if not pkg:
            raise InvalidPackage(package_id=package_id)
        order = Order(id=make_order_id(now), user_id=user.id, purpose="points", package_id=pkg.id,
                      package_name=pkg.name, price=pkg.price_ntd, points=pkg.points, status="pending",
                      created_at=now)
        item_name = f"Package{pkg.id}"
    else:
        event = db.get(Event, event_id)
        if not event:
            raise EventNotFound(event_id=event_id)
        if as_utc(event.end_date) <= now:
            raise EventExpired(event_id=event_id)
        order = Order(id=make_order_id(now), user_id=user.id, purpose="code", event_id=event.id,
                      package_name=f"Verification code: {event.name}", price=int(event.price_points or 0),
                      points=0, status="pending", created_at=now)
        item_name = f"Code{event.id[:8]}"

    db.add(order)
    db.commit()
    form = build_payment_form(ecpay_config(), trade_no=order.id, amount=order.price, item_name=item_name,
                              trade_desc="TicketSwift", now=now)
    logger.info("order created order={} user={} purpose={} price={}", order.id, user.id, order.purpose, order.price)
    return order, form


def handle_notify(db: Session, params: dict, now: datetime | None = None) -> str:
    """Process ECPay's server-to-server result. Returns the body ECPay expects."""
    cfg = ecpay_config()
    if not verify_check_mac_value(params, cfg.hash_key, cfg.hash_iv):
        raise InvalidCheckValue(order_id=params.get("MerchantTradeNo"))

    trade_no = params.get("MerchantTradeNo") or ""
    order = db.get(Order, trade_no)
    if not order:
        raise OrderNotFound(order_id=trade_no)

    if order.status == "completed":
        return "1|OK"

    if str(params.get("RtnCode")) != "1":
        reason = (params.get("RtnMsg") or "payment failed")[:200]
        db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status != "completed")
            .values(status="failed", fail_reason=reason)
        )
        db.commit()
        logger.warning("payment failed order={} reason={}", order.id, reason)
        return "0|FAIL"

    now = now or utcnow()
    try:
        trade_amount = int(params.get("TradeAmt") or 0)
    except ValueError:
        trade_amount = None
    if trade_amount != order.price:
        logger.warning("paid amount differs from order price order={} price={} paid={}",
                       order.id, order.price, trade_amount)

    # Claim the order; ECPay retries notifies, and only one of them may credit.
    res = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status != "completed")
        .values(status="completed", paid_at=now, payment_date=str(params.get("PaymentDate") or ""),
                trade_amount=trade_amount)
    )
    if res.rowcount != 1:
        db.rollback()
        return "1|OK"
    if order.purpose == "points":
        balance = points_service.credit_points(
            db, order.user_id, int(order.points or 0), order_id=order.id,
            description=f"Purchased {order.package_name or 'points package'}",
        )
        logger.info("points credited order={} user={} +{} balance={}", order.id, order.user_id, order.points, balance)
    db.commit()
    return "1|OK"


def orphaned_code_orders(db: Session, now: datetime | None = None, grace_hours: int | None = None) -> list[Order]:
    """Completed direct code purchases that never produced a code (refund candidates)."""
    now = now or utcnow()
    hours = settings.ORPHAN_ORDER_GRACE_HOURS if grace_hours is None else grace_hours
    cutoff = now - timedelta(hours=hours)
    rows = db.execute(
        select(Order)
        .where(Order.purpose == "code", Order.status == "completed", Order.consumed_by_code_id.is_(None))
        .order_by(Order.created_at.asc())
    ).scalars()
    return [o for o in rows if as_utc(o.paid_at or o.created_at) <= cutoff]
