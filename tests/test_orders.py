from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from ticketswift.core.clock import utcnow
from ticketswift.core.config import settings
from ticketswift.core.errors import EventExpired, InvalidCheckValue, InvalidPackage, MissingParameters
from ticketswift.models.points_transaction import PointsTransaction
from ticketswift.services import order_service
from ticketswift.services.ecpay import check_mac_value


def _notify(order_id, rtn_code="1", **extra):
    params = {"MerchantTradeNo": order_id, "RtnCode": rtn_code, "RtnMsg": "Succeeded",
              "TradeAmt": "100", "PaymentDate": "2026/01/01 10:00:00", **extra}
    params["CheckMacValue"] = check_mac_value(params, settings.ECPAY_HASH_KEY, settings.ECPAY_HASH_IV)
    return params


def test_order_id_shape():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    oid = order_service.make_order_id(now)
    assert oid.startswith("T" + str(int(now.timestamp() * 1000)))
    assert len(oid) == 20


def test_points_order_then_notify_credits_once(db, make_user):
    user = make_user(points=5)
    order, form = order_service.create_order(db, user, package_id=2)

    assert (order.price, order.points, order.status) == (100, 120, "pending")
    assert form["data"]["MerchantTradeNo"] == order.id
    assert form["data"]["TotalAmount"] == 100

    assert order_service.handle_notify(db, _notify(order.id)) == "1|OK"
    assert order_service.handle_notify(db, _notify(order.id)) == "1|OK"

    db.refresh(user)
    db.refresh(order)
    assert user.loyalty_points == 125
    assert order.status == "completed"
    assert order.trade_amount == 100
    rows = db.execute(select(PointsTransaction).where(PointsTransaction.user_id == user.id)).scalars().all()
    assert [(r.type, r.amount, r.balance_after, r.order_id) for r in rows] == [("purchase", 120, 125, order.id)]


def test_failed_payment_marks_order(db, make_user):
    user = make_user()
    order, _ = order_service.create_order(db, user, package_id=1)

    assert order_service.handle_notify(db, _notify(order.id, rtn_code="10100058", RtnMsg="Declined")) == "0|FAIL"

    db.refresh(order)
    assert order.status == "failed"
    assert order.fail_reason == "Declined"


def test_tampered_notify_is_rejected(db, make_user):
    order, _ = order_service.create_order(db, make_user(), package_id=1)
    params = _notify(order.id)
    params["TradeAmt"] = "1"
    with pytest.raises(InvalidCheckValue):
        order_service.handle_notify(db, params)


def test_order_input_validation(db, make_user, make_event):
    user = make_user()
    with pytest.raises(MissingParameters):
        order_service.create_order(db, user)
    with pytest.raises(InvalidPackage):
        order_service.create_order(db, user, package_id=99)
    with pytest.raises(EventExpired):
        order_service.create_order(db, user, event_id=make_event(ends_in=timedelta(hours=-1)).id)


def test_unconsumed_code_orders_are_reported_after_grace(db, make_user, make_event):
    user = make_user()
    event = make_event(price_points=300)
    order, _ = order_service.create_order(db, user, event_id=event.id)
    assert order.purpose == "code" and order.price == 300
    order_service.handle_notify(db, _notify(order.id))

    now = utcnow()
    assert order_service.orphaned_code_orders(db, now=now, grace_hours=24) == []
    late = order_service.orphaned_code_orders(db, now=now + timedelta(hours=25), grace_hours=24)
    assert [o.id for o in late] == [order.id]

    order.consumed_by_code_id = "some-code"
    db.commit()
    assert order_service.orphaned_code_orders(db, now=now + timedelta(hours=25), grace_hours=24) == []


def test_paid_amount_mismatch_is_logged(db, make_user, log_messages):
    user = make_user(points=0)
    order, _ = order_service.create_order(db, user, package_id=1)

    assert order_service.handle_notify(db, _notify(order.id, TradeAmt="1")) == "1|OK"

    assert any("paid amount differs" in m and f"order={order.id}" in m for m in log_messages)
    db.refresh(order)
    assert order.trade_amount == 1
