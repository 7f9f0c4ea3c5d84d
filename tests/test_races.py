"""Two sessions interleaved on one file-backed database.

The second session commits between the first session's read and its write,
the way a concurrent request would.
"""
import pytest
from sqlalchemy import create_engine, select

from ticketswift.core.config import settings
from ticketswift.core.errors import BindingConflict, CodeAlreadyIssued, ModificationLimitExceeded
from ticketswift.db.session import Base
from ticketswift.models.order import Order
from ticketswift.models.points_transaction import PointsTransaction
from ticketswift.models.user import User
from ticketswift.models.verification_code import VerificationCode
from ticketswift.services import code_store, order_service
from ticketswift.services.binding_service import bind_account
from ticketswift.services.ecpay import check_mac_value
from ticketswift.services.issuance_service import issue_code
from ticketswift.services.preference_service import Preferences, update_preferences


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'ticketswift.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


def _in_other_session(session_factory, fn):
    other = session_factory()
    try:
        return fn(other)
    finally:
        other.close()


def test_bind_loser_rereads_and_conflicts(db, session_factory, make_user, make_event, monkeypatch):
    owner = make_user()
    vc = issue_code(db, owner, make_event(price_points=0).id, Preferences())
    real_try_bind = code_store.try_bind

    def other_binds_first(session, code_id, **kwargs):
        def bind_b(other):
            real_try_bind(other, code_id, **{**kwargs, "account": "tixB"})
            other.commit()
        _in_other_session(session_factory, bind_b)
        return real_try_bind(session, code_id, **kwargs)

    monkeypatch.setattr(code_store, "try_bind", other_binds_first)

    with pytest.raises(BindingConflict):
        bind_account(db, vc.code, owner.id, "tixA")

    db.expire_all()
    assert db.get(VerificationCode, vc.id).bound_account == "tixB"


def test_bind_loser_with_same_account_is_already_bound(db, session_factory, make_user, make_event, monkeypatch):
    owner = make_user()
    vc = issue_code(db, owner, make_event(price_points=0).id, Preferences())
    real_try_bind = code_store.try_bind

    def other_binds_first(session, code_id, **kwargs):
        def bind_same(other):
            real_try_bind(other, code_id, **{**kwargs, "device_id": "dev-other"})
            other.commit()
        _in_other_session(session_factory, bind_same)
        return real_try_bind(session, code_id, **kwargs)

    monkeypatch.setattr(code_store, "try_bind", other_binds_first)

    result = bind_account(db, vc.code, owner.id, "tixA", device_id="dev-mine")

    assert result.already_bound
    assert result.device_id == "dev-other"


def test_concurrent_edit_takes_the_last_slot(db, session_factory, make_user, make_event, monkeypatch):
    owner = make_user()
    vc = issue_code(db, owner, make_event(price_points=0).id, Preferences())
    for _ in range(4):
        update_preferences(db, vc.code, owner.id, Preferences(("Mine",), 1, 1))
    real_update = code_store.try_update_preferences

    def other_edits_first(session, code_id, **kwargs):
        def edit(other):
            real_update(other, code_id, **{**kwargs, "seat_keywords_csv": "Theirs"})
            other.commit()
        _in_other_session(session_factory, edit)
        return real_update(session, code_id, **kwargs)

    monkeypatch.setattr(code_store, "try_update_preferences", other_edits_first)

    with pytest.raises(ModificationLimitExceeded):
        update_preferences(db, vc.code, owner.id, Preferences(("Late",), 1, 1))

    db.expire_all()
    stored = db.get(VerificationCode, vc.id)
    assert stored.modification_count == 5
    assert stored.seat_keywords == ["Theirs"]


def test_concurrent_issuance_for_same_event_charges_once(db, session_factory, make_user, make_event,
                                                           monkeypatch):
    owner = make_user(points=200)
    event = make_event(price_points=100)
    real_find = code_store.find_for_owner_event
    raced = []

    def other_issues_first(session, owner_id, event_id):
        if raced:
            return real_find(session, owner_id, event_id)
        raced.append(True)
        _in_other_session(
            session_factory, lambda other: issue_code(other, other.get(User, owner_id), event_id, Preferences()),
        )
        return None

    monkeypatch.setattr(code_store, "find_for_owner_event", other_issues_first)

    with pytest.raises(CodeAlreadyIssued):
        issue_code(db, owner, event.id, Preferences())

    db.expire_all()
    assert len(db.execute(select(VerificationCode)).scalars().all()) == 1
    assert db.get(User, owner.id).loyalty_points == 100
    assert len(db.execute(select(PointsTransaction)).scalars().all()) == 1


def _signed_success(order_id, amount):
    params = {"MerchantTradeNo": order_id, "RtnCode": "1", "RtnMsg": "Succeeded", "TradeAmt": str(amount)}
    params["CheckMacValue"] = check_mac_value(params, settings.ECPAY_HASH_KEY, settings.ECPAY_HASH_IV)
    return params


def test_retried_notify_credits_points_once(db, session_factory, make_user):
    user = make_user(points=0)
    order, _ = order_service.create_order(db, user, package_id=1)
    first, second = session_factory(), session_factory()
    try:
        # both deliveries read the order while it is still pending
        assert first.get(Order, order.id).status == "pending"
        assert second.get(Order, order.id).status == "pending"

        assert order_service.handle_notify(first, _signed_success(order.id, 30)) == "1|OK"
        assert order_service.handle_notify(second, _signed_success(order.id, 30)) == "1|OK"
    finally:
        first.close()
        second.close()

    db.expire_all()
    assert db.get(User, user.id).loyalty_points == 36
    rows = db.execute(select(PointsTransaction).where(PointsTransaction.user_id == user.id)).scalars().all()
    assert [(r.type, r.amount) for r in rows] == [("purchase", 36)]
