import uuid
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ticketswift.core.errors import InsufficientPoints, UserNotFound
from ticketswift.models.points_transaction import PointsTransaction
from ticketswift.models.user import User


@dataclass(frozen=True)
class PointsPackage:
    id: int
    name: str
    price_ntd: int
    points: int


PACKAGES = {
    p.id: p for p in (
        PointsPackage(1, "Trial pack", 30, 36),
        PointsPackage(2, "Starter pack", 100, 120),
        PointsPackage(3, "Standard pack", 230, 280),
        PointsPackage(4, "Basic pack", 370, 460),
        PointsPackage(5, "Advanced pack", 630, 800),
        PointsPackage(6, "Premium pack", 870, 1130),
        PointsPackage(7, "Elite pack", 1690, 2250),
        PointsPackage(8, "Ultimate pack", 3290, 4500),
    )
}


def _ledger(db: Session, user_id: str, type_: str, amount: int, balance_after: int,
            order_id: str = "", code_id: str = "", description: str = "") -> PointsTransaction:
    tx = PointsTransaction(
        id=str(uuid.uuid4()),
        user_id=user_id,
        type=type_,
        amount=amount,
        order_id=order_id,
        code_id=code_id,
        description=description,
        balance_after=balance_after,
    )
    db.add(tx)
    return tx


def _balance(db: Session, user_id: str) -> int:
    bal = db.execute(select(User.loyalty_points).where(User.id == user_id)).scalar_one_or_none()
    if bal is None:
        raise UserNotFound(user_id=user_id)
    return int(bal)


def credit_points(db: Session, user_id: str, amount: int, *, order_id: str = "", description: str = "") -> int:
    """Add points and record a purchase row. Caller commits."""
    res = db.execute(
        update(User).where(User.id == user_id).values(loyalty_points=User.loyalty_points + amount)
    )
    if res.rowcount != 1:
        raise UserNotFound(user_id=user_id)
    balance = _balance(db, user_id)
    _ledger(db, user_id, "purchase", amount, balance, order_id=order_id, description=description)
    return balance


def debit_points(db: Session, user_id: str, amount: int, *, code_id: str = "", description: str = "") -> int:
    """Spend points without ever going negative. Caller commits."""
    if amount <= 0:
        return _balance(db, user_id)
    res = db.execute(
        update(User)
        .where(User.id == user_id, User.loyalty_points >= amount)
        .values(loyalty_points=User.loyalty_points - amount)
    )
    if res.rowcount != 1:
        _balance(db, user_id)  # UserNotFound if the user vanished
        raise InsufficientPoints(user_id=user_id, required=amount)
    balance = _balance(db, user_id)
    _ledger(db, user_id, "spend", -amount, balance, code_id=code_id, description=description)
    return balance


def history(db: Session, user_id: str, limit: int = 100) -> list[PointsTransaction]:
    return list(db.execute(
        select(PointsTransaction)
        .where(PointsTransaction.user_id == user_id)
        .order_by(PointsTransaction.created_at.desc())
        .limit(limit)
    ).scalars())
