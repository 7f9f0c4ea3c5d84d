from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketswift.db.session import Base

class PointsTransaction(Base):
    __tablename__ = "points_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    type: Mapped[str] = mapped_column(String(20))  # purchase, spend, refund
    amount: Mapped[int] = mapped_column(Integer)  # signed
    order_id: Mapped[str] = mapped_column(String(20), default="")
    code_id: Mapped[str] = mapped_column(String(36), default="")
    description: Mapped[str] = mapped_column(String(200), default="")
    balance_after: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
