from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketswift.db.session import Base

class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)  # ECPay MerchantTradeNo
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    purpose: Mapped[str] = mapped_column(String(12), default="points")  # points|code

    package_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    package_name: Mapped[str] = mapped_column(String(100), default="")
    event_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    price: Mapped[int] = mapped_column(Integer)  # NTD
    points: Mapped[int] = mapped_column(Integer, default=0)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, completed, failed
    payment_method: Mapped[str] = mapped_column(String(20), default="ecpay")
    trade_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_date: Mapped[str] = mapped_column(String(30), default="")  # as reported by ECPay
    fail_reason: Mapped[str] = mapped_column(String(200), default="")

    consumed_by_code_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
