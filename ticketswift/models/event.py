from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketswift.db.session import Base

class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    venue: Mapped[str] = mapped_column(String(200), default="")
    activity_url: Mapped[str] = mapped_column(String(500), default="")  # ticketing site page the agent opens

    on_sale_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)  # codes expire after this
    actual_ticket_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)  # real on-sale instant

    price_points: Mapped[int] = mapped_column(Integer, default=0)
    code_prefix: Mapped[str] = mapped_column(String(12), default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
