from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from ticketswift.db.session import Base

DEFAULT_MAX_MODIFICATIONS = 5

class VerificationCode(Base):
    __tablename__ = "verification_codes"
    __table_args__ = (
        UniqueConstraint("owner_id", "event_id", name="uq_verification_code_owner_event"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    owner_id: Mapped[str] = mapped_column(String(36), index=True)
    event_id: Mapped[str] = mapped_column(String(36), index=True)

    # Preferences. Keywords are kept in priority order.
    seat_keywords_csv: Mapped[str] = mapped_column(String(1000), default="")
    session_index: Mapped[int] = mapped_column(Integer, default=1)
    ticket_count: Mapped[int] = mapped_column(Integer, default=1)

    # Binding to an external (Tixcraft) account; bound_account is set at most once
    bound_account: Mapped[str | None] = mapped_column(String(200), nullable=True)
    bound_device_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    bound_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    bound_by_owner_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    bound_from_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    modification_count: Mapped[int] = mapped_column(Integer, default=0)
    max_modifications: Mapped[int] = mapped_column(Integer, default=DEFAULT_MAX_MODIFICATIONS)
    last_modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # active, used, expired. Informational; expiry is decided from events.end_date.
    status: Mapped[str] = mapped_column(String(20), default="active")

    order_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    points_spent: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def seat_keywords(self) -> list[str]:
        return [s.strip() for s in (self.seat_keywords_csv or "").split(",") if s.strip()]

    @property
    def remaining_modifications(self) -> int:
        return max(0, int(self.max_modifications) - int(self.modification_count))
