import uuid
from datetime import timedelta

from loguru import logger
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError

from ticketswift.db.session import SessionLocal
from ticketswift.core.clock import utcnow
from ticketswift.core.security import hash_password
from ticketswift.models.user import User
from ticketswift.models.event import Event


def ensure_user(db: Session, email: str, password: str, role: str, name: str, points: int = 0):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            full_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
            loyalty_points=points,
        )
    )
    db.commit()


def ensure_demo_event(db: Session):
    if db.query(Event).filter(Event.name == "Demo Concert").first():
        return
    now = utcnow()
    db.add(
        Event(
            id=str(uuid.uuid4()),
            name="Demo Concert",
            venue="Taipei Arena",
            activity_url="https://tixcraft.com/activity/detail/demo",
            on_sale_date=now + timedelta(days=7),
            end_date=now + timedelta(days=30),
            actual_ticket_time=now + timedelta(days=7),
            price_points=100,
            code_prefix="DEMO",
        )
    )
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except ProgrammingError:
            db.rollback()
            logger.warning("[seed] users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@ticketswift.app", "admin12345", "admin", "Admin")
        ensure_user(db, "demo@ticketswift.app", "demo12345", "user", "Demo User", points=500)
        ensure_demo_event(db)
    finally:
        db.close()
