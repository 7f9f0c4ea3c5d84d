import os

# Settings are read at import time; pin them before anything from ticketswift loads.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["ADMIN_EMAILS"] = ""

import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ticketswift.core.clock import utcnow
from ticketswift.core.security import create_access_token, hash_password
from ticketswift.db.session import Base, get_db
from ticketswift.main import app
from ticketswift.models.event import Event
from ticketswift.models.order import Order  # noqa: F401
from ticketswift.models.points_transaction import PointsTransaction  # noqa: F401
from ticketswift.models.user import User
from ticketswift.models.verification_code import VerificationCode  # noqa: F401


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email=None, points=0, api_key="sk-test-key", role="user", password="secret123"):
        u = User(
            id=str(uuid.uuid4()),
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            full_name="Test User",
            role=role,
            password_hash=hash_password(password),
            is_active=True,
            loyalty_points=points,
            external_api_key=api_key,
        )
        db.add(u)
        db.commit()
        db.refresh(u)
        return u
    return _make


@pytest.fixture
def make_event(db):
    def _make(ends_in=timedelta(days=1), price_points=100, name="Spring Tour", prefix=""):
        now = utcnow()
        e = Event(
            id=str(uuid.uuid4()),
            name=name,
            venue="Taipei Arena",
            activity_url="https://tixcraft.com/activity/detail/spring",
            on_sale_date=now - timedelta(days=2),
            end_date=now + ends_in,
            actual_ticket_time=now + timedelta(hours=12),
            price_points=price_points,
            code_prefix=prefix,
        )
        db.add(e)
        db.commit()
        db.refresh(e)
        return e
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers


@pytest.fixture
def log_messages():
    """Formatted loguru output captured for the duration of a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG", format="{message} {extra}")
    yield messages
    logger.remove(handler_id)
