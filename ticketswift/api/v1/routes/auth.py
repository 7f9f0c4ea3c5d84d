from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ticketswift.db.session import get_db
from ticketswift.schemas.auth import LoginRequest, RefreshRequest
from ticketswift.schemas.common import ok
from ticketswift.models.user import User
from ticketswift.core.errors import InvalidCredential
from ticketswift.core.identity import verify_token
from ticketswift.core.security import REFRESH, create_token_pair, verify_password

router = APIRouter(tags=["auth"])


@router.post("/auth/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active:
        raise InvalidCredential(reason="unknown or inactive user")
    if not verify_password(body.password, user.password_hash):
        raise InvalidCredential(reason="wrong password", user_id=user.id)
    return ok(create_token_pair(user.id))


@router.post("/auth/refresh")
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    identity = verify_token(body.refreshToken, expected_type=REFRESH)
    user = db.get(User, identity.id)
    if not user or not user.is_active:
        raise InvalidCredential(reason="user not found or inactive", user_id=identity.id)
    return ok(create_token_pair(user.id))
