from fastapi import Depends, Header
from sqlalchemy.orm import Session
from ticketswift.db.session import get_db
from ticketswift.core.errors import ForbiddenError, InvalidCredential
from ticketswift.core.identity import CallerIdentity, verify_credential
from ticketswift.core.policy import RolePolicy, get_role_policy
from ticketswift.models.user import User


def get_current_identity(authorization: str | None = Header(default=None)) -> CallerIdentity:
    return verify_credential(authorization)


def get_current_user(
    identity: CallerIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, identity.id)
    if not user or not user.is_active:
        raise InvalidCredential(reason="user not found or inactive", user_id=identity.id)
    return user


def require_admin(
    user: User = Depends(get_current_user),
    policy: RolePolicy = Depends(get_role_policy),
) -> User:
    if not policy.is_admin(user):
        raise ForbiddenError(user_id=user.id)
    return user
