from typing import Protocol

from ticketswift.core.config import settings

ADMIN = "admin"
USER = "user"


class UserLike(Protocol):
    email: str
    role: str


class RolePolicy:
    """Maps a user to a role. Provided as a FastAPI dependency so it can be swapped."""

    def __init__(self, admin_emails: set[str] | None = None):
        self.admin_emails = {e.lower() for e in (admin_emails or set())}

    def role_for(self, user: UserLike) -> str:
        if (user.role or "").lower() in ("admin", "superadmin"):
            return ADMIN
        if (user.email or "").lower() in self.admin_emails:
            return ADMIN
        return USER

    def is_admin(self, user: UserLike) -> bool:
        return self.role_for(user) == ADMIN


def get_role_policy() -> RolePolicy:
    return RolePolicy(settings.admin_emails)
