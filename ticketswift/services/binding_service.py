from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

from ticketswift.core.clock import iso, utcnow
from ticketswift.core.errors import BindingConflict, MissingParameters
from ticketswift.core.log_config import mask_code
from ticketswift.services import code_store


@dataclass(frozen=True)
class BindingResult:
    bound: bool
    already_bound: bool
    account: str
    device_id: str | None
    bound_at: datetime | None

    def to_dict(self) -> dict:
        return {
            "bound": self.bound,
            "alreadyBound": self.already_bound,
            "boundAccount": self.account,
            "deviceId": self.device_id,
            "bindDate": iso(self.bound_at),
        }


def bind_account(db: Session, code: str | None, requester_id: str, external_account_id: str | None,
                 device_id: str | None = None, ip: str | None = None,
                 now: datetime | None = None) -> BindingResult:
    """Attach an external account to a code, at most once.

    Same account again is a no-op; a different account raises BindingConflict.
    """
    code = (code or "").strip()
    account = (external_account_id or "").strip()
    if not code or not account:
        raise MissingParameters("verificationCode and externalAccountId are required")
    now = now or utcnow()

    vc = code_store.get_owned(db, code, requester_id)

    if vc.bound_account is None:
        won = code_store.try_bind(
            db, vc.id, account=account, device_id=device_id, owner_id=requester_id, ip=ip, now=now,
        )
        db.commit()
        db.refresh(vc)
        if won:
            logger.info("code bound code={} owner={}", mask_code(vc.code), requester_id)
            return BindingResult(True, False, account, device_id, vc.bound_at)
        # another request bound it first; judge against what it wrote

    if vc.bound_account == account:
        return BindingResult(True, True, account, vc.bound_device_id, vc.bound_at)

    raise BindingConflict(code=mask_code(vc.code), owner=requester_id)
