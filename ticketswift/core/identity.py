"""Bearer credential verification.

``verify_credential`` is the single entry point: it turns an
``Authorization`` header value into a verified caller identity or raises an
``AuthError``. It never returns a partially verified identity.
"""
from dataclasses import dataclass, field

from jose import JWTError

from ticketswift.core.errors import InvalidCredential, MissingOrMalformedCredential
from ticketswift.core.security import ACCESS, decode_token


@dataclass(frozen=True)
class CallerIdentity:
    id: str
    claims: dict = field(default_factory=dict)


def parse_bearer(authorization: str | None) -> str:
    if not authorization:
        raise MissingOrMalformedCredential(reason="no authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise MissingOrMalformedCredential(reason="not a bearer credential")
    return token


def verify_token(token: str, expected_type: str = ACCESS) -> CallerIdentity:
    try:
        payload = decode_token(token)
    except JWTError:
        raise InvalidCredential(reason="token rejected by verifier")
    if payload.get("type") != expected_type:
        raise InvalidCredential(reason="wrong token type")
    sub = payload.get("sub")
    if not sub:
        raise InvalidCredential(reason="token has no subject")
    return CallerIdentity(id=str(sub), claims=payload)


def verify_credential(authorization: str | None) -> CallerIdentity:
    return verify_token(parse_bearer(authorization))
