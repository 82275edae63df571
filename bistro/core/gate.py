"""
Bistro API — Authorization Gate

Two stages per request:
  1. authenticate:    Authorization header → verified Identity, else Unauthenticated
  2. authorize_admin: Identity → server-side user lookup → AdminCapability, else Forbidden

Identity is derived only from a verified token. Role is read only from the
User store. Privileged store operations require an AdminCapability, which
only this module can construct.
"""
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bistro.core.errors import Forbidden, Unauthenticated
from bistro.core.security import verify_token
from bistro.models.user import UserRole

if TYPE_CHECKING:
    from bistro.db.users import UserStore

logger = logging.getLogger(__name__)

_GATE_KEY = object()


@dataclass(frozen=True)
class Identity:
    email: str
    claims: dict[str, Any] = field(default_factory=dict, compare=False)


class AdminCapability:
    """Proof that the gate checked the caller's admin role for this request."""

    __slots__ = ("email",)

    def __init__(self, email: str, *, _key: object = None):
        if _key is not _GATE_KEY:
            raise TypeError("AdminCapability is granted by the authorization gate only.")
        self.email = email

    def __repr__(self) -> str:
        return f"<AdminCapability email={self.email}>"


def authenticate(authorization: str | None) -> Identity:
    if not authorization:
        raise Unauthenticated("Missing Authorization header. Expected: Bearer <token>")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Missing Authorization header. Expected: Bearer <token>")

    claims = verify_token(token.strip())
    return Identity(email=claims["email"], claims=claims)


async def authorize_admin(identity: Identity, users: "UserStore") -> AdminCapability:
    user = await users.get_by_email(identity.email)
    if user is None or user.role != UserRole.ADMIN:
        logger.info("Admin access denied for %s", identity.email)
        raise Forbidden()
    return AdminCapability(identity.email, _key=_GATE_KEY)


def ensure_same_subject(identity: Identity, email: str) -> None:
    """Reject a path/query email that does not match the token subject."""
    if identity.email != email:
        raise Unauthenticated()
