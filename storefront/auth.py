# storefront/auth.py
"""
Session verification and role resolution.

One resolver answers "what role does this session have" for every caller:
the /admin page gate, the admin API dependency, and /api/me/role (which the
CLI uses to decide whether to show admin menu entries). Any failure along
the way resolves to "no role".
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt
from starlette.requests import HTTPConnection

from .errors import NotFound, describe_error
from .users import UserHooks, claim_role

logger = logging.getLogger(__name__)

SESSION_COOKIE = "__session"


@dataclass(frozen=True)
class Session:
    subject: str
    claims: Dict[str, Any] = field(default_factory=dict)


def bearer_token(conn: HTTPConnection) -> Optional[str]:
    header = conn.headers.get("authorization")
    if header and header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return conn.cookies.get(SESSION_COOKIE) or None


class AuthorizationResolver:
    def __init__(self, users: UserHooks, key: Optional[str], algorithms: List[str]):
        self.users = users
        self.key = key
        self.algorithms = algorithms
        if not key:
            logger.warning("SESSION_KEY is not set; every request will be treated as signed out")

    def verify(self, token: Optional[str]) -> Optional[Session]:
        if not token or not self.key:
            return None
        try:
            claims = jwt.decode(token, self.key, algorithms=self.algorithms, options={"verify_aud": False})
        except JWTError as e:
            logger.info("Rejected session token: %s", e)
            return None
        subject = claims.get("sub")
        if not subject:
            return None
        return Session(subject=subject, claims=claims)

    def session(self, conn: HTTPConnection) -> Optional[Session]:
        return self.verify(bearer_token(conn))

    async def role(self, session: Optional[Session]) -> Optional[str]:
        if session is None:
            return None
        # the users row is authoritative; the claim only covers users without one
        try:
            user = await self.users.get(session.subject)
            return user.role
        except NotFound:
            return claim_role(session.claims)
        except Exception as e:
            logger.warning("Error checking role for %s: %s", session.subject, describe_error(e))
            return None

    async def has_role(self, session: Optional[Session], role: str) -> bool:
        return (await self.role(session)) == role

    async def is_admin(self, session: Optional[Session]) -> bool:
        return await self.has_role(session, "admin")
