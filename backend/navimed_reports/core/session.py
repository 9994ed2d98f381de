"""
Session context — the caller's identity and bearer credential.

Login, token refresh and token storage belong to the surrounding
application; this module only holds whatever session is current so that
each download attempt can read it at the moment it starts.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    user_id: str
    token: str
    tenant_id: Optional[str] = None
    role: Optional[str] = None
    username: Optional[str] = None

    @classmethod
    def from_token(cls, token: str) -> "Session":
        """
        Build a session from a NaviMed access token.

        Claims are read without signature verification; the backend verifies
        the token on every request. Raises JWTError for tokens that cannot be
        decoded or carry no user id.
        """
        claims = jwt.get_unverified_claims(token)
        user_id = claims.get("userId") or claims.get("sub")
        if not user_id:
            raise JWTError("Token has no userId claim")
        return cls(
            user_id=str(user_id),
            token=token,
            tenant_id=claims.get("tenantId"),
            role=claims.get("role"),
            username=claims.get("username"),
        )


class SessionProvider:
    """Holds the current session; read fresh at every call to ``current``."""

    def __init__(self, session: Optional[Session] = None) -> None:
        self._session = session

    def current(self) -> Optional[Session]:
        return self._session

    def sign_in(self, session: Session) -> None:
        self._session = session
        logger.info(f"Session set for user {session.user_id}")

    def sign_in_with_token(self, token: str) -> Session:
        session = Session.from_token(token)
        self.sign_in(session)
        return session

    def sign_out(self) -> None:
        self._session = None
        logger.info("Session cleared")


def session_from_token(token: Optional[str]) -> Optional[Session]:
    """Decode a configured token, returning None if it is absent or unreadable."""
    if not token:
        return None
    try:
        return Session.from_token(token)
    except JWTError as e:
        logger.warning(f"Ignoring unreadable auth token: {e}")
        return None
