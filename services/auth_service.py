import hmac
import hashlib
import time
from dataclasses import dataclass
from typing import Optional

from core.logger import logger
from models.enums import Role


@dataclass(frozen=True)
class Identity:
    """A verified credential: who the identity provider says the caller is."""
    uid: str
    issued_at: int


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as seen by request handlers."""
    id: int
    email: str
    display_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(id=user.id, email=user.email, display_name=user.display_name, role=user.role)


class TokenVerifier:
    """
    Issues and verifies signed bearer tokens.
    Format: {uid}:{timestamp}:{signature}
    """

    def __init__(self, secret: str, ttl_seconds: int):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret.encode()
        self.ttl_seconds = ttl_seconds

    def _sign(self, data: str) -> str:
        return hmac.new(self._secret, data.encode(), hashlib.sha256).hexdigest()

    def issue(self, uid: str, now: Optional[int] = None) -> str:
        timestamp = int(time.time()) if now is None else int(now)
        data = f"{uid}:{timestamp}"
        return f"{data}:{self._sign(data)}"

    def verify(self, token: str, now: Optional[int] = None) -> Optional[Identity]:
        if not token:
            return None

        # uid may itself contain ':' so split from the right
        parts = token.rsplit(":", 2)
        if len(parts) != 3:
            return None

        uid, timestamp_str, signature = parts
        if not uid:
            return None
        try:
            timestamp = int(timestamp_str)
        except ValueError:
            return None

        current = int(time.time()) if now is None else int(now)
        if current - timestamp > self.ttl_seconds:
            logger.warning("Token expired", uid=uid)
            return None

        expected_signature = self._sign(f"{uid}:{timestamp_str}")
        if not hmac.compare_digest(expected_signature, signature):
            logger.warning("Token signature mismatch", uid=uid)
            return None

        return Identity(uid=uid, issued_at=timestamp)
