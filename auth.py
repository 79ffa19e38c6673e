"""
Admin authentication

A single shared admin password exchanged for a bearer token. The order
endpoints only see the `AdminAuthenticator` interface, so per-admin accounts
or expiring sessions can replace `StaticTokenAuthenticator` later.
"""
import hashlib
import hmac
import re
from abc import ABC, abstractmethod
from typing import Optional

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TOKEN_PREFIX = "fd_"
TOKEN_SALT = "flashdelivery"

_BEARER_RE = re.compile(r"Bearer\s+(.*)", re.IGNORECASE)


class AdminAuthenticator(ABC):
    @abstractmethod
    def login(self, password: str) -> Optional[str]:
        """Return a bearer token for a correct password, None otherwise."""

    @abstractmethod
    def verify(self, token: Optional[str]) -> bool:
        ...


class StaticTokenAuthenticator(AdminAuthenticator):
    """Every successful login gets the same non-expiring token derived from the password."""

    def __init__(self, password: str):
        self._password_hash = pwd_context.hash(password)
        digest = hashlib.sha256((password + TOKEN_SALT).encode("utf-8")).hexdigest()
        self._token = TOKEN_PREFIX + digest[:32]

    def login(self, password: str) -> Optional[str]:
        if not password or not pwd_context.verify(password, self._password_hash):
            return None
        return self._token

    def verify(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self._token.encode("utf-8"))


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    match = _BEARER_RE.search(authorization)
    return match.group(1).strip() if match else None
