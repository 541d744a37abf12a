"""
security helpers:
- Argon2 password hashing via argon2-cffi (PasswordVault)
- JWT creation/verification via PyJWT (TokenIssuer)
- JTI generation for token identifiers
"""
from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from utils.exceptions import TokenExpired, TokenInvalid

ACCESS = "access"
REFRESH = "refresh"

IDENTITY_CLAIMS = ("sub", "username", "email")
REQUIRED_CLAIMS = IDENTITY_CLAIMS + ("type", "jti", "iat", "exp")


class PasswordVault:
    """One-way salted password hashing with Argon2id."""

    def __init__(self, time_cost: int | None = None, memory_cost: int | None = None,
                 parallelism: int | None = None):
        params = {
            k: v for k, v in (
                ("time_cost", time_cost),
                ("memory_cost", memory_cost),
                ("parallelism", parallelism),
            ) if v is not None
        }
        self._hasher = PasswordHasher(**params)
        # verified against when the user does not exist, so both failure
        # paths cost one Argon2 verification
        self._dummy_hash = self._hasher.hash(secrets.token_urlsafe(16))

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2"""
        return self._hasher.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against a stored hash"""
        try:
            return self._hasher.verify(password_hash, password)
        except VerifyMismatchError:
            return False

    def verify_dummy(self, password: str) -> bool:
        self.verify(password, self._dummy_hash)
        return False

    def needs_rehash(self, password_hash: str) -> bool:
        return self._hasher.check_needs_rehash(password_hash)


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class TokenIssuer:
    """
    Mints and verifies signed access/refresh tokens.

    Access and refresh tokens are signed with different secrets and carry a
    "type" claim; each verify_* entry point only accepts its own kind.
    """

    def __init__(self, access_secret: str, refresh_secret: str, algorithm: str = "HS256",
                 access_ttl: timedelta = timedelta(minutes=30),
                 refresh_ttl: timedelta = timedelta(days=7)):
        if not access_secret or not refresh_secret:
            raise ValueError("Both access and refresh token secrets are required")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use distinct secrets")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def mint(self, payload: Dict[str, Any], secret: str, ttl: timedelta, token_type: str) -> str:
        now = _now()
        claims = dict(payload)
        claims.update(
            {
                "type": token_type,
                "jti": generate_jti(),
                "iat": int(now.timestamp()),
                "exp": int((now + ttl).timestamp()),
            }
        )
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def verify(self, token: str, secret: str, token_type: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises TokenExpired when exp is past and
        TokenInvalid for anything else wrong with it.
        """
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired("Token expired") from exc
        except (jwt.InvalidTokenError, UnicodeError) as exc:
            raise TokenInvalid(f"Invalid token: {exc}") from exc

        if decoded.get("type") != token_type:
            raise TokenInvalid("Wrong token type")
        return decoded

    def mint_access(self, identity: Dict[str, Any]) -> str:
        return self.mint(identity, self._access_secret, self.access_ttl, ACCESS)

    def mint_refresh(self, identity: Dict[str, Any]) -> str:
        return self.mint(identity, self._refresh_secret, self.refresh_ttl, REFRESH)

    def mint_pair(self, identity: Dict[str, Any]) -> Tuple[str, str]:
        """Return (access_token, refresh_token) for the given identity claims."""
        identity = {k: identity[k] for k in IDENTITY_CLAIMS}
        return self.mint_access(identity), self.mint_refresh(identity)

    def verify_access(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self._access_secret, ACCESS)

    def verify_refresh(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self._refresh_secret, REFRESH)
