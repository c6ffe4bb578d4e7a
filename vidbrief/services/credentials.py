"""Password hashing and token issuance."""

from __future__ import annotations

import asyncio
import base64
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from vidbrief.core.config import Settings
from vidbrief.core.constants import REFRESH_TOKEN_BYTES, VERIFICATION_TOKEN_BYTES
from vidbrief.core.errors import AuthenticationError

JWT_ALGORITHM = "HS256"

# Scrypt work factors for interactive logins.
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_LENGTH = 32
SALT_BYTES = 16
HASH_SCHEME = "scrypt"


@dataclass(frozen=True)
class TokenClaims:
    account_id: str
    email: str
    expires_at: datetime


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    expires_at: datetime
    refresh_expires_at: datetime


def _b64encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _b64decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _kdf(salt: bytes, n: int, r: int, p: int) -> Scrypt:
    return Scrypt(salt=salt, length=SCRYPT_LENGTH, n=n, r=r, p=p)


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    derived = _kdf(salt, SCRYPT_N, SCRYPT_R, SCRYPT_P).derive(password.encode("utf-8"))
    return f"{HASH_SCHEME}${SCRYPT_N}${SCRYPT_R}${SCRYPT_P}${_b64encode(salt)}${_b64encode(derived)}"


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison of `password` against a stored hash."""
    try:
        scheme, n, r, p, salt, expected = password_hash.split("$")
        if scheme != HASH_SCHEME:
            return False
        _kdf(_b64decode(salt), int(n), int(r), int(p)).verify(password.encode("utf-8"), _b64decode(expected))
    except InvalidKey:
        return False
    except ValueError:
        # Malformed stored hash.
        return False
    return True


# Stand-in hash checked for unknown accounts.
_DUMMY_PASSWORD_HASH = hash_password(secrets.token_hex(16))


class CredentialService:
    def __init__(
        self,
        secret: str,
        *,
        access_token_ttl: timedelta = timedelta(hours=24),
        refresh_token_ttl: timedelta = timedelta(days=30),
    ) -> None:
        self._secret = secret
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> CredentialService:
        return cls(
            settings.jwt_secret,
            access_token_ttl=timedelta(hours=settings.access_token_ttl_hours),
            refresh_token_ttl=timedelta(days=settings.refresh_token_ttl_days),
        )

    async def hash_password(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password)

    async def verify_password(self, password: str, password_hash: str | None) -> bool:
        return await asyncio.to_thread(verify_password, password, password_hash or _DUMMY_PASSWORD_HASH)

    def new_refresh_token(self) -> tuple[str, datetime]:
        return secrets.token_hex(REFRESH_TOKEN_BYTES), datetime.now(UTC) + self.refresh_token_ttl

    def issue_access_token(self, account_id: str, email: str) -> tuple[str, datetime]:
        now = datetime.now(UTC)
        claims: dict[str, Any] = {
            "sub": account_id,
            "email": email,
            "iat": int(now.timestamp()),
            "exp": int((now + self.access_token_ttl).timestamp()),
        }
        token = jwt.encode(claims, self._secret, algorithm=JWT_ALGORITHM)
        return token, datetime.fromtimestamp(claims["exp"], UTC)

    def issue(self, account_id: str, email: str, refresh: tuple[str, datetime] | None = None) -> IssuedTokens:
        access_token, expires_at = self.issue_access_token(account_id, email)
        refresh_token, refresh_expires_at = refresh or self.new_refresh_token()
        return IssuedTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            refresh_expires_at=refresh_expires_at,
        )

    def verify(self, access_token: str) -> TokenClaims:
        """Decode a self-contained access token.

        Tokens cannot be revoked before `exp`; only the refresh token is stored server side.
        """
        try:
            claims = jwt.decode(
                access_token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("Auth token expired.") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("Invalid auth token.") from exc

        account_id = claims.get("sub")
        if not account_id:
            raise AuthenticationError("Invalid auth token.")

        return TokenClaims(
            account_id=str(account_id),
            email=str(claims.get("email") or ""),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), UTC),
        )

    @staticmethod
    def new_verification_token() -> str:
        return secrets.token_hex(VERIFICATION_TOKEN_BYTES)
