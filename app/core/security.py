"""Password hashing and JWT issuing/validation for bearer authentication."""

import base64
import enum
import logging
import math
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_BYTES = 72


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage; the result embeds cost and salt."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time digest compare)."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenErrorKind(str, enum.Enum):
    EMPTY = "empty"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    UNSUPPORTED = "unsupported"
    INVALID_SIGNATURE = "invalid-signature"


class TokenValidationError(Exception):
    """Raised by TokenCodec.validate; `kind` tells why the token was rejected."""

    def __init__(self, kind: TokenErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


class TokenCodec:
    """
    Issues and validates HS256 bearer tokens with sub (username), iat and exp claims.

    The key is the base64-decoded secret; both key and TTL are fixed at construction.
    `now` may be passed to either method to pin the clock.
    """

    def __init__(self, secret_b64: str, ttl_ms: int) -> None:
        self._key = base64.b64decode(secret_b64)
        self.ttl = timedelta(milliseconds=ttl_ms)

    def issue(self, username: str, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": username,
            "iat": math.floor(issued_at.timestamp()),
            "exp": math.ceil((issued_at + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self._key, algorithm=JWT_ALGORITHM)

    def validate(self, token: str | None, now: datetime | None = None) -> str:
        """Return the token's subject; raise TokenValidationError otherwise."""
        if token is None or not token.strip():
            raise TokenValidationError(TokenErrorKind.EMPTY)
        try:
            # Expiry is checked below against `now` so tests can control the clock.
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["sub", "iat", "exp"], "verify_exp": False},
            )
        except jwt.InvalidSignatureError as e:
            raise TokenValidationError(TokenErrorKind.INVALID_SIGNATURE, str(e)) from e
        except jwt.InvalidAlgorithmError as e:
            raise TokenValidationError(TokenErrorKind.UNSUPPORTED, str(e)) from e
        except jwt.PyJWTError as e:
            raise TokenValidationError(TokenErrorKind.MALFORMED, str(e)) from e

        exp = payload["exp"]
        if not isinstance(exp, int | float):
            raise TokenValidationError(TokenErrorKind.MALFORMED, "exp is not numeric")
        current = (now or datetime.now(UTC)).timestamp()
        if current >= exp:
            raise TokenValidationError(TokenErrorKind.EXPIRED, f"expired at {int(exp)}")

        sub = payload["sub"]
        if not isinstance(sub, str) or not sub:
            raise TokenValidationError(TokenErrorKind.MALFORMED, "sub is not a username")
        return sub


@lru_cache
def get_token_codec() -> TokenCodec:
    """Return the process-wide codec built from settings."""
    return TokenCodec(
        settings.JWT_SECRET.get_secret_value(),
        settings.JWT_EXPIRATION_MS,
    )


def create_access_token(username: str) -> str:
    """Create a signed bearer token for the given username."""
    return get_token_codec().issue(username)


def username_from_token(token: str | None) -> str | None:
    """
    Validate a bearer token and return its username, or None if it is not acceptable.
    Failures are logged, never raised.
    """
    try:
        return get_token_codec().validate(token)
    except TokenValidationError as e:
        logger.error("JWT validation failed: kind=%s detail=%s", e.kind.value, e.detail)
        return None
