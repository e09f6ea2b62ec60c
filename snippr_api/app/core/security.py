"""
Security helpers for password hashing and bearer token authentication.

Access tokens are JSON Web Tokens signed with HMAC-SHA256.  Each
token is a string of the form ``header.payload.signature`` where every
part is base64url encoded without padding.  Tokens carry the user id
(``sub``), the email, the issue time (``iat``) and the expiry
(``exp``), and are verified without any server side lookup.  There is
no revocation list: a token is good until it expires or until the
signing secret changes.

Passwords are hashed with bcrypt.  The salt and cost factor are
embedded in the hash, and verification uses ``bcrypt.checkpw`` rather
than comparing strings.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import bcrypt

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, DEFAULT_SALT_ROUNDS
from .errors import InvalidOrExpiredToken


logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_PASSWORD_BYTES = 72

_TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC-SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def _isoformat(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_at: str
    token_type: str = "bearer"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    issued_at: int
    expires_at: int


class TokenService:
    """Issue and verify signed, time limited access tokens.

    Parameters
    ----------
    secret : str
        HMAC signing secret.  Tokens signed with a different secret
        never verify.
    lifetime_seconds : int
        How long an issued token stays valid.  Defaults to 24 hours.
    clock : Callable[[], float]
        Source of the current UNIX time; tests pass a fake clock.
    """

    def __init__(
        self,
        secret: str,
        lifetime_seconds: int = ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty secret")
        self._secret = secret
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    def issue(self, user_id: int, email: str) -> IssuedToken:
        """Create a signed token for ``user_id``.

        Returns the encoded token together with its expiry as an
        ISO-8601 UTC string.
        """
        issued_at = int(self._clock())
        expires_at = issued_at + self.lifetime_seconds
        claims = {"sub": str(user_id), "email": email, "iat": issued_at, "exp": expires_at}
        header_b64 = _b64_url_encode(json.dumps(_TOKEN_HEADER, separators=(",", ":")).encode("utf-8"))
        payload_b64 = _b64_url_encode(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        signature_b64 = _b64_url_encode(_sign(signing_input, self._secret))
        return IssuedToken(
            access_token=f"{header_b64}.{payload_b64}.{signature_b64}",
            expires_at=_isoformat(expires_at),
        )

    def verify(self, token: str) -> TokenClaims:
        """Verify ``token`` and return its claims.

        Raises ``InvalidOrExpiredToken`` for a malformed token, a bad
        signature or an expired token alike; the reason is only logged
        at DEBUG level.
        """
        reason = self._check(token)
        if isinstance(reason, TokenClaims):
            return reason
        logger.debug("Rejected access token: %s", reason)
        raise InvalidOrExpiredToken()

    def _check(self, token: str):
        """Return ``TokenClaims`` on success, otherwise a reason string."""
        if not isinstance(token, str):
            return "not a string"
        parts = token.split(".")
        if len(parts) != 3:
            return "wrong number of segments"
        header_b64, payload_b64, signature_b64 = parts
        try:
            header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
            if not isinstance(header, dict) or header.get("alg") != _TOKEN_HEADER["alg"]:
                return "unsupported header"
            signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
            expected_sig = _sign(signing_input, self._secret)
            actual_sig = _b64_url_decode(signature_b64)
            # Constant-time comparison to prevent timing attacks
            if not hmac.compare_digest(expected_sig, actual_sig):
                return "signature mismatch"
            data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
            claims = TokenClaims(
                user_id=int(data["sub"]),
                email=str(data["email"]),
                issued_at=int(data["iat"]),
                expires_at=int(data["exp"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            return f"malformed token ({exc.__class__.__name__})"
        if claims.expires_at <= int(self._clock()):
            return "expired"
        return claims


def hash_password(password: str, rounds: int = DEFAULT_SALT_ROUNDS) -> str:
    """Hash a password with bcrypt using ``rounds`` as the cost factor.

    The returned string embeds the algorithm, cost and salt, so it is
    all that needs to be stored.
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check ``plain_password`` against a stored bcrypt hash.

    Returns False rather than raising for an unusable hash or an
    over-long password.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES
