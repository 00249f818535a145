"""
Potluck Backend: Credential Token Codec
========================================

What:  Issues and verifies the signed bearer tokens handed out at login.
How:   PyJWT, HMAC (HS256 by default) with the configured secret.
       Claims: user_id, email, iat, nbf, exp (= iat + 24h).
Who:   UserService.login() issues; the authentication gate verifies.

Tokens are stateless. Nothing is stored server-side, so a token stays valid
until it expires.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt

from potluck.exceptions import ConfigurationError, InvalidTokenError

logger = logging.getLogger(__name__)

TOKEN_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, attached to a single request."""
    user_id: UUID
    email: str


class TokenCodec:
    """
    Signs and verifies identity tokens.

    Both operations fail with ConfigurationError when no secret is
    configured, rather than signing with an empty key.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self._secret = secret
        self._algorithm = algorithm

    def _require_secret(self) -> str:
        if not self._secret:
            raise ConfigurationError(
                message="Token signing is not configured",
                context={"setting": "JWT_SECRET_KEY"},
            )
        return self._secret

    def issue(self, user_id: UUID, email: str, issued_at: Optional[datetime] = None) -> str:
        """
        Create a token valid from `issued_at` (default: now) for 24 hours.
        """
        secret = self._require_secret()
        now = issued_at or datetime.now(timezone.utc)
        payload = {
            "user_id": str(user_id),
            "email": email,
            "iat": now,
            "nbf": now,
            "exp": now + TOKEN_TTL,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        """
        Check signature, expiry and not-before, and return the identity.

        Raises:
            InvalidTokenError: malformed, tampered, expired or not yet valid
            ConfigurationError: no signing secret configured
        """
        secret = self._require_secret()
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "nbf"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError(
                message="Token has expired",
                context={"reason": "expired"},
            ) from e
        except jwt.ImmatureSignatureError as e:
            raise InvalidTokenError(
                message="Token is not valid yet",
                context={"reason": "not_before"},
            ) from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(context={"reason": type(e).__name__}) from e

        try:
            user_id = UUID(str(claims["user_id"]))
            email = str(claims["email"])
        except (KeyError, ValueError) as e:
            raise InvalidTokenError(context={"reason": "bad_claims"}) from e

        return Identity(user_id=user_id, email=email)
