"""
Authentication Service
JWT verification shared by the HTTP routes and the socket handshake.

Tokens are issued by the account service; `generate_token` mints the same
shape for development and tests.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog

from ..config import Settings, get_settings
from ..domain.models import UserRole
from ..errors import AuthError

logger = structlog.get_logger()


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as carried by a token."""

    user_id: str
    role: UserRole


class AuthService:
    """Handle JWT token operations."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def generate_token(self, user_id: str, role: UserRole = UserRole.USER) -> str:
        """Generate JWT token for a user."""
        now = datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "role": UserRole(role).value,
            "exp": now + timedelta(days=self.settings.jwt_expiry_days),
            "iat": now,
        }
        return jwt.encode(payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def validate_token(self, token: str) -> Optional[dict]:
        """Validate JWT token and return payload."""
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError:
            logger.info("token_expired")
            return None
        except jwt.InvalidTokenError:
            logger.info("token_invalid")
            return None

    def authenticate(self, token: Optional[str]) -> Identity:
        """Resolve a token to an identity or raise AuthError."""
        if not token:
            raise AuthError("No token provided")

        payload = self.validate_token(token)
        if not payload or not payload.get("id"):
            raise AuthError("Invalid token")

        try:
            role = UserRole(payload.get("role", UserRole.USER.value))
        except ValueError:
            raise AuthError("Invalid token")
        return Identity(user_id=str(payload["id"]), role=role)
