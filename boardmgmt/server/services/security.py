"""
Password hashing and access tokens.

Passwords are hashed with bcrypt. Access tokens are HS256 JWTs carrying the user's
identity, role names and aggregated permission claims (``"<module>:<mask>"``).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional

import bcrypt
import jwt

from boardmgmt.core.database.entities.identity import User
from boardmgmt.core.exceptions import UnauthorizedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.server.core.config import JwtConfig, settings

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"


class PasswordHasher:
    """bcrypt password hashing."""

    def __init__(self, rounds: Optional[int] = None) -> None:
        self.rounds = rounds or settings.jwt.password_hash_rounds

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is not a valid bcrypt hash")
            return False


class JwtTokenService:
    """Issue and validate access tokens."""

    def __init__(self, config: Optional[JwtConfig] = None) -> None:
        self.config = config or settings.jwt

    def create_token(self, user: User, roles: Iterable[str], permission_claims: Iterable[str]) -> str:
        """
        Create a signed access token for ``user``.

        Args:
            user: Authenticated user
            roles: Role names of the user
            permission_claims: ``"<module>:<mask>"`` strings

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": user.id,
            "email": user.email,
            "name": user.name,
            "roles": list(roles),
            "permission": list(permission_claims),
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "iat": now,
            "exp": now + timedelta(minutes=self.config.expires_minutes),
        }
        return jwt.encode(payload, self.config.secret, algorithm=JWT_ALGORITHM)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a token and return its claims.

        Raises:
            UnauthorizedError: If the token is expired, malformed or signed for another audience
        """
        try:
            claims = jwt.decode(
                token,
                self.config.secret,
                algorithms=[JWT_ALGORITHM],
                audience=self.config.audience,
                issuer=self.config.issuer,
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired.")
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected access token: {e}")
            raise UnauthorizedError("Invalid token.")
        if not claims.get("sub"):
            raise UnauthorizedError("Invalid token.")
        return claims


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


@lru_cache(maxsize=1)
def get_token_service() -> JwtTokenService:
    return JwtTokenService()
