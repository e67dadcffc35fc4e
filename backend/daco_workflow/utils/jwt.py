"""JWT Token Validation for bearer tokens issued by the identity provider"""
import jwt
from typing import Any, Dict, Optional

from ..config.settings import settings
from ..domain.enums import ActorRole
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .logger import get_logger

logger = get_logger(__name__)


class JWTValidator:
    """Shared-secret JWT validator"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret = secret
        self._algorithm = algorithm

    @property
    def secret(self) -> str:
        return self._secret or settings.jwt_secret

    @property
    def algorithm(self) -> str:
        return self._algorithm or settings.jwt_algorithm

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a bearer token

        Args:
            token: Bearer token (with or without 'Bearer ' prefix)

        Returns:
            Decoded token claims

        Raises:
            AuthenticationError: If token is invalid
        """
        if not token:
            raise AuthenticationError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        options = {"verify_exp": True, "verify_aud": bool(settings.jwt_audience)}
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=settings.jwt_audience or None,
                options=options
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token has expired")
        except jwt.InvalidAudienceError as e:
            logger.warning(f"Invalid token audience: {e}")
            raise AuthenticationError("Invalid token audience")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}")

    def get_actor_context(self, token: str) -> ActorContext:
        """
        Extract actor context from validated token

        Expects `sub`, `email` and `role` claims.
        """
        claims = self.validate_token(token)

        user_id = claims.get("sub")
        email = claims.get("email") or claims.get("preferred_username")
        if not user_id or not email:
            logger.warning(f"Token missing identity claims. Available claims: {list(claims.keys())}")
            raise AuthenticationError("Token must carry 'sub' and 'email' claims")

        try:
            role = ActorRole(str(claims.get("role", "")).upper())
        except ValueError:
            raise AuthenticationError(
                f"Unknown role claim: {claims.get('role')}",
                details={"allowed_roles": [r.value for r in ActorRole]}
            )

        return ActorContext(
            user_id=user_id,
            email=email,
            display_name=claims.get("name"),
            role=role
        )


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: str) -> ActorContext:
    """
    Get current user from authorization header

    Args:
        authorization: Authorization header value

    Returns:
        ActorContext
    """
    return get_jwt_validator().get_actor_context(authorization)
