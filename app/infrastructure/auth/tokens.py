"""Bearer token verification (HS256 shared secret)."""

from functools import lru_cache
from typing import Any

import jwt

from app.config import Settings, get_settings
from app.domain.errors import TokenExpiredError, TokenInvalidError
from app.infrastructure.telemetry.logging import get_logger

logger = get_logger(__name__)


class TokenVerifier:
    """Verifies bearer tokens issued by the authentication service.

    Tokens are minted elsewhere; this side only checks signature, expiry
    and, when configured, issuer and audience.
    """

    def __init__(self, settings: Settings):
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.issuer = settings.jwt_issuer or None
        self.audience = settings.jwt_audience or None

    async def verify_token(self, token: str) -> dict[str, Any]:
        """Verify a bearer token.

        Args:
            token: The JWT token string

        Returns:
            Decoded token claims

        Raises:
            TokenExpiredError: If token is expired
            TokenInvalidError: If token is invalid
        """
        if not self.secret:
            logger.error("Bearer token received but no JWT secret is configured")
            raise TokenInvalidError(message="Token verification is not configured")

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_aud": self.audience is not None,
                    "verify_iss": self.issuer is not None,
                },
            )

            logger.debug(
                "Token verified successfully",
                extra={"sub": claims.get("sub") or claims.get("userId")},
            )

            return claims

        except jwt.ExpiredSignatureError as e:
            logger.warning("Token expired", extra={"error": str(e)})
            raise TokenExpiredError(details={"error": str(e)}) from e

        except jwt.InvalidAudienceError as e:
            logger.warning("Invalid token audience", extra={"error": str(e)})
            raise TokenInvalidError(
                message="Invalid token audience",
                details={"error": str(e)},
            ) from e

        except jwt.InvalidIssuerError as e:
            logger.warning("Invalid token issuer", extra={"error": str(e)})
            raise TokenInvalidError(
                message="Invalid token issuer",
                details={"error": str(e)},
            ) from e

        except jwt.InvalidSignatureError as e:
            logger.warning("Invalid token signature", extra={"error": str(e)})
            raise TokenInvalidError(
                message="Invalid token signature",
                details={"error": str(e)},
            ) from e

        except jwt.InvalidTokenError as e:
            logger.warning("Token rejected", extra={"error": str(e)})
            raise TokenInvalidError(details={"error": str(e)}) from e


@lru_cache
def get_token_verifier() -> TokenVerifier:
    """Get cached token verifier instance."""
    return TokenVerifier(get_settings())
