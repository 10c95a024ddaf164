"""Authentication infrastructure - bearer tokens and API keys."""

from app.infrastructure.auth.identity import (
    Authenticated,
    Credentials,
    IdentityResolver,
)
from app.infrastructure.auth.tokens import TokenVerifier, get_token_verifier

__all__ = [
    "Authenticated",
    "Credentials",
    "IdentityResolver",
    "TokenVerifier",
    "get_token_verifier",
]
