"""Service layer for business logic."""

from civicalert.services.auth_service import AuthService
from civicalert.services.bot_check import RecaptchaVerifier
from civicalert.services.identity_provider import IdentityProviderClient, IdentityProviderError
from civicalert.services.session_tokens import SessionTokenIssuer, SessionTokens
from civicalert.services.user_store import UserRecordStore

__all__ = [
    "AuthService",
    "IdentityProviderClient",
    "IdentityProviderError",
    "RecaptchaVerifier",
    "SessionTokenIssuer",
    "SessionTokens",
    "UserRecordStore",
]
