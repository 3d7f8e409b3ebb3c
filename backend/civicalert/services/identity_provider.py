import logging
import time
from typing import Any

import httpx
from jose import ExpiredSignatureError, JWTError, jwt

from civicalert.config import Settings
from civicalert.exceptions import ConflictError, TokenExpired, TokenInvalid, ValidationFailed

logger = logging.getLogger(__name__)

JWKS_CACHE_TTL = 3600


class IdentityProviderError(Exception):
    """The identity provider could not be reached or answered unexpectedly."""


class IdentityProviderClient:
    """Client for the external identity provider.

    Accounts are created through the provider's REST sign-up endpoint and
    bearer ID tokens are verified locally against the provider's published
    signing keys.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.settings = settings
        self._jwks_cache: dict[str, dict[str, Any]] = {}
        self._jwks_cache_times: dict[str, float] = {}

    async def create_account(self, email: str, password: str) -> str:
        """Create an email/password account and return its user id."""
        if not self.settings.identity_api_key:
            raise IdentityProviderError("Identity provider API key is not configured")

        try:
            response = await self.http.post(
                self.settings.identity_signup_url,
                params={"key": self.settings.identity_api_key},
                json={"email": email, "password": password, "returnSecureToken": False},
            )
        except httpx.HTTPError as e:
            logger.error("Identity provider sign-up request failed: %s", e)
            raise IdentityProviderError(f"Failed to contact identity provider: {e}") from e

        if response.status_code != 200:
            code = _error_code(response)
            if code == "EMAIL_EXISTS":
                raise ConflictError("Email already exists")
            if code.startswith("WEAK_PASSWORD"):
                raise ValidationFailed("Password should be at least 6 characters")
            if code == "INVALID_EMAIL":
                raise ValidationFailed("Invalid email")
            raise IdentityProviderError(
                f"Identity provider sign-up failed: HTTP {response.status_code} {code}"
            )

        user_id = response.json().get("localId")
        if not user_id:
            raise IdentityProviderError("Identity provider did not return a user id")
        return user_id

    async def _fetch_jwks(self) -> dict:
        url = self.settings.identity_jwks_url
        now = time.time()
        cached = self._jwks_cache.get(url)
        cache_time = self._jwks_cache_times.get(url, 0)
        if cached and (now - cache_time) < JWKS_CACHE_TTL:
            return cached

        response = await self.http.get(url)
        response.raise_for_status()
        jwks = response.json()
        self._jwks_cache[url] = jwks
        self._jwks_cache_times[url] = now
        return jwks

    async def verify_id_token(self, id_token: str) -> dict:
        """Verify a bearer ID token and return its claims.

        Raises:
            TokenExpired: the token's expiry has passed
            TokenInvalid: signature, audience, issuer or format is wrong
            IdentityProviderError: the signing keys could not be fetched
        """
        try:
            jwks = await self._fetch_jwks()
        except httpx.HTTPError as e:
            logger.error("Failed to fetch identity provider JWKS: %s", e)
            raise IdentityProviderError(f"Failed to contact identity provider: {e}") from e

        try:
            claims = jwt.decode(
                id_token,
                jwks,
                algorithms=["RS256"],
                audience=self.settings.identity_project_id,
                issuer=self.settings.identity_issuer,
                options={
                    "verify_exp": True,
                    "verify_at_hash": False,
                },
            )
        except ExpiredSignatureError:
            raise TokenExpired() from None
        except JWTError as e:
            logger.warning("ID token verification failed: %s", e)
            raise TokenInvalid() from None

        if not claims.get("sub"):
            raise TokenInvalid()
        return claims


def _error_code(response: httpx.Response) -> str:
    try:
        return str(response.json()["error"]["message"])
    except (ValueError, KeyError, TypeError):
        return "UNKNOWN"
