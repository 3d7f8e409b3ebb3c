from dataclasses import dataclass

import httpx
from fastapi import Request

from civicalert.config import Settings
from civicalert.services.bot_check import RecaptchaVerifier
from civicalert.services.identity_provider import IdentityProviderClient
from civicalert.services.session_tokens import SessionTokenIssuer


@dataclass
class ServiceContainer:
    """Process-wide clients, built once at startup and read-only afterwards."""

    settings: Settings
    http: httpx.AsyncClient
    identity: IdentityProviderClient
    bot_check: RecaptchaVerifier
    issuer: SessionTokenIssuer

    async def aclose(self) -> None:
        await self.http.aclose()


def build_container(settings: Settings) -> ServiceContainer:
    http = httpx.AsyncClient(timeout=settings.http_timeout)
    return ServiceContainer(
        settings=settings,
        http=http,
        identity=IdentityProviderClient(http, settings),
        bot_check=RecaptchaVerifier(http, settings),
        issuer=SessionTokenIssuer(settings),
    )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services
