import logging
from dataclasses import dataclass
from typing import Annotated, Optional, Union

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError

from civicalert.container import ServiceContainer, get_services
from civicalert.exceptions import Unauthorized
from civicalert.services.session_tokens import ACCESS_TOKEN_COOKIE, SessionTokenIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Authenticated:
    user_id: str


@dataclass(frozen=True)
class Rejected:
    reason: str


SessionVerdict = Union[Authenticated, Rejected]


def verify_session_cookie(token: Optional[str], issuer: SessionTokenIssuer) -> SessionVerdict:
    """Check an access-token cookie value. Never raises."""
    if not token:
        return Rejected("Unauthorized - No token found")

    try:
        payload = issuer.decode_access_token(token)
    except ExpiredSignatureError:
        return Rejected("Unauthorized - Token expired")
    except (JWTError, ValueError) as e:
        logger.warning("Access token verification failed: %s", e)
        return Rejected("Unauthorized - Invalid token")

    if not payload.sub:
        return Rejected("Unauthorized - Invalid token")
    return Authenticated(payload.sub)


async def get_session_user_id(
    request: Request,
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> str:
    """
    Resolve the user id bound to the request's access-token cookie.

    Every outcome is terminal: the user id is attached to ``request.state``
    and returned, or ``Unauthorized`` is raised and answered with 401.
    The record store is not consulted here.
    """
    verdict = verify_session_cookie(request.cookies.get(ACCESS_TOKEN_COOKIE), services.issuer)

    if isinstance(verdict, Authenticated):
        request.state.user_id = verdict.user_id
        return verdict.user_id
    if isinstance(verdict, Rejected):
        raise Unauthorized(verdict.reason)
    raise TypeError(f"Unhandled session verdict: {verdict!r}")


async def require_access_cookie(request: Request) -> str:
    """Presence-only check used by logout; the token is not verified."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise Unauthorized("no token found")
    return token


# Type aliases for dependency injection
SessionUserId = Annotated[str, Depends(get_session_user_id)]
AccessCookie = Annotated[str, Depends(require_access_cookie)]
