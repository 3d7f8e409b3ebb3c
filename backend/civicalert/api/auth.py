import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from civicalert.config import get_settings
from civicalert.container import ServiceContainer, get_services
from civicalert.database import get_db
from civicalert.schemas.auth import (
    AuthStatusResponse,
    CheckAuthResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    SignupRequest,
    SignupResponse,
    UserOut,
)
from civicalert.services.auth_service import AuthService
from civicalert.services.user_store import UserRecordStore
from civicalert.utils.auth import AccessCookie, SessionUserId

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])
settings = get_settings()


def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> AuthService:
    return AuthService(
        store=UserRecordStore(db),
        identity=services.identity,
        bot_check=services.bot_check,
        issuer=services.issuer,
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(data: SignupRequest, auth: AuthServiceDep) -> SignupResponse:
    await auth.signup(data)
    return SignupResponse(message="User created successfully")


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    auth: AuthServiceDep,
) -> LoginResponse:
    remote_ip = request.client.host if request.client else None
    record, tokens = await auth.login(data, remote_ip=remote_ip)
    auth.issuer.set_session_cookies(response, tokens)
    return LoginResponse(user=UserOut.from_record(record), access_token=tokens.access_token)


@router.get("/check-auth", response_model=CheckAuthResponse)
async def check_auth(user_id: SessionUserId, auth: AuthServiceDep) -> CheckAuthResponse:
    record = await auth.check_auth(user_id)
    return CheckAuthResponse(user=UserOut.from_record(record))


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    _token: AccessCookie,
    response: Response,
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> LogoutResponse:
    services.issuer.clear_session_cookies(response)
    logger.info("Session cookies cleared")
    return LogoutResponse()


@router.get("/auth/status", response_model=AuthStatusResponse)
async def auth_status() -> AuthStatusResponse:
    mode = settings.get_auth_mode()
    if mode == "unconfigured":
        return AuthStatusResponse(
            configured=False,
            mode=mode,
            error=(
                "Identity provider is not configured. "
                "Set IDENTITY_PROJECT_ID + IDENTITY_API_KEY."
            ),
        )
    return AuthStatusResponse(configured=True, mode=mode)
