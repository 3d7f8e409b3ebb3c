from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Response
from jose import jwt

from civicalert.config import Settings
from civicalert.schemas.auth import TokenPayload


ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class SessionTokens:
    access_token: str
    refresh_token: str
    access_max_age: int  # seconds
    refresh_max_age: int  # seconds


class SessionTokenIssuer:
    """Mints and reads the signed session tokens carried in cookies.

    Tokens hold only the user id; role and profile data are always re-read
    from the record store.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.access_ttl = timedelta(minutes=settings.access_token_ttl_minutes)
        self.refresh_ttl = timedelta(days=settings.refresh_token_ttl_days)

    def _sign(self, user_id: str, ttl: timedelta, secret: str, now: datetime) -> str:
        to_encode = {
            "sub": user_id,
            "exp": now + ttl,
            "iat": now,
        }
        return jwt.encode(to_encode, secret, algorithm=self.settings.jwt_algorithm)

    def issue(self, user_id: str, now: datetime | None = None) -> SessionTokens:
        now = now or datetime.now(timezone.utc)
        return SessionTokens(
            access_token=self._sign(
                user_id, self.access_ttl, self.settings.access_token_secret, now
            ),
            refresh_token=self._sign(
                user_id, self.refresh_ttl, self.settings.refresh_token_secret, now
            ),
            access_max_age=int(self.access_ttl.total_seconds()),
            refresh_max_age=int(self.refresh_ttl.total_seconds()),
        )

    def decode_access_token(self, token: str) -> TokenPayload:
        """Raises ``jose.JWTError`` (``ExpiredSignatureError`` when expired)."""
        payload = jwt.decode(
            token,
            self.settings.access_token_secret,
            algorithms=[self.settings.jwt_algorithm],
            options={"verify_exp": True},
        )
        return TokenPayload(**payload)

    def set_session_cookies(self, response: Response, tokens: SessionTokens) -> None:
        response.set_cookie(
            key=ACCESS_TOKEN_COOKIE,
            value=tokens.access_token,
            max_age=tokens.access_max_age,
            httponly=True,
            secure=self.settings.cookie_secure,
            samesite="strict",
            path="/",
        )
        response.set_cookie(
            key=REFRESH_TOKEN_COOKIE,
            value=tokens.refresh_token,
            max_age=tokens.refresh_max_age,
            httponly=True,
            secure=self.settings.cookie_secure,
            samesite="strict",
            path="/",
        )

    def clear_session_cookies(self, response: Response) -> None:
        for key in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
            response.set_cookie(
                key=key,
                value="",
                max_age=0,
                expires=EPOCH,
                httponly=True,
                secure=self.settings.cookie_secure,
                samesite="strict",
                path="/",
            )
