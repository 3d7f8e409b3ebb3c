from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from civicalert.models.user import UserRecord, UserRole


class TokenPayload(BaseModel):
    sub: str  # Subject (user id from the identity provider)
    exp: int  # Expiration timestamp
    iat: int | None = None  # Issued at timestamp


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    email: EmailStr
    role: UserRole

    @field_validator("username", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class SignupResponse(BaseModel):
    success: bool = True
    message: str


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Both tokens are optional here: the bot check runs before the ID token
    # is required, and each failure has its own message.
    id_token: str | None = Field(None, alias="idToken")
    recaptcha_token: str | None = Field(None, alias="recaptchaToken")


class UserOut(BaseModel):
    """Public view of a user record. Never carries credentials."""

    model_config = ConfigDict(populate_by_name=True)

    username: str
    email: str
    role: str
    created_at: int | None = Field(None, alias="createdAt")  # epoch milliseconds

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserOut":
        created_at = None
        if record.created_at is not None:
            created_at = int(record.created_at.timestamp() * 1000)
        return cls(
            username=record.username,
            email=record.email,
            role=record.role,
            created_at=created_at,
        )


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Login successful"
    user: UserOut
    access_token: str = Field(..., alias="accessToken")


class CheckAuthResponse(BaseModel):
    success: bool = True
    user: UserOut


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logged out"


class AuthStatusResponse(BaseModel):
    configured: bool
    mode: str
    error: str | None = None
