import logging
from typing import Optional

from civicalert.exceptions import (
    AuthError,
    BotCheckFailed,
    ConflictError,
    NotFound,
    Unauthorized,
    UnexpectedError,
    ValidationFailed,
)
from civicalert.models.user import UserRecord
from civicalert.schemas.auth import LoginRequest, SignupRequest
from civicalert.services.bot_check import RecaptchaVerifier
from civicalert.services.identity_provider import IdentityProviderClient
from civicalert.services.session_tokens import SessionTokenIssuer, SessionTokens
from civicalert.services.user_store import UserRecordStore

logger = logging.getLogger(__name__)


class AuthService:
    """Signup, login and session checks composed over the external collaborators.

    Taxonomy errors (``AuthError`` subclasses) propagate unchanged; anything
    else raised by a collaborator is logged with its original type and
    surfaced as ``UnexpectedError``.
    """

    def __init__(
        self,
        store: UserRecordStore,
        identity: IdentityProviderClient,
        bot_check: RecaptchaVerifier,
        issuer: SessionTokenIssuer,
    ):
        self.store = store
        self.identity = identity
        self.bot_check = bot_check
        self.issuer = issuer

    async def signup(self, data: SignupRequest) -> UserRecord:
        """
        Create an identity provider account and its user record.

        Email and username uniqueness are checked before any write. The check
        is read-then-write, so two concurrent signups can both pass it.
        Signup does not establish a session.
        """
        try:
            if await self.store.exists_with("email", data.email):
                raise ConflictError("Email already exists")
            if await self.store.exists_with("username", data.username):
                raise ConflictError("Username already exists")

            user_id = await self.identity.create_account(data.email, data.password)
            record = await self.store.set(
                user_id,
                username=data.username,
                email=data.email,
                role=data.role.value,
            )
        except AuthError as e:
            logger.warning("Signup rejected for %s: %s", data.username, e.message)
            raise
        except Exception as e:
            logger.exception("Error during signup (%s)", type(e).__name__)
            raise UnexpectedError(cause=e) from e

        logger.info("User %s created with role %s", record.id, record.role)
        return record

    async def login(
        self, data: LoginRequest, remote_ip: Optional[str] = None
    ) -> tuple[UserRecord, SessionTokens]:
        """Verify the bot check and ID token, then mint session tokens.

        The bot check runs first; a failed check never reaches the identity
        provider.
        """
        try:
            if not await self.bot_check.verify(data.recaptcha_token, remote_ip):
                raise BotCheckFailed()

            if not data.id_token:
                raise ValidationFailed("ID token is required")

            claims = await self.identity.verify_id_token(data.id_token)
            user_id = claims["sub"]

            record = await self.store.get(user_id)
            if record is None:
                raise NotFound()

            tokens = self.issuer.issue(user_id)
        except AuthError as e:
            logger.warning("Login rejected: %s", e.message)
            raise
        except Exception as e:
            logger.exception("Error during login (%s)", type(e).__name__)
            raise UnexpectedError("An error occurred during login", cause=e) from e

        logger.info("User %s logged in", user_id)
        return record, tokens

    async def check_auth(self, user_id: Optional[str]) -> UserRecord:
        if not user_id:
            raise Unauthorized()

        try:
            record = await self.store.get(user_id)
        except Exception as e:
            logger.exception("Error during checkAuth (%s)", type(e).__name__)
            raise UnexpectedError(cause=e) from e

        if record is None:
            raise NotFound()
        return record
