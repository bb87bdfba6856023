"""
Auth Service.

Registration, login, token refresh and profile management.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.backend.core.config import get_app_config
from notegraph.backend.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
)
from notegraph.backend.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from notegraph.backend.models.user import User
from notegraph.backend.repositories.user import UserRepository
from notegraph.backend.schemas.user import TokenResponse
from notegraph.backend.services.base import BaseService

INVALID_CREDENTIALS = "Invalid email or password"


def issue_tokens(user: User) -> TokenResponse:
    """Access and refresh token pair for ``user``."""
    claims = {"sub": user.id}
    return TokenResponse(
        access_token=create_access_token(claims),
        refresh_token=create_refresh_token(claims),
    )


class AuthService(BaseService):
    """Service for user accounts and token issuance."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = UserRepository(session)

    async def register(
        self,
        email: str,
        password: str,
        name: str | None = None,
    ) -> tuple[User, TokenResponse]:
        """
        Create an account and sign it in.

        Raises:
            AuthorizationError: If registration is switched off
            ValidationError: If the password is too short
            ConflictError: If the email is already registered
        """
        config = get_app_config()
        if not config.features.auth_allow_registration:
            raise AuthorizationError("Registration is disabled")

        self._validate_string_length(
            password,
            "password",
            min_length=config.security.password.min_length,
        )

        email = email.strip().lower()
        if await self.repo.exists_by_email(email):
            raise ConflictError("Email already registered")

        self._log_operation("Registering user")
        user = await self._execute_db_operation(
            "register",
            self.repo.create(
                email=email,
                name=name,
                password_hash=hash_password(password),
            ),
        )
        self._log_debug("User registered", user_id=user.id)
        return user, issue_tokens(user)

    async def login(self, email: str, password: str) -> tuple[User, TokenResponse]:
        """
        Check credentials and issue tokens.

        Raises:
            AuthenticationError: Unknown email or wrong password (same message)
        """
        user = await self.repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            self._logger.warning("Login failed")
            raise AuthenticationError(INVALID_CREDENTIALS)

        self._log_operation("User logged in", user_id=user.id)
        return user, issue_tokens(user)

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """
        Exchange a refresh token for a new access token.

        Raises:
            AuthenticationError: Invalid token, access token, or deleted user
        """
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        user = await self.repo.get_by_id_or_none(payload["sub"])
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return TokenResponse(access_token=create_access_token({"sub": user.id}))

    async def get_user_for_token(self, token: str) -> User:
        """
        Resolve an access token to its user.

        Raises:
            AuthenticationError: Invalid token or unknown user
        """
        payload = decode_token(token, expected_type=ACCESS_TOKEN_TYPE)
        user = await self.repo.get_by_id_or_none(payload["sub"])
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return user

    async def update_profile(self, user: User, name: str | None) -> User:
        """Change the display name. Email and password are not editable here."""
        self._log_operation("Updating profile", user_id=user.id)
        return await self._execute_db_operation(
            "update_profile",
            self.repo.update(user, name=name),
        )
