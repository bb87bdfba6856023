"""
FastAPI Dependencies.

Shared dependencies for request handling: database session, request id,
file storage and the requesting user.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.backend.core.config import get_app_config
from notegraph.backend.core.database import get_db_session
from notegraph.backend.core.exceptions import AuthenticationError
from notegraph.backend.core.logging import get_logger
from notegraph.backend.core.storage import FileStorage
from notegraph.backend.models.user import User
from notegraph.backend.services.auth import AuthService

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]

bearer_scheme = HTTPBearer(auto_error=False)


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


def get_file_storage() -> FileStorage:
    """Attachment storage rooted at the configured upload directory."""
    return FileStorage.from_config()


Storage = Annotated[FileStorage, Depends(get_file_storage)]


async def get_optional_user(
    db: DbSession,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User | None:
    """
    Resolve the bearer token when one is sent.

    No credential means an anonymous requester, unless the
    ``auth_require_api_authentication`` feature flag is on. A credential
    that is present but invalid is always rejected.

    Raises:
        AuthenticationError: Invalid token, or missing token when required
    """
    if credentials is None:
        if get_app_config().features.auth_require_api_authentication:
            raise AuthenticationError("Authentication required")
        return None
    return await AuthService(db).get_user_for_token(credentials.credentials)


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    """
    Get the authenticated user.

    Raises:
        AuthenticationError: If no valid bearer token was sent
    """
    if user is None:
        raise AuthenticationError("Authentication required")
    return user


OptionalUser = Annotated[User | None, Depends(get_optional_user)]
CurrentUser = Annotated[User, Depends(get_current_user)]
