"""
User Repository.

Data access layer for registered users.
"""

from sqlalchemy import func, select

from notegraph.backend.models.user import User
from notegraph.backend.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model. Emails are compared case-insensitively."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        result = await self.session.execute(
            select(User.id).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none() is not None
