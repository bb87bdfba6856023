"""
Attachment Repository.

Data access layer for attachment metadata.
"""

from sqlalchemy import select

from notegraph.backend.models.attachment import Attachment
from notegraph.backend.repositories.base import BaseRepository


class AttachmentRepository(BaseRepository[Attachment]):
    """Repository for Attachment model."""

    model = Attachment

    async def list_for_note(self, note_id: str) -> list[Attachment]:
        result = await self.session.execute(
            select(Attachment)
            .where(Attachment.note_id == note_id)
            .order_by(Attachment.created_at.desc(), Attachment.id)
        )
        return list(result.scalars().all())

    async def file_paths_for_note(self, note_id: str) -> list[str]:
        """Stored file paths, collected before a note delete cascades the rows away."""
        result = await self.session.execute(
            select(Attachment.file_path).where(Attachment.note_id == note_id)
        )
        return list(result.scalars().all())
