"""
Attachment Service.

Upload, listing, download and removal of files attached to notes.
"""

from pathlib import Path

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.backend.core.exceptions import NotFoundError
from notegraph.backend.core.storage import FileStorage
from notegraph.backend.models.attachment import Attachment
from notegraph.backend.models.user import User
from notegraph.backend.repositories.attachment import AttachmentRepository
from notegraph.backend.repositories.note import NoteRepository
from notegraph.backend.services.access import can_read, ensure_readable, ensure_writable
from notegraph.backend.services.base import BaseService


class AttachmentService(BaseService):
    """Service for note attachments. File bytes go through ``FileStorage``."""

    def __init__(self, session: AsyncSession, storage: FileStorage) -> None:
        super().__init__(session)
        self.storage = storage
        self.repo = AttachmentRepository(session)
        self.note_repo = NoteRepository(session)

    async def upload(
        self,
        note_id: str,
        upload: UploadFile,
        requester: User | None,
    ) -> Attachment:
        """
        Store ``upload`` and attach it to a note the requester owns.

        Raises:
            NotFoundError: If the note is absent or not readable
            AuthorizationError: If the requester does not own the note
            ValidationError: Missing file, disallowed type or too large
        """
        note = await self.note_repo.get_by_id_or_none(note_id)
        ensure_writable(note, requester)

        async with self.storage.stage(upload) as staged:
            attachment = await self._execute_db_operation(
                "upload_attachment",
                self.repo.create(
                    note_id=note_id,
                    filename=staged.filename,
                    original_filename=staged.original_filename,
                    file_path=str(staged.final_path),
                    file_size=staged.size,
                    mime_type=staged.mime_type,
                    uploaded_by=requester.id,
                ),
            )
            await staged.commit()
            await self._execute_db_operation("upload_attachment_commit", self.session.commit())

        self._log_operation(
            "Attachment uploaded",
            attachment_id=attachment.id,
            note_id=note_id,
            size=attachment.file_size,
        )
        return attachment

    async def list_for_note(self, note_id: str, requester: User | None) -> list[Attachment]:
        """
        Attachments of a readable note, newest first.

        Raises:
            NotFoundError: If the note is absent or not readable
        """
        note = await self.note_repo.get_by_id_or_none(note_id)
        ensure_readable(note, requester)
        return await self.repo.list_for_note(note_id)

    async def _get_readable(self, attachment_id: str, requester: User | None) -> Attachment:
        attachment = await self.repo.get_by_id_or_none(attachment_id)
        if attachment is None:
            raise NotFoundError("Attachment not found")
        note = await self.note_repo.get_by_id_or_none(attachment.note_id)
        if note is None or not can_read(note, requester):
            raise NotFoundError("Attachment not found")
        return attachment

    async def get_for_download(
        self,
        attachment_id: str,
        requester: User | None,
    ) -> tuple[Attachment, Path]:
        """
        Resolve an attachment of a readable note to its file on disk.

        Raises:
            NotFoundError: Unknown attachment, unreadable note or missing file
        """
        attachment = await self._get_readable(attachment_id, requester)
        return attachment, await self.storage.open_path(attachment.file_path)

    async def delete(self, attachment_id: str, requester: User | None) -> None:
        """
        Remove an attachment of a note the requester owns.

        Raises:
            NotFoundError: Unknown attachment or unreadable note
            AuthorizationError: If the requester does not own the note
        """
        attachment = await self.repo.get_by_id_or_none(attachment_id)
        if attachment is None:
            raise NotFoundError("Attachment not found")
        note = await self.note_repo.get_by_id_or_none(attachment.note_id)
        ensure_writable(note, requester)

        self._log_operation("Deleting attachment", attachment_id=attachment_id)
        await self._execute_db_operation("delete_attachment", self.repo.delete(attachment))
        await self._execute_db_operation("delete_attachment_commit", self.session.commit())
        await self.storage.remove(attachment.file_path)
