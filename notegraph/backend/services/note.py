"""
Note Service.

Business logic layer for notes. Orchestrates repositories, applies the
access policy, validates tag limits and implements bulk import.
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.backend.core.config_schema import NotesSchema
from notegraph.backend.core.exceptions import ApplicationError, ValidationError
from notegraph.backend.core.storage import FileStorage
from notegraph.backend.core.utils import utc_now
from notegraph.backend.models.note import Note
from notegraph.backend.models.user import User
from notegraph.backend.repositories.attachment import AttachmentRepository
from notegraph.backend.repositories.note import NoteRepository
from notegraph.backend.schemas.note import (
    ImportItemError,
    ImportResult,
    NoteCreate,
    NoteUpdate,
    TagCount,
)
from notegraph.backend.services.access import ensure_readable, ensure_writable
from notegraph.backend.services.base import BaseService


def _first_error_message(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


class NoteService(BaseService):
    """
    Service for note business logic.

    ``requester`` is the authenticated user, or None for anonymous
    read access.
    """

    def __init__(
        self,
        session: AsyncSession,
        notes_config: NotesSchema | None = None,
        storage: FileStorage | None = None,
    ) -> None:
        super().__init__(session)
        if notes_config is None:
            from notegraph.backend.core.config import get_app_config

            notes_config = get_app_config().application.notes
        self.config = notes_config
        self.storage = storage
        self.repo = NoteRepository(session)
        self.attachment_repo = AttachmentRepository(session)

    def _validate_tags(self, tags: list[str]) -> None:
        if len(tags) > self.config.max_tags:
            raise ValidationError(
                f"Maximum {self.config.max_tags} tags allowed",
                details={"tags": f"Maximum {self.config.max_tags} tags"},
            )
        for tag in tags:
            self._validate_string_length(tag, "tag", max_length=self.config.max_tag_length)

    async def create_note(self, data: NoteCreate, requester: User) -> Note:
        """
        Create a note owned by ``requester``.

        Raises:
            ValidationError: Too many tags or a tag too long
        """
        self._validate_tags(data.tags)
        self._log_operation("Creating note", owner_id=requester.id, private=data.is_private)

        note = await self._execute_db_operation(
            "create_note",
            self.repo.create_note(
                owner_id=requester.id,
                title=data.title,
                summary=data.summary,
                content=data.content,
                images=data.images,
                is_private=data.is_private,
                tags=data.tags,
            ),
        )

        self._log_debug("Note created", note_id=note.id)
        return note

    async def get_note(self, note_id: str, requester: User | None) -> Note:
        """
        Get a note the requester may read.

        Raises:
            NotFoundError: If the note is absent or not readable
        """
        note = await self.repo.get_by_id_or_none(note_id)
        return ensure_readable(note, requester)

    async def list_notes(
        self,
        requester: User | None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Note]:
        """List readable notes, most recently updated first."""
        requester_id = requester.id if requester else None
        return await self.repo.list_readable(requester_id, limit=limit, offset=offset)

    async def update_note(
        self,
        note_id: str,
        data: NoteUpdate,
        requester: User | None,
    ) -> Note:
        """
        Update an existing note. Fields absent from ``data`` keep their values.

        Raises:
            NotFoundError: If the note is absent or not readable
            AuthorizationError: If the requester does not own the note
            ValidationError: Too many tags or a tag too long
        """
        note = await self.repo.get_by_id_or_none(note_id)
        ensure_writable(note, requester)

        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        tags = changes.pop("tags", None)
        if tags is not None:
            self._validate_tags(tags)
            note.set_tags(tags)

        self._log_operation("Updating note", note_id=note_id, fields=sorted(data.model_fields_set))

        return await self._execute_db_operation(
            "update_note",
            self.repo.update(note, updated_at=utc_now(), **changes),
        )

    async def delete_note(self, note_id: str, requester: User | None) -> None:
        """
        Delete a note with its tags, connections and attachments.

        The database cascades the rows. Stored files are removed on a
        best-effort basis after the deletion is committed.

        Raises:
            NotFoundError: If the note is absent or not readable
            AuthorizationError: If the requester does not own the note
        """
        note = await self.repo.get_by_id_or_none(note_id)
        ensure_writable(note, requester)

        file_paths = await self.attachment_repo.file_paths_for_note(note_id)
        self._log_operation("Deleting note", note_id=note_id, attachments=len(file_paths))

        await self._execute_db_operation("delete_note", self.repo.delete(note))

        if self.storage is not None and file_paths:
            # Files go only once the rows are durably gone
            await self._execute_db_operation("delete_note_commit", self.session.commit())
            for path in file_paths:
                await self.storage.remove(path)

    async def search_notes(
        self,
        query: str,
        requester: User | None,
        limit: int | None = None,
    ) -> list[Note]:
        """Search readable notes. A blank query matches nothing."""
        query = query.strip()
        if not query:
            return []

        requester_id = requester.id if requester else None
        self._log_debug("Searching notes", query=query)
        return await self.repo.search(
            query,
            requester_id,
            limit=limit or self.config.search_limit,
            text_search_config=self.config.text_search_config,
        )

    async def list_tags(self, requester: User | None) -> list[TagCount]:
        """Tag usage over readable notes, most used first."""
        requester_id = requester.id if requester else None
        rows = await self.repo.tag_counts(requester_id)
        return [TagCount(tag=tag, count=count) for tag, count in rows]

    async def list_notes_by_tag(
        self,
        tag: str,
        requester: User | None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Note]:
        """Readable notes carrying ``tag`` (case-insensitive)."""
        requester_id = requester.id if requester else None
        return await self.repo.list_by_tag(tag, requester_id, limit=limit, offset=offset)

    async def import_notes(self, items: list[Any], requester: User) -> ImportResult:
        """
        Import notes one by one, recording failures instead of aborting.

        Each item is validated like a create request and inserted in its
        own SAVEPOINT, so a failing item leaves the others untouched.

        Raises:
            ValidationError: If the batch exceeds the configured size
        """
        if len(items) > self.config.import_max_notes:
            raise ValidationError(
                f"Maximum {self.config.import_max_notes} notes per import",
                details={"total": len(items)},
            )

        self._log_operation("Importing notes", owner_id=requester.id, total=len(items))

        imported = 0
        errors: list[ImportItemError] = []
        failed = 0

        for index, item in enumerate(items, start=1):
            title = item.get("title") if isinstance(item, dict) else None
            try:
                data = NoteCreate.model_validate(item)
                self._validate_tags(data.tags)
                async with self.session.begin_nested():
                    await self._execute_db_operation(
                        "import_note",
                        self.repo.create_note(
                            owner_id=requester.id,
                            title=data.title,
                            summary=data.summary,
                            content=data.content,
                            images=data.images,
                            is_private=data.is_private,
                            tags=data.tags,
                        ),
                    )
            except PydanticValidationError as e:
                message = _first_error_message(e)
            except ApplicationError as e:
                message = e.message
            else:
                imported += 1
                continue

            failed += 1
            if len(errors) < self.config.import_max_errors:
                errors.append(
                    ImportItemError(
                        index=index,
                        title=title if isinstance(title, str) else None,
                        error=message,
                    )
                )

        self._log_operation("Import finished", imported=imported, failed=failed)
        return ImportResult(
            total=len(items),
            imported=imported,
            failed=failed,
            errors=errors,
        )
