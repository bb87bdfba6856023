"""
Note Repository.

Data access layer for notes. Every multi-note query takes the requester's
user id (``None`` for anonymous) and applies the read rule as a SQL
predicate, so other users' private notes never leave the database.
"""

from typing import Any

from sqlalchemy import String, case, cast, exists, func, literal, or_, select
from sqlalchemy.dialects.postgresql import REGCONFIG
from sqlalchemy.sql.elements import ColumnElement

from notegraph.backend.models.note import Note, NoteTag
from notegraph.backend.repositories.base import BaseRepository


def readable_by(requester_id: str | None) -> ColumnElement[bool]:
    """SQL form of ``access.can_read``: public, or owned by the requester."""
    if requester_id is None:
        return Note.is_private.is_(False)
    return or_(Note.is_private.is_(False), Note.owner_id == requester_id)


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits standard CRUD operations from BaseRepository
    and adds visibility-filtered queries, search and tag aggregation.
    """

    model = Note

    async def create_note(self, *, tags: list[str], **fields: Any) -> Note:
        """
        Insert a note together with its tag rows.

        ``tag_links`` is set explicitly so the relationship is never
        lazy-loaded on a fresh instance.
        """
        note = Note(**fields, tag_links=[NoteTag(tag=tag) for tag in tags])
        self.session.add(note)
        await self.session.flush()
        return note

    async def list_readable(
        self,
        requester_id: str | None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Note]:
        """
        Get readable notes, most recently updated first.

        Args:
            requester_id: Current user id, or None for anonymous
            limit: Maximum number of notes to return
            offset: Number of notes to skip
        """
        result = await self.session.execute(
            select(Note)
            .where(readable_by(requester_id))
            .order_by(Note.updated_at.desc(), Note.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_by_tag(
        self,
        tag: str,
        requester_id: str | None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Note]:
        """Get readable notes carrying ``tag``. Stored tags are lowercase."""
        result = await self.session.execute(
            select(Note)
            .join(NoteTag, NoteTag.note_id == Note.id)
            .where(NoteTag.tag == tag.strip().lower())
            .where(readable_by(requester_id))
            .order_by(Note.updated_at.desc(), Note.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def tag_counts(self, requester_id: str | None) -> list[tuple[str, int]]:
        """Count readable notes per tag, most used first, then alphabetical."""
        count = func.count(NoteTag.note_id).label("count")
        result = await self.session.execute(
            select(NoteTag.tag, count)
            .join(Note, Note.id == NoteTag.note_id)
            .where(readable_by(requester_id))
            .group_by(NoteTag.tag)
            .order_by(count.desc(), NoteTag.tag.asc())
        )
        return [(row.tag, row.count) for row in result.all()]

    async def search(
        self,
        query: str,
        requester_id: str | None,
        limit: int = 20,
        text_search_config: str = "english",
    ) -> list[Note]:
        """
        Search readable notes by text and tags.

        PostgreSQL ranks with full-text search; other dialects fall back
        to substring matching ranked by the field that matched.
        """
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = self._fulltext_search(query, text_search_config)
        else:
            stmt = self._substring_search(query)

        result = await self.session.execute(
            stmt.where(readable_by(requester_id)).limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    def _tag_match(query: str) -> ColumnElement[bool]:
        return exists(
            select(NoteTag.note_id).where(
                NoteTag.note_id == Note.id,
                NoteTag.tag == query.lower(),
            )
        )

    def _fulltext_search(self, query: str, text_search_config: str) -> Any:
        config = cast(literal(text_search_config, String), REGCONFIG)
        document = func.to_tsvector(
            config,
            func.coalesce(Note.title, "")
            + " "
            + func.coalesce(Note.summary, "")
            + " "
            + func.coalesce(Note.content, ""),
        )
        tsquery = func.plainto_tsquery(config, query)
        pattern = _like_pattern(query)
        rank = func.ts_rank(document, tsquery)

        return (
            select(Note)
            .where(
                or_(
                    document.op("@@")(tsquery),
                    self._tag_match(query),
                    Note.title.ilike(pattern, escape="\\"),
                    Note.summary.ilike(pattern, escape="\\"),
                    Note.content.ilike(pattern, escape="\\"),
                )
            )
            .order_by(rank.desc(), Note.updated_at.desc())
        )

    def _substring_search(self, query: str) -> Any:
        pattern = _like_pattern(query)
        title_hit = Note.title.ilike(pattern, escape="\\")
        summary_hit = Note.summary.ilike(pattern, escape="\\")
        content_hit = Note.content.ilike(pattern, escape="\\")
        tag_hit = self._tag_match(query)
        rank = case(
            (title_hit, 4),
            (summary_hit, 3),
            (content_hit, 2),
            (tag_hit, 1),
            else_=0,
        )

        return (
            select(Note)
            .where(or_(title_hit, summary_hit, content_hit, tag_hit))
            .order_by(rank.desc(), Note.updated_at.desc())
        )
