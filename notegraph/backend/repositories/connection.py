"""
Connection Repository.

Data access layer for the typed edges between notes.
"""

from sqlalchemy import case, or_, select
from sqlalchemy.exc import IntegrityError

from notegraph.backend.models.connection import Connection
from notegraph.backend.models.note import Note
from notegraph.backend.repositories.base import BaseRepository
from notegraph.backend.repositories.note import readable_by


class ConnectionRepository(BaseRepository[Connection]):
    """Repository for Connection model."""

    model = Connection

    async def get_by_triple(
        self,
        source_note_id: str,
        target_note_id: str,
        connection_type: str,
    ) -> Connection | None:
        result = await self.session.execute(
            select(Connection).where(
                Connection.source_note_id == source_note_id,
                Connection.target_note_id == target_note_id,
                Connection.connection_type == connection_type,
            )
        )
        return result.scalar_one_or_none()

    async def insert_or_get(
        self,
        source_note_id: str,
        target_note_id: str,
        connection_type: str,
        created_by: str | None,
    ) -> tuple[Connection, bool]:
        """
        Insert an edge unless the same (source, target, kind) exists.

        The unique constraint decides concurrent inserts: the insert runs
        in a SAVEPOINT and a losing writer re-reads the winner's row.

        Returns:
            The edge and whether it was created by this call
        """
        existing = await self.get_by_triple(source_note_id, target_note_id, connection_type)
        if existing is not None:
            return existing, False

        try:
            async with self.session.begin_nested():
                connection = Connection(
                    source_note_id=source_note_id,
                    target_note_id=target_note_id,
                    connection_type=connection_type,
                    created_by=created_by,
                )
                self.session.add(connection)
                await self.session.flush()
        except IntegrityError:
            existing = await self.get_by_triple(source_note_id, target_note_id, connection_type)
            if existing is None:
                raise
            return existing, False

        return connection, True

    async def list_for_note(
        self,
        note_id: str,
        requester_id: str | None,
    ) -> list[tuple[Connection, str]]:
        """
        Get every edge touching ``note_id`` with the other note's title.

        Edges whose other endpoint the requester cannot read are left out.
        Newest first.
        """
        other_id = case(
            (Connection.source_note_id == note_id, Connection.target_note_id),
            else_=Connection.source_note_id,
        )
        result = await self.session.execute(
            select(Connection, Note.title)
            .join(Note, Note.id == other_id)
            .where(
                or_(
                    Connection.source_note_id == note_id,
                    Connection.target_note_id == note_id,
                )
            )
            .where(readable_by(requester_id))
            .order_by(Connection.created_at.desc(), Connection.id)
        )
        return [(row[0], row[1]) for row in result.all()]
