"""
Connection Service.

Business rules for the typed, directed edges between notes: no self
loops, a closed set of kinds, one edge per (source, target, kind), and
both endpoints writable by the requester.
"""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.backend.core.exceptions import NotFoundError, ValidationError
from notegraph.backend.models.connection import CONNECTION_KINDS, Connection
from notegraph.backend.models.user import User
from notegraph.backend.repositories.connection import ConnectionRepository
from notegraph.backend.repositories.note import NoteRepository
from notegraph.backend.schemas.connection import ConnectionView
from notegraph.backend.services.access import ensure_readable, ensure_writable
from notegraph.backend.services.base import BaseService


def list_connection_kinds() -> tuple[str, ...]:
    """The six relation kinds, in their canonical order."""
    return CONNECTION_KINDS


def group_connections_by_kind(
    connections: Iterable[ConnectionView],
) -> dict[str, list[ConnectionView]]:
    """
    Group annotated edges by kind.

    Only kinds that occur are present; keys follow the canonical kind
    order and each group keeps the input order.
    """
    grouped: dict[str, list[ConnectionView]] = {}
    for connection in connections:
        grouped.setdefault(connection.connection_type, []).append(connection)
    return {kind: grouped[kind] for kind in CONNECTION_KINDS if kind in grouped}


class ConnectionService(BaseService):
    """Service for the connection graph."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = ConnectionRepository(session)
        self.note_repo = NoteRepository(session)

    async def create_connection(
        self,
        source_note_id: str,
        target_note_id: str,
        connection_type: str,
        requester: User | None,
    ) -> tuple[Connection, bool]:
        """
        Link two notes. Repeating an existing link returns the stored edge.

        Returns:
            The edge and whether this call created it

        Raises:
            ValidationError: Self loop or unknown kind
            NotFoundError: Either note is absent or not readable
            AuthorizationError: The requester does not own both notes
        """
        if source_note_id == target_note_id:
            raise ValidationError("Cannot connect a note to itself")
        if connection_type not in CONNECTION_KINDS:
            raise ValidationError(
                "Invalid connection type",
                details={"allowed": list(CONNECTION_KINDS)},
            )

        source = await self.note_repo.get_by_id_or_none(source_note_id)
        target = await self.note_repo.get_by_id_or_none(target_note_id)
        ensure_readable(source, requester)
        ensure_readable(target, requester)
        ensure_writable(source, requester)
        ensure_writable(target, requester)

        connection, created = await self._execute_db_operation(
            "create_connection",
            self.repo.insert_or_get(
                source_note_id,
                target_note_id,
                connection_type,
                created_by=requester.id,
            ),
        )

        if created:
            self._log_operation(
                "Connection created",
                connection_id=connection.id,
                connection_type=connection_type,
            )
        else:
            self._log_debug("Connection already exists", connection_id=connection.id)
        return connection, created

    async def list_connections(
        self,
        note_id: str,
        requester: User | None,
    ) -> list[ConnectionView]:
        """
        Edges touching a readable note, newest first, seen from that note.

        Raises:
            NotFoundError: If the note is absent or not readable
        """
        note = await self.note_repo.get_by_id_or_none(note_id)
        ensure_readable(note, requester)

        requester_id = requester.id if requester else None
        rows = await self.repo.list_for_note(note_id, requester_id)

        views = []
        for connection, other_title in rows:
            outgoing = connection.source_note_id == note_id
            views.append(
                ConnectionView(
                    id=connection.id,
                    connection_type=connection.connection_type,
                    direction="outgoing" if outgoing else "incoming",
                    source_note_id=connection.source_note_id,
                    target_note_id=connection.target_note_id,
                    other_note_id=(
                        connection.target_note_id if outgoing else connection.source_note_id
                    ),
                    other_note_title=other_title,
                    created_at=connection.created_at,
                )
            )
        return views

    async def delete_connection(self, connection_id: str, requester: User | None) -> None:
        """
        Remove an edge. Only the owner of the source note may do so.

        Raises:
            NotFoundError: If the edge is absent or the requester does not
                own its source note
        """
        connection = await self.repo.get_by_id_or_none(connection_id)
        if connection is None:
            raise NotFoundError("Connection not found")

        source = await self.note_repo.get_by_id_or_none(connection.source_note_id)
        if source is None or requester is None or source.owner_id != requester.id:
            raise NotFoundError("Connection not found")

        self._log_operation("Deleting connection", connection_id=connection_id)
        await self._execute_db_operation("delete_connection", self.repo.delete(connection))
