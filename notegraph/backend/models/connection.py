"""
Connection Model.

Directed, typed edge between two distinct notes.
"""

import enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from notegraph.backend.models.base import Base, CreatedAtMixin, UUIDMixin


class ConnectionKind(str, enum.Enum):
    """The closed vocabulary of relation kinds."""

    RELATED = "related"
    CONTRADICTS = "contradicts"
    EXEMPLIFIES = "exemplifies"
    INSPIRES = "inspires"
    CAUSES = "causes"
    PART_OF = "part_of"


CONNECTION_KINDS: tuple[str, ...] = tuple(kind.value for kind in ConnectionKind)


class Connection(UUIDMixin, CreatedAtMixin, Base):
    """
    Connection database model.

    The database enforces the graph invariants: no self loops, one edge
    per (source, target, kind), and removal together with either note.
    """

    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint(
            "source_note_id",
            "target_note_id",
            "connection_type",
            name="uq_connections_source_target_type",
        ),
        CheckConstraint(
            "source_note_id <> target_note_id",
            name="no_self_loop",
        ),
        Index("ix_connections_target_note_id", "target_note_id"),
    )

    source_note_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_note_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )
    connection_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )
    created_by: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Connection({self.source_note_id} -[{self.connection_type}]-> "
            f"{self.target_note_id})>"
        )
