"""
Note Model.

A titled document with optional summary, rich-text content, tags,
an opaque image payload and a public/private flag.
"""

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notegraph.backend.models.base import Base, TimestampMixin, UUIDMixin


class NoteTag(Base):
    """One normalized tag on one note. The table is the tag set of every note."""

    __tablename__ = "note_tags"

    note_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("notes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, tag={self.tag!r})>"


class Note(UUIDMixin, TimestampMixin, Base):
    """
    Note database model.

    Visibility is decided by ``is_private`` and ``owner_id`` only; see
    services/access.py for the policy.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_updated_at", "updated_at"),
    )

    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    summary: Mapped[str | None] = mapped_column(
        String(2000),
        nullable=True,
    )
    content: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    images: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    is_private: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    tag_links: Mapped[list[NoteTag]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by=NoteTag.tag,
    )

    @property
    def tags(self) -> list[str]:
        """Normalized tags, alphabetical."""
        return sorted(link.tag for link in self.tag_links)

    def set_tags(self, tags: list[str]) -> None:
        """
        Replace the tag set with already-normalized ``tags``.

        Unchanged tags keep their rows; only removed and added tags are
        written, so the (note_id, tag) key is never deleted and re-inserted
        in one flush.
        """
        wanted = set(tags)
        for link in list(self.tag_links):
            if link.tag not in wanted:
                self.tag_links.remove(link)
        existing = {link.tag for link in self.tag_links}
        for tag in tags:
            if tag not in existing:
                self.tag_links.append(NoteTag(tag=tag))
                existing.add(tag)

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, private={self.is_private})>"
