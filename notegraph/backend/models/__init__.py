# SQLAlchemy models package. Importing it registers every table on Base.metadata.
from notegraph.backend.models.attachment import Attachment
from notegraph.backend.models.base import Base
from notegraph.backend.models.connection import CONNECTION_KINDS, Connection, ConnectionKind
from notegraph.backend.models.note import Note, NoteTag
from notegraph.backend.models.user import User

__all__ = [
    "Attachment",
    "Base",
    "CONNECTION_KINDS",
    "Connection",
    "ConnectionKind",
    "Note",
    "NoteTag",
    "User",
]
