"""
Connection Schemas.

Pydantic schemas for the connection graph endpoints.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ConnectionCreate(BaseModel):
    """
    Schema for linking the path note to a target note.

    ``connection_type`` is a plain string so the service can report
    self-loops before unknown kinds.
    """

    target_note_id: str = Field(..., min_length=1, description="Target note id")
    connection_type: str = Field(
        default="related",
        description="One of the kinds listed by GET /connections/types",
        examples=["inspires"],
    )


class ConnectionResponse(BaseModel):
    """A stored edge."""

    id: str
    source_note_id: str
    target_note_id: str
    connection_type: str
    created_by: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConnectionView(BaseModel):
    """An edge seen from one of its notes."""

    id: str
    connection_type: str
    direction: Literal["outgoing", "incoming"]
    source_note_id: str
    target_note_id: str
    other_note_id: str
    other_note_title: str
    created_at: datetime


class NoteConnectionsResponse(BaseModel):
    """Edges touching a note, grouped by kind."""

    note_id: str
    connections: dict[str, list[ConnectionView]]
    connection_types: list[str]
