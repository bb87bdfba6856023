"""
Attachment Schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttachmentResponse(BaseModel):
    """Attachment metadata. The storage path is never exposed."""

    id: str
    note_id: str
    original_filename: str
    file_size: int
    mime_type: str
    uploaded_by: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
