"""
Note Schemas.

Pydantic schemas for note API request/response validation.

Tags are normalized here (trimmed, lowercased, de-duplicated); their
count and length limits come from application.yaml and are checked by
the note service.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notegraph.backend.core.utils import normalize_tags

TITLE_MAX_LENGTH = 500
SUMMARY_MAX_LENGTH = 2000


def _clean_title(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError("Title is required")
    value = value.strip()
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return value


def _clean_tags(value: Any) -> Any:
    if value is None:
        return []
    return value


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str = Field(
        ...,
        description="Note title",
        examples=["Why caching hides bugs"],
    )
    summary: str | None = Field(
        default=None,
        max_length=SUMMARY_MAX_LENGTH,
        description="Short summary",
    )
    content: str | None = Field(
        default=None,
        description="Rich-text content (HTML)",
        examples=["<p>Stale reads surface only under load.</p>"],
    )
    tags: list[str] = Field(
        default_factory=list,
        description="Tags; stored lowercase and de-duplicated",
        examples=[["caching", "debugging"]],
    )
    images: str | None = Field(
        default=None,
        description="Opaque image payload stored verbatim",
    )
    is_private: bool = Field(
        default=False,
        description="Private notes are visible to their owner only",
    )

    @field_validator("title")
    @classmethod
    def clean_title(cls, value: str | None) -> str:
        return _clean_title(value)

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default(cls, value: Any) -> Any:
        return _clean_tags(value)

    @field_validator("tags")
    @classmethod
    def normalize(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class NoteUpdate(BaseModel):
    """
    Schema for a partial note update.

    Only fields present in the request body are applied; ``tags``
    replaces the whole tag set.
    """

    title: str | None = Field(default=None, description="Note title")
    summary: str | None = Field(default=None, max_length=SUMMARY_MAX_LENGTH)
    content: str | None = None
    tags: list[str] | None = None
    images: str | None = None
    is_private: bool | None = None

    @field_validator("title")
    @classmethod
    def clean_title(cls, value: str | None) -> str:
        return _clean_title(value)

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default(cls, value: Any) -> Any:
        return _clean_tags(value)

    @field_validator("tags")
    @classmethod
    def normalize(cls, value: list[str] | None) -> list[str]:
        return normalize_tags(value)

    @field_validator("is_private")
    @classmethod
    def not_null(cls, value: bool | None) -> bool:
        if value is None:
            raise ValueError("is_private cannot be null")
        return value


class NoteResponse(BaseModel):
    """Schema for a single note in API responses."""

    id: str = Field(description="Note unique identifier")
    owner_id: str = Field(description="Owning user")
    title: str
    summary: str | None
    content: str | None
    tags: list[str]
    images: str | None
    is_private: bool
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class NoteListResponse(BaseModel):
    """Schema for notes in lists and search results (no content body)."""

    id: str
    owner_id: str
    title: str
    summary: str | None
    tags: list[str]
    is_private: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagCount(BaseModel):
    """Number of readable notes carrying a tag."""

    tag: str
    count: int


class NoteImportRequest(BaseModel):
    """
    Bulk import body.

    Items stay untyped here so that one malformed element is reported
    in the result instead of rejecting the whole batch.
    """

    notes: list[Any] = Field(
        ...,
        description="Note objects with the same fields as note creation",
    )


class ImportItemError(BaseModel):
    index: int = Field(description="1-based position in the submitted list")
    title: str | None
    error: str


class ImportResult(BaseModel):
    total: int
    imported: int
    failed: int
    errors: list[ImportItemError]
