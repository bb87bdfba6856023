"""
Notes API Endpoints.

REST API endpoints for notes, tags, search and bulk import.
Read endpoints accept anonymous requests; writes need a bearer token.
"""

from fastapi import APIRouter, Depends, Query, Response

from notegraph.backend.core.dependencies import (
    CurrentUser,
    DbSession,
    OptionalUser,
    RequestId,
    Storage,
)
from notegraph.backend.core.pagination import (
    PageParams,
    create_paginated_response,
    get_page_params,
)
from notegraph.backend.schemas.base import ApiResponse, PaginatedResponse, ResponseMetadata
from notegraph.backend.schemas.note import (
    ImportResult,
    NoteCreate,
    NoteImportRequest,
    NoteListResponse,
    NoteResponse,
    NoteUpdate,
    TagCount,
)
from notegraph.backend.services.note import NoteService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
    description="Create a note owned by the authenticated user.",
)
async def create_note(
    data: NoteCreate,
    db: DbSession,
    request_id: RequestId,
    user: CurrentUser,
) -> ApiResponse[NoteResponse]:
    """Create a new note."""
    service = NoteService(db)
    note = await service.create_note(data, user)
    return ApiResponse(
        message="Note created",
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "",
    response_model=PaginatedResponse[NoteListResponse],
    summary="List notes (paginated)",
    description="Notes visible to the requester, most recently updated first.",
)
async def list_notes(
    db: DbSession,
    request_id: RequestId,
    user: OptionalUser,
    pagination: PageParams = Depends(get_page_params),
) -> PaginatedResponse[NoteListResponse]:
    """List readable notes."""
    service = NoteService(db)
    notes = await service.list_notes(user, limit=pagination.limit, offset=pagination.offset)
    return create_paginated_response(notes, NoteListResponse, pagination, request_id)


@router.get(
    "/search",
    response_model=ApiResponse[list[NoteListResponse]],
    summary="Search notes",
    description="Full-text search over title, summary and content, plus exact tag match.",
)
async def search_notes(
    db: DbSession,
    request_id: RequestId,
    user: OptionalUser,
    q: str = Query(
        default="",
        max_length=200,
        description="Search query",
    ),
    limit: int | None = Query(
        default=None,
        ge=1,
        le=100,
        description="Maximum number of results",
    ),
) -> ApiResponse[list[NoteListResponse]]:
    """Search readable notes."""
    service = NoteService(db)
    notes = await service.search_notes(q, user, limit=limit)
    return ApiResponse(
        data=[NoteListResponse.model_validate(note) for note in notes],
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/tags",
    response_model=ApiResponse[list[TagCount]],
    summary="List tags",
    description="Tags of readable notes with usage counts.",
)
async def list_tags(
    db: DbSession,
    request_id: RequestId,
    user: OptionalUser,
) -> ApiResponse[list[TagCount]]:
    service = NoteService(db)
    return ApiResponse(
        data=await service.list_tags(user),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/tag/{tag}",
    response_model=PaginatedResponse[NoteListResponse],
    summary="List notes by tag",
)
async def list_notes_by_tag(
    tag: str,
    db: DbSession,
    request_id: RequestId,
    user: OptionalUser,
    pagination: PageParams = Depends(get_page_params),
) -> PaginatedResponse[NoteListResponse]:
    service = NoteService(db)
    notes = await service.list_notes_by_tag(
        tag, user, limit=pagination.limit, offset=pagination.offset
    )
    return create_paginated_response(notes, NoteListResponse, pagination, request_id)


@router.post(
    "/import",
    response_model=ApiResponse[ImportResult],
    summary="Bulk import notes",
    description="Import a list of notes; invalid items are reported, not fatal.",
)
async def import_notes(
    data: NoteImportRequest,
    db: DbSession,
    request_id: RequestId,
    user: CurrentUser,
) -> ApiResponse[ImportResult]:
    service = NoteService(db)
    result = await service.import_notes(data.notes, user)
    return ApiResponse(
        message=f"Imported {result.imported} of {result.total} notes",
        data=result,
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
    description="Get a single note by ID. Private notes of other users are reported as missing.",
)
async def get_note(
    note_id: str,
    db: DbSession,
    request_id: RequestId,
    user: OptionalUser,
) -> ApiResponse[NoteResponse]:
    """Get a note by ID."""
    service = NoteService(db)
    note = await service.get_note(note_id, user)
    return ApiResponse(
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.put(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Partial update; only the fields sent are changed.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    db: DbSession,
    request_id: RequestId,
    user: CurrentUser,
) -> ApiResponse[NoteResponse]:
    """Update a note owned by the requester."""
    service = NoteService(db)
    note = await service.update_note(note_id, data, user)
    return ApiResponse(
        message="Note updated",
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.delete(
    "/{note_id}",
    status_code=204,
    summary="Delete a note",
    description="Delete a note with its connections and attachments.",
)
async def delete_note(
    note_id: str,
    db: DbSession,
    user: CurrentUser,
    storage: Storage,
) -> Response:
    """Delete a note owned by the requester."""
    service = NoteService(db, storage=storage)
    await service.delete_note(note_id, user)
    return Response(status_code=204)
