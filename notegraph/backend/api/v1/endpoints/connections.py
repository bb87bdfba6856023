"""
Connections API Endpoints.

Typed links between notes. Creating an existing link is idempotent:
201 for a new edge, 200 with the stored edge otherwise.
"""

from fastapi import APIRouter, Response, status

from notegraph.backend.core.dependencies import CurrentUser, DbSession, OptionalUser, RequestId
from notegraph.backend.schemas.base import ApiResponse, ResponseMetadata
from notegraph.backend.schemas.connection import (
    ConnectionCreate,
    ConnectionResponse,
    NoteConnectionsResponse,
)
from notegraph.backend.services.connection import (
    ConnectionService,
    group_connections_by_kind,
    list_connection_kinds,
)

router = APIRouter()


@router.get(
    "/types",
    response_model=ApiResponse[list[str]],
    summary="List connection types",
)
async def connection_types(
    request_id: RequestId,
    user: OptionalUser,
) -> ApiResponse[list[str]]:
    return ApiResponse(
        data=list(list_connection_kinds()),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/note/{note_id}",
    response_model=ApiResponse[NoteConnectionsResponse],
    summary="List a note's connections",
    description="Incoming and outgoing connections grouped by type, newest first.",
)
async def list_connections(
    note_id: str,
    db: DbSession,
    request_id: RequestId,
    user: OptionalUser,
) -> ApiResponse[NoteConnectionsResponse]:
    service = ConnectionService(db)
    views = await service.list_connections(note_id, user)
    return ApiResponse(
        data=NoteConnectionsResponse(
            note_id=note_id,
            connections=group_connections_by_kind(views),
            connection_types=list(list_connection_kinds()),
        ),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/note/{note_id}",
    response_model=ApiResponse[ConnectionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Connect two notes",
    description="Link the note in the path (source) to ``target_note_id``.",
    responses={200: {"description": "Connection already existed"}},
)
async def create_connection(
    note_id: str,
    data: ConnectionCreate,
    response: Response,
    db: DbSession,
    request_id: RequestId,
    user: CurrentUser,
) -> ApiResponse[ConnectionResponse]:
    service = ConnectionService(db)
    connection, created = await service.create_connection(
        note_id,
        data.target_note_id,
        data.connection_type,
        user,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return ApiResponse(
        message="Connection created" if created else "Connection already exists",
        data=ConnectionResponse.model_validate(connection),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.delete(
    "/{connection_id}",
    status_code=204,
    summary="Delete a connection",
)
async def delete_connection(
    connection_id: str,
    db: DbSession,
    user: CurrentUser,
) -> Response:
    service = ConnectionService(db)
    await service.delete_connection(connection_id, user)
    return Response(status_code=204)
