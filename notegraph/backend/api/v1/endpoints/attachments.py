"""
Attachments API Endpoints.

Multipart upload, listing, download and removal of note attachments.
"""

from fastapi import APIRouter, File, Response, UploadFile
from fastapi.responses import FileResponse

from notegraph.backend.core.dependencies import (
    CurrentUser,
    DbSession,
    OptionalUser,
    RequestId,
    Storage,
)
from notegraph.backend.schemas.attachment import AttachmentResponse
from notegraph.backend.schemas.base import ApiResponse, ResponseMetadata
from notegraph.backend.services.attachment import AttachmentService

router = APIRouter()


@router.post(
    "/notes/{note_id}/upload",
    response_model=ApiResponse[AttachmentResponse],
    status_code=201,
    summary="Upload an attachment",
    description="Attach a file (max 10 MB, allowed types only) to a note you own.",
)
async def upload_attachment(
    note_id: str,
    db: DbSession,
    request_id: RequestId,
    user: CurrentUser,
    storage: Storage,
    file: UploadFile = File(..., description="Attachment file"),
) -> ApiResponse[AttachmentResponse]:
    service = AttachmentService(db, storage)
    attachment = await service.upload(note_id, file, user)
    return ApiResponse(
        message="File uploaded",
        data=AttachmentResponse.model_validate(attachment),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/notes/{note_id}",
    response_model=ApiResponse[list[AttachmentResponse]],
    summary="List a note's attachments",
)
async def list_attachments(
    note_id: str,
    db: DbSession,
    request_id: RequestId,
    user: OptionalUser,
    storage: Storage,
) -> ApiResponse[list[AttachmentResponse]]:
    service = AttachmentService(db, storage)
    attachments = await service.list_for_note(note_id, user)
    return ApiResponse(
        data=[AttachmentResponse.model_validate(a) for a in attachments],
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/{attachment_id}/download",
    response_class=FileResponse,
    summary="Download an attachment",
)
async def download_attachment(
    attachment_id: str,
    db: DbSession,
    user: OptionalUser,
    storage: Storage,
) -> FileResponse:
    service = AttachmentService(db, storage)
    attachment, path = await service.get_for_download(attachment_id, user)
    return FileResponse(
        path,
        media_type=attachment.mime_type,
        filename=attachment.original_filename,
    )


@router.delete(
    "/{attachment_id}",
    status_code=204,
    summary="Delete an attachment",
)
async def delete_attachment(
    attachment_id: str,
    db: DbSession,
    user: CurrentUser,
    storage: Storage,
) -> Response:
    service = AttachmentService(db, storage)
    await service.delete(attachment_id, user)
    return Response(status_code=204)
