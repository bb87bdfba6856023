"""
Attachment File Storage.

Uploaded files live flat under the configured upload root with a
generated ``<uuid hex><extension>`` name. An upload is streamed into a
temp file first and only renamed into place once its metadata row
exists. The caller commits the session inside the staging block, so a
failed commit also removes the renamed file and a failed request leaves
neither a row nor a file behind.

Usage:
    storage = FileStorage.from_config()
    async with storage.stage(upload) as staged:
        row = await repo.create(file_path=str(staged.final_path), ...)
        await staged.commit()
        await session.commit()

Disk writes, renames and deletes run on the shared I/O thread pool.
"""

import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from notegraph.backend.core.concurrency import run_blocking
from notegraph.backend.core.exceptions import InternalError, NotFoundError, ValidationError
from notegraph.backend.core.logging import get_logger
from notegraph.backend.core.utils import file_extension, sanitize_filename

logger = get_logger(__name__)


@dataclass
class StagedFile:
    """An upload written to a temp file, waiting to be committed."""

    temp_path: Path
    final_path: Path
    original_filename: str
    mime_type: str
    size: int = 0
    committed: bool = field(default=False)

    @property
    def filename(self) -> str:
        """Generated storage name."""
        return self.final_path.name

    async def commit(self) -> None:
        """Atomically move the temp file to its storage name."""
        try:
            await run_blocking(os.replace, self.temp_path, self.final_path)
        except OSError as e:
            raise InternalError("Failed to store uploaded file") from e
        self.committed = True


class FileStorage:
    """Filesystem store for attachment payloads."""

    def __init__(
        self,
        root: Path,
        max_file_size: int,
        allowed_mime_types: list[str],
        chunk_size: int = 1024 * 1024,
    ) -> None:
        self.root = root
        self.max_file_size = max_file_size
        self.allowed_mime_types = frozenset(allowed_mime_types)
        self.chunk_size = chunk_size

    @classmethod
    def from_config(cls) -> "FileStorage":
        from notegraph.backend.core.config import get_app_config, get_upload_root

        attachments = get_app_config().application.attachments
        return cls(
            root=get_upload_root(),
            max_file_size=attachments.max_file_size_bytes,
            allowed_mime_types=attachments.allowed_mime_types,
            chunk_size=attachments.chunk_size_bytes,
        )

    def _too_large(self) -> ValidationError:
        limit_mb = self.max_file_size / (1024 * 1024)
        return ValidationError(
            f"File too large. Maximum size is {limit_mb:g} MB",
            details={"max_file_size_bytes": self.max_file_size},
        )

    def _check_upload(self, upload: UploadFile) -> tuple[str, str]:
        if not upload.filename:
            raise ValidationError("No file uploaded")

        mime_type = (upload.content_type or "").split(";")[0].strip().lower()
        if mime_type not in self.allowed_mime_types:
            raise ValidationError(
                "File type not allowed",
                details={"mime_type": mime_type or None},
            )

        if upload.size is not None and upload.size > self.max_file_size:
            raise self._too_large()

        return sanitize_filename(upload.filename), mime_type

    @asynccontextmanager
    async def stage(self, upload: UploadFile) -> AsyncIterator[StagedFile]:
        """
        Validate and stream ``upload`` into a temp file under the root.

        The temp file is removed when the block exits without committing.
        If the block raises after ``commit`` (for example because the
        database commit that follows it failed) the stored file is removed
        too, so no file outlives its metadata row.

        Raises:
            ValidationError: Missing filename, disallowed type or oversize file
        """
        original_filename, mime_type = self._check_upload(upload)
        await run_blocking(partial(self.root.mkdir, parents=True, exist_ok=True))

        fd, temp_name = await run_blocking(
            partial(tempfile.mkstemp, dir=self.root, prefix=".upload-", suffix=".part")
        )
        staged = StagedFile(
            temp_path=Path(temp_name),
            final_path=self.root / f"{uuid4().hex}{file_extension(original_filename)}",
            original_filename=original_filename,
            mime_type=mime_type,
        )

        kept = False
        try:
            with os.fdopen(fd, "wb") as out:
                while chunk := await upload.read(self.chunk_size):
                    staged.size += len(chunk)
                    if staged.size > self.max_file_size:
                        raise self._too_large()
                    await run_blocking(out.write, chunk)

            yield staged
            kept = staged.committed
        finally:
            if not kept:
                await self.remove(staged.temp_path)
                if staged.committed:
                    await self.remove(staged.final_path)

    async def open_path(self, file_path: str) -> Path:
        """
        Return the on-disk path of a stored file.

        Raises:
            NotFoundError: If the file is gone from disk
        """
        path = Path(file_path)
        if not await run_blocking(path.is_file):
            logger.warning("Attachment file missing on disk", extra={"path": file_path})
            raise NotFoundError("File not found")
        return path

    async def remove(self, path: Path | str) -> None:
        """Delete a stored file. Failures are logged, never raised."""
        try:
            await run_blocking(partial(Path(path).unlink, missing_ok=True))
        except OSError as e:
            logger.warning(
                "Failed to remove stored file",
                extra={"path": str(path), "error": str(e)},
            )
