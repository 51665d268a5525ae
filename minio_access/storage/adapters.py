"""FastAPI glue for uploads and response rewriting."""

from typing import Any

from fastapi import UploadFile

from .schemas import UploadedFile
from .service import StorageService


async def uploaded_file_from_upload(upload: UploadFile, field_name: str) -> UploadedFile:
    """Read a FastAPI UploadFile into an UploadedFile."""
    content = await upload.read()
    return UploadedFile(
        field_name=field_name,
        original_filename=upload.filename or field_name,
        mime_type=upload.content_type or "application/octet-stream",
        size_bytes=upload.size if upload.size is not None else len(content),
        content=content,
    )


async def rewrite_response(service: StorageService, payload: Any) -> Any:
    """Resolve stored references in a route's payload before returning it.

    Usage::

        @router.get("/users/{user_id}")
        async def get_user(user_id: str):
            user = await repo.get(user_id)
            return await rewrite_response(storage, user)
    """
    return await service.rewrite(payload)
