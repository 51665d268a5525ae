"""Multi-field upload processing.

Each declared file field is validated and uploaded independently; the fields
run concurrently and the references are returned in declared field order.
"""

import asyncio
from collections.abc import Mapping, Sequence

from minio_access.core.errors import FileValidationError, UploadError
from minio_access.observability.logger import get_logger

from .object_store import ObjectStore
from .schemas import FileFieldConfig, UploadedFile

logger = get_logger(__name__)


def validate_file(file: UploadedFile, config: FileFieldConfig) -> None:
    """Check an uploaded file against its field rules.

    Raises:
        FileValidationError: If size or content type is not allowed
    """
    if config.max_size is not None and file.size_bytes > config.max_size:
        raise FileValidationError(
            f"File {file.original_filename} exceeds maximum size of "
            f"{config.max_size / 1024 / 1024:g}MB",
            field_name=config.name,
        )

    if config.allowed_mime_types:
        allowed = [mime.lower() for mime in config.allowed_mime_types]
        if file.mime_type.lower() not in allowed:
            raise FileValidationError(
                f"File {file.original_filename} has invalid type. "
                f"Received: {file.mime_type}, Allowed types: {', '.join(config.allowed_mime_types)}",
                field_name=config.name,
            )


async def _upload_field(
    store: ObjectStore,
    file: UploadedFile,
    config: FileFieldConfig,
) -> str | None:
    validate_file(file, config)
    try:
        return await store.upload(file, config.bucket_name)
    except UploadError as e:
        if config.required:
            raise UploadError(
                f"Failed to upload required file for {config.name}",
                bucket_name=config.bucket_name,
                object_name=e.object_name,
                original_error=e,
            ) from e
        logger.warning(
            f"Skipping optional file field {config.name}: {e.message}",
            extra_data={"field": config.name, "bucket": config.bucket_name},
        )
        return None


async def process_upload_fields(
    store: ObjectStore,
    files: Mapping[str, Sequence[UploadedFile]],
    fields: Sequence[FileFieldConfig],
) -> dict[str, str]:
    """Validate and upload the files of every declared field.

    Only the first file of each field is stored.

    Args:
        store: Object store to upload into
        files: Parsed uploads keyed by form field name
        fields: Field declarations, in output order

    Returns:
        {field_name: stored reference} for every field that was uploaded

    Raises:
        FileValidationError: If a required file is missing, a field has no
            bucket, or a file breaks its field rules
        UploadError: If a required field fails to upload
    """
    selected: list[tuple[FileFieldConfig, UploadedFile]] = []

    for config in fields:
        field_files = files.get(config.name) or []
        if not field_files:
            if config.required:
                raise FileValidationError(f"Required file {config.name} is missing", field_name=config.name)
            continue

        if not config.bucket_name:
            raise FileValidationError(
                f"Bucket name is required for file field {config.name}",
                field_name=config.name,
            )

        if len(field_files) > config.max_count:
            logger.warning(
                f"Field {config.name} received {len(field_files)} files, storing the first",
                extra_data={"field": config.name, "max_count": config.max_count},
            )

        selected.append((config, field_files[0]))

    results = await asyncio.gather(
        *[_upload_field(store, file, config) for config, file in selected]
    )

    return {config.name: ref for (config, _), ref in zip(selected, results) if ref is not None}
