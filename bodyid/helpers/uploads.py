# bodyid/helpers/uploads.py
from typing import Iterable, Optional

from fastapi import UploadFile

from bodyid.helpers.errors import ValidationError


async def read_upload(
    file: Optional[UploadFile],
    max_bytes: int,
    allowed_types: Optional[Iterable[str]] = None,
) -> bytes:
    """Read a multipart upload fully, rejecting missing, empty, oversized or unsupported files."""
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    if allowed_types is not None and file.content_type not in allowed_types:
        raise ValidationError(
            f"Unsupported file type: {file.content_type}",
            suggestion=f"Supported types: {', '.join(allowed_types)}",
        )

    data = await file.read()
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > max_bytes:
        raise ValidationError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB")
    return data
