from __future__ import annotations

import os

from ai_image_editor.domain.errors import ImageValidationError

ALLOWED_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif")
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def max_upload_bytes() -> int:
    return int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES)))


def validate_upload(content_type: str | None, size: int) -> None:
    """Reject files the editor will not accept. Raises ImageValidationError."""
    if (content_type or "").lower() not in ALLOWED_MIME_TYPES:
        raise ImageValidationError("Please upload a valid image file (JPEG, PNG, WebP, or GIF)")
    limit = max_upload_bytes()
    if size > limit:
        raise ImageValidationError(
            f"Image size must be less than {limit // (1024 * 1024)}MB"
        )
