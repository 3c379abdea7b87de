from __future__ import annotations

import base64
import binascii
import logging
import os

import requests

from ai_image_editor.domain.errors import ImageLoadError
from ai_image_editor.domain.services.image_refs import (
    is_data_uri,
    is_remote_url,
    split_data_uri,
)

logger = logging.getLogger(__name__)


class ImageLoader:
    """Resolve session image references (data URIs or remote URLs) to bytes."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self.session = session or requests.Session()
        self.timeout = float(os.getenv("IMAGE_FETCH_TIMEOUT", "30"))

    def fetch(self, ref: str) -> tuple[bytes, str | None]:
        """Return (bytes, mime type). The mime type is None when the source does not say."""
        if is_data_uri(ref):
            try:
                mime, payload = split_data_uri(ref)
                return base64.b64decode("".join(payload.split()), validate=True), mime
            except (ValueError, binascii.Error) as exc:
                raise ImageLoadError(f"Invalid image data: {exc}") from exc
        if is_remote_url(ref):
            try:
                response = self.session.get(ref, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                logger.error("Fetching result image %s failed: %s", ref, exc)
                raise ImageLoadError(f"Failed to fetch image: {exc}") from exc
            content_type = (response.headers.get("Content-Type") or "").split(";", 1)[0].strip()
            return response.content, content_type if content_type.startswith("image/") else None
        raise ImageLoadError("Unsupported image reference")

    def load_bytes(self, ref: str) -> bytes:
        return self.fetch(ref)[0]

    def to_base64(self, ref: str) -> str:
        if is_data_uri(ref):
            try:
                return split_data_uri(ref)[1]
            except ValueError as exc:
                raise ImageLoadError(str(exc)) from exc
        return base64.b64encode(self.load_bytes(ref)).decode("ascii")

    def encode(self, ref: str, default_mime: str = "image/jpeg") -> tuple[str, str]:
        """Return (base64 payload, mime type) ready to embed in a model request."""
        if is_data_uri(ref):
            try:
                return split_data_uri(ref)[::-1]
            except ValueError as exc:
                raise ImageLoadError(str(exc)) from exc
        data, mime = self.fetch(ref)
        return base64.b64encode(data).decode("ascii"), mime or default_mime
