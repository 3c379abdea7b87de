from __future__ import annotations

import logging
from dataclasses import dataclass

from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.errors import NoImageLoadedError
from ai_image_editor.domain.services.export_service import (
    DEFAULT_QUALITY,
    ExportService,
    format_file_size,
)
from ai_image_editor.domain.services.image_refs import is_data_uri, split_data_uri
from ai_image_editor.infrastructure.images.image_loader import ImageLoader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportedImage:
    content: bytes
    file_name: str
    media_type: str


@dataclass
class ExportImageUseCase:
    loader: ImageLoader
    exporter: ExportService

    def execute(
        self,
        session: EditingSession,
        fmt: str,
        quality: int = DEFAULT_QUALITY,
        file_name: str | None = None,
    ) -> ExportedImage:
        """
        Re-encode the current image for download.

        Quality only affects jpg and webp. Transparent areas become white for
        jpg. The file name is the custom name when given, otherwise derived from
        the uploaded file name plus a timestamp.

        Raises:
            NoImageLoadedError: nothing has been uploaded yet
            ImageLoadError: the current image could not be fetched or decoded
            ValueError: unknown format or quality out of range
        """
        if session.current_image_ref is None:
            raise NoImageLoadedError("Please upload an image first")
        data = self.loader.load_bytes(session.current_image_ref)
        content = self.exporter.encode(data, fmt, quality)
        name = self.exporter.build_file_name(fmt, file_name, session.original_filename)
        logger.info("Session %s exported %s (%d bytes)", session.id, name, len(content))
        return ExportedImage(content=content, file_name=name, media_type=self.exporter.media_type(fmt))

    def estimate(self, session: EditingSession, fmt: str, quality: int = DEFAULT_QUALITY) -> dict:
        """Size hint for the export panel. Not a promise about the real file size."""
        ref = session.current_image_ref
        if ref is None:
            return {"bytes": 0, "display": "Unknown"}
        if is_data_uri(ref):
            b64_length = len(split_data_uri(ref)[1])
        else:
            b64_length = len(self.loader.to_base64(ref))
        estimated = self.exporter.estimate_size(b64_length, fmt, quality)
        return {"bytes": int(estimated), "display": format_file_size(estimated)}
