from __future__ import annotations

import logging
from dataclasses import dataclass

from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.errors import ImageLoadError, ImageValidationError
from ai_image_editor.domain.services.export_service import ExportService
from ai_image_editor.domain.services.image_refs import make_data_uri
from ai_image_editor.domain.services.upload_validator import validate_upload

logger = logging.getLogger(__name__)


@dataclass
class UploadImageUseCase:
    exporter: ExportService

    def execute(
        self,
        session: EditingSession,
        data: bytes,
        filename: str | None,
        content_type: str | None,
    ) -> EditingSession:
        """
        Load a fresh upload into the session.

        Both the original and current image become the upload and any edit
        history is dropped.

        Raises:
            ImageValidationError: wrong type, too large, or not decodable
            SessionBusyError: an operation is still processing
        """
        validate_upload(content_type, len(data))
        try:
            img = self.exporter.decode(data)
        except ImageLoadError as exc:
            raise ImageValidationError(f"Invalid image file: {exc}") from exc

        # browsers sometimes report the non-standard image/jpg
        mime = "image/jpeg" if content_type == "image/jpg" else content_type
        session.load_image(
            make_data_uri(data, mime),
            filename=filename,
            mime_type=mime,
            width=img.width,
            height=img.height,
            file_size=len(data),
        )
        logger.info(
            "Session %s loaded %s (%dx%d, %d bytes)",
            session.id,
            filename,
            img.width,
            img.height,
            len(data),
        )
        return session
