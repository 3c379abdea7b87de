from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ai_image_editor.domain.entities.history_entry import HistoryEntry
from ai_image_editor.domain.entities.operation import OperationRequest
from ai_image_editor.domain.entities.remote_result import RemoteResult
from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.errors import ImageLoadError
from ai_image_editor.domain.services.image_refs import to_image_ref
from ai_image_editor.infrastructure.ai.ai_image_client import AIImageClient
from ai_image_editor.infrastructure.images.image_loader import ImageLoader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationOutcome:
    result: RemoteResult
    entry: HistoryEntry | None = None


@dataclass
class ApplyOperationUseCase:
    """
    Run one remote edit against the session's current image.

    State machine: Loaded -> Processing -> Loaded. A successful result becomes
    the current image and a new history entry (dropping any redo future); a
    failed one leaves the session exactly as it was. Remote failures are
    returned inside the outcome, never raised.
    """

    client: AIImageClient
    loader: ImageLoader

    def execute(
        self,
        session: EditingSession,
        operation: str,
        parameters: dict[str, Any] | None = None,
    ) -> OperationOutcome:
        """
        Raises:
            NoImageLoadedError: nothing has been uploaded yet
            SessionBusyError: another operation is in flight for this session
        """
        request = OperationRequest.from_payload(operation, parameters)
        session.begin_processing(f"Processing {request.display_name}...")

        entry: HistoryEntry | None = None
        status = "Processing failed"
        try:
            source_ref = session.current_image_ref
            try:
                image_b64, mime = self.loader.encode(
                    source_ref, default_mime=session.mime_type or "image/jpeg"
                )
            except ImageLoadError as exc:
                result = RemoteResult.failure(str(exc))
            else:
                result = self.client.process_image(image_b64, request, mime_type=mime)

            if result.success and result.data:
                entry = session.record_edit(to_image_ref(result.data), request.name)
                status = f"{request.display_name} completed successfully!"
                logger.info(
                    "Session %s applied %s (%d history entries)",
                    session.id,
                    request.name,
                    len(session.history),
                )
            else:
                if result.success:
                    result = RemoteResult.failure("Unknown error", result.processing_time)
                logger.error("Session %s: %s failed: %s", session.id, request.name, result.error)
        finally:
            session.end_processing(status)

        return OperationOutcome(result=result, entry=entry)
