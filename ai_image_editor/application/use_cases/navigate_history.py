from __future__ import annotations

import logging
from dataclasses import dataclass

from ai_image_editor.domain.entities.session import EditingSession

logger = logging.getLogger(__name__)


@dataclass
class NavigateHistoryUseCase:
    """Undo, redo, jump and reset for a session's edit history.

    Moving through history never talks to the AI service; it only changes
    which recorded image is current. The session refuses all of these with
    SessionBusyError while an operation is processing.
    """

    def undo(self, session: EditingSession) -> bool:
        return session.undo()

    def redo(self, session: EditingSession) -> bool:
        return session.redo()

    def jump_to(self, session: EditingSession, index: int) -> None:
        session.jump_to(index)

    def reset(self, session: EditingSession) -> None:
        dropped = len(session.history)
        session.reset()
        logger.info("Session %s reset, dropped %d history entries", session.id, dropped)
