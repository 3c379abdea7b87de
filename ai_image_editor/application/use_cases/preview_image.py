from __future__ import annotations

from dataclasses import dataclass

from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.errors import NoImageLoadedError
from ai_image_editor.domain.services.display_service import (
    DEFAULT_MAX_HEIGHT,
    DEFAULT_MAX_WIDTH,
    DisplayService,
    DisplaySize,
)
from ai_image_editor.infrastructure.images.image_loader import ImageLoader


@dataclass
class PreviewImageUseCase:
    """
    Render the session image for the editor canvas.

    The image is scaled to fit the display box and, for zoom levels other
    than 100, drawn centred at the zoomed size. Nothing in the session
    changes.
    """

    loader: ImageLoader
    display: DisplayService

    def execute(
        self,
        session: EditingSession,
        source: str = "current",
        max_width: int = DEFAULT_MAX_WIDTH,
        max_height: int = DEFAULT_MAX_HEIGHT,
        zoom: int = 100,
    ) -> tuple[bytes, DisplaySize]:
        ref = session.original_image_ref if source == "original" else session.current_image_ref
        if ref is None:
            raise NoImageLoadedError("Please upload an image first")
        data = self.loader.load_bytes(ref)
        return self.display.render(data, max_width=max_width, max_height=max_height, zoom=zoom)
