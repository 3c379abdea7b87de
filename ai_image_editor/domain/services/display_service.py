from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from PIL import Image

from ai_image_editor.domain.services.export_service import ExportService

DEFAULT_MAX_WIDTH = 800
DEFAULT_MAX_HEIGHT = 600
MIN_ZOOM = 25
MAX_ZOOM = 300
ZOOM_STEP = 25


@dataclass(frozen=True)
class DisplaySize:
    width: int
    height: int


class DisplayService:
    """Bounded-size preview rendering for the editor canvas."""

    # Fit width first, then height, keeping the aspect ratio
    @staticmethod
    def optimal_display_size(
        width: int, height: int, max_width: int, max_height: int
    ) -> DisplaySize:
        aspect = width / height
        display_w = float(width)
        display_h = float(height)
        if display_w > max_width:
            display_w = max_width
            display_h = display_w / aspect
        if display_h > max_height:
            display_h = max_height
            display_w = display_h * aspect
        return DisplaySize(width=max(1, round(display_w)), height=max(1, round(display_h)))

    @staticmethod
    def validate_zoom(zoom: int) -> int:
        if not MIN_ZOOM <= zoom <= MAX_ZOOM or zoom % ZOOM_STEP:
            raise ValueError(
                f"zoom must be between {MIN_ZOOM} and {MAX_ZOOM} in steps of {ZOOM_STEP}"
            )
        return zoom

    @staticmethod
    def render(
        data: bytes,
        max_width: int = DEFAULT_MAX_WIDTH,
        max_height: int = DEFAULT_MAX_HEIGHT,
        zoom: int = 100,
    ) -> tuple[bytes, DisplaySize]:
        """Draw the image into a display-sized canvas and return PNG bytes.

        At zoom 100 the canvas holds the whole image scaled to fit. Other zoom
        levels draw the scaled image centred on the same canvas, cropping
        whatever falls outside and leaving the rest transparent.
        """
        zoom = DisplayService.validate_zoom(zoom)
        img = ExportService.decode(data).convert("RGBA")
        size = DisplayService.optimal_display_size(img.width, img.height, max_width, max_height)

        if zoom == 100:
            canvas = img.resize((size.width, size.height))
        else:
            zoomed_w = max(1, round(size.width * zoom / 100))
            zoomed_h = max(1, round(size.height * zoom / 100))
            scaled = img.resize((zoomed_w, zoomed_h))
            canvas = Image.new("RGBA", (size.width, size.height), (0, 0, 0, 0))
            offset = ((size.width - zoomed_w) // 2, (size.height - zoomed_h) // 2)
            canvas.paste(scaled, offset)

        buf = BytesIO()
        canvas.save(buf, format="PNG")
        return buf.getvalue(), size
