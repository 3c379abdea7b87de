from __future__ import annotations

import math
import re
from datetime import UTC, datetime
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from ai_image_editor.domain.errors import ImageLoadError

EXPORT_FORMATS: dict[str, tuple[str, str]] = {
    # format key -> (Pillow format, media type)
    "png": ("PNG", "image/png"),
    "jpg": ("JPEG", "image/jpeg"),
    "webp": ("WEBP", "image/webp"),
}
LOSSY_FORMATS = ("jpg", "webp")
# Formats that cannot carry an alpha channel get flattened onto white
OPAQUE_FORMATS = ("jpg",)

MIN_QUALITY = 10
MAX_QUALITY = 100
DEFAULT_QUALITY = 90
DEFAULT_BASE_NAME = "edited-image"

# Rough compression ratios used for the size hint only
_SIZE_MULTIPLIERS = {"jpg": 0.7, "webp": 0.5}


class ExportService:
    """Re-encode images for download using Pillow.

    Nothing here alters pixels beyond flattening transparency; the remote
    service does all of the actual editing.
    """

    @staticmethod
    def decode(data: bytes) -> Image.Image:
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageLoadError(f"Failed to load image: {exc}") from exc
        return img

    # Paste onto an opaque white canvas, using the alpha channel as mask
    @staticmethod
    def flatten_to_white(img: Image.Image) -> Image.Image:
        if img.mode == "P":
            img = img.convert("RGBA")
        if img.mode in ("RGBA", "LA"):
            rgba = img.convert("RGBA")
            canvas = Image.new("RGB", rgba.size, (255, 255, 255))
            canvas.paste(rgba, mask=rgba.getchannel("A"))
            return canvas
        return img.convert("RGB")

    @staticmethod
    def encode(data: bytes, fmt: str, quality: int = DEFAULT_QUALITY) -> bytes:
        fmt = fmt.lower()
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        if not MIN_QUALITY <= int(quality) <= MAX_QUALITY:
            raise ValueError(f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}")

        img = ExportService.decode(data)
        pil_format, _ = EXPORT_FORMATS[fmt]
        if fmt in OPAQUE_FORMATS:
            img = ExportService.flatten_to_white(img)
        elif img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA")

        buf = BytesIO()
        if fmt in LOSSY_FORMATS:
            img.save(buf, format=pil_format, quality=int(quality))
        else:
            img.save(buf, format=pil_format)
        return buf.getvalue()

    @staticmethod
    def media_type(fmt: str) -> str:
        return EXPORT_FORMATS[fmt.lower()][1]

    @staticmethod
    def build_file_name(
        fmt: str,
        custom_name: str | None = None,
        original_filename: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """`<custom>.<ext>` or `<base>-edited-<YYYY-MM-DDTHH-MM>.<ext>`."""
        ext = fmt.lower()
        if custom_name and custom_name.strip():
            return f"{custom_name.strip()}.{ext}"
        base = re.sub(r"\.[^/.]+$", "", original_filename) if original_filename else ""
        base = base or DEFAULT_BASE_NAME
        stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%dT%H-%M")
        return f"{base}-edited-{stamp}.{ext}"

    # Heuristic: base64 chars * 0.75, scaled by quality for lossy formats
    @staticmethod
    def estimate_size(base64_length: int, fmt: str, quality: int = DEFAULT_QUALITY) -> float:
        estimated = base64_length * 0.75
        multiplier = _SIZE_MULTIPLIERS.get(fmt.lower())
        if multiplier is not None:
            estimated *= (quality / 100) * multiplier
        return estimated


def format_file_size(num_bytes: float) -> str:
    if num_bytes <= 0:
        return "0 Bytes"
    k = 1024
    sizes = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(num_bytes) / math.log(k))), len(sizes) - 1)
    i = max(i, 0)
    value = round(num_bytes / k**i, 2)
    # 1.50 KB -> 1.5 KB
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {sizes[i]}"
