from __future__ import annotations

from ai_image_editor.domain.entities.operation import OperationRequest, OperationType

DEFAULT_STYLE = "artistic"
DEFAULT_FILTER = "watercolor"
DEFAULT_OBJECT = "unwanted object"

BACKGROUND_REMOVAL_PROMPT = (
    "Remove the background from this image, making it transparent while keeping the main "
    "subject intact and sharp. Output a high-quality image with clean edges."
)
ENHANCE_PROMPT = (
    "Enhance this image by improving clarity, sharpness, color saturation, and overall "
    "quality. Upscale if necessary while maintaining natural appearance and removing any "
    "noise or artifacts."
)
GENERIC_PROMPT = "Process and enhance this image to improve its overall quality and appearance."


def build_prompt(request: OperationRequest) -> str:
    """Map an operation to the instruction sent alongside the image."""
    if request.is_generic:
        return GENERIC_PROMPT

    op = request.operation
    if op is OperationType.BACKGROUND_REMOVAL:
        return BACKGROUND_REMOVAL_PROMPT
    if op is OperationType.STYLE_TRANSFER:
        style = request.style or DEFAULT_STYLE
        return (
            f"Transform this image into {style} style. Apply the artistic transformation while "
            "maintaining the core composition and subject matter. Make it visually appealing "
            "and high quality."
        )
    if op is OperationType.ENHANCE:
        return ENHANCE_PROMPT
    if op is OperationType.OBJECT_REMOVAL:
        target = request.prompt or DEFAULT_OBJECT
        return (
            f"Remove {target} from this image and seamlessly fill in the background. Ensure the "
            "removal looks natural and the background blends perfectly without any artifacts."
        )
    if op is OperationType.ARTISTIC_FILTER:
        flt = request.style or DEFAULT_FILTER
        return (
            f"Apply a {flt} artistic filter to this image. Transform it into a beautiful "
            "artistic representation while preserving the main elements and composition."
        )
    raise ValueError(f"Unsupported operation: {op}")
