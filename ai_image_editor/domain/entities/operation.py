from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OperationType(str, Enum):
    BACKGROUND_REMOVAL = "background-removal"
    STYLE_TRANSFER = "style-transfer"
    ENHANCE = "enhance"
    OBJECT_REMOVAL = "object-removal"
    ARTISTIC_FILTER = "artistic-filter"


SUPPORTED_OPERATIONS: tuple[str, ...] = tuple(op.value for op in OperationType)


@dataclass(frozen=True)
class OperationRequest:
    """A single edit requested from the remote service.

    `name` is what the caller asked for. Unknown names resolve to a generic
    enhance request (`is_generic=True`) but keep their name so history shows
    what the user actually clicked.
    """

    name: str
    operation: OperationType
    style: str | None = None
    prompt: str | None = None
    intensity: float | None = None
    mask: str | None = None
    is_generic: bool = False
    parameters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(
        cls, operation: str, parameters: dict[str, Any] | None = None
    ) -> OperationRequest:
        params = dict(parameters or {})
        try:
            op_type = OperationType(operation)
            is_generic = False
        except ValueError:
            op_type = OperationType.ENHANCE
            is_generic = True

        intensity = params.get("intensity")
        return cls(
            name=operation,
            operation=op_type,
            style=params.get("style") or None,
            prompt=params.get("prompt") or None,
            intensity=float(intensity) if intensity is not None else None,
            mask=params.get("mask") or None,
            is_generic=is_generic,
            parameters=params,
        )

    @property
    def display_name(self) -> str:
        # "style-transfer" -> "style transfer"; only the first hyphen, as the UI labels do
        return self.name.replace("-", " ", 1)
