from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RemoteResult:
    success: bool
    data: str | None = None  # image URL, data URI or bare base64
    error: str | None = None
    processing_time: int = 0  # milliseconds
    # True when `data` came from treating the whole reply text as base64
    from_fallback: bool = False

    @classmethod
    def failure(cls, error: str, processing_time: int = 0) -> RemoteResult:
        return cls(success=False, error=error, processing_time=processing_time)
