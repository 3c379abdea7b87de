from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class HistoryEntry:
    image_ref: str  # data URI or remote URL of the result
    operation: str
    timestamp: datetime
