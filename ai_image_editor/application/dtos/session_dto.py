from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ai_image_editor.application.dtos.image_edit_dto import OperationParameters
from ai_image_editor.domain.entities.history_entry import HistoryEntry
from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.services.export_service import DEFAULT_QUALITY, MAX_QUALITY, MIN_QUALITY
from ai_image_editor.domain.services.image_refs import is_remote_url


def _image_url(session_id: str, ref: str | None, source: str) -> str | None:
    if ref is None:
        return None
    if is_remote_url(ref):
        return ref
    return f"/sessions/{session_id}/image?source={source}"


class HistoryItem(BaseModel):
    """A single successful AI edit in the session history."""
    index: int = Field(..., description="Position in the history, usable with the jump endpoint", example=0)
    operation: str = Field(..., description="Operation name", example="style-transfer")
    timestamp: datetime = Field(..., description="When the edit finished")
    image_url: str = Field(..., description="Remote result URL, or the session image endpoint for embedded data")
    is_current: bool = Field(..., description="Whether this entry is the image currently shown")

    @classmethod
    def from_entry(cls, session_id: str, index: int, entry: HistoryEntry, current_index: int) -> HistoryItem:
        url = entry.image_ref if is_remote_url(entry.image_ref) else f"/sessions/{session_id}/history/{index}/image"
        return cls(
            index=index,
            operation=entry.operation,
            timestamp=entry.timestamp,
            image_url=url,
            is_current=index == current_index,
        )


class SessionStateResponse(BaseModel):
    """Full transient editing state of one session."""
    id: str = Field(..., description="Session identifier")
    state: str = Field(..., description="empty, loaded or processing", example="loaded")
    created_at: datetime = Field(..., description="When the session was created")
    original_filename: Optional[str] = Field(None, example="photo.jpg")
    mime_type: Optional[str] = Field(None, example="image/jpeg")
    width: Optional[int] = Field(None, description="Width of the uploaded image in pixels", example=1920)
    height: Optional[int] = Field(None, description="Height of the uploaded image in pixels", example=1080)
    file_size: Optional[int] = Field(None, description="Size of the uploaded file in bytes", example=2048576)
    original_image_url: Optional[str] = Field(None, description="Where to fetch the original upload")
    current_image_url: Optional[str] = Field(None, description="Where to fetch the current image")
    status_message: str = Field("", description="Transient status text for the UI")
    history_index: int = Field(-1, description="-1 means the original image is current")
    can_undo: bool = False
    can_redo: bool = False
    history: list[HistoryItem] = Field(default_factory=list)

    @classmethod
    def from_session(cls, session: EditingSession) -> SessionStateResponse:
        index = session.history.current_index
        current_url = _image_url(session.id, session.current_image_ref, "current")
        return cls(
            id=session.id,
            state=session.state.value,
            created_at=session.created_at,
            original_filename=session.original_filename,
            mime_type=session.mime_type,
            width=session.width,
            height=session.height,
            file_size=session.file_size,
            original_image_url=_image_url(session.id, session.original_image_ref, "original"),
            current_image_url=current_url,
            status_message=session.status_message,
            history_index=index,
            can_undo=session.history.can_undo,
            can_redo=session.history.can_redo,
            history=[
                HistoryItem.from_entry(session.id, i, entry, index)
                for i, entry in enumerate(session.history.entries)
            ],
        )


class ListSessionsResponse(BaseModel):
    sessions: list[SessionStateResponse] = Field(..., description="Live sessions, newest first")


class ApplyOperationRequest(BaseModel):
    """Request model for running an AI operation on the session's current image."""
    operation: str = Field(..., description="Operation to apply", example="style-transfer")
    parameters: OperationParameters = Field(default_factory=OperationParameters)


class ApplyOperationResponse(BaseModel):
    """Outcome of an AI operation. Failures are reported here, not as HTTP errors."""
    success: bool = Field(..., description="Whether a new image was produced")
    error: Optional[str] = Field(None, description="Failure message")
    processing_time: int = Field(0, description="Remote round-trip in milliseconds")
    from_fallback: bool = Field(
        False, description="True when the result was guessed from raw reply text rather than an image URL"
    )
    session: SessionStateResponse


class ExportRequest(BaseModel):
    """Request model for exporting the current image."""
    format: str = Field("png", description="Output format", example="jpg", pattern="^(png|jpg|webp)$")
    quality: int = Field(
        DEFAULT_QUALITY, description="Quality for jpg/webp (ignored for png)", example=90, ge=MIN_QUALITY, le=MAX_QUALITY
    )
    file_name: Optional[str] = Field(None, description="Custom file name without extension", example="holiday")


class ExportEstimateResponse(BaseModel):
    format: str = Field(..., example="jpg")
    quality: int = Field(..., example=90)
    estimated_bytes: int = Field(..., description="Heuristic size estimate, not a guarantee")
    estimated_size: str = Field(..., example="1.2 MB")
