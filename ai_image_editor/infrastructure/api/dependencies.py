from __future__ import annotations

from typing import Annotated

import requests
from fastapi import Depends, HTTPException, Path, status

from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.errors import SessionNotFoundError
from ai_image_editor.domain.services.display_service import DisplayService
from ai_image_editor.domain.services.export_service import ExportService
from ai_image_editor.infrastructure.ai.ai_image_client import AIImageClient
from ai_image_editor.infrastructure.images.image_loader import ImageLoader
from ai_image_editor.infrastructure.sessions.session_repository import SessionRepository


# One pooled HTTP session per process, shared by the AI client and image loader
_HTTP_SESSION: requests.Session | None = None


def get_http_session() -> requests.Session:
    global _HTTP_SESSION
    if _HTTP_SESSION is None:
        _HTTP_SESSION = requests.Session()
    return _HTTP_SESSION


def close_http_session() -> None:
    global _HTTP_SESSION
    if _HTTP_SESSION is not None:
        _HTTP_SESSION.close()
        _HTTP_SESSION = None


def get_session_repo() -> SessionRepository:
    return SessionRepository()


def get_ai_client(
    http: Annotated[requests.Session, Depends(get_http_session)],
) -> AIImageClient:
    return AIImageClient(session=http)


def get_image_loader(
    http: Annotated[requests.Session, Depends(get_http_session)],
) -> ImageLoader:
    return ImageLoader(session=http)


def get_export_service() -> ExportService:
    return ExportService()


def get_display_service() -> DisplayService:
    return DisplayService()


def get_session(
    session_id: Annotated[str, Path(description="Editing session identifier")],
    sessions: Annotated[SessionRepository, Depends(get_session_repo)],
) -> EditingSession:
    try:
        return sessions.get(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
