from __future__ import annotations

import unicodedata
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from ai_image_editor.application.dtos.common_dto import ErrorResponse
from ai_image_editor.application.dtos.session_dto import (
    ApplyOperationRequest,
    ApplyOperationResponse,
    ExportEstimateResponse,
    ExportRequest,
    ListSessionsResponse,
    SessionStateResponse,
)
from ai_image_editor.application.use_cases.apply_operation import ApplyOperationUseCase
from ai_image_editor.application.use_cases.export_image import ExportImageUseCase
from ai_image_editor.application.use_cases.navigate_history import NavigateHistoryUseCase
from ai_image_editor.application.use_cases.preview_image import PreviewImageUseCase
from ai_image_editor.application.use_cases.upload_image import UploadImageUseCase
from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.errors import (
    HistoryIndexError,
    ImageLoadError,
    ImageValidationError,
    NoImageLoadedError,
    SessionBusyError,
)
from ai_image_editor.domain.services.display_service import DisplayService
from ai_image_editor.domain.services.export_service import (
    DEFAULT_BASE_NAME,
    DEFAULT_QUALITY,
    ExportService,
)
from ai_image_editor.domain.services.upload_validator import max_upload_bytes, validate_upload
from ai_image_editor.infrastructure.ai.ai_image_client import AIImageClient
from ai_image_editor.infrastructure.api.dependencies import (
    get_ai_client,
    get_display_service,
    get_export_service,
    get_image_loader,
    get_session,
    get_session_repo,
)
from ai_image_editor.infrastructure.images.image_loader import ImageLoader
from ai_image_editor.infrastructure.sessions.session_repository import SessionRepository

router = APIRouter(
    prefix="/sessions",
    tags=["Editing Sessions"],
    responses={
        404: {"model": ErrorResponse, "description": "Not Found - Session does not exist"},
        409: {"model": ErrorResponse, "description": "Conflict - An AI operation is already processing"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


async def _upload_into(
    session: EditingSession, file: UploadFile, exporter: ExportService
) -> EditingSession:
    uc = UploadImageUseCase(exporter=exporter)
    try:
        # reject on declared type and size before buffering the body
        validate_upload(file.content_type, file.size or 0)
        # never hold more than one byte past the limit in memory
        data = await file.read(max_upload_bytes() + 1)
        return uc.execute(session, data, file.filename, file.content_type)
    except ImageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.post(
    "/upload",
    response_model=SessionStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Image (New Session)",
    description="""
    Start a new editing session from an uploaded image.

    **Supported formats**: JPEG, PNG, WebP, GIF
    **Maximum file size**: 10MB

    The upload becomes both the original and the current image. Invalid files
    are rejected with a readable message and no session is created.
    """,
    response_description="State of the new editing session",
    responses={400: {"description": "Bad Request - Invalid image file, unsupported type or too large"}},
)
async def upload_new_session(
    file: UploadFile = File(..., description="Image file to edit"),
    sessions: SessionRepository = Depends(get_session_repo),
    exporter: ExportService = Depends(get_export_service),
):
    """Create a session and load the uploaded image into it."""
    session = sessions.create()
    try:
        await _upload_into(session, file, exporter)
    except HTTPException:
        sessions.delete(session.id)
        raise
    return SessionStateResponse.from_session(session)


@router.get(
    "",
    response_model=ListSessionsResponse,
    summary="List Sessions",
    description="List all live editing sessions held by this process, newest first.",
)
async def list_sessions(sessions: SessionRepository = Depends(get_session_repo)):
    """List live sessions."""
    return ListSessionsResponse(
        sessions=[SessionStateResponse.from_session(s) for s in sessions.list_all()]
    )


@router.post(
    "/{session_id}/upload",
    response_model=SessionStateResponse,
    summary="Replace Session Image",
    description="""
    Load a fresh upload into an existing session.

    This replaces the original image and clears the whole edit history,
    exactly like starting over with a new file.
    """,
    responses={400: {"description": "Bad Request - Invalid image file, unsupported type or too large"}},
)
async def upload_into_session(
    file: UploadFile = File(..., description="Image file to edit"),
    session: EditingSession = Depends(get_session),
    exporter: ExportService = Depends(get_export_service),
):
    """Replace the session image with a new upload."""
    await _upload_into(session, file, exporter)
    return SessionStateResponse.from_session(session)


@router.get(
    "/{session_id}",
    response_model=SessionStateResponse,
    summary="Get Session State",
    description="Current/original image links, processing status and the edit history.",
)
async def get_session_state(session: EditingSession = Depends(get_session)):
    """Get the editing state of a session."""
    return SessionStateResponse.from_session(session)


@router.delete(
    "/{session_id}",
    summary="Delete Session",
    description="Discard the session and everything in it.",
)
async def delete_session(
    session: EditingSession = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repo),
):
    """Drop a session."""
    return {"ok": sessions.delete(session.id)}


def _image_response(loader: ImageLoader, ref: str | None) -> Response:
    if ref is None:
        raise HTTPException(status_code=400, detail="Please upload an image first")
    try:
        data, mime = loader.fetch(ref)
    except ImageLoadError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Response(content=data, media_type=mime or "image/png")


def _content_disposition(file_name: str) -> str:
    """RFC 6266 attachment header: an ASCII `filename` plus a UTF-8 `filename*`."""
    ascii_name = unicodedata.normalize("NFKD", file_name).encode("ascii", "ignore").decode("ascii")
    ascii_name = "".join(c for c in ascii_name if c.isprintable() and c not in '"\\')
    stem, dot, ext = ascii_name.rpartition(".")
    if not dot:
        stem, ext = ascii_name, ""
    # nothing readable survived, e.g. a Cyrillic name
    if not stem.strip(" .-_"):
        ascii_name = f"{DEFAULT_BASE_NAME}{dot}{ext}"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name, safe='')}"


@router.get(
    "/{session_id}/image",
    summary="Download Session Image",
    description="Raw bytes of the current image, or of the original upload with `source=original`.",
    responses={200: {"content": {"image/*": {}}, "description": "Image file content"}},
)
def get_session_image(
    session: EditingSession = Depends(get_session),
    loader: ImageLoader = Depends(get_image_loader),
    source: str = Query("current", pattern="^(current|original)$", description="Which image to return"),
):
    """Return the current or original image bytes."""
    ref = session.original_image_ref if source == "original" else session.current_image_ref
    return _image_response(loader, ref)


@router.post(
    "/{session_id}/operations",
    response_model=ApplyOperationResponse,
    summary="Apply AI Operation",
    description="""
    Send the current image to the AI service and adopt the result.

    **On success** the result becomes the current image and is appended to the
    history. Any entries that could have been redone are discarded.

    **On failure** the session is left unchanged and `success` is false with an
    `error` message. Remote failures are not HTTP errors.

    Only one operation may be processing per session; a second request while
    one is running gets 409.
    """,
    responses={400: {"description": "No image has been uploaded"}},
)
async def apply_operation(
    body: ApplyOperationRequest,
    session: EditingSession = Depends(get_session),
    client: AIImageClient = Depends(get_ai_client),
    loader: ImageLoader = Depends(get_image_loader),
):
    """Run one AI operation against the session."""
    uc = ApplyOperationUseCase(client=client, loader=loader)
    parameters = body.parameters.model_dump(exclude_none=True)
    try:
        outcome = await run_in_threadpool(uc.execute, session, body.operation, parameters)
    except NoImageLoadedError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    return ApplyOperationResponse(
        success=outcome.result.success,
        error=outcome.result.error,
        processing_time=outcome.result.processing_time,
        from_fallback=outcome.result.from_fallback,
        session=SessionStateResponse.from_session(session),
    )


@router.post("/{session_id}/undo", response_model=SessionStateResponse, summary="Undo")
async def undo(session: EditingSession = Depends(get_session)):
    """Step back one edit, or to the original. No-op when there is nothing to undo."""
    try:
        NavigateHistoryUseCase().undo(session)
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionStateResponse.from_session(session)


@router.post("/{session_id}/redo", response_model=SessionStateResponse, summary="Redo")
async def redo(session: EditingSession = Depends(get_session)):
    """Step forward one edit. No-op when there is nothing to redo."""
    try:
        NavigateHistoryUseCase().redo(session)
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionStateResponse.from_session(session)


@router.post(
    "/{session_id}/reset",
    response_model=SessionStateResponse,
    summary="Reset To Original",
    description="Drop the whole edit history and show the original upload again.",
)
async def reset(session: EditingSession = Depends(get_session)):
    """Reset the session to its original image."""
    try:
        NavigateHistoryUseCase().reset(session)
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionStateResponse.from_session(session)


@router.get(
    "/{session_id}/history",
    response_model=SessionStateResponse,
    summary="Get Edit History",
    description="Same payload as the session state; `history` lists edits oldest first.",
)
async def get_history(session: EditingSession = Depends(get_session)):
    """List the session's edit history."""
    return SessionStateResponse.from_session(session)


@router.post(
    "/{session_id}/history/{index}",
    response_model=SessionStateResponse,
    summary="Jump To History Entry",
    description="Make any history entry current. Use `-1` for the original image.",
    responses={400: {"description": "History index out of range"}},
)
async def jump_to(index: int, session: EditingSession = Depends(get_session)):
    """Jump directly to a history position."""
    try:
        NavigateHistoryUseCase().jump_to(session, index)
    except HistoryIndexError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionStateResponse.from_session(session)


@router.get(
    "/{session_id}/history/{index}/image",
    summary="Download History Image",
    responses={200: {"content": {"image/*": {}}, "description": "Image file content"}},
)
def get_history_image(
    index: int,
    session: EditingSession = Depends(get_session),
    loader: ImageLoader = Depends(get_image_loader),
):
    """Return the image recorded at a history position."""
    entries = session.history.entries
    if not 0 <= index < len(entries):
        raise HTTPException(status_code=404, detail="History entry not found")
    return _image_response(loader, entries[index].image_ref)


@router.get(
    "/{session_id}/preview",
    summary="Render Canvas Preview",
    description="""
    Render the image the way the editor canvas shows it.

    The image is scaled to fit `max_width` x `max_height` keeping its aspect
    ratio. `zoom` (25-300, steps of 25) draws it larger or smaller, centred on
    the same canvas. Always returns PNG.
    """,
    responses={200: {"content": {"image/png": {}}, "description": "Rendered preview"}},
)
def preview(
    session: EditingSession = Depends(get_session),
    loader: ImageLoader = Depends(get_image_loader),
    display: DisplayService = Depends(get_display_service),
    source: str = Query("current", pattern="^(current|original)$"),
    max_width: int = Query(800, ge=1, le=4096, description="Display box width"),
    max_height: int = Query(600, ge=1, le=4096, description="Display box height"),
    zoom: int = Query(100, ge=25, le=300, description="Zoom percentage"),
):
    """Render a display-sized PNG of the session image."""
    uc = PreviewImageUseCase(loader=loader, display=display)
    try:
        content, size = uc.execute(session, source, max_width, max_height, zoom)
    except NoImageLoadedError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ImageLoadError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return Response(
        content=content,
        media_type="image/png",
        headers={"X-Display-Width": str(size.width), "X-Display-Height": str(size.height)},
    )


@router.post(
    "/{session_id}/export",
    summary="Export Current Image",
    description="""
    Re-encode the current image for download.

    **Formats:**
    - `png` - lossless, keeps transparency, ignores `quality`
    - `jpg` - transparency flattened to white, `quality` 10-100
    - `webp` - `quality` 10-100

    The file name is `file_name` when given, otherwise
    `<upload name>-edited-<timestamp>`, plus the format extension.
    """,
    responses={200: {"content": {"image/*": {}}, "description": "Exported file as attachment"}},
)
def export_image(
    body: ExportRequest,
    session: EditingSession = Depends(get_session),
    loader: ImageLoader = Depends(get_image_loader),
    exporter: ExportService = Depends(get_export_service),
):
    """Export the current image as a downloadable file."""
    uc = ExportImageUseCase(loader=loader, exporter=exporter)
    try:
        exported = uc.execute(session, body.format, body.quality, body.file_name)
    except NoImageLoadedError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ImageLoadError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": _content_disposition(exported.file_name)},
    )


@router.get(
    "/{session_id}/export/estimate",
    response_model=ExportEstimateResponse,
    summary="Estimate Export Size",
    description="Rough size hint for the export panel. Not guaranteed to match the real file.",
)
def estimate_export(
    session: EditingSession = Depends(get_session),
    loader: ImageLoader = Depends(get_image_loader),
    exporter: ExportService = Depends(get_export_service),
    format: str = Query("png", pattern="^(png|jpg|webp)$"),
    quality: int = Query(DEFAULT_QUALITY, ge=10, le=100),
):
    """Estimate the exported file size."""
    uc = ExportImageUseCase(loader=loader, exporter=exporter)
    try:
        estimate = uc.estimate(session, format, quality)
    except ImageLoadError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ExportEstimateResponse(
        format=format,
        quality=quality,
        estimated_bytes=estimate["bytes"],
        estimated_size=estimate["display"],
    )
