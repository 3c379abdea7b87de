from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ai_image_editor.application.dtos.common_dto import HealthResponse, RootResponse
from ai_image_editor.infrastructure.api.dependencies import close_http_session
from ai_image_editor.infrastructure.api.middlewares import add_default_middlewares
from ai_image_editor.infrastructure.api.routes.image_edit_routes import router as image_edit_router
from ai_image_editor.infrastructure.api.routes.session_routes import router as session_router
from ai_image_editor.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_http_session()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="AI Image Editor Backend",
        version="0.1.0",
        lifespan=lifespan,
        description="""
        ## AI Image Editor API

        FastAPI backend for a browser image editor. Every edit is delegated to a
        hosted multimodal model; this service keeps the editing session, its
        undo/redo history, and the display/export surfaces.

        ### Features
        - **AI Operations**: background removal, style transfer, enhancement,
          object removal and artistic filters
        - **Editing Sessions**: upload, apply, undo, redo, jump and reset
        - **Canvas Preview**: bounded display size with zoom
        - **Export**: PNG, JPEG or WebP with adjustable quality

        ### Error Responses
        - **400 Bad Request**: Invalid upload, parameters or history index
        - **404 Not Found**: Session does not exist
        - **409 Conflict**: An AI operation is already processing for the session
        - **422 Unprocessable Entity**: Validation error or undecodable image
        - **500 Internal Server Error**: AI processing failed (stateless endpoint) or unexpected error
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the AI Image Editor API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "ai-image-editor", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(image_edit_router)
    app.include_router(session_router)
    return app


app = create_app()
