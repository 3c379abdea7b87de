from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ai_image_editor.application.dtos.image_edit_dto import CapabilityResponse, ImageEditResponse
from ai_image_editor.domain.entities.operation import (
    SUPPORTED_OPERATIONS,
    OperationRequest,
    OperationType,
)
from ai_image_editor.infrastructure.ai.ai_image_client import AIImageClient
from ai_image_editor.infrastructure.api.dependencies import get_ai_client

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/image-edit",
    tags=["AI Image Edit"],
    responses={
        400: {"description": "Bad Request - Missing image/operation or invalid parameters"},
        500: {"description": "AI processing failed or unexpected server error"},
    },
)


@router.post(
    "",
    response_model=ImageEditResponse,
    summary="Edit Image With AI",
    description="""
    Send one image to the hosted AI model and return the edited result.

    **Request Body:**
    ```json
    {
      "image": "<base64 without data: prefix>",
      "operation": "style-transfer",
      "parameters": {"style": "anime"}
    }
    ```

    **Supported Operations:**
    - `background-removal` - no parameters
    - `style-transfer` - `style` (default `artistic`)
    - `enhance` - no parameters
    - `object-removal` - `prompt` describing the object (required)
    - `artistic-filter` - `style` (default `watercolor`)

    Any other operation name is sent as a generic enhance request.

    **Response**: `imageUrl` holds a URL, data URI or raw base64 payload, depending
    on what the model returned. This endpoint keeps no state.
    """,
    response_description="Edited image reference and timing",
)
async def edit_image(
    request: Request,
    client: AIImageClient = Depends(get_ai_client),
):
    """Run one stateless AI edit."""
    try:
        body = await request.json()
        if not isinstance(body, dict):
            return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})
        image = body.get("image")
        operation = body.get("operation")
        parameters = body.get("parameters") or {}

        if not image or not operation:
            return JSONResponse(
                status_code=400, content={"error": "Missing required fields: image and operation"}
            )
        if not isinstance(image, str):
            return JSONResponse(status_code=400, content={"error": "Image must be a base64 string"})
        if not isinstance(parameters, dict):
            return JSONResponse(status_code=400, content={"error": "Parameters must be an object"})

        op_request = OperationRequest.from_payload(str(operation), parameters)
        if op_request.operation is OperationType.OBJECT_REMOVAL and not op_request.prompt:
            return JSONResponse(
                status_code=400,
                content={"error": "Object description is required for object removal"},
            )

        result = await run_in_threadpool(client.process_image, image, op_request)
        if result.success:
            return ImageEditResponse(
                success=True,
                imageUrl=result.data,
                processingTime=result.processing_time,
                operation=op_request.name,
            )
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": result.error or "Processing failed",
                "operation": op_request.name,
            },
        )
    except Exception as exc:
        logger.exception("Image processing API error")
        return JSONResponse(
            status_code=500,
            content={
                "error": str(exc) or "Internal server error",
                "details": "Failed to process image request",
            },
        )


@router.get(
    "",
    response_model=CapabilityResponse,
    summary="Describe Image Edit API",
    description="Static descriptor listing the supported operations and the POST body shape.",
)
def describe_image_edit():
    """Return the capability descriptor."""
    return CapabilityResponse(
        message="AI Image Processing API",
        version="1.0.0",
        supportedOperations=list(SUPPORTED_OPERATIONS),
        usage={
            "method": "POST",
            "contentType": "application/json",
            "body": {
                "image": "base64 encoded image string",
                "operation": "one of the supported operations",
                "parameters": "optional parameters object",
            },
        },
    )
