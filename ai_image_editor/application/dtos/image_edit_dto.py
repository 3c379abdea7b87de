from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class OperationParameters(BaseModel):
    """Optional knobs for an AI operation. Unknown keys are passed through."""
    style: Optional[str] = Field(None, description="Style or filter name", example="anime")
    prompt: Optional[str] = Field(None, description="Free-text target, e.g. the object to remove", example="the car")
    intensity: Optional[float] = Field(None, description="Effect intensity", example=0.8)
    mask: Optional[str] = Field(None, description="Base64 mask for object removal")

    model_config = {"extra": "allow"}


class ImageEditResponse(BaseModel):
    """Result of the stateless image-edit endpoint."""
    success: bool = Field(..., description="Whether the AI service produced an image")
    imageUrl: Optional[str] = Field(None, description="Result image URL, data URI or base64 payload")
    error: Optional[str] = Field(None, description="Failure message when success is false")
    processingTime: Optional[int] = Field(None, description="Round-trip time in milliseconds", example=4200)
    operation: str = Field(..., description="The operation that was requested", example="background-removal")


class CapabilityResponse(BaseModel):
    """Static description of the image-edit endpoint."""
    message: str = Field(..., example="AI Image Processing API")
    version: str = Field(..., example="1.0.0")
    supportedOperations: list[str] = Field(..., description="Operation names accepted by POST")
    usage: dict[str, Any] = Field(..., description="Request shape for POST")
