from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import time
from typing import Any

import requests

from ai_image_editor.domain.entities.operation import OperationRequest
from ai_image_editor.domain.entities.remote_result import RemoteResult
from ai_image_editor.domain.errors import AIServiceError, ImageLoadError
from ai_image_editor.domain.services.export_service import ExportService
from ai_image_editor.domain.services.image_refs import looks_like_base64
from ai_image_editor.domain.services.prompt_builder import build_prompt

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://oi-server.onrender.com/chat/completions"
DEFAULT_MODEL = "replicate/black-forest-labs/flux-1.1-pro"

_IMAGE_URL_RE = re.compile(r"(https?://[^\s]+\.(?:jpg|jpeg|png|webp|gif))", re.IGNORECASE)
_DATA_URI_RE = re.compile(r"(data:image/[a-zA-Z0-9.+-]+;base64,[A-Za-z0-9+/=]+)")


class AIImageClient:
    """Single-endpoint client for the hosted image model.

    Every call sends one chat-completions request carrying a text instruction
    and the image as a data URI, then digs a result image out of the reply.
    Failures come back as `RemoteResult(success=False)`; nothing is raised.

    When AI_SERVICE_DISABLED=1 the input image is echoed back, which keeps the
    editor usable without credentials.
    """

    def __init__(self, session: requests.Session | None = None) -> None:
        self.endpoint = os.getenv("AI_SERVICE_URL", DEFAULT_ENDPOINT)
        self.model = os.getenv("AI_SERVICE_MODEL", DEFAULT_MODEL)
        self.api_key = os.getenv("AI_SERVICE_API_KEY", "xxx")
        self.customer_id = os.getenv("AI_SERVICE_CUSTOMER_ID")
        timeout = os.getenv("AI_SERVICE_TIMEOUT")
        self.timeout = float(timeout) if timeout else None
        self.disabled = os.getenv("AI_SERVICE_DISABLED", "0") == "1"
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        if self.customer_id:
            headers["customerId"] = self.customer_id
        return headers

    def build_payload(
        self, image_base64: str, request: OperationRequest, mime_type: str = "image/jpeg"
    ) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": build_prompt(request)},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
                        },
                    ],
                }
            ],
        }

    def process_image(
        self, image_base64: str, request: OperationRequest, mime_type: str = "image/jpeg"
    ) -> RemoteResult:
        start = time.monotonic()

        def elapsed() -> int:
            return int((time.monotonic() - start) * 1000)

        if not isinstance(image_base64, str) or not image_base64.strip():
            return RemoteResult.failure("Image must be a non-empty base64 string", elapsed())

        if self.disabled:
            logger.info("AI service disabled, echoing input for %s", request.name)
            return RemoteResult(
                success=True,
                data=f"data:{mime_type};base64,{image_base64}",
                processing_time=elapsed(),
            )

        payload = self.build_payload(image_base64, request, mime_type)
        try:
            response = self.session.post(
                self.endpoint, headers=self._headers(), json=payload, timeout=self.timeout
            )
            if not response.ok:
                raise AIServiceError(
                    f"AI service error: {response.status_code} {response.reason}".rstrip()
                )
            body = response.json()
            data, from_fallback = self.extract_image(body)
        except (requests.RequestException, ValueError, AIServiceError) as exc:
            logger.error("AI service call for %s failed: %s", request.name, exc)
            return RemoteResult.failure(str(exc) or "Unknown error occurred", elapsed())

        result = RemoteResult(
            success=True, data=data, processing_time=elapsed(), from_fallback=from_fallback
        )
        logger.info("AI service finished %s in %d ms", request.name, result.processing_time)
        return result

    @staticmethod
    def extract_image(body: Any) -> tuple[str, bool]:
        """Find the result image in a chat-completions reply.

        Returns (image_ref_or_base64, from_fallback). Structured image parts win,
        then an image URL or data URI found in the text. As a last resort the
        whole text is taken as base64; that is best-effort only and rejected
        unless it decodes to an image Pillow can open.
        """
        if not isinstance(body, dict):
            raise AIServiceError("Unexpected AI service response format")
        choices = body.get("choices") or []
        message = choices[0].get("message") if choices and isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise AIServiceError("AI service response contained no message")

        for image in message.get("images") or []:
            url = (image.get("image_url") or {}).get("url") if isinstance(image, dict) else None
            if url:
                return url, False

        content = message.get("content") or ""
        if isinstance(content, list):
            texts = []
            for part in content:
                if not isinstance(part, dict):
                    continue
                if part.get("type") == "image_url":
                    url = (part.get("image_url") or {}).get("url")
                    if url:
                        return url, False
                elif part.get("type") == "text":
                    texts.append(part.get("text") or "")
            content = "\n".join(texts)

        if not isinstance(content, str):
            raise AIServiceError("Unexpected AI service message content")

        match = _IMAGE_URL_RE.search(content)
        if match:
            return match.group(1), False
        match = _DATA_URI_RE.search(content)
        if match:
            return match.group(1), False

        text = content.strip()
        if not text:
            raise AIServiceError("AI service returned no image")
        if not looks_like_base64(text) or not AIImageClient._is_image_payload(text):
            raise AIServiceError("AI service reply did not contain an image")
        logger.warning("No image URL in AI reply; treating %d chars of text as base64", len(text))
        return text, True

    @staticmethod
    def _is_image_payload(text: str) -> bool:
        # short words like "Done" are valid base64; only accept bytes Pillow can open
        try:
            ExportService.decode(base64.b64decode("".join(text.split())))
        except (ImageLoadError, binascii.Error, ValueError):
            return False
        return True
