"""Helpers for the two kinds of image reference a session holds.

An image reference is either a remote URL (`http://` / `https://`) returned by
the AI service, or a `data:<mime>;base64,<payload>` URI holding the bytes.
"""
from __future__ import annotations

import base64
import binascii

DEFAULT_RESULT_MIME = "image/png"


def is_remote_url(ref: str) -> bool:
    return ref.startswith(("http://", "https://"))


def is_data_uri(ref: str) -> bool:
    return ref.startswith("data:")


def make_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def split_data_uri(ref: str) -> tuple[str, str]:
    """Return (mime_type, base64_payload) for a data URI."""
    header, sep, payload = ref.partition(",")
    if not sep or not header.startswith("data:"):
        raise ValueError("Malformed data URI")
    mime = header[len("data:") :].split(";", 1)[0] or DEFAULT_RESULT_MIME
    return mime, payload


def looks_like_base64(text: str) -> bool:
    # base64 bodies may be wrapped across lines but never contain spaces
    if " " in text.strip():
        return False
    compact = "".join(text.split())
    if not compact:
        return False
    try:
        base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def to_image_ref(payload: str) -> str:
    """Normalize a remote result payload into something a session can hold."""
    payload = payload.strip()
    if is_remote_url(payload) or is_data_uri(payload):
        return payload
    return f"data:{DEFAULT_RESULT_MIME};base64,{''.join(payload.split())}"
