import io
import os
import sys
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'ai_image_editor' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("AI_SERVICE_DISABLED", "1")


def make_image_bytes(w=4, h=4, color=(128, 64, 32), fmt="PNG") -> bytes:
    # 3-tuple colors give RGB, 4-tuple colors give RGBA
    arr = np.zeros((h, w, len(color)), dtype=np.uint8)
    arr[:, :] = color
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def image_factory():
    return make_image_bytes


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture()
def app():
    # lazy import after env configured
    from ai_image_editor.main import create_app

    return create_app()


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)
