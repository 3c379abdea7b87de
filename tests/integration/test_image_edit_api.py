from unittest.mock import Mock

import pytest

from ai_image_editor.domain.entities.remote_result import RemoteResult
from ai_image_editor.domain.entities.operation import SUPPORTED_OPERATIONS
from ai_image_editor.infrastructure.api.dependencies import get_ai_client

IMAGE_B64 = "aGVsbG8="


@pytest.fixture()
def ai_client(app):
    mock = Mock()
    app.dependency_overrides[get_ai_client] = lambda: mock
    yield mock
    app.dependency_overrides.clear()


def test_root_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["service"] == "ai-image-editor"
    assert client.get("/health").json() == {"status": "healthy"}


def test_capability_descriptor(client):
    r = client.get("/image-edit")
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "AI Image Processing API"
    assert body["supportedOperations"] == list(SUPPORTED_OPERATIONS)
    assert body["usage"]["method"] == "POST"


@pytest.mark.parametrize(
    "payload",
    [
        {"operation": "enhance"},
        {"image": IMAGE_B64},
        {"image": "", "operation": "enhance"},
    ],
)
def test_missing_fields_are_400(client, ai_client, payload):
    r = client.post("/image-edit", json=payload)
    assert r.status_code == 400
    assert r.json() == {"error": "Missing required fields: image and operation"}
    ai_client.process_image.assert_not_called()


def test_non_string_image_is_400(client, ai_client):
    r = client.post("/image-edit", json={"image": 123, "operation": "enhance"})
    assert r.status_code == 400
    assert r.json()["error"] == "Image must be a base64 string"


def test_object_removal_needs_prompt(client, ai_client):
    r = client.post("/image-edit", json={"image": IMAGE_B64, "operation": "object-removal"})
    assert r.status_code == 400
    assert r.json()["error"] == "Object description is required for object removal"
    ai_client.process_image.assert_not_called()


def test_success(client, ai_client):
    ai_client.process_image.return_value = RemoteResult(
        success=True, data="https://cdn.example.com/out.png", processing_time=321
    )
    r = client.post(
        "/image-edit",
        json={"image": IMAGE_B64, "operation": "style-transfer", "parameters": {"style": "anime"}},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["imageUrl"] == "https://cdn.example.com/out.png"
    assert body["processingTime"] == 321
    assert body["operation"] == "style-transfer"
    image, request = ai_client.process_image.call_args[0]
    assert image == IMAGE_B64
    assert request.style == "anime"


def test_remote_failure_is_500(client, ai_client):
    ai_client.process_image.return_value = RemoteResult.failure("AI service error: 502 Bad Gateway")
    r = client.post("/image-edit", json={"image": IMAGE_B64, "operation": "enhance"})
    assert r.status_code == 500
    assert r.json() == {
        "success": False,
        "error": "AI service error: 502 Bad Gateway",
        "operation": "enhance",
    }


def test_malformed_json_is_500_with_details(client, ai_client):
    r = client.post(
        "/image-edit", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert r.status_code == 500
    assert r.json()["details"] == "Failed to process image request"


def test_disabled_service_echoes_image(client):
    # AI_SERVICE_DISABLED=1 is the test default
    r = client.post("/image-edit", json={"image": IMAGE_B64, "operation": "enhance"})
    assert r.status_code == 200
    assert r.json()["imageUrl"] == f"data:image/jpeg;base64,{IMAGE_B64}"
