"""
Tests for the remote processing client. The HTTP session is a Mock, so no
request ever leaves the process.
"""
from __future__ import annotations

import base64
from unittest.mock import Mock

import pytest
import requests

from ai_image_editor.domain.entities.operation import OperationRequest
from ai_image_editor.domain.errors import AIServiceError
from ai_image_editor.domain.services.prompt_builder import BACKGROUND_REMOVAL_PROMPT
from ai_image_editor.infrastructure.ai.ai_image_client import AIImageClient

IMAGE_B64 = base64.b64encode(b"fake-image-bytes").decode()


@pytest.fixture
def http_session():
    return Mock()


@pytest.fixture
def ai_client(monkeypatch, http_session):
    monkeypatch.setenv("AI_SERVICE_DISABLED", "0")
    monkeypatch.setenv("AI_SERVICE_URL", "https://ai.example.com/chat/completions")
    monkeypatch.setenv("AI_SERVICE_MODEL", "test-model")
    monkeypatch.setenv("AI_SERVICE_API_KEY", "secret")
    monkeypatch.delenv("AI_SERVICE_CUSTOMER_ID", raising=False)
    monkeypatch.delenv("AI_SERVICE_TIMEOUT", raising=False)
    return AIImageClient(session=http_session)


def _response(body=None, status_code=200, reason="OK"):
    response = Mock()
    response.ok = 200 <= status_code < 300
    response.status_code = status_code
    response.reason = reason
    response.json.return_value = body
    return response


def _chat(content, **message_extra):
    return {"choices": [{"message": {"role": "assistant", "content": content, **message_extra}}]}


class TestRequestShape:
    def test_single_post_with_prompt_and_data_uri(self, ai_client, http_session):
        http_session.post.return_value = _response(_chat("https://cdn.example.com/out.png"))

        ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("background-removal"))

        assert http_session.post.call_count == 1
        args, kwargs = http_session.post.call_args
        assert args[0] == "https://ai.example.com/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert "customerId" not in kwargs["headers"]
        assert kwargs["timeout"] is None
        payload = kwargs["json"]
        assert payload["model"] == "test-model"
        content = payload["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": BACKGROUND_REMOVAL_PROMPT}
        assert content[1]["image_url"]["url"] == f"data:image/jpeg;base64,{IMAGE_B64}"

    def test_customer_id_and_mime(self, monkeypatch, http_session):
        monkeypatch.setenv("AI_SERVICE_DISABLED", "0")
        monkeypatch.setenv("AI_SERVICE_CUSTOMER_ID", "customer-1")
        client = AIImageClient(session=http_session)
        http_session.post.return_value = _response(_chat("https://cdn.example.com/out.png"))

        client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"), mime_type="image/png")

        kwargs = http_session.post.call_args[1]
        assert kwargs["headers"]["customerId"] == "customer-1"
        assert kwargs["json"]["messages"][0]["content"][1]["image_url"]["url"].startswith(
            "data:image/png;base64,"
        )


class TestExtraction:
    def test_url_in_text(self, ai_client, http_session):
        http_session.post.return_value = _response(
            _chat("Here you go: https://cdn.example.com/result/abc.PNG enjoy")
        )
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert result.success
        assert result.data == "https://cdn.example.com/result/abc.PNG"
        assert not result.from_fallback

    def test_structured_images_win_over_text(self, ai_client, http_session):
        body = _chat(
            "see https://cdn.example.com/other.jpg",
            images=[{"type": "image_url", "image_url": {"url": "https://cdn.example.com/real.webp"}}],
        )
        http_session.post.return_value = _response(body)
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert result.data == "https://cdn.example.com/real.webp"

    def test_content_parts(self, ai_client, http_session):
        parts = [
            {"type": "text", "text": "done"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
        ]
        http_session.post.return_value = _response(_chat(parts))
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert result.data == "data:image/png;base64,AAAA"

    def test_data_uri_in_text(self, ai_client, http_session):
        http_session.post.return_value = _response(_chat("result: data:image/png;base64,iVBORw0KGgo="))
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert result.data == "data:image/png;base64,iVBORw0KGgo="
        assert not result.from_fallback

    def test_raw_base64_fallback_is_flagged(self, ai_client, http_session, png_bytes):
        payload = base64.b64encode(png_bytes).decode()
        http_session.post.return_value = _response(_chat(payload))
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert result.success
        assert result.data == payload
        assert result.from_fallback

    @pytest.mark.parametrize("reply", ["Done", "Okay", "c29tZSBieXRlcw=="])
    def test_base64_text_that_is_not_an_image_is_a_failure(self, ai_client, http_session, reply):
        http_session.post.return_value = _response(_chat(reply))
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert not result.success
        assert result.error == "AI service reply did not contain an image"

    def test_extract_image_rejects_short_word(self):
        with pytest.raises(AIServiceError):
            AIImageClient.extract_image({"choices": [{"message": {"content": "Done"}}]})

    def test_prose_reply_is_a_failure(self, ai_client, http_session):
        http_session.post.return_value = _response(_chat("Sorry, I cannot edit images."))
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert not result.success
        assert "did not contain an image" in result.error

    def test_empty_reply_is_a_failure(self, ai_client, http_session):
        http_session.post.return_value = _response(_chat(""))
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert not result.success
        assert result.error == "AI service returned no image"

    def test_missing_choices_is_a_failure(self, ai_client, http_session):
        http_session.post.return_value = _response({"id": "x"})
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert not result.success


class TestFailures:
    def test_http_500(self, ai_client, http_session):
        http_session.post.return_value = _response(None, status_code=500, reason="Internal Server Error")
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert not result.success
        assert result.error == "AI service error: 500 Internal Server Error"
        assert result.data is None

    def test_network_error(self, ai_client, http_session):
        http_session.post.side_effect = requests.ConnectionError("connection refused")
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert not result.success
        assert result.error == "connection refused"

    def test_invalid_json(self, ai_client, http_session):
        response = _response()
        response.json.side_effect = ValueError("Expecting value")
        http_session.post.return_value = response
        result = ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert not result.success
        assert result.error == "Expecting value"

    def test_empty_image_makes_no_call(self, ai_client, http_session):
        result = ai_client.process_image("", OperationRequest.from_payload("enhance"))
        assert not result.success
        http_session.post.assert_not_called()

    def test_no_retry(self, ai_client, http_session):
        http_session.post.return_value = _response(None, status_code=503, reason="Service Unavailable")
        ai_client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"))
        assert http_session.post.call_count == 1


def test_disabled_mode_echoes_input(monkeypatch, http_session):
    monkeypatch.setenv("AI_SERVICE_DISABLED", "1")
    client = AIImageClient(session=http_session)
    result = client.process_image(IMAGE_B64, OperationRequest.from_payload("enhance"), mime_type="image/png")
    assert result.success
    assert result.data == f"data:image/png;base64,{IMAGE_B64}"
    http_session.post.assert_not_called()
