from unittest.mock import Mock

import pytest
import requests

from ai_image_editor.domain.errors import ImageLoadError
from ai_image_editor.infrastructure.images.image_loader import ImageLoader


@pytest.fixture()
def http():
    return Mock()


def _reply(http, content=b"bytes", content_type="image/webp"):
    http.get.return_value.content = content
    http.get.return_value.headers = {"Content-Type": content_type} if content_type else {}


def test_data_uri_needs_no_network(http):
    loader = ImageLoader(session=http)
    assert loader.fetch("data:image/gif;base64,R0lG") == (b"GIF", "image/gif")
    assert loader.encode("data:image/gif;base64,R0lG") == ("R0lG", "image/gif")
    http.get.assert_not_called()


def test_remote_mime_comes_from_response(http):
    _reply(http, content_type="image/webp")
    loader = ImageLoader(session=http)
    assert loader.fetch("https://cdn.example.com/out") == (b"bytes", "image/webp")
    assert loader.encode("https://cdn.example.com/out", default_mime="image/jpeg") == (
        "Ynl0ZXM=",
        "image/webp",
    )


@pytest.mark.parametrize("content_type", [None, "application/octet-stream"])
def test_remote_mime_falls_back_to_default(http, content_type):
    _reply(http, content_type=content_type)
    loader = ImageLoader(session=http)
    assert loader.encode("https://cdn.example.com/out", default_mime="image/jpeg")[1] == "image/jpeg"


def test_fetch_failure(http):
    http.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(ImageLoadError, match="Failed to fetch image"):
        ImageLoader(session=http).load_bytes("https://cdn.example.com/out.png")


def test_unsupported_reference(http):
    with pytest.raises(ImageLoadError, match="Unsupported"):
        ImageLoader(session=http).fetch("ftp://example.com/x.png")
