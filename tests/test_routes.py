import io
from unittest.mock import patch

import pytest
from PIL import Image
from fastapi.testclient import TestClient

from favicon_api.config import AppConfig
from favicon_api.errors import CustomDefaultFailed, NoAssetFound
from favicon_api.main import app
from favicon_api.models import DiscoveryResult, PageMetadata, ResolvedAsset, SourceTag
from favicon_api.routes.icons import get_app_config


client = TestClient(app)


def encode(fmt, size):
    buffer = io.BytesIO()
    Image.new("RGB", size, "green").save(buffer, format=fmt)
    return buffer.getvalue()


ICON = encode("PNG", (32, 32))
SOCIAL = encode("JPEG", (120, 60))


@pytest.fixture(autouse=True)
def test_config():
    app.dependency_overrides[get_app_config] = lambda: AppConfig(use_fallback_api=False)
    yield
    app.dependency_overrides.clear()


def favicon_result(og=True):
    return DiscoveryResult(
        favicon=ResolvedAsset(ICON, "png", SourceTag.LINK_TAG, "https://example.com/icon.png"),
        og_image=ResolvedAsset(SOCIAL, "jpg", SourceTag.OG_META, "https://example.com/og.jpg") if og else None,
        metadata=PageMetadata(title="Example", description="Example site", site_name="Ex"),
    )


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_domain():
    response = client.get("/")
    assert response.status_code == 400
    assert response.json() == {"error": "Domain parameter is required"}


@patch("favicon_api.routes.icons.resolve_favicon")
def test_favicon_image_response(mock_resolve):
    mock_resolve.return_value = favicon_result(og=False)
    response = client.get("/example.com")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content == ICON
    args, kwargs = mock_resolve.call_args
    assert args[0] == "example.com"
    assert kwargs["include_og"] is False
    assert kwargs["skip_fallback"] is False


@patch("favicon_api.routes.icons.resolve_favicon")
def test_favicon_resized_and_converted(mock_resolve):
    mock_resolve.return_value = favicon_result(og=False)
    response = client.get("/example.com", params={"size": 64, "format": "jpg"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert mock_resolve.call_args.kwargs["size"] == 64


@patch("favicon_api.routes.icons.resolve_favicon")
def test_favicon_json_response(mock_resolve):
    mock_resolve.return_value = favicon_result()
    response = client.get(
        "/example.com", params={"response": "json", "default": "https://cdn.example.net/d.png"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["favicon"]["source_url"] == "https://example.com/icon.png"
    assert data["favicon"]["source"] == "link-tag"
    assert data["favicon"]["width"] == 32
    assert data["favicon"]["format"] == "png"
    assert data["favicon"]["is_fallback"] is False
    assert data["favicon"]["url"].startswith("http://testserver/example.com?")
    assert data["og_image"]["source"] == "og:image"
    assert data["og_image"]["url"] == "http://testserver/og/example.com"
    assert data["metadata"] == {"title": "Example", "description": "Example site", "site_name": "Ex"}
    kwargs = mock_resolve.call_args.kwargs
    assert kwargs["include_og"] is True
    assert kwargs["default_url"] == "https://cdn.example.net/d.png"


@patch("favicon_api.routes.icons.resolve_favicon")
def test_favicon_not_found(mock_resolve):
    mock_resolve.side_effect = NoAssetFound("No favicon found (fallback skipped)")

    response = client.get("/example.com", params={"skipFallback": "true"})
    assert response.status_code == 404
    assert response.content == b""
    assert mock_resolve.call_args.kwargs["skip_fallback"] is True

    response = client.get("/example.com", params={"skipFallback": "true", "response": "json"})
    assert response.status_code == 404
    assert "error" in response.json()


@patch("favicon_api.routes.icons.resolve_favicon")
def test_custom_default_failure(mock_resolve):
    mock_resolve.side_effect = CustomDefaultFailed("https://cdn.example.net/d.png", "HTTP 404")
    response = client.get("/example.com", params={"default": "https://cdn.example.net/d.png"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch default image"}


@patch("favicon_api.routes.icons.resolve_favicon")
def test_unexpected_error(mock_resolve):
    mock_resolve.side_effect = RuntimeError("boom")
    response = client.get("/example.com")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_invalid_query_parameters():
    assert client.get("/example.com", params={"size": 0}).status_code == 422
    assert client.get("/example.com", params={"format": "bmp"}).status_code == 422


@patch("favicon_api.routes.icons.resolve_og_image")
def test_og_image_response(mock_resolve):
    mock_resolve.return_value = favicon_result()
    response = client.get("/og/example.com")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert response.content == SOCIAL


@patch("favicon_api.routes.icons.resolve_og_image")
def test_og_json_response(mock_resolve):
    mock_resolve.return_value = favicon_result()
    response = client.get("/og/example.com", params={"response": "json"})
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Example"
    assert data["site_name"] == "Ex"
    assert data["source_url"] == "https://example.com/og.jpg"
    assert (data["width"], data["height"]) == (120, 60)
    assert data["format"] == "jpg"


@patch("favicon_api.routes.icons.resolve_og_image")
def test_og_not_found(mock_resolve):
    mock_resolve.side_effect = NoAssetFound("No OG image found")
    response = client.get("/og/example.com", params={"response": "json"})
    assert response.status_code == 404


@patch("favicon_api.routes.icons.apply_fallback_cascade")
def test_root_with_query_serves_fallback(mock_cascade):
    mock_cascade.return_value = ResolvedAsset(ICON, "png", SourceTag.CACHED_DEFAULT, "builtin:default")

    response = client.get("/", params={"size": 16})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"

    response = client.get("/", params={"response": "json", "default": "https://cdn.example.net/d.png"})
    assert response.status_code == 200
    data = response.json()
    assert data["favicon"]["source"] == "default"
    assert data["favicon"]["is_fallback"] is True
    assert data["og_image"] is None
    assert mock_cascade.call_args.kwargs["default_url"] == "https://cdn.example.net/d.png"


@patch("favicon_api.routes.icons.apply_fallback_cascade")
def test_root_with_query_and_failing_default(mock_cascade):
    mock_cascade.side_effect = CustomDefaultFailed("https://cdn.example.net/d.png", "HTTP 404")
    response = client.get("/", params={"default": "https://cdn.example.net/d.png"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch default image"}
