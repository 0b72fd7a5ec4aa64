import io

import pytest
import requests
from PIL import Image

from favicon_api.config import AppConfig


def build_response(status=200, content=b"", url="https://example.com/", headers=None):
    resp = requests.Response()
    resp.status_code = status
    resp._content = content
    resp._content_consumed = True
    resp.url = url
    resp.encoding = "utf-8"
    if headers:
        resp.headers.update(headers)
    return resp


def build_image(fmt="PNG", size=(16, 16), color="red"):
    image = Image.new("RGB", size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeWeb:
    """Stands in for a requests session: canned responses per URL, every call recorded."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        route = self.routes.get(url)
        if route is None:
            return build_response(404, b"Not found", url)
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(url, **kwargs)
        if isinstance(route, requests.Response):
            return route
        if isinstance(route, str):
            route = route.encode("utf-8")
        return build_response(200, route, url)

    @property
    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def config():
    return AppConfig(request_timeout=2000, use_fallback_api=False)


@pytest.fixture
def png_bytes():
    return build_image("PNG")


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def make_image():
    return build_image


@pytest.fixture
def fake_web():
    return FakeWeb
