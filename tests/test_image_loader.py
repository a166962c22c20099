from io import BytesIO

import numpy as np
import pytest
import requests
from PIL import Image

import image_loader
from compositing.errors import ImageLoadError
from image_loader import ImageLoader


def png_bytes(size, color):
    buffer = BytesIO()
    Image.new('RGBA', size, color).save(buffer, format='PNG')
    return buffer.getvalue()


class FakeResponse:
    def __init__(self, content, status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def fake_get(monkeypatch):
    responses = {}
    calls = []

    def get(url, timeout=None):
        calls.append((url, timeout))
        if url not in responses:
            raise requests.ConnectionError(f"cannot reach {url}")
        return responses[url]

    monkeypatch.setattr(image_loader.requests, 'get', get)
    get.responses = responses
    get.calls = calls
    return get


def test_fetch_local_path(tmp_path):
    path = tmp_path / 'mockup.png'
    path.write_bytes(png_bytes((6, 4), (255, 0, 0, 255)))

    texture = ImageLoader().fetch(str(path))

    assert texture.size == (6, 4)
    np.testing.assert_allclose(texture.pixels[0, 0], [1.0, 0.0, 0.0, 1.0])


def test_fetch_url_uses_timeout(fake_get):
    fake_get.responses['https://cdn.example.com/design.png'] = FakeResponse(png_bytes((3, 3), (0, 0, 255, 128)))

    texture = ImageLoader(timeout=12).fetch('https://cdn.example.com/design.png')

    assert texture.size == (3, 3)
    assert texture.pixels[0, 0, 3] == pytest.approx(128 / 255.0)
    assert fake_get.calls == [('https://cdn.example.com/design.png', 12)]


def test_load_all_returns_textures_in_order(fake_get, tmp_path):
    path = tmp_path / 'displacement.png'
    path.write_bytes(png_bytes((8, 8), (128, 128, 128, 255)))
    fake_get.responses['http://host/mockup.png'] = FakeResponse(png_bytes((10, 5), (0, 0, 0, 255)))
    fake_get.responses['http://host/design.png'] = FakeResponse(png_bytes((2, 4), (0, 0, 0, 0)))

    mockup, design, displacement = ImageLoader().load_all(
        'http://host/mockup.png', 'http://host/design.png', str(path)
    )

    assert mockup.size == (10, 5)
    assert design.size == (2, 4)
    assert displacement.size == (8, 8)


def test_load_all_fails_when_any_image_fails(fake_get):
    fake_get.responses['http://host/mockup.png'] = FakeResponse(png_bytes((10, 5), (0, 0, 0, 255)))
    fake_get.responses['http://host/design.png'] = FakeResponse(b'', status_code=404)
    fake_get.responses['http://host/map.png'] = FakeResponse(png_bytes((10, 5), (0, 0, 0, 255)))

    with pytest.raises(ImageLoadError) as excinfo:
        ImageLoader().load_all('http://host/mockup.png', 'http://host/design.png', 'http://host/map.png')

    assert excinfo.value.role == 'design'
    assert excinfo.value.locator == 'http://host/design.png'
    assert isinstance(excinfo.value.reason, requests.HTTPError)


def test_undecodable_image_is_a_load_error(tmp_path):
    path = tmp_path / 'broken.png'
    path.write_bytes(b'not an image')

    with pytest.raises(ImageLoadError) as excinfo:
        ImageLoader().load_all(str(tmp_path / 'missing.png'), str(path), str(path))

    assert excinfo.value.role == 'mockup'
