from io import BytesIO

import pytest
import requests
from PIL import Image

from albumposter.errors import ImageLoadFailure
from albumposter.images import load_image
from albumposter.scancode import QrCodeProvider, SpotifyCodeProvider, spotify_code_url, web_url_for


def png_bytes(size=(8, 4), color="red"):
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeResponse:
    def __init__(self, content=b"", status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        return self.response


def test_load_local_file(tmp_path):
    path = tmp_path / "cover.png"
    path.write_bytes(png_bytes())
    img = load_image(str(path))
    assert img.mode == "RGBA"
    assert img.size == (8, 4)


def test_load_over_http():
    session = FakeSession(FakeResponse(png_bytes((3, 3), "blue")))
    img = load_image("https://images.example/a.png", session=session)
    assert img.getpixel((1, 1)) == (0, 0, 255, 255)
    assert session.urls == ["https://images.example/a.png"]


@pytest.mark.parametrize("response", [
    FakeResponse(b"not an image"),
    FakeResponse(png_bytes(), status_code=404),
])
def test_http_failures_become_image_load_failure(response):
    with pytest.raises(ImageLoadFailure):
        load_image("https://images.example/a.png", session=FakeSession(response))


def test_missing_file(tmp_path):
    with pytest.raises(ImageLoadFailure) as exc:
        load_image(str(tmp_path / "nope.jpg"))
    assert exc.value.source.endswith("nope.jpg")


def test_spotify_code_url():
    assert spotify_code_url("spotify:track:abc") == (
        "https://scannables.scdn.co/uri/plain/png/FFFFFF/black/640/spotify:track:abc")


def test_spotify_provider_uses_loader():
    seen = []

    def fake_load(url):
        seen.append(url)
        return Image.new("RGBA", (640, 160), "white")

    img = SpotifyCodeProvider(fake_load)("spotify:album:xyz")
    assert img.size == (640, 160)
    assert seen == [spotify_code_url("spotify:album:xyz")]


def test_web_url_for():
    assert web_url_for("spotify:album:xyz") == "https://open.spotify.com/album/xyz"
    assert web_url_for("https://example.com/x") == "https://example.com/x"


def test_qr_provider_draws_square_code():
    img = QrCodeProvider()("spotify:album:4m2880jivSbbyEGAKfITCa")
    assert img.width == img.height
    # finder pattern in the top-left corner is dark
    assert img.getpixel((16 + 56, 16 + 56))[:3] == (0, 0, 0)
