import pytest
from PIL import Image

from albumposter.errors import ImageLoadFailure
from albumposter.model import PosterDescription, Variant

QUADRANT_COLORS = [(200, 30, 30), (30, 160, 60), (40, 60, 200), (230, 200, 40)]

ABBEY_ROAD_TRACKS = (
    "Come Together",
    "Something",
    "Maxwell's Silver Hammer",
    "Oh! Darling",
    "Octopus's Garden",
    "I Want You (She's So Heavy)",
    "Here Comes the Sun",
    "Because",
    "You Never Give Me Your Money",
    "Sun King",
    "Mean Mr. Mustard",
    "Polythene Pam",
    "She Came in Through the Bathroom Window",
    "Golden Slumbers",
    "Carry That Weight",
    "The End",
    "Her Majesty",
)

COVER_URL = "https://images.example/abbey-road.jpg"


def quadrant_cover(size=400):
    img = Image.new("RGB", (size, size))
    half = size // 2
    for i, color in enumerate(QUADRANT_COLORS):
        x, y = (i % 2) * half, (i // 2) * half
        img.paste(color, (x, y, x + half, y + half))
    return img.convert("RGBA")


class FakeLoader:
    """Stands in for the image decoder: serves known URLs, fails on the rest."""

    def __init__(self, images=None):
        self.images = dict(images or {})
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        if url not in self.images:
            raise ImageLoadFailure(url, "404 Not Found")
        return self.images[url].copy()


@pytest.fixture
def cover():
    return quadrant_cover()


@pytest.fixture
def loader(cover):
    return FakeLoader({COVER_URL: cover})


@pytest.fixture
def abbey_road():
    return PosterDescription(
        variant=Variant.ALBUM,
        title="Abbey Road",
        artist_names=("The Beatles", "George Martin"),
        cover_image_url=COVER_URL,
        total_duration_ms=2832000,
        release_date="1969-09-26",
        record_label="Apple Records",
        track_names=ABBEY_ROAD_TRACKS,
        catalog_uri="spotify:album:0ETFjACtuP2ADo6LFhL6HN",
        show_scan_code=False,
    )


@pytest.fixture
def song():
    return PosterDescription(
        variant=Variant.TRACK,
        title="Digital Love",
        artist_names=("Daft Punk",),
        cover_image_url=None,
        total_duration_ms=187000,
        release_date="2001-03-12",
        catalog_uri="spotify:track:2VEZx7NWsZ1D0eJ4uv5Fym",
        show_scan_code=False,
    )
