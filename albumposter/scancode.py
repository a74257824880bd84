"""Scannable codes for a catalog URI.

A provider is any callable ``catalog_uri -> PIL.Image``; failures must come
out as ImageLoadFailure so the layout can fall back to a text label.
"""
from __future__ import annotations

import re
from typing import Callable, Tuple
from urllib.parse import quote

import qrcode
from qrcode.exceptions import DataOverflowError
from qrcode.image.styledpil import StyledPilImage
from qrcode.image.styles.moduledrawers import RoundedModuleDrawer
from PIL import Image, ImageDraw

from .errors import ImageLoadFailure
from .images import load_image

SPOTIFY_CODE_ENDPOINT = "https://scannables.scdn.co/uri/plain/png/{background}/{bars}/{width}/{uri}"
SPOTIFY_URI_RE = re.compile(r"^spotify:(album|track|artist|playlist):([A-Za-z0-9]+)$")


def spotify_code_url(uri: str, background: str = "FFFFFF", bars: str = "black", width: int = 640) -> str:
    return SPOTIFY_CODE_ENDPOINT.format(background=background, bars=bars, width=width, uri=quote(uri, safe=":"))


def web_url_for(uri: str) -> str:
    """https://open.spotify.com/... for a spotify: URI, anything else unchanged."""
    m = SPOTIFY_URI_RE.match(uri)
    if not m:
        return uri
    return f"https://open.spotify.com/{m.group(1)}/{m.group(2)}"


class SpotifyCodeProvider:
    """Black-on-white Spotify code fetched from the public scannables endpoint."""

    def __init__(self, load: Callable[[str], Image.Image] = load_image):
        self._load = load

    def __call__(self, catalog_uri: str) -> Image.Image:
        return self._load(spotify_code_url(catalog_uri))


# ============================================================
# QR: rounded modules + rounded finder eyes (grid aligned)
# ============================================================
def _draw_rounded_finder(draw: ImageDraw.ImageDraw, x: int, y: int, m: int) -> None:
    r_outer = max(1, int(m * 1.3))
    r_mid = max(1, int(m * 1.0))
    r_inner = max(1, int(m * 0.9))

    draw.rounded_rectangle([x, y, x + 7*m, y + 7*m], radius=r_outer, fill=(0, 0, 0, 255))
    draw.rounded_rectangle([x + 1*m, y + 1*m, x + 6*m, y + 6*m], radius=r_mid, fill=(255, 255, 255, 255))
    draw.rounded_rectangle([x + 2*m, y + 2*m, x + 5*m, y + 5*m], radius=r_inner, fill=(0, 0, 0, 255))


def make_rounded_qr(url: str, module_px: int = 16, border: int = 1) -> Image.Image:
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_Q, box_size=module_px, border=border)
    qr.add_data(url)
    qr.make(fit=True)

    n = qr.modules_count
    img_px = (n + 2 * border) * module_px

    img = qr.make_image(
        image_factory=StyledPilImage,
        module_drawer=RoundedModuleDrawer(),
        fill_color="black",
        back_color="white",
    ).convert("RGBA")
    if img.size != (img_px, img_px):
        img = img.resize((img_px, img_px), Image.NEAREST)

    draw = ImageDraw.Draw(img)

    def mod_to_px(mx: int, my: int) -> Tuple[int, int]:
        return mx * module_px, my * module_px

    for mx, my in ((border, border), (border + n - 7, border), (border, border + n - 7)):
        x, y = mod_to_px(mx, my)
        draw.rectangle([x, y, x + 7 * module_px, y + 7 * module_px], fill=(255, 255, 255, 255))
        _draw_rounded_finder(draw, x, y, module_px)

    return img


class QrCodeProvider:
    """Local QR code pointing at the item's web page; needs no network."""

    def __call__(self, catalog_uri: str) -> Image.Image:
        try:
            return make_rounded_qr(web_url_for(catalog_uri))
        except (DataOverflowError, ValueError) as e:
            raise ImageLoadFailure(catalog_uri, e) from e


PROVIDERS = {
    "spotify": SpotifyCodeProvider,
    "qr": QrCodeProvider,
}
