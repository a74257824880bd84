from __future__ import annotations

import logging
from io import BytesIO

import requests
from PIL import Image

from .errors import ImageLoadFailure

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 25


def load_image(source: str, timeout: float = DEFAULT_TIMEOUT, session=None) -> Image.Image:
    """Fetch (http/https) or open (local path) an image and decode it fully, as RGBA."""
    try:
        if source.startswith(("http://", "https://")):
            r = (session or requests).get(source, timeout=timeout)
            r.raise_for_status()
            img = Image.open(BytesIO(r.content))
        else:
            img = Image.open(source)
        img.load()
        if img.width < 1 or img.height < 1:
            raise ImageLoadFailure(source, "empty image")
        return img.convert("RGBA")
    except (requests.RequestException, OSError, Image.DecompressionBombError) as e:
        raise ImageLoadFailure(source, e) from e
