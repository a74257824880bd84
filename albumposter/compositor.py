"""Placing bitmaps onto the poster: the cover at full width, scan codes in a fixed slot."""
from __future__ import annotations

from typing import Optional, Tuple

from PIL import Image, ImageDraw

from .surface import PosterSurface

CORNER_RADIUS_RATIO = 0.02  # of poster width
FALLBACK_COVER_RATIO = 0.60  # of poster height
FALLBACK_TOP = "#021427"
FALLBACK_BOTTOM = "#08254f"

Box = Tuple[float, float, float, float]  # x, y, w, h in logical units


def fit_within(width: float, height: float, box_w: float, box_h: float) -> Tuple[float, float]:
    """Largest (w, h) with the same aspect as width x height that fits the box."""
    scale = min(box_w / width, box_h / height)
    return width * scale, height * scale


def center_crop_to_aspect(img: Image.Image, aspect: float) -> Image.Image:
    """Crop the middle of img so that width / height == aspect."""
    if img.width / img.height >= aspect:
        new_w = max(1, int(round(img.height * aspect)))
        left = (img.width - new_w) // 2
        return img.crop((left, 0, left + new_w, img.height))
    new_h = max(1, int(round(img.width / aspect)))
    top = (img.height - new_h) // 2
    return img.crop((0, top, img.width, top + new_h))


def rounded_mask(size: Tuple[int, int], radius: int) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle([0, 0, size[0] - 1, size[1] - 1], radius=max(0, radius), fill=255)
    return mask


def place_cover_image(
    surface: PosterSurface,
    image: Optional[Image.Image],
    max_height: Optional[float] = None,
) -> float:
    """Draw the cover across the full poster width and return its bottom edge.

    Without an image the area falls back to a fixed share of the page,
    painted with a dark gradient, so everything below stays anchored.
    """
    width = surface.width
    if image is None:
        height = surface.height * FALLBACK_COVER_RATIO
        surface.fill_vertical_gradient(0, 0, width, height, FALLBACK_TOP, FALLBACK_BOTTOM)
        return height

    aspect = image.width / image.height
    height = width / aspect
    if max_height is not None and height > max_height:
        height = max_height
        image = center_crop_to_aspect(image, width / height)

    x0, y0, x1, y1 = surface.box(0, 0, width, height)
    radius = surface.px(width * CORNER_RADIUS_RATIO)
    surface.paste(image, 0, 0, width, height, mask=rounded_mask((x1 - x0, y1 - y0), radius))
    return height


def place_scan_code(
    surface: PosterSurface,
    code: Image.Image,
    right: float,
    top: float,
    box_w: float,
    box_h: float,
) -> Box:
    """Scale the code into the bounding box, right-aligned at `right`; returns the drawn box."""
    w, h = fit_within(code.width, code.height, box_w, box_h)
    x = right - w
    surface.paste(code, x, top, w, h)
    return x, top, w, h
