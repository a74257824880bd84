from __future__ import annotations

from typing import List, Sequence, Tuple

from PIL import Image, ImageChops, ImageDraw

from . import fonts

PixelBox = Tuple[int, int, int, int]


class PosterSurface:
    """A Pillow image addressed in logical units.

    The caller sizes the image; the scale from logical units to pixels is taken
    from its width, the way a canvas context applies a scale transform.
    """

    def __init__(self, image: Image.Image, width_units: float, height_units: float):
        scale = image.width / width_units
        if abs(height_units * scale - image.height) > 1.0:
            raise ValueError(
                f"surface is {image.width}x{image.height}px, which does not match a "
                f"{width_units:g}x{height_units:g} unit page"
            )
        self.image = image
        self.draw = ImageDraw.Draw(image)
        self.width = width_units
        self.height = height_units
        self.scale = scale

    def px(self, v: float) -> int:
        return int(round(v * self.scale))

    def box(self, x: float, y: float, w: float, h: float) -> PixelBox:
        x0, y0 = self.px(x), self.px(y)
        return x0, y0, self.px(x + w), self.px(y + h)

    # ---- fills ----
    def clear(self, color="#ffffff") -> None:
        self.image.paste(color, (0, 0, self.image.width, self.image.height))

    def fill_rect(self, x: float, y: float, w: float, h: float, color) -> None:
        x0, y0, x1, y1 = self.box(x, y, w, h)
        if x1 > x0 and y1 > y0:
            self.draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=color)

    def fill_vertical_gradient(self, x: float, y: float, w: float, h: float, top, bottom) -> None:
        x0, y0, x1, y1 = self.box(x, y, w, h)
        c1 = Image.new("RGB", (1, 1), top).getpixel((0, 0))
        c2 = Image.new("RGB", (1, 1), bottom).getpixel((0, 0))
        span = max(1, y1 - y0 - 1)
        for row in range(y0, y1):
            t = (row - y0) / span
            fill = tuple(int(round(a + (b - a) * t)) for a, b in zip(c1, c2))
            self.draw.line([(x0, row), (x1 - 1, row)], fill=fill)

    def fill_segments(self, x: float, y: float, w: float, h: float, colors: Sequence) -> List[PixelBox]:
        """Split a bar into len(colors) segments of identical pixel width."""
        x0, y0, x1, y1 = self.box(x, y, w, h)
        seg = (x1 - x0) // len(colors)
        boxes = []
        for i, color in enumerate(colors):
            b = (x0 + i * seg, y0, x0 + (i + 1) * seg, y1)
            self.draw.rectangle([b[0], b[1], b[2] - 1, b[3] - 1], fill=tuple(color))
            boxes.append(b)
        return boxes

    # ---- text ----
    def font(self, face: str, size: float):
        return fonts.load_font(face, self.px(size))

    def measure(self, text: str, face: str, size: float) -> float:
        return self.font(face, size).getlength(text) / self.scale

    def measurer(self, face: str):
        """measure(text, size) bound to one face."""
        return lambda text, size: self.measure(text, face, size)

    def text(self, x: float, y: float, text: str, face: str, size: float, fill="#000000", align: str = "left") -> None:
        """Draw one line with its ascender top at y."""
        anchor = "ra" if align == "right" else "la"
        self.draw.text((self.px(x), self.px(y)), text, font=self.font(face, size), fill=fill, anchor=anchor)

    # ---- images ----
    def paste(self, image: Image.Image, x: float, y: float, w: float, h: float, mask: Image.Image | None = None) -> PixelBox:
        x0, y0, x1, y1 = self.box(x, y, w, h)
        size = (max(1, x1 - x0), max(1, y1 - y0))
        tile = image.convert("RGBA").resize(size, Image.Resampling.LANCZOS)
        alpha = tile.getchannel("A")
        if mask is not None:
            alpha = ImageChops.multiply(alpha, mask.resize(size))
        self.image.paste(tile.convert(self.image.mode), (x0, y0), alpha)
        return x0, y0, x0 + size[0], y0 + size[1]
