"""Poster layout engine.

Every render walks one of two fixed top-to-bottom sequences (album, track).
Blocks on that path are stacked with a cursor that only moves down; the
right-hand code/label slot, the duration and the attribution sit beside the
path and never move it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from . import images
from .compositor import fit_within, place_cover_image, place_scan_code
from .errors import ImageLoadFailure
from .model import PosterDescription, PosterGeometry, Variant, format_duration
from .palette import Color, extract_palette
from .scancode import SpotifyCodeProvider
from .surface import PixelBox, PosterSurface
from .text import (
    TITLE_LEADING,
    clean_text,
    ellipsize,
    fit_title,
    limit_lines,
    pack_tokens,
    title_block_height,
    wrap_to_lines,
)

logger = logging.getLogger(__name__)


# ============================================================
# Layout constants (logical units, 100 per inch)
# ============================================================
PALETTE_SIZE = 4
LINE = 1.3

BACKGROUND = "#ffffff"
INK = "#000000"
SOFT_INK = "#444444"
LABEL_INK = "#555555"
FOOTER_INK = "#777777"
ATTRIBUTION_INK = "#999999"

ATTRIBUTION = "Generated with Album Poster Generator"
TRACK_SEPARATOR = "  |  "

CAPTION_GAP = 8.0


@dataclass(frozen=True)
class LayoutMetrics:
    margin: float
    cover_reserve: float  # kept free below the cover
    title_gap: float
    title_base: float
    title_small: float
    artist_size: float
    label_size: float
    caption_size: float
    slot_gap: float
    code_box: Tuple[float, float]
    caption_max_lines: int
    bar_height: float
    bar_gap: float
    attribution_size: float
    attribution_from_bottom: float


ALBUM_METRICS = LayoutMetrics(
    margin=72, cover_reserve=540,
    title_gap=60, title_base=60, title_small=40,
    artist_size=34, label_size=18, caption_size=15, slot_gap=24,
    code_box=(300, 100), caption_max_lines=3,
    bar_height=12, bar_gap=40,
    attribution_size=12, attribution_from_bottom=36,
)

TRACK_METRICS = LayoutMetrics(
    margin=51, cover_reserve=250,
    title_gap=24, title_base=44, title_small=30,
    artist_size=26, label_size=15, caption_size=13, slot_gap=20,
    code_box=(255, 85), caption_max_lines=2,
    bar_height=10, bar_gap=24,
    attribution_size=10, attribution_from_bottom=26,
)

METRICS = {Variant.ALBUM: ALBUM_METRICS, Variant.TRACK: TRACK_METRICS}

# album only
TRACKLIST_GAP = 50
HEADER_SIZE = 22
HEADER_GAP = 12
TRACK_SIZE = 18
TRACK_LEADING = 30
DURATION_SIZE = 20
FOOTER_FROM_BOTTOM = 80
FOOTER_GAP = 20
FOOTER_SIZE = 18
FOOTER_LEADING = 30

# track only
DATE_OFFSET = 6
DATE_SIZE = 16
BAR_FROM_BOTTOM = 70


# ============================================================
# Render state
# ============================================================
@dataclass(frozen=True)
class Block:
    name: str
    x: float
    y: float
    width: float
    height: float
    lines: Tuple[str, ...] = ()
    flow: bool = True

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class RenderResult:
    variant: Variant
    pixel_size: Tuple[int, int]
    palette: List[Color] = field(default_factory=list)
    blocks: List[Block] = field(default_factory=list)
    bar_segments: List[PixelBox] = field(default_factory=list)
    degraded: List[str] = field(default_factory=list)

    def block(self, name: str) -> Optional[Block]:
        for b in self.blocks:
            if b.name == name:
                return b
        return None

    @property
    def flow_blocks(self) -> List[Block]:
        return [b for b in self.blocks if b.flow]


class Cursor:
    """Running vertical offset; it never moves up."""

    def __init__(self, y: float = 0.0):
        self.y = y

    def advance(self, dy: float) -> float:
        if dy < 0:
            raise ValueError(f"cursor cannot move up (dy={dy})")
        self.y += dy
        return self.y

    def move_to(self, y: float) -> float:
        self.y = max(self.y, y)
        return self.y


@dataclass
class RenderContext:
    description: PosterDescription
    geometry: PosterGeometry
    metrics: LayoutMetrics
    surface: PosterSurface
    result: RenderResult
    load_image: Callable[[str], Image.Image]
    scan_code_provider: Callable[[str], Image.Image]
    rng: Optional[np.random.Generator] = None
    quote_caption: bool = False
    cursor: Cursor = field(default_factory=Cursor)
    # lowest edge drawn in the right-hand slot
    side_bottom: float = 0.0

    @property
    def width(self) -> float:
        return self.surface.width

    @property
    def height(self) -> float:
        return self.surface.height

    @property
    def left(self) -> float:
        return self.metrics.margin

    @property
    def right(self) -> float:
        return self.width - self.metrics.margin

    @property
    def content_width(self) -> float:
        return self.right - self.left

    @property
    def title_width(self) -> float:
        """Text column left of the code/label slot."""
        return self.content_width - self.metrics.code_box[0] - self.metrics.slot_gap

    def place(self, name: str, x: float, y: float, w: float, h: float,
              lines: Sequence[str] = (), flow: bool = True) -> Block:
        block = Block(name, x, y, w, h, tuple(lines), flow)
        self.result.blocks.append(block)
        return block

    def measure(self, face: str, size: float) -> Callable[[str], float]:
        return lambda s: self.surface.measure(s, face, size)


# ============================================================
# Entry point
# ============================================================
def render_poster(
    description: PosterDescription,
    image: Image.Image,
    *,
    load_image: Callable[[str], Image.Image] = images.load_image,
    scan_code_provider: Optional[Callable[[str], Image.Image]] = None,
    rng: Optional[np.random.Generator] = None,
    quote_caption: bool = False,
) -> RenderResult:
    """Paint a full poster for `description` into `image`.

    The image must already have the variant's page proportions (normally
    PosterGeometry.pixel_size); it is cleared first. Image failures degrade the
    element they belong to; a malformed description raises before any drawing.
    """
    description.validate()
    geometry = description.geometry
    surface = PosterSurface(image, *geometry.units)
    ctx = RenderContext(
        description=description,
        geometry=geometry,
        metrics=METRICS[description.variant],
        surface=surface,
        result=RenderResult(variant=description.variant, pixel_size=image.size),
        load_image=load_image,
        scan_code_provider=scan_code_provider or SpotifyCodeProvider(load_image),
        rng=rng,
        quote_caption=quote_caption,
    )

    surface.clear(BACKGROUND)
    cover = _load_cover(ctx)
    ctx.result.palette = extract_palette(cover, PALETTE_SIZE, rng=rng)

    if description.variant is Variant.ALBUM:
        _render_album(ctx, cover)
    else:
        _render_track(ctx, cover)
    _draw_attribution(ctx)

    logger.debug("Rendered %s poster %r at %dx%d px", description.variant.value,
                 description.title, *image.size)
    return ctx.result


def _render_album(ctx: RenderContext, cover: Optional[Image.Image]) -> None:
    d, m = ctx.description, ctx.metrics
    _draw_cover(ctx, cover)

    band_top = ctx.cursor.advance(m.title_gap)
    band_h = title_block_height(m.title_base, m.title_small)
    _draw_title(ctx)
    _draw_artist(ctx)
    label = f"ALBUM BY {d.artist_line.upper()}" if d.artist_line else "ALBUM"
    _draw_code_slot(ctx, band_top, band_h, [(label, "regular", m.label_size, LABEL_INK)])

    _draw_color_bar(ctx, max(ctx.cursor.y, ctx.side_bottom) + m.bar_gap)
    _draw_tracklist(ctx)
    _draw_footer(ctx)


def _render_track(ctx: RenderContext, cover: Optional[Image.Image]) -> None:
    d, m = ctx.description, ctx.metrics
    _draw_cover(ctx, cover)

    band_top = ctx.cursor.advance(m.title_gap)
    band_h = title_block_height(m.title_base, m.title_small)
    label = f"SONG BY {d.artist_line.upper()}" if d.artist_line else "SONG"
    # label and duration stay even when a scan code is drawn
    _draw_code_slot(ctx, band_top, band_h, [
        (label, "regular", m.label_size, LABEL_INK),
        (format_duration(d.total_duration_ms), "tabular", m.label_size, INK),
    ], keep_labels=True)
    _draw_title(ctx)
    _draw_artist(ctx)
    _draw_release_date(ctx)

    # pinned near the page bottom; nothing follows it
    _draw_color_bar(ctx, max(ctx.height - BAR_FROM_BOTTOM, max(ctx.cursor.y, ctx.side_bottom) + m.bar_gap))


# ============================================================
# Steps
# ============================================================
def _load_cover(ctx: RenderContext) -> Optional[Image.Image]:
    url = ctx.description.cover_image_url
    if not url:
        return None
    try:
        return ctx.load_image(url)
    except ImageLoadFailure as e:
        logger.warning("Cover unavailable, using fallback area: %s", e)
        ctx.result.degraded.append("cover")
        return None


def _draw_cover(ctx: RenderContext, cover: Optional[Image.Image]) -> None:
    bottom = place_cover_image(ctx.surface, cover, max_height=ctx.height - ctx.metrics.cover_reserve)
    ctx.place("cover", 0, ctx.cursor.y, ctx.width, bottom)
    ctx.cursor.move_to(bottom)


def _draw_title(ctx: RenderContext) -> None:
    m = ctx.metrics
    top = ctx.cursor.y
    fit = fit_title(ctx.description.title, ctx.surface.measurer("semibold"),
                    m.title_base, m.title_small, max_width=ctx.title_width)
    y = top
    for line in fit.lines:
        ctx.surface.text(ctx.left, y, line, "semibold", fit.font_size, INK)
        y += fit.font_size * TITLE_LEADING
    ctx.place("title", ctx.left, top, ctx.title_width, fit.block_height, fit.lines)
    ctx.cursor.advance(fit.block_height)


def _draw_artist(ctx: RenderContext) -> None:
    size = ctx.metrics.artist_size
    top = ctx.cursor.y
    line = ellipsize(ctx.description.artist_line, ctx.title_width, ctx.measure("regular", size))
    if line:
        ctx.surface.text(ctx.left, top, line, "regular", size, SOFT_INK)
    ctx.place("artist", ctx.left, top, ctx.title_width, size * LINE, (line,))
    ctx.cursor.advance(size * LINE)


def _draw_code_slot(ctx: RenderContext, band_top: float, band_h: float, labels,
                    keep_labels: bool = False) -> None:
    """Scan code (+ caption) when enabled and loadable, otherwise the text labels.

    With keep_labels the labels are stacked under the code instead of replaced by it.
    """
    d = ctx.description
    if d.wants_scan_code:
        try:
            code = ctx.scan_code_provider(d.catalog_uri)
        except ImageLoadFailure as e:
            logger.warning("Scan code unavailable, drawing text label instead: %s", e)
            ctx.result.degraded.append("scan_code")
        else:
            below = _labels_height(labels) + CAPTION_GAP if keep_labels else 0.0
            bottom = _draw_scan_code(ctx, code, band_top, band_h, below)
            if keep_labels:
                _draw_labels(ctx, labels, bottom + CAPTION_GAP, 0.0)
            return
    _draw_labels(ctx, labels, band_top, band_h)


def _caption_lines(ctx: RenderContext) -> List[str]:
    caption = clean_text(ctx.description.code_caption or "")
    if not caption:
        return []
    if ctx.quote_caption:
        caption = f"“{caption}”"
    box_w = ctx.metrics.code_box[0]
    measure = ctx.measure("light", ctx.metrics.caption_size)
    lines = wrap_to_lines(caption, box_w, measure)
    lines, _ = limit_lines(lines, ctx.metrics.caption_max_lines, box_w, measure)
    return lines


def _draw_scan_code(ctx: RenderContext, code: Image.Image, band_top: float, band_h: float,
                    below: float = 0.0) -> float:
    """Draw code and caption centered in the band (room for `below` kept); returns their bottom."""
    box_w, box_h = ctx.metrics.code_box
    size = ctx.metrics.caption_size
    _, code_h = fit_within(code.width, code.height, box_w, box_h)
    lines = _caption_lines(ctx)
    caption_h = (CAPTION_GAP + len(lines) * size * LINE) if lines else 0.0

    top = max(band_top, band_top + (band_h - code_h - caption_h - below) / 2)
    x, y, w, h = place_scan_code(ctx.surface, code, ctx.right, top, box_w, box_h)
    ctx.place("scan_code", x, y, w, h, flow=False)
    bottom = y + h

    if lines:
        ty = y + h + CAPTION_GAP
        for i, line in enumerate(lines):
            ctx.surface.text(ctx.right, ty + i * size * LINE, line, "light", size, LABEL_INK, align="right")
        block = ctx.place("code_caption", ctx.right - box_w, ty, box_w, len(lines) * size * LINE, lines, flow=False)
        bottom = block.bottom

    ctx.side_bottom = max(ctx.side_bottom, bottom)
    return bottom


def _labels_height(labels) -> float:
    return sum(size * LINE for _, _, size, _ in labels)


def _draw_labels(ctx: RenderContext, labels, band_top: float, band_h: float) -> None:
    box_w = ctx.metrics.code_box[0]
    total = _labels_height(labels)
    y = top = max(band_top, band_top + (band_h - total) / 2)
    drawn = []
    for text, face, size, color in labels:
        text = ellipsize(text, box_w, ctx.measure(face, size))
        ctx.surface.text(ctx.right, y, text, face, size, color, align="right")
        drawn.append(text)
        y += size * LINE
    block = ctx.place("label", ctx.right - box_w, top, box_w, total, drawn, flow=False)
    ctx.side_bottom = max(ctx.side_bottom, block.bottom)


def _draw_color_bar(ctx: RenderContext, top: float) -> None:
    top = ctx.cursor.move_to(top)
    h = ctx.metrics.bar_height
    ctx.result.bar_segments = ctx.surface.fill_segments(ctx.left, top, ctx.content_width, h, ctx.result.palette)
    ctx.place("color_bar", ctx.left, top, ctx.content_width, h)
    ctx.cursor.advance(h)


def _draw_tracklist(ctx: RenderContext) -> None:
    d, s = ctx.description, ctx.surface
    row = ctx.cursor.advance(TRACKLIST_GAP)

    duration = format_duration(d.total_duration_ms)
    dur_w = s.measure(duration, "tabular", DURATION_SIZE)
    s.text(ctx.right, row, duration, "tabular", DURATION_SIZE, INK, align="right")
    ctx.place("duration", ctx.right - dur_w, row, dur_w, DURATION_SIZE * LINE, (duration,), flow=False)

    tracks = [t for t in (clean_text(n) for n in d.track_names or ()) if t]
    if not tracks:
        ctx.cursor.advance(DURATION_SIZE * LINE)
        return

    s.text(ctx.left, row, "TRACKLIST", "semibold", HEADER_SIZE, INK)
    ctx.place("tracklist_header", ctx.left, row, ctx.content_width, HEADER_SIZE * LINE, ("TRACKLIST",))
    top = ctx.cursor.advance(HEADER_SIZE * LINE + HEADER_GAP)

    measure = ctx.measure("regular", TRACK_SIZE)
    lines = pack_tokens(tracks, ctx.content_width, measure, TRACK_SEPARATOR)
    room = ctx.height - FOOTER_FROM_BOTTOM - FOOTER_GAP - top
    lines, truncated = limit_lines(lines, max(1, int(room // TRACK_LEADING)), ctx.content_width, measure)
    if truncated:
        logger.info("Tracklist cut to %d lines to keep clear of the footer", len(lines))

    for i, line in enumerate(lines):
        s.text(ctx.left, top + i * TRACK_LEADING, line, "regular", TRACK_SIZE, "#333333")
    ctx.place("tracklist", ctx.left, top, ctx.content_width, len(lines) * TRACK_LEADING, lines)
    ctx.cursor.advance(len(lines) * TRACK_LEADING)


def _draw_footer(ctx: RenderContext) -> None:
    d = ctx.description
    lines = []
    if clean_text(d.release_date):
        lines.append(f"RELEASE DATE: {clean_text(d.release_date)}")
    if clean_text(d.record_label):
        lines.append(f"RECORD LABEL: {clean_text(d.record_label)}")
    if not lines:
        return

    # the attribution shares the bottom band on the right
    attribution_w = ctx.surface.measure(ATTRIBUTION, "light", ctx.metrics.attribution_size)
    max_w = ctx.content_width - attribution_w - ctx.metrics.slot_gap
    measure = ctx.measure("regular", FOOTER_SIZE)
    lines = [ellipsize(line, max_w, measure) for line in lines]

    top = ctx.cursor.move_to(max(ctx.cursor.y + FOOTER_GAP, ctx.height - FOOTER_FROM_BOTTOM))
    for i, line in enumerate(lines):
        ctx.surface.text(ctx.left, top + i * FOOTER_LEADING, line, "regular", FOOTER_SIZE, FOOTER_INK)
    ctx.place("footer", ctx.left, top, ctx.content_width, len(lines) * FOOTER_LEADING, lines)
    ctx.cursor.advance(len(lines) * FOOTER_LEADING)


def _draw_release_date(ctx: RenderContext) -> None:
    top = ctx.cursor.advance(DATE_OFFSET)
    date = clean_text(ctx.description.release_date)
    if date:
        ctx.surface.text(ctx.left, top, date, "light", DATE_SIZE, LABEL_INK)
    ctx.place("release_date", ctx.left, top, ctx.title_width, DATE_SIZE * LINE, (date,))
    ctx.cursor.advance(DATE_SIZE * LINE)


def _draw_attribution(ctx: RenderContext) -> None:
    m = ctx.metrics
    y = ctx.height - m.attribution_from_bottom
    w = ctx.surface.measure(ATTRIBUTION, "light", m.attribution_size)
    ctx.surface.text(ctx.right, y, ATTRIBUTION, "light", m.attribution_size, ATTRIBUTION_INK, align="right")
    ctx.place("attribution", ctx.right - w, y, w, m.attribution_size * LINE, (ATTRIBUTION,), flow=False)
