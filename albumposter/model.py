from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .errors import MalformedDescription


# ============================================================
# Page sizes
# ============================================================
DPI = 300
UNITS_PER_INCH = 100


class Variant(str, Enum):
    ALBUM = "album"
    TRACK = "track"


POSTER_SIZES_IN = {
    Variant.ALBUM: (12.0, 18.0),
    Variant.TRACK: (8.5, 11.0),
}


@dataclass(frozen=True)
class PosterGeometry:
    """Physical size of a poster plus the two coordinate systems derived from it.

    Layout math happens in logical units (1/100 inch); pixels only appear when
    the surface scales those units for drawing.
    """
    size_inches: Tuple[float, float]
    dpi: int = DPI

    @classmethod
    def for_variant(cls, variant: Variant, dpi: int = DPI) -> "PosterGeometry":
        return cls(size_inches=POSTER_SIZES_IN[Variant(variant)], dpi=dpi)

    @property
    def units(self) -> Tuple[float, float]:
        w, h = self.size_inches
        return w * UNITS_PER_INCH, h * UNITS_PER_INCH

    @property
    def pixel_size(self) -> Tuple[int, int]:
        w, h = self.size_inches
        return int(round(w * self.dpi)), int(round(h * self.dpi))


# ============================================================
# Poster description
# ============================================================
@dataclass(frozen=True)
class PosterDescription:
    variant: Variant
    title: str
    artist_names: Tuple[str, ...]
    total_duration_ms: int
    release_date: str
    cover_image_url: Optional[str] = None
    record_label: str = ""
    track_names: Tuple[str, ...] = field(default_factory=tuple)
    catalog_uri: Optional[str] = None
    show_scan_code: bool = False
    code_caption: Optional[str] = None

    @property
    def artist_line(self) -> str:
        return ", ".join(self.artist_names)

    @property
    def geometry(self) -> PosterGeometry:
        return PosterGeometry.for_variant(self.variant)

    @property
    def wants_scan_code(self) -> bool:
        return bool(self.show_scan_code and self.catalog_uri)

    def validate(self) -> "PosterDescription":
        """Raise MalformedDescription unless every required field is usable."""
        problems = []
        if not isinstance(self.variant, Variant):
            problems.append(f"unknown variant {self.variant!r}")
        if not isinstance(self.title, str) or not self.title.strip():
            problems.append("title is required")
        if isinstance(self.artist_names, str) or not all(isinstance(a, str) for a in self.artist_names or ()):
            problems.append("artist_names must be a sequence of strings")
        duration = self.total_duration_ms
        if isinstance(duration, bool) or not isinstance(duration, int) or duration < 0:
            problems.append("total_duration_ms must be a non-negative integer")
        if not isinstance(self.release_date, str):
            problems.append("release_date must be a string")
        if isinstance(self.track_names, str) or not all(isinstance(t, str) for t in self.track_names or ()):
            problems.append("track_names must be a sequence of strings")
        if problems:
            raise MalformedDescription("; ".join(problems))
        return self


def format_duration(ms: int) -> str:
    """Whole seconds (floored) as m:ss."""
    secs = int(ms) // 1000
    m, s = divmod(secs, 60)
    return f"{m}:{s:02d}"
