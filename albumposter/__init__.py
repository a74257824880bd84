"""Print-resolution album and song posters built from catalog metadata."""

from .engine import RenderResult, render_poster
from .errors import CatalogError, EmptySampleSet, ImageLoadFailure, MalformedDescription, PosterError
from .model import PosterDescription, PosterGeometry, Variant, format_duration
from .palette import extract_palette

__all__ = [
    "render_poster",
    "RenderResult",
    "PosterDescription",
    "PosterGeometry",
    "Variant",
    "format_duration",
    "extract_palette",
    "PosterError",
    "ImageLoadFailure",
    "EmptySampleSet",
    "MalformedDescription",
    "CatalogError",
]
