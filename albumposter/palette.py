from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from .errors import EmptySampleSet

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]
Samples = Union[np.ndarray, Sequence[Sequence[float]]]

SAMPLE_GRID = (80, 80)
ALPHA_VISIBLE = 128
KMEANS_ITERATIONS = 8
MAX_CHANNEL = 245

# Grayscale ramp used when the artwork has nothing to sample
FALLBACK_DARKEST = 0x22
FALLBACK_LIGHTEST = 0xBB


@dataclass
class Cluster:
    center: Tuple[float, ...]
    population: int = 0


# ============================================================
# Generic k-means
# ============================================================
def _assign(data: np.ndarray, centers: np.ndarray) -> np.ndarray:
    d2 = ((data[:, None, :] - centers[None, :, :]) ** 2).sum(2)
    return np.argmin(d2, axis=1)


def kmeans(
    samples: Samples,
    k: int,
    iterations: int = KMEANS_ITERATIONS,
    rng: Optional[np.random.Generator] = None,
) -> List[Cluster]:
    """Lloyd's algorithm over an (n, d) array of numeric vectors.

    Centers start as k uniform random picks from the samples (with
    replacement), so results vary between calls unless a seeded ``rng`` is
    passed. A center that loses all of its members keeps its previous value.
    Clusters come back sorted by population, largest first.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    if len(samples) == 0:
        raise EmptySampleSet("no samples to cluster")

    data = np.asarray(samples, dtype=np.float64)
    data = data.reshape(data.shape[0], -1)
    rng = rng if rng is not None else np.random.default_rng()
    centers = data[rng.integers(0, data.shape[0], size=k)].copy()

    for _ in range(iterations):
        labels = _assign(data, centers)
        for ci in range(k):
            mask = labels == ci
            if mask.any():
                centers[ci] = data[mask].mean(0)

    population = np.bincount(_assign(data, centers), minlength=k)
    order = np.argsort(-population, kind="stable")
    return [Cluster(center=tuple(float(v) for v in centers[i]), population=int(population[i])) for i in order]


# ============================================================
# Image sampling + palette
# ============================================================
def sample_pixels(image: Image.Image) -> np.ndarray:
    """Downsample to the fixed grid; (n, 3) RGB rows of the visible pixels."""
    small = image.convert("RGBA").resize(SAMPLE_GRID, Image.Resampling.BILINEAR)
    arr = np.asarray(small, dtype=np.uint8).reshape(-1, 4)
    return arr[arr[:, 3] >= ALPHA_VISIBLE, :3]


def tone_map(center: Sequence[float]) -> Color:
    """Round to integers and pull near-white colors down so they show on white paper."""
    r, g, b = (int(round(float(v))) for v in center[:3])
    peak = max(r, g, b)
    if peak > MAX_CHANNEL:
        r, g, b = (int(v * MAX_CHANNEL / peak) for v in (r, g, b))
    return r, g, b


def fallback_palette(k: int) -> List[Color]:
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    if k == 1:
        return [(FALLBACK_DARKEST,) * 3]
    step = (FALLBACK_LIGHTEST - FALLBACK_DARKEST) / (k - 1)
    return [(int(round(FALLBACK_DARKEST + i * step)),) * 3 for i in range(k)]


def extract_palette(
    image: Optional[Image.Image],
    k: int = 4,
    rng: Optional[np.random.Generator] = None,
) -> List[Color]:
    """Return exactly k accent colors, most prevalent first."""
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    samples = sample_pixels(image) if image is not None else np.empty((0, 3), np.uint8)
    try:
        clusters = kmeans(samples, k, rng=rng)
    except EmptySampleSet:
        logger.info("No visible pixels to sample; using grayscale fallback palette")
        return fallback_palette(k)
    return [tone_map(c.center) for c in clusters]
