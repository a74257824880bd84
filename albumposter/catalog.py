"""Spotify Web API lookups normalized into PosterDescription records.

Getting the bearer token is the caller's business; this module only spends it.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple

import requests

from .errors import CatalogError
from .model import PosterDescription, Variant
from .text import clean_text

logger = logging.getLogger(__name__)

API_BASE = "https://api.spotify.com/v1"
DEFAULT_TIMEOUT = 25

# ============================================================
# Input parsing: open.spotify.com URLs / spotify: URIs
# ============================================================
SPOTIFY_URL_RE = re.compile(r"open\.spotify\.com/(?:intl-[a-z]{2}(?:-[a-z]{2})?/)?(album|track)/([A-Za-z0-9]+)", re.IGNORECASE)
SPOTIFY_URI_RE = re.compile(r"^spotify:(album|track):([A-Za-z0-9]+)$")


def extract_catalog_id(s: str) -> Tuple[Variant, str]:
    """
    Accepts:
      - https://open.spotify.com/album/<id>?si=...
      - https://open.spotify.com/intl-de/track/<id>
      - spotify:album:<id> / spotify:track:<id>
    Returns (variant, id).
    """
    s = (s or "").strip()

    m = SPOTIFY_URL_RE.search(s) or SPOTIFY_URI_RE.match(s)
    if m:
        return Variant(m.group(1).lower()), m.group(2)

    raise ValueError(
        "Could not extract a Spotify album or track id. Expected:\n"
        "  - https://open.spotify.com/album/<id>\n"
        "  - https://open.spotify.com/track/<id>\n"
        "  - spotify:album:<id> or spotify:track:<id>\n"
    )


# ============================================================
# HTTP
# ============================================================
def _get_json(url: str, token: str, session=None, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    if not token:
        raise CatalogError("a Spotify access token is required")
    try:
        r = (session or requests).get(url, headers={"Authorization": f"Bearer {token}"}, timeout=timeout)
    except requests.RequestException as e:
        raise CatalogError(f"request to {url} failed: {e}") from e
    if r.status_code != 200:
        raise CatalogError(f"catalog request failed: {r.status_code} for {url}", status=r.status_code)
    return r.json()


def fetch_album(album_id: str, token: str, session=None, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    """Album JSON with every track page folded into tracks.items."""
    data = _get_json(f"{API_BASE}/albums/{album_id}", token, session, timeout)
    tracks = data.setdefault("tracks", {"items": []})
    items = list(tracks.get("items") or [])
    next_url = tracks.get("next")
    while next_url:
        page = _get_json(next_url, token, session, timeout)
        items.extend(page.get("items") or [])
        next_url = page.get("next")
    tracks["items"] = items
    tracks["next"] = None
    logger.debug("Fetched album %s with %d tracks", album_id, len(items))
    return data


def fetch_track(track_id: str, token: str, session=None, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return _get_json(f"{API_BASE}/tracks/{track_id}", token, session, timeout)


# ============================================================
# Normalization
# ============================================================
def _largest_image_url(images) -> Optional[str]:
    images = [i for i in images or [] if i.get("url")]
    if not images:
        return None
    best = max(images, key=lambda i: (i.get("width") or 0) * (i.get("height") or 0))
    return best["url"]


def _artist_names(data: Dict[str, Any]) -> Tuple[str, ...]:
    return tuple(clean_text(a.get("name", "")) for a in data.get("artists") or [] if a.get("name"))


def _sum_durations(items) -> Optional[int]:
    """None when any track lacks a duration, so validation rejects the record."""
    durations = [t.get("duration_ms") for t in items]
    if any(isinstance(d, bool) or not isinstance(d, int) for d in durations):
        return None
    return sum(durations)


def describe_album(data: Dict[str, Any], show_scan_code: bool = True,
                   code_caption: Optional[str] = None) -> PosterDescription:
    items = (data.get("tracks") or {}).get("items") or []
    return PosterDescription(
        variant=Variant.ALBUM,
        title=clean_text(data.get("name", "")),
        artist_names=_artist_names(data),
        cover_image_url=_largest_image_url(data.get("images")),
        total_duration_ms=_sum_durations(items),
        release_date=data.get("release_date") or "",
        record_label=clean_text(data.get("label") or ""),
        track_names=tuple(clean_text(t.get("name", "")) for t in items),
        catalog_uri=data.get("uri"),
        show_scan_code=show_scan_code,
        code_caption=code_caption,
    )


def describe_track(data: Dict[str, Any], show_scan_code: bool = True,
                   code_caption: Optional[str] = None) -> PosterDescription:
    album = data.get("album") or {}
    return PosterDescription(
        variant=Variant.TRACK,
        title=clean_text(data.get("name", "")),
        artist_names=_artist_names(data),
        cover_image_url=_largest_image_url(album.get("images")),
        total_duration_ms=data.get("duration_ms"),
        release_date=album.get("release_date") or "",
        catalog_uri=data.get("uri"),
        show_scan_code=show_scan_code,
        code_caption=code_caption,
    )


def describe(payload: Dict[str, Any], show_scan_code: bool = True,
             code_caption: Optional[str] = None) -> PosterDescription:
    kind = payload.get("type")
    if kind == "album":
        return describe_album(payload, show_scan_code, code_caption)
    if kind == "track":
        return describe_track(payload, show_scan_code, code_caption)
    raise ValueError(f"unsupported catalog payload type {kind!r}")
