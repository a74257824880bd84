from __future__ import annotations

import argparse
import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import List, Optional

from PIL import Image

from . import catalog
from .engine import render_poster
from .errors import CatalogError, MalformedDescription
from .images import load_image
from .model import Variant
from .scancode import PROVIDERS

logger = logging.getLogger(__name__)

TOKEN_ENV = "SPOTIFY_ACCESS_TOKEN"
OUT_DIR = "albumposter_out"


def slug(s: str) -> str:
    s = s.lower().strip()
    s = re.sub(r"[^a-z0-9]+", "-", s)
    return re.sub(r"-+", "-", s).strip("-") or "poster"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="albumposter",
        description="Render a 300 DPI album (12x18in) or song (8.5x11in) poster as PNG.",
    )
    parser.add_argument("source", help="Spotify album/track URL or URI, or a saved Spotify JSON payload")
    parser.add_argument("-o", "--output", help="PNG path (default: albumposter_out/<artist>-<title>.<variant>.png)")
    parser.add_argument("--token", default=os.environ.get(TOKEN_ENV),
                        help=f"Spotify bearer token (default: ${TOKEN_ENV})")
    parser.add_argument("--no-code", action="store_true", help="Leave out the scannable code")
    parser.add_argument("--caption", help="Short caption printed under the scannable code (about 70 chars)")
    parser.add_argument("--quote-caption", action="store_true", help="Wrap the caption in quotation marks")
    parser.add_argument("--code-style", choices=sorted(PROVIDERS), default="spotify",
                        help="spotify: fetched Spotify code; qr: QR code drawn locally")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_payload(source: str, token: Optional[str]) -> dict:
    path = Path(source)
    if path.suffix.lower() == ".json" and path.is_file():
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    variant, item_id = catalog.extract_catalog_id(source)
    logger.info("Fetching %s %s…", variant.value, item_id)
    if variant is Variant.ALBUM:
        return catalog.fetch_album(item_id, token)
    return catalog.fetch_track(item_id, token)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

    try:
        payload = load_payload(args.source, args.token)
        desc = catalog.describe(payload, show_scan_code=not args.no_code, code_caption=args.caption)
    except ValueError as e:
        print(e, file=sys.stderr)
        return 2
    except CatalogError as e:
        print(f"Catalog error: {e}", file=sys.stderr)
        return 1

    geometry = desc.geometry
    surface = Image.new("RGB", geometry.pixel_size, "white")
    try:
        result = render_poster(
            desc,
            surface,
            load_image=load_image,
            scan_code_provider=PROVIDERS[args.code_style](),
            quote_caption=args.quote_caption,
        )
    except MalformedDescription as e:
        print(f"Cannot render poster: {e}", file=sys.stderr)
        return 1

    if result.degraded:
        logger.warning("Rendered with fallbacks for: %s", ", ".join(result.degraded))

    if args.output:
        out = Path(args.output)
    else:
        out = Path.cwd() / OUT_DIR / f"{slug(desc.artist_line)}-{slug(desc.title)}.{desc.variant.value}.png"
    out.parent.mkdir(parents=True, exist_ok=True)
    surface.save(out, format="PNG", dpi=(geometry.dpi, geometry.dpi))

    print("Wrote:", out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
