from __future__ import annotations

import logging
import shutil
import zipfile
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from PIL import ImageFont

logger = logging.getLogger(__name__)


# ============================================================
# Inter fonts: allow "drop Inter.zip next to the package"
# ============================================================
HERE = Path(__file__).resolve().parent
FONT_DIR = HERE / "fonts"
INTER_ZIP = HERE.parent / "Inter.zip"

INTER_STATIC_MAP = {
    "Inter-Light.ttf": "Inter_18pt-Light.ttf",
    "Inter-Regular.ttf": "Inter_18pt-Regular.ttf",
    "Inter-SemiBold.ttf": "Inter_18pt-SemiBold.ttf",
}
INTER_TABULAR_FONT = "Inter-Regular-Tabular.ttf"

# face name -> file under FONT_DIR
FACES: Dict[str, str] = {
    "light": "Inter-Light.ttf",
    "regular": "Inter-Regular.ttf",
    "semibold": "Inter-SemiBold.ttf",
    "tabular": INTER_TABULAR_FONT,
}

SYSTEM_FALLBACKS = {
    "semibold": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "C:\\Windows\\Fonts\\arialbd.ttf",
    ],
    "regular": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/System/Library/Fonts/Supplemental/Arial.ttf",
        "C:\\Windows\\Fonts\\arial.ttf",
    ],
}


def make_tnum_font(src: Path, dst: Path, ps_name: str) -> None:
    """Derive an Inter face whose default digits carry the tabular advance widths."""
    from fontTools.ttLib import TTFont as FTFont
    font = FTFont(str(src))
    gsub = font.get("GSUB")
    if not gsub:
        font.save(str(dst))
        return

    tnum_indices = {
        idx
        for fr in gsub.table.FeatureList.FeatureRecord
        if fr.FeatureTag == "tnum"
        for idx in fr.Feature.LookupListIndex
    }
    subst: dict = {}
    for idx in tnum_indices:
        for sub in gsub.table.LookupList.Lookup[idx].SubTable:
            if hasattr(sub, "mapping"):
                subst.update(sub.mapping)

    if not subst:
        font.save(str(dst))
        return

    # Advance widths only; the .tf outlines are composites of the proportional glyphs
    hmtx = font["hmtx"].metrics
    for prop, tf in subst.items():
        if tf in hmtx:
            hmtx[prop] = hmtx[tf]

    for record in font["name"].names:
        if record.nameID == 6:  # PostScript name
            record.string = ps_name.encode(record.getEncoding() or "latin-1")

    font.save(str(dst))


def ensure_inter_fonts(font_dir: Path = FONT_DIR, inter_zip: Path = INTER_ZIP) -> None:
    """Make sure every face in FACES exists under font_dir, extracting Inter.zip if needed."""
    font_dir.mkdir(parents=True, exist_ok=True)

    missing = [name for name in INTER_STATIC_MAP if not (font_dir / name).exists()]
    if missing:
        if not inter_zip.exists():
            raise FileNotFoundError(
                "Inter fonts not found. Either put Inter.zip at "
                f"{inter_zip} or copy Inter-Light.ttf, Inter-Regular.ttf and "
                f"Inter-SemiBold.ttf into {font_dir}"
            )

        with zipfile.ZipFile(inter_zip, "r") as z:
            members = set(z.namelist())
            for out_name, zip_name in INTER_STATIC_MAP.items():
                candidate = f"static/{zip_name}"
                if candidate not in members:
                    hits = [m for m in members if m.endswith(f"/static/{zip_name}")]
                    if not hits:
                        continue
                    candidate = hits[0]
                with z.open(candidate) as src, open(font_dir / out_name, "wb") as dst:
                    shutil.copyfileobj(src, dst)

        missing_after = [name for name in INTER_STATIC_MAP if not (font_dir / name).exists()]
        if missing_after:
            raise RuntimeError(
                "Failed to extract required fonts from Inter.zip; expected under static/:\n"
                + "\n".join(f"  - {INTER_STATIC_MAP[n]}" for n in missing_after)
            )

    tabular_path = font_dir / INTER_TABULAR_FONT
    if not tabular_path.exists():
        make_tnum_font(font_dir / "Inter-Regular.ttf", tabular_path, "Inter18pt-Regular-Tabular")


# ============================================================
# Pillow font loading
# ============================================================
@lru_cache(maxsize=None)
def inter_available() -> bool:
    try:
        ensure_inter_fonts()
    except (OSError, RuntimeError) as e:
        logger.warning("Inter unavailable, falling back to system fonts: %s", e)
        return False
    return True


def _fallback_path(face: str) -> Optional[str]:
    key = "semibold" if face == "semibold" else "regular"
    for path in SYSTEM_FALLBACKS[key]:
        if Path(path).is_file():
            return path
    return None


@lru_cache(maxsize=256)
def load_font(face: str, px_size: int) -> ImageFont.FreeTypeFont:
    if face not in FACES:
        raise KeyError(f"unknown font face {face!r}")
    px_size = max(1, int(px_size))
    if inter_available():
        return ImageFont.truetype(str(FONT_DIR / FACES[face]), px_size)
    path = _fallback_path(face)
    if path:
        return ImageFont.truetype(path, px_size)
    return ImageFont.load_default(size=px_size)
