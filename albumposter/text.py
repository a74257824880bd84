from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

Measure = Callable[[str], float]
SizedMeasure = Callable[[str, float], float]

ELLIPSIS = "…"
TITLE_LEADING = 1.15


def clean_text(s: str) -> str:
    """Collapse whitespace (incl newlines) to single spaces."""
    return " ".join((s or "").split())


# ============================================================
# Greedy packing
# ============================================================
def pack_tokens(tokens: Iterable[str], max_width: float, measure: Measure, separator: str = " ") -> List[str]:
    """Pack tokens left to right into lines no wider than max_width.

    A token never gets split; one that is too wide on its own gets a line to itself.
    """
    lines: List[str] = []
    cur: Optional[str] = None
    for tok in tokens:
        if cur is None:
            cur = tok
            continue
        trial = cur + separator + tok
        if measure(trial) > max_width:
            lines.append(cur)
            cur = tok
        else:
            cur = trial
    if cur is not None:
        lines.append(cur)
    return lines


def wrap_to_lines(text: str, max_width: float, measure: Measure) -> List[str]:
    return pack_tokens(clean_text(text).split(), max_width, measure, " ")


def ellipsize(text: str, max_width: float, measure: Measure) -> str:
    text = clean_text(text)
    if measure(text) <= max_width:
        return text
    if measure(ELLIPSIS) >= max_width:
        return ELLIPSIS

    lo, hi = 0, len(text)
    best = ELLIPSIS
    while lo <= hi:
        mid = (lo + hi) // 2
        candidate = text[:mid].rstrip() + ELLIPSIS
        if measure(candidate) <= max_width:
            best = candidate
            lo = mid + 1
        else:
            hi = mid - 1
    return best


def limit_lines(lines: List[str], max_lines: int, max_width: float, measure: Measure) -> Tuple[List[str], bool]:
    """Keep at most max_lines; mark the cut by ending the last kept line with an ellipsis."""
    if len(lines) <= max_lines:
        return lines, False
    if max_lines <= 0:
        return [], True
    kept = lines[:max_lines]
    kept[-1] = ellipsize(kept[-1] + " " + ELLIPSIS, max_width, measure)
    return kept, True


# ============================================================
# Title fitting
# ============================================================
@dataclass(frozen=True)
class TitleFit:
    lines: Tuple[str, ...]
    font_size: float
    block_height: float


def title_block_height(base_size: float, small_size: float, leading: float = TITLE_LEADING) -> float:
    """Height reserved for a title, the same for the one- and two-line outcomes."""
    return max(base_size, 2 * small_size) * leading


def fit_title(
    text: str,
    measure: SizedMeasure,
    base_size: float,
    small_size: float,
    max_width: Optional[float] = None,
    leading: float = TITLE_LEADING,
) -> TitleFit:
    text = clean_text(text)
    block = title_block_height(base_size, small_size, leading)

    if max_width is None or measure(text, base_size) <= max_width:
        return TitleFit((text,), base_size, block)

    words = text.split()
    split_at = 0
    for i in range(1, len(words) + 1):
        if measure(" ".join(words[:i]), small_size) <= max_width:
            split_at = i
        else:
            break

    if split_at == 0:
        # first word alone is too wide at the small size; leave it whole
        return TitleFit((text,), base_size, block)

    first = " ".join(words[:split_at])
    rest = " ".join(words[split_at:])
    if not rest:
        return TitleFit((first,), small_size, block)
    second = ellipsize(rest, max_width, lambda s: measure(s, small_size))
    return TitleFit((first, second), small_size, block)
