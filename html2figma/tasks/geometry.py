# html2figma/tasks/geometry.py
from __future__ import annotations

"""
Geometri: gradientvinkel → handtag → affin transform, samt offset/storlek.

Handtagen ligger i nodens enhetskvadrat (0..1 på båda axlarna):
  [0] start, [1] slut, [2] bredd-axelns handtag.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

Point = Dict[str, float]
Transform = List[List[float]]

IDENTITY_TRANSFORM: Transform = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]


def _r(x: float, p: int = 6) -> float:
    r = round(x, p)
    return 0.0 if r == 0 else r


def gradient_handles(angle_deg: float) -> List[Point]:
    """
    CSS-vinkel (0 = uppåt, medurs) → tre handtag.
    Enhetsvektorn roteras (angle-90)°, start/slut ligger 0.5 från centrum,
    bredd-handtaget längs normalen.
    """
    rad = math.radians(angle_deg - 90.0)
    c, s = math.cos(rad), math.sin(rad)
    return [
        {"x": _r(0.5 - c * 0.5), "y": _r(0.5 - s * 0.5)},
        {"x": _r(0.5 + c * 0.5), "y": _r(0.5 + s * 0.5)},
        {"x": _r(0.5 - s * 0.5), "y": _r(0.5 + c * 0.5)},
    ]


def radial_handles() -> List[Point]:
    # Kanonisk kvadrat: centrum, höger mitt, botten mitt. Ellips/storlek modelleras inte.
    return [{"x": 0.5, "y": 0.5}, {"x": 1.0, "y": 0.5}, {"x": 0.5, "y": 1.0}]


def _xy(p: Any) -> tuple[float, float]:
    if isinstance(p, dict):
        return float(p.get("x") or 0.0), float(p.get("y") or 0.0)
    return float(getattr(p, "x", 0.0) or 0.0), float(getattr(p, "y", 0.0) or 0.0)


def handles_to_transform(handles: Optional[Sequence[Any]]) -> Transform:
    """Tre handtag → 2×3-matris [[dx, wx, sx], [dy, wy, sy]]. Färre än tre → identitet."""
    if not handles or len(handles) < 3:
        return [row[:] for row in IDENTITY_TRANSFORM]
    sx, sy = _xy(handles[0])
    ex, ey = _xy(handles[1])
    wx, wy = _xy(handles[2])
    return [
        [_r(ex - sx), _r(wx - sx), _r(sx)],
        [_r(ey - sy), _r(wy - sy), _r(sy)],
    ]


def relative_offset(rect: Any, parent_rect: Optional[Any]) -> tuple[float, float]:
    """Boxens offset minus förälderns. Roten (ingen förälder) behåller dokumentkoordinater."""
    x, y = _xy(rect)
    if parent_rect is not None:
        px, py = _xy(parent_rect)
        x -= px
        y -= py
    return _r(x, 3), _r(y, 3)


def clamp_size(value: Any, default: float = 1.0) -> float:
    """Bredd/höjd är aldrig under 1. None/NaN → default (också minst 1)."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        v = default
    if math.isnan(v):
        v = default
    return max(v, 1.0)


__all__ = [
    "IDENTITY_TRANSFORM",
    "gradient_handles",
    "radial_handles",
    "handles_to_transform",
    "relative_offset",
    "clamp_size",
]
