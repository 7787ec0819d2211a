# html2figma/tasks/sanitize.py
"""
Sanering av IR-värden innan de når scen-värden.

• clamp01 gäller färgkanaler, alfa, paint-opacity och stopp-positioner.
• Skuggradie klämms till ≥ 0.
• Alla sanerare är idempotenta: sanitize(sanitize(x)) == sanitize(x).
• *_to_host översätter sanerad IR till scen-värdens dict-format
  (gradienthandtag → gradientTransform).
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models import Effect, GradientPaint, GradientStop, Paint, Rgb, Rgba, SolidPaint, Vector
from ..rules.fallbacks import FALLBACK_FONT_FAMILY, SYSTEM_FONT_MAP
from .geometry import handles_to_transform


def clamp01(x: Any) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(v):
        return 0.0
    return min(1.0, max(0.0, v))


def _finite(x: Any, default: float = 0.0) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default


def sanitize_rgb(c: Rgb) -> Rgb:
    return Rgb(r=clamp01(c.r), g=clamp01(c.g), b=clamp01(c.b))


def sanitize_rgba(c: Rgba) -> Rgba:
    return Rgba(r=clamp01(c.r), g=clamp01(c.g), b=clamp01(c.b), a=clamp01(c.a))


def sanitize_paint(p: Paint) -> Paint:
    if isinstance(p, SolidPaint):
        return SolidPaint(color=sanitize_rgb(p.color), opacity=clamp01(p.opacity))
    return GradientPaint(
        type=p.type,
        gradient_stops=[
            GradientStop(color=sanitize_rgba(s.color), position=clamp01(s.position))
            for s in p.gradient_stops
        ],
        gradient_handle_positions=[
            Vector(x=_finite(h.x), y=_finite(h.y)) for h in p.gradient_handle_positions
        ],
    )


def sanitize_paints(paints: Optional[Sequence[Paint]]) -> List[Paint]:
    return [sanitize_paint(p) for p in (paints or [])]


def sanitize_effect(e: Effect) -> Effect:
    return Effect(
        type=e.type,
        color=sanitize_rgba(e.color),
        offset=Vector(x=_finite(e.offset.x), y=_finite(e.offset.y)),
        radius=max(_finite(e.radius), 0.0),
        spread=_finite(e.spread),
        visible=True,
    )


def sanitize_effects(effects: Optional[Sequence[Effect]]) -> List[Effect]:
    return [sanitize_effect(e) for e in (effects or [])]


def sanitize_font_family(name: Optional[str]) -> str:
    """Tom familj → fallback, generiska/system-familjer mappas om."""
    family = (name or "").split(",")[0].replace('"', "").replace("'", "").strip()
    if not family:
        return FALLBACK_FONT_FAMILY
    return SYSTEM_FONT_MAP.get(family, family)


# ────────────────────────────────────────────────────────────────────────────
# IR → scen-värdens format
# ────────────────────────────────────────────────────────────────────────────

def paint_to_host(p: Paint) -> Dict[str, Any]:
    p = sanitize_paint(p)
    if isinstance(p, SolidPaint):
        return {
            "type": "SOLID",
            "color": {"r": p.color.r, "g": p.color.g, "b": p.color.b},
            "opacity": p.opacity,
        }
    return {
        "type": p.type,
        "gradientStops": [
            {
                "color": {"r": s.color.r, "g": s.color.g, "b": s.color.b, "a": s.color.a},
                "position": s.position,
            }
            for s in p.gradient_stops
        ],
        "gradientTransform": handles_to_transform(p.gradient_handle_positions),
    }


def effect_to_host(e: Effect) -> Dict[str, Any]:
    e = sanitize_effect(e)
    return {
        "type": e.type,
        "color": {"r": e.color.r, "g": e.color.g, "b": e.color.b, "a": e.color.a},
        "offset": {"x": e.offset.x, "y": e.offset.y},
        "radius": e.radius,
        "spread": e.spread,
        "visible": e.visible,
        "blendMode": "NORMAL",
    }


def solid_fill(rgb: Tuple[float, float, float], opacity: float = 1.0) -> Dict[str, Any]:
    r, g, b = rgb
    return {"type": "SOLID", "color": {"r": clamp01(r), "g": clamp01(g), "b": clamp01(b)}, "opacity": clamp01(opacity)}


def image_fill(image_hash: str) -> Dict[str, Any]:
    return {"type": "IMAGE", "scaleMode": "FILL", "imageHash": image_hash}


__all__ = [
    "clamp01",
    "sanitize_paint",
    "sanitize_paints",
    "sanitize_effect",
    "sanitize_effects",
    "sanitize_font_family",
    "paint_to_host",
    "effect_to_host",
    "solid_fill",
    "image_fill",
]
