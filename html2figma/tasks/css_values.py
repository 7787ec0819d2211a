from __future__ import annotations
"""
CSS-värden → strukturerade paints/effekter för IR.

Mål:
- Tolka computed-style-strängar (färger, gradienter, box-shadow) till IR-primitiver.
- Allt som inte går att tolka ger None/[] – "ingen paint", aldrig ett fel.
- Alla kanaler, alfa och stopp-positioner klämda till [0,1].
- Parsers läser bara den stil-snapshot de får (Mapping); inget globalt tillstånd.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models import Effect, GradientPaint, GradientStop, LineHeight, Paint, Rgb, Rgba, SolidPaint, Vector
from ..rules.css_tables import (
    ANGLE_UNITS,
    BORDER_SIDES,
    DEFAULT_GRADIENT_ANGLE,
    DIRECTION_ANGLES,
    FONT_WEIGHT_BUCKETS,
    FONT_WEIGHT_KEYWORDS,
    HEAVIEST_STYLE,
    NAMED_COLORS,
    RADIUS_FIELDS,
    TEXT_ALIGN_MAP,
)
from .geometry import gradient_handles, radial_handles

# ────────────────────────────────────────────────────────────────────────────
# Hjälpare: robusta tal
# ────────────────────────────────────────────────────────────────────────────

_NUM = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?"
_LEADING_NUM = re.compile(rf"^\s*({_NUM})", re.IGNORECASE)


def _to_float(x: Any) -> Optional[float]:
    try:
        return float(x)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _clamp01(x: float) -> float:
    return 0.0 if x < 0 else 1.0 if x > 1 else x


def _round(x: float, p: int = 4) -> float:
    r = round(x, p)
    return 0.0 if r == 0 else r


def parse_px(value: Optional[str]) -> Optional[float]:
    """Inledande tal i ett CSS-värde ("16px", "1.5", "10px 20px"). Som parseFloat."""
    if not value:
        return None
    m = _LEADING_NUM.match(str(value))
    return float(m.group(1)) if m else None


def split_top_level(text: str) -> List[str]:
    """Dela på kommatecken på nivå 0 – komman inuti rgba(...) m.fl. delar inte."""
    parts: List[str] = []
    depth = 0
    buf: List[str] = []
    for ch in text or "":
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    if buf:
        parts.append("".join(buf))
    return parts


def _balanced_args(text: str, open_idx: int) -> Optional[str]:
    """Innehållet mellan parentesen vid open_idx och dess matchande stängning."""
    depth = 0
    for i in range(open_idx, len(text)):
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return text[open_idx + 1:i]
    return None

# ────────────────────────────────────────────────────────────────────────────
# Färger
# ────────────────────────────────────────────────────────────────────────────

_FUNC_COLOR = re.compile(r"^rgba?\(\s*(.*?)\s*\)$", re.IGNORECASE | re.DOTALL)
_FUNC_COLOR_ANY = re.compile(r"rgba?\([^)]*\)", re.IGNORECASE)
_HEX_COLOR = re.compile(r"^#([0-9a-f]{3,8})$", re.IGNORECASE)
_NO_PAINT = {"transparent", "none", "currentcolor", "inherit", "initial", "unset"}


def _channel(tok: str) -> Optional[float]:
    tok = tok.strip()
    if tok.endswith("%"):
        v = _to_float(tok[:-1])
        return None if v is None else v * 2.55
    return _to_float(tok)


def _alpha(tok: str) -> Optional[float]:
    tok = tok.strip()
    if tok.endswith("%"):
        v = _to_float(tok[:-1])
        return None if v is None else v / 100.0
    return _to_float(tok)


def _functional_rgba(value: str) -> Optional[Tuple[float, float, float, float]]:
    m = _FUNC_COLOR.match(value)
    if not m:
        return None
    inner = m.group(1)
    alpha_tok: Optional[str] = None
    if "," in inner:
        parts = [p for p in inner.split(",")]
        if len(parts) > 3:
            alpha_tok = parts[3]
        parts = parts[:3]
    else:
        # rgb(r g b / a)
        if "/" in inner:
            inner, alpha_tok = inner.split("/", 1)
        parts = inner.split()
    if len(parts) < 3:
        return None
    r, g, b = (_channel(p) for p in parts[:3])
    if r is None or g is None or b is None:
        return None
    a = 1.0
    if alpha_tok is not None:
        fa = _alpha(alpha_tok)
        if fa is None:
            return None
        a = fa
    return r, g, b, a


def _hex_rgba(value: str) -> Optional[Tuple[float, float, float, float]]:
    m = _HEX_COLOR.match(value)
    if not m:
        return None
    h = m.group(1)
    if len(h) in (3, 4):
        r, g, b = (int(h[i] * 2, 16) for i in range(3))
        a = int(h[3] * 2, 16) / 255.0 if len(h) == 4 else 1.0
        return float(r), float(g), float(b), a
    if len(h) in (6, 8):
        r, g, b = (int(h[i:i + 2], 16) for i in (0, 2, 4))
        a = int(h[6:8], 16) / 255.0 if len(h) == 8 else 1.0
        return float(r), float(g), float(b), a
    return None


def parse_color(value: Optional[str]) -> Optional[Rgba]:
    """
    "rgb(…)"/"rgba(…)" (även "#hex" och namn) → Rgba i 0–1.
    None för transparent, helt transparent svart och okänd syntax.
    """
    if not value:
        return None
    v = value.strip().lower()
    if not v or v in _NO_PAINT:
        return None
    rgba = _functional_rgba(v) or _hex_rgba(v)
    if rgba is None and v in NAMED_COLORS:
        r, g, b = NAMED_COLORS[v]
        rgba = (float(r), float(g), float(b), 1.0)
    if rgba is None:
        return None
    r, g, b, a = rgba
    if a <= 0 and r == 0 and g == 0 and b == 0:
        return None
    return Rgba(r=_clamp01(r / 255.0), g=_clamp01(g / 255.0), b=_clamp01(b / 255.0), a=_clamp01(a))


def solid_paint(color: Rgba) -> SolidPaint:
    return SolidPaint(color=Rgb(r=color.r, g=color.g, b=color.b), opacity=color.a)

# ────────────────────────────────────────────────────────────────────────────
# Gradienter
# ────────────────────────────────────────────────────────────────────────────

# repeating-*/conic-* matchar inte (föregås av "-" eller är annan funktion)
_GRADIENT_FN = re.compile(r"(?<![\w-])(linear|radial)-gradient\(", re.IGNORECASE)
_ANGLE = re.compile(rf"^({_NUM})(deg|grad|rad|turn)$", re.IGNORECASE)
_TRAILING_PCT = re.compile(rf"({_NUM})%\s*$")
_TRAILING_LEN = re.compile(rf"\s({_NUM})px\s*$", re.IGNORECASE)
_COLORISH = re.compile(r"^(rgb|hsl|#)", re.IGNORECASE)


def parse_angle(token: str) -> Optional[float]:
    m = _ANGLE.match(token.strip())
    if not m:
        return None
    return float(m.group(1)) * ANGLE_UNITS[m.group(2).lower()]


def direction_to_angle(token: str) -> float:
    key = " ".join(token.strip().lower().split())
    return DIRECTION_ANGLES.get(key, DEFAULT_GRADIENT_ANGLE)


def parse_color_stop(token: str, index: int, total: int) -> Tuple[Optional[Rgba], float]:
    """
    "rgba(255,0,0,0.5) 50%" / "red" → (färg, position).
    Utan procent: jämnt fördelad efter index (index/(total-1), 0 om total=1).
    """
    position = index / (total - 1) if total > 1 else 0.0
    s = token.strip()
    m = _TRAILING_PCT.search(s)
    if m:
        position = float(m.group(1)) / 100.0
        s = s[:m.start()].strip()
    else:
        # längdpositioner ("red 10px") saknar referensstorlek här – behåll indexpositionen
        ml = _TRAILING_LEN.search(s)
        if ml:
            s = s[:ml.start()].strip()
    return parse_color(s), _clamp01(position)


def _parse_stops(tokens: List[str]) -> List[GradientStop]:
    stops: List[GradientStop] = []
    for i, tok in enumerate(tokens):
        color, pos = parse_color_stop(tok, i, len(tokens))
        if color is not None:
            stops.append(GradientStop(color=color, position=_round(pos, 6)))
    return stops


def _parse_linear(args: str) -> Optional[GradientPaint]:
    parts = [p.strip() for p in split_top_level(args) if p.strip()]
    if len(parts) < 2:
        return None
    angle = DEFAULT_GRADIENT_ANGLE
    start = 0
    first = parts[0].lower()
    explicit = parse_angle(first)
    if explicit is not None:
        angle, start = explicit, 1
    elif first.startswith("to "):
        angle, start = direction_to_angle(first), 1
    stops = _parse_stops(parts[start:])
    if len(stops) < 2:
        return None
    return GradientPaint(
        type="GRADIENT_LINEAR",
        gradient_stops=stops,
        gradient_handle_positions=[Vector(**p) for p in gradient_handles(angle)],
    )


def _looks_like_color(token: str) -> bool:
    t = token.strip()
    if _COLORISH.match(t):
        return True
    color, _ = parse_color_stop(t, 0, 1)
    return color is not None


def _parse_radial(args: str) -> Optional[GradientPaint]:
    parts = [p.strip() for p in split_top_level(args) if p.strip()]
    if len(parts) < 2:
        return None
    # första token = form/storlek/position ("circle at center") om den inte är en färg
    start = 0 if _looks_like_color(parts[0]) else 1
    stops = _parse_stops(parts[start:])
    if len(stops) < 2:
        return None
    return GradientPaint(
        type="GRADIENT_RADIAL",
        gradient_stops=stops,
        gradient_handle_positions=[Vector(**p) for p in radial_handles()],
    )


def parse_gradient(value: Optional[str]) -> Optional[GradientPaint]:
    """background-image → GRADIENT_LINEAR/GRADIENT_RADIAL. Första linear/radial vinner."""
    if not value or value.strip().lower() == "none":
        return None
    m = _GRADIENT_FN.search(value)
    if not m:
        return None
    args = _balanced_args(value, m.end() - 1)
    if args is None:
        return None
    if m.group(1).lower() == "linear":
        return _parse_linear(args)
    return _parse_radial(args)


_URL = re.compile(r"url\(\s*[\"']?([^\"')]+)[\"']?\s*\)", re.IGNORECASE)


def extract_background_image_url(value: Optional[str]) -> Optional[str]:
    if not value or value.strip().lower() == "none":
        return None
    m = _URL.search(value)
    return m.group(1).strip() if m else None


def background_paints(style: Mapping[str, str]) -> Tuple[List[Paint], Optional[GradientPaint]]:
    """Solid bakgrund + ev. gradient ovanpå (båda kan samexistera som staplade fills)."""
    fills: List[Paint] = []
    bg = parse_color(style.get("backgroundColor"))
    if bg is not None:
        fills.append(solid_paint(bg))
    gradient = parse_gradient(style.get("backgroundImage"))
    if gradient is not None:
        fills.append(gradient)
    return fills, gradient

# ────────────────────────────────────────────────────────────────────────────
# Skuggor
# ────────────────────────────────────────────────────────────────────────────

_INSET = re.compile(r"(?<![\w-])inset(?![\w-])", re.IGNORECASE)
_LENGTH_TOKEN = re.compile(rf"^({_NUM})(px)?$", re.IGNORECASE)
DEFAULT_SHADOW_COLOR = (0.0, 0.0, 0.0, 0.25)   # currentColor approximeras


def _shadow_lengths(tokens: List[str]) -> List[float]:
    out: List[float] = []
    for t in tokens:
        m = _LENGTH_TOKEN.match(t)
        if not m:
            continue
        v = float(m.group(1))
        # enhetslös längd är bara tillåten för 0
        if m.group(2) is None and v != 0:
            continue
        out.append(v)
    return out


def parse_box_shadow(value: Optional[str]) -> List[Effect]:
    """
    "2px 4px 6px rgba(0,0,0,.5), inset 0 0 10px red" → [DROP_SHADOW, INNER_SHADOW].
    Satser med färre än två längder hoppas över.
    """
    if not value or value.strip().lower() == "none":
        return []
    effects: List[Effect] = []
    for clause in split_top_level(value):
        c = clause.strip()
        if not c:
            continue
        is_inner = bool(_INSET.search(c))
        c = _INSET.sub(" ", c).strip()

        color: Optional[Rgba] = None
        explicit_color = False
        fm = _FUNC_COLOR_ANY.search(c)
        if fm:
            explicit_color = True
            color = parse_color(fm.group(0))
            c = (c[:fm.start()] + " " + c[fm.end():]).strip()
        tokens = c.split()
        if not fm:
            for i, t in enumerate(tokens):
                if _LENGTH_TOKEN.match(t):
                    continue
                low = t.lower()
                if low in _NO_PAINT or low in NAMED_COLORS or _HEX_COLOR.match(t) or parse_color(t) is not None:
                    explicit_color = True
                    color = parse_color(t)
                    del tokens[i]
                    break

        nums = _shadow_lengths(tokens)
        if len(nums) < 2:
            continue
        if explicit_color and color is None:
            # uttryckligen transparent skugga syns inte
            continue
        if color is None:
            r, g, b, a = DEFAULT_SHADOW_COLOR
            color = Rgba(r=r, g=g, b=b, a=a)

        effects.append(Effect(
            type="INNER_SHADOW" if is_inner else "DROP_SHADOW",
            color=color,
            offset=Vector(x=nums[0], y=nums[1]),
            radius=max(nums[2], 0.0) if len(nums) > 2 else 0.0,
            spread=nums[3] if len(nums) > 3 else 0.0,
            visible=True,
        ))
    return effects

# ────────────────────────────────────────────────────────────────────────────
# Border, radius, opacity
# ────────────────────────────────────────────────────────────────────────────

def aggregate_borders(style: Mapping[str, str]) -> Optional[Dict[str, Any]]:
    """
    Fyra sidor → en stroke. Vikt = max över sidor, färg = första giltiga sidan.
    None om ingen sida har bredd > 0, synlig stil och tolkbar färg.
    """
    weight = 0.0
    first: Optional[Rgba] = None
    for side in BORDER_SIDES:
        width = parse_px(style.get(f"border{side}Width")) or 0.0
        bstyle = (style.get(f"border{side}Style") or "none").strip().lower()
        color = parse_color(style.get(f"border{side}Color"))
        if width > 0 and bstyle not in ("none", "hidden") and color is not None:
            weight = max(weight, width)
            if first is None:
                first = color
    if first is None:
        return None
    return {"strokes": [solid_paint(first)], "stroke_weight": weight, "stroke_align": "INSIDE"}


def corner_radii(style: Mapping[str, str]) -> Optional[Dict[str, float]]:
    """Alla fyra hörn (modellfältnamn) om något hörn > 0, annars None."""
    out: Dict[str, float] = {}
    for field, css_key in RADIUS_FIELDS:
        v = parse_px(style.get(css_key)) or 0.0
        out[field] = max(v, 0.0)
    if not any(out.values()):
        return None
    return out


def parse_opacity(value: Optional[str]) -> Optional[float]:
    """Endast opacity < 1 rapporteras; 1 (eller otolkbart) → None."""
    v = _to_float(value)
    if v is None or v >= 1:
        return None
    return _clamp01(v)

# ────────────────────────────────────────────────────────────────────────────
# Typografi
# ────────────────────────────────────────────────────────────────────────────

def font_style_name(weight: Any, font_style: Optional[str] = None) -> str:
    """400 → "Regular", 700 + italic → "Bold Italic"."""
    w_raw = str(weight or "").strip().lower()
    if w_raw in FONT_WEIGHT_KEYWORDS:
        w = FONT_WEIGHT_KEYWORDS[w_raw]
    else:
        fw = parse_px(w_raw)
        w = int(fw) if fw else 400
    style = HEAVIEST_STYLE
    for limit, name in FONT_WEIGHT_BUCKETS:
        if w <= limit:
            style = name
            break
    fs = (font_style or "").strip().lower()
    if fs == "italic" or fs.startswith("oblique"):
        style += " Italic"
    return style


def primary_font_family(value: Optional[str]) -> str:
    first = (value or "").split(",")[0]
    return first.replace('"', "").replace("'", "").strip()


def parse_line_height(value: Optional[str]) -> LineHeight:
    v = (value or "").strip().lower()
    if not v or v == "normal":
        return LineHeight(unit="AUTO")
    px = parse_px(v)
    if px is None:
        return LineHeight(unit="AUTO")
    return LineHeight(unit="PIXELS", value=px)


def parse_letter_spacing(value: Optional[str]) -> float:
    return parse_px(value) or 0.0


def map_text_align(value: Optional[str]) -> str:
    v = (value or "").strip().lower()
    if v.startswith("-webkit-"):
        v = v[len("-webkit-"):]
    return TEXT_ALIGN_MAP.get(v, "LEFT")


def map_text_decoration(value: Optional[str]) -> str:
    """underline vinner över line-through när båda finns."""
    v = (value or "").lower()
    if "underline" in v:
        return "UNDERLINE"
    if "line-through" in v:
        return "STRIKETHROUGH"
    return "NONE"

# ────────────────────────────────────────────────────────────────────────────
# Namn
# ────────────────────────────────────────────────────────────────────────────

def node_name(tag: str, el_id: Optional[str] = None, class_attr: Optional[str] = None) -> str:
    """div#hero, button.btn.primary (högst två klasser), annars bara taggen."""
    t = (tag or "div").lower()
    if el_id:
        return f"{t}#{el_id}"
    classes = [c for c in (class_attr or "").split() if c][:2]
    if classes:
        return t + "." + ".".join(classes)
    return t


__all__ = [
    "parse_px",
    "split_top_level",
    "parse_color",
    "solid_paint",
    "parse_angle",
    "direction_to_angle",
    "parse_color_stop",
    "parse_gradient",
    "extract_background_image_url",
    "background_paints",
    "parse_box_shadow",
    "aggregate_borders",
    "corner_radii",
    "parse_opacity",
    "font_style_name",
    "primary_font_family",
    "parse_line_height",
    "parse_letter_spacing",
    "map_text_align",
    "map_text_decoration",
    "node_name",
]
