# html2figma/tasks/scene.py
"""
Scen-värden: ytan som materializern bygger lager mot.

• SceneHost är protokollet (skapa container/text/rektangel/vektor,
  lös font, avkoda bild, koppla barn). Ett designverktygs plugin-API
  implementerar samma yta.
• InMemorySceneHost är referensvärden: en fast font-tabell, SVG tolkas
  med lxml, rasterbilder avkodas med Pillow och får en innehållshash.
• En nod kopplas till exakt en förälder; omkoppling är ett fel.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from lxml import etree
from PIL import Image

from .assets import ImageAssetError, fetch_image_bytes
from .css_values import parse_px

log = logging.getLogger("html2figma/scene")

FontName = Tuple[str, str]

_INTER_STYLES = ("Thin", "ExtraLight", "Light", "Regular", "Medium", "SemiBold", "Bold", "ExtraBold", "Black")

DEFAULT_FONTS: Set[FontName] = (
    {("Inter", s) for s in _INTER_STYLES}
    | {("Inter", f"{s} Italic") for s in _INTER_STYLES if s != "Regular"}
    | {("Inter", "Italic")}
    | {("Roboto", s) for s in ("Regular", "Medium", "Bold")}
    | {("Roboto Mono", s) for s in ("Regular", "Bold")}
    | {("Georgia", s) for s in ("Regular", "Bold")}
)


class FontUnavailableError(LookupError):
    """Familj/stil finns inte hos värden."""


class VectorParseError(ValueError):
    """SVG-markup gick inte att tolka."""


@dataclass(frozen=True)
class ImageHandle:
    hash: str
    width: int
    height: int


@dataclass(eq=False)
class SceneNode:
    kind: str                                   # FRAME | TEXT | RECTANGLE | VECTOR
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    opacity: float = 1.0
    fills: List[Dict[str, Any]] = field(default_factory=list)
    strokes: List[Dict[str, Any]] = field(default_factory=list)
    stroke_weight: float = 1.0
    stroke_align: str = "INSIDE"
    top_left_radius: float = 0.0
    top_right_radius: float = 0.0
    bottom_right_radius: float = 0.0
    bottom_left_radius: float = 0.0
    effects: List[Dict[str, Any]] = field(default_factory=list)
    clips_content: bool = False
    # TEXT
    characters: str = ""
    font_name: Optional[FontName] = None
    font_size: float = 12.0
    line_height: Dict[str, Any] = field(default_factory=lambda: {"unit": "AUTO"})
    letter_spacing: Dict[str, Any] = field(default_factory=lambda: {"unit": "PIXELS", "value": 0.0})
    text_align_horizontal: str = "LEFT"
    text_decoration: str = "NONE"
    text_auto_resize: str = "WIDTH_AND_HEIGHT"
    # VECTOR
    svg_markup: Optional[str] = None
    children: List["SceneNode"] = field(default_factory=list, repr=False)
    parent: Optional["SceneNode"] = field(default=None, repr=False)

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Ogiltig storlek {width}×{height}")
        self.width = float(width)
        self.height = float(height)


class SceneHost(Protocol):
    def create_container(self) -> Any: ...
    def create_text(self) -> Any: ...
    def create_rectangle(self) -> Any: ...
    def create_vector_from_markup(self, markup: str) -> Any: ...
    async def resolve_font(self, family: str, style: str) -> Any: ...
    async def decode_image_bytes(self, data: bytes) -> Any: ...
    async def resolve_image_from_url(self, url: str) -> Any: ...
    def supports_children(self, node: Any) -> bool: ...
    def attach_child(self, parent: Any, child: Any) -> None: ...


_SVG_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def _svg_size(root: Any) -> Tuple[float, float]:
    w = parse_px(root.get("width"))
    h = parse_px(root.get("height"))
    if (not w or not h) and root.get("viewBox"):
        parts = root.get("viewBox").replace(",", " ").split()
        if len(parts) == 4:
            w = w or parse_px(parts[2])
            h = h or parse_px(parts[3])
    return (w if w and w > 0 else 100.0), (h if h and h > 0 else 100.0)


class InMemorySceneHost:
    """Scen i minnet. Används av tester, CLI och API:t."""

    def __init__(
        self,
        fonts: Optional[Iterable[FontName]] = None,
        fetch_url: Optional[Callable[[str], bytes]] = None,
    ):
        self.available_fonts: Set[FontName] = set(fonts) if fonts is not None else set(DEFAULT_FONTS)
        self.loaded_fonts: Set[FontName] = set()
        self.images: Dict[str, ImageHandle] = {}
        self.created: List[SceneNode] = []
        self._fetch_url = fetch_url or fetch_image_bytes

    def _new(self, kind: str, **kw: Any) -> SceneNode:
        node = SceneNode(kind=kind, **kw)
        self.created.append(node)
        return node

    # ── Skapa noder ─────────────────────────────────────────────────────────
    def create_container(self) -> SceneNode:
        # Som i designverktyg: en ny frame har vit fyllning tills någon sätter fills
        return self._new("FRAME", name="Frame", fills=[
            {"type": "SOLID", "color": {"r": 1.0, "g": 1.0, "b": 1.0}, "opacity": 1.0}
        ])

    def create_text(self) -> SceneNode:
        return self._new("TEXT", name="Text", fills=[
            {"type": "SOLID", "color": {"r": 0.0, "g": 0.0, "b": 0.0}, "opacity": 1.0}
        ])

    def create_rectangle(self) -> SceneNode:
        return self._new("RECTANGLE", name="Rectangle", fills=[
            {"type": "SOLID", "color": {"r": 0.85, "g": 0.85, "b": 0.85}, "opacity": 1.0}
        ])

    def create_vector_from_markup(self, markup: str) -> SceneNode:
        try:
            root = etree.fromstring(markup.encode("utf-8"), parser=_SVG_PARSER)
        except etree.XMLSyntaxError as e:
            raise VectorParseError(str(e)) from e
        if root is None or etree.QName(root).localname != "svg":
            raise VectorParseError("Rotelementet är inte <svg>")
        w, h = _svg_size(root)
        return self._new("VECTOR", name="Vector", svg_markup=markup, width=w, height=h)

    # ── Resurser ────────────────────────────────────────────────────────────
    async def resolve_font(self, family: str, style: str) -> FontName:
        key = (family, style)
        if key not in self.available_fonts:
            raise FontUnavailableError(f"{family} {style}")
        self.loaded_fonts.add(key)
        return key

    async def decode_image_bytes(self, data: bytes) -> ImageHandle:
        try:
            with Image.open(BytesIO(data)) as im:
                im.verify()
                size = im.size
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageAssetError(f"Kunde inte avkoda bild: {e}") from e
        digest = hashlib.sha1(data).hexdigest()
        handle = ImageHandle(hash=digest, width=size[0], height=size[1])
        self.images[digest] = handle
        return handle

    async def resolve_image_from_url(self, url: str) -> ImageHandle:
        data = await asyncio.to_thread(self._fetch_url, url)
        return await self.decode_image_bytes(data)

    # ── Hierarki ────────────────────────────────────────────────────────────
    def supports_children(self, node: SceneNode) -> bool:
        return node.kind == "FRAME"

    def attach_child(self, parent: SceneNode, child: SceneNode) -> None:
        if not self.supports_children(parent):
            raise TypeError(f"{parent.kind} kan inte ha barn")
        if child.parent is not None:
            raise ValueError(f"Noden {child.name!r} är redan kopplad till {child.parent.name!r}")
        child.parent = parent
        parent.children.append(child)


# ────────────────────────────────────────────────────────────────────────────
# Serialisering
# ────────────────────────────────────────────────────────────────────────────

_BOX_KEYS = ("x", "y", "width", "height", "opacity", "fills", "strokes", "effects")


def to_dict(node: SceneNode) -> Dict[str, Any]:
    """Scenträd → JSON-vänlig dict (camelCase som plugin-API:t)."""
    out: Dict[str, Any] = {"type": node.kind, "name": node.name}
    for k in _BOX_KEYS:
        out[k] = getattr(node, k)
    if node.strokes:
        out["strokeWeight"] = node.stroke_weight
        out["strokeAlign"] = node.stroke_align
    radii = [node.top_left_radius, node.top_right_radius, node.bottom_right_radius, node.bottom_left_radius]
    if any(radii):
        out["topLeftRadius"], out["topRightRadius"], out["bottomRightRadius"], out["bottomLeftRadius"] = radii
    if node.kind == "FRAME":
        out["clipsContent"] = node.clips_content
        out["children"] = [to_dict(c) for c in node.children]
    elif node.kind == "TEXT":
        out.update({
            "characters": node.characters,
            "fontName": {"family": node.font_name[0], "style": node.font_name[1]} if node.font_name else None,
            "fontSize": node.font_size,
            "lineHeight": node.line_height,
            "letterSpacing": node.letter_spacing,
            "textAlignHorizontal": node.text_align_horizontal,
            "textDecoration": node.text_decoration,
            "textAutoResize": node.text_auto_resize,
        })
    elif node.kind == "VECTOR":
        out["svg"] = node.svg_markup
    return out


__all__ = [
    "FontName",
    "DEFAULT_FONTS",
    "FontUnavailableError",
    "VectorParseError",
    "ImageHandle",
    "SceneNode",
    "SceneHost",
    "InMemorySceneHost",
    "to_dict",
]
