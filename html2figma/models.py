# html2figma/models.py
"""
IR-schemat som delas av extractor och materializer.

• Fältnamn i Python är snake_case, på tråden camelCase (pageTitle, rootNode,
  figmaFontStyle …) – samma JSON som design.json alltid har haft.
• Numeriska intervall valideras INTE här; sanitize.py klämmer värden.
  Strukturen däremot är strikt: okänd nodtyp eller saknad rootNode är fel.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


class InvalidDocumentError(ValueError):
    """Dokumentet går inte att materialisera alls (saknad root, trasig struktur)."""


class _IRModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ────────────────────────────────────────────────────────────────────────────
# Färger och paints
# ────────────────────────────────────────────────────────────────────────────

class Rgb(_IRModel):
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0


class Rgba(Rgb):
    a: float = 1.0


class Vector(_IRModel):
    x: float = 0.0
    y: float = 0.0


class SolidPaint(_IRModel):
    type: Literal["SOLID"] = "SOLID"
    color: Rgb
    opacity: float = 1.0


class GradientStop(_IRModel):
    color: Rgba
    position: float = 0.0        # alltid [0,1], monotoni är anroparens ansvar


class GradientPaint(_IRModel):
    type: Literal["GRADIENT_LINEAR", "GRADIENT_RADIAL"]
    gradient_stops: List[GradientStop] = Field(default_factory=list)
    gradient_handle_positions: List[Vector] = Field(default_factory=list)   # start, slut, bredd


Paint = Annotated[Union[SolidPaint, GradientPaint], Field(discriminator="type")]


class Effect(_IRModel):
    type: Literal["DROP_SHADOW", "INNER_SHADOW"]
    color: Rgba
    offset: Vector = Field(default_factory=Vector)
    radius: float = 0.0
    spread: float = 0.0
    visible: bool = True


class LineHeight(_IRModel):
    unit: Literal["AUTO", "PIXELS"] = "AUTO"
    value: Optional[float] = None


# ────────────────────────────────────────────────────────────────────────────
# Noder (stängd summa: FRAME | TEXT | SVG | IMAGE)
# ────────────────────────────────────────────────────────────────────────────

class _NodeBase(_IRModel):
    name: str = ""
    x: float = 0.0               # relativt förälderns origo
    y: float = 0.0
    width: float = 1.0
    height: float = 1.0
    opacity: Optional[float] = None     # utelämnas när 1
    fills: List[Paint] = Field(default_factory=list)
    strokes: List[Paint] = Field(default_factory=list)
    stroke_weight: Optional[float] = None
    stroke_align: Optional[Literal["INSIDE", "OUTSIDE", "CENTER"]] = None
    top_left_radius: Optional[float] = None
    top_right_radius: Optional[float] = None
    bottom_right_radius: Optional[float] = None
    bottom_left_radius: Optional[float] = None
    effects: List[Effect] = Field(default_factory=list)

    def radii(self) -> List[Optional[float]]:
        return [self.top_left_radius, self.top_right_radius,
                self.bottom_right_radius, self.bottom_left_radius]

    def has_radius_fields(self) -> bool:
        return any(r is not None for r in self.radii())

    def has_nonzero_radius(self) -> bool:
        return any(r for r in self.radii())


class FrameNode(_NodeBase):
    type: Literal["FRAME"] = "FRAME"
    clips_content: bool = False
    background_image_url: Optional[str] = None
    background_image_base64: Optional[str] = None
    children: List["Node"] = Field(default_factory=list)


class TextNode(_NodeBase):
    type: Literal["TEXT"] = "TEXT"
    characters: str = ""
    font_size: float = 16.0
    font_family: Optional[str] = None
    font_weight: Optional[str] = None       # rått computed-värde, för felsökning
    font_style: Optional[str] = None
    figma_font_style: str = "Regular"
    line_height: Optional[LineHeight] = None
    letter_spacing: float = 0.0
    text_align_horizontal: Literal["LEFT", "RIGHT", "CENTER", "JUSTIFIED"] = "LEFT"
    text_decoration: Literal["NONE", "UNDERLINE", "STRIKETHROUGH"] = "NONE"
    background_fills: List[Paint] = Field(default_factory=list)


class SvgNode(_NodeBase):
    type: Literal["SVG"] = "SVG"
    svg_content: Optional[str] = None


class ImageNode(_NodeBase):
    type: Literal["IMAGE"] = "IMAGE"
    image_url: Optional[str] = None
    image_base64: Optional[str] = None      # vinner över image_url


Node = Annotated[Union[FrameNode, TextNode, SvgNode, ImageNode], Field(discriminator="type")]

FrameNode.model_rebuild()


class IRDocument(_IRModel):
    page_title: str = ""
    viewport_width: float = 1440
    viewport_height: float = 900
    full_height: float = 900
    root_node: Node


# ────────────────────────────────────────────────────────────────────────────
# Publikt API
# ────────────────────────────────────────────────────────────────────────────

def load_document(data: Any) -> IRDocument:
    """Validera rå JSON (dict) till IRDocument. Kastar InvalidDocumentError."""
    if isinstance(data, IRDocument):
        return data
    if not isinstance(data, dict) or not data.get("rootNode"):
        raise InvalidDocumentError("Ogiltigt design.json – rootNode saknas")
    try:
        return IRDocument.model_validate(data)
    except ValidationError as e:
        raise InvalidDocumentError(f"Ogiltigt design.json – {e.error_count()} strukturfel: {e}") from e


def load_document_json(text: str) -> IRDocument:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise InvalidDocumentError(f"design.json är inte giltig JSON: {e}") from e
    return load_document(data)


def dump_document(doc: IRDocument) -> Dict[str, Any]:
    return doc.model_dump(mode="json", by_alias=True, exclude_none=True)


def iter_nodes(node: Any) -> Iterator[Any]:
    """Pre-order, barn i IR-ordning."""
    yield node
    for ch in getattr(node, "children", None) or []:
        yield from iter_nodes(ch)


def count_nodes(node: Any) -> int:
    return sum(1 for _ in iter_nodes(node))


__all__ = [
    "InvalidDocumentError",
    "Rgb",
    "Rgba",
    "Vector",
    "SolidPaint",
    "GradientStop",
    "GradientPaint",
    "Paint",
    "Effect",
    "LineHeight",
    "FrameNode",
    "TextNode",
    "SvgNode",
    "ImageNode",
    "Node",
    "IRDocument",
    "load_document",
    "load_document_json",
    "dump_document",
    "iter_nodes",
    "count_nodes",
]
