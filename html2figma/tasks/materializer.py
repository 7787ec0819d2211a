# html2figma/tasks/materializer.py
from __future__ import annotations

"""
IR (design.json) → lager i en scen-värd.

Regler:
- Sidcontainern skapas först: namn = sidtitel, storlek = viewport-bredd ×
  max(fullHeight, viewportHeight).
- Varje IR-nod byggs och stylas färdigt INNAN den kopplas till sin förälder.
- Fel i en enskild nod blir en synlig platshållare med flaggat namn; övriga
  noder (inklusive en trasig FRAMEs barn) byggs ändå.
- Fonter: (familj, stil) → (familj, Regular) → (fallback, stil) → (fallback, Regular).
- TEXT med bakgrund/stroke/hörnradie/skugga får en wrapper-container;
  texten ligger i (0,0) inuti.
- Lagerantal = antal besökta IR-noder (sidcontainern räknas inte).
"""

import argparse
import asyncio
import base64
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from ..models import (
    FrameNode,
    ImageNode,
    IRDocument,
    SvgNode,
    TextNode,
    count_nodes,
    load_document,
    load_document_json,
)
from ..rules.fallbacks import (
    BUILD_ERROR_RGB,
    BUILD_ERROR_SUFFIX,
    DEFAULT_PAGE_NAME,
    IMAGE_EMPTY_RGB,
    IMAGE_ERROR_RGB,
    IMAGE_ERROR_SUFFIX,
    PROGRESS_EVERY,
    SVG_ERROR_RGB,
    SVG_ERROR_SUFFIX,
    SVG_MISSING_RGB,
    SVG_MISSING_SUFFIX,
    font_candidates,
    last_resort_font,
)
from .geometry import clamp_size
from .sanitize import (
    clamp01,
    effect_to_host,
    image_fill,
    paint_to_host,
    sanitize_font_family,
    solid_fill,
)

log = logging.getLogger("html2figma/materializer")

_MINLOG = os.getenv("H2F_MINLOG", "0").lower() in ("1", "true", "yes")
TRACE_NODES = int(os.getenv("H2F_TRACE_NODES", "0") or "0")


def _minlog(evt: str, **kv):
    if _MINLOG:
        try:
            print("[html2figma]", evt, json.dumps(kv, ensure_ascii=False, default=str))
        except (TypeError, ValueError):
            print("[html2figma]", evt, kv)


ProgressReporter = Callable[[int, int], None]


class MaterializeError(RuntimeError):
    """Hela importen avbröts (inte ett enskilt nodfel)."""


@dataclass
class MaterializeResult:
    root: Any       # sidcontainern
    layers: int     # besökta IR-noder
    total: int


class _Run:
    def __init__(self, host: Any, total: int, reporter: Optional[ProgressReporter]):
        self.host = host
        self.total = total
        self.reporter = reporter
        self.processed = 0
        self.failed = 0

    def tick(self) -> None:
        self.processed += 1
        if self.reporter and self.processed % PROGRESS_EVERY == 0:
            self.reporter(self.processed, self.total)


# ────────────────────────────────────────────────────────────────────────────
# Gemensam styling
# ────────────────────────────────────────────────────────────────────────────

def _apply_size(target: Any, node: Any) -> None:
    target.resize(clamp_size(node.width), clamp_size(node.height))


def _apply_strokes(target: Any, node: Any) -> None:
    if not node.strokes:
        return
    target.strokes = [paint_to_host(p) for p in node.strokes]
    if node.stroke_weight:
        target.stroke_weight = max(float(node.stroke_weight), 0.0)
    target.stroke_align = node.stroke_align or "INSIDE"


def _apply_corner_radius(target: Any, node: Any) -> None:
    if not node.has_radius_fields():
        return
    target.top_left_radius = max(node.top_left_radius or 0.0, 0.0)
    target.top_right_radius = max(node.top_right_radius or 0.0, 0.0)
    target.bottom_right_radius = max(node.bottom_right_radius or 0.0, 0.0)
    target.bottom_left_radius = max(node.bottom_left_radius or 0.0, 0.0)


def _apply_effects(target: Any, node: Any) -> None:
    if node.effects:
        target.effects = [effect_to_host(e) for e in node.effects]


def _style_box(target: Any, node: Any, fills: List[Any]) -> None:
    _apply_size(target, node)
    target.fills = [paint_to_host(p) for p in fills]
    _apply_strokes(target, node)
    _apply_corner_radius(target, node)
    _apply_effects(target, node)


# ────────────────────────────────────────────────────────────────────────────
# Fonter
# ────────────────────────────────────────────────────────────────────────────

async def resolve_font_cascade(host: Any, family: str, style: str) -> Any:
    """Första kandidat som värden kan ladda vinner. Sista utväg får kasta."""
    for fam, sty in font_candidates(family, style):
        try:
            return await host.resolve_font(fam, sty)
        except Exception as e:  # värdens fel för "font saknas" är inte standardiserat
            log.debug("Font unavailable", extra={"family": fam, "style": sty, "err": str(e)})
    fam, sty = last_resort_font()
    return await host.resolve_font(fam, sty)


# ────────────────────────────────────────────────────────────────────────────
# Nodbyggare → (scen-nod, flaggat namn eller None)
# ────────────────────────────────────────────────────────────────────────────

Built = Tuple[Any, Optional[str]]


async def _build_container(host: Any, node: FrameNode) -> Built:
    frame = host.create_container()
    frame.clips_content = bool(node.clips_content)
    _style_box(frame, node, node.fills)
    if node.background_image_base64:
        try:
            handle = await host.decode_image_bytes(base64.b64decode(node.background_image_base64))
            frame.fills = list(frame.fills) + [image_fill(handle.hash)]
        except Exception as e:
            log.warning("Background image decode failed", extra={"node": node.name, "err": str(e)})
    return frame, None


def _needs_text_wrapper(node: TextNode) -> bool:
    return bool(node.background_fills or node.strokes or node.effects or node.has_nonzero_radius())


async def _build_text(host: Any, node: TextNode) -> Built:
    # fonten först: misslyckas den har inget skapats i värden
    font = await resolve_font_cascade(
        host, sanitize_font_family(node.font_family), node.figma_font_style or "Regular"
    )

    wrapper = None
    if _needs_text_wrapper(node):
        wrapper = host.create_container()
        wrapper.clips_content = False
        _style_box(wrapper, node, node.background_fills)

    text = host.create_text()
    text.font_name = font
    text.characters = node.characters
    if node.font_size and node.font_size > 0:
        text.font_size = node.font_size
    if node.line_height is not None:
        if node.line_height.unit == "PIXELS" and node.line_height.value:
            text.line_height = {"unit": "PIXELS", "value": node.line_height.value}
        else:
            text.line_height = {"unit": "AUTO"}
    if node.letter_spacing:
        text.letter_spacing = {"unit": "PIXELS", "value": node.letter_spacing}
    text.text_align_horizontal = node.text_align_horizontal
    if node.text_decoration != "NONE":
        text.text_decoration = node.text_decoration
    if node.fills:
        text.fills = [paint_to_host(p) for p in node.fills]
    _apply_size(text, node)
    text.text_auto_resize = "NONE"

    if wrapper is None:
        return text, None

    text.name = node.name or "text"
    text.x = 0.0
    text.y = 0.0
    host.attach_child(wrapper, text)
    return wrapper, None


def _placeholder_rect(host: Any, node: Any, rgb: Tuple[float, float, float]) -> Any:
    rect = host.create_rectangle()
    _apply_size(rect, node)
    rect.fills = [solid_fill(rgb)]
    return rect


def _build_vector(host: Any, node: SvgNode) -> Built:
    if not node.svg_content:
        return _placeholder_rect(host, node, SVG_MISSING_RGB), f"{node.name or 'svg'}{SVG_MISSING_SUFFIX}"
    try:
        vec = host.create_vector_from_markup(node.svg_content)
    except Exception as e:
        log.warning("SVG parse failed", extra={"node": node.name, "err": str(e)[:200]})
        return _placeholder_rect(host, node, SVG_ERROR_RGB), f"{node.name or 'svg'}{SVG_ERROR_SUFFIX}"
    _apply_size(vec, node)
    return vec, None


async def _build_image(host: Any, node: ImageNode) -> Built:
    rect = host.create_rectangle()
    _apply_size(rect, node)
    _apply_corner_radius(rect, node)
    try:
        if node.image_base64:
            handle = await host.decode_image_bytes(base64.b64decode(node.image_base64))
        elif node.image_url:
            handle = await host.resolve_image_from_url(node.image_url)
        else:
            rect.fills = [solid_fill(IMAGE_EMPTY_RGB)]
            return rect, None
    except Exception as e:
        log.warning("Image failed", extra={"node": node.name, "err": str(e)[:200]})
        rect.fills = [solid_fill(IMAGE_ERROR_RGB)]
        return rect, f"{node.name or 'image'}{IMAGE_ERROR_SUFFIX}"
    rect.fills = [image_fill(handle.hash)]
    return rect, None


def _build_placeholder(host: Any, node: Any) -> Any:
    # FRAME blir en container så att barnen fortfarande har en förälder
    target = host.create_container() if isinstance(node, FrameNode) else host.create_rectangle()
    _apply_size(target, node)
    target.fills = [solid_fill(BUILD_ERROR_RGB)]
    return target


async def _build(host: Any, node: Any) -> Built:
    try:
        if isinstance(node, FrameNode):
            return await _build_container(host, node)
        if isinstance(node, TextNode):
            return await _build_text(host, node)
        if isinstance(node, SvgNode):
            return _build_vector(host, node)
        if isinstance(node, ImageNode):
            return await _build_image(host, node)
        raise TypeError(f"Okänd nodtyp: {type(node).__name__}")
    except Exception as e:
        log.warning(
            "Node build failed, using placeholder",
            extra={"node": node.name, "type": getattr(node, "type", "?"), "err": str(e)[:200]},
        )
        return _build_placeholder(host, node), f"{node.name or 'node'}{BUILD_ERROR_SUFFIX}"


async def _process_node(run: _Run, node: Any, parent: Any) -> None:
    run.tick()
    built, flagged = await _build(run.host, node)
    if flagged:
        run.failed += 1
        _minlog("node.fallback", name=node.name, type=node.type, flagged=flagged)
    elif TRACE_NODES and run.processed <= TRACE_NODES:
        _minlog("node", i=run.processed, type=node.type, name=node.name)

    built.x = float(node.x)
    built.y = float(node.y)
    if node.opacity is not None and node.opacity < 1:
        built.opacity = clamp01(node.opacity)
    if flagged:
        built.name = flagged
    elif node.name:
        built.name = node.name

    if run.host.supports_children(parent):
        run.host.attach_child(parent, built)

    if isinstance(node, FrameNode) and node.children:
        if not run.host.supports_children(built):
            log.warning("Container cannot hold children, subtree skipped", extra={"node": node.name})
            return
        for child in node.children:
            await _process_node(run, child, built)


# ────────────────────────────────────────────────────────────────────────────
# Publikt API
# ────────────────────────────────────────────────────────────────────────────

async def materialize(
    document: Any,
    host: Any,
    reporter: Optional[ProgressReporter] = None,
) -> MaterializeResult:
    """
    Bygg IR-dokumentet i värden. Ogiltigt dokument → InvalidDocumentError
    innan något skapats; oväntat fel mitt i → MaterializeError.
    """
    doc: IRDocument = load_document(document)
    total = count_nodes(doc.root_node)
    run = _Run(host, total, reporter)
    log.info("Materialize start", extra={"title": doc.page_title, "nodes": total})

    try:
        page = host.create_container()
        page.name = doc.page_title or DEFAULT_PAGE_NAME
        page.resize(
            clamp_size(doc.viewport_width),
            clamp_size(max(doc.full_height, doc.viewport_height)),
        )
        await _process_node(run, doc.root_node, page)
    except Exception as e:
        log.error("Materialize failed", exc_info=True)
        if reporter:
            reporter(0, total)
        raise MaterializeError(f"Importen misslyckades: {e}") from e

    if reporter:
        reporter(run.processed, total)
    _minlog("materialize.done", layers=run.processed, failed=run.failed, total=total)
    log.info(
        "Materialize done",
        extra={"layers": run.processed, "failed": run.failed, "total": total},
    )
    return MaterializeResult(root=page, layers=run.processed, total=total)


# ────────────────────────────────────────────────────────────────────────────
# CLI
# ────────────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    from .scene import InMemorySceneHost, to_dict

    ap = argparse.ArgumentParser(description="Materialisera design.json i en scen i minnet")
    ap.add_argument("design", help="Sökväg till design.json")
    ap.add_argument("--out", help="Skriv scenträdet som JSON hit")
    ap.add_argument("--fonts", help="Tillgängliga fonter, t.ex. \"Inter:Regular,Inter:Bold\"")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    with open(args.design, "r", encoding="utf-8") as f:
        doc = load_document_json(f.read())

    def _report(processed: int, total: int) -> None:
        log.info("Progress %d/%d", processed, total)

    fonts = None
    if args.fonts:
        fonts = [tuple(part.split(":", 1)) for part in args.fonts.split(",") if ":" in part]
    host = InMemorySceneHost(fonts=fonts)
    result = asyncio.run(materialize(doc, host, reporter=_report))
    print(f"Klart: {result.layers} lager av {result.total}")
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(to_dict(result.root), f, ensure_ascii=False, indent=2)
    return 0


if __name__ == "__main__":
    sys.exit(main())
