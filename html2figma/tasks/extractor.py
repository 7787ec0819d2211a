# html2figma/tasks/extractor.py
from __future__ import annotations

"""
Renderad sida → IR (design.json).

Flöde:
  1) capture_page: Playwright renderar URL:en i en fast viewport, väntar på
     network-idle och kör SNAPSHOT_JS → PageSnapshot (frysta fakta).
  2) build_document: walk_element går trädet pre-order och klassar varje
     synligt element som SVG / IMAGE / TEXT / FRAME.
  3) embed_images (valfritt): bildbytes hämtas och bäddas in som base64.

Alla koordinater i IR är relativa förälderns ruta; roten behåller
dokumentkoordinater. Bredd/höjd klämms till minst 1.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ..models import (
    FrameNode,
    ImageNode,
    IRDocument,
    Node,
    SvgNode,
    TextNode,
    count_nodes,
    dump_document,
)
from ..rules.css_tables import EMPTY_PSEUDO_CONTENT, INLINE_TEXT_TAGS, PSEUDO_ELEMENTS
from .assets import embed_images as embed_image_data
from .css_values import (
    aggregate_borders,
    background_paints,
    corner_radii,
    extract_background_image_url,
    font_style_name,
    map_text_align,
    map_text_decoration,
    node_name,
    parse_box_shadow,
    parse_color,
    parse_letter_spacing,
    parse_line_height,
    parse_opacity,
    parse_px,
    primary_font_family,
    solid_paint,
)
from .geometry import clamp_size, relative_offset
from .snapshot import SNAPSHOT_JS, ElementSnapshot, PageSnapshot, load_page_snapshot, snapshot_options

log = logging.getLogger("html2figma/extractor")

# ─────────────────────────────────────────────────────────
# Miljö & konfiguration
# ─────────────────────────────────────────────────────────

VIEWPORT_WIDTH = int(os.getenv("VIEWPORT_WIDTH", "1440"))
VIEWPORT_HEIGHT = int(os.getenv("VIEWPORT_HEIGHT", "900"))
PAGE_LOAD_TIMEOUT_MS = int(os.getenv("PAGE_LOAD_TIMEOUT_MS", "30000"))
NETWORK_IDLE_TIMEOUT_MS = int(os.getenv("NETWORK_IDLE_TIMEOUT_MS", "15000"))

_MINLOG = os.getenv("H2F_MINLOG", "0").lower() in ("1", "true", "yes")
TRACE_NODES = int(os.getenv("H2F_TRACE_NODES", "0") or "0")

CLIPPING_OVERFLOW = ("hidden", "clip")
DEFAULT_FONT_SIZE = 16.0


def _minlog(evt: str, **kv):
    if _MINLOG:
        try:
            print("[html2figma]", evt, json.dumps(kv, ensure_ascii=False, default=str))
        except (TypeError, ValueError):
            print("[html2figma]", evt, kv)


class ExtractionError(RuntimeError):
    """Sidan kunde inte laddas eller gav inget att extrahera."""


# ────────────────────────────────────────────────────────────────────────────
# Klassning
# ────────────────────────────────────────────────────────────────────────────

def _is_pruned(el: ElementSnapshot) -> bool:
    """display:none, visibility:hidden eller en ruta utan yta → hela subträdet bort."""
    if el.css("display").strip().lower() == "none":
        return True
    if el.css("visibility").strip().lower() == "hidden":
        return True
    return el.rect.width <= 0 and el.rect.height <= 0


def _is_text_element(el: ElementSnapshot) -> bool:
    if not el.text or not el.text.strip():
        return False
    return all(kind == "#text" or kind in INLINE_TEXT_TAGS for kind in el.child_nodes)


def _clips_content(style) -> bool:
    for key in ("overflow", "overflowX", "overflowY"):
        if (style.get(key) or "").strip().lower() in CLIPPING_OVERFLOW:
            return True
    return False


def _box_props(style) -> Dict[str, Any]:
    """Gemensamt för FRAME och TEXT: stroke, hörn, skuggor, opacity."""
    out: Dict[str, Any] = {}
    borders = aggregate_borders(style)
    if borders:
        out.update(borders)
    radii = corner_radii(style)
    if radii:
        out.update(radii)
    effects = parse_box_shadow(style.get("boxShadow"))
    if effects:
        out["effects"] = effects
    opacity = parse_opacity(style.get("opacity"))
    if opacity is not None:
        out["opacity"] = opacity
    return out


def _typography(style) -> Dict[str, Any]:
    fills = []
    color = parse_color(style.get("color"))
    if color is not None:
        fills.append(solid_paint(color))
    family = primary_font_family(style.get("fontFamily"))
    return {
        "fills": fills,
        "font_size": parse_px(style.get("fontSize")) or DEFAULT_FONT_SIZE,
        "font_family": family or None,
        "font_weight": style.get("fontWeight") or None,
        "font_style": style.get("fontStyle") or None,
        "figma_font_style": font_style_name(style.get("fontWeight"), style.get("fontStyle")),
        "line_height": parse_line_height(style.get("lineHeight")),
        "letter_spacing": parse_letter_spacing(style.get("letterSpacing")),
        "text_align_horizontal": map_text_align(style.get("textAlign")),
        "text_decoration": map_text_decoration(
            style.get("textDecorationLine") or style.get("textDecoration")
        ),
    }


# ────────────────────────────────────────────────────────────────────────────
# Nodbyggare
# ────────────────────────────────────────────────────────────────────────────

def _text_node(el: ElementSnapshot, base: Dict[str, Any]) -> TextNode:
    style = el.style
    kw = dict(base)
    kw.update(_typography(style))
    kw.update(_box_props(style))
    bg_fills, _ = background_paints(style)
    if bg_fills:
        kw["background_fills"] = bg_fills
    return TextNode(characters=(el.text or "").strip(), **kw)


def _unquote_content(raw: str) -> str:
    s = raw.strip()
    if s[:1] in ("'", '"'):
        s = s[1:]
    if s[-1:] in ("'", '"'):
        s = s[:-1]
    return s


def _pseudo_node(
    pseudo: str,
    pstyle,
    parent: ElementSnapshot,
    parent_name: str,
) -> Optional[TextNode]:
    raw = (pstyle.get("content") or "").strip()
    if raw.lower() in EMPTY_PSEUDO_CONTENT:
        return None
    if raw.lower().startswith(("url(", "counter(", "counters(", "attr(")):
        return None
    if (pstyle.get("display") or "").strip().lower() == "none":
        return None
    text = _unquote_content(raw)
    if not text:
        return None

    font_size = parse_px(pstyle.get("fontSize")) or DEFAULT_FONT_SIZE
    width = parse_px(pstyle.get("width")) or 0.0
    height = parse_px(pstyle.get("height")) or 0.0
    kw = _typography(pstyle)
    kw["font_size"] = font_size
    bg_fills, _ = background_paints(pstyle)
    if bg_fills:
        kw["background_fills"] = bg_fills
    return TextNode(
        name=f"{parent_name}{pseudo}",
        x=0.0,
        y=0.0,
        width=clamp_size(width if width > 0 else parent.rect.width),
        height=clamp_size(height if height > 0 else font_size),
        characters=text,
        **kw,
    )


def _frame_node(el: ElementSnapshot, base: Dict[str, Any]) -> FrameNode:
    style = el.style
    kw = dict(base)
    fills, gradient = background_paints(style)
    kw["fills"] = fills
    if gradient is None:
        url = extract_background_image_url(style.get("backgroundImage"))
        if url:
            kw["background_image_url"] = url
    kw.update(_box_props(style))
    kw["clips_content"] = _clips_content(style)

    children: List[Node] = []
    for child in el.children:
        n = walk_element(child, el.rect)
        if n is not None:
            children.append(n)
    for pseudo in PSEUDO_ELEMENTS:
        pstyle = el.pseudo.get(pseudo)
        if pstyle:
            pn = _pseudo_node(pseudo, pstyle, el, base["name"])
            if pn is not None:
                children.append(pn)
    return FrameNode(children=children, **kw)


def walk_element(el: ElementSnapshot, parent_rect: Optional[Any] = None) -> Optional[Node]:
    """
    Ett snapshot-element → IR-nod (eller None om det inte syns).
    Barn och pseudo-element tas med för FRAME; övriga typer är löv.
    """
    if _is_pruned(el):
        return None

    x, y = relative_offset(el.rect, parent_rect)
    base: Dict[str, Any] = {
        "name": node_name(el.tag, el.id, el.class_name),
        "x": x,
        "y": y,
        "width": round(clamp_size(el.rect.width), 3),
        "height": round(clamp_size(el.rect.height), 3),
    }
    tag = el.tag.lower()

    if tag == "svg":
        return SvgNode(svg_content=el.markup or None, **base)
    if tag == "img":
        alt = (el.alt or "").strip()
        base["name"] = f"img: {alt}" if alt else "img"
        return ImageNode(image_url=el.src or None, **base)
    if tag == "video" and el.poster:
        return ImageNode(image_url=el.poster, **base)
    if _is_text_element(el):
        return _text_node(el, base)
    return _frame_node(el, base)


def build_document(page: PageSnapshot) -> IRDocument:
    if page.root is None:
        raise ExtractionError("Sidan saknar <body>")
    _minlog("ir.build.start", url=page.url, viewport=[page.viewport_width, page.viewport_height])
    root = walk_element(page.root, None)
    if root is None:
        raise ExtractionError("Rotelementet är osynligt – inget att extrahera")
    doc = IRDocument(
        page_title=page.title,
        viewport_width=page.viewport_width,
        viewport_height=page.viewport_height,
        full_height=max(page.full_height, 1),
        root_node=root,
    )
    if TRACE_NODES:
        for i, child in enumerate(getattr(root, "children", [])[:TRACE_NODES]):
            _minlog("ir.node", i=i, type=child.type, name=child.name, box=[child.x, child.y, child.width, child.height])
    _minlog("ir.build.done", nodes=count_nodes(root), full_height=doc.full_height)
    return doc


# ────────────────────────────────────────────────────────────────────────────
# Playwright
# ────────────────────────────────────────────────────────────────────────────

async def capture_page(
    url: str,
    width: int = VIEWPORT_WIDTH,
    height: int = VIEWPORT_HEIGHT,
) -> PageSnapshot:
    """Rendera URL:en headless och returnera ett PageSnapshot."""
    stage = "launch"
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                context = await browser.new_context(
                    viewport={"width": width, "height": height},
                    device_scale_factor=1,
                )
                page = await context.new_page()
                stage = "goto"
                await page.goto(url, wait_until="load", timeout=PAGE_LOAD_TIMEOUT_MS)
                stage = "networkidle"
                try:
                    await page.wait_for_load_state("networkidle", timeout=NETWORK_IDLE_TIMEOUT_MS)
                except PlaywrightTimeoutError:
                    log.warning("Network never went idle, snapshotting anyway", extra={"url": url})
                stage = "snapshot"
                raw = await page.evaluate(SNAPSHOT_JS, snapshot_options())
            finally:
                await browser.close()
    except PlaywrightError as e:
        raise ExtractionError(f"Kunde inte läsa {url} (steg: {stage}): {e}") from e

    if not isinstance(raw, dict):
        raise ExtractionError(f"Snapshot gav oväntad typ: {type(raw).__name__}")
    return load_page_snapshot(raw)


async def extract_page(
    url: str,
    width: int = VIEWPORT_WIDTH,
    height: int = VIEWPORT_HEIGHT,
    embed_images: bool = True,
) -> IRDocument:
    snap = await capture_page(url, width, height)
    doc = build_document(snap)
    if embed_images:
        await asyncio.to_thread(embed_image_data, doc.root_node, snap.url or url)
    log.info(
        "Extraction done",
        extra={"url": url, "nodes": count_nodes(doc.root_node), "full_height": doc.full_height},
    )
    return doc


def extract(
    url: str,
    width: int = VIEWPORT_WIDTH,
    height: int = VIEWPORT_HEIGHT,
    embed_images: bool = True,
) -> IRDocument:
    """Synkron ingång (Celery, CLI)."""
    return asyncio.run(extract_page(url, width, height, embed_images))


# ────────────────────────────────────────────────────────────────────────────
# CLI
# ────────────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Extrahera en webbsida till design.json")
    ap.add_argument("url")
    ap.add_argument("--out", default="design.json", help="Utfil (default: design.json)")
    ap.add_argument("--width", type=int, default=VIEWPORT_WIDTH)
    ap.add_argument("--height", type=int, default=VIEWPORT_HEIGHT)
    ap.add_argument("--no-images", action="store_true", help="Bädda inte in bilddata")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        doc = extract(args.url, args.width, args.height, embed_images=not args.no_images)
    except ExtractionError as e:
        log.error("%s", e)
        return 1

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(dump_document(doc), f, ensure_ascii=False, indent=2)
    print(f"Skrev {args.out}: {count_nodes(doc.root_node)} noder, "
          f"{doc.viewport_width:g}×{doc.full_height:g}px")
    return 0


if __name__ == "__main__":
    sys.exit(main())
