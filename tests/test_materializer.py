import asyncio
import copy

import pytest

from html2figma.models import InvalidDocumentError, count_nodes, load_document
from html2figma.rules.fallbacks import BUILD_ERROR_SUFFIX, IMAGE_EMPTY_RGB, IMAGE_ERROR_SUFFIX, SVG_ERROR_SUFFIX
from html2figma.tasks import materializer
from html2figma.tasks.materializer import MaterializeError, materialize
from html2figma.tasks.scene import InMemorySceneHost


def _run(doc, host=None, reporter=None):
    host = host or InMemorySceneHost()
    return asyncio.run(materialize(doc, host, reporter=reporter)), host


def _with_children(doc, *children):
    doc = copy.deepcopy(doc)
    doc["rootNode"]["children"] = list(children)
    return doc


def _text(**kw):
    node = {"type": "TEXT", "name": "t", "x": 5, "y": 6, "width": 50, "height": 20, "characters": "Hi"}
    node.update(kw)
    return node


# ── Ände till ände ──────────────────────────────────────────────────────────

def test_plain_text_is_not_wrapped(hello_document):
    result, _ = _run(hello_document)
    page = result.root
    assert result.layers == 2
    assert page.name == "Hello"
    assert (page.width, page.height) == (1440.0, 1200.0)
    (root,) = page.children
    (text,) = root.children
    assert root.kind == "FRAME"
    assert text.kind == "TEXT"
    assert text.characters == "Hi"
    assert text.font_name == ("Inter", "Bold")
    assert text.font_size == 32
    assert (text.x, text.y) == (10.0, 20.0)
    assert text.text_auto_resize == "NONE"


def test_text_with_background_gets_wrapper(hello_document):
    doc = _with_children(hello_document, _text(
        backgroundFills=[{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 0}, "opacity": 1}],
    ))
    result, _ = _run(doc)
    (wrapper,) = result.root.children[0].children
    assert wrapper.kind == "FRAME"
    assert (wrapper.x, wrapper.y) == (5.0, 6.0)
    assert wrapper.fills[0]["color"] == {"r": 1.0, "g": 1.0, "b": 0.0}
    (inner,) = wrapper.children
    assert inner.kind == "TEXT"
    assert (inner.x, inner.y) == (0.0, 0.0)
    assert result.layers == 2


@pytest.mark.parametrize(
    "extra",
    [
        {"strokes": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0}}], "strokeWeight": 1},
        {"topLeftRadius": 4},
        {"effects": [{"type": "DROP_SHADOW", "color": {"r": 0, "g": 0, "b": 0, "a": 0.3}, "radius": 4}]},
    ],
)
def test_box_styles_trigger_wrapper(hello_document, extra):
    result, _ = _run(_with_children(hello_document, _text(**extra)))
    (wrapper,) = result.root.children[0].children
    assert wrapper.kind == "FRAME" and wrapper.children[0].kind == "TEXT"


def test_page_height_uses_viewport_when_taller(hello_document):
    doc = copy.deepcopy(hello_document)
    doc["fullHeight"] = 300
    result, _ = _run(doc)
    assert result.root.height == 900.0


def test_untitled_page_gets_default_name(hello_document):
    doc = copy.deepcopy(hello_document)
    doc["pageTitle"] = ""
    result, _ = _run(doc)
    assert result.root.name == "Imported Web Page"


# ── Geometri och stil ───────────────────────────────────────────────────────

def test_degenerate_size_is_clamped(hello_document):
    doc = _with_children(hello_document, {"type": "FRAME", "name": "flat", "width": 0, "height": -5})
    result, _ = _run(doc)
    (flat,) = result.root.children[0].children
    assert (flat.width, flat.height) == (1.0, 1.0)


def test_frame_styles_are_applied(hello_document, png_base64):
    frame = {
        "type": "FRAME",
        "name": "card",
        "width": 100,
        "height": 80,
        "opacity": 0.5,
        "clipsContent": True,
        "fills": [{"type": "SOLID", "color": {"r": 2, "g": 0, "b": 0}, "opacity": 1}],
        "topLeftRadius": 6,
        "backgroundImageBase64": png_base64,
    }
    result, host = _run(_with_children(hello_document, frame))
    (card,) = result.root.children[0].children
    assert card.name == "card"
    assert card.opacity == 0.5
    assert card.clips_content is True
    assert card.fills[0]["color"]["r"] == 1.0
    assert card.fills[-1]["type"] == "IMAGE"
    assert card.fills[-1]["imageHash"] in host.images
    assert (card.top_left_radius, card.top_right_radius) == (6.0, 0.0)


def test_empty_fills_clear_host_default(hello_document):
    result, _ = _run(_with_children(hello_document, {"type": "FRAME", "name": "bare"}))
    (bare,) = result.root.children[0].children
    assert bare.fills == []


# ── Fallbacks ───────────────────────────────────────────────────────────────

def test_image_without_source_is_neutral_placeholder(hello_document):
    result, _ = _run(_with_children(hello_document, {"type": "IMAGE", "name": "img", "width": 40, "height": 30}))
    (img,) = result.root.children[0].children
    assert img.kind == "RECTANGLE"
    assert img.name == "img"
    assert img.fills == [{"type": "SOLID", "color": dict(zip("rgb", IMAGE_EMPTY_RGB)), "opacity": 1.0}]


def test_image_from_base64(hello_document, png_base64):
    result, host = _run(_with_children(hello_document, {"type": "IMAGE", "name": "img: logo", "imageBase64": png_base64}))
    (img,) = result.root.children[0].children
    assert img.fills[0]["type"] == "IMAGE"
    assert img.fills[0]["scaleMode"] == "FILL"
    assert img.fills[0]["imageHash"] in host.images


def test_broken_image_is_flagged(hello_document):
    result, _ = _run(_with_children(hello_document, {"type": "IMAGE", "name": "img: x", "imageBase64": "AAAA"}))
    (img,) = result.root.children[0].children
    assert img.name == "img: x" + IMAGE_ERROR_SUFFIX
    assert img.fills[0]["type"] == "SOLID"


def test_image_url_is_resolved_by_host(hello_document, png_bytes):
    host = InMemorySceneHost(fetch_url=lambda url: png_bytes)
    result, _ = _run(_with_children(hello_document, {"type": "IMAGE", "name": "img", "imageUrl": "https://x.test/a.png"}), host)
    (img,) = result.root.children[0].children
    assert img.fills[0]["type"] == "IMAGE"


def test_svg_vector_and_parse_error(hello_document):
    doc = _with_children(
        hello_document,
        {"type": "SVG", "name": "svg", "width": 24, "height": 24, "svgContent": "<svg viewBox='0 0 24 24'></svg>"},
        {"type": "SVG", "name": "icon", "svgContent": "<svg><g></svg>"},
    )
    result, _ = _run(doc)
    ok, bad = result.root.children[0].children
    assert ok.kind == "VECTOR" and ok.name == "svg"
    assert bad.kind == "RECTANGLE"
    assert bad.name == "icon" + SVG_ERROR_SUFFIX


@pytest.mark.parametrize(
    "fonts, family, style, expected",
    [
        (None, "Comic Sans", "Bold", ("Inter", "Bold")),
        (None, "Roboto", "Black", ("Roboto", "Regular")),
        ([("Inter", "Regular")], "Inter", "Bold", ("Inter", "Regular")),
        (None, "system-ui", "Medium", ("Inter", "Medium")),
    ],
)
def test_font_cascade(hello_document, fonts, family, style, expected):
    doc = _with_children(hello_document, _text(fontFamily=family, figmaFontStyle=style))
    result, _ = _run(doc, InMemorySceneHost(fonts=fonts))
    (text,) = result.root.children[0].children
    assert text.font_name == expected


def test_missing_last_resort_font_degrades_to_placeholder(hello_document):
    result, _ = _run(hello_document, InMemorySceneHost(fonts=[]))
    (placeholder,) = result.root.children[0].children
    assert placeholder.kind == "RECTANGLE"
    assert placeholder.name == "h1" + BUILD_ERROR_SUFFIX
    assert result.layers == 2


def test_missing_font_leaves_no_detached_nodes(hello_document):
    doc = _with_children(hello_document, _text(
        backgroundFills=[{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 0}}],
    ))
    host = InMemorySceneHost(fonts=[])
    result, _ = _run(doc, host)
    detached = [(n.kind, n.name) for n in host.created if n.parent is None and n is not result.root]
    assert detached == []
    (placeholder,) = result.root.children[0].children
    assert placeholder.name == "t" + BUILD_ERROR_SUFFIX


def test_failed_frame_keeps_its_children(hello_document, monkeypatch):
    real = materializer._build_container

    async def flaky(host, node):
        if node.name == "broken":
            raise RuntimeError("boom")
        return await real(host, node)

    monkeypatch.setattr(materializer, "_build_container", flaky)
    doc = _with_children(hello_document, {"type": "FRAME", "name": "broken", "children": [_text(), _text()]})
    result, _ = _run(doc)
    (broken,) = result.root.children[0].children
    assert broken.kind == "FRAME"
    assert broken.name == "broken" + BUILD_ERROR_SUFFIX
    assert len(broken.children) == 2


# ── Invarianter ─────────────────────────────────────────────────────────────

def test_layer_count_matches_ir_node_count(hello_document):
    doc = _with_children(
        hello_document,
        {"type": "FRAME", "name": "a", "children": [
            _text(),
            {"type": "FRAME", "name": "b", "children": [_text(), {"type": "IMAGE", "name": "i"}]},
            {"type": "SVG", "name": "s"},
        ]},
        _text(backgroundFills=[{"type": "SOLID", "color": {"r": 1, "g": 0, "b": 0}}]),
    )
    result, _ = _run(doc)
    assert result.layers == count_nodes(load_document(doc).root_node) == result.total == 8


def test_invalid_document_fails_before_any_host_call():
    host = InMemorySceneHost()
    with pytest.raises(InvalidDocumentError):
        _run({"pageTitle": "x"}, host)
    assert host.created == []


def test_progress_reporter(hello_document, monkeypatch):
    monkeypatch.setattr(materializer, "PROGRESS_EVERY", 1)
    seen = []
    _run(hello_document, reporter=lambda p, t: seen.append((p, t)))
    assert seen == [(1, 2), (2, 2), (2, 2)]


def test_unexpected_failure_reports_zero_and_raises(hello_document):
    class BrokenHost(InMemorySceneHost):
        def attach_child(self, parent, child):
            raise RuntimeError("host gone")

    seen = []
    with pytest.raises(MaterializeError):
        _run(hello_document, BrokenHost(), reporter=lambda p, t: seen.append((p, t)))
    assert seen[-1] == (0, 2)
