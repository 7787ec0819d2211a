"""
Gemensamma fixtures: snapshot-element som dicts, IR-dokument och bildbytes.
Ingen webbläsare och inget nätverk används i testerna.
"""

import base64
from io import BytesIO
from typing import Any, Dict

import pytest
from PIL import Image


def _element(
    tag: str = "div",
    *,
    x: float = 0.0,
    y: float = 0.0,
    width: float = 100.0,
    height: float = 50.0,
    style: Dict[str, str] = None,
    children=(),
    **extra: Any,
) -> Dict[str, Any]:
    st = {"display": "block", "visibility": "visible"}
    st.update(style or {})
    out: Dict[str, Any] = {
        "tag": tag,
        "rect": {"x": x, "y": y, "width": width, "height": height},
        "style": st,
        "childNodes": [c["tag"] for c in children],
        "children": list(children),
    }
    out.update(extra)
    return out


@pytest.fixture
def make_element():
    """Fabrik för snapshot-element i samma form som SNAPSHOT_JS returnerar."""
    return _element


@pytest.fixture
def hello_document() -> Dict[str, Any]:
    """FRAME-rot med ett TEXT-barn utan bakgrund/ram/hörn/skugga."""
    return {
        "pageTitle": "Hello",
        "viewportWidth": 1440,
        "viewportHeight": 900,
        "fullHeight": 1200,
        "rootNode": {
            "type": "FRAME",
            "name": "body",
            "x": 0,
            "y": 0,
            "width": 1440,
            "height": 1200,
            "fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}, "opacity": 1}],
            "children": [
                {
                    "type": "TEXT",
                    "name": "h1",
                    "x": 10,
                    "y": 20,
                    "width": 200,
                    "height": 40,
                    "characters": "Hi",
                    "fontSize": 32,
                    "fontFamily": "Inter",
                    "figmaFontStyle": "Bold",
                    "fills": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0}, "opacity": 1}],
                }
            ],
        },
    }


@pytest.fixture
def png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (4, 3), (255, 0, 0, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_base64(png_bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")
