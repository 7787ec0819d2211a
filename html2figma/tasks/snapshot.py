# html2figma/tasks/snapshot.py
"""
Snapshot av en renderad sida.

SNAPSHOT_JS körs i sidan via Playwright och samlar *fakta* per element
(tagg, box, computed style, barnens nodtyper, pseudo-element). All tolkning
– synlighet, klassning, parsning – sker sedan i Python på frysta modeller,
så att walkern kan testas utan webbläsare.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..rules.css_tables import INLINE_TEXT_TAGS

# Computed-style-egenskaper som walkern läser (camelCase som i CSSStyleDeclaration)
STYLE_PROPS: List[str] = [
    "display", "visibility", "overflow", "overflowX", "overflowY", "opacity",
    "backgroundColor", "backgroundImage",
    "borderTopWidth", "borderRightWidth", "borderBottomWidth", "borderLeftWidth",
    "borderTopStyle", "borderRightStyle", "borderBottomStyle", "borderLeftStyle",
    "borderTopColor", "borderRightColor", "borderBottomColor", "borderLeftColor",
    "borderTopLeftRadius", "borderTopRightRadius", "borderBottomRightRadius", "borderBottomLeftRadius",
    "boxShadow",
    "color", "fontSize", "fontFamily", "fontWeight", "fontStyle",
    "lineHeight", "letterSpacing", "textAlign", "textDecorationLine", "textDecoration",
]

PSEUDO_PROPS: List[str] = [
    "content", "display", "width", "height",
    "color", "fontSize", "fontFamily", "fontWeight", "fontStyle",
    "lineHeight", "letterSpacing", "textAlign",
    "backgroundColor", "backgroundImage",
]

SNAPSHOT_JS = """
(opts) => {
    const INLINE = new Set(opts.inlineTags.map(t => t.toUpperCase()));
    const EMPTY_CONTENT = new Set(['none', 'normal', '""', "''", '']);

    function pick(cs, props) {
        const out = {};
        for (const p of props) out[p] = cs[p] || '';
        return out;
    }

    function snap(el) {
        const cs = window.getComputedStyle(el);
        const r = el.getBoundingClientRect();
        const tag = el.tagName.toLowerCase();

        const childNodes = [];
        let textOnly = true;
        for (const c of el.childNodes) {
            if (c.nodeType === Node.TEXT_NODE) {
                childNodes.push('#text');
            } else if (c.nodeType === Node.ELEMENT_NODE) {
                childNodes.push(c.tagName.toLowerCase());
                if (!INLINE.has(c.tagName.toUpperCase())) textOnly = false;
            } else {
                childNodes.push('#other');
                textOnly = false;
            }
        }

        const out = {
            tag: tag,
            id: el.id || '',
            className: typeof el.className === 'string' ? el.className : (el.getAttribute('class') || ''),
            rect: { x: r.left, y: r.top, width: r.width, height: r.height },
            style: pick(cs, opts.styleProps),
            childNodes: childNodes,
            text: null,
            pseudo: {},
            children: []
        };

        const pruned = cs.display === 'none' || cs.visibility === 'hidden';
        if (pruned) return out;

        if (tag === 'svg') {
            out.markup = el.outerHTML;
            return out;
        }
        if (tag === 'img') {
            out.src = el.currentSrc || el.src || '';
            out.alt = el.alt || '';
            return out;
        }
        if (tag === 'video') {
            out.poster = el.poster || '';
        }

        if (textOnly) {
            out.text = (el.innerText || '').trim();
        }

        for (const p of ['::before', '::after']) {
            const pcs = window.getComputedStyle(el, p);
            if (pcs.content && !EMPTY_CONTENT.has(pcs.content)) {
                out.pseudo[p] = pick(pcs, opts.pseudoProps);
            }
        }

        for (const child of el.children) {
            out.children.push(snap(child));
        }
        return out;
    }

    const body = document.body;
    return {
        url: location.href,
        title: document.title,
        viewportWidth: window.innerWidth,
        viewportHeight: window.innerHeight,
        fullHeight: Math.max(body.scrollHeight, document.documentElement.scrollHeight),
        root: body ? snap(body) : null
    };
}
"""


def snapshot_options() -> Dict[str, Any]:
    """Argumentet till SNAPSHOT_JS – allow-listan bor i Python, inte i JS."""
    return {
        "inlineTags": sorted(INLINE_TEXT_TAGS),
        "styleProps": STYLE_PROPS,
        "pseudoProps": PSEUDO_PROPS,
    }


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Rect(_Frozen):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class ElementSnapshot(_Frozen):
    tag: str
    id: str = ""
    class_name: str = ""
    rect: Rect = Field(default_factory=Rect)
    style: Mapping[str, str] = Field(default_factory=dict)
    child_nodes: Tuple[str, ...] = ()
    text: Optional[str] = None
    markup: Optional[str] = None
    src: Optional[str] = None
    alt: Optional[str] = None
    poster: Optional[str] = None
    pseudo: Mapping[str, Mapping[str, str]] = Field(default_factory=dict)
    children: Tuple["ElementSnapshot", ...] = ()

    @field_validator("style", mode="after")
    @classmethod
    def _freeze_style(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @field_validator("pseudo", mode="after")
    @classmethod
    def _freeze_pseudo(cls, v: Mapping[str, Mapping[str, str]]) -> Mapping[str, Mapping[str, str]]:
        return MappingProxyType({k: MappingProxyType(dict(s)) for k, s in v.items()})

    def css(self, prop: str, default: str = "") -> str:
        return self.style.get(prop) or default


ElementSnapshot.model_rebuild()


class PageSnapshot(_Frozen):
    url: str = ""
    title: str = ""
    viewport_width: float = 1440
    viewport_height: float = 900
    full_height: float = 900
    root: Optional[ElementSnapshot] = None


def load_page_snapshot(data: Dict[str, Any]) -> PageSnapshot:
    return PageSnapshot.model_validate(data)


__all__ = [
    "STYLE_PROPS",
    "PSEUDO_PROPS",
    "SNAPSHOT_JS",
    "snapshot_options",
    "Rect",
    "ElementSnapshot",
    "PageSnapshot",
    "load_page_snapshot",
]
