# html2figma/rules/fallbacks.py
"""
Fallback-policyer
-----------------
• Ordnade kandidatlistor som materializern provar uppifrån och ned.
• Platshållarfärger som gör misslyckade noder synliga i scenen.
• Läses en gång vid import; FALLBACK_FONT_FAMILY kan styras via env.
"""

import os
from typing import Dict, List, Tuple

FALLBACK_FONT_FAMILY = os.getenv("FALLBACK_FONT_FAMILY", "Inter").strip() or "Inter"
FALLBACK_FONT_STYLE = "Regular"

# CSS generiska/system-familjer → familj som designverktyget faktiskt har
SYSTEM_FONT_MAP: Dict[str, str] = {
    "system-ui": FALLBACK_FONT_FAMILY,
    "-apple-system": FALLBACK_FONT_FAMILY,
    "BlinkMacSystemFont": FALLBACK_FONT_FAMILY,
    "Segoe UI": FALLBACK_FONT_FAMILY,
    "ui-sans-serif": FALLBACK_FONT_FAMILY,
    "sans-serif": FALLBACK_FONT_FAMILY,
    "ui-serif": "Georgia",
    "serif": "Georgia",
    "ui-monospace": "Roboto Mono",
    "monospace": "Roboto Mono",
}

# ------------- Platshållare (RGB 0–1) ------------- #
SVG_MISSING_RGB = (0.8, 0.8, 0.8)
SVG_ERROR_RGB = (0.9, 0.7, 0.7)
IMAGE_ERROR_RGB = (0.85, 0.85, 0.9)
IMAGE_EMPTY_RGB = (0.9, 0.9, 0.9)
BUILD_ERROR_RGB = (1.0, 0.6, 0.8)

SVG_ERROR_SUFFIX = " (svg parse error)"
SVG_MISSING_SUFFIX = " (svg missing)"
IMAGE_ERROR_SUFFIX = " (image error)"
BUILD_ERROR_SUFFIX = " (build error)"

DEFAULT_PAGE_NAME = "Imported Web Page"

PROGRESS_EVERY = max(1, int(os.getenv("PROGRESS_EVERY", "50") or "50"))


# ------------- Publik API ------------- #
def font_candidates(family: str, style: str) -> List[Tuple[str, str]]:
    """
    Ordnad font-kaskad:
      (familj, stil) → (familj, Regular) → (fallback, stil) → (fallback, Regular)

    Dubbletter tas bort men ordningen bevaras, så "Inter Regular" provas
    bara en gång även när sidan redan använder Inter.
    """
    order = [
        (family, style),
        (family, FALLBACK_FONT_STYLE),
        (FALLBACK_FONT_FAMILY, style),
        (FALLBACK_FONT_FAMILY, FALLBACK_FONT_STYLE),
    ]
    seen = set()
    out: List[Tuple[str, str]] = []
    for cand in order:
        if cand not in seen:
            seen.add(cand)
            out.append(cand)
    return out


def last_resort_font() -> Tuple[str, str]:
    return (FALLBACK_FONT_FAMILY, FALLBACK_FONT_STYLE)
