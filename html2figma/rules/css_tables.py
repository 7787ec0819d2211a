# html2figma/rules/css_tables.py
"""
CSS-vokabulär
-------------
• Statiska tabeller som parsers och DOM-walkern slår upp i.
• Inga beroenden, ingen logik – ändra här, inte i koden som läser dem.
"""

from typing import Dict, FrozenSet, List, Tuple

# ------------- Text-klassificering ------------- #
# Element vars barn bara är textnoder eller dessa taggar räknas som TEXT.
INLINE_TEXT_TAGS: FrozenSet[str] = frozenset({
    "span", "strong", "em", "b", "i", "a", "code",
    "small", "sub", "sup", "mark", "u", "s", "br",
})

PSEUDO_ELEMENTS: Tuple[str, str] = ("::before", "::after")

# content-värden som betyder "ingen pseudo-nod"
EMPTY_PSEUDO_CONTENT: FrozenSet[str] = frozenset({"", "none", "normal", '""', "''"})

# ------------- Gradienter ------------- #
DEFAULT_GRADIENT_ANGLE = 180.0   # CSS default: uppifrån och ned

DIRECTION_ANGLES: Dict[str, float] = {
    "to top": 0.0,
    "to right": 90.0,
    "to bottom": 180.0,
    "to left": 270.0,
    "to top right": 45.0,
    "to right top": 45.0,
    "to top left": 315.0,
    "to left top": 315.0,
    "to bottom right": 135.0,
    "to right bottom": 135.0,
    "to bottom left": 225.0,
    "to left bottom": 225.0,
}

# enhet → faktor till grader
ANGLE_UNITS: Dict[str, float] = {
    "deg": 1.0,
    "grad": 0.9,
    "rad": 57.29577951308232,
    "turn": 360.0,
}

# ------------- Typografi ------------- #
# (övre gräns, stilnamn) – första bucket där vikten ryms vinner
FONT_WEIGHT_BUCKETS: List[Tuple[int, str]] = [
    (100, "Thin"),
    (200, "ExtraLight"),
    (300, "Light"),
    (400, "Regular"),
    (500, "Medium"),
    (600, "SemiBold"),
    (700, "Bold"),
    (800, "ExtraBold"),
]
HEAVIEST_STYLE = "Black"

FONT_WEIGHT_KEYWORDS: Dict[str, int] = {"normal": 400, "bold": 700, "lighter": 300, "bolder": 700}

# start/end mappas utan hänsyn till skrivriktning
TEXT_ALIGN_MAP: Dict[str, str] = {
    "left": "LEFT",
    "right": "RIGHT",
    "center": "CENTER",
    "justify": "JUSTIFIED",
    "start": "LEFT",
    "end": "RIGHT",
}

BORDER_SIDES: Tuple[str, ...] = ("Top", "Right", "Bottom", "Left")

RADIUS_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("top_left_radius", "borderTopLeftRadius"),
    ("top_right_radius", "borderTopRightRadius"),
    ("bottom_right_radius", "borderBottomRightRadius"),
    ("bottom_left_radius", "borderBottomLeftRadius"),
)

# ------------- Färgnamn ------------- #
# CSS-nyckelord (0–255). Computed style ger alltid rgb(), men gradient-stopp
# och skuggor skrivna för hand gör det inte.
NAMED_COLORS: Dict[str, Tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "silver": (192, 192, 192),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "white": (255, 255, 255),
    "maroon": (128, 0, 0),
    "red": (255, 0, 0),
    "purple": (128, 0, 128),
    "fuchsia": (255, 0, 255),
    "magenta": (255, 0, 255),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "olive": (128, 128, 0),
    "yellow": (255, 255, 0),
    "navy": (0, 0, 128),
    "blue": (0, 0, 255),
    "teal": (0, 128, 128),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "orange": (255, 165, 0),
    "pink": (255, 192, 203),
    "gold": (255, 215, 0),
    "indigo": (75, 0, 130),
    "violet": (238, 130, 238),
    "brown": (165, 42, 42),
    "coral": (255, 127, 80),
    "crimson": (220, 20, 60),
    "tomato": (255, 99, 71),
    "salmon": (250, 128, 114),
    "khaki": (240, 230, 140),
    "beige": (245, 245, 220),
    "ivory": (255, 255, 240),
    "lavender": (230, 230, 250),
    "turquoise": (64, 224, 208),
    "skyblue": (135, 206, 235),
    "steelblue": (70, 130, 180),
    "royalblue": (65, 105, 225),
    "slategray": (112, 128, 144),
    "darkgray": (169, 169, 169),
    "lightgray": (211, 211, 211),
    "whitesmoke": (245, 245, 245),
    "gainsboro": (220, 220, 220),
    "rebeccapurple": (102, 51, 153),
}
