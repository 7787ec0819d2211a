import pytest

from html2figma.tasks.css_values import (
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
    parse_gradient,
    parse_line_height,
    parse_opacity,
    parse_px,
    split_top_level,
)


# ── Färger ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "value, expected",
    [
        ("rgba(255, 128, 0, 0.5)", (1.0, 128 / 255, 0.0, 0.5)),
        ("rgb(10, 20, 30)", (10 / 255, 20 / 255, 30 / 255, 1.0)),
        ("rgb(10 20 30 / 25%)", (10 / 255, 20 / 255, 30 / 255, 0.25)),
        ("#ff0000", (1.0, 0.0, 0.0, 1.0)),
        ("#0f08", (0.0, 1.0, 0.0, 0x88 / 255)),
        ("red", (1.0, 0.0, 0.0, 1.0)),
    ],
)
def test_parse_color_channels(value, expected):
    c = parse_color(value)
    assert c is not None
    assert (c.r, c.g, c.b, c.a) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["transparent", "rgba(0,0,0,0)", "", None, "none", "nonsense(1,2,3)"])
def test_parse_color_no_paint(value):
    assert parse_color(value) is None


def test_parse_color_keeps_transparent_non_black():
    c = parse_color("rgba(255, 255, 255, 0)")
    assert c is not None and c.a == 0


def test_split_top_level_ignores_nested_commas():
    assert split_top_level("rgba(0,0,0,.5) 0%, red 100%") == ["rgba(0,0,0,.5) 0%", " red 100%"]


def test_parse_px_reads_leading_number():
    assert parse_px("16px") == 16.0
    assert parse_px("1.5") == 1.5
    assert parse_px("auto") is None


# ── Gradienter ──────────────────────────────────────────────────────────────

def test_linear_gradient_90deg_is_horizontal():
    g = parse_gradient("linear-gradient(90deg, red 0%, blue 100%)")
    assert g is not None and g.type == "GRADIENT_LINEAR"
    assert [s.position for s in g.gradient_stops] == [0.0, 1.0]
    start, end, _ = g.gradient_handle_positions
    assert start.y == pytest.approx(end.y)
    assert end.x - start.x == pytest.approx(1.0)


def test_linear_gradient_even_distribution():
    g = parse_gradient("linear-gradient(red, green, blue, white)")
    assert g is not None
    assert [s.position for s in g.gradient_stops] == pytest.approx([0.0, 1 / 3, 2 / 3, 1.0], abs=1e-5)


def test_linear_gradient_default_angle_is_top_to_bottom():
    g = parse_gradient("linear-gradient(red, blue)")
    start, end, _ = g.gradient_handle_positions
    assert (start.x, start.y) == pytest.approx((0.5, 0.0))
    assert (end.x, end.y) == pytest.approx((0.5, 1.0))


def test_linear_gradient_direction_keyword():
    g = parse_gradient("linear-gradient(to right, rgba(255,0,0,1), rgba(0,0,255,0.5))")
    start, end, _ = g.gradient_handle_positions
    assert start.x == pytest.approx(0.0) and end.x == pytest.approx(1.0)
    assert g.gradient_stops[1].color.a == pytest.approx(0.5)


def test_radial_gradient_skips_shape_token():
    g = parse_gradient("radial-gradient(circle at center, red 0%, blue 100%)")
    assert g is not None and g.type == "GRADIENT_RADIAL"
    assert len(g.gradient_stops) == 2
    assert [(h.x, h.y) for h in g.gradient_handle_positions] == [(0.5, 0.5), (1.0, 0.5), (0.5, 1.0)]


@pytest.mark.parametrize(
    "value",
    ["radial-gradient(red 0%, blue 100%)", "radial-gradient(#f00 0%, rgb(0, 0, 255) 100%)"],
)
def test_radial_gradient_keeps_leading_color(value):
    g = parse_gradient(value)
    assert g is not None
    assert [s.color.r for s in g.gradient_stops] == [1.0, 0.0]


@pytest.mark.parametrize(
    "value",
    [
        "none",
        "url(a.png)",
        "linear-gradient(red)",
        "repeating-linear-gradient(red, blue)",
        "conic-gradient(red, blue)",
    ],
)
def test_parse_gradient_rejects(value):
    assert parse_gradient(value) is None


def test_background_paints_stacks_solid_and_gradient():
    fills, gradient = background_paints({
        "backgroundColor": "rgb(255, 255, 255)",
        "backgroundImage": "linear-gradient(red, blue)",
    })
    assert [f.type for f in fills] == ["SOLID", "GRADIENT_LINEAR"]
    assert gradient is fills[1]


def test_extract_background_image_url():
    assert extract_background_image_url('url("https://x.test/a.png")') == "https://x.test/a.png"
    assert extract_background_image_url("none") is None


# ── Skuggor ─────────────────────────────────────────────────────────────────

def test_box_shadow_drop_and_inset():
    effects = parse_box_shadow("2px 4px 6px rgba(0,0,0,0.5), inset 0 0 10px red")
    assert [e.type for e in effects] == ["DROP_SHADOW", "INNER_SHADOW"]
    first, second = effects
    assert (first.offset.x, first.offset.y, first.radius) == (2.0, 4.0, 6.0)
    assert first.color.a == pytest.approx(0.5)
    assert (second.offset.x, second.offset.y, second.radius) == (0.0, 0.0, 10.0)
    assert second.color.r == 1.0


def test_box_shadow_computed_order_with_trailing_inset():
    effects = parse_box_shadow("rgb(0, 0, 0) 1px 2px 3px 4px inset")
    assert len(effects) == 1
    assert effects[0].type == "INNER_SHADOW"
    assert effects[0].spread == 4.0


def test_box_shadow_skips_transparent_and_short_clauses():
    assert parse_box_shadow("none") == []
    assert parse_box_shadow("rgba(0, 0, 0, 0) 0px 0px 0px 0px") == []
    assert parse_box_shadow("5px red") == []


@pytest.mark.parametrize("value", ["#0000 2px 2px 4px", "2px 2px 4px #00000000"])
def test_box_shadow_with_transparent_hex_is_dropped(value):
    assert parse_box_shadow(value) == []


# ── Ram, hörn, opacity ─────────────────────────────────────────────────────

def test_aggregate_borders_max_weight_first_color():
    style = {
        "borderTopWidth": "1px", "borderTopStyle": "solid", "borderTopColor": "rgb(255, 0, 0)",
        "borderRightWidth": "3px", "borderRightStyle": "solid", "borderRightColor": "rgb(0, 0, 255)",
        "borderBottomWidth": "5px", "borderBottomStyle": "none", "borderBottomColor": "rgb(0, 255, 0)",
    }
    b = aggregate_borders(style)
    assert b["stroke_weight"] == 3.0
    assert b["stroke_align"] == "INSIDE"
    assert b["strokes"][0].color.r == 1.0


def test_aggregate_borders_none():
    assert aggregate_borders({"borderTopWidth": "0px"}) is None


def test_corner_radii():
    assert corner_radii({"borderTopLeftRadius": "8px"}) == {
        "top_left_radius": 8.0,
        "top_right_radius": 0.0,
        "bottom_right_radius": 0.0,
        "bottom_left_radius": 0.0,
    }
    assert corner_radii({}) is None


def test_parse_opacity_only_below_one():
    assert parse_opacity("0.4") == 0.4
    assert parse_opacity("1") is None


# ── Typografi och namn ─────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "weight, style, expected",
    [
        ("400", "normal", "Regular"),
        ("700", "italic", "Bold Italic"),
        ("bold", None, "Bold"),
        ("900", None, "Black"),
        ("100", None, "Thin"),
        ("", None, "Regular"),
    ],
)
def test_font_style_name(weight, style, expected):
    assert font_style_name(weight, style) == expected


def test_text_mappings():
    assert map_text_align("center") == "CENTER"
    assert map_text_align("-webkit-right") == "RIGHT"
    assert map_text_align("justify") == "JUSTIFIED"
    assert map_text_decoration("underline line-through") == "UNDERLINE"
    assert map_text_decoration("line-through") == "STRIKETHROUGH"
    assert parse_line_height("normal").unit == "AUTO"
    assert parse_line_height("24px").value == 24.0


def test_node_name():
    assert node_name("DIV", "hero", "a b") == "div#hero"
    assert node_name("button", None, "btn primary large") == "button.btn.primary"
    assert node_name("section") == "section"
