import pytest

from html2figma.models import Effect, GradientPaint, GradientStop, Rgb, Rgba, SolidPaint, Vector
from html2figma.tasks.css_values import parse_gradient
from html2figma.tasks.sanitize import (
    clamp01,
    effect_to_host,
    paint_to_host,
    sanitize_effects,
    sanitize_font_family,
    sanitize_paints,
)


def _dirty_paints():
    return [
        SolidPaint(color=Rgb(r=1.4, g=-0.2, b=0.5), opacity=3),
        GradientPaint(
            type="GRADIENT_LINEAR",
            gradient_stops=[
                GradientStop(color=Rgba(r=2, g=0, b=0, a=-1), position=-0.5),
                GradientStop(color=Rgba(r=0, g=0, b=1, a=0.5), position=1.7),
            ],
            gradient_handle_positions=[Vector(x=0, y=0.5), Vector(x=1, y=0.5), Vector(x=0.5, y=1)],
        ),
    ]


@pytest.mark.parametrize("value, expected", [(-1, 0.0), (0.3, 0.3), (5, 1.0), (None, 0.0), (float("nan"), 0.0)])
def test_clamp01(value, expected):
    assert clamp01(value) == expected


def test_sanitize_paints_clamps_everything():
    solid, grad = sanitize_paints(_dirty_paints())
    assert (solid.color.r, solid.color.g, solid.color.b, solid.opacity) == (1.0, 0.0, 0.5, 1.0)
    assert [s.position for s in grad.gradient_stops] == [0.0, 1.0]
    assert grad.gradient_stops[0].color.r == 1.0
    assert grad.gradient_stops[0].color.a == 0.0
    assert len(grad.gradient_handle_positions) == 3


def test_sanitize_paints_is_idempotent():
    once = sanitize_paints(_dirty_paints())
    assert sanitize_paints(once) == once


def test_sanitize_already_clean_gradient_is_noop():
    g = parse_gradient("linear-gradient(45deg, rgba(255,0,0,0.2) 10%, blue 90%)")
    assert sanitize_paints([g]) == [g]


def test_sanitize_effects():
    (e,) = sanitize_effects([
        Effect(type="DROP_SHADOW", color=Rgba(r=0, g=0, b=0, a=4), offset=Vector(x=1, y=2), radius=-3, visible=False)
    ])
    assert e.radius == 0.0
    assert e.color.a == 1.0
    assert e.visible is True
    assert sanitize_effects([e]) == [e]


def test_paint_to_host_gradient_transform():
    g = parse_gradient("linear-gradient(90deg, red, blue)")
    out = paint_to_host(g)
    assert out["type"] == "GRADIENT_LINEAR"
    assert out["gradientTransform"] == [[1.0, 0.5, 0.0], [0.0, 0.5, 0.5]]
    assert out["gradientStops"][0]["color"] == {"r": 1.0, "g": 0.0, "b": 0.0, "a": 1.0}
    assert "gradientHandlePositions" not in out


def test_paint_to_host_solid():
    out = paint_to_host(SolidPaint(color=Rgb(r=0.1, g=0.2, b=0.3), opacity=0.5))
    assert out == {"type": "SOLID", "color": {"r": 0.1, "g": 0.2, "b": 0.3}, "opacity": 0.5}


def test_effect_to_host():
    out = effect_to_host(Effect(type="INNER_SHADOW", color=Rgba(r=1, g=0, b=0, a=1), radius=10))
    assert out["type"] == "INNER_SHADOW"
    assert out["offset"] == {"x": 0.0, "y": 0.0}
    assert out["radius"] == 10.0


@pytest.mark.parametrize(
    "name, expected",
    [("", "Inter"), (None, "Inter"), ('"Roboto"', "Roboto"), ("system-ui", "Inter"), ("monospace", "Roboto Mono"), ("'Open Sans', sans-serif", "Open Sans")],
)
def test_sanitize_font_family(name, expected):
    assert sanitize_font_family(name) == expected
