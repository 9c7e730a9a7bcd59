import pytest

from fieldar.geodesy import GeoPoint
from fieldar.hud import (CALIBRATION_PROMPT, HudCanvas, HudLayout,
                         format_bearing, format_distance, is_visible,
                         layout_hud, screen_position)
from fieldar.styles import OverlayOptions
from fieldar.targets import Target, TargetKind


def _target(bearing, distance=1000.0, feature_index=0, label="T", tid=None):
    return Target(
        id=tid or f"t-{bearing}-{feature_index}",
        label=label,
        point=GeoPoint(0.0, 0.0),
        distance=distance,
        bearing=bearing,
        kind=TargetKind.POINT,
        feature_index=feature_index,
    )


def test_visibility_against_fov_and_radius():
    assert is_visible(_target(100.0), heading=90.0, fov=65.0)
    assert not is_visible(_target(140.0), heading=90.0, fov=65.0)
    assert is_visible(_target(122.5), heading=90.0, fov=65.0)
    assert is_visible(_target(57.5), heading=90.0, fov=65.0)
    assert not is_visible(_target(100.0, distance=60_000.0), heading=90.0,
                          fov=65.0, max_radius=50_000.0)
    assert is_visible(_target(100.0, distance=50_000.0), heading=90.0,
                      fov=65.0, max_radius=50_000.0)


def test_visibility_across_north():
    assert is_visible(_target(350.0), heading=10.0, fov=65.0)
    assert is_visible(_target(20.0), heading=350.0, fov=65.0)


def test_screen_position():
    x, y = screen_position(_target(90.0, distance=0.0), 90.0, 1000, 500, fov=65.0)
    assert x == pytest.approx(500.0)
    assert y == pytest.approx(350.0)  # nearest: bottom of the band

    x, y = screen_position(_target(122.5, distance=6000.0), 90.0, 1000, 500, fov=65.0)
    assert x == pytest.approx(1000.0)
    assert y == pytest.approx(200.0)  # beyond 3 km: top of the band

    x, y = screen_position(_target(57.5, distance=1500.0), 90.0, 1000, 500, fov=65.0)
    assert x == pytest.approx(0.0)
    assert y == pytest.approx(275.0)


def test_layout_counts_features():
    targets = [
        _target(95.0, feature_index=0, tid="a"),
        _target(100.0, feature_index=0, tid="b"),
        _target(200.0, feature_index=1, tid="c"),
    ]
    layout = layout_hud(targets, 90.0, 1000, 500, fov=65.0)
    assert layout.calibrated
    assert [i.target_id for i in layout.items] == ["a", "b"]
    assert layout.overlay_count == 2
    assert layout.visible_feature_count == 1
    assert layout.total_feature_count == 2
    assert layout.items[0].distance_text == "1.00 km"
    assert layout.items[0].bearing_text == "95°"


def test_layout_without_heading_projects_nothing():
    layout = layout_hud([_target(90.0)], None, 1000, 500, feature_count=3)
    assert not layout.calibrated
    assert layout.items == []
    assert layout.overlay_count == 0
    assert layout.visible_feature_count == 0
    assert layout.total_feature_count == 1

    assert layout_hud([], None, feature_count=3).total_feature_count == 3


def test_heading_zero_is_calibrated():
    layout = layout_hud([_target(0.0)], 0.0, 1000, 500)
    assert layout.calibrated
    assert layout.overlay_count == 1


def test_formatting():
    assert format_distance(850.0) == "850 m"
    assert format_distance(1500.0) == "1.50 km"
    assert format_distance(12_345.0) == "12.35 km"
    assert format_bearing(360.0) == "0°"
    assert format_bearing(-10.0) == "350°"


def test_canvas_redraw_leaves_no_ghosts():
    canvas = HudCanvas(320, 200)
    layout = layout_hud([_target(90.0)], 90.0, 320, 200)
    canvas.draw(layout)
    x, y = int(layout.items[0].screen_x), int(layout.items[0].screen_y)
    assert canvas.image.getpixel((x, y))[3] > 0

    canvas.draw(HudLayout(calibrated=True))
    assert canvas.image.getbbox() is None


def test_canvas_prompts_while_uncalibrated():
    canvas = HudCanvas(640, 120)
    canvas.draw(HudLayout(calibrated=False))
    assert canvas.image.getbbox() is not None
    assert CALIBRATION_PROMPT.startswith("Move your device")


def test_canvas_respects_transparency():
    canvas = HudCanvas(320, 200)
    layout = layout_hud([_target(90.0)], 90.0, 320, 200)
    canvas.draw(layout, OverlayOptions(transparency=1.0))
    assert canvas.image.getbbox() is None
    assert canvas.to_png().startswith(b"\x89PNG")
