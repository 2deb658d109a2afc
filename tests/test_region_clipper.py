import pytest

from face_censor.models.region import Rectangle, Region
from face_censor.services.region_clipper import RegionClipper, round_half_up


@pytest.mark.parametrize("value, expected", [
    (2.5, 3),
    (2.49, 2),
    (-2.5, -2),
    (-2.51, -3),
    (0.5, 1),
    (7, 7),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_rectangle_overhanging_top_left_is_clipped():
    region = RegionClipper.clip(Rectangle(-5, -5, 20, 20), 10, 10)
    assert region == Region(x=0, y=0, width=10, height=10)


def test_rectangle_outside_buffer_is_rejected():
    assert RegionClipper.clip(Rectangle(100, 100, 10, 10), 10, 10) is None


def test_rectangle_inside_buffer_is_kept():
    assert RegionClipper.clip(Rectangle(2, 3, 4, 5), 10, 10) == Region(2, 3, 4, 5)


def test_fractional_rectangle_is_rounded_half_up():
    region = RegionClipper.clip(Rectangle(2.5, 1.5, 3.4, 3.5), 20, 20)
    assert region == Region(x=3, y=2, width=3, height=4)


def test_negative_half_origin_rounds_towards_zero_then_clamps():
    region = RegionClipper.clip(Rectangle(-2.5, 0.0, 4.0, 4.0), 20, 20)
    assert region == Region(x=0, y=0, width=4, height=4)


def test_rectangle_overhanging_bottom_right_is_truncated():
    region = RegionClipper.clip(Rectangle(6, 7, 10, 10), 10, 10)
    assert region == Region(x=6, y=7, width=4, height=3)
    assert region.right == 10
    assert region.bottom == 10


@pytest.mark.parametrize("rect", [
    Rectangle(1, 1, 0, 5),
    Rectangle(1, 1, 5, 0),
    Rectangle(1, 1, -3, 5),
    Rectangle(1, 1, 0.4, 5),      # rounds to zero width
    Rectangle(10, 0, 5, 5),       # origin on the right edge
    Rectangle(0, 12, 5, 5),       # origin below the bottom edge
])
def test_degenerate_rectangles_are_rejected(rect):
    assert RegionClipper.clip(rect, 10, 10) is None


def test_clipping_is_pure():
    rect = Rectangle(-1.5, 2.5, 8.5, 3.5)
    first = RegionClipper.clip(rect, 10, 10)
    second = RegionClipper.clip(rect, 10, 10)
    assert first == second
    assert rect == Rectangle(-1.5, 2.5, 8.5, 3.5)


@pytest.mark.parametrize("rect", [
    Rectangle(float("nan"), 0, 10, 10),
    Rectangle(0, float("nan"), 10, 10),
    Rectangle(0, 0, float("nan"), 10),
    Rectangle(0, 0, 10, float("inf")),
    Rectangle(float("-inf"), 0, 10, 10),
])
def test_non_finite_coordinates_are_skipped(rect):
    assert RegionClipper.clip(rect, 50, 50) is None
