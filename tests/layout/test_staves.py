from __future__ import annotations

import logging

import numpy as np
import pytest

from scoregrid.layout import (
    LEFT,
    RIGHT,
    Bar,
    Point,
    Scale,
    Staff,
    StaffLine,
    StaffManager,
    VerticalCandidate,
    VerticalLine,
    adjust_staff_lines,
    compute_line_ending,
)


def _make_staff(staff_id: int, top: int, *, left: int = 100, right: int = 900, **kwargs) -> Staff:
    lines = [StaffLine([(left, top + i * 10), (right, top + i * 10)]) for i in range(5)]
    return Staff(staff_id, lines, **kwargs)


def _make_slanted_stick(stick_id: int, slope: float, intercept: float, y_top: int, y_bottom: int):
    ys = np.arange(y_top, y_bottom + 1, dtype=float)
    return VerticalCandidate(stick_id, np.column_stack((slope * ys + intercept, ys)))


def test_vertical_line_fit_recovers_slope():
    ys = np.arange(0, 50, dtype=float)
    line = VerticalLine.fit(np.column_stack((0.2 * ys + 30, ys)))
    assert line.slope == pytest.approx(0.2)
    assert line.x_at(10) == pytest.approx(32.0)


def test_scale_converts_fractions_to_pixels():
    scale = Scale(20)
    assert scale.to_pixels(0.5) == 10
    assert scale.to_pixels(8) == 160
    with pytest.raises(ValueError):
        Scale(0)


def test_candidate_endpoints_and_length():
    stick = _make_slanted_stick(7, 0.0, 42, 10, 60)
    assert stick.start_point == Point(42, 10)
    assert stick.stop_point == Point(42, 60)
    assert stick.length == 51
    assert not stick.is_barline


def test_staff_line_queries():
    line = StaffLine([(100, 50), (0, 40), (200, 50)])
    assert line.left_point == Point(0, 40)
    assert line.end_point(RIGHT) == Point(200, 50)
    assert line.y_at(50) == pytest.approx(45.0)
    assert line.slope_at(50) == pytest.approx(0.1)
    assert line.slope_at(150) == pytest.approx(0.0)
    assert line.y_at(-10) == pytest.approx(39.0)


def test_set_ending_points_replaces_outer_points():
    line = StaffLine([(x, 20) for x in range(100, 201, 10)])
    line.set_ending_points(Point(95, 21), Point(150, 19))
    assert line.left_point == Point(95, 21)
    assert line.right_point == Point(150, 19)
    assert line.points[1:-1, 0].tolist() == [100, 110, 120, 130, 140]
    with pytest.raises(ValueError):
        line.set_ending_points(Point(150, 20), Point(100, 20))


def test_fill_holes_follows_sibling_line():
    xs = np.arange(0, 101)
    sibling = StaffLine(np.column_stack((xs, 110 + 0.05 * xs)))
    known = np.concatenate((np.arange(0, 31), np.arange(60, 101)))
    line = StaffLine(np.column_stack((known, 100 + 0.05 * known)))

    added = line.fill_holes([line, sibling], max_gap=10)

    assert added == 29
    assert len(line.points) == 101
    assert line.y_at(45) == pytest.approx(100 + 0.05 * 45)
    assert np.all(np.diff(line.points[:, 0]) > 0)


def test_fill_holes_without_reference_keeps_line():
    line = StaffLine([(0, 100), (100, 100)])
    other = StaffLine([(0, 110), (100, 110)])
    assert line.fill_holes([line, other], max_gap=10) == 0
    assert len(line.points) == 2


def test_staff_defaults_follow_lines():
    staff = _make_staff(1, 100, left=100, right=900)
    assert staff.abscissa(LEFT) == staff.lines_end(LEFT) == 100
    assert staff.abscissa(RIGHT) == staff.lines_end(RIGHT) == 900
    assert staff.mid_ordinate(LEFT) == 120
    assert staff.ending_slope(LEFT) == pytest.approx(0.0)
    assert staff.bar(LEFT) is None


def test_staff_intersection_with_slanted_stick():
    staff = _make_staff(1, 100)
    stick = _make_slanted_stick(1, 0.1, 50, 90, 150)
    assert staff.intersection(stick) == Point(62, 120)


def test_staff_manager_locates_closest_staff():
    manager = StaffManager([_make_staff(1, 100), _make_staff(2, 160)])
    assert manager.get_staff_at(Point(300, 120)).id == 1
    assert manager.get_staff_at(Point(300, 145)).id == 1
    assert manager.get_staff_at(Point(300, 155)).id == 2
    assert manager.get_staff_at(Point(300, 400)).id == 2
    assert [staff.id for staff in manager.get_range(manager.get_staff(0), manager.get_staff(1))] == [1, 2]


def test_staff_manager_rejects_unordered_ids():
    with pytest.raises(ValueError):
        StaffManager([_make_staff(2, 100), _make_staff(1, 160)])


def test_line_ending_follows_slope_and_bar():
    staff = _make_staff(1, 100, ending_slopes={LEFT: 0.1, RIGHT: 0.0})
    line = staff.mid_line
    staff.set_abscissa(LEFT, 90)

    assert compute_line_ending(staff, line, LEFT) == Point(90, 119)

    stick = _make_slanted_stick(1, 0.05, 80, 90, 150)
    staff.set_bar(LEFT, Bar(stick))
    assert compute_line_ending(staff, line, LEFT) == Point(86, 119)
    assert compute_line_ending(staff, line, RIGHT) == Point(900, 120)


def test_staff_lines_keep_raw_ends_when_sides_collapse(caplog):
    staff = _make_staff(1, 100, left=100, right=130)
    stick = _make_slanted_stick(1, 0.0, 115, 95, 145)
    for side in (LEFT, RIGHT):
        staff.set_bar(side, Bar(stick))
        staff.set_abscissa(side, 115)

    with caplog.at_level(logging.WARNING, logger="scoregrid.layout.endings"):
        adjust_staff_lines([staff], max_hole_gap=10)

    assert "Staff#1 sides collapse" in caplog.text
    for line in staff.lines:
        assert line.left_point.x == 100
        assert line.right_point.x == 130
