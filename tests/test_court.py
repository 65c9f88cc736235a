"""
Court Geometry Tests — bounds, clamping, hoop placement and markings.
"""

import sys
import os
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import court
from court import CourtBounds, DEFAULT_BOUNDS


class TestBounds:

    def test_default_court(self):
        assert DEFAULT_BOUNDS.half_length == 15.0
        assert DEFAULT_BOUNDS.half_width == 7.5
        assert DEFAULT_BOUNDS.floor_height == pytest.approx(0.1)

    def test_is_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_BOUNDS.half_length = 3.0

    def test_max_extent_accounts_for_radius(self):
        assert DEFAULT_BOUNDS.max_x(0.24) == pytest.approx(14.76)
        assert DEFAULT_BOUNDS.max_z(0.24) == pytest.approx(7.26)

    def test_clamp_inside_is_untouched(self):
        p = np.array([1.0, 0.34, -2.0])
        assert DEFAULT_BOUNDS.clamp(p, 0.24) == (False, False)
        np.testing.assert_array_equal(p, [1.0, 0.34, -2.0])

    def test_clamp_outside_both_axes(self):
        p = np.array([-20.0, 5.0, 9.0])
        assert DEFAULT_BOUNDS.clamp(p, 0.24) == (True, True)
        np.testing.assert_allclose(p, [-14.76, 5.0, 7.26])

    def test_clamp_never_touches_height(self):
        p = np.array([0.0, -4.0, 0.0])
        DEFAULT_BOUNDS.clamp(p, 0.24)
        assert p[1] == -4.0

    def test_from_dimensions(self):
        b = CourtBounds.from_dimensions(28.0, 15.0, floor_height=0.0)
        assert (b.half_length, b.half_width, b.floor_height) == (14.0, 7.5, 0.0)


class TestHoops:

    def test_backboards_inset_from_baselines(self):
        hoops = court.hoop_positions()
        assert hoops["left"] == pytest.approx(-13.8)
        assert hoops["right"] == pytest.approx(13.8)

    def test_rims_sit_in_front_of_backboards(self):
        rims = court.rim_centers()
        np.testing.assert_allclose(rims["left"], [-13.5, 3.05, 0.0])
        np.testing.assert_allclose(rims["right"], [13.5, 3.05, 0.0])

    @pytest.mark.parametrize("x, side", [(-0.1, "right"), (-14.0, "right"),
                                         (0.0, "left"), (6.0, "left")])
    def test_target_side(self, x, side):
        assert court.target_side(x) == side


class TestMarkings:

    def test_all_lines_present(self):
        lines = court.court_lines()
        assert set(lines) == {"center_line", "center_circle",
                              "three_point_left", "three_point_right"}

    def test_lines_lie_just_above_floor(self):
        for pts in court.court_lines().values():
            assert all(p[1] == court.LINE_HEIGHT for p in pts)
        assert court.LINE_HEIGHT > court.FLOOR_HEIGHT

    def test_center_circle_is_closed(self):
        pts = court.court_lines()["center_circle"]
        np.testing.assert_allclose(pts[0], pts[-1], atol=1e-12)
        radii = [np.hypot(p[0], p[2]) for p in pts]
        np.testing.assert_allclose(radii, court.CENTER_CIRCLE_RADIUS)

    def test_three_point_arcs_open_toward_centre(self):
        lines = court.court_lines()
        left_x = [p[0] for p in lines["three_point_left"]]
        right_x = [p[0] for p in lines["three_point_right"]]
        assert max(left_x) > court.hoop_positions()["left"] + court.THREE_POINT_RADIUS - 0.01
        assert min(right_x) < court.hoop_positions()["right"] - court.THREE_POINT_RADIUS + 0.01
        assert all(abs(p[2]) <= court.COURT_WIDTH / 2 for p in lines["three_point_left"])
