"""Tests for Box: visual size = base × scale, and scale solving on assignment."""
import pytest

from app.domain.geometry import Box, Rect


class TestVisualSize:

    def test_visual_size_is_base_times_scale(self):
        box = Box(x=10, y=20, width=400, height=300, scale_x=1.5, scale_y=0.5)
        assert box.visual_width == 600
        assert box.visual_height == 150

    def test_set_visual_size_solves_scale(self):
        box = Box(width=400, height=300)
        box.set_visual_size(200, 600)
        assert box.scale_x == pytest.approx(0.5)
        assert box.scale_y == pytest.approx(2.0)
        assert box.width == 400 and box.height == 300

    @pytest.mark.parametrize("base", [1, 3, 7.5, 300, 1234.5])
    def test_assignment_sequence_reads_back(self, base):
        box = Box(width=base, height=base * 2)
        for w, h in [(17, 31), (0.25, 1e4), (999.999, 3.3), (640, 480), (1, 1)]:
            box.set_visual_size(w, h)
            assert box.visual_width == pytest.approx(w)
            assert box.visual_height == pytest.approx(h)

    def test_zero_base_keeps_scale(self):
        box = Box(width=0, height=100, scale_x=2.0, scale_y=1.0)
        box.set_visual_size(50, 50)
        assert box.scale_x == 2.0
        assert box.scale_y == pytest.approx(0.5)

    def test_single_axis_assignment(self):
        box = Box(width=100, height=100, scale_x=1.0, scale_y=3.0)
        box.set_visual_size(width=250)
        assert box.scale_x == pytest.approx(2.5)
        assert box.scale_y == 3.0


class TestBounds:

    def test_bounds_uses_visual_size(self):
        box = Box(x=5, y=6, width=10, height=20, scale_x=2, scale_y=3)
        assert box.bounds() == Rect(5, 6, 20, 60)

    def test_center(self):
        assert Rect(400, 260, 400, 300).center == (600, 410)
