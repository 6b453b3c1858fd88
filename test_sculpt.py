"""
Tests for the radial sculpt brush.
"""

import math

import numpy as np
import pytest

from grassfield.engine.heightfield import HeightfieldGrid
from grassfield.engine.sculpt import SculptEngine, BrushConfig, BrushMode, neighbor_average
from grassfield.errors import ConfigurationError


class ReversedSculptEngine(SculptEngine):
    """Visits the brush footprint in reverse order."""

    def footprint(self, grid, center_x, center_y, radius):
        return list(reversed(super().footprint(grid, center_x, center_y, radius)))


def test_raise_scenario_boundary_texel_unchanged():
    grid = HeightfieldGrid(4, 4)
    SculptEngine().apply_brush(grid, 1, 1, BrushConfig(radius=1, intensity=1, mode=BrushMode.RAISE))

    assert grid.get_height(1, 1) == 1.0
    # distance == radius: included with falloff 0
    assert grid.get_height(0, 1) == 0.0
    assert grid.get_height(2, 1) == 0.0
    assert grid.get_height(1, 0) == 0.0
    # distance > radius
    assert grid.get_height(0, 0) == 0.0
    assert grid.get_height(3, 3) == 0.0


def test_boundary_texels_are_part_of_footprint():
    grid = HeightfieldGrid(4, 4)
    texels = SculptEngine().footprint(grid, 1, 1, 1.0)
    falloffs = {(x, y): f for x, y, f in texels}
    assert falloffs[(1, 1)] == 1.0
    assert falloffs[(0, 1)] == 0.0
    assert (0, 0) not in falloffs
    assert [(x, y) for x, y, _ in texels] == sorted(falloffs, key=lambda p: (p[1], p[0]))


def test_lower_uses_linear_falloff():
    grid = HeightfieldGrid(9, 9)
    SculptEngine().apply_brush(grid, 4, 4, {"radius": 4, "intensity": 2.0, "mode": "lower"})
    assert grid.get_height(4, 4) == pytest.approx(-2.0)
    assert grid.get_height(6, 4) == pytest.approx(-1.0)
    assert grid.get_height(4, 7) == pytest.approx(-0.5)


def test_texels_outside_radius_unchanged():
    grid = HeightfieldGrid(24, 18, use_noise=True, amplitude=1.2, frequency=0.3)
    before = grid.data.copy()
    cx, cy, radius = 10.3, 7.7, 4.0

    SculptEngine().apply_brush(grid, cx, cy, BrushConfig(radius=radius, intensity=0.5, mode="raise"))

    ys, xs = np.mgrid[0:grid.height, 0:grid.width]
    outside = np.hypot(xs - cx, ys - cy) > radius
    assert np.array_equal(grid.data[outside], before[outside])
    assert not np.array_equal(grid.data, before)


def test_smooth_reads_pre_stroke_heights():
    grid = HeightfieldGrid(5, 5)
    grid.set_height(2, 2, 9.0)

    SculptEngine().apply_brush(grid, 2, 2, BrushConfig(radius=2, intensity=1.0, mode=BrushMode.SMOOTH))

    # Centre: full falloff, 3x3 mean of the original spike
    assert grid.get_height(2, 2) == pytest.approx(1.0)
    # Neighbour at distance 1: falloff 0.5 towards its own 3x3 mean (9 / 9)
    assert grid.get_height(2, 1) == pytest.approx(0.5)
    # Edge of the brush is untouched
    assert grid.get_height(2, 0) == 0.0


def test_smooth_is_order_independent():
    forward = HeightfieldGrid(32, 32, use_noise=True, amplitude=1.5, frequency=0.4)
    backward = forward.copy()
    config = BrushConfig(radius=6, intensity=1.0, mode=BrushMode.SMOOTH)

    SculptEngine().apply_brush(forward, 15.5, 12.0, config)
    ReversedSculptEngine().apply_brush(backward, 15.5, 12.0, config)

    assert np.array_equal(forward.data, backward.data)


def test_smooth_leaves_flat_terrain_flat():
    grid = HeightfieldGrid(6, 6)
    grid.data[:] = 3.0
    SculptEngine().apply_brush(grid, 0, 0, BrushConfig(radius=3, intensity=1.0, mode="smooth"))
    assert np.allclose(grid.data, 3.0)


def test_neighbor_average_divides_by_sampled_count():
    data = np.zeros((3, 3))
    data[0, 0] = 4.0
    averages = neighbor_average(data)
    assert averages[0, 0] == pytest.approx(1.0)   # 4 in-grid texels
    assert averages[0, 1] == pytest.approx(4.0 / 6.0)
    assert averages[1, 1] == pytest.approx(4.0 / 9.0)


def test_brush_outside_grid_is_noop():
    grid = HeightfieldGrid(8, 8, use_noise=True)
    before = grid.data.copy()
    touched = SculptEngine().apply_brush(grid, -20, -20, BrushConfig(radius=3, intensity=1.0))
    assert touched == 0
    assert np.array_equal(grid.data, before)


def test_brush_clipped_at_grid_edge():
    grid = HeightfieldGrid(8, 8)
    touched = SculptEngine().apply_brush(grid, 0, 0, BrushConfig(radius=2, intensity=1.0))
    # Quarter disc of radius 2 inside the grid
    expected = sum(1 for y in range(3) for x in range(3) if math.hypot(x, y) <= 2)
    assert touched == expected
    assert grid.get_height(0, 0) == 1.0


def test_invalid_brush_config():
    with pytest.raises(ConfigurationError):
        BrushConfig(radius=0, intensity=1.0)
    with pytest.raises(ConfigurationError):
        BrushConfig(radius=-1, intensity=1.0)
    with pytest.raises(ConfigurationError):
        BrushConfig(radius=2, intensity=1.0, mode="flatten")
    with pytest.raises(ConfigurationError):
        SculptEngine().apply_brush(HeightfieldGrid(4, 4), 1, 1, {"radius": 0.0})
    assert BrushConfig(radius=1, mode="smooth").mode is BrushMode.SMOOTH


def test_non_finite_brush_centre_rejected():
    grid = HeightfieldGrid(4, 4)
    engine = SculptEngine()
    for cx, cy in [(float("nan"), 1.0), (1.0, float("inf")), (float("-inf"), 0.0)]:
        with pytest.raises(ConfigurationError):
            engine.apply_brush(grid, cx, cy, BrushConfig(radius=2, intensity=1.0))
    assert np.all(grid.data == 0.0)


def main():
    """Run tests without pytest."""
    tests = [(name, fn) for name, fn in globals().items() if name.startswith("test_")]
    passed = 0
    for name, fn in tests:
        try:
            fn()
            passed += 1
            print(f"  PASS  {name}")
        except AssertionError as e:
            print(f"  FAIL  {name} -- {e}")
    print(f"Sculpt tests: {passed}/{len(tests)} passed")


if __name__ == "__main__":
    main()
