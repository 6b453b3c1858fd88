"""
Tests for the vegetation density field builder.
"""

import numpy as np
import pytest

from grassfield.engine.heightfield import HeightfieldGrid
from grassfield.engine.density import (
    DensityFieldBuilder, DensityField, DensityParams, MIN_BASE_DENSITY,
    density_at_uv, height_mask, slope_mask
)
from grassfield.errors import ConfigurationError, GridIndexError


def _noise_grid(size=64):
    return HeightfieldGrid(size, size, use_noise=True, amplitude=1.2, frequency=0.08)


def test_density_within_unit_interval():
    field = DensityFieldBuilder().build(
        _noise_grid(), {"min_height": -1.0, "max_height": 4.0, "max_slope": 0.35}
    )
    assert field.data.dtype == np.float32
    assert field.data.shape == (64, 64)
    assert np.all(field.data >= 0.0)
    assert np.all(field.data <= 1.0)
    assert np.any(field.data > 0.0)


def test_resolution_defaults_to_heightfield_and_is_independent():
    grid = HeightfieldGrid(40, 24, use_noise=True)
    builder = DensityFieldBuilder()

    default = builder.build(grid, DensityParams(min_height=-2, max_height=2, max_slope=1.0))
    assert (default.width, default.height) == (40, 24)

    custom = builder.build(grid, DensityParams(min_height=-2, max_height=2, max_slope=1.0, resolution=20))
    assert (custom.width, custom.height) == (20, 20)
    assert custom.buffer.size == 400


def test_non_positive_resolution_rejected():
    grid = _noise_grid(8)
    builder = DensityFieldBuilder()
    for resolution in (0, -3):
        with pytest.raises(ConfigurationError):
            builder.build(grid, {"min_height": 0, "max_height": 1, "max_slope": 1, "resolution": resolution})
    with pytest.raises(ConfigurationError):
        DensityParams(resolution=2.5)


def test_build_is_deterministic_and_pure():
    grid = _noise_grid()
    before = grid.data.copy()
    params = DensityParams(min_height=-1.0, max_height=4.0, max_slope=0.35, resolution=96)

    first = DensityFieldBuilder().build(grid, params)
    second = DensityFieldBuilder().build(grid, params)

    assert np.array_equal(first.data, second.data)
    assert np.array_equal(grid.data, before)
    assert first.data is not second.data


def test_zero_height_range_passes_everything():
    assert np.all(height_mask(np.array([-5.0, 0.0, 3.0]), 0.0, 0.0) == 1.0)

    grid = HeightfieldGrid(16, 16)
    field = DensityFieldBuilder().build(grid, {"min_height": 0, "max_height": 0, "max_slope": 0.5})
    assert np.all(field.data >= np.float32(MIN_BASE_DENSITY))


def test_height_mask_is_triangular():
    values = height_mask(np.array([0.0, 1.0, 2.0, 3.0, 4.0, 5.0, -1.0]), 0.0, 4.0)
    assert np.allclose(values, [0.0, 0.5, 1.0, 0.5, 0.0, 0.0, 0.0])


def test_slope_mask_fades_between_ratio_06_and_1():
    values = slope_mask(np.array([0.0, 0.5, 0.8, 1.0, 2.0]), 1.0)
    assert np.allclose(values, [1.0, 1.0, 0.5, 0.0, 0.0])


def test_out_of_band_terrain_has_no_density():
    grid = HeightfieldGrid(16, 16)
    grid.data[:] = 10.0
    field = DensityFieldBuilder().build(grid, {"min_height": 0, "max_height": 4, "max_slope": 0.5})
    assert np.all(field.data == 0.0)

    grid.data[:] = 2.0
    field = DensityFieldBuilder().build(grid, {"min_height": 0, "max_height": 4, "max_slope": 0.5})
    assert np.all(field.data >= np.float32(MIN_BASE_DENSITY))


def test_steep_terrain_has_no_density():
    grid = HeightfieldGrid(16, 16)
    grid.data[:] = np.arange(16, dtype=np.float32)[None, :] * 10.0
    field = DensityFieldBuilder().build(grid, {"min_height": -1000, "max_height": 1000, "max_slope": 0.35})
    assert np.all(field.data == 0.0)


def test_single_texel_heightfield():
    grid = HeightfieldGrid(1, 1)
    field = DensityFieldBuilder().build(grid, {"min_height": -1, "max_height": 1, "max_slope": 0.5})
    assert (field.width, field.height) == (1, 1)
    assert 0.0 < field.value(0, 0) <= 1.0


def test_density_at_uv_nearest_texel():
    field = DensityField(width=2, height=2, data=np.array([[0.1, 0.2], [0.3, 0.4]], dtype=np.float32))
    assert density_at_uv(field, 0.0, 0.0) == pytest.approx(0.1)
    assert density_at_uv(field, 1.0, 1.0) == pytest.approx(0.4)
    assert density_at_uv(field, 0.6, 0.2) == pytest.approx(0.2)
    assert density_at_uv(field, -5.0, 5.0) == pytest.approx(0.3)


def test_out_of_range_density_access_raises():
    field = DensityField(width=2, height=1, data=np.array([[0.1, 0.9]], dtype=np.float32))
    assert field.value(1, 0) == pytest.approx(0.9)
    for x, y in [(-1, 0), (2, 0), (0, -1), (0, 1)]:
        with pytest.raises(GridIndexError):
            field.value(x, y)
    with pytest.raises(GridIndexError):
        field.value(0.5, 0)


def test_coverage_summary():
    field = DensityField(width=2, height=1, data=np.array([[0.0, 0.5]], dtype=np.float32))
    coverage = field.coverage()
    assert coverage["covered_fraction"] == 0.5
    assert coverage["max_density"] == 0.5


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
    print(f"Density tests: {passed}/{len(tests)} passed")


if __name__ == "__main__":
    main()
