"""
Vegetation density field builder.

Derives a [0, 1] density grid from heightfield elevation and slope. The
density grid has its own resolution; every density texel samples the
heightfield bilinearly at its UV.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional, Union

import numpy as np

from ..errors import ConfigurationError, GridIndexError
from ..procgen.grammar import DENSITY_SPEC
from ..procgen.noise import noise2d, micro_noise
from .heightfield import HeightfieldGrid, bilinear_sample, grid_uv

log = logging.getLogger(__name__)

# Floor for any texel that passes the height/slope mask
MIN_BASE_DENSITY = 0.35

# Slope ratio (slope / max_slope) where the slope mask starts to fade
SLOPE_FADE_START = 0.6

_MIN_MAX_SLOPE = 1e-5


@dataclass(frozen=True)
class DensityParams:
    min_height: float = -1.0
    max_height: float = 4.0
    max_slope: float = 0.35
    resolution: Optional[int] = None

    def __post_init__(self):
        if self.resolution is not None:
            if isinstance(self.resolution, bool) or not isinstance(self.resolution, (int, np.integer)):
                raise ConfigurationError(
                    f"resolution must be a positive integer, got {self.resolution!r}"
                )
        DENSITY_SPEC.resolve(asdict(self))

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "DensityParams":
        return cls(**DENSITY_SPEC.resolve(values))


@dataclass
class DensityField:
    """
    Density grid of shape (height, width), values in [0, 1].

    Never mutated after construction; rebuilds allocate a new field.
    """

    width: int
    height: int
    data: np.ndarray

    @property
    def buffer(self) -> np.ndarray:
        """Flat row-major float32 view, e.g. for uploading as a texture."""
        return self.data.reshape(-1)

    def value(self, x: int, y: int) -> float:
        for name, index, limit in (("x", x, self.width), ("y", y, self.height)):
            if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
                raise GridIndexError(f"{name} must be an integer index, got {index!r}")
            if not 0 <= index < limit:
                raise GridIndexError(
                    f"{name}={index} outside density field {self.width}x{self.height}"
                )
        return float(self.data[y, x])

    def coverage(self) -> Dict[str, float]:
        """Fraction of covered texels and mean density, for logs."""
        covered = self.data > 0
        return {
            "covered_fraction": float(np.mean(covered)),
            "mean_density": float(np.mean(self.data)),
            "max_density": float(np.max(self.data)),
        }


def density_at_uv(field: DensityField, u: float, v: float) -> float:
    """Nearest-texel density at UV, clamped to the unit square."""
    uu = min(1.0, max(0.0, u))
    vv = min(1.0, max(0.0, v))
    x = int(np.floor(uu * (field.width - 1) + 0.5)) if field.width > 1 else 0
    y = int(np.floor(vv * (field.height - 1) + 0.5)) if field.height > 1 else 0
    return field.value(x, y)


def height_mask(h: np.ndarray, min_height: float, max_height: float) -> np.ndarray:
    """
    Triangular window over [min_height, max_height].

    Peaks at 1 on the midpoint, reaches 0 at either edge. A zero-width band
    passes everything.
    """
    h = np.asarray(h, dtype=np.float64)
    span = max_height - min_height
    if span == 0:
        return np.ones_like(h)
    t = np.clip((h - min_height) / span, 0.0, 1.0)
    return np.maximum(0.0, 1.0 - 2.0 * np.abs(t - 0.5))


def slope_mask(slope: np.ndarray, max_slope: float) -> np.ndarray:
    """1 below SLOPE_FADE_START * max_slope, fading linearly to 0 at max_slope."""
    ratio = np.asarray(slope, dtype=np.float64) / max(max_slope, _MIN_MAX_SLOPE)
    return np.clip(1.0 - (ratio - SLOPE_FADE_START) / (1.0 - SLOPE_FADE_START), 0.0, 1.0)


def estimate_slope(heights: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Gradient magnitude from central differences one heightfield texel apart."""
    rows, cols = heights.shape
    du = 1.0 / (cols - 1) if cols > 1 else 0.0
    dv = 1.0 / (rows - 1) if rows > 1 else 0.0

    h_left = bilinear_sample(heights, u - du, v)
    h_right = bilinear_sample(heights, u + du, v)
    h_down = bilinear_sample(heights, u, v - dv)
    h_up = bilinear_sample(heights, u, v + dv)

    dx = (h_right - h_left) * 0.5
    dy = (h_up - h_down) * 0.5
    return np.sqrt(dx * dx + dy * dy)


class DensityFieldBuilder:
    """
    Builds density fields from heightfields.

    `build` reads the heightfield only and returns a fresh DensityField.
    """

    min_base = MIN_BASE_DENSITY

    def build(
        self,
        heightfield: HeightfieldGrid,
        params: Union[DensityParams, Dict[str, Any]]
    ) -> DensityField:
        """
        Build a density field.

        Args:
            heightfield: Source elevation grid
            params: DensityParams or dict with min_height, max_height,
                max_slope and optional resolution

        Returns:
            DensityField of resolution x resolution texels, or the
            heightfield's dimensions when no resolution is given
        """
        if not isinstance(params, DensityParams):
            params = DensityParams.from_dict(params)

        width = int(params.resolution or heightfield.width)
        height = int(params.resolution or heightfield.height)

        u, v = np.meshgrid(grid_uv(width), grid_uv(height))
        heights = heightfield.data

        h = bilinear_sample(heights, u, v)
        slope = estimate_slope(heights, u, v)
        mask = height_mask(h, params.min_height, params.max_height) * slope_mask(slope, params.max_slope)

        variation = noise2d(u, v) * 0.7 + 0.3 + micro_noise(u, v)
        density = self.min_base + (1.0 - self.min_base) * np.clip(variation * mask, 0.0, 1.0)
        density = np.where(mask > 0.0, np.clip(density, 0.0, 1.0), 0.0)

        field = DensityField(width=width, height=height, data=density.astype(np.float32))
        log.debug("Density field %dx%d built: %s", width, height, field.coverage())
        return field
