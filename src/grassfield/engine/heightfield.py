"""
Heightfield grid: elevation storage, noise seeding and bilinear sampling.

Heights live in a (rows, cols) float32 array whose flat view is the
row-major buffer index(x, y) = y * width + x.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any, Tuple, Union

import numpy as np

from ..errors import ConfigurationError, GridIndexError
from ..procgen.grammar import HEIGHTFIELD_SPEC
from ..procgen.noise import simple_noise

log = logging.getLogger(__name__)

Coordinate = Union[float, np.ndarray]


@dataclass(frozen=True)
class HeightfieldOptions:
    width: int = 256
    height: int = 256
    use_noise: bool = False
    amplitude: float = 1.0
    frequency: float = 0.1

    def __post_init__(self):
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        HEIGHTFIELD_SPEC.resolve(asdict(self))

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "HeightfieldOptions":
        return cls(**HEIGHTFIELD_SPEC.resolve(values))


def grid_uv(size: int) -> np.ndarray:
    """UV coordinate of each texel along one axis; a single texel sits at 0.5."""
    if size > 1:
        return np.arange(size, dtype=np.float64) / (size - 1)
    return np.full(size, 0.5)


def bilinear_sample(data: np.ndarray, u: Coordinate, v: Coordinate) -> np.ndarray:
    """
    Sample a 2D grid at continuous UV in [0, 1]^2.

    UV is clamped to the unit square and the four neighbouring texels are
    clamped to the grid edge before interpolation.

    Args:
        data: (rows, cols) grid
        u, v: Scalars or arrays of matching shape

    Returns:
        Interpolated values (float64), same shape as u/v
    """
    rows, cols = data.shape
    x = np.clip(np.asarray(u, dtype=np.float64), 0.0, 1.0) * (cols - 1)
    y = np.clip(np.asarray(v, dtype=np.float64), 0.0, 1.0) * (rows - 1)

    x0 = np.floor(x).astype(np.intp)
    y0 = np.floor(y).astype(np.intp)
    x1 = np.minimum(cols - 1, x0 + 1)
    y1 = np.minimum(rows - 1, y0 + 1)
    tx = x - x0
    ty = y - y0

    h00 = data[y0, x0]
    h10 = data[y0, x1]
    h01 = data[y1, x0]
    h11 = data[y1, x1]

    hx0 = h00 * (1.0 - tx) + h10 * tx
    hx1 = h01 * (1.0 - tx) + h11 * tx
    return hx0 * (1.0 - ty) + hx1 * ty


class HeightfieldGrid:
    """
    Mutable elevation grid.

    Created once (or on reseed) and mutated in place only by the sculpt
    engine. Index access is strict: out-of-range coordinates raise
    GridIndexError instead of being clamped.
    """

    def __init__(
        self,
        width: int,
        height: int,
        use_noise: bool = False,
        amplitude: float = 1.0,
        frequency: float = 0.1
    ):
        options = HeightfieldOptions(
            width=width, height=height, use_noise=use_noise,
            amplitude=amplitude, frequency=frequency
        )
        self.width = int(options.width)
        self.height = int(options.height)
        self.data = np.zeros((self.height, self.width), dtype=np.float32)

        if options.use_noise:
            self.fill_with_noise(options.amplitude, options.frequency)

        log.debug(
            "Heightfield %dx%d created (noise=%s)",
            self.width, self.height, options.use_noise
        )

    @classmethod
    def from_options(cls, options: Union[HeightfieldOptions, Dict[str, Any]]) -> "HeightfieldGrid":
        if not isinstance(options, HeightfieldOptions):
            options = HeightfieldOptions.from_dict(options)
        return cls(
            options.width, options.height, options.use_noise,
            options.amplitude, options.frequency
        )

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def buffer(self) -> np.ndarray:
        """Flat row-major view of the elevation data."""
        return self.data.reshape(-1)

    def index(self, x: int, y: int) -> int:
        self._check(x, y)
        return y * self.width + x

    def get_height(self, x: int, y: int) -> float:
        self._check(x, y)
        return float(self.data[y, x])

    def set_height(self, x: int, y: int, value: float) -> None:
        self._check(x, y)
        self.data[y, x] = value

    def _check(self, x, y):
        for name, value, limit in (("x", x, self.width), ("y", y, self.height)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise GridIndexError(f"{name} must be an integer index, got {value!r}")
            if not 0 <= value < limit:
                raise GridIndexError(
                    f"{name}={value} outside heightfield {self.width}x{self.height}"
                )

    def fill_with_noise(self, amplitude: float, frequency: float) -> None:
        """Overwrite every texel with closed-form noise scaled by amplitude."""
        ys, xs = np.mgrid[0:self.height, 0:self.width]
        self.data[:] = simple_noise(xs, ys, frequency) * amplitude

    def sample(self, u: Coordinate, v: Coordinate):
        """Bilinear height at UV; returns a float for scalar input."""
        result = bilinear_sample(self.data, u, v)
        if result.ndim == 0:
            return float(result)
        return result

    def copy(self) -> "HeightfieldGrid":
        clone = HeightfieldGrid.__new__(HeightfieldGrid)
        clone.width = self.width
        clone.height = self.height
        clone.data = self.data.copy()
        return clone

    # ------------------------------------------------------------------
    # World / UV mapping
    # ------------------------------------------------------------------

    @property
    def world_extent(self) -> Tuple[float, float]:
        """World-space (x, z) size of the surface, one unit per texel step."""
        return float(self.width - 1), float(self.height - 1)

    def uv_to_world(self, u: Coordinate, v: Coordinate):
        """Affine map of UV to world (x, z), centred on the origin."""
        world_w, world_h = self.world_extent
        return (np.asarray(u) - 0.5) * world_w, (np.asarray(v) - 0.5) * world_h

    def world_to_uv(self, world_x: float, world_z: float) -> Tuple[float, float]:
        world_w, world_h = self.world_extent
        u = world_x / world_w + 0.5 if world_w != 0 else 0.5
        v = world_z / world_h + 0.5 if world_h != 0 else 0.5
        return u, v

    def sample_height_at_world(self, world_x: float, world_z: float) -> float:
        u, v = self.world_to_uv(world_x, world_z)
        return self.sample(u, v)

    def pick_to_index(self, u: float, v: float) -> Tuple[int, int]:
        """
        Map a picked surface UV to grid indices.

        Picked V runs bottom-to-top while grid rows run top-to-bottom,
        so V is flipped. Picks are clamped to the grid.
        """
        if not (np.isfinite(u) and np.isfinite(v)):
            raise ConfigurationError(f"picked UV must be finite, got ({u!r}, {v!r})")
        x = int(np.floor(u * (self.width - 1)))
        y = int(np.floor((1.0 - v) * (self.height - 1)))
        return (
            max(0, min(self.width - 1, x)),
            max(0, min(self.height - 1, y)),
        )
