"""
Radial sculpting brush.

Raises, lowers or smooths a circular neighbourhood of a heightfield in place.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Tuple, Union

import numpy as np
from scipy import ndimage

from ..errors import ConfigurationError
from ..procgen.grammar import BRUSH_SPEC
from .heightfield import HeightfieldGrid

log = logging.getLogger(__name__)


class BrushMode(Enum):
    RAISE = "raise"
    LOWER = "lower"
    SMOOTH = "smooth"


@dataclass(frozen=True)
class BrushConfig:
    radius: float = 10.0
    intensity: float = 0.12
    mode: BrushMode = BrushMode.RAISE

    def __post_init__(self):
        if not isinstance(self.mode, BrushMode):
            try:
                object.__setattr__(self, "mode", BrushMode(self.mode))
            except ValueError:
                raise ConfigurationError(
                    f"unknown brush mode {self.mode!r}, expected one of "
                    f"{[m.value for m in BrushMode]}"
                ) from None
        BRUSH_SPEC.resolve({"radius": self.radius, "intensity": self.intensity})

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "BrushConfig":
        return cls(**BRUSH_SPEC.resolve(values))


def neighbor_average(data: np.ndarray) -> np.ndarray:
    """
    3x3 mean of every texel over the neighbours that exist in the grid.

    Edge texels divide by the number of in-grid neighbours actually sampled.
    """
    data = np.asarray(data, dtype=np.float64)
    sums = ndimage.uniform_filter(data, size=3, mode="constant", cval=0.0)
    counts = ndimage.uniform_filter(np.ones_like(data), size=3, mode="constant", cval=0.0)
    return sums / counts


class SculptEngine:
    """
    Applies radial brush strokes to a heightfield.

    Single-writer: callers serialize strokes and vegetation rebuilds.
    """

    def footprint(
        self,
        grid: HeightfieldGrid,
        center_x: float,
        center_y: float,
        radius: float
    ) -> List[Tuple[int, int, float]]:
        """
        Texels touched by a brush, row-major, as (x, y, falloff).

        Only the circle's bounding box clipped to the grid is scanned.
        A texel at exactly `radius` is included with falloff 0.
        """
        min_x = max(0, math.floor(center_x - radius))
        max_x = min(grid.width - 1, math.ceil(center_x + radius))
        min_y = max(0, math.floor(center_y - radius))
        max_y = min(grid.height - 1, math.ceil(center_y + radius))

        texels = []
        for y in range(min_y, max_y + 1):
            for x in range(min_x, max_x + 1):
                distance = math.hypot(x - center_x, y - center_y)
                if distance > radius:
                    continue
                falloff = max(0.0, 1.0 - distance / radius)
                texels.append((x, y, falloff))
        return texels

    def apply_brush(
        self,
        grid: HeightfieldGrid,
        center_x: float,
        center_y: float,
        config: Union[BrushConfig, Dict[str, Any]]
    ) -> int:
        """
        Apply one brush dab to `grid` in place.

        Args:
            grid: Heightfield to mutate
            center_x: Brush centre in grid columns
            center_y: Brush centre in grid rows
            config: BrushConfig or dict of brush parameters

        Returns:
            Number of texels inside the brush footprint
        """
        if not isinstance(config, BrushConfig):
            config = BrushConfig.from_dict(config)
        if not (math.isfinite(center_x) and math.isfinite(center_y)):
            raise ConfigurationError(
                f"brush centre must be finite, got ({center_x!r}, {center_y!r})"
            )

        texels = self.footprint(grid, center_x, center_y, config.radius)
        if not texels:
            return 0

        data = grid.data
        if config.mode is BrushMode.SMOOTH:
            # Targets come from the pre-stroke grid so texel order cannot matter.
            snapshot = data.astype(np.float64)
            targets = neighbor_average(snapshot)
            for x, y, falloff in texels:
                old = snapshot[y, x]
                data[y, x] = old + (targets[y, x] - old) * falloff
        elif config.mode is BrushMode.RAISE or config.mode is BrushMode.LOWER:
            sign = 1.0 if config.mode is BrushMode.RAISE else -1.0
            for x, y, falloff in texels:
                data[y, x] = float(data[y, x]) + config.intensity * falloff * sign
        else:
            raise ConfigurationError(f"unhandled brush mode {config.mode!r}")

        log.debug(
            "Brush %s at (%.2f, %.2f) r=%.2f touched %d texels",
            config.mode.value, center_x, center_y, config.radius, len(texels)
        )
        return len(texels)
