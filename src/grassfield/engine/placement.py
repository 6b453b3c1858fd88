"""
Capacity-aware vegetation instance placement.

Turns a density field into a fixed-capacity instance buffer grouped into
spatial patches for level-of-detail decisions.

Placement order is part of the output contract: patches row-major, texels
row-major inside each patch, candidates within a texel by index. Identical
inputs always give identical buffers in identical order.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Any, List, Tuple, Union

import numpy as np

from ..errors import ConfigurationError
from ..procgen.grammar import PLACEMENT_SPEC
from ..procgen.hashing import HashFunction, trig_hash
from .density import DensityField
from .heightfield import HeightfieldGrid, bilinear_sample

log = logging.getLogger(__name__)

MAX_PER_TEXEL = 6

# Patches are ceil(W / PATCH_GRID) x ceil(H / PATCH_GRID) texels, so a field is
# split into at most PATCH_GRID patches per axis; fields whose size is not a
# multiple get fewer (17x17 texels give 9x9 patches, 50x50 give 13x13).
PATCH_GRID = 16

# Seed of the stochastic-rounding draw. Attribute seeds are integers >= 1,
# so the fractional rounding seed never collides with them.
ROUNDING_SEED = 0.37

# Jitter keeps instances this far (in texel units) from the cell border
JITTER_MARGIN = 0.05
MAX_TILT = 0.2

# Per-attribute seed offsets; candidate i of a texel uses 1 + i * _SEED_STRIDE + offset
_JITTER_U, _JITTER_V, _YAW, _TILT_X, _TILT_Z, _SCALE_X, _SCALE_Y = range(7)
_PHASE, _STIFFNESS, _COLOR, _HEIGHT = range(7, 11)
_SEED_STRIDE = 16


@dataclass(frozen=True)
class PlacementParams:
    height_scale: float = 1.0
    max_instances: int = 50_000

    def __post_init__(self):
        if isinstance(self.max_instances, bool) or not isinstance(self.max_instances, (int, np.integer)):
            raise ConfigurationError(
                f"max_instances must be an integer, got {self.max_instances!r}"
            )
        PLACEMENT_SPEC.resolve({"height_scale": self.height_scale, "max_instances": self.max_instances})

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "PlacementParams":
        return cls(**PLACEMENT_SPEC.resolve(values))


class InstanceBuffer:
    """
    Fixed-capacity instance attribute storage.

    Arrays are sized to `capacity` so a renderer can allocate once and only
    upload the live prefix `[:count]`.

    Attributes:
        positions: (capacity, 3) world x, y, z
        rotations: (capacity, 3) Euler x (tilt), y (yaw), z (tilt) in radians
        scales: (capacity, 3) non-uniform scale
        phase_offsets, stiffness, color_factors, height_factors: (capacity,)
            shading scalars
        source_uv: (capacity, 2) jittered UV each instance was placed at
        texels: (capacity, 2) owning density texel (x, y)
    """

    def __init__(self, capacity: int):
        self.capacity = max(0, int(capacity))
        self.count = 0

        self.positions = np.zeros((self.capacity, 3), dtype=np.float32)
        self.rotations = np.zeros((self.capacity, 3), dtype=np.float32)
        self.scales = np.ones((self.capacity, 3), dtype=np.float32)
        self.phase_offsets = np.zeros(self.capacity, dtype=np.float32)
        self.stiffness = np.zeros(self.capacity, dtype=np.float32)
        self.color_factors = np.zeros(self.capacity, dtype=np.float32)
        self.height_factors = np.zeros(self.capacity, dtype=np.float32)
        self.source_uv = np.zeros((self.capacity, 2), dtype=np.float64)
        self.texels = np.zeros((self.capacity, 2), dtype=np.int32)

    def __len__(self) -> int:
        return self.count

    def live(self) -> Dict[str, np.ndarray]:
        """Views of every attribute array trimmed to the populated prefix."""
        n = self.count
        return {
            "positions": self.positions[:n],
            "rotations": self.rotations[:n],
            "scales": self.scales[:n],
            "phase_offsets": self.phase_offsets[:n],
            "stiffness": self.stiffness[:n],
            "color_factors": self.color_factors[:n],
            "height_factors": self.height_factors[:n],
            "source_uv": self.source_uv[:n],
            "texels": self.texels[:n],
        }


@dataclass
class Patch:
    """
    Rectangular block of density texels and its slice of the instance buffer.

    `x0:x1`, `y0:y1` are the density texel bounds (end exclusive); the
    patch's instances are `buffer[start:start + instance_count]`.
    """

    x0: int
    y0: int
    x1: int
    y1: int
    center: Tuple[float, float, float]
    bounding_radius: float
    start: int
    instance_count: int


@dataclass
class PlacementResult:
    instances: InstanceBuffer
    patches: List[Patch] = field(default_factory=list)
    scale_factor: float = 1.0

    @property
    def count(self) -> int:
        return self.instances.count

    def summary(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "capacity": self.instances.capacity,
            "patches": len(self.patches),
            "scale_factor": self.scale_factor,
        }


class InstancePlacer:
    """
    Places instances over a density field.

    The procedural hash is injected so it can be swapped without touching
    the placement logic.
    """

    def __init__(
        self,
        hash_fn: HashFunction = trig_hash,
        max_per_texel: int = MAX_PER_TEXEL,
        patch_grid: int = PATCH_GRID
    ):
        if max_per_texel <= 0:
            raise ConfigurationError(f"max_per_texel must be > 0, got {max_per_texel}")
        if patch_grid <= 0:
            raise ConfigurationError(f"patch_grid must be > 0, got {patch_grid}")
        self.hash_fn = hash_fn
        self.max_per_texel = max_per_texel
        self.patch_grid = patch_grid

    def texel_counts(self, density: DensityField, max_instances: int) -> Tuple[np.ndarray, float]:
        """
        Instance count per density texel before the running capacity clamp.

        Every texel's expectation is scaled by the same factor when the field
        as a whole would exceed `max_instances`; fractional parts are resolved
        by comparing a per-texel hash against the fraction.

        Returns:
            (counts array shaped like the density grid, scale factor)
        """
        expected = density.data.astype(np.float64) * self.max_per_texel
        total_expected = float(np.sum(expected))
        scale_factor = min(1.0, max_instances / total_expected) if total_expected > 0 else 1.0

        scaled = expected * scale_factor
        whole = np.floor(scaled)
        fraction = scaled - whole

        ys, xs = np.mgrid[0:density.height, 0:density.width]
        extra = self.hash_fn(xs, ys, ROUNDING_SEED) < fraction
        return whole.astype(np.int64) + extra.astype(np.int64), scale_factor

    def patch_layout(self, density: DensityField) -> Tuple[int, int, int, int]:
        """Patch size in texels and number of patch columns/rows actually covering the grid."""
        patch_w = math.ceil(density.width / self.patch_grid)
        patch_h = math.ceil(density.height / self.patch_grid)
        return patch_w, patch_h, math.ceil(density.width / patch_w), math.ceil(density.height / patch_h)

    def place(
        self,
        heightfield: HeightfieldGrid,
        density: DensityField,
        params: Union[PlacementParams, Dict[str, Any]]
    ) -> PlacementResult:
        """
        Place instances.

        Args:
            heightfield: Surface the instances sit on
            density: Density field to sample
            params: PlacementParams or dict with height_scale, max_instances

        Returns:
            PlacementResult with a buffer of capacity max(0, max_instances)
            and the non-empty patches in placement order
        """
        if not isinstance(params, PlacementParams):
            params = PlacementParams.from_dict(params)
        if density.width <= 0 or density.height <= 0:
            raise ConfigurationError(
                f"density field must be non-empty, got {density.width}x{density.height}"
            )

        capacity = int(params.max_instances)
        buffer = InstanceBuffer(capacity)
        if capacity <= 0:
            return PlacementResult(instances=buffer)

        cols, rows = density.width, density.height
        counts, scale_factor = self.texel_counts(density, capacity)

        patch_w, patch_h, patch_cols, _ = self.patch_layout(density)
        ys, xs = np.mgrid[0:rows, 0:cols]
        patch_ids = ((ys // patch_h) * patch_cols + (xs // patch_w)).ravel()
        order = np.lexsort((xs.ravel(), ys.ravel(), patch_ids))

        # Hard ceiling on the running total in traversal order
        running = np.minimum(np.cumsum(counts.ravel()[order]), capacity)
        placed = np.diff(running, prepend=0)
        total = int(running[-1])

        texel = np.repeat(order, placed)
        candidate = np.arange(total) - np.repeat(running - placed, placed)
        tx = texel % cols
        ty = texel // cols

        def draw(offset):
            return self.hash_fn(tx, ty, 1 + candidate * _SEED_STRIDE + offset)

        span = 1.0 - 2.0 * JITTER_MARGIN
        u = (tx + JITTER_MARGIN + span * draw(_JITTER_U)) / cols
        v = (ty + JITTER_MARGIN + span * draw(_JITTER_V)) / rows

        world_x, world_z = heightfield.uv_to_world(u, v)
        world_y = bilinear_sample(heightfield.data, u, v) * params.height_scale
        positions = np.stack([world_x, world_y, world_z], axis=1)

        buffer.count = total
        buffer.positions[:total] = positions
        buffer.rotations[:total, 0] = (draw(_TILT_X) - 0.5) * MAX_TILT
        buffer.rotations[:total, 1] = draw(_YAW) * 2.0 * math.pi
        buffer.rotations[:total, 2] = (draw(_TILT_Z) - 0.5) * MAX_TILT
        buffer.scales[:total, 0] = 0.6 + draw(_SCALE_X) * 0.5
        buffer.scales[:total, 1] = 0.8 + draw(_SCALE_Y) * 0.6
        buffer.phase_offsets[:total] = draw(_PHASE) * 2.0 * math.pi
        buffer.stiffness[:total] = 0.6 + draw(_STIFFNESS) * 0.4
        buffer.color_factors[:total] = 0.85 + draw(_COLOR) * 0.3
        buffer.height_factors[:total] = 0.75 + draw(_HEIGHT) * 0.5
        buffer.source_uv[:total] = np.stack([u, v], axis=1)
        buffer.texels[:total] = np.stack([tx, ty], axis=1)

        patches = self._collect_patches(
            heightfield, density, patch_ids[texel], positions, patch_w, patch_h, patch_cols
        )

        result = PlacementResult(instances=buffer, patches=patches, scale_factor=scale_factor)
        log.debug("Placed instances: %s", result.summary())
        return result

    def _collect_patches(
        self,
        heightfield: HeightfieldGrid,
        density: DensityField,
        instance_patch: np.ndarray,
        positions: np.ndarray,
        patch_w: int,
        patch_h: int,
        patch_cols: int
    ) -> List[Patch]:
        """Group the placed instances by patch; empty patches are left out."""
        if instance_patch.size == 0:
            return []

        # Traversal is patch-major, so each patch owns one contiguous run
        ids, starts, sizes = np.unique(instance_patch, return_index=True, return_counts=True)
        sums = np.stack(
            [np.bincount(instance_patch, weights=positions[:, k]) for k in range(3)],
            axis=1
        )
        world_w, world_h = heightfield.world_extent

        patches = []
        for patch_id, start, size in zip(ids, starts, sizes):
            x0 = int(patch_id % patch_cols) * patch_w
            y0 = int(patch_id // patch_cols) * patch_h
            x1 = min(density.width, x0 + patch_w)
            y1 = min(density.height, y0 + patch_h)

            footprint_w = (x1 - x0) / density.width * world_w
            footprint_h = (y1 - y0) / density.height * world_h
            center = sums[patch_id] / size

            patches.append(Patch(
                x0=x0, y0=y0, x1=x1, y1=y1,
                center=(float(center[0]), float(center[1]), float(center[2])),
                bounding_radius=0.5 * math.hypot(footprint_w, footprint_h),
                start=int(start),
                instance_count=int(size),
            ))
        return patches
