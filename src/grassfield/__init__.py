"""
Procedural terrain sculpting and vegetation scattering.

- Heightfield seeding, sampling and radial sculpting
- Height/slope driven vegetation density fields
- Deterministic, capacity-bounded instance placement grouped into LOD patches
"""

from .engine import (
    HeightfieldGrid, SculptEngine, BrushConfig, BrushMode,
    DensityFieldBuilder, DensityField, DensityParams,
    InstancePlacer, PlacementParams, PlacementResult, Patch,
    WindConfig, TerrainComposer
)
from .config import Settings, load_settings
from .errors import GrassfieldError, ConfigurationError, GridIndexError

__version__ = "0.1.0"

__all__ = [
    "HeightfieldGrid",
    "SculptEngine",
    "BrushConfig",
    "BrushMode",
    "DensityFieldBuilder",
    "DensityField",
    "DensityParams",
    "InstancePlacer",
    "PlacementParams",
    "PlacementResult",
    "Patch",
    "WindConfig",
    "TerrainComposer",
    "Settings",
    "load_settings",
    "GrassfieldError",
    "ConfigurationError",
    "GridIndexError",
]
