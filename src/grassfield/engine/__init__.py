"""
Terrain sculpting and vegetation placement engine.

Data flows one way: the heightfield is sculpted in place, the density
builder reads it, and the placer reads both to produce instances grouped
into LOD patches.
"""

from .heightfield import HeightfieldGrid, HeightfieldOptions, bilinear_sample
from .sculpt import SculptEngine, BrushConfig, BrushMode
from .density import DensityFieldBuilder, DensityField, DensityParams, density_at_uv
from .placement import InstancePlacer, InstanceBuffer, Patch, PlacementParams, PlacementResult
from .wind import WindConfig, WindClock
from .terrain_composer import TerrainComposer, RenderFrame

__all__ = [
    "HeightfieldGrid", "HeightfieldOptions", "bilinear_sample",
    "SculptEngine", "BrushConfig", "BrushMode",
    "DensityFieldBuilder", "DensityField", "DensityParams", "density_at_uv",
    "InstancePlacer", "InstanceBuffer", "Patch", "PlacementParams", "PlacementResult",
    "WindConfig", "WindClock",
    "TerrainComposer", "RenderFrame",
]
