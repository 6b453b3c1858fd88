"""
Procedural building blocks.

- noise: closed-form trigonometric noise for seeding and density
- hashing: the named per-instance attribute hash
- grammar: parameter specifications shared by the engine stages
"""

from . import noise
from .hashing import HashFunction, trig_hash
from .grammar import (
    ParameterSpec, HEIGHTFIELD_SPEC, BRUSH_SPEC, DENSITY_SPEC,
    PLACEMENT_SPEC, WIND_SPEC
)

__all__ = [
    "noise",
    "HashFunction",
    "trig_hash",
    "ParameterSpec",
    "HEIGHTFIELD_SPEC",
    "BRUSH_SPEC",
    "DENSITY_SPEC",
    "PLACEMENT_SPEC",
    "WIND_SPEC",
]
