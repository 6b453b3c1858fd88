"""
Session settings.

Aggregates every stage's parameters with the interactive defaults and
loads/saves them as JSON:

    {
        "grid": {"width": 256, "height": 256, "use_noise": true, ...},
        "brush": {"radius": 10.0, "intensity": 0.12, "mode": "raise"},
        "density": {"min_height": -1.0, "max_height": 4.0, "max_slope": 0.35, "resolution": null},
        "placement": {"height_scale": 2.5, "max_instances": 400000},
        "wind": {"wind_strength": 0.25, ...}
    }

A null density resolution means twice the larger grid dimension.
"""

import json
import logging
from dataclasses import dataclass, field, asdict, replace
from pathlib import Path
from typing import Dict, Any, Union

from .errors import ConfigurationError
from .engine.heightfield import HeightfieldOptions
from .engine.sculpt import BrushConfig
from .engine.density import DensityParams
from .engine.placement import PlacementParams
from .engine.wind import WindConfig

log = logging.getLogger(__name__)

DENSITY_RESOLUTION_FACTOR = 2

_SECTIONS = {
    "grid": HeightfieldOptions,
    "brush": BrushConfig,
    "density": DensityParams,
    "placement": PlacementParams,
    "wind": WindConfig,
}


def _section_dict(value) -> Dict[str, Any]:
    values = asdict(value)
    if isinstance(value, BrushConfig):
        values["mode"] = value.mode.value
    return values


@dataclass(frozen=True)
class Settings:
    grid: HeightfieldOptions = field(
        default_factory=lambda: HeightfieldOptions(
            width=256, height=256, use_noise=True, amplitude=1.2, frequency=0.08
        )
    )
    brush: BrushConfig = field(default_factory=BrushConfig)
    density: DensityParams = field(default_factory=DensityParams)
    placement: PlacementParams = field(
        default_factory=lambda: PlacementParams(height_scale=2.5, max_instances=400_000)
    )
    wind: WindConfig = field(default_factory=WindConfig)

    def density_params(self) -> DensityParams:
        """Density parameters with the automatic resolution filled in."""
        if self.density.resolution is not None:
            return self.density
        resolution = max(self.grid.width, self.grid.height) * DENSITY_RESOLUTION_FACTOR
        return replace(self.density, resolution=resolution)

    def updated(self, **changes: Union[Dict[str, Any], Any]) -> "Settings":
        """
        Copy with some sections replaced.

        Each change is either a section instance or a dict of fields merged
        into the current section.
        """
        resolved = {}
        for name, value in changes.items():
            if name not in _SECTIONS:
                raise ConfigurationError(f"unknown settings section: {name}")
            section_cls = _SECTIONS[name]
            if not isinstance(value, section_cls):
                merged = _section_dict(getattr(self, name))
                merged.update(value)
                value = section_cls.from_dict(merged)
            resolved[name] = value
        return replace(self, **resolved)

    def to_dict(self) -> Dict[str, Any]:
        return {name: _section_dict(getattr(self, name)) for name in _SECTIONS}

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Settings":
        unknown = sorted(set(values) - set(_SECTIONS))
        if unknown:
            raise ConfigurationError(f"unknown settings sections: {', '.join(unknown)}")
        return cls().updated(**values)


def load_settings(path: Union[str, Path]) -> Settings:
    """Load settings from a JSON file; missing sections/fields keep their defaults."""
    path = Path(path)
    with open(path, 'r') as f:
        values = json.load(f)
    if not isinstance(values, dict):
        raise ConfigurationError(f"{path}: settings must be a JSON object")
    settings = Settings.from_dict(values)
    log.info("Loaded settings from %s", path)
    return settings


def save_settings(settings: Settings, path: Union[str, Path]) -> None:
    with open(path, 'w') as f:
        json.dump(settings.to_dict(), f, indent=2)
