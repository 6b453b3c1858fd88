"""
Parameter specification for terrain and vegetation generation.

A ParameterSpec describes every parameter a stage accepts:
- min_val: Minimum allowed value (None = unbounded)
- max_val: Maximum allowed value (None = unbounded)
- default: Default value if not specified (None = optional)

Out-of-range values are rejected, never clamped.
"""

import numbers
from typing import Dict, Any, Tuple, Optional, List, Iterable

from ..errors import ConfigurationError


class ParameterSpec:
    """
    Specification for stage parameters with validation and defaults.
    """

    def __init__(
        self,
        params: Dict[str, Tuple[Optional[float], Optional[float], Any]],
        strictly_positive: Iterable[str] = ()
    ):
        """
        Initialize parameter specification.

        Args:
            params: Dict mapping param_name -> (min_val, max_val, default)
            strictly_positive: Names whose value must be > 0 rather than >= min_val
        """
        self.params = params
        self.strictly_positive = frozenset(strictly_positive)

    def _problems(self, values: Dict[str, Any]) -> List[str]:
        problems = []

        unknown = sorted(set(values) - set(self.params))
        for name in unknown:
            problems.append(f"unknown parameter: {name}")

        for param_name, (min_val, max_val, default) in self.params.items():
            value = values.get(param_name, default)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                if isinstance(default, numbers.Real) and not isinstance(default, bool):
                    problems.append(f"{param_name} must be a number, got {value!r}")
                continue
            if value != value:
                problems.append(f"{param_name} is NaN")
                continue
            if param_name in self.strictly_positive and value <= 0:
                problems.append(f"{param_name} must be > 0, got {value}")
            if min_val is not None and value < min_val:
                problems.append(f"{param_name} must be >= {min_val}, got {value}")
            if max_val is not None and value > max_val:
                problems.append(f"{param_name} must be <= {max_val}, got {value}")

        return problems

    def validate(self, values: Dict[str, Any]) -> bool:
        """Check that all supplied parameters are known and in valid ranges."""
        return not self._problems(values)

    def resolve(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fill defaults and validate.

        Raises:
            ConfigurationError: listing every offending parameter
        """
        problems = self._problems(values)
        if problems:
            raise ConfigurationError("; ".join(problems))

        result = {}
        for param_name, (_, _, default) in self.params.items():
            result[param_name] = values.get(param_name, default)
        return result

    def get_param_names(self) -> List[str]:
        """Get list of parameter names."""
        return list(self.params.keys())

    def get_param_ranges(self) -> Dict[str, Tuple[Optional[float], Optional[float]]]:
        """Get parameter ranges (min, max) for each parameter."""
        return {name: (min_val, max_val) for name, (min_val, max_val, _) in self.params.items()}


HEIGHTFIELD_SPEC = ParameterSpec(
    {
        "width": (1, None, 256),
        "height": (1, None, 256),
        "use_noise": (None, None, False),
        "amplitude": (None, None, 1.0),
        "frequency": (None, None, 0.1),
    },
    strictly_positive=["width", "height"],
)

BRUSH_SPEC = ParameterSpec(
    {
        "radius": (None, None, 10.0),
        "intensity": (None, None, 0.12),
        "mode": (None, None, "raise"),
    },
    strictly_positive=["radius"],
)

DENSITY_SPEC = ParameterSpec(
    {
        "min_height": (None, None, -1.0),
        "max_height": (None, None, 4.0),
        "max_slope": (None, None, 0.35),
        "resolution": (None, None, None),
    },
    strictly_positive=["resolution"],
)

PLACEMENT_SPEC = ParameterSpec(
    {
        "height_scale": (None, None, 1.0),
        "max_instances": (None, None, 50_000),
    }
)

WIND_SPEC = ParameterSpec(
    {
        "wind_strength": (0.0, None, 0.25),
        "wind_frequency": (0.0, None, 1.5),
        "gust_strength": (0.0, None, 0.35),
        "grass_variation": (0.0, None, 1.0),
        "time": (None, None, 0.0),
    }
)
