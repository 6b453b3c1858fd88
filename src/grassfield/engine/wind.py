"""
Wind shading uniforms.

Wind is an explicit value handed to the renderer with each frame rather
than global state. WindClock turns caller-supplied timestamps into wind
time, holding it still while a sculpt stroke is in progress.
"""

from dataclasses import dataclass, asdict, replace
from typing import Dict, Any, Optional

from ..procgen.grammar import WIND_SPEC


@dataclass(frozen=True)
class WindConfig:
    wind_strength: float = 0.25
    wind_frequency: float = 1.5
    gust_strength: float = 0.35
    grass_variation: float = 1.0
    time: float = 0.0

    def __post_init__(self):
        WIND_SPEC.resolve(asdict(self))

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "WindConfig":
        return cls(**WIND_SPEC.resolve(values))

    def at(self, time: float) -> "WindConfig":
        return replace(self, time=time)

    def as_uniforms(self) -> Dict[str, float]:
        return {
            "uWindStrength": self.wind_strength,
            "uWindFrequency": self.wind_frequency,
            "uGustStrength": self.gust_strength,
            "uGrassVariation": self.grass_variation,
            "uTime": self.time,
        }


class WindClock:
    """Elapsed wind time in seconds, excluding paused intervals."""

    def __init__(self, start: float = 0.0):
        self.start = start
        self.paused_total = 0.0
        self.paused_since: Optional[float] = None

    @property
    def paused(self) -> bool:
        return self.paused_since is not None

    def pause(self, now: float) -> None:
        if self.paused_since is None:
            self.paused_since = now

    def resume(self, now: float) -> None:
        if self.paused_since is not None:
            self.paused_total += now - self.paused_since
            self.paused_since = None

    def elapsed(self, now: float) -> float:
        paused = self.paused_total
        if self.paused_since is not None:
            paused += now - self.paused_since
        return now - self.start - paused
