"""
Terrain session orchestration.

Owns the heightfield and wires sculpting, density and placement together:
heights change only through brush strokes, and every settings or height
change rebuilds density and placement from scratch.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple, Union

from .. import config
from .heightfield import HeightfieldGrid, HeightfieldOptions
from .sculpt import SculptEngine, BrushConfig, BrushMode
from .density import DensityFieldBuilder, DensityField
from .placement import InstancePlacer, PlacementResult
from .wind import WindConfig, WindClock

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderFrame:
    """Everything a renderer needs for one frame."""

    heightfield: HeightfieldGrid
    density: DensityField
    placement: PlacementResult
    wind: WindConfig


class TerrainComposer:
    """
    Interactive terrain + vegetation session.

    Not thread-safe: strokes, settings updates and rebuilds must be
    serialized by the caller.
    """

    def __init__(
        self,
        settings: Optional["config.Settings"] = None,
        heightfield: Optional[HeightfieldGrid] = None,
        placer: Optional[InstancePlacer] = None
    ):
        self.settings = settings or config.Settings()
        self.heightfield = heightfield or HeightfieldGrid.from_options(self.settings.grid)

        self.sculpt_engine = SculptEngine()
        self.density_builder = DensityFieldBuilder()
        self.placer = placer or InstancePlacer()
        self.wind_clock = WindClock()

        self.density: Optional[DensityField] = None
        self.placement: Optional[PlacementResult] = None

        self._stroke_active = False
        self._rebuild_pending = False

    # ------------------------------------------------------------------
    # Vegetation
    # ------------------------------------------------------------------

    def rebuild(self) -> PlacementResult:
        """Rebuild density and placement, replacing any previous output."""
        density = self.density_builder.build(self.heightfield, self.settings.density_params())
        placement = self.placer.place(self.heightfield, density, self.settings.placement)

        self.density = density
        self.placement = placement
        self._rebuild_pending = False

        log.info(
            "Vegetation rebuilt: density %dx%d, %s",
            density.width, density.height, placement.summary()
        )
        return placement

    def reseed(self, options: Union[HeightfieldOptions, Dict[str, Any], None] = None) -> PlacementResult:
        """Replace the heightfield with a freshly generated one and rebuild."""
        if options is not None:
            self.settings = self.settings.updated(grid=options)
        self.heightfield = HeightfieldGrid.from_options(self.settings.grid)
        return self.rebuild()

    def update_settings(self, **changes) -> Optional[PlacementResult]:
        """
        Apply settings changes (see Settings.updated).

        Vegetation is rebuilt unless only brush or wind settings changed.
        """
        self.settings = self.settings.updated(**changes)
        if set(changes) <= {"brush", "wind"}:
            return None
        if "grid" in changes:
            return self.reseed()
        return self.rebuild()

    # ------------------------------------------------------------------
    # Sculpting
    # ------------------------------------------------------------------

    @property
    def stroke_active(self) -> bool:
        return self._stroke_active

    def begin_stroke(self, now: Optional[float] = None) -> None:
        """Start a stroke; wind time is frozen until end_stroke."""
        if self._stroke_active:
            return
        self._stroke_active = True
        self._rebuild_pending = False
        if now is not None:
            self.wind_clock.pause(now)

    def stroke(
        self,
        u: float,
        v: float,
        mode: Union[BrushMode, str, None] = None,
        secondary: bool = False
    ) -> Tuple[int, int]:
        """
        Apply the brush at a picked surface UV.

        Smooth mode is used as-is; any other mode raises with the primary
        button and lowers with the secondary one.

        Returns:
            Grid (x, y) the brush was centred on
        """
        if not self._stroke_active:
            self.begin_stroke()

        brush = self.settings.brush
        if mode is not None:
            brush = BrushConfig(radius=brush.radius, intensity=brush.intensity, mode=mode)
        if brush.mode is not BrushMode.SMOOTH:
            direction = BrushMode.LOWER if secondary else BrushMode.RAISE
            brush = BrushConfig(radius=brush.radius, intensity=brush.intensity, mode=direction)
        mode = brush.mode

        x, y = self.heightfield.pick_to_index(u, v)
        self.sculpt_engine.apply_brush(self.heightfield, x, y, brush)
        self._rebuild_pending = True

        log.debug(
            "Stroke at (%d, %d) height=%.3f mode=%s",
            x, y, self.heightfield.get_height(x, y), mode.value
        )
        return x, y

    def end_stroke(self, now: Optional[float] = None) -> bool:
        """
        Finish a stroke.

        Returns:
            True if vegetation was rebuilt because heights changed
        """
        if not self._stroke_active:
            return False
        self._stroke_active = False
        if now is not None:
            self.wind_clock.resume(now)
        if self._rebuild_pending:
            self.rebuild()
            return True
        return False

    # ------------------------------------------------------------------
    # Rendering hand-off
    # ------------------------------------------------------------------

    def frame(self, now: float) -> RenderFrame:
        """Current output plus the wind uniforms for timestamp `now` (seconds)."""
        if self.placement is None or self.density is None:
            self.rebuild()
        wind = self.settings.wind.at(self.wind_clock.elapsed(now))
        return RenderFrame(
            heightfield=self.heightfield,
            density=self.density,
            placement=self.placement,
            wind=wind,
        )
