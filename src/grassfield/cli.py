"""
Command line entry point.

Builds a terrain from settings, replays an optional list of brush strokes,
rebuilds vegetation and writes the result to an .npz archive plus a JSON
patch manifest.

Stroke files are JSON lists of objects:
    [{"u": 0.5, "v": 0.5, "mode": "raise", "secondary": false, "repeat": 4}, ...]
"""

import argparse
import json
import logging
import math
import numbers
from pathlib import Path
from typing import Dict, Any, List, Optional

import numpy as np
from tqdm import tqdm

from .config import Settings, load_settings
from .engine import TerrainComposer, BrushMode
from .errors import ConfigurationError
from .logging_config import setup_logging

log = logging.getLogger(__name__)

_STROKE_KEYS = {"u", "v", "mode", "secondary", "repeat"}


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def load_strokes(path: Path) -> List[Dict[str, Any]]:
    """
    Read and validate a strokes file.

    Raises:
        ConfigurationError: naming the first malformed stroke
    """
    with open(path, 'r') as f:
        try:
            strokes = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{path}: invalid JSON: {e}") from e
    if not isinstance(strokes, list):
        raise ConfigurationError(f"{path}: strokes must be a JSON list")
    for i, stroke in enumerate(strokes):
        if not isinstance(stroke, dict) or "u" not in stroke or "v" not in stroke:
            raise ConfigurationError(f"{path}: stroke {i} needs 'u' and 'v'")
        unknown = sorted(set(stroke) - _STROKE_KEYS)
        if unknown:
            raise ConfigurationError(f"{path}: stroke {i} has unknown keys {unknown}")
        for key in ("u", "v"):
            if not _is_number(stroke[key]):
                raise ConfigurationError(f"{path}: stroke {i} {key} must be a finite number, got {stroke[key]!r}")
        if stroke.get("mode") is not None:
            try:
                BrushMode(stroke["mode"])
            except ValueError:
                raise ConfigurationError(
                    f"{path}: stroke {i} has unknown brush mode {stroke['mode']!r}"
                ) from None
        if not isinstance(stroke.get("secondary", False), bool):
            raise ConfigurationError(f"{path}: stroke {i} secondary must be true or false")
        repeat = stroke.get("repeat", 1)
        if isinstance(repeat, bool) or not isinstance(repeat, int) or repeat < 1:
            raise ConfigurationError(f"{path}: stroke {i} repeat must be a positive integer, got {repeat!r}")
    return strokes


def replay_strokes(composer: TerrainComposer, strokes: List[Dict[str, Any]]) -> int:
    """Apply every stroke as one continuous gesture; returns the number of dabs."""
    dabs = 0
    composer.begin_stroke()
    for stroke in tqdm(strokes, desc="Sculpting", disable=not strokes):
        for _ in range(stroke.get("repeat", 1)):
            composer.stroke(
                stroke["u"], stroke["v"],
                mode=stroke.get("mode"),
                secondary=bool(stroke.get("secondary", False))
            )
            dabs += 1
    composer.end_stroke()
    return dabs


def export(composer: TerrainComposer, output: Path) -> Path:
    """Write heights, density and the live instance prefix; returns the manifest path."""
    placement = composer.placement
    output.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(
        output,
        heights=composer.heightfield.data,
        density=composer.density.data,
        **placement.instances.live()
    )

    manifest = {
        "settings": composer.settings.to_dict(),
        "summary": placement.summary(),
        "density_coverage": composer.density.coverage(),
        "patches": [
            {
                "bounds": [patch.x0, patch.y0, patch.x1, patch.y1],
                "center": list(patch.center),
                "bounding_radius": patch.bounding_radius,
                "start": patch.start,
                "instance_count": patch.instance_count,
            }
            for patch in placement.patches
        ],
    }
    manifest_path = output.with_suffix(".patches.json")
    with open(manifest_path, 'w') as f:
        json.dump(manifest, f, indent=2)
    return manifest_path


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for terrain + vegetation generation."""

    parser = argparse.ArgumentParser(description="Sculpt a terrain and scatter vegetation over it")
    parser.add_argument("--output", type=str, required=True, help="Output .npz path")
    parser.add_argument("--settings", type=str, default=None, help="Settings JSON file")
    parser.add_argument("--strokes", type=str, default=None, help="Brush strokes JSON file")
    parser.add_argument("--width", type=int, default=None, help="Override grid width")
    parser.add_argument("--height", type=int, default=None, help="Override grid height")
    parser.add_argument("--resolution", type=int, default=None, help="Override density resolution")
    parser.add_argument("--max-instances", type=int, default=None, help="Override instance capacity")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs here")

    args = parser.parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        settings = load_settings(args.settings) if args.settings else Settings()

        grid = {k: v for k, v in (("width", args.width), ("height", args.height)) if v is not None}
        changes: Dict[str, Any] = {}
        if grid:
            changes["grid"] = grid
        if args.resolution is not None:
            changes["density"] = {"resolution": args.resolution}
        if args.max_instances is not None:
            changes["placement"] = {"max_instances": args.max_instances}
        if changes:
            settings = settings.updated(**changes)

        composer = TerrainComposer(settings)
        strokes = load_strokes(Path(args.strokes)) if args.strokes else []
    except ConfigurationError as e:
        log.error("Invalid configuration: %s", e)
        return 2

    if strokes:
        dabs = replay_strokes(composer, strokes)
        log.info("Applied %d brush dabs", dabs)
    else:
        composer.rebuild()

    manifest_path = export(composer, Path(args.output))

    summary = composer.placement.summary()
    print(f"Instances: {summary['count']} / {summary['capacity']}")
    print(f"Patches: {summary['patches']}")
    print(f"Scale factor: {summary['scale_factor']:.4f}")
    print(f"Saved to: {args.output}")
    print(f"Patch manifest: {manifest_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
