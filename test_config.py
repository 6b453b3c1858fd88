"""
Tests for settings, parameter specifications and logging setup.
"""

import json
import logging

import pytest

from grassfield.config import Settings, load_settings, save_settings
from grassfield.engine.sculpt import BrushMode
from grassfield.errors import ConfigurationError
from grassfield.logging_config import setup_logging
from grassfield.procgen.grammar import ParameterSpec


def test_default_settings():
    settings = Settings()
    assert (settings.grid.width, settings.grid.height) == (256, 256)
    assert settings.grid.use_noise
    assert settings.brush.radius == 10.0
    assert settings.brush.mode is BrushMode.RAISE
    assert settings.placement.max_instances == 400_000
    assert settings.placement.height_scale == 2.5
    assert settings.density.resolution is None
    assert settings.density_params().resolution == 512


def test_updated_merges_sections():
    settings = Settings().updated(grid={"width": 32, "height": 16}, density={"resolution": 40})
    assert (settings.grid.width, settings.grid.height) == (32, 16)
    assert settings.grid.amplitude == 1.2
    assert settings.density_params().resolution == 40
    assert settings.density.min_height == -1.0


def test_updated_rejects_bad_values():
    with pytest.raises(ConfigurationError):
        Settings().updated(terrain={"width": 10})
    with pytest.raises(ConfigurationError):
        Settings().updated(grid={"depth": 10})
    with pytest.raises(ConfigurationError):
        Settings().updated(brush={"radius": -1})
    with pytest.raises(ConfigurationError):
        Settings().updated(density={"resolution": 0})


def test_settings_json_round_trip(tmp_path):
    settings = Settings().updated(brush={"mode": "smooth", "radius": 4.0}, wind={"gust_strength": 0.1})
    path = tmp_path / "settings.json"
    save_settings(settings, path)

    with open(path) as f:
        raw = json.load(f)
    assert raw["brush"]["mode"] == "smooth"

    assert load_settings(path) == settings


def test_load_settings_rejects_unknown_sections(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"grid": {"width": 8}, "camera": {}}))
    with pytest.raises(ConfigurationError):
        load_settings(path)

    path.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_parameter_spec_validation():
    spec = ParameterSpec(
        {"radius": (None, None, 1.0), "strength": (0.0, 1.0, 0.5)},
        strictly_positive=["radius"]
    )
    assert spec.validate({"radius": 2.0, "strength": 1.0})
    assert not spec.validate({"radius": 0.0})
    assert not spec.validate({"strength": 1.5})
    assert not spec.validate({"colour": 1})
    assert spec.resolve({}) == {"radius": 1.0, "strength": 0.5}
    assert spec.get_param_names() == ["radius", "strength"]
    assert spec.get_param_ranges()["strength"] == (0.0, 1.0)

    with pytest.raises(ConfigurationError) as excinfo:
        spec.resolve({"radius": -1.0, "strength": 2.0})
    message = str(excinfo.value)
    assert "radius" in message and "strength" in message

    with pytest.raises(ConfigurationError):
        spec.resolve({"radius": "big"})


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging(logging.DEBUG, str(log_file))
    assert logger.name == "grassfield"
    assert len(logger.handlers) == 2

    logger = setup_logging(logging.INFO)
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO


def main():
    """Run tests without pytest."""
    import tempfile
    from pathlib import Path

    tests = [(name, fn) for name, fn in globals().items() if name.startswith("test_")]
    passed = 0
    for name, fn in tests:
        try:
            if "tmp_path" in fn.__code__.co_varnames[:fn.__code__.co_argcount]:
                with tempfile.TemporaryDirectory() as temp_dir:
                    fn(Path(temp_dir))
            else:
                fn()
            passed += 1
            print(f"  PASS  {name}")
        except AssertionError as e:
            print(f"  FAIL  {name} -- {e}")
    print(f"Config tests: {passed}/{len(tests)} passed")


if __name__ == "__main__":
    main()
