from pathlib import Path

import pytest

from mixture_analysis.synthetic_data.config import (
    ComponentSpec,
    GenerationConfig,
)
from mixture_analysis.synthetic_data.presets import (
    PARAMS_DIR,
    get_available_presets,
    get_preset,
    load_config,
)

########################################################
# Configuration loading
########################################################


def test_configuration_presets_load() -> None:
    """Make sure that all the preset configuration files load."""

    for config_path in PARAMS_DIR.glob("*.yaml"):
        # Skip empty files
        if config_path.read_text().strip() == "":
            continue
        preset = load_config(config_path)
        assert preset is not None


def test_get_preset_two_component() -> None:
    preset = get_preset("two_component")

    assert isinstance(preset, GenerationConfig)
    assert len(preset.components) == 2
    assert isinstance(preset.components[0], ComponentSpec)
    assert preset.components[0].alpha == 2.0
    assert preset.components[1].beta == 80.0
    assert preset.n_observations == 1000


def test_available_presets() -> None:
    presets = get_available_presets()

    assert "two_component" in presets
    assert "three_component" in presets


def test_get_preset_unknown_raises() -> None:
    with pytest.raises(ValueError, match="Unknown preset"):
        get_preset("nonexistent_preset")


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


########################################################
# Validation
########################################################


def test_component_spec_validation() -> None:
    with pytest.raises(ValueError, match="alpha and beta"):
        ComponentSpec(alpha=0.0, beta=1.0, trials=10, size=5)
    with pytest.raises(ValueError, match="trials"):
        ComponentSpec(alpha=1.0, beta=1.0, trials=0, size=5)
    with pytest.raises(ValueError, match="size"):
        ComponentSpec(alpha=1.0, beta=1.0, trials=10, size=0)


def test_generation_config_needs_components() -> None:
    with pytest.raises(ValueError, match="at least 1 component"):
        GenerationConfig(components=[], random_seed=0)
