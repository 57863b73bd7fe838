from pathlib import Path

import pytest

from livestab.config import DEFAULT_CONFIG, load_config, merge_config
from livestab.video_stabilizer import VideoStabilizer


PROJECT_CONFIG = Path(__file__).parent.parent / 'config' / 'config.yaml'


def test_defaults_without_path():
    config = load_config()
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG
    assert config['trajectory_smoothing']['process_noise'] == pytest.approx(4e-3)
    assert config['trajectory_smoothing']['measurement_noise'] == pytest.approx(0.25)


def test_project_config_matches_defaults():
    assert load_config(PROJECT_CONFIG) == DEFAULT_CONFIG


def test_partial_yaml_is_merged(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(
        "trajectory_smoothing:\n"
        "  measurement_noise: 0.5\n"
        "motion_compensation:\n"
        "  horizontal_crop: 32\n"
    )

    config = load_config(path)

    assert config['trajectory_smoothing']['measurement_noise'] == 0.5
    assert config['trajectory_smoothing']['process_noise'] == pytest.approx(4e-3)
    assert config['motion_compensation']['horizontal_crop'] == 32
    assert config['motion_estimation'] == DEFAULT_CONFIG['motion_estimation']

    stabilizer = VideoStabilizer(config)
    assert stabilizer.motion_compensator.border_crop(480, 640) == (24, 32)


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text("")
    assert load_config(path) == DEFAULT_CONFIG


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / 'bad.yaml'
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_merge_does_not_mutate_inputs():
    override = {'motion_estimation': {'max_corners': 50}, 'trajectory_smoothing': None}
    merged = merge_config(DEFAULT_CONFIG, override)

    assert merged['motion_estimation']['max_corners'] == 50
    assert merged['trajectory_smoothing'] == DEFAULT_CONFIG['trajectory_smoothing']
    assert DEFAULT_CONFIG['motion_estimation']['max_corners'] == 200


def test_invalid_values_rejected_at_construction():
    with pytest.raises(ValueError):
        VideoStabilizer({'trajectory_smoothing': {'process_noise': 0}})
    with pytest.raises(ValueError):
        VideoStabilizer({'motion_compensation': {'horizontal_crop': -5}})
