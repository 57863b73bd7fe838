"""Caricamento configurazione YAML e valori di default"""
import copy
from pathlib import Path
from typing import Optional

import yaml


DEFAULT_CONFIG = {
    'motion_estimation': {
        'max_corners': 200,
        'quality_level': 0.01,
        'min_distance': 30,
        'win_size': 21,
        'max_level': 3,
        'min_matches': 3,
        'ransac_reproj_threshold': 3.0,
    },
    'trajectory_smoothing': {
        # Più basso = traiettoria più liscia, meno reattiva
        'process_noise': 4e-3,
        # Più basso = più reattivo, meno liscio
        'measurement_noise': 0.25,
    },
    'motion_compensation': {
        'horizontal_crop': 20,
    },
    'diagnostics_dir': None,
    'save_metrics': False,
}


def merge_config(base: dict, override: Optional[dict]) -> dict:
    """
    Unisce ricorsivamente override sopra base, senza modificare gli input.

    Le sottosezioni mancanti o None in override mantengono i valori di base.
    """
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        elif value is None and isinstance(merged.get(key), dict):
            continue
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path=None) -> dict:
    """
    Carica il file YAML di configurazione e lo unisce ai default.

    Args:
        config_path: Path al file YAML. Se None restituisce i soli default.

    Returns:
        dict di configurazione completo da passare a VideoStabilizer
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(config_path)
    with open(config_path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Configurazione non valida in {config_path}: atteso un mapping YAML")

    return merge_config(DEFAULT_CONFIG, raw)
