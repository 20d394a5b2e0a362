import copy
import json
import logging
import os
from typing import Any, Dict, Optional

_DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "exercise_config.json")


def load_exercise_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load exercise config from JSON file."""
    if config_path is None:
        config_path = _DEFAULT_CONFIG_PATH
    with open(config_path, "r") as f:
        return json.load(f)


def get_exercise_config(name: str, config_path: Optional[str] = None) -> Dict[str, Any]:
    """Return one section of the exercise config (e.g. "push_ups", "plank", "pose")."""
    config = load_exercise_config(config_path)
    if name not in config:
        raise ValueError(f"No config section for '{name}'")
    return config[name]


def merge_config(base: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Recursively merge override values into a copy of the base section."""
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
