"""
Configuration management for refmatch
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from refmatch.exceptions import ConfigError


DEFAULT_CONFIG = {
    "loader": {
        "max_long_edge": 800
    },
    "features": {
        "max_keypoints": 500
    },
    "matching": {
        "distance_threshold": 40,
        "max_matches": None,
        "cross_check": True
    },
    "scoring": {
        "confidence_threshold": 0.6
    },
    "quadrilaterals": {
        "blur_kernel": 5,
        "canny_low": 50,
        "canny_high": 150,
        "approx_epsilon": 0.02,
        "min_area": 1000
    },
    "catalog": {
        "load_max_attempts": 10,
        "retry_interval_ms": 1000,
        "extensions": [".jpg", ".jpeg", ".png"]
    }
}


def _merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``updates`` into ``base`` (in place)."""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Optional[Union[str, Path]] = None,
                overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build a configuration from the defaults.

    Args:
        path: Optional YAML file whose sections override the defaults
        overrides: Optional dictionary applied after the YAML file

    Returns:
        Validated configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path is not None:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        _merge(config, data)

    if overrides:
        _merge(config, copy.deepcopy(overrides))

    validate_config(config)
    return config


_INTEGER_KEYS = {
    "loader": ("max_long_edge",),
    "features": ("max_keypoints",),
    "quadrilaterals": ("blur_kernel",),
    "catalog": ("load_max_attempts",),
}

_NUMBER_KEYS = {
    "matching": ("distance_threshold",),
    "scoring": ("confidence_threshold",),
    "quadrilaterals": ("canny_low", "canny_high", "approx_epsilon", "min_area"),
    "catalog": ("retry_interval_ms",),
}


def _is_number(value: Any, integer: bool = False) -> bool:
    # bool is an int subclass but never a valid setting here
    if isinstance(value, bool):
        return False
    return isinstance(value, int) if integer else isinstance(value, (int, float))


def _check_types(config: Dict[str, Any]) -> None:
    """Raise ConfigError for sections or values of the wrong type."""
    for section, defaults in DEFAULT_CONFIG.items():
        values = config.get(section)
        if not isinstance(values, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        missing = set(defaults) - set(values)
        if missing:
            raise ConfigError(f"Missing {section} settings: {sorted(missing)}")

    for integer, table in ((True, _INTEGER_KEYS), (False, _NUMBER_KEYS)):
        for section, keys in table.items():
            for key in keys:
                if not _is_number(config[section][key], integer):
                    kind = "an integer" if integer else "a number"
                    raise ConfigError(f"{section}.{key} must be {kind}")

    max_matches = config["matching"]["max_matches"]
    if max_matches is not None and not _is_number(max_matches, integer=True):
        raise ConfigError("matching.max_matches must be an integer or null")
    if not isinstance(config["matching"]["cross_check"], bool):
        raise ConfigError("matching.cross_check must be true or false")

    extensions = config["catalog"]["extensions"]
    if not isinstance(extensions, (list, tuple)) or not all(isinstance(e, str) for e in extensions):
        raise ConfigError("catalog.extensions must be a list of strings")


def validate_config(config: Dict[str, Any]) -> None:
    """Raise ConfigError if any value is unusable."""
    unknown = set(config) - set(DEFAULT_CONFIG)
    if unknown:
        raise ConfigError(f"Unknown config sections: {sorted(unknown)}")

    _check_types(config)

    if config["loader"]["max_long_edge"] <= 0:
        raise ConfigError("loader.max_long_edge must be positive")

    if config["features"]["max_keypoints"] <= 0:
        raise ConfigError("features.max_keypoints must be positive")

    matching = config["matching"]
    if not 0 < matching["distance_threshold"] <= 256:
        raise ConfigError("matching.distance_threshold must be in (0, 256]")
    if matching["max_matches"] is not None and matching["max_matches"] <= 0:
        raise ConfigError("matching.max_matches must be positive or null")

    if not 0.0 <= config["scoring"]["confidence_threshold"] <= 1.0:
        raise ConfigError("scoring.confidence_threshold must be in [0, 1]")

    quads = config["quadrilaterals"]
    if quads["blur_kernel"] <= 0 or quads["blur_kernel"] % 2 == 0:
        raise ConfigError("quadrilaterals.blur_kernel must be a positive odd number")
    if quads["canny_low"] >= quads["canny_high"]:
        raise ConfigError("quadrilaterals.canny_low must be below canny_high")
    if quads["approx_epsilon"] <= 0:
        raise ConfigError("quadrilaterals.approx_epsilon must be positive")
    if quads["min_area"] < 0:
        raise ConfigError("quadrilaterals.min_area must not be negative")

    catalog = config["catalog"]
    if catalog["load_max_attempts"] < 1:
        raise ConfigError("catalog.load_max_attempts must be at least 1")
    if catalog["retry_interval_ms"] < 0:
        raise ConfigError("catalog.retry_interval_ms must not be negative")
