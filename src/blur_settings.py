"""
Utility functions for the blur tool.
"""
from __future__ import annotations

import copy
import os
from typing import Any, Dict

import yaml


# ============================================================================
# Settings
# ============================================================================

DEFAULT_SETTINGS: Dict[str, Any] = {
    "gaussian": {
        "sigma": 1.0,
        "radius": None,  # None -> three-sigma support
        "method": "direct",
    },
    "output": {
        "path": "result-image.png",
        "overwrite": True,
    },
}


def load_settings(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Settings file must define a dictionary at the top level")

    return data


def merge_settings(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` onto a copy of ``defaults``."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


# ============================================================================
# Parsing Helpers
# ============================================================================

def parse_sigma(text: str) -> float:
    """Parse user-entered sigma."""
    try:
        return float(text.strip())
    except ValueError:
        raise ValueError(f"Sigma must be a number, got {text.strip()!r}") from None


def parse_radius(text: str) -> int:
    """Parse user-entered radius."""
    try:
        return int(text.strip())
    except ValueError:
        raise ValueError(f"Radius must be an integer, got {text.strip()!r}") from None
