# citysim/utils.py

import os
import yaml  # type: ignore
from typing import Any, Dict


# ============================================================
# 📁 DIRECTORY MANAGEMENT
# ============================================================

# Absolute path to this file
current_file = os.path.abspath(__file__)

# Project root = 2 levels above (citysim/utils.py → citysim → project)
project_root = os.path.dirname(os.path.dirname(current_file))

# --- Project-level paths ---
data_path = os.path.join(project_root, "data")
reports_path = os.path.join(project_root, "reports")
config_path = os.path.join(project_root, "config")

# --- Data directories ---
raw_data_path = os.path.join(data_path, "raw")
processed_data_path = os.path.join(data_path, "processed")
similarity_processed_path = os.path.join(processed_data_path, "similarity")
intent_processed_path = os.path.join(processed_data_path, "intent")

# --- Reports ---
figures_path = os.path.join(reports_path, "figures")


# ============================================================
# ⚙️ CONFIG UTILITIES
# ============================================================

def load_yaml(path: str) -> Dict[str, Any]:
    """General YAML loader with validation."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"❌ YAML file not found: {path}")

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"❌ Invalid YAML in {path}: {e}")

    if config is None:
        raise ValueError(f"❌ YAML file empty: {path}")
    if not isinstance(config, dict):
        raise ValueError(f"❌ YAML root must be a mapping: {path}")

    return config


def merge_config(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` on top of ``defaults`` without mutating either."""
    merged = dict(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


# ============================================================
# 🔍 PATH RESOLVER
# ============================================================

def get_path(path_type: str) -> str:
    """
    Convenient path resolver with automatic directory creation.

    Returns any project directory path based on a keyword.
    """

    paths = {
        # Project root structure
        "project": project_root,
        "config": config_path,

        # Data-level folders
        "data": data_path,
        "raw": raw_data_path,
        "processed": processed_data_path,
        "similarity": similarity_processed_path,
        "intent": intent_processed_path,

        # Reports
        "reports": reports_path,
        "figures": figures_path,
    }

    if path_type not in paths:
        raise ValueError(
            f"❌ Unknown path type '{path_type}'. Allowed values: {list(paths.keys())}"
        )

    resolved = os.path.abspath(paths[path_type])
    os.makedirs(resolved, exist_ok=True)
    return resolved
