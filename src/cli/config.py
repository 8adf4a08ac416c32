"""Configuration loading and management."""

from pathlib import Path
from typing import Optional

import yaml

from .config_models import AttuneConfig


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "config.yaml",
        Path.home() / ".attune" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config_model(config_path: Optional[Path] = None) -> AttuneConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    try:
        return AttuneConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def get_paths(config: AttuneConfig) -> dict:
    """Expanded paths, with the data directory created."""
    paths = config.paths
    paths.data_dir.mkdir(parents=True, exist_ok=True)
    return {
        "data_dir": paths.data_dir,
        "db_path": paths.db_path,
        "log_file": paths.log_file,
    }
