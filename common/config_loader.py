"""Configuration file loader."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional


PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / 'configs' / 'xray_config.yaml'


def load_config(config_path=DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Dictionary with configuration
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    return config or {}


def resolve_path(path, root: Optional[Path] = None) -> Path:
    """
    Resolve a config path against the project root.

    Absolute paths are returned unchanged.
    """
    path = Path(path).expanduser()
    if path.is_absolute():
        return path
    return (root or PROJECT_ROOT) / path


class Config:
    """Configuration object with dot notation access."""

    def __init__(self, config_dict):
        """
        Args:
            config_dict: Dictionary with configuration
        """
        for key, value in config_dict.items():
            if isinstance(value, dict):
                setattr(self, key, Config(value))
            else:
                setattr(self, key, value)

    def get(self, key, default=None):
        """Return an attribute, or default when it is not set."""
        return getattr(self, key, default)

    def to_dict(self):
        """Convert back to dictionary."""
        result = {}
        for key, value in self.__dict__.items():
            if isinstance(value, Config):
                result[key] = value.to_dict()
            else:
                result[key] = value
        return result

    def __repr__(self):
        return f"Config({self.to_dict()})"


def load_config_object(config_path=DEFAULT_CONFIG_PATH):
    """
    Load configuration as object with dot notation access.

    Args:
        config_path: Path to YAML config file

    Returns:
        Config object
    """
    config_dict = load_config(config_path)
    return Config(config_dict)
