"""Common utilities for chest X-ray analysis."""

from .config_loader import Config, load_config, load_config_object, resolve_path
from .errors import (
    XRayAIError, ClassificationError, ModelUnavailable, NoClassification, InferenceError,
    PersistenceError, PersistenceReadError, PersistenceWriteError
)

__all__ = [
    'Config', 'load_config', 'load_config_object', 'resolve_path',
    'XRayAIError', 'ClassificationError', 'ModelUnavailable', 'NoClassification',
    'InferenceError', 'PersistenceError', 'PersistenceReadError', 'PersistenceWriteError'
]
