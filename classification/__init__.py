"""Chest X-ray classification: bundled model and adapter."""

from .classifier_adapter import ClassifierAdapter, RAW_LABEL_MAP, create_classifier_adapter, normalize_label

__all__ = ['ClassifierAdapter', 'RAW_LABEL_MAP', 'create_classifier_adapter', 'normalize_label']
