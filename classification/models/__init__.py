"""Classification models module."""

from .efficientnet_classifier import EfficientNetClassifier, create_efficientnet_classifier

__all__ = ['EfficientNetClassifier', 'create_efficientnet_classifier']
