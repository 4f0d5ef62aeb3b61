"""
EfficientNet-B0 Chest X-Ray Model
=================================
Backbone with a small dropout + linear head sized to the label encoding.
Only used for inference; weights come from a checkpoint.
"""

import logging

import torch
import torch.nn as nn
from torchvision import models

logger = logging.getLogger(__name__)


class EfficientNetClassifier(nn.Module):
    """Chest X-ray classifier on an EfficientNet-B0 backbone."""

    def __init__(self, num_classes=4, pretrained=False, dropout=0.3):
        """
        Args:
            num_classes: Size of the label encoding
            pretrained: Start from ImageNet weights (downloads them)
            dropout: Dropout applied before the output layer
        """
        super().__init__()

        weights = models.EfficientNet_B0_Weights.IMAGENET1K_V1 if pretrained else None
        self.backbone = models.efficientnet_b0(weights=weights)

        head_in = self.backbone.classifier[1].in_features
        self.backbone.classifier = nn.Sequential(
            nn.Dropout(p=dropout, inplace=True),
            nn.Linear(head_in, num_classes),
        )
        self.num_classes = num_classes

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Images [B, 3, H, W] -> logits [B, num_classes]."""
        return self.backbone(x)


def create_efficientnet_classifier(num_classes=4, pretrained=False, dropout=0.3):
    """Build an EfficientNetClassifier with the given head size."""
    model = EfficientNetClassifier(num_classes=num_classes, pretrained=pretrained, dropout=dropout)
    logger.info(f"EfficientNet-B0 X-ray model built with {num_classes} output classes")
    return model
