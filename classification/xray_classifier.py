"""
Chest X-Ray Classifier
======================

Loads the bundled EfficientNet-B0 checkpoint in eval mode and turns one
image into a ranked list of (label, confidence) pairs. Labels are the raw
vocabulary from label_encoding.json; mapping them to diagnosis names is
the adapter's job.
"""

import logging
from pathlib import Path
from typing import List, Tuple

import torch
import torch.nn.functional as F

from classification.models.efficientnet_classifier import create_efficientnet_classifier
from common.transforms import get_classification_transforms, load_image
from common.utils import get_device, load_checkpoint, load_label_encoding

logger = logging.getLogger(__name__)


class XRayClassifier:
    """
    Frozen CNN classifier for chest X-rays.

    Returns every class ranked by softmax probability, highest first.
    """

    def __init__(self, model, idx_to_label, image_size=224, device=None):
        """
        Args:
            model: Classification network returning [B, num_classes] logits
            idx_to_label: Mapping from output index to raw label
            image_size: Input resolution expected by the model
            device: torch device
        """
        self.device = device if device else get_device()
        self.model = model.to(self.device)
        self.model.eval()

        for param in self.model.parameters():
            param.requires_grad = False

        self.idx_to_label = idx_to_label
        self.transform = get_classification_transforms(image_size=image_size)

    def classify(self, image) -> List[Tuple[str, float]]:
        """
        Run inference on one image.

        Args:
            image: PIL Image, encoded bytes, or path

        Returns:
            List of (raw_label, confidence) sorted by descending confidence
        """
        image = load_image(image)
        tensor = self.transform(image).unsqueeze(0).to(self.device)

        with torch.no_grad():
            logits = self.model(tensor)
            probs = F.softmax(logits, dim=1)[0]

        ranked_probs, ranked_indices = torch.sort(probs, descending=True)

        return [
            (self.idx_to_label[idx.item()], prob.item())
            for idx, prob in zip(ranked_indices, ranked_probs)
        ]


def load_xray_classifier(checkpoint_path, label_encoding_path, image_size=224, device='auto'):
    """
    Factory function to load the classifier from disk.

    Args:
        checkpoint_path: Path to the EfficientNet checkpoint (.pth)
        label_encoding_path: Path to label_encoding.json
        image_size: Input resolution
        device: 'auto', 'cpu' or 'cuda'

    Returns:
        XRayClassifier ready for inference

    Raises:
        FileNotFoundError: if the checkpoint or label encoding is missing
    """
    checkpoint_path = Path(checkpoint_path)
    label_encoding_path = Path(label_encoding_path)

    if not label_encoding_path.exists():
        raise FileNotFoundError(f"Label encoding not found: {label_encoding_path}")
    if not checkpoint_path.exists():
        raise FileNotFoundError(f"Checkpoint not found: {checkpoint_path}")

    torch_device = get_device(device)
    idx_to_label, num_classes = load_label_encoding(label_encoding_path)

    model = create_efficientnet_classifier(num_classes=num_classes, pretrained=False)
    info = load_checkpoint(checkpoint_path, model, device=torch_device)

    logger.info(f"Loaded classifier checkpoint from epoch {info['epoch']} on {torch_device}")
    logger.info(f"Output labels: {[idx_to_label[i] for i in sorted(idx_to_label)]}")

    return XRayClassifier(model, idx_to_label, image_size=image_size, device=torch_device)
