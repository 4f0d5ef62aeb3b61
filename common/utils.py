"""Utility functions for model checkpoints and reproducibility."""

import torch
import random
import numpy as np
from pathlib import Path
import json


def set_seed(seed=42):
    """
    Set random seed for reproducibility.

    Args:
        seed: Random seed value
    """
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    torch.cuda.manual_seed_all(seed)
    torch.backends.cudnn.deterministic = True
    torch.backends.cudnn.benchmark = False


def get_device(preference='auto'):
    """
    Pick the torch device for inference.

    Args:
        preference: 'auto', 'cpu' or 'cuda'
    """
    if preference == 'auto':
        return torch.device('cuda' if torch.cuda.is_available() else 'cpu')
    return torch.device(preference)


def save_checkpoint(model, save_path, epoch=0, metrics=None):
    """
    Save model weights in the checkpoint layout the classifier expects.

    Args:
        model: PyTorch model
        save_path: Path to save checkpoint
        epoch: Epoch the weights come from
        metrics: Dictionary of metrics
    """
    save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)

    checkpoint = {
        'epoch': epoch,
        'model_state_dict': model.state_dict(),
        'metrics': metrics or {}
    }

    torch.save(checkpoint, save_path)


def load_checkpoint(checkpoint_path, model, device='cpu'):
    """
    Load model weights from a checkpoint.

    Args:
        checkpoint_path: Path to checkpoint
        model: PyTorch model
        device: Device to load to

    Returns:
        Dictionary with epoch and metrics
    """
    checkpoint = torch.load(checkpoint_path, map_location=device, weights_only=False)

    model.load_state_dict(checkpoint['model_state_dict'])

    return {
        'epoch': checkpoint.get('epoch', 0),
        'metrics': checkpoint.get('metrics', {})
    }


def load_label_encoding(encoding_path):
    """
    Load the index-to-label mapping written next to the checkpoint.

    Returns:
        (idx_to_label, num_classes) with integer keys
    """
    with open(encoding_path, 'r') as f:
        encoding = json.load(f)

    idx_to_label = {int(k): v for k, v in encoding['idx_to_label'].items()}
    num_classes = encoding.get('num_classes', len(idx_to_label))

    return idx_to_label, num_classes
