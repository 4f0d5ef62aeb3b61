"""Image decoding and preprocessing for the chest X-ray classifier."""

import io
from pathlib import Path

import torchvision.transforms as transforms
from PIL import Image


IMAGENET_MEAN = [0.485, 0.456, 0.406]
IMAGENET_STD = [0.229, 0.224, 0.225]


def get_classification_transforms(image_size=224):
    """
    Get the inference transform for classification.

    X-rays are resized to a square, converted to a tensor and normalized
    with ImageNet statistics (the backbone was pretrained on ImageNet).

    Args:
        image_size: Target image size (default: 224)

    Returns:
        torchvision.transforms.Compose object
    """
    return transforms.Compose([
        transforms.Resize((image_size, image_size)),
        transforms.ToTensor(),
        transforms.Normalize(mean=IMAGENET_MEAN, std=IMAGENET_STD)
    ])


def load_image(image_input):
    """
    Decode an image into an RGB PIL image.

    Args:
        image_input: PIL Image, raw encoded bytes, or a path

    Returns:
        PIL Image in RGB mode

    Raises:
        ValueError: if the input cannot be decoded as an image
    """
    if isinstance(image_input, Image.Image):
        return image_input.convert('RGB')

    try:
        if isinstance(image_input, (bytes, bytearray)):
            image = Image.open(io.BytesIO(image_input))
        else:
            image = Image.open(Path(image_input))
        image.load()
    except (OSError, ValueError) as e:
        raise ValueError(f"Failed to load the selected image: {e}") from e

    # Grayscale radiographs are replicated to three channels
    return image.convert('RGB')
