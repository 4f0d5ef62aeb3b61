"""End-to-end checks with a real (randomly initialised) EfficientNet checkpoint."""

import io
import json

import pytest
import torch
from PIL import Image

from assistant.pipeline import XRayPipeline
from classification.classifier_adapter import ClassifierAdapter, RAW_LABEL_MAP
from classification.models.efficientnet_classifier import create_efficientnet_classifier
from classification.xray_classifier import load_xray_classifier
from common.errors import InferenceError, ModelUnavailable
from common.utils import save_checkpoint, set_seed
from diagnosis.knowledge_base import KNOWN_CLASSES
from history.history_store import HistoryStore
from history.storage import MemoryStore


RAW_LABELS = ["COVID-19", "Normal", "Pneumonia-Bacterial", "Pneumonia-Viral"]


@pytest.fixture(scope="module")
def model_files(tmp_path_factory):
    set_seed(0)
    root = tmp_path_factory.mktemp("model")

    encoding = {
        'num_classes': 4,
        'label_to_idx': {label: i for i, label in enumerate(RAW_LABELS)},
        'idx_to_label': {str(i): label for i, label in enumerate(RAW_LABELS)},
    }
    encoding_path = root / "label_encoding.json"
    encoding_path.write_text(json.dumps(encoding))

    model = create_efficientnet_classifier(num_classes=4, pretrained=False)
    checkpoint_path = root / "checkpoint_best.pth"
    save_checkpoint(model, checkpoint_path, epoch=3)

    return checkpoint_path, encoding_path


@pytest.fixture(scope="module")
def classifier(model_files):
    checkpoint_path, encoding_path = model_files
    return load_xray_classifier(checkpoint_path, encoding_path, image_size=224, device='cpu')


def grayscale_xray(size=(256, 256)):
    return Image.new('L', size, color=128)


def test_model_output_shape():
    model = create_efficientnet_classifier(num_classes=4)
    model.eval()

    with torch.no_grad():
        logits = model(torch.randn(2, 3, 224, 224))

    assert logits.shape == (2, 4)


def test_classify_ranks_every_class(classifier):
    results = classifier.classify(grayscale_xray())

    labels = [label for label, _ in results]
    confidences = [confidence for _, confidence in results]

    assert sorted(labels) == sorted(RAW_LABELS)
    assert confidences == sorted(confidences, reverse=True)
    assert sum(confidences) == pytest.approx(1.0, abs=1e-4)
    assert all(0.0 <= c <= 1.0 for c in confidences)


def test_classify_accepts_encoded_bytes(classifier):
    buffer = io.BytesIO()
    grayscale_xray().save(buffer, format='PNG')

    results = classifier.classify(buffer.getvalue())

    assert len(results) == 4


def test_pipeline_with_real_model(classifier):
    pipeline = XRayPipeline(ClassifierAdapter(lambda: classifier), HistoryStore(MemoryStore()))

    report = pipeline.analyze(grayscale_xray())

    assert report.classification in KNOWN_CLASSES
    assert len(report.other_possibilities) == 3
    assert {label for label, _ in report.other_possibilities} <= set(RAW_LABEL_MAP.values())
    assert len(pipeline.history) == 1


def test_undecodable_bytes_raise_inference_error(classifier):
    adapter = ClassifierAdapter(lambda: classifier)

    with pytest.raises(InferenceError) as exc_info:
        adapter.classify(b"definitely not an image")

    assert "Failed to load the selected image" in exc_info.value.message


def test_missing_checkpoint(model_files, tmp_path):
    _, encoding_path = model_files

    with pytest.raises(FileNotFoundError):
        load_xray_classifier(tmp_path / "missing.pth", encoding_path, device='cpu')

    adapter = ClassifierAdapter(lambda: load_xray_classifier(tmp_path / "missing.pth", encoding_path, device='cpu'))
    with pytest.raises(ModelUnavailable):
        adapter.classify(grayscale_xray())
