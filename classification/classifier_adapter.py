"""
Classifier Adapter
==================

Boundary around the opaque image classifier. The adapter:

1. Loads the model lazily, exactly once per adapter (a failed load is final)
2. Invokes the classifier once per image, with no retry
3. Maps the classifier's label vocabulary to diagnosis names
4. Translates failures into ModelUnavailable / NoClassification / InferenceError
"""

import logging
import threading
from typing import Callable, List, Optional, Tuple

from common.errors import ClassificationError, InferenceError, ModelUnavailable, NoClassification

logger = logging.getLogger(__name__)


# Classifier output label -> diagnosis name
RAW_LABEL_MAP = {
    'COVID-19': 'COVID-19',
    'Normal': 'Normal',
    'Pneumonia-Bacterial': 'Bacterial Pneumonia',
    'Pneumonia-Viral': 'Viral Pneumonia',
}


def normalize_label(raw_label: str) -> str:
    """
    Map a raw classifier label to the diagnosis vocabulary.

    Unknown labels pass through unchanged.
    """
    mapped = RAW_LABEL_MAP.get(raw_label)
    if mapped is None:
        logger.warning(f"Unexpected classification: '{raw_label}'")
        return raw_label
    return mapped


class ClassifierAdapter:
    """
    Lazily-initialized wrapper around a classifier.

    model_loader is a zero-argument callable returning an object with a
    classify(image) -> [(label, confidence), ...] method.
    """

    def __init__(self, model_loader: Callable[[], object]):
        self._model_loader = model_loader
        self._model = None
        self._load_error: Optional[BaseException] = None
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._initialized and self._model is not None

    def _get_model(self):
        with self._lock:
            if not self._initialized:
                try:
                    self._model = self._model_loader()
                    logger.info("✓ ML model loaded successfully")
                except Exception as e:
                    self._load_error = e
                    logger.error(f"Failed to set up classifier: {e}")
                finally:
                    self._initialized = True

        if self._load_error is not None:
            raise ModelUnavailable(f"Failed to load the ML model: {self._load_error}") from self._load_error

        return self._model

    def classify(self, image) -> List[Tuple[str, float]]:
        """
        Classify one image.

        Args:
            image: Decoded PIL image (or anything the classifier accepts)

        Returns:
            Non-empty list of (raw_label, confidence), highest first

        Raises:
            ModelUnavailable: model missing or failed to load
            NoClassification: classifier returned nothing
            InferenceError: classifier raised
        """
        model = self._get_model()

        try:
            results = model.classify(image)
        except ClassificationError:
            raise
        except Exception as e:
            logger.error(f"Classification error: {e}")
            raise InferenceError(str(e)) from e

        if not results:
            logger.error("No classification results")
            raise NoClassification()

        results = [(label, float(confidence)) for label, confidence in results]

        for label, confidence in results:
            logger.debug(f"Label: '{label}' - Confidence: {int(confidence * 100)}%")

        return results


def create_classifier_adapter(config) -> ClassifierAdapter:
    """
    Build an adapter that loads the bundled checkpoint on first use.

    Args:
        config: Config object with a `model` section
    """
    from classification.xray_classifier import load_xray_classifier
    from common.config_loader import resolve_path

    model_cfg = config.model

    def loader():
        return load_xray_classifier(
            checkpoint_path=resolve_path(model_cfg.checkpoint),
            label_encoding_path=resolve_path(model_cfg.label_encoding),
            image_size=model_cfg.get('image_size', 224),
            device=model_cfg.get('device', 'auto'),
        )

    return ClassifierAdapter(loader)
