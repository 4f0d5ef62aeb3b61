"""
X-Ray Analysis Pipeline
=======================

The integration layer that connects:
1. Classifier adapter (bundled CNN, opaque)
2. Diagnosis knowledge base
3. History store

Flow:
-----
image -> classifier -> ranked labels -> get_analysis(top label) -> Report
      -> history.add_item(Report)

build_report() touches no shared state and may run on a worker thread.
record() mutates the history and belongs to the thread that owns it.
analyze() does both.
"""

import logging
from typing import Optional

from classification.classifier_adapter import ClassifierAdapter, create_classifier_adapter, normalize_label
from common.config_loader import DEFAULT_CONFIG_PATH, load_config_object, resolve_path
from diagnosis.knowledge_base import MatchPolicy, Report, get_analysis
from history.history_store import DEFAULT_STORAGE_KEY, HistoryStore
from history.storage import JsonFileStore

logger = logging.getLogger(__name__)


MAX_OTHER_POSSIBILITIES = 3


class XRayPipeline:
    """
    Orchestrates one classification run end to end.

    Args:
        classifier: Adapter around the image classifier
        history: Store that records every completed analysis
        max_alternatives: How many runner-up labels go into other_possibilities
        match_policy: Label matching policy for the knowledge base
    """

    def __init__(
        self,
        classifier: ClassifierAdapter,
        history: HistoryStore,
        max_alternatives: int = MAX_OTHER_POSSIBILITIES,
        match_policy: MatchPolicy = MatchPolicy.EXACT,
    ):
        self.classifier = classifier
        self.history = history
        self.max_alternatives = max_alternatives
        self.match_policy = match_policy

    def build_report(self, image) -> Report:
        """
        Classify an image and build its report, without recording it.

        Raises:
            ClassificationError: propagated unchanged from the adapter
        """
        results = self.classifier.classify(image)

        top_label, top_confidence = results[0]
        mapped = normalize_label(top_label)
        logger.info(f"Top result: '{top_label}' ({int(top_confidence * 100)}%) mapped to '{mapped}'")

        report = get_analysis(mapped, top_confidence, policy=self.match_policy)

        alternatives = [
            (normalize_label(label), confidence)
            for label, confidence in results[1:1 + self.max_alternatives]
        ]

        return report.with_other_possibilities(alternatives)

    def record(self, report: Report):
        """Add a report to the history. Save failures are handled by the store."""
        return self.history.add_item(
            diagnosis=report.classification,
            confidence=report.confidence,
            severity=report.severity,
            recommendations=report.recommendations,
        )

    def analyze(self, image) -> Report:
        """
        Classify, build the report and record it in history.

        Args:
            image: Decoded image (or bytes / path)

        Returns:
            Report with other_possibilities filled from the runner-up labels
        """
        report = self.build_report(image)
        self.record(report)
        logger.info(f"Final analysis: {report.classification} ({report.severity.value})")
        return report


def create_pipeline(config_path=DEFAULT_CONFIG_PATH, history_path: Optional[str] = None) -> XRayPipeline:
    """
    Factory function to create the pipeline from a YAML config.

    One HistoryStore is created here and shared through the pipeline.

    Args:
        config_path: Path to the YAML config
        history_path: Override for the history file location

    Returns:
        Initialized pipeline (the model itself loads on first use)
    """
    config = load_config_object(config_path)

    history_cfg = config.history
    store = JsonFileStore(resolve_path(history_path or history_cfg.path))
    history = HistoryStore(store, storage_key=history_cfg.get('storage_key', DEFAULT_STORAGE_KEY))

    analysis_cfg = config.get('analysis')
    max_alternatives = analysis_cfg.get('max_alternatives', MAX_OTHER_POSSIBILITIES) if analysis_cfg else MAX_OTHER_POSSIBILITIES

    kb_cfg = config.get('knowledge_base')
    match_policy = MatchPolicy(kb_cfg.get('match_policy', 'exact')) if kb_cfg else MatchPolicy.EXACT

    pipeline = XRayPipeline(
        classifier=create_classifier_adapter(config),
        history=history,
        max_alternatives=max_alternatives,
        match_policy=match_policy,
    )

    print(f"✓ Pipeline ready ({len(history)} history entries, match policy: {match_policy.value})")

    return pipeline
