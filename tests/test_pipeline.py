import pytest
import yaml

from assistant.pipeline import XRayPipeline, create_pipeline
from classification.classifier_adapter import ClassifierAdapter
from common.errors import InferenceError, ModelUnavailable, NoClassification, PersistenceWriteError
from diagnosis.knowledge_base import INCONCLUSIVE, MatchPolicy, Severity
from history.history_store import HistoryStore
from history.storage import KeyValueStore, MemoryStore
from conftest import FakeClassifier


def make_pipeline(classifier, history=None, **kwargs):
    history = history if history is not None else HistoryStore(MemoryStore())
    return XRayPipeline(ClassifierAdapter(lambda: classifier), history, **kwargs)


def test_analyze_maps_top_label_and_alternatives():
    pipeline = make_pipeline(FakeClassifier())

    report = pipeline.analyze("xray.png")

    assert report.classification == "Viral Pneumonia"
    assert report.confidence == 0.9
    assert report.severity is Severity.MODERATE
    assert report.other_possibilities == (
        ("Bacterial Pneumonia", 0.05),
        ("COVID-19", 0.03),
        ("Normal", 0.02),
    )


def test_analyze_records_history():
    pipeline = make_pipeline(FakeClassifier())

    report = pipeline.analyze("xray.png")

    entries = pipeline.history.items
    assert len(entries) == 1
    assert entries[0].diagnosis == report.classification
    assert entries[0].confidence == report.confidence
    assert entries[0].severity == "Moderate"
    assert entries[0].recommendations == report.recommendations


def test_at_most_three_alternatives():
    results = [("COVID-19", 0.5), ("Normal", 0.2), ("Pneumonia-Viral", 0.15),
               ("Pneumonia-Bacterial", 0.1), ("Other", 0.05)]
    pipeline = make_pipeline(FakeClassifier(results=results))

    report = pipeline.analyze("xray.png")

    assert report.classification == "COVID-19"
    assert report.severity is Severity.MODERATE
    assert [label for label, _ in report.other_possibilities] == [
        "Normal", "Viral Pneumonia", "Bacterial Pneumonia"
    ]


def test_single_result_has_no_alternatives():
    pipeline = make_pipeline(FakeClassifier(results=[("Normal", 0.97)]))

    report = pipeline.analyze("xray.png")

    assert report.classification == "Normal"
    assert report.other_possibilities == ()


def test_unknown_raw_label_is_inconclusive():
    results = [("Tuberculosis", 0.8), ("Pneumonia-Bacterial", 0.2)]
    pipeline = make_pipeline(FakeClassifier(results=results))

    report = pipeline.analyze("xray.png")

    assert report.classification == INCONCLUSIVE
    assert report.severity is Severity.MODERATE
    assert report.confidence == 0.8
    assert report.other_possibilities == (("Bacterial Pneumonia", 0.2),)
    assert pipeline.history.items[0].diagnosis == INCONCLUSIVE


def test_normalized_policy_is_passed_through():
    pipeline = make_pipeline(FakeClassifier(results=[("covid", 0.9)]), match_policy=MatchPolicy.NORMALIZED)

    assert pipeline.analyze("xray.png").classification == "COVID-19"


@pytest.mark.parametrize("classifier, error", [
    (FakeClassifier(results=[]), NoClassification),
    (FakeClassifier(error=ValueError("bad pixels")), InferenceError),
])
def test_classification_failures_propagate(classifier, error):
    pipeline = make_pipeline(classifier)

    with pytest.raises(error):
        pipeline.analyze("xray.png")

    assert pipeline.history.items == []


def test_model_unavailable_propagates():
    def loader():
        raise FileNotFoundError("no model")

    pipeline = XRayPipeline(ClassifierAdapter(loader), HistoryStore(MemoryStore()))

    with pytest.raises(ModelUnavailable):
        pipeline.analyze("xray.png")


def test_persistence_failure_is_swallowed():
    class FailingStore(KeyValueStore):
        def get(self, key):
            return None

        def set(self, key, value):
            raise PersistenceWriteError("read-only")

    pipeline = make_pipeline(FakeClassifier(), history=HistoryStore(FailingStore()))

    report = pipeline.analyze("xray.png")

    assert report.classification == "Viral Pneumonia"
    assert len(pipeline.history) == 1


def test_build_report_does_not_record():
    pipeline = make_pipeline(FakeClassifier())

    report = pipeline.build_report("xray.png")
    assert len(pipeline.history) == 0

    pipeline.record(report)
    assert len(pipeline.history) == 1


def test_create_pipeline_from_config(tmp_path):
    config = {
        'model': {
            'checkpoint': str(tmp_path / 'missing.pth'),
            'label_encoding': str(tmp_path / 'label_encoding.json'),
            'image_size': 224,
            'device': 'cpu',
        },
        'history': {'path': str(tmp_path / 'history.json'), 'storage_key': 'xray_history'},
        'analysis': {'max_alternatives': 2},
        'knowledge_base': {'match_policy': 'normalized'},
    }
    config_path = tmp_path / 'config.yaml'
    config_path.write_text(yaml.safe_dump(config))

    pipeline = create_pipeline(config_path)

    assert pipeline.max_alternatives == 2
    assert pipeline.match_policy is MatchPolicy.NORMALIZED
    assert len(pipeline.history) == 0
    assert not pipeline.classifier.is_loaded

    with pytest.raises(ModelUnavailable):
        pipeline.analyze("xray.png")
