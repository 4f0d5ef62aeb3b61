from datetime import datetime, timedelta, timezone

import pytest

from classification.classifier_adapter import ClassifierAdapter
from history.history_store import HistoryStore
from history.storage import MemoryStore


VIRAL_RESULTS = [
    ("Pneumonia-Viral", 0.9),
    ("Pneumonia-Bacterial", 0.05),
    ("COVID-19", 0.03),
    ("Normal", 0.02),
]


class FakeClassifier:
    """Stands in for the bundled model: returns canned results per call."""

    def __init__(self, results=None, error=None):
        self.results = VIRAL_RESULTS if results is None else results
        self.error = error
        self.calls = []

    def classify(self, image):
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        return list(self.results)


class StepClock:
    """Returns start, start + step, start + 2 * step, ..."""

    def __init__(self, start=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc), step=timedelta(minutes=1)):
        self.current = start
        self.step = step

    def __call__(self):
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def adapter(fake_classifier):
    return ClassifierAdapter(lambda: fake_classifier)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def history(memory_store):
    return HistoryStore(memory_store, clock=StepClock())
