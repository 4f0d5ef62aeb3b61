import dataclasses

import pytest
from matplotlib.colors import to_rgba

from diagnosis.knowledge_base import (
    INCONCLUSIVE, KNOWN_CLASSES, MatchPolicy, Severity, get_analysis
)


@pytest.mark.parametrize("classification, confidence, expected", [
    ("Normal", 0.99, Severity.NORMAL),
    ("Normal", 0.10, Severity.NORMAL),
    ("Viral Pneumonia", 0.90, Severity.MODERATE),
    ("Viral Pneumonia", 0.50, Severity.MILD),
    ("Bacterial Pneumonia", 0.90, Severity.SEVERE),
    ("Bacterial Pneumonia", 0.50, Severity.MODERATE),
    ("COVID-19", 0.95, Severity.SEVERE),
    ("COVID-19", 0.30, Severity.MODERATE),
])
def test_severity_ladder(classification, confidence, expected):
    report = get_analysis(classification, confidence)

    assert report.classification == classification
    assert report.confidence == confidence
    assert report.severity is expected


@pytest.mark.parametrize("classification, lower_tier", [
    ("Viral Pneumonia", Severity.MILD),
    ("Bacterial Pneumonia", Severity.MODERATE),
    ("COVID-19", Severity.MODERATE),
])
def test_threshold_is_exclusive(classification, lower_tier):
    assert get_analysis(classification, 0.85).severity is lower_tier


def test_normal_report():
    report = get_analysis("Normal", 0.99)

    assert report.severity is Severity.NORMAL
    assert report.recommendations == (
        "Continue regular health check-ups",
        "Maintain good respiratory health practices",
        "Practice preventive measures (hand washing, avoiding sick contacts)",
        "Stay up to date with vaccinations",
    )
    assert report.other_possibilities == ()
    assert report.description.startswith("The X-ray appears normal")


def test_unknown_classification_is_inconclusive():
    report = get_analysis("Something Else", 0.99)

    assert report.classification == INCONCLUSIVE
    assert report.severity is Severity.MODERATE
    assert report.recommendations[0] == "Consider retaking the X-ray"
    assert report.description.startswith("The analysis is inconclusive.")


def test_exact_policy_rejects_case_variants():
    assert get_analysis("normal", 0.9).classification == INCONCLUSIVE
    assert get_analysis(" COVID-19", 0.9).classification == INCONCLUSIVE


@pytest.mark.parametrize("raw, expected", [
    ("normal", "Normal"),
    ("  Healthy ", "Normal"),
    ("no finding", "Normal"),
    ("pneumonia-viral", "Viral Pneumonia"),
    ("Pneumonia-Bacterial", "Bacterial Pneumonia"),
    ("  covid ", "COVID-19"),
])
def test_normalized_policy_accepts_aliases(raw, expected):
    report = get_analysis(raw, 0.5, policy=MatchPolicy.NORMALIZED)
    assert report.classification == expected


def test_normalized_policy_still_has_inconclusive():
    report = get_analysis("tuberculosis", 0.9, policy=MatchPolicy.NORMALIZED)
    assert report.classification == INCONCLUSIVE


@pytest.mark.parametrize("classification", KNOWN_CLASSES)
def test_every_class_has_four_to_six_recommendations(classification):
    report = get_analysis(classification, 0.5)

    assert 4 <= len(report.recommendations) <= 6
    assert report.description
    assert report.other_possibilities == ()


def test_covid_recommendations_order():
    report = get_analysis("COVID-19", 0.9)

    assert report.recommendations[0] == "Immediate isolation required"
    assert report.recommendations[-1] == "Alert recent contacts"
    assert len(report.recommendations) == 6


def test_report_is_immutable():
    report = get_analysis("Normal", 0.9)

    with pytest.raises(dataclasses.FrozenInstanceError):
        report.severity = Severity.SEVERE


def test_with_other_possibilities_returns_new_report():
    report = get_analysis("COVID-19", 0.7)
    updated = report.with_other_possibilities([("Normal", 0.2), ("Viral Pneumonia", 0.1)])

    assert report.other_possibilities == ()
    assert updated.other_possibilities == (("Normal", 0.2), ("Viral Pneumonia", 0.1))
    assert updated.severity is report.severity


def test_severity_colors():
    assert Severity.NORMAL.color == to_rgba('#34C759')
    assert Severity.MILD.color == to_rgba('#FFCC00')
    assert Severity.MODERATE.color == to_rgba('#FF9500')
    assert Severity.SEVERE.color == to_rgba('#FF3B30')

    colors = {severity.color for severity in Severity}
    assert len(colors) == 4
    assert all(color[3] == 1.0 for color in colors)
