"""Diagnosis knowledge base and report types."""

from .knowledge_base import (
    INCONCLUSIVE, KNOWN_CLASSES, SEVERITY_THRESHOLD, MatchPolicy, Report, Severity, get_analysis
)

__all__ = [
    'INCONCLUSIVE', 'KNOWN_CLASSES', 'SEVERITY_THRESHOLD',
    'MatchPolicy', 'Report', 'Severity', 'get_analysis',
]
