"""
Diagnosis Knowledge Base
========================

Maps a classification label and its confidence to a structured Report:
description, severity and recommendations. Pure lookup, no state.

Severity ladder (threshold is strictly greater-than):
    Normal               -> Normal
    Viral Pneumonia      -> Moderate if confidence > 0.85 else Mild
    Bacterial Pneumonia  -> Severe   if confidence > 0.85 else Moderate
    COVID-19             -> Severe   if confidence > 0.85 else Moderate
    anything else        -> Inconclusive, Moderate
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from matplotlib.colors import to_rgba


SEVERITY_THRESHOLD = 0.85

INCONCLUSIVE = 'Inconclusive'


class Severity(Enum):
    NORMAL = 'Normal'
    MILD = 'Mild'
    MODERATE = 'Moderate'
    SEVERE = 'Severe'

    @property
    def hex_color(self) -> str:
        return SEVERITY_HEX_COLORS[self]

    @property
    def color(self) -> Tuple[float, float, float, float]:
        """Display color as linear (red, green, blue, alpha) in 0-1."""
        return to_rgba(self.hex_color)


# System green / yellow / orange / red
SEVERITY_HEX_COLORS = {
    Severity.NORMAL: '#34C759',
    Severity.MILD: '#FFCC00',
    Severity.MODERATE: '#FF9500',
    Severity.SEVERE: '#FF3B30',
}


class MatchPolicy(Enum):
    """How get_analysis matches the incoming classification string.

    EXACT: case-sensitive match against the four class names.
    NORMALIZED: lower-cased, trimmed, and matched against an alias set.
    """
    EXACT = 'exact'
    NORMALIZED = 'normalized'


@dataclass(frozen=True)
class Report:
    classification: str
    confidence: float
    description: str
    recommendations: Tuple[str, ...]
    severity: Severity
    other_possibilities: Tuple[Tuple[str, float], ...] = field(default_factory=tuple)

    def with_other_possibilities(self, possibilities: Sequence[Tuple[str, float]]) -> 'Report':
        return replace(self, other_possibilities=tuple((label, float(conf)) for label, conf in possibilities))

    def to_dict(self) -> Dict:
        return {
            'classification': self.classification,
            'confidence': self.confidence,
            'description': self.description,
            'recommendations': list(self.recommendations),
            'severity': self.severity.value,
            'other_possibilities': [list(p) for p in self.other_possibilities],
        }


NORMAL_DESCRIPTION = (
    "The X-ray appears normal with no significant abnormalities detected. \n"
    "The lung fields are clear, properly inflated, and show normal vascular markings. \n"
    "No signs of infection, inflammation, or other pathological conditions are present."
)

VIRAL_PNEUMONIA_DESCRIPTION = (
    "Findings suggest viral pneumonia. The X-ray shows characteristic patterns including:\n"
    "• Bilateral interstitial infiltrates\n"
    "• Ground-glass opacities\n"
    "• Possible bronchial wall thickening\n"
    "• Diffuse, patchy distribution"
)

BACTERIAL_PNEUMONIA_DESCRIPTION = (
    "Findings indicate bacterial pneumonia. Key features include:\n"
    "• Lobar consolidation\n"
    "• Possible pleural effusion\n"
    "• Dense opacification\n"
    "• Often unilateral involvement"
)

COVID_19_DESCRIPTION = (
    "Signs consistent with COVID-19 pneumonia detected. Typical features include:\n"
    "• Bilateral ground-glass opacities\n"
    "• Peripheral and basal predominance\n"
    "• Multiple patchy consolidations\n"
    "• 'Crazy-paving' pattern"
)

INCONCLUSIVE_DESCRIPTION = (
    "The analysis is inconclusive. This could be due to:\n"
    "• Image quality issues\n"
    "• Unusual presentation\n"
    "• Overlapping patterns\n"
    "• Need for additional views"
)

NORMAL_RECOMMENDATIONS = (
    "Continue regular health check-ups",
    "Maintain good respiratory health practices",
    "Practice preventive measures (hand washing, avoiding sick contacts)",
    "Stay up to date with vaccinations",
)

VIRAL_PNEUMONIA_RECOMMENDATIONS = (
    "Seek immediate medical attention",
    "Rest and maintain good hydration",
    "Monitor temperature and breathing",
    "Consider antiviral medication if appropriate",
    "Follow-up chest X-ray recommended in 2-3 weeks",
)

BACTERIAL_PNEUMONIA_RECOMMENDATIONS = (
    "Immediate antibiotic treatment required",
    "Regular monitoring of vital signs",
    "Complete full course of prescribed antibiotics",
    "Follow-up chest X-ray in 1-2 weeks",
    "Deep breathing exercises when appropriate",
)

COVID_19_RECOMMENDATIONS = (
    "Immediate isolation required",
    "Contact healthcare provider for treatment plan",
    "Monitor oxygen saturation levels regularly",
    "Follow COVID-19 protocols and guidelines",
    "Consider additional testing (PCR test)",
    "Alert recent contacts",
)

INCONCLUSIVE_RECOMMENDATIONS = (
    "Consider retaking the X-ray",
    "Consult with a healthcare provider",
    "Consider additional imaging (CT scan)",
    "Provide complete medical history",
)


# class -> (description, recommendations, (low tier, high tier))
KNOWLEDGE_BASE = {
    'Normal': (NORMAL_DESCRIPTION, NORMAL_RECOMMENDATIONS, (Severity.NORMAL, Severity.NORMAL)),
    'Viral Pneumonia': (VIRAL_PNEUMONIA_DESCRIPTION, VIRAL_PNEUMONIA_RECOMMENDATIONS,
                        (Severity.MILD, Severity.MODERATE)),
    'Bacterial Pneumonia': (BACTERIAL_PNEUMONIA_DESCRIPTION, BACTERIAL_PNEUMONIA_RECOMMENDATIONS,
                            (Severity.MODERATE, Severity.SEVERE)),
    'COVID-19': (COVID_19_DESCRIPTION, COVID_19_RECOMMENDATIONS, (Severity.MODERATE, Severity.SEVERE)),
}

KNOWN_CLASSES = tuple(KNOWLEDGE_BASE)

# Aliases accepted by MatchPolicy.NORMALIZED, keyed by lower-case form
NORMALIZED_ALIASES = {
    'normal': 'Normal',
    'healthy': 'Normal',
    'no finding': 'Normal',
    'viral pneumonia': 'Viral Pneumonia',
    'pneumonia-viral': 'Viral Pneumonia',
    'bacterial pneumonia': 'Bacterial Pneumonia',
    'pneumonia-bacterial': 'Bacterial Pneumonia',
    'covid-19': 'COVID-19',
    'covid': 'COVID-19',
}


def resolve_class(classification: str, policy: MatchPolicy = MatchPolicy.EXACT) -> Optional[str]:
    """Return the canonical class name, or None when it is not recognised."""
    if policy is MatchPolicy.NORMALIZED:
        return NORMALIZED_ALIASES.get(classification.strip().lower())
    return classification if classification in KNOWLEDGE_BASE else None


def get_analysis(classification: str, confidence: float,
                 policy: MatchPolicy = MatchPolicy.EXACT) -> Report:
    """
    Build the report for a classification.

    Args:
        classification: Diagnosis name (see KNOWN_CLASSES)
        confidence: Classifier confidence in [0, 1]
        policy: How the name is matched; exact by default

    Returns:
        Report with empty other_possibilities
    """
    canonical = resolve_class(classification, policy)

    if canonical is None:
        return Report(
            classification=INCONCLUSIVE,
            confidence=confidence,
            description=INCONCLUSIVE_DESCRIPTION,
            recommendations=INCONCLUSIVE_RECOMMENDATIONS,
            severity=Severity.MODERATE,
        )

    description, recommendations, (low, high) = KNOWLEDGE_BASE[canonical]
    severity = high if confidence > SEVERITY_THRESHOLD else low

    return Report(
        classification=canonical,
        confidence=confidence,
        description=description,
        recommendations=recommendations,
        severity=severity,
    )
