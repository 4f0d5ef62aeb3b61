"""Text helpers shared by the chat assistant and the Streamlit page."""

from typing import Sequence, Tuple

from diagnosis.knowledge_base import Report, Severity


def format_percent(confidence: float) -> str:
    """Whole-number percent, truncated: 0.927 -> '92%'."""
    return f"{int(confidence * 100)}%"


def color_to_hex(color: Tuple[float, float, float, float]) -> str:
    """RGBA floats in 0-1 to '#RRGGBB'."""
    red, green, blue = (round(c * 255) for c in color[:3])
    return f"#{red:02X}{green:02X}{blue:02X}"


def format_possibilities(possibilities: Sequence[Tuple[str, float]]) -> str:
    return ', '.join(f"{label} ({format_percent(conf)})" for label, conf in possibilities)


def severity_badge(severity: Severity) -> str:
    """Inline HTML badge showing the severity in its color."""
    hex_color = color_to_hex(severity.color)
    return (
        f'<span style="color:{hex_color};background-color:{hex_color}33;'
        f'padding:2px 12px;border-radius:8px;font-weight:600">{severity.value}</span>'
    )


def format_report_summary(report: Report) -> str:
    """Plain-text summary of a report, used as the first chat reply."""
    lines = [
        "X-RAY ANALYSIS COMPLETE",
        "",
        f"• Finding: {report.classification}",
        f"• Confidence: {format_percent(report.confidence)}",
        f"• Severity: {report.severity.value}",
        "",
        "Recommendations:",
    ]
    lines.extend(f"  - {rec}" for rec in report.recommendations)

    if report.other_possibilities:
        lines.append("")
        lines.append("Other possibilities:")
        lines.extend(f"  - {label} ({format_percent(conf)})" for label, conf in report.other_possibilities)

    return '\n'.join(lines)
