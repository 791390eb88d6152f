"""Formatting utilities for CLIMB text reports."""

from climb.analysis.types import LagCorrelationPoint


def format_ratio(value: float | None) -> str:
    """
    Format a ratio as a percentage.

    Args:
        value: Ratio (0.25 = 25%)

    Returns:
        Formatted string (e.g., "25.0%"), or "—" when undefined
    """
    if value is None:
        return "—"
    return f"{value * 100:.1f}%"


def format_count(value: float) -> str:
    """Format a count, dropping the decimals of whole numbers."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_lag(point: LagCorrelationPoint | None) -> str:
    """
    Format a lag correlation point.

    Returns:
        e.g. "+3h (r=0.62, n=118)", or "—" when there is no lag
    """
    if point is None:
        return "—"
    return f"{point.lag:+d}h (r={point.correlation:.2f}, n={point.paired_samples})"
