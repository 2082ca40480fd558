"""Ratio helpers. Every zero denominator yields 0, never NaN or an exception."""


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator


def safe_percentage(numerator: float, denominator: float) -> float:
    """Share expressed on a 0..100 scale, 0.0 when the denominator is 0."""
    return safe_ratio(numerator, denominator) * 100
