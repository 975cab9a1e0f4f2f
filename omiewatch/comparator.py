"""Threshold logic for trend alerts."""

from omiewatch.models import TrendResult


def exceeds_threshold(trend: TrendResult, max_value: float) -> bool:
    """
    Return True if the trend is strictly above the configured ceiling.

    Partial results (short history under the partial policy) never alert.
    """
    if trend.partial:
        return False
    return trend.value > max_value
