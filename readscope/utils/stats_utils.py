"""
ReadScope v0.1.0

Summary statistics over integer histograms.

A histogram here is a sequence whose index is the observed value and
whose entry is how often that value was seen (e.g. Phred score counts at
one read position).
"""

import math
from typing import Sequence, Tuple


def histogram_total(hist: Sequence[int]) -> int:
    """Number of observations in a histogram."""
    return int(sum(hist))


def histogram_mean_variance(hist: Sequence[int]) -> Tuple[float, float]:
    """
    Mean and population variance of a histogram.

    Computed from exact integer sums so the result does not depend on the
    order in which observations were added.
    """
    total = 0
    value_sum = 0
    square_sum = 0
    for value, count in enumerate(hist):
        if count:
            count = int(count)
            total += count
            value_sum += value * count
            square_sum += value * value * count

    if total == 0:
        raise ValueError("empty histogram has no mean")

    mean = value_sum / total
    variance = (square_sum * total - value_sum * value_sum) / (total * total)
    return mean, variance


def histogram_quantile(hist: Sequence[int], quantile: float) -> float:
    """
    Quantile of a histogram with linear interpolation between values.

    The rank is ``quantile * (n - 1)``; when it falls between the last
    observation of one value and the first of the next, the result is
    interpolated between the two values.

    Args:
        hist: Value histogram
        quantile: Quantile in [0, 1)

    Returns:
        Quantile value
    """
    total = histogram_total(hist)
    if total == 0:
        raise ValueError("empty histogram has no quantiles")

    rank = quantile * (total - 1)
    rank_floor = math.floor(rank)
    delta = rank - rank_floor
    target = rank_floor + 1

    seen = 0
    lower = None
    for value, count in enumerate(hist):
        if count == 0:
            continue
        if seen == target and lower is not None:
            return lower + (value - lower) * delta
        if seen + count > target:
            return float(value)
        seen += count
        lower = value

    return float(lower)


def quartiles(hist: Sequence[int]) -> Tuple[float, float, float, float, float]:
    """
    Box-plot summary of a histogram.

    Returns:
        (lower fence, Q1, median, Q3, upper fence) with the fences at
        1.5 x IQR beyond the quartiles

    Example:
        >>> quartiles([1] * 100)
        (-49.5, 24.75, 49.5, 74.25, 148.5)
    """
    q1 = histogram_quantile(hist, 0.25)
    median = histogram_quantile(hist, 0.5)
    q3 = histogram_quantile(hist, 0.75)
    iqr = q3 - q1
    return q1 - 1.5 * iqr, q1, median, q3, q3 + 1.5 * iqr


__all__ = [
    'histogram_total',
    'histogram_mean_variance',
    'histogram_quantile',
    'quartiles',
]
