"""Numeric primitives used across the analysis pipeline.

All functions are pure. Degenerate input (too few points, zero variance)
yields the neutral value instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

# |t| breakpoints mapped to an approximate two-sided p-value.
P_VALUE_BREAKPOINTS = ((2.6, 0.01), (2.0, 0.05), (1.7, 0.1))
P_VALUE_FLOOR = 0.2

SIGNIFICANCE_LEVEL = 0.05
MIN_SIGNIFICANT_SAMPLE = 20


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient of two equally long series."""
    if len(x) != len(y):
        raise ValueError(f"Series lengths differ: {len(x)} != {len(y)}")
    n = len(x)
    if n < 2:
        return 0.0

    sum_x = sum(x)
    sum_y = sum(y)
    sum_xy = sum(a * b for a, b in zip(x, y))
    sum_x2 = sum(a * a for a in x)
    sum_y2 = sum(b * b for b in y)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if variance_product <= 0:
        return 0.0
    r = numerator / math.sqrt(variance_product)
    # Floating point can overshoot the bounds by an ulp.
    return max(-1.0, min(1.0, r))


def approximate_p_value(correlation: float, sample_size: int) -> float:
    """Coarse p-value from the t-statistic of a correlation coefficient."""
    if sample_size <= 2:
        return 1.0
    r_squared = correlation * correlation
    if r_squared >= 1.0:
        return P_VALUE_BREAKPOINTS[0][1]
    t = abs(correlation) * math.sqrt((sample_size - 2) / (1.0 - r_squared))
    for breakpoint, p_value in P_VALUE_BREAKPOINTS:
        if t > breakpoint:
            return p_value
    return P_VALUE_FLOOR


def is_significant(p_value: float, sample_size: int) -> bool:
    return p_value < SIGNIFICANCE_LEVEL and sample_size >= MIN_SIGNIFICANT_SAMPLE


def linear_trend_slope(values: Sequence[float]) -> float:
    """Ordinary least-squares slope over indices 0..n-1."""
    n = len(values)
    if n <= 1:
        return 0.0
    sum_x = sum(range(n))
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_xx = sum(i * i for i in range(n))
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def moving_average(series: Sequence[float], window: int) -> list[float]:
    """Running means of ``window`` points; short input is returned unchanged."""
    if window <= 0:
        raise ValueError("Window must be positive")
    if len(series) < window:
        return list(series)
    return [
        sum(series[i:i + window]) / window
        for i in range(len(series) - window + 1)
    ]


def percentile(values: Sequence[float], p: float, invert_direction: bool = False) -> float:
    """Nearest-rank style percentile at index floor((n-1)*p).

    With ``invert_direction`` the index is mirrored from the top of the sorted
    values, so "lower is worse" factors read the same way as the others.
    """
    if not values:
        raise ValueError("percentile() of an empty sequence")
    ordered = sorted(values)
    index = int((len(ordered) - 1) * p)
    if invert_direction:
        return ordered[len(ordered) - 1 - index]
    return ordered[index]


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def population_std_dev(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    mu = mean(values)
    return math.sqrt(sum((v - mu) ** 2 for v in values) / len(values))
