"""
Utilities module for ReadScope.

This module provides helpers shared by the analysis core:
- Sequence helpers (k-mer extraction, GC percentage, position bins, hashing)
- Histogram statistics (mean, variance, quantiles, box-plot quartiles)
"""

from .sequence_utils import (
    extract_kmers,
    calculate_gc_percent,
    position_bins,
    sequence_hash,
)
from .stats_utils import (
    histogram_total,
    histogram_mean_variance,
    histogram_quantile,
    quartiles,
)

__all__ = [
    'extract_kmers',
    'calculate_gc_percent',
    'position_bins',
    'sequence_hash',
    'histogram_total',
    'histogram_mean_variance',
    'histogram_quantile',
    'quartiles',
]
