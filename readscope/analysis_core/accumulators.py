#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Statistic accumulators — the common accumulator contract and the
per-position (quality, composition) and per-read (GC, length) variants.

Every accumulator consumes one record at a time, can be merged with a peer
of the same variant and can produce an immutable snapshot. Merging is pure:
it returns a new accumulator and leaves both inputs untouched, so partial
results from independent workers can be combined in any tree shape.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from enum import Enum
from typing import Any, Tuple

import numpy as np

from ..io.io_core_module import FastqRecord, NUM_PHRED_VALUES
from ..utils.sequence_utils import calculate_gc_percent
from ..utils.stats_utils import histogram_mean_variance, histogram_quantile, quartiles
from .report_model import (
    BaseCounts,
    CompositionTable,
    GCHistogram,
    LengthHistogram,
    PositionQuality,
    QualityMatrix,
    frozen_mapping,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Accumulator contract
# ============================================================================

class AccumulatorKind(Enum):
    """Closed set of accumulator variants."""
    QUALITY = "quality"
    COMPOSITION = "composition"
    GC = "gc"
    LENGTH = "length"
    DUPLICATION = "duplication"
    KMER = "kmer"


class Accumulator(ABC):
    """
    Base class for all statistic accumulators.

    Subclasses implement ``update`` (O(read length)), ``merge`` (pure,
    associative and commutative) and ``snapshot`` (immutable view).
    """

    kind: AccumulatorKind

    @abstractmethod
    def update(self, record: FastqRecord):
        """Fold one record into the accumulator."""

    @abstractmethod
    def merge(self, other: 'Accumulator') -> 'Accumulator':
        """Return a new accumulator equivalent to having seen both inputs."""

    @abstractmethod
    def snapshot(self) -> Any:
        """Immutable view of the current state."""

    def parameters(self) -> Tuple:
        """Settings that must match for two accumulators to merge."""
        return ()

    def _check_mergeable(self, other: 'Accumulator'):
        if type(other) is not type(self):
            raise TypeError(
                f"Cannot merge {type(self).__name__} with {type(other).__name__}"
            )
        if self.parameters() != other.parameters():
            raise ValueError(
                f"Cannot merge {type(self).__name__} accumulators with different "
                f"parameters: {self.parameters()} vs {other.parameters()}"
            )


def _pad_rows(matrix: np.ndarray, rows: int) -> np.ndarray:
    """Copy of ``matrix`` extended with zero rows up to ``rows``."""
    padded = np.zeros((rows, matrix.shape[1]), dtype=matrix.dtype)
    padded[:matrix.shape[0]] = matrix
    return padded


class _PositionalAccumulator(Accumulator):
    """Shared storage for per-position count matrices (position x column)."""

    columns: int

    def __init__(self):
        self._counts = np.zeros((0, self.columns), dtype=np.int64)
        self._rows = np.arange(0)

    def _ensure_length(self, length: int):
        if length > self._counts.shape[0]:
            self._counts = _pad_rows(self._counts, length)
            self._rows = np.arange(length)

    def merge(self, other: '_PositionalAccumulator') -> '_PositionalAccumulator':
        self._check_mergeable(other)
        rows = max(self._counts.shape[0], other._counts.shape[0])
        merged = type(self).__new__(type(self))
        merged.__dict__.update(self.__dict__)
        merged._counts = _pad_rows(self._counts, rows) + _pad_rows(other._counts, rows)
        merged._rows = np.arange(rows)
        return merged

    @property
    def max_length(self) -> int:
        return self._counts.shape[0]


# ============================================================================
# Quality
# ============================================================================

class QualityAccumulator(_PositionalAccumulator):
    """
    Per-position Phred score distribution.

    Counts are kept as a (position x score) integer matrix; mean, variance
    and quartiles per position are derived from it at snapshot time.
    """

    kind = AccumulatorKind.QUALITY
    columns = NUM_PHRED_VALUES

    def update(self, record: FastqRecord):
        length = len(record.quality)
        if length == 0:
            return
        self._ensure_length(length)
        self._counts[self._rows[:length], record.quality] += 1

    def snapshot(self) -> QualityMatrix:
        positions = []
        for position, row in enumerate(self._counts.tolist()):
            total = sum(row)
            if total == 0:
                continue
            mean, variance = histogram_mean_variance(row)
            lower_fence, q1, median, q3, upper_fence = quartiles(row)
            positions.append(PositionQuality(
                position=position,
                counts=tuple(row),
                total=total,
                mean=mean,
                variance=variance,
                lower_fence=lower_fence,
                q1=q1,
                median=median,
                q3=q3,
                upper_fence=upper_fence,
                p10=histogram_quantile(row, 0.1),
                p90=histogram_quantile(row, 0.9),
            ))
        return QualityMatrix(positions=tuple(positions))


# ============================================================================
# Composition
# ============================================================================

# Byte -> column (A, C, G, T, N); anything unrecognised counts as N.
_BASE_INDEX = np.full(256, 4, dtype=np.intp)
for _column, _bases in enumerate((b'Aa', b'Cc', b'Gg', b'Tt')):
    for _base in _bases:
        _BASE_INDEX[_base] = _column


class CompositionAccumulator(_PositionalAccumulator):
    """Per-position A/C/G/T/N counts, case-insensitive."""

    kind = AccumulatorKind.COMPOSITION
    columns = 5

    def update(self, record: FastqRecord):
        length = len(record.sequence)
        if length == 0:
            return
        self._ensure_length(length)
        columns = _BASE_INDEX[np.frombuffer(record.sequence, dtype=np.uint8)]
        self._counts[self._rows[:length], columns] += 1

    def snapshot(self) -> CompositionTable:
        return CompositionTable(positions=tuple(
            BaseCounts(position, a, c, g, t, n)
            for position, (a, c, g, t, n) in enumerate(self._counts.tolist())
        ))


# ============================================================================
# GC content
# ============================================================================

class GCAccumulator(Accumulator):
    """Histogram of per-read GC percentage (101 buckets)."""

    kind = AccumulatorKind.GC

    def __init__(self):
        self._counts = [0] * 101

    def update(self, record: FastqRecord):
        self._counts[calculate_gc_percent(record.sequence)] += 1

    def merge(self, other: 'GCAccumulator') -> 'GCAccumulator':
        self._check_mergeable(other)
        merged = GCAccumulator()
        merged._counts = [a + b for a, b in zip(self._counts, other._counts)]
        return merged

    def snapshot(self) -> GCHistogram:
        return GCHistogram(counts=tuple(self._counts))


# ============================================================================
# Length
# ============================================================================

class LengthAccumulator(Accumulator):
    """Histogram of read lengths."""

    kind = AccumulatorKind.LENGTH

    def __init__(self):
        self._counts: Counter = Counter()

    def update(self, record: FastqRecord):
        self._counts[len(record.sequence)] += 1

    def merge(self, other: 'LengthAccumulator') -> 'LengthAccumulator':
        self._check_mergeable(other)
        merged = LengthAccumulator()
        merged._counts = self._counts + other._counts
        return merged

    def snapshot(self) -> LengthHistogram:
        return LengthHistogram(counts=frozen_mapping(self._counts))

# ReadScope v0.1.0
# Any usage is subject to this software's license.
