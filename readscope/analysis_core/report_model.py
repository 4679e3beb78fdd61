#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Report model — immutable aggregated statistics of one analysis run.

Every accumulator snapshot type lives here. All of them are frozen
dataclasses holding tuples and read-only mappings, so a ReportModel can be
passed to the HTML renderer and the summary writer without copying.
Floating-point fields are derived from integer counts only, which keeps two
reports over the same input bit-identical however the counts were merged.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

BASES = ('A', 'C', 'G', 'T', 'N')


def frozen_mapping(items: Mapping) -> Mapping:
    """Read-only mapping with keys in sorted order."""
    return MappingProxyType(dict(sorted(items.items())))


# ============================================================================
# Per-position quality
# ============================================================================

@dataclass(frozen=True)
class PositionQuality:
    """Quality score distribution at one read position (0-based)."""
    position: int
    counts: Tuple[int, ...]
    total: int
    mean: float
    variance: float
    lower_fence: float
    q1: float
    median: float
    q3: float
    upper_fence: float
    p10: float
    p90: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pos': self.position,
            'average': self.mean,
            'variance': self.variance,
            'upper': self.upper_fence,
            'lower': self.lower_fence,
            'q1': self.q1,
            'q3': self.q3,
            'median': self.median,
            'p10': self.p10,
            'p90': self.p90,
            'total': self.total,
        }


@dataclass(frozen=True)
class QualityMatrix:
    """Per-position quality distributions, indexed by position."""
    positions: Tuple[PositionQuality, ...] = ()

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, position: int) -> PositionQuality:
        return self.positions[position]

    def __iter__(self):
        return iter(self.positions)

    def to_dict(self) -> List[Dict[str, Any]]:
        return [position.to_dict() for position in self.positions]


# ============================================================================
# Per-position base composition
# ============================================================================

@dataclass(frozen=True)
class BaseCounts:
    """Base counts at one read position."""
    position: int
    a: int
    c: int
    g: int
    t: int
    n: int

    @property
    def total(self) -> int:
        return self.a + self.c + self.g + self.t + self.n

    def as_dict(self) -> Dict[str, int]:
        return {'A': self.a, 'C': self.c, 'G': self.g, 'T': self.t, 'N': self.n}

    def percentages(self) -> Dict[str, float]:
        """Share of each base at this position, in percent."""
        total = self.total
        if total == 0:
            return {base: 0.0 for base in BASES}
        return {base: 100.0 * count / total for base, count in self.as_dict().items()}


@dataclass(frozen=True)
class CompositionTable:
    """Per-position base counts, indexed by position."""
    positions: Tuple[BaseCounts, ...] = ()

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, position: int) -> BaseCounts:
        return self.positions[position]

    def __iter__(self):
        return iter(self.positions)

    def to_dict(self) -> List[Dict[str, Any]]:
        return [{'pos': counts.position, **counts.as_dict()} for counts in self.positions]


# ============================================================================
# Per-read histograms
# ============================================================================

@dataclass(frozen=True)
class GCHistogram:
    """Read counts per GC percentage bucket (0..100)."""
    counts: Tuple[int, ...] = (0,) * 101

    def __getitem__(self, percent: int) -> int:
        return self.counts[percent]

    @property
    def total(self) -> int:
        return sum(self.counts)

    @property
    def mean(self) -> float:
        """Mean GC percentage over reads (0 when empty)."""
        total = self.total
        if total == 0:
            return 0.0
        return sum(percent * count for percent, count in enumerate(self.counts)) / total

    def nonzero(self) -> Dict[int, int]:
        return {percent: count for percent, count in enumerate(self.counts) if count}

    def to_dict(self) -> Dict[int, int]:
        return self.nonzero()


@dataclass(frozen=True)
class LengthHistogram:
    """Read counts per observed read length."""
    counts: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))

    def __getitem__(self, length: int) -> int:
        return self.counts.get(length, 0)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def min_length(self) -> int:
        return min(self.counts) if self.counts else 0

    @property
    def max_length(self) -> int:
        return max(self.counts) if self.counts else 0

    @property
    def mean(self) -> float:
        total = self.total
        if total == 0:
            return 0.0
        return sum(length * count for length, count in self.counts.items()) / total

    def to_dict(self) -> Dict[int, int]:
        return dict(self.counts)


# ============================================================================
# Duplication
# ============================================================================

# FastQC duplication-level buckets: (label, lowest occurrence count)
DUPLICATION_LEVELS = (
    ('1', 1), ('2', 2), ('3', 3), ('4', 4), ('5', 5), ('6', 6), ('7', 7),
    ('8', 8), ('9', 9), ('>10', 10), ('>50', 50), ('>100', 100),
    ('>500', 500), ('>1k', 1000), ('>5k', 5000), ('>10k', 10000),
)


@dataclass(frozen=True)
class DuplicationSummary:
    """
    Sampled sequence duplication statistics.

    Attributes:
        total_reads: Reads offered to the tracker
        sampled_reads: Reads whose sequence is in the retained sample
        distinct_sampled: Distinct sequences in the retained sample
        sample_cap: Maximum number of distinct sequences retained
        counts: Occurrence count per retained sequence
        top_sequences: Most duplicated retained sequences, count
            descending then sequence ascending
    """
    total_reads: int = 0
    sampled_reads: int = 0
    distinct_sampled: int = 0
    sample_cap: int = 0
    counts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    top_sequences: Tuple[Tuple[str, int], ...] = ()

    def count_of(self, sequence) -> int:
        """Occurrences of a sequence in the sample (0 if not retained)."""
        if isinstance(sequence, bytes):
            sequence = sequence.decode('latin-1')
        return self.counts.get(sequence.upper(), 0)

    @property
    def is_saturated(self) -> bool:
        """True when the sample cap was reached and sampling applied."""
        return self.sample_cap > 0 and self.distinct_sampled >= self.sample_cap

    @property
    def percent_remaining(self) -> float:
        """
        Estimated percentage of reads left after de-duplication.

        Distinct sequences are sampled uniformly, so the mean occurrence
        count inside the sample estimates the mean over the whole input.
        """
        if self.sampled_reads == 0:
            return 100.0
        return 100.0 * self.distinct_sampled / self.sampled_reads

    def duplication_levels(self) -> Dict[str, Tuple[int, int]]:
        """
        Sampled sequences per FastQC duplication level.

        Returns:
            label -> (distinct sequences, reads) for every level
        """
        levels = {label: [0, 0] for label, _ in DUPLICATION_LEVELS}
        for count in self.counts.values():
            label = DUPLICATION_LEVELS[0][0]
            for candidate, lowest in DUPLICATION_LEVELS:
                if count >= lowest:
                    label = candidate
            levels[label][0] += 1
            levels[label][1] += count
        return {label: (distinct, reads) for label, (distinct, reads) in levels.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_reads': self.total_reads,
            'sampled_reads': self.sampled_reads,
            'distinct_sampled': self.distinct_sampled,
            'sample_cap': self.sample_cap,
            'percent_remaining': self.percent_remaining,
            'duplication_levels': {label: list(value) for label, value in self.duplication_levels().items()},
            'top_sequences': [list(item) for item in self.top_sequences],
        }


# ============================================================================
# K-mers
# ============================================================================

@dataclass(frozen=True)
class OverrepresentedKmer:
    """K-mer whose share of all k-mer occurrences passes the threshold."""
    kmer: str
    count: int
    fraction: float
    bin_counts: Tuple[int, ...]

    @property
    def peak_bin(self) -> int:
        """Position bin where the k-mer is most frequent (first on ties)."""
        return max(range(len(self.bin_counts)), key=lambda b: (self.bin_counts[b], -b))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kmer': self.kmer,
            'count': self.count,
            'fraction': self.fraction,
            'bin_counts': list(self.bin_counts),
            'peak_bin': self.peak_bin,
        }


@dataclass(frozen=True)
class KmerSummary:
    """
    K-mer table snapshot.

    Attributes:
        k: K-mer length
        position_bins: Number of start-position bins per read
        total_kmers: All k-mer occurrences counted
        totals: Running total per k-mer
        bin_counts: Count per (k-mer, position bin)
        overrepresented: K-mers at or above the threshold fraction
        threshold_fraction: Threshold used for ``overrepresented``
    """
    k: int = 5
    position_bins: int = 3
    total_kmers: int = 0
    totals: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    bin_counts: Mapping[Tuple[str, int], int] = field(default_factory=lambda: MappingProxyType({}))
    overrepresented: Tuple[OverrepresentedKmer, ...] = ()
    threshold_fraction: float = 0.001

    @property
    def distinct_kmers(self) -> int:
        return len(self.totals)

    def count_of(self, kmer: str) -> int:
        return self.totals.get(kmer.upper(), 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'k': self.k,
            'position_bins': self.position_bins,
            'total_kmers': self.total_kmers,
            'distinct_kmers': self.distinct_kmers,
            'threshold_fraction': self.threshold_fraction,
            'overrepresented': [item.to_dict() for item in self.overrepresented],
        }


# ============================================================================
# Report model
# ============================================================================

@dataclass(frozen=True)
class ReportModel:
    """
    Aggregated statistics of one run.

    Produced once by the analysis engine and never mutated; the renderer
    and summary writer read it without performing any analysis.
    """
    source_name: str
    read_count: int
    total_bases: int
    malformed_records: int
    malformed_examples: Tuple[str, ...]
    quality_offset: int
    quality: QualityMatrix
    composition: CompositionTable
    gc: GCHistogram
    lengths: LengthHistogram
    duplication: DuplicationSummary
    kmers: KmerSummary

    @property
    def has_invalid_reads(self) -> bool:
        return self.malformed_records > 0

    @property
    def overall_gc_percent(self) -> float:
        """GC percentage over all bases."""
        gc = sum(counts.g + counts.c for counts in self.composition)
        return 100.0 * gc / self.total_bases if self.total_bases else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view for JSON export."""
        return {
            'source_name': self.source_name,
            'read_count': self.read_count,
            'total_bases': self.total_bases,
            'malformed_records': self.malformed_records,
            'malformed_examples': list(self.malformed_examples),
            'quality_offset': self.quality_offset,
            'quality': self.quality.to_dict(),
            'composition': self.composition.to_dict(),
            'gc_histogram': self.gc.to_dict(),
            'length_histogram': self.lengths.to_dict(),
            'duplication': self.duplication.to_dict(),
            'kmers': self.kmers.to_dict(),
        }

# ReadScope v0.1.0
# Any usage is subject to this software's license.
