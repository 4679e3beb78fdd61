#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

K-mer counter — k-mer occurrence table with coarse start-position bins and
overrepresentation calling.

Every k-length substring of every read contributes exactly one increment,
to its (k-mer, position bin) cell and to its running total. Reads shorter
than k contribute nothing. Start offsets are split into a small number of
equal bins per read (start / middle / end thirds by default), which bounds
the table at ``bins`` cells per distinct k-mer while still showing whether
a k-mer is concentrated at one end of the reads (adapters, primers).

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from collections import Counter
from typing import List, Tuple

from ..io.io_core_module import FastqRecord
from ..utils.sequence_utils import extract_kmers, position_bins
from .accumulators import Accumulator, AccumulatorKind
from .report_model import KmerSummary, OverrepresentedKmer, frozen_mapping

logger = logging.getLogger(__name__)

DEFAULT_K = 5
DEFAULT_POSITION_BINS = 3
DEFAULT_OVERREPRESENTED_FRACTION = 0.001


class KmerAccumulator(Accumulator):
    """
    Counts k-mers per start-position bin.

    Args:
        k: K-mer length
        bins: Number of start-position bins per read
        overrepresented_fraction: Share of all k-mer occurrences at or
            above which a k-mer is reported as overrepresented
    """

    kind = AccumulatorKind.KMER

    def __init__(self, k: int = DEFAULT_K, bins: int = DEFAULT_POSITION_BINS,
                 overrepresented_fraction: float = DEFAULT_OVERREPRESENTED_FRACTION):
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        if bins < 1:
            raise ValueError(f"bins must be >= 1, got {bins}")
        self.k = k
        self.bins = bins
        self.overrepresented_fraction = overrepresented_fraction
        self._totals: Counter = Counter()
        self._bin_counts: List[Counter] = [Counter() for _ in range(bins)]

    def parameters(self) -> Tuple:
        return (self.k, self.bins, self.overrepresented_fraction)

    @property
    def total_kmers(self) -> int:
        return sum(self._totals.values())

    def update(self, record: FastqRecord):
        kmers = extract_kmers(record.sequence, self.k)
        if not kmers:
            return

        self._totals.update(kmers)
        for position_bin, start, stop in position_bins(len(kmers), self.bins):
            self._bin_counts[position_bin].update(kmers[start:stop])

    def merge(self, other: 'KmerAccumulator') -> 'KmerAccumulator':
        self._check_mergeable(other)
        merged = KmerAccumulator(self.k, self.bins, self.overrepresented_fraction)
        merged._totals = self._totals + other._totals
        merged._bin_counts = [
            mine + theirs for mine, theirs in zip(self._bin_counts, other._bin_counts)
        ]
        return merged

    def overrepresented(self) -> List[OverrepresentedKmer]:
        """
        K-mers whose running total is at least the threshold fraction of all
        k-mer occurrences, by count descending then k-mer ascending.
        """
        total = self.total_kmers
        if total == 0:
            return []

        hits = []
        for kmer, count in self._totals.items():
            fraction = count / total
            if fraction >= self.overrepresented_fraction:
                hits.append(OverrepresentedKmer(
                    kmer=kmer.decode('latin-1'),
                    count=count,
                    fraction=fraction,
                    bin_counts=tuple(counts[kmer] for counts in self._bin_counts),
                ))
        hits.sort(key=lambda hit: (-hit.count, hit.kmer))
        return hits

    def snapshot(self) -> KmerSummary:
        totals = {kmer.decode('latin-1'): count for kmer, count in self._totals.items()}
        bin_counts = {
            (kmer.decode('latin-1'), position_bin): count
            for position_bin, counts in enumerate(self._bin_counts)
            for kmer, count in counts.items()
        }
        return KmerSummary(
            k=self.k,
            position_bins=self.bins,
            total_kmers=sum(totals.values()),
            totals=frozen_mapping(totals),
            bin_counts=frozen_mapping(bin_counts),
            overrepresented=tuple(self.overrepresented()),
            threshold_fraction=self.overrepresented_fraction,
        )

# ReadScope v0.1.0
# Any usage is subject to this software's license.
