#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Duplication tracker — bounded-memory estimate of sequence duplication.

Exhaustive duplicate counting needs memory proportional to the number of
distinct reads. The tracker instead keeps a bottom-k sample: the ``cap``
distinct sequences with the smallest 64-bit hash values, with an exact
occurrence count for each.

Properties of the bottom-k sample:
- The hash threshold only ever decreases, so a sequence that is in the
  sample has been in it since its first occurrence; retained counts are
  exact.
- Sampling is uniform over distinct sequences, so the duplication levels
  observed inside the sample estimate those of the whole input.
- Merging two trackers keeps the ``cap`` smallest hashes of the union
  (proportional down-sampling), which stays within the cap. For trackers
  built this way the merged sample equals the one a single tracker would
  have built over both inputs. The summary is still an estimate whenever
  the cap was reached, and is reported as such.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import heapq
import logging
from typing import Dict, List, Tuple

from ..io.io_core_module import FastqRecord
from ..utils.sequence_utils import sequence_hash
from .accumulators import Accumulator, AccumulatorKind
from .report_model import DuplicationSummary, frozen_mapping

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 100_000
DEFAULT_TOP_SEQUENCES = 20


class DuplicationAccumulator(Accumulator):
    """
    Bottom-k sampled sequence occurrence counter.

    Args:
        sample_size: Maximum number of distinct sequences retained
        top_sequences: Number of most duplicated sequences in the snapshot
    """

    kind = AccumulatorKind.DUPLICATION

    def __init__(self, sample_size: int = DEFAULT_SAMPLE_SIZE,
                 top_sequences: int = DEFAULT_TOP_SEQUENCES):
        if sample_size < 1:
            raise ValueError(f"sample_size must be >= 1, got {sample_size}")
        self.sample_size = sample_size
        self.top_sequences = top_sequences
        self.total_reads = 0
        self._counts: Dict[bytes, int] = {}
        # Max-heap on hash: (-hash, sequence)
        self._heap: List[Tuple[int, bytes]] = []

    def parameters(self) -> Tuple:
        return (self.sample_size,)

    @property
    def threshold(self) -> int:
        """Largest retained hash (admission bound once the sample is full)."""
        return -self._heap[0][0] if self._heap else 0

    def update(self, record: FastqRecord):
        self.total_reads += 1
        sequence = record.sequence.upper()

        count = self._counts.get(sequence)
        if count is not None:
            self._counts[sequence] = count + 1
            return

        seq_hash = sequence_hash(sequence)
        if len(self._counts) < self.sample_size:
            self._counts[sequence] = 1
            heapq.heappush(self._heap, (-seq_hash, sequence))
        elif seq_hash < self.threshold:
            _, evicted = heapq.heapreplace(self._heap, (-seq_hash, sequence))
            del self._counts[evicted]
            self._counts[sequence] = 1

    def merge(self, other: 'DuplicationAccumulator') -> 'DuplicationAccumulator':
        self._check_mergeable(other)

        combined = dict(self._counts)
        for sequence, count in other._counts.items():
            combined[sequence] = combined.get(sequence, 0) + count

        hashed = [(sequence_hash(sequence), sequence) for sequence in combined]
        if len(hashed) > self.sample_size:
            hashed = heapq.nsmallest(self.sample_size, hashed)
            logger.debug(f"Duplication sample down-sampled from {len(combined):,} "
                         f"to {self.sample_size:,} distinct sequences")

        merged = DuplicationAccumulator(self.sample_size,
                                        max(self.top_sequences, other.top_sequences))
        merged.total_reads = self.total_reads + other.total_reads
        merged._counts = {sequence: combined[sequence] for _, sequence in hashed}
        merged._heap = [(-seq_hash, sequence) for seq_hash, sequence in hashed]
        heapq.heapify(merged._heap)
        return merged

    def snapshot(self) -> DuplicationSummary:
        counts = {sequence.decode('latin-1'): count for sequence, count in self._counts.items()}
        top = sorted(
            ((sequence, count) for sequence, count in counts.items() if count > 1),
            key=lambda item: (-item[1], item[0])
        )[:self.top_sequences]

        return DuplicationSummary(
            total_reads=self.total_reads,
            sampled_reads=sum(counts.values()),
            distinct_sampled=len(counts),
            sample_cap=self.sample_size,
            counts=frozen_mapping(counts),
            top_sequences=tuple(top),
        )

# ReadScope v0.1.0
# Any usage is subject to this software's license.
