#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Tests for the statistic accumulators.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest
from readscope.analysis_core.accumulators import (
    AccumulatorKind,
    CompositionAccumulator,
    GCAccumulator,
    LengthAccumulator,
    QualityAccumulator,
)
from readscope.analysis_core.duplication_module import DuplicationAccumulator
from readscope.analysis_core.kmer_module import KmerAccumulator


ACCUMULATOR_FACTORIES = [
    QualityAccumulator,
    CompositionAccumulator,
    GCAccumulator,
    LengthAccumulator,
    lambda: DuplicationAccumulator(sample_size=1000),
    lambda: KmerAccumulator(k=3),
]


def _filled(factory, records):
    accumulator = factory()
    for record in records:
        accumulator.update(record)
    return accumulator


@pytest.fixture
def three_batches(make_record):
    return [
        [make_record("ACGTACGT", 30), make_record("acgtn", [10, 20, 30, 40, 41])],
        [make_record("GGGCCC", 38), make_record("A", 2)],
        [make_record("TTTTTTTTTTTT", 12), make_record("", 0), make_record("ACGTACGT", 35)],
    ]


class TestQualityAccumulator:
    """Per-position quality distribution."""

    def test_counts_and_mean(self, make_record):
        accumulator = _filled(QualityAccumulator, [
            make_record("AC", [30, 40]),
            make_record("ACG", [20, 40, 10]),
        ])
        matrix = accumulator.snapshot()

        assert len(matrix) == 3
        assert matrix[0].total == 2
        assert matrix[0].mean == 25.0
        assert matrix[0].variance == 25.0
        assert matrix[1].median == 40.0
        assert matrix[2].total == 1
        assert matrix[2].counts[10] == 1

    def test_quartile_fields(self, make_record):
        accumulator = _filled(QualityAccumulator, [make_record("A", 40)] * 4)
        position = accumulator.snapshot()[0]

        assert (position.lower_fence, position.q1, position.median, position.q3,
                position.upper_fence) == (40.0, 40.0, 40.0, 40.0, 40.0)
        assert position.p10 == 40.0
        assert position.p90 == 40.0

    def test_to_dict_keys(self, make_record):
        accumulator = _filled(QualityAccumulator, [make_record("A", 40)])
        row = accumulator.snapshot().to_dict()[0]

        assert {'pos', 'average', 'upper', 'lower', 'q1', 'q3', 'median'} <= set(row)

    def test_empty(self):
        assert len(QualityAccumulator().snapshot()) == 0


class TestCompositionAccumulator:
    """Per-position base counts."""

    def test_counts_case_insensitive(self, make_record):
        accumulator = _filled(CompositionAccumulator, [
            make_record("acgtn"),
            make_record("AXG"),
        ])
        table = accumulator.snapshot()

        assert table[0].as_dict() == {'A': 2, 'C': 0, 'G': 0, 'T': 0, 'N': 0}
        # Unknown bytes count as N
        assert table[1].n == 1
        assert table[1].c == 1
        assert table[4].n == 1
        assert table[4].total == 1

    def test_percentages(self, make_record):
        table = _filled(CompositionAccumulator, [make_record("A"), make_record("C")]).snapshot()

        assert table[0].percentages()['A'] == 50.0


class TestGCAndLength:
    """Per-read histograms."""

    def test_gc_histogram(self, make_record):
        histogram = _filled(GCAccumulator, [
            make_record("ACGTA"),
            make_record("ACGTA"),
            make_record("TTTTT"),
            make_record("NNNNN"),
        ]).snapshot()

        assert histogram[40] == 2
        assert histogram[0] == 2
        assert histogram.total == 4
        assert len(histogram.counts) == 101

    def test_gc_empty_read(self, make_record):
        histogram = _filled(GCAccumulator, [make_record("")]).snapshot()

        assert histogram[0] == 1

    def test_length_histogram(self, make_record):
        histogram = _filled(LengthAccumulator, [
            make_record("ACGTA"), make_record("AC"), make_record("ACGTA"),
        ]).snapshot()

        assert dict(histogram.counts) == {2: 1, 5: 2}
        assert histogram[3] == 0
        assert histogram.min_length == 2
        assert histogram.max_length == 5


class TestKmerAccumulator:
    """K-mer counting boundaries and overrepresentation."""

    def test_kmer_occurrences_per_read(self, make_record):
        accumulator = _filled(lambda: KmerAccumulator(k=3), [make_record("ACGTACG")])

        assert accumulator.total_kmers == 7 - 3 + 1

    def test_read_of_length_k(self, make_record):
        summary = _filled(lambda: KmerAccumulator(k=5), [make_record("ACGTA")]).snapshot()

        assert summary.total_kmers == 1
        assert summary.count_of("ACGTA") == 1

    def test_read_shorter_than_k(self, make_record):
        summary = _filled(lambda: KmerAccumulator(k=5), [make_record("ACG")]).snapshot()

        assert summary.total_kmers == 0
        assert summary.overrepresented == ()

    def test_bin_counts_sum_to_totals(self, make_record):
        summary = _filled(lambda: KmerAccumulator(k=2, bins=3), [
            make_record("AAAAAAAAAA"), make_record("AAAC"),
        ]).snapshot()

        for kmer, total in summary.totals.items():
            assert sum(summary.bin_counts.get((kmer, b), 0) for b in range(3)) == total

    def test_position_bins(self, make_record):
        # 9 k-mers in three bins of 3; CC only at the end
        summary = _filled(lambda: KmerAccumulator(k=2, bins=3), [
            make_record("AAAAAAAACC"),
        ]).snapshot()

        assert summary.bin_counts[("AC", 2)] == 1
        assert summary.bin_counts[("CC", 2)] == 1
        assert summary.bin_counts[("AA", 0)] == 3

    def test_overrepresented_order(self, make_record):
        summary = _filled(lambda: KmerAccumulator(k=5, overrepresented_fraction=0.2), [
            make_record("ACGTA"), make_record("ACGTA"),
            make_record("TTTTT"), make_record("NNNNN"),
        ]).snapshot()

        assert [item.kmer for item in summary.overrepresented] == ["ACGTA", "NNNNN", "TTTTT"]
        assert summary.overrepresented[0].count == 2
        assert summary.overrepresented[0].fraction == 0.5

    def test_overrepresented_threshold(self, make_record):
        summary = _filled(lambda: KmerAccumulator(k=5, overrepresented_fraction=0.3), [
            make_record("ACGTA"), make_record("ACGTA"),
            make_record("TTTTT"), make_record("NNNNN"),
        ]).snapshot()

        assert [item.kmer for item in summary.overrepresented] == ["ACGTA"]
        assert summary.overrepresented[0].peak_bin == 0

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            KmerAccumulator(k=0)


class TestMergeLaws:
    """Merge is pure, associative and commutative for every variant."""

    @pytest.mark.parametrize("factory", ACCUMULATOR_FACTORIES)
    def test_merge_equals_single_pass(self, factory, three_batches):
        everything = [record for batch in three_batches for record in batch]
        single = _filled(factory, everything).snapshot()

        a, b, c = (_filled(factory, batch) for batch in three_batches)

        assert a.merge(b).merge(c).snapshot() == single
        assert a.merge(b.merge(c)).snapshot() == single
        assert c.merge(a).merge(b).snapshot() == single

    @pytest.mark.parametrize("factory", ACCUMULATOR_FACTORIES)
    def test_merge_leaves_inputs_untouched(self, factory, three_batches):
        a, b, _ = (_filled(factory, batch) for batch in three_batches)
        before_a, before_b = a.snapshot(), b.snapshot()

        a.merge(b)

        assert a.snapshot() == before_a
        assert b.snapshot() == before_b

    @pytest.mark.parametrize("factory", ACCUMULATOR_FACTORIES)
    def test_merge_with_empty(self, factory, three_batches):
        a = _filled(factory, three_batches[0])

        assert a.merge(factory()).snapshot() == a.snapshot()

    @pytest.mark.parametrize("factory", ACCUMULATOR_FACTORIES)
    def test_snapshot_idempotent(self, factory, three_batches):
        a = _filled(factory, three_batches[2])

        assert a.snapshot() == a.snapshot()

    def test_merge_different_variants(self):
        with pytest.raises(TypeError):
            QualityAccumulator().merge(GCAccumulator())

    def test_merge_different_k(self):
        with pytest.raises(ValueError):
            KmerAccumulator(k=3).merge(KmerAccumulator(k=4))

    def test_merge_different_sample_size(self):
        with pytest.raises(ValueError):
            DuplicationAccumulator(sample_size=10).merge(DuplicationAccumulator(sample_size=20))

    def test_kinds(self):
        kinds = {factory().kind for factory in ACCUMULATOR_FACTORIES}

        assert kinds == set(AccumulatorKind)

# ReadScope v0.1.0
# Any usage is subject to this software's license.
