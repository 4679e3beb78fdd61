#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Pytest configuration and shared fixtures.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import gzip
import random
import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from readscope.io.io_core_module import FastqRecord


def fastq_text(reads, quality_char='I'):
    """Build FASTQ text from (name, sequence) pairs with constant quality."""
    return "".join(
        f"@{name}\n{sequence}\n+\n{quality_char * len(sequence)}\n"
        for name, sequence in reads
    )


@pytest.fixture
def temp_output_dir():
    """Create temporary output directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="readscope_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def simple_fastq():
    """Four reads: two identical, one poly-T, one all-N."""
    return fastq_text([
        ("read1", "ACGTA"),
        ("read2", "ACGTA"),
        ("read3", "TTTTT"),
        ("read4", "NNNNN"),
    ])


@pytest.fixture
def simple_fastq_file(temp_output_dir, simple_fastq):
    """The four-read example written to disk."""
    path = temp_output_dir / "simple.fastq"
    path.write_text(simple_fastq)
    return path


@pytest.fixture
def random_reads():
    """Deterministic mix of random reads with repeats and varying lengths."""
    rng = random.Random(1322)
    pool = ["".join(rng.choice("ACGTN") for _ in range(rng.randint(20, 60))) for _ in range(40)]
    reads = []
    for i in range(300):
        sequence = rng.choice(pool) if rng.random() < 0.3 else \
            "".join(rng.choice("ACGT") for _ in range(rng.randint(1, 80)))
        quality = "".join(chr(33 + rng.randint(2, 41)) for _ in sequence)
        reads.append((f"read{i}", sequence, quality))
    return reads


@pytest.fixture
def random_fastq_file(temp_output_dir, random_reads):
    """Random reads written to disk with per-base varying qualities."""
    path = temp_output_dir / "random.fastq"
    path.write_text("".join(
        f"@{name}\n{sequence}\n+\n{quality}\n" for name, sequence, quality in random_reads
    ))
    return path


@pytest.fixture
def gzipped_fastq_file(temp_output_dir, simple_fastq):
    """The four-read example, gzip compressed."""
    path = temp_output_dir / "simple.fastq.gz"
    with gzip.open(path, 'wt') as handle:
        handle.write(simple_fastq)
    return path


@pytest.fixture
def make_record():
    """Factory for FastqRecord objects with constant or explicit qualities."""
    def _make(sequence, quality=40, identifier="read"):
        if isinstance(sequence, str):
            sequence = sequence.encode()
        if isinstance(quality, int):
            scores = np.full(len(sequence), quality, dtype=np.uint8)
        else:
            scores = np.array(quality, dtype=np.uint8)
        return FastqRecord(identifier=identifier.encode(), sequence=sequence, quality=scores)
    return _make

# ReadScope v0.1.0
# Any usage is subject to this software's license.
