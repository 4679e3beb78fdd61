"""
ReadScope v0.1.0

Sequence utility functions for ReadScope.

Provides common sequence analysis functions shared by the accumulators.
"""

import hashlib
from typing import List, Tuple


def extract_kmers(sequence: bytes, k: int) -> List[bytes]:
    """
    Extract all k-mers from a sequence.

    Args:
        sequence: DNA sequence
        k: K-mer size

    Returns:
        List of k-mers, one per valid start offset

    Example:
        >>> extract_kmers(b"ATCGATCG", 3)
        [b'ATC', b'TCG', b'CGA', b'GAT', b'ATC', b'TCG']
    """
    if k > len(sequence):
        return []

    sequence = sequence.upper()
    return [sequence[i:i + k] for i in range(len(sequence) - k + 1)]


def calculate_gc_percent(sequence: bytes) -> int:
    """
    Calculate GC content of a read as a whole percentage.

    Only G and C (either case) count towards the GC total. N and the
    other ambiguity codes, S included, count towards the length only; an
    empty read has 0% GC. Halves round up.

    Args:
        sequence: DNA sequence

    Returns:
        GC percentage (0 to 100)

    Example:
        >>> calculate_gc_percent(b"ACGTA")
        40
    """
    if not sequence:
        return 0

    gc = sum(sequence.count(base) for base in (b"G", b"C", b"g", b"c"))
    return (200 * gc + len(sequence)) // (2 * len(sequence))


def position_bins(length: int, parts: int) -> List[Tuple[int, int, int]]:
    """
    Split ``range(length)`` into ``parts`` contiguous near-equal bins.

    Larger bins come first and empty bins are left out, so a single
    position always lands in bin 0.

    Args:
        length: Number of positions
        parts: Number of bins

    Returns:
        List of (bin, start, stop)

    Example:
        >>> position_bins(10, 3)
        [(0, 0, 4), (1, 4, 7), (2, 7, 10)]
    """
    size, remainder = divmod(length, parts)
    bins = []
    start = 0
    for i in range(parts):
        part_size = size + 1 if i < remainder else size
        if part_size == 0:
            break
        bins.append((i, start, start + part_size))
        start += part_size
    return bins


def sequence_hash(sequence: bytes) -> int:
    """
    Fixed-width 64-bit hash of a sequence, stable across processes.

    Python's built-in ``hash`` is salted per interpreter, which would make
    duplication samples differ between workers and runs.
    """
    return int.from_bytes(hashlib.blake2b(sequence, digest_size=8).digest(), 'big')


__all__ = [
    'extract_kmers',
    'calculate_gc_percent',
    'position_bins',
    'sequence_hash',
]
