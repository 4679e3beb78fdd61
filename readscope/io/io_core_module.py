#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Core I/O module for ReadScope.

Consolidated module containing:
- Core read data structure (FastqRecord)
- File utilities with automatic gzip detection
- Strict 4-line FASTQ record source with recoverable per-record errors
- Record-aligned byte-range planning for parallel analysis

The record source reads raw bytes and never retains records: each record
is handed to the caller and forgotten.
"""

# =============================================================================
# SECTION 1: IMPORTS AND DEPENDENCIES
# =============================================================================

import gzip
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

# Highest Phred score representable with printable ASCII at offset 33.
MAX_PHRED = 93
NUM_PHRED_VALUES = MAX_PHRED + 1

DEFAULT_QUALITY_OFFSET = 33
HEADER_MARKER = b'@'
SEPARATOR_MARKER = b'+'

# Read size used when scanning for record boundaries.
_SCAN_BLOCK_SIZE = 4 * 1024 * 1024


class MalformedRecordError(ValueError):
    """
    Raised when a 4-line FASTQ group violates the record format.

    The offending lines have already been consumed when this is raised,
    so the source that raised it can keep going with the next group.
    """

    def __init__(self, reason: str, source: str = '<stream>',
                 offset: Optional[int] = None, group: Optional[int] = None):
        self.reason = reason
        self.source = source
        self.offset = offset
        self.group = group
        super().__init__(str(self))

    def __str__(self) -> str:
        where = f" at byte {self.offset}" if self.offset is not None else ""
        return f"{self.source}: malformed record{where}: {self.reason}"


# =============================================================================
# SECTION 2: CORE READ DATA STRUCTURE
# =============================================================================

@dataclass(eq=False)
class FastqRecord:
    """
    Single sequencing read.

    Attributes:
        identifier: Header line without the leading '@'
        sequence: Raw sequence bytes (case preserved)
        quality: Decoded Phred scores, one per base
    """
    identifier: bytes
    sequence: bytes
    quality: np.ndarray

    @property
    def length(self) -> int:
        """Get read length."""
        return len(self.sequence)

    def to_fastq(self, quality_offset: int = DEFAULT_QUALITY_OFFSET) -> bytes:
        """Encode the record back into a 4-line FASTQ block."""
        quality = (self.quality.astype(np.uint8) + np.uint8(quality_offset)).tobytes()
        return b'@' + self.identifier + b'\n' + self.sequence + b'\n+\n' + quality + b'\n'

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        name = self.identifier.decode('ascii', errors='replace')
        return f"FastqRecord(id='{name}', length={self.length})"


# =============================================================================
# SECTION 3: FILE UTILITIES
# =============================================================================

def is_gzipped(filepath: Union[str, Path]) -> bool:
    """
    Check if file is gzip compressed.

    Args:
        filepath: Path to file

    Returns:
        True if file is gzipped
    """
    filepath = Path(filepath)
    return filepath.suffix in ('.gz', '.gzip')


def open_file(filepath: Union[str, Path]) -> BinaryIO:
    """
    Open a FASTQ file for binary reading with automatic gzip detection.

    Args:
        filepath: Path to file

    Returns:
        Binary file handle
    """
    filepath = Path(filepath)

    if is_gzipped(filepath):
        return gzip.open(filepath, 'rb')
    return open(filepath, 'rb')


def is_stdin_path(filepath: Union[str, Path]) -> bool:
    """Check for the conventional '-' standard input placeholder."""
    return str(filepath) == '-'


def stdin_binary() -> BinaryIO:
    """Binary standard input."""
    return sys.stdin.buffer


def _strip_eol(line: bytes) -> bytes:
    if line.endswith(b'\n'):
        line = line[:-1]
    if line.endswith(b'\r'):
        line = line[:-1]
    return line


# =============================================================================
# SECTION 4: FASTQ RECORD SOURCE
# =============================================================================

class FastqSource:
    """
    Forward-only FASTQ record iterator over a binary stream.

    Parses fixed 4-line groups (header, sequence, separator, quality) and
    decodes quality characters with the configured offset. The iterator is
    not restartable: re-reading requires reopening the underlying stream.

    A malformed group raises ``MalformedRecordError`` from ``next()``
    after its lines have been consumed; calling ``next()`` again continues
    with the following group. A plain ``for`` loop therefore stops at the
    first defect, which is what strict callers want; tolerant callers
    drive ``next()`` themselves.

    Example:
        >>> with open_file("reads.fq") as handle:
        ...     for record in FastqSource(handle):
        ...         print(record.identifier, record.length)
    """

    def __init__(self, handle: BinaryIO,
                 quality_offset: int = DEFAULT_QUALITY_OFFSET,
                 start: int = 0,
                 end: Optional[int] = None,
                 name: str = '<stream>'):
        """
        Initialize record source.

        Args:
            handle: Binary stream positioned anywhere (seeked to ``start``
                when ``start`` is non-zero)
            quality_offset: ASCII offset of the quality encoding
            start: Byte offset of the first record to read
            end: Stop before the first record starting at or beyond this
                offset (None = read to end of stream)
            name: Label used in error messages
        """
        self._handle = handle
        self.quality_offset = quality_offset
        self.start = start
        self.end = end
        self.name = name
        self.position = start
        self.groups_read = 0
        self._exhausted = False

        if start:
            handle.seek(start)

    def __iter__(self) -> Iterator[FastqRecord]:
        return self

    def __next__(self) -> FastqRecord:
        if self._exhausted:
            raise StopIteration
        if self.end is not None and self.position >= self.end:
            self._exhausted = True
            raise StopIteration

        group_offset = self.position
        lines = []
        for _ in range(4):
            line = self._handle.readline()
            if not line:
                break
            self.position += len(line)
            lines.append(line)

        if not lines:
            self._exhausted = True
            raise StopIteration

        group = self.groups_read
        self.groups_read += 1

        if len(lines) < 4:
            self._exhausted = True
            if all(not line.strip() for line in lines):
                # Trailing blank lines
                raise StopIteration
            raise MalformedRecordError(
                f"truncated record ({len(lines)} of 4 lines before end of stream)",
                source=self.name, offset=group_offset, group=group
            )

        header, sequence, separator, quality = (_strip_eol(line) for line in lines)

        if not header.startswith(HEADER_MARKER):
            raise MalformedRecordError(
                "header line does not start with '@'",
                source=self.name, offset=group_offset, group=group
            )
        if not separator.startswith(SEPARATOR_MARKER):
            raise MalformedRecordError(
                "separator line does not start with '+'",
                source=self.name, offset=group_offset, group=group
            )
        if len(sequence) != len(quality):
            raise MalformedRecordError(
                f"sequence length {len(sequence)} != quality length {len(quality)}",
                source=self.name, offset=group_offset, group=group
            )

        return FastqRecord(
            identifier=header[1:],
            sequence=sequence,
            quality=self._decode_quality(quality, group_offset, group),
        )

    def _decode_quality(self, quality: bytes, offset: int, group: int) -> np.ndarray:
        """Convert quality characters to Phred scores."""
        raw = np.frombuffer(quality, dtype=np.uint8)
        if raw.size == 0:
            return raw.copy()

        lowest = int(raw.min())
        highest = int(raw.max())
        if lowest < self.quality_offset or highest - self.quality_offset > MAX_PHRED:
            bad = lowest if lowest < self.quality_offset else highest
            raise MalformedRecordError(
                f"quality character {chr(bad)!r} outside Phred+{self.quality_offset} range",
                source=self.name, offset=offset, group=group
            )
        return raw - np.uint8(self.quality_offset)


def iter_fastq(filepath: Union[str, Path],
               quality_offset: int = DEFAULT_QUALITY_OFFSET) -> Iterator[FastqRecord]:
    """
    Read a FASTQ file strictly, stopping at the first malformed record.

    Args:
        filepath: Path to FASTQ file (can be gzipped)
        quality_offset: ASCII offset of the quality encoding

    Yields:
        FastqRecord objects
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"FASTQ file not found: {filepath}")

    with open_file(filepath) as handle:
        yield from FastqSource(handle, quality_offset=quality_offset, name=filepath.name)


# =============================================================================
# SECTION 5: RECORD-ALIGNED CHUNK PLANNING
# =============================================================================

@dataclass(frozen=True)
class ByteRange:
    """Contiguous slice of an input file that starts on a record boundary."""
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


def plan_chunks(filepath: Union[str, Path], chunk_size: int) -> List[ByteRange]:
    """
    Partition a plain FASTQ file into record-aligned byte ranges.

    Records are exactly four lines long, so a byte offset starts a record
    when the number of newlines before it is a multiple of four. The file
    is scanned once counting newlines; each boundary is the first record
    start strictly after the previous boundary plus ``chunk_size``.

    Args:
        filepath: Path to an uncompressed FASTQ file
        chunk_size: Target chunk size in bytes

    Returns:
        Disjoint, contiguous ranges covering the whole file, in file order
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    size = os.path.getsize(filepath)
    boundaries = [0]
    next_target = chunk_size
    lines = 0
    offset = 0

    with open(filepath, 'rb') as handle:
        while next_target < size:
            block = handle.read(_SCAN_BLOCK_SIZE)
            if not block:
                break

            cursor = 0
            while next_target < size:
                local = next_target - offset
                if local >= len(block):
                    break
                local = max(local, cursor)
                lines += block.count(b'\n', cursor, local)
                cursor = local

                newline = block.find(b'\n', cursor)
                while newline != -1:
                    lines += 1
                    cursor = newline + 1
                    if lines % 4 == 0:
                        break
                    newline = block.find(b'\n', cursor)
                if newline == -1:
                    cursor = len(block)
                    break

                boundary = offset + cursor
                if boundary >= size:
                    next_target = size
                    break
                boundaries.append(boundary)
                next_target = boundary + chunk_size

            lines += block.count(b'\n', cursor)
            offset += len(block)

    boundaries.append(size)
    ranges = [
        ByteRange(index=i, start=start, end=end)
        for i, (start, end) in enumerate(zip(boundaries[:-1], boundaries[1:]))
    ]
    logger.debug(f"Planned {len(ranges)} chunk(s) over {size:,} bytes "
                 f"(target {chunk_size:,} bytes)")
    return ranges


# ReadScope v0.1.0
# Any usage is subject to this software's license.
