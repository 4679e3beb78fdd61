#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Analysis engine — drives the record source, fans every record out to the
accumulator set, shards plain files across a worker pool and merges the
partial results into one ReportModel.

Execution model:
- threads == 1, gzip, standard input or another non-regular file (pipe,
  FIFO): one sequential pass.
- threads > 1 on a plain file: the file is split into record-aligned byte
  ranges, each range is analysed by an independent worker with its own
  accumulator set, and the per-chunk sets are merged pairwise in file
  order (balanced binary tree). The pairing never depends on which worker
  finishes first, so repeated runs give identical reports.

Every statistic except duplication is an exact integer count and merges
exactly. The duplication summary is a sample estimate; its merge stays
within the sample cap (see duplication_module).

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import errno
import logging
import math
import os
import time
import zlib
from concurrent.futures import (
    FIRST_EXCEPTION,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Sequence, TypeVar, Union

from ..config.schema import AnalysisOptions, ConfigError
from ..io.io_core_module import (
    ByteRange,
    FastqRecord,
    FastqSource,
    MalformedRecordError,
    is_gzipped,
    is_stdin_path,
    open_file,
    plan_chunks,
    stdin_binary,
)
from .accumulators import (
    AccumulatorKind,
    CompositionAccumulator,
    GCAccumulator,
    LengthAccumulator,
    QualityAccumulator,
)
from .duplication_module import DuplicationAccumulator
from .kmer_module import KmerAccumulator
from .report_model import ReportModel

logger = logging.getLogger(__name__)


class StreamCorruptError(RuntimeError):
    """Fatal input problem: malformed-record tolerance exceeded or I/O failure."""
    pass


# ============================================================================
# Accumulator set
# ============================================================================

class AccumulatorSet:
    """
    One instance of every accumulator variant plus read and base counters.

    A set is owned by exactly one worker until it is merged; ``merge``
    returns a new set and leaves both inputs untouched.
    """

    def __init__(self, quality: QualityAccumulator,
                 composition: CompositionAccumulator,
                 gc: GCAccumulator,
                 length: LengthAccumulator,
                 duplication: DuplicationAccumulator,
                 kmer: KmerAccumulator,
                 read_count: int = 0,
                 total_bases: int = 0):
        self.quality = quality
        self.composition = composition
        self.gc = gc
        self.length = length
        self.duplication = duplication
        self.kmer = kmer
        self.read_count = read_count
        self.total_bases = total_bases

    @classmethod
    def from_options(cls, options: AnalysisOptions) -> 'AccumulatorSet':
        return cls(
            quality=QualityAccumulator(),
            composition=CompositionAccumulator(),
            gc=GCAccumulator(),
            length=LengthAccumulator(),
            duplication=DuplicationAccumulator(
                sample_size=options.duplication_sample_size,
                top_sequences=options.top_duplicated,
            ),
            kmer=KmerAccumulator(
                k=options.kmer_size,
                bins=options.kmer_position_bins,
                overrepresented_fraction=options.overrepresented_fraction,
            ),
        )

    def __iter__(self):
        return iter((self.quality, self.composition, self.gc,
                     self.length, self.duplication, self.kmer))

    def get(self, kind: AccumulatorKind):
        """Accumulator of the given variant."""
        for accumulator in self:
            if accumulator.kind is kind:
                return accumulator
        raise KeyError(kind)

    def update(self, record: FastqRecord):
        self.read_count += 1
        self.total_bases += len(record.sequence)
        self.quality.update(record)
        self.composition.update(record)
        self.gc.update(record)
        self.length.update(record)
        self.duplication.update(record)
        self.kmer.update(record)

    def merge(self, other: 'AccumulatorSet') -> 'AccumulatorSet':
        return AccumulatorSet(
            quality=self.quality.merge(other.quality),
            composition=self.composition.merge(other.composition),
            gc=self.gc.merge(other.gc),
            length=self.length.merge(other.length),
            duplication=self.duplication.merge(other.duplication),
            kmer=self.kmer.merge(other.kmer),
            read_count=self.read_count + other.read_count,
            total_bases=self.total_bases + other.total_bases,
        )


@dataclass
class ChunkResult:
    """Outcome of analysing one byte range (or a whole stream)."""
    accumulators: AccumulatorSet
    malformed_records: int = 0
    malformed_examples: List[str] = field(default_factory=list)
    max_examples: int = 5

    def merge(self, other: 'ChunkResult') -> 'ChunkResult':
        return ChunkResult(
            accumulators=self.accumulators.merge(other.accumulators),
            malformed_records=self.malformed_records + other.malformed_records,
            malformed_examples=(self.malformed_examples + other.malformed_examples)[:self.max_examples],
            max_examples=self.max_examples,
        )


T = TypeVar('T')


def merge_tree(items: Sequence[T]) -> T:
    """
    Merge items pairwise in a balanced binary tree, preserving order.

    Level by level, item 2i is merged with item 2i+1; an odd item out is
    carried to the next level unchanged.
    """
    if not items:
        raise ValueError("merge_tree needs at least one item")

    level = list(items)
    while len(level) > 1:
        merged = [level[i].merge(level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            merged.append(level[-1])
        level = merged
    return level[0]


# ============================================================================
# Single-stream analysis
# ============================================================================

def _records(source: FastqSource, result: ChunkResult,
             options: AnalysisOptions) -> Iterator[FastqRecord]:
    """Yield well-formed records, counting and logging malformed ones."""
    limit = options.malformed_limit

    while True:
        try:
            record = next(source)
        except StopIteration:
            return
        except MalformedRecordError as err:
            result.malformed_records += 1
            if len(result.malformed_examples) < options.max_examples:
                result.malformed_examples.append(str(err))
                logger.warning(f"Skipping {err}")
            else:
                logger.debug(f"Skipping {err}")

            if limit is not None and result.malformed_records > limit:
                raise StreamCorruptError(
                    f"{source.name}: {result.malformed_records} malformed records "
                    f"exceed the tolerance of {limit}; last: {err.reason}"
                ) from err
            continue
        except (OSError, EOFError, zlib.error) as err:
            raise StreamCorruptError(
                f"{source.name}: read failed at byte {source.position}: {err}"
            ) from err

        yield record


def analyze_stream(handle: BinaryIO, options: AnalysisOptions,
                   name: str = '<stream>', start: int = 0,
                   end: Optional[int] = None) -> ChunkResult:
    """
    Analyse one binary stream (or one byte range of it) sequentially.

    Args:
        handle: Binary input stream
        options: Engine options
        name: Label for log and error messages
        start: Byte offset of the first record
        end: Stop before the first record starting at or beyond this offset

    Returns:
        ChunkResult with the filled accumulator set

    Raises:
        StreamCorruptError: Tolerance exceeded or read failure
    """
    source = FastqSource(handle, quality_offset=options.quality_offset,
                         start=start, end=end, name=name)
    result = ChunkResult(accumulators=AccumulatorSet.from_options(options),
                         max_examples=options.max_examples)

    accumulators = result.accumulators
    for record in _records(source, result, options):
        accumulators.update(record)

    return result


def _analyze_chunk(filepath: str, byte_range: ByteRange,
                   options: AnalysisOptions) -> ChunkResult:
    """Worker entry point: analyse one byte range of a plain file."""
    started = time.time()
    with open(filepath, 'rb') as handle:
        result = analyze_stream(
            handle, options,
            name=Path(filepath).name,
            start=byte_range.start, end=byte_range.end,
        )
    logger.debug(f"Chunk {byte_range.index} ({byte_range.size:,} bytes): "
                 f"{result.accumulators.read_count:,} reads in {time.time() - started:.2f}s")
    return result


# ============================================================================
# Engine
# ============================================================================

class AnalysisEngine:
    """
    Streaming FASTQ quality-control engine.

    Example:
        >>> engine = AnalysisEngine(AnalysisOptions(kmer_size=7, threads=4))
        >>> report = engine.run("reads.fastq")
        >>> report.read_count
    """

    def __init__(self, options: Optional[AnalysisOptions] = None):
        self.options = options or AnalysisOptions()
        self.last_chunk_count = 0

    def run(self, filepath: Union[str, Path]) -> ReportModel:
        """
        Analyse a FASTQ file ('-' for standard input).

        Raises:
            ConfigError: Invalid options or unusable input path
            FileNotFoundError, PermissionError: Input cannot be opened
            StreamCorruptError: Tolerance exceeded or read failure
        """
        self.options.validate()

        if is_stdin_path(filepath):
            return self.run_stream(stdin_binary(), name='stdin')

        path = Path(filepath)
        self._check_input(path)

        started = time.time()
        if self.options.threads > 1 and self._splittable(path):
            result = self._run_parallel(path)
        else:
            self.last_chunk_count = 1
            with open_file(path) as handle:
                result = analyze_stream(handle, self.options, name=path.name)

        report = self._finish(result, path.name)
        logger.info(f"Analysed {report.read_count:,} reads ({report.total_bases:,} bases) "
                    f"from {path.name} in {time.time() - started:.2f}s")
        return report

    def run_stream(self, handle: BinaryIO, name: str = '<stream>') -> ReportModel:
        """Analyse an already open binary stream sequentially."""
        self.options.validate()
        self.last_chunk_count = 1
        result = analyze_stream(handle, self.options, name=name)
        return self._finish(result, name)

    def _splittable(self, path: Path) -> bool:
        # Pipes, FIFOs and /dev/fd paths can be read once only
        if not path.is_file():
            logger.warning(f"{path.name} is not a regular file and cannot be split; "
                           f"analysing sequentially")
            return False
        if is_gzipped(path):
            logger.warning(f"{path.name} is gzip compressed and cannot be split; "
                           f"analysing sequentially")
            return False
        return True

    def _check_input(self, path: Path):
        if not path.exists():
            raise FileNotFoundError(errno.ENOENT, "FASTQ file not found", str(path))
        if path.is_dir():
            raise ConfigError(f"Input path is a directory, not a FASTQ file: {path}")
        if not os.access(path, os.R_OK):
            raise PermissionError(errno.EACCES, "FASTQ file is not readable", str(path))

    def _run_parallel(self, path: Path) -> ChunkResult:
        options = self.options
        size = path.stat().st_size
        chunk_size = options.chunk_size or max(1, math.ceil(size / options.threads))
        ranges = plan_chunks(path, chunk_size)
        self.last_chunk_count = len(ranges)

        logger.info(f"Analysing {path.name} in {len(ranges)} chunk(s) with "
                    f"{options.threads} {options.backend} worker(s)")

        if len(ranges) == 1:
            return _analyze_chunk(str(path), ranges[0], options)

        executor_class = ProcessPoolExecutor if options.backend == 'process' else ThreadPoolExecutor
        executor = executor_class(max_workers=min(options.threads, len(ranges)))
        try:
            futures = [
                executor.submit(_analyze_chunk, str(path), byte_range, options)
                for byte_range in ranges
            ]
            _, pending = wait(futures, return_when=FIRST_EXCEPTION)

            failed = [
                future for future in futures
                if future.done() and not future.cancelled() and future.exception() is not None
            ]
            if failed:
                for future in pending:
                    future.cancel()
                logger.error(f"Chunk analysis failed; discarding {len(futures) - len(failed)} "
                             f"other chunk result(s)")
                raise failed[0].exception()

            results = [future.result() for future in futures]
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        return merge_tree(results)

    def _check_tolerance(self, result: ChunkResult, name: str):
        options = self.options
        malformed = result.malformed_records
        limit = options.malformed_limit

        if limit is not None and malformed > limit:
            raise StreamCorruptError(
                f"{name}: {malformed} malformed records exceed the tolerance of {limit}"
            )

        if options.max_malformed_fraction is not None and malformed:
            fraction = malformed / (malformed + result.accumulators.read_count)
            if fraction > options.max_malformed_fraction:
                raise StreamCorruptError(
                    f"{name}: {fraction:.2%} of records are malformed "
                    f"(tolerance {options.max_malformed_fraction:.2%})"
                )

        if malformed:
            logger.warning(f"{name}: skipped {malformed:,} malformed record(s)")

    def _finish(self, result: ChunkResult, name: str) -> ReportModel:
        self._check_tolerance(result, name)
        accumulators = result.accumulators

        return ReportModel(
            source_name=name,
            read_count=accumulators.read_count,
            total_bases=accumulators.total_bases,
            malformed_records=result.malformed_records,
            malformed_examples=tuple(result.malformed_examples),
            quality_offset=self.options.quality_offset,
            quality=accumulators.quality.snapshot(),
            composition=accumulators.composition.snapshot(),
            gc=accumulators.gc.snapshot(),
            lengths=accumulators.length.snapshot(),
            duplication=accumulators.duplication.snapshot(),
            kmers=accumulators.kmer.snapshot(),
        )

# ReadScope v0.1.0
# Any usage is subject to this software's license.
