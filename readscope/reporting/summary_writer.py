#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Summary writer — FastQC-compatible ``fastqc_data.txt`` output, so that
aggregators that understand FastQC (e.g. MultiQC) can pick up ReadScope
results.

Module names and column headers are fixed constants; downstream parsers
match on them literally.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import os
from pathlib import Path
from typing import List, Sequence, Union

from ..analysis_core.report_model import DUPLICATION_LEVELS, ReportModel
from ..version import __version__

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "fastqc_data.txt"

MODULE_BASIC_STATISTICS = "Basic Statistics"
MODULE_BASE_QUALITY = "Per base sequence quality"
MODULE_BASE_CONTENT = "Per base sequence content"
MODULE_GC_CONTENT = "Per sequence GC content"
MODULE_LENGTH_DISTRIBUTION = "Sequence Length Distribution"
MODULE_DUPLICATION = "Sequence Duplication Levels"
MODULE_KMER_CONTENT = "Kmer Content"

BASIC_STATISTICS_COLUMNS = ("Measure", "Value")
BASE_QUALITY_COLUMNS = ("Base", "Mean", "Median", "Lower Quartile", "Upper Quartile",
                        "10th Percentile", "90th Percentile")
BASE_CONTENT_COLUMNS = ("Base", "G", "A", "T", "C")
GC_CONTENT_COLUMNS = ("GC Content", "Count")
LENGTH_DISTRIBUTION_COLUMNS = ("Length", "Count")
DUPLICATION_COLUMNS = ("Duplication Level", "Percentage of deduplicated", "Percentage of total")
KMER_CONTENT_COLUMNS = ("Sequence", "Count", "Percentage", "Peak Bin")

PASS, WARN, FAIL = "pass", "warn", "fail"

DEFAULT_WARN_MEDIAN = 25
DEFAULT_FAIL_MEDIAN = 20

_ENCODINGS = {
    33: "Sanger / Illumina 1.9",
    64: "Illumina 1.5",
}


def base_quality_status(report: ReportModel,
                        warn_median: float = DEFAULT_WARN_MEDIAN,
                        fail_median: float = DEFAULT_FAIL_MEDIAN) -> str:
    """
    Grade per-base quality from the per-position medians.

    Any position with median <= ``fail_median`` fails the module; otherwise
    any position with median <= ``warn_median`` gives a warning.
    """
    status = PASS
    for position in report.quality:
        if position.median <= fail_median:
            return FAIL
        if position.median <= warn_median:
            status = WARN
    return status


def duplication_status(report: ReportModel) -> str:
    """FastQC grading: warn below 80% and fail below 50% remaining."""
    remaining = report.duplication.percent_remaining
    if remaining < 50:
        return FAIL
    if remaining < 80:
        return WARN
    return PASS


def _number(value: float) -> str:
    return f"{value:.1f}" if float(value).is_integer() else repr(float(value))


def _module(name: str, status: str, columns: Sequence[str], rows: List[Sequence],
            extra_headers: Sequence[str] = ()) -> List[str]:
    lines = [f">>{name}\t{status}"]
    lines.extend(extra_headers)
    lines.append("#" + "\t".join(columns))
    lines.extend("\t".join(str(value) for value in row) for row in rows)
    lines.append(">>END_MODULE")
    return lines


def _basic_statistics(report: ReportModel) -> List[str]:
    lengths = report.lengths
    if lengths.total == 0:
        length_range = "0"
    elif lengths.min_length == lengths.max_length:
        length_range = str(lengths.min_length)
    else:
        length_range = f"{lengths.min_length}-{lengths.max_length}"

    encoding = _ENCODINGS.get(report.quality_offset, f"Phred+{report.quality_offset}")
    rows = [
        ("Filename", report.source_name),
        ("File type", "Conventional base calls"),
        ("Encoding", encoding),
        ("Total Sequences", report.read_count),
        ("Total Bases", report.total_bases),
        ("Sequences flagged as poor quality", 0),
        ("Malformed records skipped", report.malformed_records),
        ("Sequence length", length_range),
        ("%GC", int(report.overall_gc_percent + 0.5)),
    ]
    return _module(MODULE_BASIC_STATISTICS, PASS, BASIC_STATISTICS_COLUMNS, rows)


def _base_quality(report: ReportModel, warn_median: float, fail_median: float) -> List[str]:
    rows = [
        (position.position + 1, _number(position.mean), _number(position.median),
         _number(position.q1), _number(position.q3), _number(position.p10),
         _number(position.p90))
        for position in report.quality
    ]
    status = base_quality_status(report, warn_median, fail_median)
    return _module(MODULE_BASE_QUALITY, status, BASE_QUALITY_COLUMNS, rows)


def _base_content(report: ReportModel) -> List[str]:
    rows = []
    for counts in report.composition:
        shares = counts.percentages()
        rows.append((counts.position + 1,) + tuple(
            _number(shares[base]) for base in BASE_CONTENT_COLUMNS[1:]
        ))
    return _module(MODULE_BASE_CONTENT, PASS, BASE_CONTENT_COLUMNS, rows)


def _gc_content(report: ReportModel) -> List[str]:
    rows = [(percent, _number(count)) for percent, count in enumerate(report.gc.counts)]
    return _module(MODULE_GC_CONTENT, PASS, GC_CONTENT_COLUMNS, rows)


def _length_distribution(report: ReportModel) -> List[str]:
    rows = [(length, _number(count)) for length, count in sorted(report.lengths.counts.items())]
    return _module(MODULE_LENGTH_DISTRIBUTION, PASS, LENGTH_DISTRIBUTION_COLUMNS, rows)


def _duplication(report: ReportModel) -> List[str]:
    summary = report.duplication
    levels = summary.duplication_levels()
    rows = []
    for label, _ in DUPLICATION_LEVELS:
        distinct, reads = levels[label]
        deduplicated = 100.0 * distinct / summary.distinct_sampled if summary.distinct_sampled else 0.0
        total = 100.0 * reads / summary.sampled_reads if summary.sampled_reads else 0.0
        rows.append((label, _number(deduplicated), _number(total)))
    header = f"#Total Deduplicated Percentage\t{_number(summary.percent_remaining)}"
    return _module(MODULE_DUPLICATION, duplication_status(report), DUPLICATION_COLUMNS, rows,
                   extra_headers=(header,))


def _kmer_content(report: ReportModel) -> List[str]:
    kmers = report.kmers
    rows = [
        (item.kmer, item.count, _number(100.0 * item.fraction), item.peak_bin + 1)
        for item in kmers.overrepresented
    ]
    status = WARN if rows else PASS
    return _module(MODULE_KMER_CONTENT, status, KMER_CONTENT_COLUMNS, rows)


def render_summary(report: ReportModel,
                   warn_median: float = DEFAULT_WARN_MEDIAN,
                   fail_median: float = DEFAULT_FAIL_MEDIAN) -> str:
    """Render ``fastqc_data.txt`` content for a report."""
    lines = [f"##FastQC\t{__version__}"]
    lines += _basic_statistics(report)
    lines += _base_quality(report, warn_median, fail_median)
    lines += _base_content(report)
    lines += _gc_content(report)
    lines += _length_distribution(report)
    lines += _duplication(report)
    lines += _kmer_content(report)
    return "\n".join(lines) + "\n"


def write_summary(report: ReportModel, path: Union[str, Path],
                  warn_median: float = DEFAULT_WARN_MEDIAN,
                  fail_median: float = DEFAULT_FAIL_MEDIAN) -> Path:
    """
    Write the summary file.

    Args:
        report: Finished analysis results
        path: Directory (writes ``<path>/fastqc_data.txt``, created when
            missing) or file path. A path ending in a separator or without
            a suffix (and not an existing file) is a directory.
        warn_median: Median at or below which base quality warns
        fail_median: Median at or below which base quality fails

    Returns:
        Path of the written file
    """
    raw = str(path)
    path = Path(path)
    if path.is_dir() or raw.endswith((os.sep, "/")) or not (path.suffix or path.is_file()):
        path.mkdir(parents=True, exist_ok=True)
        path = path / SUMMARY_FILENAME
    else:
        path.parent.mkdir(parents=True, exist_ok=True)

    path.write_text(render_summary(report, warn_median, fail_median), encoding="utf-8")
    logger.info(f"Summary written to {path}")
    return path

# ReadScope v0.1.0
# Any usage is subject to this software's license.
