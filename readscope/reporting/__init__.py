"""
ReadScope reporting: HTML report and FastQC-compatible summary file.
"""

from .html_report import basic_statistics, build_context, quality_plot_spec, render_html
from .summary_writer import (
    MODULE_BASE_CONTENT,
    MODULE_BASE_QUALITY,
    MODULE_BASIC_STATISTICS,
    MODULE_DUPLICATION,
    MODULE_GC_CONTENT,
    MODULE_KMER_CONTENT,
    MODULE_LENGTH_DISTRIBUTION,
    SUMMARY_FILENAME,
    base_quality_status,
    duplication_status,
    render_summary,
    write_summary,
)

__all__ = [
    'render_html',
    'build_context',
    'basic_statistics',
    'quality_plot_spec',
    'render_summary',
    'write_summary',
    'base_quality_status',
    'duplication_status',
    'SUMMARY_FILENAME',
    'MODULE_BASIC_STATISTICS',
    'MODULE_BASE_QUALITY',
    'MODULE_BASE_CONTENT',
    'MODULE_GC_CONTENT',
    'MODULE_LENGTH_DISTRIBUTION',
    'MODULE_DUPLICATION',
    'MODULE_KMER_CONTENT',
]
