"""
ReadScope v0.1.0

I/O module for ReadScope - FASTQ record source and chunk planning.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .io_core_module import (
    FastqRecord,
    FastqSource,
    MalformedRecordError,
    ByteRange,
    plan_chunks,
    iter_fastq,
    open_file,
    is_gzipped,
    MAX_PHRED,
    NUM_PHRED_VALUES,
    DEFAULT_QUALITY_OFFSET,
)

__all__ = [
    "FastqRecord",
    "FastqSource",
    "MalformedRecordError",
    "ByteRange",
    "plan_chunks",
    "iter_fastq",
    "open_file",
    "is_gzipped",
    "MAX_PHRED",
    "NUM_PHRED_VALUES",
    "DEFAULT_QUALITY_OFFSET",
]
