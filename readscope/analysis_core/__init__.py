"""
ReadScope v0.1.0

Streaming analysis core: accumulators, engine and report model.

CONSOLIDATED MODULES:
- accumulators.py: Accumulator contract, quality / composition / GC / length
- duplication_module.py: Bottom-k sampled duplication tracker
- kmer_module.py: Positional k-mer counter and overrepresentation calls
- engine.py: Sequential and chunk-parallel analysis with merge tree
- report_model.py: Immutable aggregated statistics

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .accumulators import (
    Accumulator,
    AccumulatorKind,
    QualityAccumulator,
    CompositionAccumulator,
    GCAccumulator,
    LengthAccumulator,
)
from .duplication_module import DuplicationAccumulator
from .kmer_module import KmerAccumulator
from .engine import (
    AnalysisEngine,
    AccumulatorSet,
    ChunkResult,
    StreamCorruptError,
    analyze_stream,
    merge_tree,
)
from .report_model import (
    ReportModel,
    QualityMatrix,
    PositionQuality,
    CompositionTable,
    BaseCounts,
    GCHistogram,
    LengthHistogram,
    DuplicationSummary,
    KmerSummary,
    OverrepresentedKmer,
)

__all__ = [
    "Accumulator",
    "AccumulatorKind",
    "QualityAccumulator",
    "CompositionAccumulator",
    "GCAccumulator",
    "LengthAccumulator",
    "DuplicationAccumulator",
    "KmerAccumulator",
    "AnalysisEngine",
    "AccumulatorSet",
    "ChunkResult",
    "StreamCorruptError",
    "analyze_stream",
    "merge_tree",
    "ReportModel",
    "QualityMatrix",
    "PositionQuality",
    "CompositionTable",
    "BaseCounts",
    "GCHistogram",
    "LengthHistogram",
    "DuplicationSummary",
    "KmerSummary",
    "OverrepresentedKmer",
]
