"""
ReadScope v0.1.0

Configuration schema for ReadScope.

Defines all available configuration parameters with defaults and validation,
and the typed options object handed to the analysis engine.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


# Largest k-mer size accepted (k is stored in one byte by the report format).
MAX_KMER_SIZE = 255

VALID_POLICIES = ('skip', 'abort')
VALID_BACKENDS = ('process', 'thread')
VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


class ConfigError(ValueError):
    """Raised when configuration is invalid; always before processing starts."""
    pass


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # Analysis
    # ========================================================================
    'analysis': {
        'kmer_size': 5,
        'kmer_position_bins': 3,  # start / middle / end thirds
        'quality_offset': 33,  # Phred+33 (Sanger / Illumina 1.8+)
        'duplication_sample_size': 100000,  # Distinct sequences tracked
        'overrepresented_fraction': 0.001,  # Share of all k-mer occurrences
        'top_duplicated': 20,  # Duplicated sequences listed in the report
    },

    # ========================================================================
    # Execution
    # ========================================================================
    'execution': {
        'threads': 1,  # Sequential by default
        'chunk_size': None,  # Bytes per chunk; default = file size / threads
        'backend': 'process',  # 'process' or 'thread'
    },

    # ========================================================================
    # Malformed-record tolerance
    # ========================================================================
    'tolerance': {
        'policy': 'skip',  # 'skip' (count and continue) or 'abort'
        'max_malformed_records': 1000,  # None = unlimited
        'max_malformed_fraction': None,  # e.g. 0.01; checked at end of run
        'max_examples': 5,  # Malformed-record messages kept for the report
    },

    # ========================================================================
    # Report thresholds
    # ========================================================================
    'report': {
        'quality_warn_median': 25,
        'quality_fail_median': 20,
    },

    # ========================================================================
    # Logging
    # ========================================================================
    'logging': {
        'level': 'INFO',  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
        'log_file': None,
    },
}


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Engine options.

    Attributes:
        kmer_size: K-mer length
        kmer_position_bins: Number of start-position bins per read
        quality_offset: ASCII offset of quality characters
        duplication_sample_size: Cap on distinct sequences tracked
        overrepresented_fraction: Minimum share of all k-mer occurrences
            for a k-mer to be reported as overrepresented
        top_duplicated: Number of most duplicated sequences to report
        threads: Worker count (1 = sequential)
        chunk_size: Target chunk size in bytes (None = size / threads)
        backend: 'process' or 'thread' worker pool
        policy: 'skip' or 'abort' on malformed records
        max_malformed_records: Malformed count above which the run fails
        max_malformed_fraction: Malformed fraction above which the run fails
        max_examples: Malformed-record messages kept for the report
    """
    kmer_size: int = 5
    kmer_position_bins: int = 3
    quality_offset: int = 33
    duplication_sample_size: int = 100000
    overrepresented_fraction: float = 0.001
    top_duplicated: int = 20
    threads: int = 1
    chunk_size: Optional[int] = None
    backend: str = 'process'
    policy: str = 'skip'
    max_malformed_records: Optional[int] = 1000
    max_malformed_fraction: Optional[float] = None
    max_examples: int = 5

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'AnalysisOptions':
        """Build options from a (merged) configuration dictionary."""
        analysis = config.get('analysis', {})
        execution = config.get('execution', {})
        tolerance = config.get('tolerance', {})
        defaults = cls()

        return cls(
            kmer_size=analysis.get('kmer_size', defaults.kmer_size),
            kmer_position_bins=analysis.get('kmer_position_bins', defaults.kmer_position_bins),
            quality_offset=analysis.get('quality_offset', defaults.quality_offset),
            duplication_sample_size=analysis.get('duplication_sample_size',
                                                 defaults.duplication_sample_size),
            overrepresented_fraction=analysis.get('overrepresented_fraction',
                                                  defaults.overrepresented_fraction),
            top_duplicated=analysis.get('top_duplicated', defaults.top_duplicated),
            threads=execution.get('threads', defaults.threads),
            chunk_size=execution.get('chunk_size', defaults.chunk_size),
            backend=execution.get('backend', defaults.backend),
            policy=tolerance.get('policy', defaults.policy),
            max_malformed_records=tolerance.get('max_malformed_records',
                                                defaults.max_malformed_records),
            max_malformed_fraction=tolerance.get('max_malformed_fraction',
                                                 defaults.max_malformed_fraction),
            max_examples=tolerance.get('max_examples', defaults.max_examples),
        )

    @property
    def malformed_limit(self) -> Optional[int]:
        """Effective absolute malformed-record limit (0 under 'abort')."""
        if self.policy == 'abort':
            return 0
        return self.max_malformed_records

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self):
        """
        Check option values.

        Raises:
            ConfigError: Listing every problem found
        """
        errors = _option_errors(self)
        if errors:
            raise ConfigError("; ".join(errors))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _option_errors(options: AnalysisOptions) -> List[str]:
    errors = []

    if not _is_int(options.kmer_size) or not 1 <= options.kmer_size <= MAX_KMER_SIZE:
        errors.append(f"Invalid k-mer size {options.kmer_size!r}: must be between 1 and {MAX_KMER_SIZE}")
    if not _is_int(options.kmer_position_bins) or options.kmer_position_bins < 1:
        errors.append(f"Invalid kmer_position_bins {options.kmer_position_bins!r}: must be >= 1")
    if not _is_int(options.quality_offset) or not 0 <= options.quality_offset <= 126:
        errors.append(f"Invalid quality_offset {options.quality_offset!r}: must be between 0 and 126")
    if not _is_int(options.duplication_sample_size) or options.duplication_sample_size < 1:
        errors.append(f"Invalid duplication_sample_size {options.duplication_sample_size!r}: must be >= 1")
    if not isinstance(options.overrepresented_fraction, (int, float)) \
            or not 0 < options.overrepresented_fraction <= 1:
        errors.append(f"Invalid overrepresented_fraction {options.overrepresented_fraction!r}: "
                      f"must be in (0, 1]")
    if not _is_int(options.top_duplicated) or options.top_duplicated < 0:
        errors.append(f"Invalid top_duplicated {options.top_duplicated!r}: must be >= 0")
    if not _is_int(options.threads) or options.threads < 1:
        errors.append(f"Invalid threads {options.threads!r}: must be >= 1")
    if options.chunk_size is not None and (not _is_int(options.chunk_size) or options.chunk_size < 1):
        errors.append(f"Invalid chunk_size {options.chunk_size!r}: must be a positive byte count")
    if options.backend not in VALID_BACKENDS:
        errors.append(f"Invalid backend {options.backend!r}: must be one of {', '.join(VALID_BACKENDS)}")
    if options.policy not in VALID_POLICIES:
        errors.append(f"Invalid tolerance policy {options.policy!r}: "
                      f"must be one of {', '.join(VALID_POLICIES)}")
    if options.max_malformed_records is not None and \
            (not _is_int(options.max_malformed_records) or options.max_malformed_records < 0):
        errors.append(f"Invalid max_malformed_records {options.max_malformed_records!r}: must be >= 0")
    if options.max_malformed_fraction is not None and \
            (not isinstance(options.max_malformed_fraction, (int, float))
             or not 0 <= options.max_malformed_fraction <= 1):
        errors.append(f"Invalid max_malformed_fraction {options.max_malformed_fraction!r}: "
                      f"must be in [0, 1]")
    if not _is_int(options.max_examples) or options.max_examples < 0:
        errors.append(f"Invalid max_examples {options.max_examples!r}: must be >= 0")

    return errors


def save_config_template(output_path: Path):
    """
    Save a configuration template with all defaults to file.

    Args:
        output_path: Output file path
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    for section, value in config.items():
        if section not in DEFAULT_CONFIG:
            errors.append(f"Unknown configuration section: {section}")
        elif not isinstance(value, dict):
            errors.append(f"Configuration section '{section}' must be a mapping")
        else:
            for key in value:
                if key not in DEFAULT_CONFIG[section]:
                    errors.append(f"Unknown configuration key: {section}.{key}")

    if errors:
        return errors

    errors.extend(_option_errors(AnalysisOptions.from_config(config)))

    report = config.get('report', {})
    warn = report.get('quality_warn_median', DEFAULT_CONFIG['report']['quality_warn_median'])
    fail = report.get('quality_fail_median', DEFAULT_CONFIG['report']['quality_fail_median'])
    if not isinstance(warn, (int, float)) or not isinstance(fail, (int, float)) or fail > warn:
        errors.append("Invalid report thresholds: quality_fail_median must not exceed quality_warn_median")

    level = config.get('logging', {}).get('level', 'INFO')
    if str(level).upper() not in VALID_LOG_LEVELS:
        errors.append(f"Invalid logging level: {level}")

    return errors
