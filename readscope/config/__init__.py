"""
ReadScope v0.1.0

Configuration management for ReadScope.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .parser import ConfigParser
from .schema import (
    DEFAULT_CONFIG,
    AnalysisOptions,
    ConfigError,
    save_config_template,
    validate_config,
)

__all__ = [
    "ConfigParser",
    "DEFAULT_CONFIG",
    "AnalysisOptions",
    "ConfigError",
    "save_config_template",
    "validate_config",
]
