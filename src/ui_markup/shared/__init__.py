"""Shared utilities for markup compilation.

This module provides the configuration objects, diagnostic and metric types,
exceptions and logging helpers used across all compilation stages.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .errors import (
    ErrorKind,
    MarkupError,
    MarkupSyntaxError,
)
from .config import (
    CodegenConfig,
    CompilerConfig,
    ConfigError,
    ConfigValidationError,
    Dialect,
    GrammarConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "ErrorKind",
    "MarkupError",
    "MarkupSyntaxError",
    "CodegenConfig",
    "CompilerConfig",
    "ConfigError",
    "ConfigValidationError",
    "Dialect",
    "GrammarConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
