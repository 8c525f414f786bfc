"""Diagnostic and metric types shared by every compilation stage.

This module defines the structured diagnostics attached to compile results and
the performance counters gathered while a markup pass runs.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Suspicious but accepted input
    ERROR = auto()      # Fatal markup errors (compilation aborted)


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    @property
    def is_error(self) -> bool:
        return self.severity is DiagnosticSeverity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position is not None:
            result["position"] = dict(self.position)
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Counters gathered during one compilation pass."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    tokens_consumed: int = 0
    elements_built: int = 0
    calls_emitted: int = 0

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_consumed * 1000.0) / self.processing_time_ms

    @property
    def calls_per_element(self) -> float:
        """Average number of chained calls emitted per element."""
        if self.elements_built == 0:
            return 0.0
        return self.calls_emitted / self.elements_built

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time_ms": self.processing_time_ms,
            "characters_processed": self.characters_processed,
            "tokens_consumed": self.tokens_consumed,
            "elements_built": self.elements_built,
            "calls_emitted": self.calls_emitted,
        }
