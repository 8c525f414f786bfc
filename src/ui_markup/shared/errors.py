"""Exception types for markup compilation.

Every markup error is fatal: the first violation found while tokenizing or
parsing aborts the whole pass, and the raised ``MarkupSyntaxError`` carries the
source location of the offending token together with the alternatives that
would have been accepted there.
"""

from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .result import DiagnosticEntry, DiagnosticSeverity

if TYPE_CHECKING:
    from ui_markup.tokenization.tokenizer import TokenPosition


class ErrorKind(Enum):
    """Categories of fatal markup errors."""

    UNKNOWN_ELEMENT = auto()         # Tag is not native, deferred or a component
    MISMATCHED_CLOSING_TAG = auto()  # </close> differs from the open tag
    DEFERRED_ARITY = auto()          # deferred with zero or several children
    MALFORMED_ATTRIBUTE = auto()     # Bad separator / empty value list
    MISSING_BODY = auto()            # Element kind requires an explicit body
    EMPTY_CHILD = auto()             # Empty {} child placeholder
    UNEXPECTED_TOKEN = auto()        # Grammar-level violation
    INVALID_EXPRESSION = auto()      # Host expression is not valid Python
    TOKENIZATION = auto()            # Token source rejected the input


class MarkupError(Exception):
    """Base exception for the ui_markup package."""


class MarkupSyntaxError(MarkupError):
    """Fatal error raised at the first markup violation.

    Attributes:
        kind: Category of the error
        message: Human readable description naming the offending construct
        position: Source location of the offending token, if known
        expected: Alternatives that would have been accepted at this point
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        position: Optional["TokenPosition"] = None,
        expected: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.position = position
        self.expected = expected or []

    @property
    def line(self) -> Optional[int]:
        return self.position.line if self.position else None

    @property
    def column(self) -> Optional[int]:
        return self.position.column if self.position else None

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"line {self.position.line}, column {self.position.column}: {self.message}"

    def to_diagnostic(
        self,
        component: str = "markup_parser",
        correlation_id: Optional[str] = None
    ) -> DiagnosticEntry:
        """Convert the error into an ERROR diagnostic entry.

        Args:
            component: Component name recorded on the diagnostic
            correlation_id: Optional correlation ID for request tracking

        Returns:
            DiagnosticEntry describing this error
        """
        details: Dict[str, Any] = {"kind": self.kind.name}
        if self.expected:
            details["expected"] = list(self.expected)

        return DiagnosticEntry(
            severity=DiagnosticSeverity.ERROR,
            message=self.message,
            component=component,
            position=self.position.to_dict() if self.position else None,
            details=details,
            correlation_id=correlation_id,
        )
