"""Markup compiler API with progressive disclosure.

This module provides the public compilation API, from simple module-level
functions to a reusable, configurable compiler class. The low-level functions
(``parse``, ``generate``, ``compile_to_source``) raise ``MarkupSyntaxError``
on the first markup error; ``compile_markup``, ``compile_file`` and
``MarkupCompiler.compile`` never raise for markup errors and report them in
the returned ``CompileResult`` instead.
"""

import ast
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ui_markup.codegen import CodeGenerator
from ui_markup.shared import (
    CompilerConfig,
    DiagnosticEntry,
    DiagnosticSeverity,
    ErrorKind,
    MarkupSyntaxError,
    PerformanceMetrics,
    get_logger,
)
from ui_markup.tokenization import MarkupTokenizer, TokenizationResult
from ui_markup.tree import Markup, MarkupTreeBuilder

MS_PER_SECOND = 1000  # Milliseconds per second conversion


@dataclass
class CompileResult:
    """Outcome of compiling one markup text.

    Attributes:
        markup_text: The markup that was compiled
        success: True when an expression was generated
        markup: Syntax tree (None on failure)
        expression: Generated expression node (None on failure)
        source: Generated Python source text (None on failure)
        diagnostics: Diagnostics; a failed compile carries exactly one ERROR
        performance: Counters for this compilation
        error: The error that stopped compilation, if any
    """

    markup_text: str = ""
    success: bool = True
    markup: Optional[Markup] = None
    expression: Optional[ast.expr] = None
    source: Optional[str] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None
    error: Optional[MarkupSyntaxError] = None
    origin: Optional[str] = None

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add a diagnostic entry to the result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id,
        ))

    @property
    def has_errors(self) -> bool:
        return any(entry.is_error for entry in self.diagnostics)

    def raise_for_error(self) -> None:
        """Re-raise the error that stopped compilation, if there was one."""
        if self.error is not None:
            raise self.error

    def summary(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "origin": self.origin,
            "element_count": self.performance.elements_built,
            "calls_emitted": self.performance.calls_emitted,
            "processing_time_ms": self.performance.processing_time_ms,
            "error_count": sum(1 for entry in self.diagnostics if entry.is_error),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "success": self.success,
            "source": self.source,
            "diagnostics": [entry.to_dict() for entry in self.diagnostics],
            "performance": self.performance.to_dict(),
            "correlation_id": self.correlation_id,
        }
        if self.origin is not None:
            result["origin"] = self.origin
        if self.error is not None:
            result["error"] = {
                "kind": self.error.kind.name,
                "message": self.error.message,
                "line": self.error.line,
                "column": self.error.column,
                "expected": list(self.error.expected),
            }
        return result


def tokenize(source: str, correlation_id: Optional[str] = None) -> TokenizationResult:
    """Tokenize markup text into grouped token trees.

    Raises:
        MarkupSyntaxError: If the text cannot be tokenized
    """
    return MarkupTokenizer(correlation_id=correlation_id).tokenize(source)


def parse(
    source: str,
    config: Optional[CompilerConfig] = None,
    correlation_id: Optional[str] = None
) -> Markup:
    """Parse markup text into a syntax tree.

    Args:
        source: Markup text
        config: Compiler configuration (defaults to the block dialect)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        Markup holding the root element

    Raises:
        MarkupSyntaxError: At the first markup violation

    Examples:
        >>> markup = parse('div @[flex] { "Hello" }')
        >>> markup.root.tag.name
        'div'
    """
    config = config or CompilerConfig()
    correlation_id = correlation_id or config.correlation_id
    tokens = MarkupTokenizer(correlation_id=correlation_id).tokenize(source)
    return MarkupTreeBuilder(config.grammar, correlation_id).build(tokens)


def generate(
    markup: Markup,
    config: Optional[CompilerConfig] = None,
    correlation_id: Optional[str] = None
) -> ast.expr:
    """Generate the builder-chain expression for a syntax tree."""
    config = config or CompilerConfig()
    return CodeGenerator(config.codegen, correlation_id or config.correlation_id).generate(markup)


def compile_to_source(
    source: str,
    config: Optional[CompilerConfig] = None,
    correlation_id: Optional[str] = None
) -> str:
    """Compile markup text straight to Python source.

    Raises:
        MarkupSyntaxError: At the first markup violation

    Examples:
        >>> compile_to_source('div @[flex] { "Hello" }')
        "div().flex().child('Hello')"
    """
    markup = parse(source, config, correlation_id)
    return ast.unparse(generate(markup, config, correlation_id))


def _compile(
    source: str,
    tokenizer: MarkupTokenizer,
    builder: MarkupTreeBuilder,
    generator: CodeGenerator,
    correlation_id: Optional[str],
    origin: Optional[str] = None
) -> CompileResult:
    """Run the three stages, converting a markup error into an error result."""
    start_time = time.time()
    result = CompileResult(markup_text=source, correlation_id=correlation_id, origin=origin)
    result.performance.characters_processed = len(source)

    try:
        tokens = tokenizer.tokenize(source)
        result.performance.tokens_consumed = tokens.token_count
        result.markup = builder.build(tokens)
        result.performance.elements_built = builder.elements_built
        result.expression = generator.generate(result.markup)
        result.performance.calls_emitted = generator.calls_emitted
        result.source = ast.unparse(result.expression)
    except MarkupSyntaxError as e:
        result.success = False
        result.markup = None
        result.expression = None
        result.source = None
        result.error = e
        result.diagnostics.append(e.to_diagnostic(
            component=_stage_of(e),
            correlation_id=correlation_id,
        ))

    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    return result


def _stage_of(error: MarkupSyntaxError) -> str:
    return "markup_tokenizer" if error.kind is ErrorKind.TOKENIZATION else "markup_parser"


def compile_markup(
    source: str,
    config: Optional[CompilerConfig] = None,
    correlation_id: Optional[str] = None
) -> CompileResult:
    """Compile markup text without raising for markup errors.

    Args:
        source: Markup text
        config: Compiler configuration (defaults to the block dialect)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        CompileResult with the generated expression, or with exactly one ERROR
        diagnostic when the markup is invalid

    Examples:
        >>> result = compile_markup("deferred {}")
        >>> result.success
        False
        >>> result.error.kind.name
        'DEFERRED_ARITY'
    """
    config = config or CompilerConfig()
    correlation_id = correlation_id or config.correlation_id
    logger = get_logger(__name__, correlation_id, "compile_markup")

    result = _compile(
        source,
        MarkupTokenizer(correlation_id=correlation_id),
        MarkupTreeBuilder(config.grammar, correlation_id),
        CodeGenerator(config.codegen, correlation_id),
        correlation_id,
    )

    logger.info(
        "Markup compilation completed",
        extra={
            "success": result.success,
            "dialect": config.dialect.name,
            "processing_time_ms": result.performance.processing_time_ms,
        }
    )
    return result


def compile_file(
    path: Union[str, Path],
    config: Optional[CompilerConfig] = None,
    correlation_id: Optional[str] = None,
    encoding: str = "utf-8"
) -> CompileResult:
    """Compile a markup file without raising for markup or read errors."""
    path_obj = Path(path)
    try:
        content = path_obj.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        result = CompileResult(
            success=False,
            correlation_id=correlation_id,
            origin=str(path_obj),
        )
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            f"Cannot read markup file: {e}",
            "compile_file",
            details={"exception_type": type(e).__name__},
        )
        return result

    result = compile_markup(content, config, correlation_id)
    result.origin = str(path_obj)
    return result


class MarkupCompiler:
    """Reusable markup compiler with configuration and usage statistics.

    Attributes:
        config: Current compiler configuration
        correlation_id: Correlation ID for request tracking

    Examples:
        Basic usage:
        >>> compiler = MarkupCompiler()
        >>> compiler.compile('Header {}').source
        'Header()'

        Tag-pair markup:
        >>> compiler = MarkupCompiler(CompilerConfig.tag_pair())
        >>> compiler.compile('<div flex>{"x"}</div>').source
        "div().flex().child('x')"
    """

    def __init__(
        self,
        config: Optional[CompilerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize markup compiler.

        Args:
            config: Compiler configuration (defaults to the block dialect)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or CompilerConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "markup_compiler")

        self._build_components()

        self._compile_count = 0
        self._successful_compiles = 0
        self._total_processing_time = 0.0
        self._total_elements = 0

        self.logger.info(
            "MarkupCompiler initialized",
            extra={"dialect": self.config.dialect.name}
        )

    def _build_components(self) -> None:
        self._tokenizer = MarkupTokenizer(correlation_id=self.correlation_id)
        self._tree_builder = MarkupTreeBuilder(self.config.grammar, self.correlation_id)
        self._generator = CodeGenerator(self.config.codegen, self.correlation_id)

    def compile(
        self,
        source: str,
        config_override: Optional[CompilerConfig] = None,
        correlation_id_override: Optional[str] = None
    ) -> CompileResult:
        """Compile markup text without raising for markup errors.

        Args:
            source: Markup text
            config_override: Optional configuration for this call only
            correlation_id_override: Optional correlation ID for this call only

        Returns:
            CompileResult for ``source``
        """
        correlation_id = correlation_id_override or self.correlation_id

        if config_override is not None or correlation_id_override is not None:
            config = config_override or self.config
            tokenizer = MarkupTokenizer(correlation_id=correlation_id)
            tree_builder = MarkupTreeBuilder(config.grammar, correlation_id)
            generator = CodeGenerator(config.codegen, correlation_id)
        else:
            tokenizer = self._tokenizer
            tree_builder = self._tree_builder
            generator = self._generator

        result = _compile(source, tokenizer, tree_builder, generator, correlation_id)

        self._compile_count += 1
        self._total_processing_time += result.performance.processing_time_ms
        if result.success:
            self._successful_compiles += 1
            self._total_elements += result.performance.elements_built

        self.logger.info(
            "Compilation completed",
            extra={
                "success": result.success,
                "processing_time_ms": result.performance.processing_time_ms,
                "total_compiles": self._compile_count,
            }
        )
        return result

    def parse(self, source: str) -> Markup:
        """Parse markup text with this compiler's configuration (raises)."""
        return self._tree_builder.build(self._tokenizer.tokenize(source))

    def generate(self, markup: Markup) -> ast.expr:
        """Generate the expression for ``markup`` with this compiler's configuration."""
        return self._generator.generate(markup)

    def reconfigure(self, config: CompilerConfig) -> None:
        """Replace the configuration used by subsequent compilations."""
        self.config = config
        self._build_components()
        self.logger.info(
            "Compiler reconfigured",
            extra={"dialect": self.config.dialect.name}
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get compiler usage statistics.

        Returns:
            Dictionary with compile counts, success rate and timing
        """
        return {
            "total_compiles": self._compile_count,
            "successful_compiles": self._successful_compiles,
            "success_rate": (
                self._successful_compiles / self._compile_count
                if self._compile_count > 0 else 0.0
            ),
            "total_elements": self._total_elements,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._compile_count
                if self._compile_count > 0 else 0.0
            ),
            "dialect": self.config.dialect.name,
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset compiler usage statistics."""
        self._compile_count = 0
        self._successful_compiles = 0
        self._total_processing_time = 0.0
        self._total_elements = 0

        self.logger.info("Compiler statistics reset")
