"""Tests for the public compilation API."""

import ast

import pytest

from ui_markup.api import (
    CompileResult,
    MarkupCompiler,
    compile_file,
    compile_markup,
    compile_to_source,
    generate,
    parse,
    tokenize,
)
from ui_markup.shared.config import CompilerConfig, Dialect
from ui_markup.shared.errors import ErrorKind, MarkupSyntaxError
from ui_markup.shared.result import DiagnosticSeverity


class TestPipelineFunctions:
    """Test the raising pipeline functions."""

    def test_tokenize(self):
        """Test the tokenize stage."""
        assert tokenize("div {}").token_count == 3

    def test_parse_and_generate(self):
        """Test the parse and generate stages."""
        markup = parse('div @[flex] { "Hello" }')
        expression = generate(markup)

        assert markup.root.tag.name == "div"
        assert ast.unparse(expression) == "div().flex().child('Hello')"

    def test_compile_to_source(self):
        """Test compiling straight to source."""
        assert compile_to_source('div @[flex] { "Hello" }') == "div().flex().child('Hello')"

    def test_compile_to_source_with_preset(self):
        """Test compiling tag-pair markup."""
        output = compile_to_source('<div flex>{"x"}</div>', CompilerConfig.tag_pair())
        assert output == "div().flex().child('x')"

    def test_compile_to_source_raises(self):
        """Test that markup errors propagate."""
        with pytest.raises(MarkupSyntaxError) as exc_info:
            compile_to_source("deferred {}")
        assert exc_info.value.kind is ErrorKind.DEFERRED_ARITY


class TestCompileMarkup:
    """Test the never-raising compile function."""

    def test_success(self):
        """Test a successful compilation result."""
        result = compile_markup('div @[flex] { Header {}, ..items }', correlation_id="c-1")

        assert isinstance(result, CompileResult)
        assert result.success
        assert result.source == "div().flex().child(Header()).children(items)"
        assert result.markup.element_count == 2
        assert result.diagnostics == []
        assert not result.has_errors
        assert result.correlation_id == "c-1"
        assert result.performance.elements_built == 2
        assert result.performance.calls_emitted == 5
        assert result.performance.characters_processed == len('div @[flex] { Header {}, ..items }')
        result.raise_for_error()

    def test_failure_has_one_error(self):
        """Test that a failed compilation carries exactly one error."""
        result = compile_markup('div { "x" } </svg>')

        assert not result.success
        assert result.source is None
        assert result.markup is None
        assert result.expression is None
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.severity is DiagnosticSeverity.ERROR
        assert diagnostic.component == "markup_parser"
        assert diagnostic.details["kind"] == "MISMATCHED_CLOSING_TAG"
        assert diagnostic.position["column"] == 15

        with pytest.raises(MarkupSyntaxError):
            result.raise_for_error()

    def test_tokenization_failure(self):
        """Test that tokenizer errors are attributed to the tokenizer."""
        result = compile_markup("div {")

        assert not result.success
        assert result.error.kind is ErrorKind.TOKENIZATION
        assert result.diagnostics[0].component == "markup_tokenizer"

    def test_to_dict(self):
        """Test dictionary conversion of a failed result."""
        data = compile_markup("span {}").to_dict()

        assert data["success"] is False
        assert data["source"] is None
        assert data["error"]["kind"] == "UNKNOWN_ELEMENT"
        assert (data["error"]["line"], data["error"]["column"]) == (1, 1)
        assert data["diagnostics"][0]["severity"] == "ERROR"

    def test_summary(self):
        """Test the result summary."""
        summary = compile_markup("div { svg {} }").summary()

        assert summary["success"] is True
        assert summary["element_count"] == 2
        assert summary["error_count"] == 0

    def test_config_correlation_id(self):
        """Test that the configuration supplies a default correlation ID."""
        config = CompilerConfig(correlation_id="from-config")
        assert compile_markup("div {}", config).correlation_id == "from-config"


class TestCompileFile:
    """Test compiling markup files."""

    def test_compile_file(self, tmp_path):
        """Test compiling a file from disk."""
        path = tmp_path / "card.uim"
        path.write_text('Card @[title: "Hi"] { deferred { Body {} } }', encoding="utf-8")

        result = compile_file(path)

        assert result.success
        assert result.origin == str(path)
        assert result.source == "Card().title('Hi').child(deferred(Body().into_any_element()))"

    def test_missing_file(self, tmp_path):
        """Test that read failures become error results."""
        result = compile_file(tmp_path / "missing.uim")

        assert not result.success
        assert result.has_errors
        assert result.diagnostics[0].component == "compile_file"
        assert result.diagnostics[0].message.startswith("Cannot read markup file")


class TestMarkupCompiler:
    """Test the reusable compiler."""

    def test_compile_and_statistics(self):
        """Test statistics across several compilations."""
        compiler = MarkupCompiler(correlation_id="stats")

        compiler.compile("div { Header {} }")
        compiler.compile("span {}")
        stats = compiler.statistics

        assert stats["total_compiles"] == 2
        assert stats["successful_compiles"] == 1
        assert stats["success_rate"] == 0.5
        assert stats["total_elements"] == 2
        assert stats["dialect"] == "BLOCK"
        assert stats["correlation_id"] == "stats"

    def test_reset_statistics(self):
        """Test resetting statistics."""
        compiler = MarkupCompiler()
        compiler.compile("div {}")
        compiler.reset_statistics()

        assert compiler.statistics["total_compiles"] == 0
        assert compiler.statistics["success_rate"] == 0.0

    def test_config_override(self):
        """Test a per-call configuration."""
        compiler = MarkupCompiler()
        result = compiler.compile("<Header/>", config_override=CompilerConfig.tag_pair())

        assert result.source == "Header()"
        assert compiler.config.dialect is Dialect.BLOCK

    def test_correlation_id_override(self):
        """Test a per-call correlation ID."""
        compiler = MarkupCompiler(correlation_id="base")
        assert compiler.compile("div {}", correlation_id_override="call").correlation_id == "call"

    def test_reconfigure(self):
        """Test replacing the configuration."""
        compiler = MarkupCompiler()
        compiler.reconfigure(CompilerConfig.mixed())

        result = compiler.compile("div { [flex] }")
        assert result.source == "div().flex()"
        assert compiler.statistics["dialect"] == "MIXED"

    def test_parse_and_generate(self):
        """Test the raising stage methods."""
        compiler = MarkupCompiler(CompilerConfig.tag_pair())
        markup = compiler.parse("<div><Header/></div>")

        assert ast.unparse(compiler.generate(markup)) == "div().child(Header())"
        with pytest.raises(MarkupSyntaxError):
            compiler.parse("<div></svg>")
