"""Tests for builder-chain code generation."""

import ast
import logging

import pytest

from ui_markup.codegen import CodeGenerator, chain_method_names, count_chain_calls
from ui_markup.shared.config import CodegenConfig, Dialect, GrammarConfig
from ui_markup.tokenization import tokenize
from ui_markup.tree import MarkupTreeBuilder


def parse(source, dialect=Dialect.BLOCK):
    return MarkupTreeBuilder(GrammarConfig(dialect=dialect)).build(tokenize(source))


def to_source(source, dialect=Dialect.BLOCK, **codegen):
    return CodeGenerator(CodegenConfig(**codegen)).to_source(parse(source, dialect))


def expr(text):
    return ast.parse(text, mode="eval").body


class TestChainHelpers:
    """Test chain inspection helpers."""

    def test_chain_method_names(self):
        """Test call names in execution order."""
        assert chain_method_names(expr("div().flex().child(x)")) == ["div", "flex", "child"]
        assert chain_method_names(expr("make(t).flex()")) == ["make", "flex"]
        assert chain_method_names(expr("theme.card.flex()")) == ["<expr>", "flex"]
        assert chain_method_names(expr("div().map[T](f)")) == ["div", "map"]

    def test_count_chain_calls(self):
        """Test counting calls along the receiver spine."""
        assert count_chain_calls(expr("x.a().b[1](2)")) == 2
        assert count_chain_calls(expr("x")) == 0


class TestElementTranslation:
    """Test the base call of each element kind."""

    def test_native(self):
        """Test native constructor calls."""
        assert to_source('div @[flex] { "Hello" }') == "div().flex().child('Hello')"

    def test_component(self):
        """Test default component construction."""
        assert to_source('Header @[title: "Hi"] {}') == "Header().title('Hi')"

    def test_component_constructor(self):
        """Test a named component constructor."""
        output = to_source('Header @[title: "Hi"] {}', component_constructor="new")
        assert output == "Header.new().title('Hi')"

    def test_expression_base(self):
        """Test that expression tags are used as the base as written."""
        output = to_source('(make_card(t)) @[flex] { "x" }')
        assert output == "make_card(t).flex().child('x')"

    def test_deferred(self):
        """Test the deferred wrapper with coercion."""
        assert to_source("deferred { Header {} }") == "deferred(Header().into_any_element())"

    def test_deferred_without_coercion(self):
        """Test the deferred wrapper with coercion disabled."""
        output = to_source("deferred { Header {} }", any_element_method=None)
        assert output == "deferred(Header())"

    def test_nested_elements(self):
        """Test that nested elements are generated inside child calls."""
        assert to_source("div { svg @[small] }") == "div().child(svg().small())"


class TestAttributeTranslation:
    """Test attribute calls."""

    def test_flag_value_and_tuple(self):
        """Test zero, one and spread tuple arguments."""
        output = to_source("div @[hidden, w: px(10), size: (1, 2)]")
        assert output == "div().hidden().w(px(10)).size(1, 2)"

    def test_tuple_spread_disabled(self):
        """Test passing tuple values as one argument."""
        output = to_source("div @[size: (1, 2)]", spread_tuple_attributes=False)
        assert output == "div().size((1, 2))"

    def test_multi_value(self):
        """Test multi-value attributes in the tag-pair dialect."""
        output = to_source("<div size={1, 2} flex/>", Dialect.TAG_PAIR)
        assert output == "div().size(1, 2).flex()"

    def test_attributes_before_children(self):
        """Test mixed-dialect attributes are applied before children."""
        output = to_source('div { [flex], "a", [1] }', Dialect.MIXED)
        assert output == "div().flex().child('a').child([1])"


class TestChildTranslation:
    """Test child calls and their order."""

    def test_spread_between_children(self):
        """Test that spreads keep their position among single children."""
        output = to_source('div { "Header", ..items, "Footer" }')

        assert output == "div().child('Header').children(items).child('Footer')"
        assert chain_method_names(expr(output)) == ["div", "child", "children", "child"]

    def test_collect_children(self):
        """Test collecting runs of children into one plural call."""
        output = to_source('div { "a", "b", ..items, "c" }', collect_children=True)
        assert output == "div().children(['a', 'b']).children(items).child('c')"

    def test_collect_single_child(self):
        """Test that one collected child still uses the singular call."""
        assert to_source('div { "a" }', collect_children=True) == "div().child('a')"

    def test_method_chain_splice(self):
        """Test that chains are spliced in at their position."""
        output = to_source('div { "a", .when(cond, f).map(g), "b" }')
        assert output == "div().child('a').when(cond, f).map(g).child('b')"

    def test_method_chain_generic_list(self):
        """Test that generic parameter lists survive intact."""
        output = to_source('div { .map::<Div, _>(f), "x" }')
        assert output == "div().map[Div, _](f).child('x')"

    def test_custom_method_names(self):
        """Test configurable child methods."""
        output = to_source('div { "a", ..items }', child_method="add", children_method="extend")
        assert output == "div().add('a').extend(items)"

    def test_parent_assertion(self):
        """Test the capability check ahead of the first child."""
        assert to_source('div { "x" }', assert_parent_capability=True) == (
            "ensure_parent(div()).child('x')"
        )
        assert to_source("div {}", assert_parent_capability=True) == "div()"

    def test_parent_assertion_custom_method(self):
        """Test that the checked method name follows the configuration."""
        output = to_source('div { "x" }', assert_parent_capability=True, child_method="add")
        assert output == "ensure_parent(div(), 'add').add('x')"


class TestCodeGenerator:
    """Test generator behavior across calls."""

    def test_call_count(self):
        """Test the emitted call counter."""
        generator = CodeGenerator()
        generator.generate(parse(
            'div @[flex] { "a", ..items, .when(c, f).map(g), deferred { Header {} } }'
        ))
        assert generator.calls_emitted == 10

    def test_generation_is_repeatable(self):
        """Test that one tree can be generated repeatedly."""
        markup = parse('div { (make(t)) @[flex] { "x" }, .when(c, f) }')
        generator = CodeGenerator()

        first = generator.to_source(markup)
        second = generator.to_source(markup)

        assert first == second == "div().child(make(t).flex().child('x')).when(c, f)"

    def test_nested_output_as_child(self):
        """Test that compiled output used as a child gives the same outer structure."""
        inner = to_source('Header @[big] { "x" }')
        direct = to_source('div { Header @[big] { "x" } }')
        composed = to_source(f"div {{ {inner} }}")

        assert inner == "Header().big().child('x')"
        assert composed == direct == "div().child(Header().big().child('x'))"

    def test_expression_compiles(self):
        """Test that generated expressions have locations and compile."""
        expression = CodeGenerator().generate(parse('div @[flex] { "a", ..items }'))
        code = compile(ast.Expression(body=expression), "<markup>", "eval")
        assert code is not None

    def test_dialects_share_output(self):
        """Test that equivalent markup compiles identically in every dialect."""
        expected = "div().flex().w(1).child(Header()).children(items)"

        assert to_source("<div flex w={1}><Header/>{..items}</div>", Dialect.TAG_PAIR) == expected
        assert to_source("div @[flex, w: 1] { Header {}, ..items }") == expected
        assert to_source("div { [flex, w: 1], Header {}, ..items }", Dialect.MIXED) == expected

    def test_completion_is_logged(self, caplog):
        """Test the debug record written after generation."""
        generator = CodeGenerator(correlation_id="gen-1")

        with caplog.at_level(logging.DEBUG, logger="ui_markup.codegen.generator"):
            generator.generate(parse("div {}"))

        record = caplog.records[-1]
        assert record.message == "Code generation completed"
        assert record.calls_emitted == 1
        assert record.correlation_id == "gen-1"

    @pytest.mark.parametrize("source,names", [
        ("div @[a, b: 1] { x, ..y }", ["div", "a", "b", "child", "children"]),
        ("Header { .when(c, f), x }", ["Header", "when", "child"]),
        ("deferred { x }", ["deferred"]),
    ])
    def test_call_order(self, source, names):
        """Test that call order mirrors source order."""
        expression = CodeGenerator().generate(parse(source))
        assert chain_method_names(expression) == names
