"""Tests for tree building in the tag-pair dialect."""

import pytest

from ui_markup.shared.config import Dialect, GrammarConfig
from ui_markup.shared.errors import ErrorKind, MarkupSyntaxError
from ui_markup.tokenization import tokenize
from ui_markup.tree import (
    ComponentElement,
    DeferredElement,
    ElementChild,
    ExpressionChild,
    ExpressionElement,
    FlagAttribute,
    KeyMultiValueAttribute,
    KeyValueAttribute,
    MarkupTreeBuilder,
    MethodChainChild,
    NativeElement,
    SpreadChild,
)


def build(source):
    config = GrammarConfig(dialect=Dialect.TAG_PAIR)
    return MarkupTreeBuilder(config).build(tokenize(source))


def build_error(source):
    with pytest.raises(MarkupSyntaxError) as exc_info:
        build(source)
    return exc_info.value


class TestTagPairElements:
    """Test element recognition with paired tags."""

    def test_attributes(self):
        """Test flag, single-value and multi-value attributes."""
        markup = build('<div flex w={px(10)} size={1, 2}>{"x"}</div>')
        root = markup.root

        flex, w, size = root.attributes
        assert isinstance(flex, FlagAttribute)
        assert isinstance(w, KeyValueAttribute) and w.value.source == "px(10)"
        assert isinstance(size, KeyMultiValueAttribute)
        assert [v.source for v in size.values] == ["1", "2"]
        assert root.close_tag.name == "div"
        assert markup.dialect is Dialect.TAG_PAIR

    def test_self_closing_component(self):
        """Test a self-closing element."""
        root = build("<Header/>").root
        assert isinstance(root, ComponentElement)
        assert root.children == []
        assert root.close_tag is None

    def test_child_kinds(self):
        """Test juxtaposed children of every kind."""
        source = """
            <div>
                # greeting
                <svg small/>
                "label"
                {..items}
                {.when(cond, f)}
                {count + 1}
            </div>
        """
        children = build(source).root.children

        assert [type(c) for c in children] == [
            ElementChild,
            ExpressionChild,
            SpreadChild,
            MethodChainChild,
            ExpressionChild,
        ]
        assert children[0].element.attributes[0].name.name == "small"
        assert children[1].expression.source == '"label"'
        assert children[2].expression.source == "items"
        assert children[3].source == ".when(cond, f)"
        assert children[4].expression.source == "count + 1"

    def test_expression_tag(self):
        """Test a braced expression tag closed with an empty marker."""
        root = build('<{make_card(title)} flex>{"x"}</{}>').root

        assert isinstance(root, ExpressionElement)
        assert root.expression.source == "make_card(title)"
        assert isinstance(root.attributes[0], FlagAttribute)

    def test_dotted_tag_is_expression(self):
        """Test that a tag with trailers is an expression element."""
        root = build("<theme.card flex/>").root
        assert isinstance(root, ExpressionElement)
        assert root.expression.source == "theme.card"

    def test_deferred(self):
        """Test a deferred wrapper."""
        root = build("<deferred><Header/></deferred>").root
        assert isinstance(root, DeferredElement)
        assert isinstance(root.child.element, ComponentElement)

    def test_nested_elements(self):
        """Test nesting and close markers at every level."""
        markup = build("<div><svg><Icon/></svg><anchored/></div>")

        assert markup.element_count == 4
        assert markup.max_depth == 2
        svg = markup.root.children[0].element
        assert isinstance(svg, NativeElement) and svg.close_tag.name == "svg"


class TestTagPairErrors:
    """Test error detection with paired tags."""

    def test_mismatched_close_tag(self):
        """Test that the error points at the closing identifier."""
        error = build_error("<div></svg>")

        assert error.kind is ErrorKind.MISMATCHED_CLOSING_TAG
        assert error.message == "Mismatched closing tag. Expected </div>, found </svg>"
        assert (error.line, error.column) == (1, 8)

    def test_mismatched_nested_close_tag(self):
        """Test mismatches on a later line."""
        error = build_error("<div>\n  <svg></div>\n</div>")
        assert error.kind is ErrorKind.MISMATCHED_CLOSING_TAG
        assert (error.line, error.column) == (2, 10)

    def test_expression_close_tag_must_be_empty(self):
        """Test closing markers of expression elements."""
        error = build_error("<{card}></div>")

        assert error.kind is ErrorKind.MISMATCHED_CLOSING_TAG
        assert error.message == (
            "Closing tag for expression elements should be empty: </{}>, found </div>"
        )

    def test_unclosed_element(self):
        """Test input ending before the closing tag."""
        error = build_error("<div>")
        assert error.kind is ErrorKind.UNEXPECTED_TOKEN
        assert error.message == "Unclosed <div>, expected </div>"

    @pytest.mark.parametrize("source,found", [
        ("<deferred/>", 0),
        ("<deferred>{a}{b}</deferred>", 2),
    ])
    def test_deferred_arity(self, source, found):
        """Test that deferred needs exactly one child."""
        error = build_error(source)
        assert error.kind is ErrorKind.DEFERRED_ARITY
        assert f"found {found}" in error.message

    def test_empty_braces(self):
        """Test empty child placeholders."""
        error = build_error("<div>{}</div>")
        assert error.kind is ErrorKind.EMPTY_CHILD
        assert (error.line, error.column) == (1, 6)

    @pytest.mark.parametrize("source,message", [
        ("<div w=1/>", "Attribute 'w' value must be wrapped in braces: w={...}"),
        ("<div w={}/>", "Attribute 'w' has an empty value list"),
    ])
    def test_malformed_attributes(self, source, message):
        """Test attribute syntax errors."""
        error = build_error(source)
        assert error.kind is ErrorKind.MALFORMED_ATTRIBUTE
        assert error.message == message

    def test_empty_expression_tag(self):
        """Test an empty braced tag."""
        error = build_error("<{}/>")
        assert error.kind is ErrorKind.INVALID_EXPRESSION

    def test_unknown_element(self):
        """Test lowercase tags that are not native."""
        error = build_error("<span/>")
        assert error.kind is ErrorKind.UNKNOWN_ELEMENT
        assert error.column == 2

    def test_missing_tag_end(self):
        """Test a tag that is never finished."""
        error = build_error('<div "x"')
        assert error.kind is ErrorKind.UNEXPECTED_TOKEN
        assert error.expected == ["attribute", "'>'", "'/>'"]

    def test_bare_identifier_child(self):
        """Test that bare identifiers must be braced in this dialect."""
        error = build_error("<div>label</div>")
        assert error.kind is ErrorKind.UNEXPECTED_TOKEN
        assert "</div>" in error.expected

    def test_missing_open_bracket(self):
        """Test markup that does not start with a tag."""
        error = build_error("div")
        assert error.expected == ["'<'"]
