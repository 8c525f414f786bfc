"""Tests for markup syntax tree nodes."""

import ast

import pytest

from ui_markup.shared.config import Dialect
from ui_markup.tokenization.tokenizer import TokenPosition
from ui_markup.tree.nodes import (
    ComponentElement,
    DeferredElement,
    ElementChild,
    ExpressionChild,
    ExpressionElement,
    FlagAttribute,
    HostExpression,
    Identifier,
    KeyMultiValueAttribute,
    KeyValueAttribute,
    Markup,
    NativeElement,
    SpreadChild,
    child_elements,
)

POS = TokenPosition(1, 1, 0)


def ident(name):
    return Identifier(name, POS, POS)


def expr(source):
    return HostExpression(source, ast.parse(source, mode="eval").body, POS, POS)


class TestIdentifier:
    """Test Identifier validation."""

    def test_valid_identifier(self):
        """Test creating identifiers."""
        assert ident("flex").name == "flex"

    def test_invalid_identifier(self):
        """Test that non-identifiers are rejected."""
        with pytest.raises(ValueError, match="Invalid identifier"):
            Identifier("my-tag", POS, POS)


class TestHostExpression:
    """Test host expression helpers."""

    def test_is_tuple(self):
        """Test tuple literal detection."""
        assert expr("(a, b)").is_tuple
        assert not expr("size").is_tuple
        assert not expr("[a, b]").is_tuple


class TestAttributes:
    """Test attribute node shapes."""

    def test_to_dict(self):
        """Test attribute dictionary conversion."""
        assert FlagAttribute(ident("flex")).to_dict() == {"kind": "flag", "name": "flex"}
        assert KeyValueAttribute(ident("w"), expr("px(10)")).to_dict() == {
            "kind": "key_value",
            "name": "w",
            "value": "px(10)",
        }
        assert KeyMultiValueAttribute(ident("size"), [expr("1"), expr("2")]).to_dict() == {
            "kind": "key_multi_value",
            "name": "size",
            "values": ["1", "2"],
        }

    def test_multi_value_needs_two_values(self):
        """Test multi-value attribute validation."""
        with pytest.raises(ValueError, match="at least two values"):
            KeyMultiValueAttribute(ident("size"), [expr("1")])


class TestElements:
    """Test element node behavior."""

    def test_labels_and_kinds(self):
        """Test element identity helpers."""
        native = NativeElement(ident("div"))
        component = ComponentElement(ident("Header"))
        expression = ExpressionElement(expr("make_card(title)"))

        assert (native.kind, native.label) == ("native", "div")
        assert (component.kind, component.label) == ("component", "Header")
        assert (expression.kind, expression.label) == ("expression", "make_card(title)")

    def test_deferred_exposes_single_child(self):
        """Test that a deferred element reports its child as its only child."""
        child = ElementChild(NativeElement(ident("div")))
        deferred = DeferredElement(ident("deferred"), child)

        assert deferred.attributes == []
        assert deferred.children == [child]
        assert deferred.kind == "deferred"

    def test_deferred_rejects_spread_child(self):
        """Test deferred child validation."""
        with pytest.raises(ValueError, match="element or an expression"):
            DeferredElement(ident("deferred"), SpreadChild(expr("items"), POS))

    def test_element_dict_omits_empty_lists(self):
        """Test element dictionary conversion."""
        data = NativeElement(ident("div")).to_dict()
        assert data == {
            "kind": "native",
            "tag": "div",
            "position": {"line": 1, "column": 1, "offset": 0},
        }

    def test_child_elements(self):
        """Test direct element children iteration."""
        inner = NativeElement(ident("svg"))
        outer = NativeElement(
            ident("div"),
            children=[ExpressionChild(expr("'text'")), ElementChild(inner)],
        )

        assert list(child_elements(outer)) == [inner]


class TestMarkup:
    """Test the compilation unit."""

    def build_tree(self):
        leaf = ComponentElement(ident("Icon"), attributes=[FlagAttribute(ident("small"))])
        middle = NativeElement(
            ident("svg"),
            attributes=[KeyValueAttribute(ident("w"), expr("10"))],
            children=[ElementChild(leaf)],
        )
        deferred = DeferredElement(ident("deferred"), ElementChild(NativeElement(ident("div"))))
        root = NativeElement(
            ident("div"),
            children=[ElementChild(middle), ElementChild(deferred)],
        )
        return Markup(root=root, dialect=Dialect.MIXED)

    def test_iter_elements_document_order(self):
        """Test that elements are listed in document order."""
        markup = self.build_tree()
        assert [e.label for e in markup.iter_elements()] == [
            "div", "svg", "Icon", "deferred", "div",
        ]

    def test_counts_and_depth(self):
        """Test element, attribute and depth figures."""
        markup = self.build_tree()

        assert markup.element_count == 5
        assert markup.attribute_count == 2
        assert markup.max_depth == 2

    def test_to_dict(self):
        """Test tree dictionary conversion."""
        data = self.build_tree().to_dict()

        assert data["dialect"] == "MIXED"
        assert data["element_count"] == 5
        assert data["root"]["children"][0]["element"]["tag"] == "svg"
        assert data["root"]["children"][1]["element"]["kind"] == "deferred"

    def test_single_element_depth(self):
        """Test that the root alone has depth zero."""
        markup = Markup(root=ComponentElement(ident("Header")))
        assert markup.max_depth == 0
        assert markup.dialect is Dialect.BLOCK
