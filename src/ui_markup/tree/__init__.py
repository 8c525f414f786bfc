"""Syntax tree construction for markup.

This module builds the ``Markup`` syntax tree from grouped token trees. One
grammar per surface dialect feeds a single set of node types.

Key Components:
    MarkupTreeBuilder: Selects the dialect grammar and builds the tree
    Markup: Compilation unit holding exactly one root element
    TokenCursor: Forkable lookahead over token trees
"""

from .builder import (
    BlockGrammar,
    MarkupTreeBuilder,
    MixedGrammar,
    TagPairGrammar,
    parse_python_expression,
)
from .cursor import TokenCursor
from .nodes import (
    CHAIN_RECEIVER,
    Attribute,
    Child,
    ComponentElement,
    DeferredElement,
    Element,
    ElementChild,
    ExpressionChild,
    ExpressionElement,
    FlagAttribute,
    HostExpression,
    Identifier,
    KeyMultiValueAttribute,
    KeyValueAttribute,
    Markup,
    MethodChainChild,
    NativeElement,
    SpreadChild,
    child_elements,
)

__all__ = [
    "BlockGrammar",
    "MarkupTreeBuilder",
    "MixedGrammar",
    "TagPairGrammar",
    "parse_python_expression",
    "TokenCursor",
    "CHAIN_RECEIVER",
    "Attribute",
    "Child",
    "ComponentElement",
    "DeferredElement",
    "Element",
    "ElementChild",
    "ExpressionChild",
    "ExpressionElement",
    "FlagAttribute",
    "HostExpression",
    "Identifier",
    "KeyMultiValueAttribute",
    "KeyValueAttribute",
    "Markup",
    "MethodChainChild",
    "NativeElement",
    "SpreadChild",
    "child_elements",
]
