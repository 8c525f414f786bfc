"""Builder-chain code generation.

This module translates a ``Markup`` tree into one Python expression: a base
call (native constructor, component constructor or the tag expression itself)
followed by one chained call per attribute and one per child, in source order.
The result is an ``ast.expr``; ``ast.unparse`` renders it as source text.
"""

import ast
import copy
import time
from typing import Any, List, Optional

from ui_markup.shared import get_logger
from ui_markup.shared.config import CodegenConfig
from ui_markup.tree.nodes import (
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
    KeyValueAttribute,
    Markup,
    MethodChainChild,
    NativeElement,
    SpreadChild,
)


def _name(identifier: str) -> ast.Name:
    return ast.Name(id=identifier, ctx=ast.Load())


def _method_call(receiver: ast.expr, method: str, args: List[ast.expr]) -> ast.Call:
    return ast.Call(
        func=ast.Attribute(value=receiver, attr=method, ctx=ast.Load()),
        args=args,
        keywords=[],
    )


class _ReceiverReplacer(ast.NodeTransformer):
    """Put the chain built so far in place of the method-chain receiver name."""

    def __init__(self, receiver: ast.expr) -> None:
        self.receiver = receiver
        self.replaced = False

    def visit_Name(self, node: ast.Name) -> Any:
        if node.id == CHAIN_RECEIVER and not self.replaced:
            self.replaced = True
            return self.receiver
        return node


def count_chain_calls(node: ast.expr) -> int:
    """Count the calls along the receiver spine of a method chain."""
    calls = 0
    while isinstance(node, (ast.Call, ast.Attribute, ast.Subscript)):
        if isinstance(node, ast.Call):
            calls += 1
            node = node.func
        else:
            node = node.value
    return calls


def chain_method_names(expression: ast.expr) -> List[str]:
    """Return the call names of a builder chain in the order they execute.

    ``div().flex().child(x)`` yields ``["div", "flex", "child"]``. A base that
    is not a plain call (e.g. a tag expression) is reported as ``"<expr>"``;
    arguments are not descended into.
    """
    names: List[str] = []
    node = expression
    while True:
        if isinstance(node, ast.Call):
            func = node.func
            # Generic parameters: ``.map[T](f)`` is the ``map`` call
            while isinstance(func, ast.Subscript):
                func = func.value
            if isinstance(func, ast.Attribute):
                names.append(func.attr)
                node = func.value
            elif isinstance(func, ast.Name):
                names.append(func.id)
                break
            else:
                names.append("<expr>")
                break
        elif isinstance(node, ast.Subscript):
            node = node.value
        else:
            names.append("<expr>")
            break
    names.reverse()
    return names


class CodeGenerator:
    """Translate ``Markup`` trees into builder-chain expressions.

    Generation performs no validation; every tree produced by
    ``MarkupTreeBuilder`` is accepted. Nodes held by the tree are copied, never
    reused, so one tree may be generated any number of times.
    """

    def __init__(
        self,
        config: Optional[CodegenConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize code generator.

        Args:
            config: Generator configuration (method names, optional features)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or CodegenConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "markup_codegen")

        self.calls_emitted = 0
        self.processing_time_ms = 0.0

    def generate(self, markup: Markup) -> ast.expr:
        """Generate the expression for ``markup``.

        Args:
            markup: Tree produced by ``MarkupTreeBuilder``

        Returns:
            Expression node with locations filled in
        """
        start_time = time.time()
        self.calls_emitted = 0

        expression = self.generate_element(markup.root)
        ast.fix_missing_locations(expression)

        self.processing_time_ms = (time.time() - start_time) * 1000
        self.logger.debug(
            "Code generation completed",
            extra={
                "calls_emitted": self.calls_emitted,
                "element_count": markup.element_count,
                "processing_time_ms": self.processing_time_ms,
            }
        )
        return expression

    def to_source(self, markup: Markup) -> str:
        return ast.unparse(self.generate(markup))

    def generate_element(self, element: Element) -> ast.expr:
        if isinstance(element, DeferredElement):
            return self._deferred(element)

        if isinstance(element, NativeElement):
            base: ast.expr = ast.Call(func=_name(element.tag.name), args=[], keywords=[])
            self.calls_emitted += 1
        elif isinstance(element, ComponentElement):
            base = self._construct_component(element)
        elif isinstance(element, ExpressionElement):
            base = copy.deepcopy(element.expression.node)
        else:
            raise TypeError(f"Unsupported element type: {type(element).__name__}")

        for attribute in element.attributes:
            base = self._apply_attribute(base, attribute)

        if element.children and self.config.assert_parent_capability:
            base = self._assert_parent(base)

        return self._apply_children(base, element.children)

    def _construct_component(self, element: ComponentElement) -> ast.expr:
        self.calls_emitted += 1
        constructor = self.config.component_constructor
        if constructor is None:
            return ast.Call(func=_name(element.name.name), args=[], keywords=[])
        return _method_call(_name(element.name.name), constructor, [])

    def _deferred(self, element: DeferredElement) -> ast.expr:
        inner = self._child_value(element.child)
        if self.config.any_element_method is not None:
            inner = _method_call(inner, self.config.any_element_method, [])
            self.calls_emitted += 1
        self.calls_emitted += 1
        return ast.Call(func=_name(element.tag.name), args=[inner], keywords=[])

    def _apply_attribute(self, base: ast.expr, attribute: Attribute) -> ast.expr:
        self.calls_emitted += 1
        if isinstance(attribute, FlagAttribute):
            return _method_call(base, attribute.name.name, [])

        if isinstance(attribute, KeyValueAttribute):
            value = copy.deepcopy(attribute.value.node)
            if self.config.spread_tuple_attributes and isinstance(value, ast.Tuple):
                return _method_call(base, attribute.name.name, list(value.elts))
            return _method_call(base, attribute.name.name, [value])

        args = [copy.deepcopy(value.node) for value in attribute.values]
        return _method_call(base, attribute.name.name, args)

    def _assert_parent(self, base: ast.expr) -> ast.expr:
        args: List[ast.expr] = [base]
        if self.config.child_method != "child":
            args.append(ast.Constant(value=self.config.child_method))
        return ast.Call(func=_name(self.config.parent_check_function), args=args, keywords=[])

    def _child_value(self, child: Child) -> ast.expr:
        if isinstance(child, ElementChild):
            return self.generate_element(child.element)
        return copy.deepcopy(child.expression.node)

    def _apply_children(self, base: ast.expr, children: List[Child]) -> ast.expr:
        pending: List[ast.expr] = []

        for child in children:
            if isinstance(child, (ElementChild, ExpressionChild)):
                value = self._child_value(child)
                if self.config.collect_children:
                    pending.append(value)
                else:
                    base = self._add_child(base, value)
                continue

            base = self._flush(base, pending)
            if isinstance(child, SpreadChild):
                self.calls_emitted += 1
                base = _method_call(
                    base,
                    self.config.children_method,
                    [copy.deepcopy(child.expression.node)],
                )
            elif isinstance(child, MethodChainChild):
                base = self._splice_chain(base, child)

        return self._flush(base, pending)

    def _add_child(self, base: ast.expr, value: ast.expr) -> ast.expr:
        self.calls_emitted += 1
        return _method_call(base, self.config.child_method, [value])

    def _flush(self, base: ast.expr, pending: List[ast.expr]) -> ast.expr:
        """Emit collected children: one value as ``child``, more as one ``children`` list."""
        if len(pending) == 1:
            base = self._add_child(base, pending[0])
        elif pending:
            self.calls_emitted += 1
            base = _method_call(
                base,
                self.config.children_method,
                [ast.List(elts=list(pending), ctx=ast.Load())],
            )
        pending.clear()
        return base

    def _splice_chain(self, base: ast.expr, child: MethodChainChild) -> ast.expr:
        chain = copy.deepcopy(child.node)
        self.calls_emitted += count_chain_calls(chain)
        return _ReceiverReplacer(base).visit(chain)
