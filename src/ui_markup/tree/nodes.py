"""Abstract syntax tree for markup.

The tree is built once per compilation pass by ``MarkupTreeBuilder`` and then
consumed by the code generator. Every node owns its children exclusively; there
are no parent links or shared nodes. Attribute and child lists keep source
order because that order becomes the order of builder calls in the output.
"""

import ast
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from ui_markup.shared.config import Dialect
from ui_markup.tokenization.tokenizer import TokenPosition

# Receiver name used while a method chain is parsed on its own; the generator
# swaps it for the chain built so far.
CHAIN_RECEIVER = "__markup_receiver__"


@dataclass
class Identifier:
    """An identifier as written in the markup."""

    name: str
    position: TokenPosition
    end: TokenPosition

    def __post_init__(self) -> None:
        """Validate identifier."""
        if not self.name.isidentifier():
            raise ValueError(f"Invalid identifier: {self.name!r}")


@dataclass
class HostExpression:
    """A Python expression embedded in the markup.

    ``source`` is the text exactly as written; ``node`` is the parsed
    expression. The generator deep-copies ``node`` before use so the tree can
    be generated repeatedly.
    """

    source: str
    node: ast.expr
    position: TokenPosition
    end: TokenPosition

    @property
    def is_tuple(self) -> bool:
        """Check if the expression is syntactically a tuple literal."""
        return isinstance(self.node, ast.Tuple)


# Attributes


@dataclass
class FlagAttribute:
    """Bare attribute name; compiles to ``.name()``."""

    name: Identifier

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "flag", "name": self.name.name}


@dataclass
class KeyValueAttribute:
    """Attribute with one value; compiles to ``.name(value)``."""

    name: Identifier
    value: HostExpression

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "key_value", "name": self.name.name, "value": self.value.source}


@dataclass
class KeyMultiValueAttribute:
    """Attribute with two or more values; compiles to ``.name(v1, v2, ...)``."""

    name: Identifier
    values: List[HostExpression]

    def __post_init__(self) -> None:
        """Validate value count."""
        if len(self.values) < 2:
            raise ValueError("KeyMultiValueAttribute requires at least two values")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "key_multi_value",
            "name": self.name.name,
            "values": [value.source for value in self.values],
        }


Attribute = Union[FlagAttribute, KeyValueAttribute, KeyMultiValueAttribute]


# Children


@dataclass
class ElementChild:
    """A nested element."""

    element: "Element"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "element", "element": self.element.to_dict()}


@dataclass
class ExpressionChild:
    """An opaque child value."""

    expression: HostExpression

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "expression", "source": self.expression.source}


@dataclass
class SpreadChild:
    """An iterable of children expanded in place (``..items``)."""

    expression: HostExpression
    position: TokenPosition

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "spread", "source": self.expression.source}


@dataclass
class MethodChainChild:
    """Raw builder calls spliced into the chain (``.when(cond, f)``).

    Attributes:
        raw: The chain text as written in the markup
        source: The chain text as emitted (generic lists in subscript form)
        node: ``source`` parsed against the ``CHAIN_RECEIVER`` placeholder
        position: Location of the leading ``.``
    """

    raw: str
    source: str
    node: ast.expr
    position: TokenPosition

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "method_chain", "source": self.source, "raw": self.raw}


Child = Union[ElementChild, ExpressionChild, SpreadChild, MethodChainChild]


# Elements


@dataclass(eq=False)
class NativeElement:
    """A toolkit-builtin tag such as ``div``; compiles to ``div()``."""

    tag: Identifier
    attributes: List[Attribute] = field(default_factory=list)
    children: List[Child] = field(default_factory=list)
    close_tag: Optional[Identifier] = None

    kind = "native"

    @property
    def position(self) -> TokenPosition:
        return self.tag.position

    @property
    def label(self) -> str:
        return self.tag.name

    def to_dict(self) -> Dict[str, Any]:
        return _element_dict(self, tag=self.tag.name)


@dataclass(eq=False)
class DeferredElement:
    """Wrapper postponing evaluation of exactly one child."""

    tag: Identifier
    child: Child
    close_tag: Optional[Identifier] = None

    kind = "deferred"

    def __post_init__(self) -> None:
        """Validate the wrapped child kind."""
        if not isinstance(self.child, (ElementChild, ExpressionChild)):
            raise ValueError("Deferred element child must be an element or an expression")

    @property
    def position(self) -> TokenPosition:
        return self.tag.position

    @property
    def label(self) -> str:
        return self.tag.name

    @property
    def attributes(self) -> List[Attribute]:
        return []

    @property
    def children(self) -> List[Child]:
        return [self.child]

    def to_dict(self) -> Dict[str, Any]:
        return _element_dict(self, tag=self.tag.name)


@dataclass(eq=False)
class ComponentElement:
    """A user-defined, uppercase-initial tag; compiles to a constructor call."""

    name: Identifier
    attributes: List[Attribute] = field(default_factory=list)
    children: List[Child] = field(default_factory=list)
    close_tag: Optional[Identifier] = None

    kind = "component"

    @property
    def position(self) -> TokenPosition:
        return self.name.position

    @property
    def label(self) -> str:
        return self.name.name

    def to_dict(self) -> Dict[str, Any]:
        return _element_dict(self, name=self.name.name)


@dataclass(eq=False)
class ExpressionElement:
    """An arbitrary expression used as the tag, e.g. ``(make_card(title))``."""

    expression: HostExpression
    attributes: List[Attribute] = field(default_factory=list)
    children: List[Child] = field(default_factory=list)

    kind = "expression"

    @property
    def position(self) -> TokenPosition:
        return self.expression.position

    @property
    def label(self) -> str:
        return self.expression.source

    def to_dict(self) -> Dict[str, Any]:
        return _element_dict(self, expression=self.expression.source)


Element = Union[NativeElement, DeferredElement, ComponentElement, ExpressionElement]


def _element_dict(element: Element, **identity: Any) -> Dict[str, Any]:
    result: Dict[str, Any] = {"kind": element.kind}
    result.update(identity)
    result["position"] = element.position.to_dict()
    if element.attributes:
        result["attributes"] = [attr.to_dict() for attr in element.attributes]
    if element.children:
        result["children"] = [child.to_dict() for child in element.children]
    return result


def child_elements(element: Element) -> Iterator[Element]:
    """Yield the elements nested directly under ``element``."""
    for child in element.children:
        if isinstance(child, ElementChild):
            yield child.element


@dataclass
class Markup:
    """One compilation unit: exactly one root element."""

    root: Element
    dialect: Dialect = Dialect.BLOCK
    source: str = ""

    def iter_elements(self) -> List[Element]:
        """Return all elements in document order."""
        elements: List[Element] = []

        def collect_elements(element: Element) -> None:
            elements.append(element)
            for nested in child_elements(element):
                collect_elements(nested)

        collect_elements(self.root)
        return elements

    @property
    def element_count(self) -> int:
        return len(self.iter_elements())

    @property
    def attribute_count(self) -> int:
        return sum(len(element.attributes) for element in self.iter_elements())

    @property
    def max_depth(self) -> int:
        """Depth of the deepest element (root = 0)."""
        def depth(element: Element) -> int:
            nested = [depth(child) + 1 for child in child_elements(element)]
            return max(nested, default=0)

        return depth(self.root)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the tree to a JSON-friendly dictionary."""
        return {
            "dialect": self.dialect.name,
            "element_count": self.element_count,
            "max_depth": self.max_depth,
            "root": self.root.to_dict(),
        }
