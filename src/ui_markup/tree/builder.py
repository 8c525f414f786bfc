"""Tree building for markup.

This module turns grouped token trees into the ``Markup`` syntax tree. One
grammar class per surface dialect handles the concrete syntax; all of them
share element classification, attribute and child parsing steps, close-tag
validation and host-expression handling, and all of them feed the same node
types. Parsing stops at the first violation with a located
``MarkupSyntaxError``.
"""

import ast
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from ui_markup.shared import get_logger
from ui_markup.shared.config import Dialect, GrammarConfig
from ui_markup.shared.errors import ErrorKind, MarkupSyntaxError
from ui_markup.tokenization.tokenizer import (
    Delimiter,
    Group,
    Token,
    TokenizationResult,
    TokenPosition,
    TokenTree,
    TokenType,
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
)

# Change in generic-parameter nesting caused by each angle-bracket token.
_ANGLE_DELTA = {"<": 1, "<<": 2, ">": -1, ">>": -2}
_ANGLE_TO_BRACKET = {"<": "[", "<<": "[[", ">": "]", ">>": "]]"}


def parse_python_expression(
    text: str,
    position: TokenPosition,
    end: TokenPosition
) -> HostExpression:
    """Parse ``text`` as a Python expression.

    The text is wrapped in parentheses on their own lines, so that expressions
    spanning several lines or ending in a comment parse the same way they
    would inside a call.

    Raises:
        MarkupSyntaxError: If ``text`` is not a valid Python expression
    """
    try:
        tree = ast.parse(f"(\n{text}\n)", mode="eval")
    except (SyntaxError, ValueError) as e:
        reason = getattr(e, "msg", None) or str(e)
        raise MarkupSyntaxError(
            ErrorKind.INVALID_EXPRESSION,
            f"Invalid Python expression {text!r}: {reason}",
            position,
            expected=["Python expression"],
        ) from e
    return HostExpression(source=text, node=tree.body, position=position, end=end)


def is_receiver_chain(node: ast.expr) -> bool:
    """Check that ``node`` is only calls, attributes and subscripts on the receiver."""
    while True:
        if isinstance(node, ast.Call):
            node = node.func
        elif isinstance(node, (ast.Attribute, ast.Subscript)):
            node = node.value
        else:
            break
    return isinstance(node, ast.Name) and node.id == CHAIN_RECEIVER


@dataclass
class _Tag:
    """Element tag as read at an element position, before the element is built."""

    kind: str
    token: Optional[Token] = None
    expression: Optional[HostExpression] = None

    @property
    def position(self) -> TokenPosition:
        if self.token is not None:
            return self.token.position
        return self.expression.position

    @property
    def identifier(self) -> Identifier:
        return Identifier(self.token.value, self.token.position, self.token.end)

    @property
    def display(self) -> str:
        return self.token.value if self.token is not None else "{}"


class _Grammar:
    """Parsing steps shared by every dialect."""

    dialect: Dialect
    element_expected: List[str] = ["element tag"]

    def __init__(self, tokens: TokenizationResult, config: GrammarConfig) -> None:
        self.tokens = tokens
        self.config = config
        self.elements_built = 0

    def parse_markup(self) -> Element:
        """Parse exactly one root element covering all tokens."""
        cursor = TokenCursor(self.tokens.trees, self.tokens.end_position)
        if cursor.is_empty:
            raise MarkupSyntaxError(
                ErrorKind.UNEXPECTED_TOKEN,
                "Expected a root element, found end of input",
                cursor.position(),
                expected=self.element_expected,
            )
        root = self.parse_element(cursor)
        if not cursor.is_empty:
            raise cursor.unexpected(["end of input after the root element"])
        return root

    def parse_element(self, cursor: TokenCursor) -> Element:
        raise NotImplementedError

    # Host expressions

    def text(self, start: TokenPosition, end: TokenPosition) -> str:
        return self.tokens.text(start, end)

    def expression_from_trees(self, trees: List[TokenTree]) -> HostExpression:
        start, end = trees[0].position, trees[-1].end
        return parse_python_expression(self.text(start, end), start, end)

    def take_expression(self, cursor: TokenCursor, what: str = "expression") -> HostExpression:
        """Consume token trees up to the next top-level comma."""
        trees: List[TokenTree] = []
        while not cursor.is_empty and not cursor.peek_punct(","):
            trees.append(cursor.advance())
        if not trees:
            raise cursor.unexpected([what])
        return self.expression_from_trees(trees)

    def split_values(self, group: Group) -> List[HostExpression]:
        """Split the contents of ``group`` on top-level commas."""
        cursor = TokenCursor.over_group(group)
        values = []
        while not cursor.is_empty:
            values.append(self.take_expression(cursor))
            if cursor.peek_punct(","):
                cursor.advance()
        return values

    # Element tags

    def take_head(self, cursor: TokenCursor) -> Tuple[Token, List[TokenTree]]:
        """Consume an identifier followed by any ``.name``, ``(...)`` or ``[...]`` trailers."""
        ident = cursor.advance()
        trees: List[TokenTree] = [ident]
        while True:
            if cursor.peek_punct(".") and cursor.peek_ident(ahead=1):
                trees.append(cursor.advance())
                trees.append(cursor.advance())
            elif cursor.peek_group(Delimiter.PAREN) or cursor.peek_group(Delimiter.BRACKET):
                trees.append(cursor.advance())
            else:
                return ident, trees

    def tag_from_head(self, cursor: TokenCursor) -> _Tag:
        ident, trees = self.take_head(cursor)
        if len(trees) > 1:
            return _Tag("expression", expression=self.expression_from_trees(trees))
        return _Tag(self.classify(ident), token=ident)

    def classify(self, ident: Token) -> str:
        """Decide the element kind of a bare tag identifier."""
        name = ident.value
        if not ident.is_keyword:
            if name == self.config.deferred_element:
                return "deferred"
            if self.config.is_native(name):
                return "native"
            if name[0].isascii() and name[0].isupper():
                return "component"
        raise self.unknown_element(ident)

    def unknown_element(self, ident: Token) -> MarkupSyntaxError:
        accepted = ", ".join(self.config.native_elements + (self.config.deferred_element,))
        return MarkupSyntaxError(
            ErrorKind.UNKNOWN_ELEMENT,
            f"Unknown element '{ident.value}'. Use native elements ({accepted}) "
            "or PascalCase for components.",
            ident.position,
            expected=list(self.config.native_elements)
            + [self.config.deferred_element, "PascalCase component", "expression"],
        )

    # Close markers

    def finish_close_marker(self, cursor: TokenCursor, tag: _Tag) -> Optional[Identifier]:
        """Parse the rest of a close marker once ``</`` has been consumed."""
        found = cursor.peek()
        found_text = self.text(found.position, found.end) if found is not None else ""

        if tag.kind == "expression":
            group = cursor.peek_group(Delimiter.BRACE)
            if group is None or not group.is_empty:
                raise MarkupSyntaxError(
                    ErrorKind.MISMATCHED_CLOSING_TAG,
                    "Closing tag for expression elements should be empty: </{}>, "
                    f"found </{found_text}>",
                    cursor.position(),
                    expected=["</{}>"],
                )
            cursor.advance()
            cursor.expect_punct(">")
            return None

        expected = f"</{tag.display}>"
        if not cursor.peek_ident() or found.value != tag.token.value:
            raise MarkupSyntaxError(
                ErrorKind.MISMATCHED_CLOSING_TAG,
                f"Mismatched closing tag. Expected {expected}, found </{found_text}>",
                cursor.position(),
                expected=[expected],
            )
        close = cursor.advance()
        cursor.expect_punct(">")
        return Identifier(close.value, close.position, close.end)

    # Attributes

    def parse_attribute_name(self, cursor: TokenCursor) -> Identifier:
        if not cursor.peek_ident():
            raise cursor.unexpected(["attribute name"])
        token = cursor.advance()
        if token.is_keyword:
            raise MarkupSyntaxError(
                ErrorKind.MALFORMED_ATTRIBUTE,
                f"Attribute name '{token.value}' is a Python keyword; "
                f"use '{token.value}_' instead",
                token.position,
                expected=[f"{token.value}_"],
            )
        return Identifier(token.value, token.position, token.end)

    # Children

    def take_method_chain(self, cursor: TokenCursor) -> MethodChainChild:
        """Consume ``.name...`` up to a top-level comma outside any generic list."""
        dot = cursor.advance()
        if not cursor.peek_ident() or cursor.peek().is_keyword:
            raise cursor.unexpected(["method name after '.'"])

        trees: List[TokenTree] = [dot]
        angle_depth = 0
        while not cursor.is_empty:
            tree = cursor.peek()
            if isinstance(tree, Token) and tree.type == TokenType.PUNCT:
                if tree.value == "," and angle_depth == 0:
                    break
                angle_depth = max(angle_depth + _ANGLE_DELTA.get(tree.value, 0), 0)
            trees.append(cursor.advance())

        start, end = dot.position, trees[-1].end
        raw = self.text(start, end)
        source = self._rewrite_generic_lists(trees, raw, start.offset)
        try:
            node = ast.parse(f"(\n{CHAIN_RECEIVER}{source}\n)", mode="eval").body
        except SyntaxError as e:
            raise MarkupSyntaxError(
                ErrorKind.INVALID_EXPRESSION,
                f"Invalid method chain {raw!r}: {e.msg}",
                start,
                expected=["method call chain"],
            ) from e
        if not is_receiver_chain(node):
            raise MarkupSyntaxError(
                ErrorKind.INVALID_EXPRESSION,
                f"Method chain {raw!r} may only contain method calls, "
                "attribute access and subscripts",
                start,
                expected=["method call chain"],
            )
        return MethodChainChild(raw=raw, source=source, node=node, position=start)

    def _rewrite_generic_lists(self, trees: List[TokenTree], raw: str, base: int) -> str:
        """Rewrite ``::<A, B>`` generic lists as ``[A, B]`` subscripts."""
        edits: List[Tuple[int, int, str]] = []
        index = 0
        while index < len(trees):
            if (
                index + 2 < len(trees)
                and all(isinstance(t, Token) for t in trees[index:index + 3])
                and trees[index].is_punct(":")
                and trees[index + 1].is_punct(":")
                and trees[index + 2].is_punct("<")
            ):
                edits.append((trees[index].position.offset, trees[index + 2].end.offset, "["))
                depth = 1
                index += 3
                while index < len(trees) and depth > 0:
                    tree = trees[index]
                    if isinstance(tree, Token) and tree.value in _ANGLE_DELTA:
                        depth += _ANGLE_DELTA[tree.value]
                        edits.append((
                            tree.position.offset,
                            tree.end.offset,
                            _ANGLE_TO_BRACKET[tree.value],
                        ))
                    index += 1
                if depth > 0:
                    raise MarkupSyntaxError(
                        ErrorKind.UNEXPECTED_TOKEN,
                        "Unclosed generic parameter list in method chain",
                        trees[-1].end,
                        expected=["'>'"],
                    )
            else:
                index += 1

        text = raw
        for start, end, replacement in reversed(edits):
            text = text[:start - base] + replacement + text[end - base:]
        return text

    def spread_marker(self, cursor: TokenCursor) -> Optional[TokenPosition]:
        """Consume a ``..`` spread marker, returning its position when present."""
        if not cursor.peek_adjacent_punct(".", "."):
            return None
        position = cursor.position()
        cursor.advance()
        cursor.advance()
        if cursor.is_empty or cursor.peek_punct(","):
            raise MarkupSyntaxError(
                ErrorKind.EMPTY_CHILD,
                "Spread marker '..' must be followed by an expression",
                position,
                expected=["expression"],
            )
        return position

    # Element construction

    def build_element(
        self,
        tag: _Tag,
        attributes: List[Attribute],
        children: List[Child],
        close_tag: Optional[Identifier] = None
    ) -> Element:
        self.elements_built += 1

        if tag.kind == "expression":
            return ExpressionElement(tag.expression, attributes, children)
        if tag.kind == "native":
            return NativeElement(tag.identifier, attributes, children, close_tag)
        if tag.kind == "component":
            return ComponentElement(tag.identifier, attributes, children, close_tag)

        name = tag.display
        if attributes:
            raise MarkupSyntaxError(
                ErrorKind.MALFORMED_ATTRIBUTE,
                f"<{name}> does not accept attributes",
                attributes[0].name.position,
                expected=["exactly one child"],
            )
        if len(children) != 1:
            raise MarkupSyntaxError(
                ErrorKind.DEFERRED_ARITY,
                f"<{name}> must have exactly one child, found {len(children)}",
                tag.position,
                expected=["exactly one child"],
            )
        child = children[0]
        if isinstance(child, (SpreadChild, MethodChainChild)):
            what = "a spread" if isinstance(child, SpreadChild) else "a method chain"
            raise MarkupSyntaxError(
                ErrorKind.DEFERRED_ARITY,
                f"<{name}> must have exactly one element or expression child, found {what}",
                child.position,
                expected=["element", "expression"],
            )
        return DeferredElement(tag.identifier, child, close_tag)


class TagPairGrammar(_Grammar):
    """``<div flex w={x}>{child}</div>`` markup."""

    dialect = Dialect.TAG_PAIR
    element_expected = ["'<'"]

    def parse_element(self, cursor: TokenCursor) -> Element:
        cursor.expect_punct("<")
        tag = self.parse_tag(cursor)
        attributes = self.parse_attributes(cursor)

        if cursor.peek_punct("/"):
            cursor.advance()
            cursor.expect_punct(">")
            return self.build_element(tag, attributes, [])

        if not cursor.peek_punct(">"):
            raise cursor.unexpected(["attribute", "'>'", "'/>'"])
        cursor.advance()

        children = self.parse_children(cursor, tag)
        close_tag = self.finish_close_marker(cursor, tag)
        return self.build_element(tag, attributes, children, close_tag)

    def parse_tag(self, cursor: TokenCursor) -> _Tag:
        group = cursor.peek_group(Delimiter.BRACE)
        if group is not None:
            cursor.advance()
            if group.is_empty:
                raise MarkupSyntaxError(
                    ErrorKind.INVALID_EXPRESSION,
                    "Expression tag <{}> is empty",
                    group.position,
                    expected=["expression"],
                )
            return _Tag("expression", expression=self.expression_from_trees(group.trees))
        if not cursor.peek_ident():
            raise cursor.unexpected(["element tag", "'{' expression '}'"])
        return self.tag_from_head(cursor)

    def parse_attributes(self, cursor: TokenCursor) -> List[Attribute]:
        attributes: List[Attribute] = []
        while cursor.peek_ident():
            name = self.parse_attribute_name(cursor)
            if not cursor.peek_punct("="):
                attributes.append(FlagAttribute(name))
                continue

            cursor.advance()
            group = cursor.peek_group(Delimiter.BRACE)
            if group is None:
                raise MarkupSyntaxError(
                    ErrorKind.MALFORMED_ATTRIBUTE,
                    f"Attribute '{name.name}' value must be wrapped in braces: "
                    f"{name.name}={{...}}",
                    cursor.position(),
                    expected=["'{' expression '}'"],
                )
            cursor.advance()
            if group.is_empty:
                raise MarkupSyntaxError(
                    ErrorKind.MALFORMED_ATTRIBUTE,
                    f"Attribute '{name.name}' has an empty value list",
                    group.position,
                    expected=["expression"],
                )

            values = self.split_values(group)
            if len(values) == 1:
                attributes.append(KeyValueAttribute(name, values[0]))
            else:
                attributes.append(KeyMultiValueAttribute(name, values))
        return attributes

    def parse_children(self, cursor: TokenCursor, tag: _Tag) -> List[Child]:
        """Parse juxtaposed children up to and including ``</``."""
        children: List[Child] = []
        while True:
            if cursor.is_empty:
                close = f"</{tag.display}>"
                raise MarkupSyntaxError(
                    ErrorKind.UNEXPECTED_TOKEN,
                    f"Unclosed <{tag.display}>, expected {close}",
                    cursor.position(),
                    expected=[close],
                )

            if cursor.peek_punct("<"):
                if cursor.peek_punct("/", 1):
                    cursor.advance()
                    cursor.advance()
                    return children
                children.append(ElementChild(self.parse_element(cursor)))
                continue

            group = cursor.peek_group(Delimiter.BRACE)
            if group is not None:
                cursor.advance()
                children.append(self.parse_braced_child(group))
                continue

            if cursor.peek_literal():
                children.append(ExpressionChild(self.expression_from_trees([cursor.advance()])))
                continue

            raise cursor.unexpected([
                "child element `<...>`",
                "expression `{...}`",
                f"</{tag.display}>",
            ])

    def parse_braced_child(self, group: Group) -> Child:
        if group.is_empty:
            raise MarkupSyntaxError(
                ErrorKind.EMPTY_CHILD,
                "Empty braces are not allowed. Use # comments to annotate markup.",
                group.position,
                expected=["expression", "'..' spread", "'.' method chain"],
            )

        cursor = TokenCursor.over_group(group)
        spread_position = self.spread_marker(cursor)
        if spread_position is not None:
            return SpreadChild(
                self.expression_from_trees(cursor.trees[cursor.index:]),
                spread_position,
            )

        if cursor.peek_punct("."):
            chain = self.take_method_chain(cursor)
            if not cursor.is_empty:
                raise cursor.unexpected(["'}'"])
            return chain

        return ExpressionChild(self.expression_from_trees(group.trees))


class BlockGrammar(_Grammar):
    """``div @[flex, w: x] { child, ..items }`` markup."""

    dialect = Dialect.BLOCK
    element_expected = ["element tag", "'(' expression ')'"]

    def parse_element(self, cursor: TokenCursor) -> Element:
        tag = self.parse_tag(cursor)
        attributes = self.parse_attribute_block(cursor)

        body = cursor.peek_group(Delimiter.BRACE)
        if body is None:
            if tag.kind == "deferred":
                raise MarkupSyntaxError(
                    ErrorKind.MISSING_BODY,
                    f"<{tag.display}> requires a body: {tag.display} {{ child }}",
                    tag.position,
                    expected=["'{'"],
                )
            return self.build_element(tag, attributes, [])

        cursor.advance()
        body_attributes, children = self.parse_body(body)
        close_tag = self.parse_close_marker(cursor, tag)
        return self.build_element(tag, attributes + body_attributes, children, close_tag)

    def parse_tag(self, cursor: TokenCursor) -> _Tag:
        group = cursor.peek_group(Delimiter.PAREN)
        if group is not None:
            cursor.advance()
            if group.is_empty:
                raise MarkupSyntaxError(
                    ErrorKind.INVALID_EXPRESSION,
                    "Empty parentheses cannot be used as an element tag",
                    group.position,
                    expected=["expression"],
                )
            return _Tag("expression", expression=self.expression_from_trees(group.trees))
        if not cursor.peek_ident():
            raise cursor.unexpected(self.element_expected)
        return self.tag_from_head(cursor)

    def opener_follows(self, cursor: TokenCursor) -> bool:
        """Check for the start of an attribute block or body."""
        if cursor.peek_group(Delimiter.BRACE) is not None:
            return True
        return cursor.peek_punct("@") and cursor.peek_group(Delimiter.BRACKET, 1) is not None

    def parse_attribute_block(self, cursor: TokenCursor) -> List[Attribute]:
        if not cursor.peek_punct("@"):
            return []
        group = cursor.peek_group(Delimiter.BRACKET, 1)
        if group is None:
            cursor.advance()
            raise cursor.unexpected(["'[' attribute list"])
        cursor.advance()
        cursor.advance()
        return self.parse_attribute_list(group)

    def parse_attribute_list(self, group: Group) -> List[Attribute]:
        cursor = TokenCursor.over_group(group)
        attributes: List[Attribute] = []
        while not cursor.is_empty:
            attributes.append(self.parse_attribute(cursor))
            if cursor.peek_punct(","):
                cursor.advance()
        return attributes

    def parse_attribute(self, cursor: TokenCursor) -> Attribute:
        name = self.parse_attribute_name(cursor)
        if cursor.is_empty or cursor.peek_punct(","):
            return FlagAttribute(name)

        if cursor.peek_punct(":"):
            cursor.advance()
            if cursor.is_empty or cursor.peek_punct(","):
                raise MarkupSyntaxError(
                    ErrorKind.MALFORMED_ATTRIBUTE,
                    f"Attribute '{name.name}' has ':' but no value",
                    cursor.position(),
                    expected=["expression"],
                )
            return KeyValueAttribute(name, self.take_expression(cursor))

        if cursor.peek_punct("="):
            message = f"Attribute '{name.name}' uses '=', expected ':' between name and value"
        else:
            message = f"Attribute '{name.name}' must be followed by ':' or ','"
        raise MarkupSyntaxError(
            ErrorKind.MALFORMED_ATTRIBUTE,
            message,
            cursor.position(),
            expected=["':'", "','"],
        )

    def parse_body(self, body: Group) -> Tuple[List[Attribute], List[Child]]:
        return [], self.parse_children(TokenCursor.over_group(body))

    def parse_close_marker(self, cursor: TokenCursor, tag: _Tag) -> Optional[Identifier]:
        """Parse an optional ``</tag>`` following a body."""
        if not (cursor.peek_punct("<") and cursor.peek_punct("/", 1)):
            return None
        if not self.config.allow_close_tags:
            raise cursor.unexpected(["','", "end of element"])
        cursor.advance()
        cursor.advance()
        return self.finish_close_marker(cursor, tag)

    def parse_children(self, cursor: TokenCursor) -> List[Child]:
        children: List[Child] = []
        while not cursor.is_empty:
            children.append(self.parse_child(cursor))
            if cursor.is_empty:
                break
            if not cursor.peek_punct(","):
                raise cursor.unexpected(["','"])
            cursor.advance()
        return children

    def parse_child(self, cursor: TokenCursor) -> Child:
        spread_position = self.spread_marker(cursor)
        if spread_position is not None:
            return SpreadChild(self.take_expression(cursor), spread_position)
        if cursor.peek_punct("."):
            return self.take_method_chain(cursor)
        if self.starts_element(cursor):
            return ElementChild(self.parse_element(cursor))
        return ExpressionChild(self.take_expression(cursor, "child element or expression"))

    def starts_element(self, cursor: TokenCursor) -> bool:
        """Look ahead, without consuming, for an element at a child position."""
        fork = cursor.fork()
        if fork.peek_group(Delimiter.PAREN) is not None:
            fork.advance()
            return self.opener_follows(fork)

        if not fork.peek_ident() or fork.peek().is_keyword:
            return False
        if fork.peek_ident(self.config.deferred_element) and (
            fork.peek(1) is None or fork.peek_punct(",", 1)
        ):
            return True

        self.take_head(fork)
        return self.opener_follows(fork)


class MixedGrammar(BlockGrammar):
    """``div { [flex, w: x] child, ..items }`` markup."""

    dialect = Dialect.MIXED

    def opener_follows(self, cursor: TokenCursor) -> bool:
        return cursor.peek_group(Delimiter.BRACE) is not None

    def parse_attribute_block(self, cursor: TokenCursor) -> List[Attribute]:
        return []

    def parse_body(self, body: Group) -> Tuple[List[Attribute], List[Child]]:
        cursor = TokenCursor.over_group(body)
        attributes: List[Attribute] = []
        attribute_group = cursor.peek_group(Delimiter.BRACKET)
        if attribute_group is not None:
            cursor.advance()
            attributes = self.parse_attribute_list(attribute_group)
            if cursor.peek_punct(","):
                cursor.advance()
        return attributes, self.parse_children(cursor)


_GRAMMARS: Dict[Dialect, Type[_Grammar]] = {
    Dialect.TAG_PAIR: TagPairGrammar,
    Dialect.BLOCK: BlockGrammar,
    Dialect.MIXED: MixedGrammar,
}


class MarkupTreeBuilder:
    """Build ``Markup`` trees from tokenized markup.

    The grammar used is selected by ``GrammarConfig.dialect``; the resulting
    tree shape does not depend on the dialect.
    """

    def __init__(
        self,
        config: Optional[GrammarConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Grammar configuration (dialect, element names)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or GrammarConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "markup_tree_builder")

        self.elements_built = 0
        self.processing_time_ms = 0.0

    def build(self, tokens: TokenizationResult) -> Markup:
        """Build the syntax tree for one markup text.

        Args:
            tokens: Tokenized markup

        Returns:
            Markup holding the root element

        Raises:
            MarkupSyntaxError: At the first markup violation
        """
        start_time = time.time()
        grammar = _GRAMMARS[self.config.dialect](tokens, self.config)

        self.logger.debug(
            "Starting tree building",
            extra={
                "dialect": self.config.dialect.name,
                "token_count": tokens.token_count,
            }
        )

        try:
            root = grammar.parse_markup()
        except MarkupSyntaxError as e:
            self.logger.warning(
                "Markup parsing failed",
                extra={
                    "kind": e.kind.name,
                    "line": e.line,
                    "column": e.column,
                    "reason": e.message,
                }
            )
            raise

        markup = Markup(root=root, dialect=self.config.dialect, source=tokens.source)
        self.elements_built = grammar.elements_built
        self.processing_time_ms = (time.time() - start_time) * 1000

        self.logger.debug(
            "Tree building completed",
            extra={
                "element_count": self.elements_built,
                "max_depth": markup.max_depth,
                "processing_time_ms": self.processing_time_ms,
            }
        )
        return markup
