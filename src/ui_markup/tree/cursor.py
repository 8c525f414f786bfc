"""Restartable lookahead over a list of token trees."""

from typing import List, Optional

from ui_markup.shared.errors import ErrorKind, MarkupSyntaxError
from ui_markup.tokenization.tokenizer import (
    Delimiter,
    Group,
    Token,
    TokenPosition,
    TokenTree,
    TokenType,
    describe_tree,
)


class TokenCursor:
    """Position in one level of a token tree.

    ``fork`` returns an independent cursor at the same position; the grammar
    looks ahead on the fork and drops it, leaving this cursor untouched.
    """

    def __init__(
        self,
        trees: List[TokenTree],
        end_position: TokenPosition,
        index: int = 0
    ) -> None:
        """Initialize cursor.

        Args:
            trees: Token trees at this nesting level
            end_position: Position reported when the cursor is exhausted
                (the closing bracket of the enclosing group, or end of input)
            index: Starting index into ``trees``
        """
        self.trees = trees
        self.end_position = end_position
        self.index = index

    @classmethod
    def over_group(cls, group: Group) -> "TokenCursor":
        return cls(group.trees, group.close_position)

    def fork(self) -> "TokenCursor":
        return TokenCursor(self.trees, self.end_position, self.index)

    @property
    def is_empty(self) -> bool:
        return self.index >= len(self.trees)

    @property
    def remaining(self) -> int:
        return max(len(self.trees) - self.index, 0)

    def peek(self, ahead: int = 0) -> Optional[TokenTree]:
        index = self.index + ahead
        if index < len(self.trees):
            return self.trees[index]
        return None

    def peek_punct(self, value: str, ahead: int = 0) -> bool:
        tree = self.peek(ahead)
        return isinstance(tree, Token) and tree.is_punct(value)

    def peek_ident(self, name: Optional[str] = None, ahead: int = 0) -> bool:
        tree = self.peek(ahead)
        return isinstance(tree, Token) and tree.is_ident(name)

    def peek_literal(self, ahead: int = 0) -> bool:
        tree = self.peek(ahead)
        return isinstance(tree, Token) and tree.type == TokenType.LITERAL

    def peek_group(
        self,
        delimiter: Optional[Delimiter] = None,
        ahead: int = 0
    ) -> Optional[Group]:
        tree = self.peek(ahead)
        if isinstance(tree, Group) and (delimiter is None or tree.delimiter is delimiter):
            return tree
        return None

    def peek_adjacent_punct(self, first: str, second: str) -> bool:
        """Check for two punctuation tokens written with no space between them."""
        if not (self.peek_punct(first) and self.peek_punct(second, 1)):
            return False
        return self.trees[self.index].end.offset == self.trees[self.index + 1].position.offset

    def advance(self) -> TokenTree:
        tree = self.peek()
        if tree is None:
            raise self.unexpected(["more input"])
        self.index += 1
        return tree

    def position(self) -> TokenPosition:
        """Position of the next tree, or the end position when exhausted."""
        tree = self.peek()
        return tree.position if tree is not None else self.end_position

    def expect_punct(self, value: str) -> Token:
        if not self.peek_punct(value):
            raise self.unexpected([f"'{value}'"])
        return self.advance()

    def unexpected(self, expected: List[str]) -> MarkupSyntaxError:
        """Build an UNEXPECTED_TOKEN error located at the next tree."""
        found = describe_tree(self.peek())
        return MarkupSyntaxError(
            ErrorKind.UNEXPECTED_TOKEN,
            f"Unexpected {found}, expected {' or '.join(expected)}",
            self.position(),
            expected=expected,
        )
