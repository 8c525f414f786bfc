"""Token source for markup compilation.

This module turns markup text into the structured token stream consumed by the
tree builder. Lexing is delegated to the standard library ``tokenize`` module so
that every host expression embedded in the markup is split exactly the way the
Python interpreter would split it; this layer only removes layout noise, folds
f-string pieces back into single literals and groups bracketed regions into
token trees.
"""

import io
import keyword
import logging
import re
import time
import tokenize as py_tokenize
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple, Union

from ui_markup.shared.errors import ErrorKind, MarkupSyntaxError

logger = logging.getLogger(__name__)

# The markup text is tokenized inside this wrapper so that the stdlib
# tokenizer sees one bracketed region and emits no NEWLINE/INDENT tokens.
_WRAP_OPEN = "(\n"
_WRAP_CLOSE = "\n)"

_SKIPPED_TYPES = {
    py_tokenize.COMMENT,
    py_tokenize.NL,
    py_tokenize.NEWLINE,
    py_tokenize.INDENT,
    py_tokenize.DEDENT,
    py_tokenize.ENCODING,
    py_tokenize.ENDMARKER,
}

_STRING_RUN_STARTS = {
    getattr(py_tokenize, name)
    for name in ("FSTRING_START", "TSTRING_START")
    if hasattr(py_tokenize, name)
}
_STRING_RUN_ENDS = {
    getattr(py_tokenize, name)
    for name in ("FSTRING_END", "TSTRING_END")
    if hasattr(py_tokenize, name)
}

# Line numbers quoted by the stdlib tokenizer count the wrapper line.
_DETECTED_AT = re.compile(r"\s*\(detected at line \d+\)$")


class TokenType(Enum):
    """Markup token types."""

    IDENT = auto()      # Identifiers and keywords
    PUNCT = auto()      # Operators and delimiters
    LITERAL = auto()    # String (including f-strings) and number literals


class Delimiter(Enum):
    """Bracket pairs that delimit token groups."""

    PAREN = ("(", ")")
    BRACKET = ("[", "]")
    BRACE = ("{", "}")

    @property
    def open(self) -> str:
        return self.value[0]

    @property
    def close(self) -> str:
        return self.value[1]


_OPENERS = {delimiter.open: delimiter for delimiter in Delimiter}
_CLOSERS = {delimiter.close: delimiter for delimiter in Delimiter}


@dataclass(frozen=True)
class TokenPosition:
    """Position of a token inside the markup text.

    ``line`` and ``column`` are 1-based; ``offset`` is the 0-based character
    index into the markup text and is used to slice host expressions.
    """

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class Token:
    """A single identifier, punctuation or literal token."""

    type: TokenType
    value: str
    position: TokenPosition
    end: TokenPosition

    def __post_init__(self) -> None:
        """Validate token values."""
        if not self.value:
            raise ValueError("Token value cannot be empty")

    @property
    def is_keyword(self) -> bool:
        """Check if this is a hard Python keyword such as ``class`` or ``for``."""
        return self.type == TokenType.IDENT and keyword.iskeyword(self.value)

    def is_ident(self, name: Optional[str] = None) -> bool:
        if self.type != TokenType.IDENT:
            return False
        return name is None or self.value == name

    def is_punct(self, value: str) -> bool:
        return self.type == TokenType.PUNCT and self.value == value

    def describe(self) -> str:
        return f"'{self.value}'"


@dataclass
class Group:
    """A bracket-delimited token tree: ``(...)``, ``[...]`` or ``{...}``."""

    delimiter: Delimiter
    trees: List["TokenTree"]
    position: TokenPosition
    close_position: TokenPosition
    end: TokenPosition

    @property
    def is_empty(self) -> bool:
        return not self.trees

    def describe(self) -> str:
        return f"'{self.delimiter.open}'"


TokenTree = Union[Token, Group]


@dataclass
class TokenizationResult:
    """Token trees for one markup text with processing metadata."""

    trees: List[TokenTree]
    source: str
    end_position: TokenPosition
    token_count: int = 0
    processing_time: float = 0.0

    @property
    def character_count(self) -> int:
        return len(self.source)

    @property
    def is_empty(self) -> bool:
        return not self.trees

    def text(self, start: TokenPosition, end: TokenPosition) -> str:
        """Return the markup text between two positions."""
        return self.source[start.offset:end.offset]


def _describe_failure(message: str) -> str:
    message = _DETECTED_AT.sub("", message)
    if message.startswith("unterminated"):
        return message[0].upper() + message[1:]
    return f"Cannot tokenize markup: {message}"


class MarkupTokenizer:
    """Convert markup text into grouped token trees.

    The tokenizer never guesses: any input the Python tokenizer rejects, and
    any unbalanced bracket, raises a ``MarkupSyntaxError`` of kind
    ``TOKENIZATION`` pointing at the offending character.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the markup tokenizer.

        Args:
            correlation_id: Optional correlation ID for tracking requests
        """
        self.correlation_id = correlation_id
        self._line_starts: List[int] = [0]
        self._source = ""

    def tokenize(self, source: str) -> TokenizationResult:
        """Tokenize markup text.

        Args:
            source: Markup text (the body of one markup invocation)

        Returns:
            TokenizationResult holding the token trees

        Raises:
            MarkupSyntaxError: If the text cannot be tokenized
        """
        start_time = time.time()
        self._reset(source)

        logger.debug(
            "Starting tokenization",
            extra={
                "component": "markup_tokenizer",
                "correlation_id": self.correlation_id,
                "char_count": len(source),
            }
        )

        flat = self._lex(source)
        trees = self._group(flat)

        result = TokenizationResult(
            trees=trees,
            source=source,
            end_position=self._end_position(),
            token_count=len(flat),
            processing_time=(time.time() - start_time) * 1000,
        )

        logger.debug(
            "Tokenization completed",
            extra={
                "component": "markup_tokenizer",
                "correlation_id": self.correlation_id,
                "token_count": result.token_count,
                "tree_count": len(trees),
                "processing_time_ms": result.processing_time,
            }
        )
        return result

    def _reset(self, source: str) -> None:
        self._source = source
        self._line_starts = [0]
        for index, char in enumerate(source):
            if char == "\n":
                self._line_starts.append(index + 1)

    def _position(self, row: int, col: int) -> TokenPosition:
        """Map a stdlib (row, col) pair in the wrapped text to a markup position."""
        line = row - 1
        if line < 1:
            return TokenPosition(1, 1, 0)
        if line > len(self._line_starts):
            return self._end_position()
        line_start = self._line_starts[line - 1]
        offset = min(line_start + max(col, 0), len(self._source))
        return TokenPosition(line, offset - line_start + 1, offset)

    def _end_position(self) -> TokenPosition:
        line_start = self._line_starts[-1]
        return TokenPosition(
            len(self._line_starts),
            len(self._source) - line_start + 1,
            len(self._source),
        )

    def _error(self, message: str, position: TokenPosition) -> MarkupSyntaxError:
        logger.warning(
            "Tokenization failed",
            extra={
                "component": "markup_tokenizer",
                "correlation_id": self.correlation_id,
                "reason": message,
                "line": position.line,
                "column": position.column,
            }
        )
        return MarkupSyntaxError(ErrorKind.TOKENIZATION, message, position)

    def _raw_tokens(self, source: str) -> List[py_tokenize.TokenInfo]:
        wrapped = _WRAP_OPEN + source + _WRAP_CLOSE
        readline = io.StringIO(wrapped).readline
        try:
            return list(py_tokenize.generate_tokens(readline))
        except py_tokenize.TokenError as e:
            message = e.args[0] if e.args else "Invalid markup"
            row, col = e.args[1] if len(e.args) > 1 else (len(self._line_starts) + 1, 0)
            raise self._error(_describe_failure(message), self._position(row, col)) from e
        except SyntaxError as e:
            row = e.lineno or 1
            col = (e.offset or 1) - 1
            raise self._error(_describe_failure(e.msg), self._position(row, col)) from e

    def _lex(self, source: str) -> List[Token]:
        """Produce the flat list of significant tokens, brackets included."""
        raw = self._raw_tokens(source)
        wrapper_close_row = len(self._line_starts) + 2
        tokens: List[Token] = []
        index = 0

        while index < len(raw):
            info = raw[index]
            index += 1

            if info.type in _SKIPPED_TYPES:
                continue
            if info.start[0] == 1 or info.start[0] >= wrapper_close_row:
                continue

            position = self._position(*info.start)

            if info.type == py_tokenize.ERRORTOKEN:
                if info.string.isspace():
                    continue
                if info.string[:1] in ("'", '"'):
                    raise self._error("Unterminated string literal", position)
                raise self._error(f"Invalid character {info.string!r} in markup", position)

            if info.type in _STRING_RUN_STARTS:
                depth = 1
                last = info
                while depth and index < len(raw):
                    last = raw[index]
                    index += 1
                    if last.type in _STRING_RUN_STARTS:
                        depth += 1
                    elif last.type in _STRING_RUN_ENDS:
                        depth -= 1
                end = self._position(*last.end)
                tokens.append(Token(
                    type=TokenType.LITERAL,
                    value=source[position.offset:end.offset],
                    position=position,
                    end=end,
                ))
                continue

            if info.type == py_tokenize.NAME:
                token_type = TokenType.IDENT
            elif info.type in (py_tokenize.STRING, py_tokenize.NUMBER):
                token_type = TokenType.LITERAL
            else:
                token_type = TokenType.PUNCT

            tokens.append(Token(
                type=token_type,
                value=info.string,
                position=position,
                end=self._position(*info.end),
            ))

        return tokens

    def _group(self, tokens: List[Token]) -> List[TokenTree]:
        """Fold bracket tokens into nested ``Group`` trees."""
        root: List[TokenTree] = []
        stack: List[Tuple[Delimiter, Token, List[TokenTree]]] = []
        current = root

        for token in tokens:
            if token.type == TokenType.PUNCT and token.value in _OPENERS:
                stack.append((_OPENERS[token.value], token, current))
                current = []
                continue

            if token.type == TokenType.PUNCT and token.value in _CLOSERS:
                if not stack:
                    raise self._error(f"Unmatched '{token.value}'", token.position)
                delimiter, opener, parent = stack.pop()
                if _CLOSERS[token.value] is not delimiter:
                    raise self._error(
                        f"Closing '{token.value}' does not match opening "
                        f"'{delimiter.open}' at line {opener.position.line}, "
                        f"column {opener.position.column}",
                        token.position,
                    )
                parent.append(Group(
                    delimiter=delimiter,
                    trees=current,
                    position=opener.position,
                    close_position=token.position,
                    end=token.end,
                ))
                current = parent
                continue

            current.append(token)

        if stack:
            delimiter, opener, _ = stack[-1]
            raise self._error(f"Unclosed '{delimiter.open}'", opener.position)

        return root


def tokenize(source: str, correlation_id: Optional[str] = None) -> TokenizationResult:
    """Tokenize markup text with a fresh ``MarkupTokenizer``."""
    return MarkupTokenizer(correlation_id=correlation_id).tokenize(source)


def describe_tree(tree: Optional[TokenTree]) -> str:
    """Human readable name of a token tree for error messages."""
    if tree is None:
        return "end of input"
    return tree.describe()


def tree_to_dict(tree: TokenTree) -> Dict[str, Any]:
    if isinstance(tree, Group):
        return {
            "group": tree.delimiter.name,
            "position": tree.position.to_dict(),
            "trees": [tree_to_dict(child) for child in tree.trees],
        }
    return {
        "type": tree.type.name,
        "value": tree.value,
        "position": tree.position.to_dict(),
    }
