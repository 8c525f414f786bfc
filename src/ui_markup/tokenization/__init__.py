"""Token source for markup compilation.

This module converts markup text into the structured token stream consumed by
the tree builder: identifiers, punctuation and literals tagged with source
positions, with bracketed regions grouped into nested token trees.

Key Components:
    MarkupTokenizer: Tokenizer built on the standard library ``tokenize`` module
    Token: Single identifier, punctuation or literal token
    Group: Bracket-delimited token tree
    TokenPosition: Position tracking for error reporting
"""

from .tokenizer import (
    Delimiter,
    Group,
    MarkupTokenizer,
    Token,
    TokenizationResult,
    TokenPosition,
    TokenTree,
    TokenType,
    describe_tree,
    tokenize,
    tree_to_dict,
)

__all__ = [
    "Delimiter",
    "Group",
    "MarkupTokenizer",
    "Token",
    "TokenizationResult",
    "TokenPosition",
    "TokenTree",
    "TokenType",
    "describe_tree",
    "tokenize",
    "tree_to_dict",
]
