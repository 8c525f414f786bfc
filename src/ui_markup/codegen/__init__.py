"""Code generation for markup.

Key Components:
    CodeGenerator: Translates Markup trees into builder-chain expressions
    chain_method_names: Call names of a generated chain in execution order
"""

from .generator import CodeGenerator, chain_method_names, count_chain_calls

__all__ = [
    "CodeGenerator",
    "chain_method_names",
    "count_chain_calls",
]
