"""Public compilation API.

Key Components:
    compile_markup: Never-raising compilation returning a CompileResult
    compile_to_source: Raising compilation straight to Python source
    MarkupCompiler: Reusable, configurable compiler with statistics
"""

from .compiler import (
    CompileResult,
    MarkupCompiler,
    compile_file,
    compile_markup,
    compile_to_source,
    generate,
    parse,
    tokenize,
)

__all__ = [
    "CompileResult",
    "MarkupCompiler",
    "compile_file",
    "compile_markup",
    "compile_to_source",
    "generate",
    "parse",
    "tokenize",
]
