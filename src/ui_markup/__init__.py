"""UI Markup compiler.

Compiles a markup description of a UI element tree into one Python
expression built from constructor calls and chained builder-method calls.
Three surface dialects (tag-pair, attribute-block and mixed) feed a single
syntax tree and a single code generator.

Progressive API Disclosure:
- Level 1: Simple functions - compile_markup(), compile_to_source(), compile_file()
- Level 2: Pipeline stages - tokenize(), parse(), generate()
- Level 3: Configured compiler - MarkupCompiler class
"""

__version__ = "0.1.0"
__author__ = "UI Markup Team"

# Progressive API disclosure - Level 1 and 2: Simple functions
# Progressive API disclosure - Level 3: Configured compiler
from .api import (
    CompileResult,
    MarkupCompiler,
    compile_file,
    compile_markup,
    compile_to_source,
    generate,
    parse,
    tokenize,
)

# Configuration classes for advanced usage
from .shared.config import CodegenConfig, CompilerConfig, Dialect, GrammarConfig

# Errors
from .shared.errors import ErrorKind, MarkupError, MarkupSyntaxError

# Core tree objects
from .tree.nodes import Markup

# Runtime helper referenced by generated code
from .runtime import ensure_parent

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple compilation functions
    "compile_markup",
    "compile_to_source",
    "compile_file",

    # Level 2: Pipeline stages
    "tokenize",
    "parse",
    "generate",

    # Level 3: Configured compiler
    "MarkupCompiler",

    # Result objects and data structures
    "CompileResult",
    "Markup",

    # Configuration classes
    "CodegenConfig",
    "CompilerConfig",
    "Dialect",
    "GrammarConfig",

    # Errors
    "ErrorKind",
    "MarkupError",
    "MarkupSyntaxError",

    # Runtime
    "ensure_parent",
]
