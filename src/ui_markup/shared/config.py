"""Configuration classes for markup compilation.

This module provides configuration objects for the front-end grammar and the
code generator, plus the immutable ``CompilerConfig`` aggregate with presets,
override support and JSON round-tripping.
"""

import json
import keyword
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_NATIVE_ELEMENTS: Tuple[str, ...] = ("div", "svg", "anchored")
DEFAULT_DEFERRED_ELEMENT = "deferred"
VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Dialect(Enum):
    """Surface syntax accepted by the front end."""

    TAG_PAIR = auto()   # <div flex w={x}>{"child"}</div>
    BLOCK = auto()      # div @[flex, w: x] { "child" }
    MIXED = auto()      # div { [flex, w: x] "child" }

    @classmethod
    def from_name(cls, name: str) -> "Dialect":
        """Look up a dialect by case-insensitive name (``tag_pair``, ``block``...)."""
        try:
            return cls[name.strip().upper().replace("-", "_")]
        except KeyError:
            valid = ", ".join(member.name.lower() for member in cls)
            raise ValueError(f"Unknown dialect '{name}'. Expected one of: {valid}") from None


def _check_identifier(value: str, field_name: str) -> None:
    if not value.isidentifier() or keyword.iskeyword(value):
        raise ValueError(f"{field_name} must be a valid Python identifier, got {value!r}")


@dataclass
class GrammarConfig:
    """Configuration for the markup front end."""

    dialect: Dialect = Dialect.BLOCK
    native_elements: Tuple[str, ...] = DEFAULT_NATIVE_ELEMENTS
    deferred_element: str = DEFAULT_DEFERRED_ELEMENT
    allow_close_tags: bool = True

    def __post_init__(self) -> None:
        """Validate grammar configuration."""
        if isinstance(self.dialect, str):
            self.dialect = Dialect.from_name(self.dialect)
        self.native_elements = tuple(self.native_elements)
        if not self.native_elements:
            raise ValueError("native_elements must not be empty")
        for name in self.native_elements:
            _check_identifier(name, "native_elements entry")
        _check_identifier(self.deferred_element, "deferred_element")
        if self.deferred_element in self.native_elements:
            raise ValueError("deferred_element must not also be a native element")

    def is_native(self, name: str) -> bool:
        return name in self.native_elements


@dataclass
class CodegenConfig:
    """Configuration for the builder-chain code generator."""

    child_method: str = "child"
    children_method: str = "children"
    component_constructor: Optional[str] = None
    any_element_method: Optional[str] = "into_any_element"
    spread_tuple_attributes: bool = True
    collect_children: bool = False
    assert_parent_capability: bool = False
    parent_check_function: str = "ensure_parent"

    def __post_init__(self) -> None:
        """Validate generator configuration."""
        _check_identifier(self.child_method, "child_method")
        _check_identifier(self.children_method, "children_method")
        _check_identifier(self.parent_check_function, "parent_check_function")
        if self.component_constructor is not None:
            _check_identifier(self.component_constructor, "component_constructor")
        if self.any_element_method is not None:
            _check_identifier(self.any_element_method, "any_element_method")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


_COMPONENTS = ("grammar", "codegen")


@dataclass(frozen=True)
class CompilerConfig:
    """Complete configuration for one markup compiler.

    Immutable so that a single instance can be shared between compiler
    instances; derive variants with ``override``.
    """

    grammar: GrammarConfig = field(default_factory=GrammarConfig)
    codegen: CodegenConfig = field(default_factory=CodegenConfig)

    correlation_id: Optional[str] = None
    logging_level: str = "WARNING"
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete compiler configuration."""
        try:
            self.grammar.__post_init__()
            self.codegen.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {VALID_LOGGING_LEVELS}",
                field_name="logging_level",
                suggestions=VALID_LOGGING_LEVELS,
            )
        self._validate_cross_component_dependencies()

    def _validate_cross_component_dependencies(self) -> None:
        """Validate names shared between the grammar and the generator."""
        if self.codegen.parent_check_function in self.grammar.native_elements:
            raise ConfigValidationError(
                "parent_check_function collides with a native element name",
                field_name="codegen.parent_check_function",
                suggestions=["Rename the capability check function"],
            )
        if self.codegen.child_method == self.codegen.children_method:
            raise ConfigValidationError(
                "child_method and children_method must differ",
                field_name="codegen.children_method",
            )

    @property
    def dialect(self) -> Dialect:
        return self.grammar.dialect

    def override(self, **kwargs: Any) -> "CompilerConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Keyword arguments for configuration fields to override;
                nested fields use ``component__field`` notation

        Returns:
            New CompilerConfig instance with overrides applied

        Example:
            >>> config = CompilerConfig()
            >>> new_config = config.override(
            ...     grammar__dialect=Dialect.TAG_PAIR,
            ...     codegen__collect_children=True
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component '{component}'",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in _COMPONENTS and isinstance(value, dict):
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (list, tuple, set)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompilerConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files surface
        immediately instead of being silently ignored.
        """
        try:
            grammar_data = dict(data.get("grammar", {}))
            if "dialect" in grammar_data and isinstance(grammar_data["dialect"], str):
                grammar_data["dialect"] = Dialect.from_name(grammar_data["dialect"])
            if "native_elements" in grammar_data:
                grammar_data["native_elements"] = tuple(grammar_data["native_elements"])

            top_level = {
                key: value for key, value in data.items() if key not in _COMPONENTS
            }
            return cls(
                grammar=GrammarConfig(**grammar_data),
                codegen=CodegenConfig(**dict(data.get("codegen", {}))),
                **top_level,
            )
        except ConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_json(cls, json_str: str) -> "CompilerConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Configuration is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def tag_pair(cls) -> "CompilerConfig":
        """Preset for ``<div attr={x}>{child}</div>`` markup."""
        return cls(grammar=GrammarConfig(dialect=Dialect.TAG_PAIR), name="tag_pair")

    @classmethod
    def block(cls) -> "CompilerConfig":
        """Preset for ``div @[attr: x] { child }`` markup."""
        return cls(grammar=GrammarConfig(dialect=Dialect.BLOCK), name="block")

    @classmethod
    def mixed(cls) -> "CompilerConfig":
        """Preset for ``div { [attr: x] child }`` markup."""
        return cls(grammar=GrammarConfig(dialect=Dialect.MIXED), name="mixed")

    @classmethod
    def for_dialect(cls, dialect: Dialect) -> "CompilerConfig":
        presets = {
            Dialect.TAG_PAIR: cls.tag_pair,
            Dialect.BLOCK: cls.block,
            Dialect.MIXED: cls.mixed,
        }
        return presets[dialect]()
