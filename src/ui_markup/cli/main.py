"""Main CLI entry point for the ui-markup command-line tool.

Provides commands to compile markup files into Python builder expressions and
to check markup files for errors.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ui_markup import __version__
from ui_markup.api import MarkupCompiler
from ui_markup.shared.config import CompilerConfig, ConfigError, Dialect
from ui_markup.shared.logging import configure_logging, get_logger

MARKUP_SUFFIXES = {".uim"}
STDIN_PATH = Path("-")


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.compiler_config = CompilerConfig()
        self.output_format = "text"
        self.include_ast = False
        # Set only when the config file names a level; --verbose still wins
        self.logging_level: Optional[str] = None

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds a ``CompilerConfig`` dictionary, optionally with a
        top-level ``"dialect"`` preset name and ``"output_format"``.

        Raises:
            ConfigError: If the file cannot be read or is not a valid configuration
        """
        config = cls()
        try:
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must hold a JSON object")

        data = dict(data)
        config.output_format = data.pop("output_format", config.output_format)
        for component in ("grammar", "codegen"):
            if not isinstance(data.get(component, {}), dict):
                raise ConfigError(
                    f"Config file {config_path}: '{component}' must be a JSON object"
                )

        preset = data.pop("dialect", None)
        if preset is not None:
            try:
                dialect = Dialect.from_name(preset)
            except ValueError as e:
                raise ConfigError(str(e)) from e
            data["grammar"] = dict(data.get("grammar", {}), dialect=dialect.name)

        config.compiler_config = CompilerConfig.from_dict(data)
        if "logging_level" in data:
            config.logging_level = config.compiler_config.logging_level
        return config


class MarkupProcessor:
    """Core markup processing logic for CLI operations."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.compiler = MarkupCompiler(config=config.compiler_config)
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_source(self, text: str, origin: str) -> Dict[str, Any]:
        """Compile one markup text and return a JSON-friendly result."""
        result = self.compiler.compile(text)
        entry: Dict[str, Any] = {"file": origin}
        entry.update(result.to_dict())
        entry["element_count"] = result.performance.elements_built
        if self.config.include_ast and result.markup is not None:
            entry["ast"] = result.markup.to_dict()
        return entry

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Compile a single markup file (``-`` reads stdin)."""
        try:
            if file_path == STDIN_PATH:
                text = sys.stdin.read()
                origin = "<stdin>"
            else:
                text = file_path.read_text(encoding="utf-8")
                origin = str(file_path)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning("Failed to read markup file", extra={"file": str(file_path)})
            return {
                "file": str(file_path),
                "success": False,
                "source": None,
                "diagnostics": [{
                    "severity": "ERROR",
                    "message": f"Cannot read file: {e}",
                    "component": "cli_processor",
                }],
            }
        return self.process_source(text, origin)

    def find_markup_files(self, path: Path, recursive: bool = False) -> Iterator[Path]:
        """Find markup files in path."""
        if path == STDIN_PATH or path.is_file():
            yield path
        elif path.is_dir():
            pattern = "**/*" if recursive else "*"
            for candidate in sorted(path.glob(pattern)):
                if candidate.is_file() and candidate.suffix.lower() in MARKUP_SUFFIXES:
                    yield candidate
        else:
            # Reported as a read failure by process_single_file
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = False) -> List[Dict[str, Any]]:
        """Compile every markup file found under ``paths``, in order."""
        results = []
        for path in paths:
            for file_path in self.find_markup_files(path, recursive):
                results.append(self.process_single_file(file_path))
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="ui-markup",
        description="Compile UI markup into Python builder-chain expressions"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Compile command
    compile_parser = subparsers.add_parser("compile", help="Compile markup files")
    _add_common_arguments(compile_parser)
    compile_parser.add_argument(
        "--ast",
        action="store_true",
        help="Include the syntax tree in JSON output"
    )
    compile_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Check command
    check_parser = subparsers.add_parser("check", help="Check markup files for errors")
    _add_common_arguments(check_parser)

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def _add_common_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Markup files or directories ('-' reads stdin)"
    )
    subparser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively search directories for *.uim files"
    )
    subparser.add_argument(
        "--dialect", "-d",
        choices=["tag_pair", "block", "mixed"],
        help="Markup dialect (default: block, or the config file's dialect)"
    )
    subparser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    subparser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default=None,
        help="Output format (default: text)"
    )


def _load_config(args: argparse.Namespace) -> CLIConfig:
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
    if args.dialect:
        config.compiler_config = config.compiler_config.override(
            grammar__dialect=Dialect.from_name(args.dialect)
        )
    if args.format:
        config.output_format = args.format
    return config


def _first_error(result: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for diagnostic in result.get("diagnostics", []):
        if diagnostic.get("severity") == "ERROR":
            return diagnostic
    return None


def _error_line(result: Dict[str, Any]) -> str:
    error = _first_error(result) or {"message": "compilation failed"}
    position = error.get("position")
    location = f":{position['line']}:{position['column']}" if position else ""
    return f"{result['file']}{location}: error: {error.get('message', '')}"


def format_results(results: List[Dict[str, Any]], format_type: str, command: str = "compile") -> str:
    """Format processing results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No markup files found."

    lines = []
    if command == "check":
        valid = sum(1 for r in results if r.get("success", False))
        lines.append(f"Checked {len(results)} files, {valid} valid")
        lines.append("-" * 50)
        for result in results:
            if result.get("success", False):
                lines.append(f"✓ {result['file']}")
            else:
                lines.append(f"✗ {_error_line(result)}")
        return "\n".join(lines)

    for result in results:
        if result.get("success", False):
            if len(results) > 1:
                lines.append(f"# {result['file']}")
            lines.append(result["source"])
        else:
            lines.append(f"# {_error_line(result)}")
    return "\n".join(lines)


def _run(args: argparse.Namespace, command: str) -> int:
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if config.logging_level and not args.verbose:
        configure_logging(config.logging_level)

    config.include_ast = getattr(args, "ast", False)
    processor = MarkupProcessor(config)
    results = processor.batch_process(args.paths, args.recursive)

    formatted_output = format_results(results, config.output_format, command)

    output = getattr(args, "output", None)
    if output:
        try:
            output.write_text(formatted_output + "\n", encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        if not args.quiet:
            print(f"Results written to {output}", file=sys.stderr)
            for result in results:
                if not result.get("success", False):
                    print(_error_line(result), file=sys.stderr)
    else:
        print(formatted_output)

    if not results:
        return 1
    return 0 if all(r.get("success", False) for r in results) else 1


def cmd_compile(args: argparse.Namespace) -> int:
    """Handle compile command."""
    return _run(args, "compile")


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    return _run(args, "check")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    # Markup errors are already part of the command output, so WARNING
    # records are only shown in verbose mode.
    configure_logging("DEBUG" if args.verbose else "ERROR")

    # Route to appropriate command handler
    try:
        if args.command == "compile":
            return cmd_compile(args)
        if args.command == "check":
            return cmd_check(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
