"""
Command-line interface.

A thin wrapper around the conversion core: it reads a JSON directive
tree produced by an external nginx parser, builds the Configuration
Model, and validates or generates code for one target or all of them.
All file I/O happens here; the core never touches the filesystem.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .codegen.registry import TARGETS, create_generator, generate_all, get_target
from .codegen.types import GenerationOptions
from .model.builder import build_config
from .model.config_model import NginxConfig
from .model.tree import load_tree_file
from .utils.config import EdgeconfConfig, set_config
from .utils.exceptions import EdgeconfError, ValidationError
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="edgeconf",
        description="Convert a parsed nginx configuration into edge runtime code",
    )
    parser.add_argument("--version", action="version", version=f"edgeconf {__version__}")
    parser.add_argument("--config", help="Converter configuration file (YAML or JSON)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    subparsers.add_parser("targets", help="List supported targets")

    parse_cmd = subparsers.add_parser("parse", help="Print the Configuration Model as JSON")
    parse_cmd.add_argument("tree", help="JSON directive tree")
    parse_cmd.add_argument("-o", "--output", help="Write to a file instead of stdout")
    parse_cmd.add_argument("--pretty", action="store_true", help="Indent the JSON output")

    validate_cmd = subparsers.add_parser("validate", help="Validate a configuration for a target")
    validate_cmd.add_argument("target", help="Target name or alias")
    validate_cmd.add_argument("tree", help="JSON directive tree")

    generate_cmd = subparsers.add_parser("generate", help="Generate code for a target or 'all'")
    generate_cmd.add_argument("target", help="Target name, alias, or 'all'")
    generate_cmd.add_argument("tree", help="JSON directive tree")
    generate_cmd.add_argument("-o", "--output", help="Output file (single target)")
    generate_cmd.add_argument("-d", "--output-dir", help="Output directory (default from configuration)")

    return parser


def _load(tree_path: str) -> NginxConfig:
    config = build_config(load_tree_file(tree_path))
    for warning in config.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return config


def _print_warnings(warnings: List[str]) -> None:
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)


def cmd_targets() -> int:
    for info in TARGETS:
        aliases = f" (aliases: {', '.join(info.aliases)})" if info.aliases else ""
        print(f"{info.name:<12} {info.default_filename:<14} {info.description}{aliases}")
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    config = _load(args.tree)
    text = json.dumps(config.to_dict(), indent=2 if args.pretty else None)
    if args.output:
        Path(args.output).write_text(text + "\n")
        print(f"Configuration model written to {args.output}")
    else:
        print(text)
    return 0


def cmd_validate(args: argparse.Namespace, options: GenerationOptions) -> int:
    config = _load(args.tree)
    result = create_generator(args.target, config, options).validate()
    _print_warnings(list(result.warnings))
    for error in result.errors:
        print(f"error: {error}", file=sys.stderr)

    name = get_target(args.target).name
    if result.valid:
        print(f"Configuration is valid for target '{name}' ({len(result.warnings)} warning(s))")
        return 0
    print(f"Configuration is not valid for target '{name}' ({len(result.errors)} error(s))")
    return 1


def cmd_generate(args: argparse.Namespace, options: GenerationOptions, settings: EdgeconfConfig) -> int:
    config = _load(args.tree)

    if args.target == "all":
        output_dir = Path(args.output_dir or settings.output.directory)
        output_dir.mkdir(parents=True, exist_ok=True)
        outcomes = generate_all(config, options, settings.output.targets)

        status = 0
        for outcome in outcomes.values():
            _print_warnings([f"[{outcome.target}] {w}" for w in outcome.warnings])
            if not outcome.ok:
                for error in outcome.errors:
                    print(f"error: [{outcome.target}] {error}", file=sys.stderr)
                status = 1
                continue
            path = output_dir / outcome.filename
            path.write_text(outcome.source)
            print(f"{outcome.target}: wrote {path}")
        return status

    info = get_target(args.target)
    generator = create_generator(info.name, config, options)
    source = generator.generate()
    _print_warnings(list(generator.validate().warnings))

    if args.output or args.output_dir:
        path = Path(args.output) if args.output else Path(args.output_dir) / info.default_filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        print(f"{info.name}: wrote {path}")
    else:
        sys.stdout.write(source)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the edgeconf command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = EdgeconfConfig(args.config)
    set_config(settings)
    log_file = settings.logging.log_file if settings.logging.enable_file_logging else None
    setup_logging("DEBUG" if args.verbose else settings.logging.level, log_file)
    options = GenerationOptions.from_config(settings)

    try:
        if args.command == "targets":
            return cmd_targets()
        if args.command == "parse":
            return cmd_parse(args)
        if args.command == "validate":
            return cmd_validate(args, options)
        return cmd_generate(args, options, settings)
    except ValidationError as e:
        for error in e.errors:
            print(f"error: {error}", file=sys.stderr)
        print(f"Generation refused for target '{e.target}'", file=sys.stderr)
        return 1
    except (EdgeconfError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
