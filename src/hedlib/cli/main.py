"""
Command-line interface for hedlib.

This module provides a CLI for inspecting and validating HED library schemas
and for checking tags against the schemas a dataset declares.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .. import __version__
from ..config.settings import get_settings, get_settings_manager
from ..core.registry import SchemaRegistry
from ..core.repository import HedRepository
from ..core.validator import SchemaValidator
from ..infrastructure.dataset_description import get_hed_version, is_bids_dataset
from ..infrastructure.logging_config import setup_logging, get_logger
from ..infrastructure.schema_loader import load_schema


logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="hedlib",
        description="HED library schema validation and tag resolution tool"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"hedlib {__version__}"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Info command
    info_parser = subparsers.add_parser("info", help="Display schema information")
    info_parser.add_argument("schema", type=Path, help="Path to a .xml or .mediawiki schema file")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a schema file")
    validate_parser.add_argument("schema", type=Path, help="Path to a .xml or .mediawiki schema file")
    validate_parser.add_argument("--standard", type=Path,
                                 help="Standard schema a partnered library is checked against")
    validate_parser.add_argument("--max-depth", type=int, default=None,
                                 help="Deepest allowed nesting level (0 disables the check)")
    validate_parser.add_argument("--no-style", action="store_true",
                                 help="Skip capitalization and description warnings")

    # Check command
    check_parser = subparsers.add_parser("check", help="Resolve and check tags")
    check_parser.add_argument("tags", nargs="+", help="Tags or comma-separated annotations")
    check_parser.add_argument("--dataset", type=Path, help="BIDS dataset whose HEDVersion declares the schemas")
    check_parser.add_argument("--schema", action="append", default=[], metavar="[NICK=]FILE",
                              help="Schema file to use, optionally bound to a prefix (repeatable)")
    check_parser.add_argument("--schema-dir", action="append", type=Path, default=[],
                              help="Extra directory to search for schema files (repeatable)")

    # Versions command
    versions_parser = subparsers.add_parser("versions", help="List the schemas a dataset declares")
    versions_parser.add_argument("dataset", type=Path, help="Path to BIDS dataset")

    return parser


def cmd_info(args: argparse.Namespace) -> int:
    """
    Display information about a schema file.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    try:
        schema = load_schema(args.schema)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load schema: {e}")
        return 1

    get_settings_manager().add_recent_schema(str(args.schema))

    summary = schema.summary()
    print(f"Schema: {args.schema}")
    print(f"Library: {summary['library'] or '(standard)'}")
    print(f"Version: {summary['version']}")
    if summary['with_standard']:
        print(f"Partnered with standard: {summary['with_standard']}")
    print(f"Tags: {summary['tags']} ({summary['root_tags']} top-level, max depth {summary['max_depth']})")
    print(f"Unit classes: {summary['unit_classes']} ({summary['units']} units)")
    print(f"Unit modifiers: {summary['unit_modifiers']}")
    print(f"Value classes: {summary['value_classes']}")
    print(f"Attributes: {summary['attributes']}")
    print(f"Properties: {summary['properties']}")

    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """
    Validate a schema file.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for a schema without errors).
    """
    settings = get_settings()

    try:
        schema = load_schema(args.schema)
        standard = load_schema(args.standard) if args.standard else None
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load schema: {e}")
        return 1

    max_depth = settings.max_tag_depth if args.max_depth is None else args.max_depth
    validator = SchemaValidator(
        schema,
        standard=standard,
        max_depth=max_depth,
        check_style=settings.check_style and not args.no_style,
    )
    result = validator.validate()

    print(result.format_issues())
    if result.is_valid:
        print(f"✓ {result.schema_name} is valid")
        return 0
    print(f"✗ {result.schema_name} has {len(result.errors)} error(s)")
    return 1


def cmd_check(args: argparse.Namespace) -> int:
    """
    Resolve tags and report their long forms or problems.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 if every tag resolved).
    """
    search_dirs = list(args.schema_dir) + get_settings().get_search_dirs()

    try:
        repository = HedRepository(args.dataset, search_dirs=search_dirs)
        if args.dataset is not None:
            repository.load()
        for item in args.schema:
            nickname, path = _split_schema_argument(item)
            repository.add_schema(path, nickname)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load schemas: {e}")
        return 1

    if len(repository.registry) == 0:
        logger.error("No schemas given: use --dataset or --schema")
        return 1

    failures = 0
    for text in args.tags:
        for result in repository.resolver.resolve_string(text):
            if result.is_valid:
                print(f"✓ {result.tag} -> {result.long_form}")
            else:
                failures += 1
                print(f"✗ {result.tag}")
                for issue in result.issues:
                    print(f"    {issue}")

    return 1 if failures else 0


def cmd_versions(args: argparse.Namespace) -> int:
    """
    List the schemas declared by a dataset's HEDVersion.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    dataset_path = args.dataset

    if not dataset_path.exists():
        logger.error(f"Dataset path does not exist: {dataset_path}")
        return 1

    if not is_bids_dataset(dataset_path):
        logger.error(f"Not a valid BIDS dataset: {dataset_path}")
        return 1

    try:
        hed_version = get_hed_version(dataset_path)
        if hed_version is None:
            print("No HEDVersion declared")
            return 1
        registry = SchemaRegistry.from_hed_version(hed_version)
    except ValueError as e:
        logger.error(f"Invalid HEDVersion: {e}")
        return 1

    print(f"Dataset: {dataset_path}")
    for binding in registry:
        print(f"  {binding.describe()}")

    return 0


def _split_schema_argument(value: str) -> tuple[str, Path]:
    """Split a '[NICK=]FILE' argument into nickname and path."""
    nickname, sep, path = value.partition('=')
    if not sep:
        return '', Path(value)
    return nickname.strip(), Path(path)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Arguments to parse instead of sys.argv.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    settings = get_settings()
    log_level = logging.DEBUG if args.verbose else settings.log_level
    setup_logging(
        level=log_level,
        log_file=Path(settings.log_file_path) if settings.log_file_path else None,
        log_to_file=settings.log_to_file
    )

    # Dispatch to command handler
    if args.command == "info":
        return cmd_info(args)
    elif args.command == "validate":
        return cmd_validate(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "versions":
        return cmd_versions(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
