#!/usr/bin/env python3
"""
AI Indexer CLI

Scans the Java modules of a Gradle repository and writes a per-module
graph of types, injection points and EJB interface bindings.
"""

import argparse
import logging
import sys
from pathlib import Path

from config import IndexerConfig, load_config, split_modules
from exporters import SCHEMA_VERSION, write_graph
from scanner.builder import build_graph
from scanner.errors import ConfigError
from scanner.modules import ModuleLayout

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 200


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ai-indexer",
        description="Index the Java modules of a repository into a per-module type graph.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ai-indexer .                          # Index all modules, write to ./.repo-ai
  ai-indexer . -o /tmp/graph            # Custom output directory
  ai-indexer . --modules core,web       # Only some modules
  ai-indexer --modules core --modules web /repo
  ai-indexer . --module-file mods.txt   # Module ids listed in a file
  ai-indexer . --exclude-tests          # Only src/main/java
  ai-indexer . --config indexer.yaml    # Settings from a YAML or TOML file
        """,
    )

    # Positional arguments
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root directory (default: current directory)",
    )

    # Output options
    parser.add_argument(
        "-o", "--out-dir",
        type=str,
        default=None,
        help="Output directory (default: <root>/.repo-ai)",
    )

    # Scanning options
    parser.add_argument(
        "--exclude-tests",
        action="store_true",
        default=False,
        help="Only scan src/main/java (test source sets are included by default)",
    )

    parser.add_argument(
        "--modules",
        action="append",
        default=None,
        metavar="IDS",
        help="Comma separated module ids to include; repeatable (default: all)",
    )

    parser.add_argument(
        "--module-file",
        type=str,
        default=None,
        help="File listing module ids to include (one per line or comma separated)",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML or TOML config file; command line options take precedence",
    )

    # Logging options
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose logging",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )

    return parser.parse_args(args)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the requested level."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def build_config(parsed) -> IndexerConfig:
    """
    Merge the config file (if any) with command line options.

    Raises:
        ConfigError: If the config file cannot be loaded.
    """
    config = load_config(Path(parsed.config)) if parsed.config else IndexerConfig()
    if parsed.out_dir:
        config.out_dir = Path(parsed.out_dir)
    if parsed.exclude_tests:
        config.include_tests = False
    if parsed.modules:
        config.modules = [m for value in parsed.modules for m in split_modules(value)]
    if parsed.module_file:
        config.module_file = Path(parsed.module_file)
    return config


def _safe_message(e: BaseException) -> str:
    message = str(e)
    if len(message) > MAX_ERROR_LENGTH:
        return message[:MAX_ERROR_LENGTH] + "..."
    return message


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(parsed.verbose, parsed.quiet)

    # Resolve paths
    root = Path(parsed.root).resolve()
    if not root.is_dir():
        print(f"Error: '{parsed.root}' is not a directory", file=sys.stderr)
        return 1

    try:
        config = build_config(parsed)
        module_filter = config.module_filter(root)
        out_dir = config.resolved_out_dir(root)
        out_dir.mkdir(parents=True, exist_ok=True)
        layout = ModuleLayout.load(root).filter_modules(module_filter)
    except ConfigError as e:
        print(f"Error: {_safe_message(e)}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Error: IO failure: {_safe_message(e)}", file=sys.stderr)
        return 2

    # Build the graph
    try:
        graph = build_graph(root, layout, include_tests=config.include_tests)
    except Exception as e:
        print(
            f"Error: failed to build graph: {type(e).__name__}: {_safe_message(e)}",
            file=sys.stderr,
        )
        return 1

    # Write output
    try:
        write_graph(graph, out_dir)
    except OSError as e:
        print(f"Error: IO failure: {_safe_message(e)}", file=sys.stderr)
        return 2

    print(f"AI graph written to: {out_dir}")
    print(f"Schema: {SCHEMA_VERSION}")
    print(
        f"Modules: {len(graph)}, types: {len(graph.type_index)}, "
        f"EJB-ifaces: {len(graph.ejb_index)}"
    )
    if graph.parse_warnings > 0:
        logger.warning("parse warnings: %d", graph.parse_warnings)

    return 0


if __name__ == "__main__":
    sys.exit(main())
