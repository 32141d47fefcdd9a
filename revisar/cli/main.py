# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for Revisar.

Every operation is a subcommand of the single root command `revisar`.
The global options (--config, --log-level, --dry-run, --seed,
--project-root) are inherited by every subcommand through argparse's
parent parser mechanism.

Usage:
    revisar <subcommand> [options]
    revisar crawl --config configs/revisar.yaml
    revisar mine --config configs/revisar.yaml
    revisar apply --input src/ --write
    revisar info
"""

import argparse
import sys

from revisar.cli.commands import (
    handle_apply,
    handle_cluster,
    handle_crawl,
    handle_extract,
    handle_generalize,
    handle_info,
    handle_mine,
    handle_verify,
)
from revisar.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so the parent's -h doesn't collide with each
    subcommand's own.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Simulate the command without making changes.",
    )
    parent.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the random seed (takes precedence over config).",
    )
    parent.add_argument(
        "--project-root",
        type=str,
        default=None,
        dest="project_root",
        help="Directory that pipeline paths are relative to (default: nearest pyproject.toml).",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """
    Register all subcommands with their handler functions.

    Each subcommand gets the global options from the parent parser and sets
    its handler via set_defaults(func=...).
    """
    commands = [
        ("crawl", "Clone source repositories at pinned commits.", handle_crawl),
        ("extract", "Extract concrete edits from revision histories.", handle_extract),
        ("cluster", "Cluster similar edits.", handle_cluster),
        ("generalize", "Turn clusters into transformations.", handle_generalize),
        ("mine", "Run crawl, extract, cluster and generalize in order.", handle_mine),
        ("apply", "Apply mined transformations to Java files.", handle_apply),
        ("verify", "Validate edit dataset integrity.", handle_verify),
        ("info", "Display environment and config info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    apply_parser = subparsers.choices["apply"]
    apply_parser.add_argument(
        "--input",
        type=str,
        required=True,
        dest="input_path",
        help="A Java file, or a directory searched recursively for .java files.",
    )
    apply_parser.add_argument(
        "--write",
        action="store_true",
        default=False,
        help="Rewrite files in place instead of only printing suggestions.",
    )
    apply_parser.add_argument(
        "--transformations",
        type=str,
        default=None,
        dest="transformations_path",
        help="Transformation catalog to use (overrides apply.transformations_path).",
    )

    verify_parser = subparsers.choices["verify"]
    verify_parser.add_argument(
        "--edits-dir",
        type=str,
        default=None,
        dest="edits_dir",
        help="Edit dataset directory to verify (default: the latest one).",
    )


def main() -> None:
    """
    Main CLI entrypoint, referenced by [project.scripts] in pyproject.toml.

    Parses the command line, calls the chosen subcommand's handler and
    exits with its return code. Without a subcommand we show help and exit
    with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="revisar",
        description="Revisar: mine reusable Java code transformations from revision histories.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
