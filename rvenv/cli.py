"""Command line entry point for creating virtual environments."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rvenv.venv import VenvError, create_venv

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``rve`` command."""
    parser = argparse.ArgumentParser(
        prog="rve", description="Create a Python virtual environment"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument("dest", help="Directory to create the virtual environment in")
    parser.add_argument(
        "-p", "--python", default="python3", metavar="PYTHON",
        help="Path to base python interpreter",
    )
    parser.add_argument(
        "-c", "--copies", action="store_true",
        help="Copy the interpreter binary instead of symlinking",
    )
    parser.add_argument(
        "-s", "--symlinks", action="store_true",
        help="Force symlink the interpreter binary (default on Unix)",
    )
    parser.add_argument(
        "-u", "--upgrade-deps", action="store_true",
        help="Upgrade core dependencies (pip) to the latest version in PyPI",
    )
    parser.add_argument(
        "-r", "--requirements", metavar="FILE", default=None,
        help="install requirements from a requirements.txt file",
    )
    return parser


def main(argv=None) -> int:
    """Run the command; return the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.copies and args.symlinks:
        parser.error("Cannot specify both --copies and --symlinks")

    requirements = Path(args.requirements) if args.requirements is not None else None
    try:
        create_venv(
            Path(args.dest),
            Path(args.python),
            args.copies,
            args.symlinks,
            requirements,
            args.upgrade_deps,
        )
    except VenvError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())