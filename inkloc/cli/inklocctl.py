"""
inklocctl - CLI for the ink localiser.

Commands:
    tag     Add or refresh #loc: tags in ink sources and export the strings
    check   Report untagged lines without writing anything

Author: inkloc contributors | 2026-10-18
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from inkloc.config import LocaliserConfig, load_config
from inkloc.file_handler import DefaultFileHandler, discover_ink_files
from inkloc.localiser import Localiser
from inkloc.string_table import export_csv, export_json

import logging

logger = logging.getLogger(__name__)

# ANSI color helpers (auto-disabled for non-TTY)
_USE_COLOR = sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    if not _USE_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def _bold(text: str) -> str:
    return _c("1", text)


def _green(text: str) -> str:
    return _c("32", text)


def _yellow(text: str) -> str:
    return _c("33", text)


def _red(text: str) -> str:
    return _c("31", text)


def _dim(text: str) -> str:
    return _c("2", text)


# ---------------------------------------------------------------------------
# Source resolution
# ---------------------------------------------------------------------------

def _collect_sources(paths: List[str], config: LocaliserConfig) -> List[Path]:
    """Expand folders into ink files; keep explicit files as given."""
    sources: List[Path] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            sources.extend(discover_ink_files(path, config.file_pattern, config.recursive))
        elif path.is_file():
            sources.append(path)
        else:
            print(_red(f"Error: Not found: {path}"))
    return sources


def _root_dir(paths: List[str], root: Optional[str]) -> Path:
    if root:
        return Path(root)
    first = Path(paths[0])
    return first if first.is_dir() else first.parent


def _build_config(args: argparse.Namespace) -> LocaliserConfig:
    config = load_config(Path(args.config) if args.config else None)
    if getattr(args, "retag", False):
        config.retag_all = True
    if getattr(args, "in_place", False):
        config.debug_output_suffix = False
    if getattr(args, "suffix", None):
        config.output_suffix = args.suffix
    if getattr(args, "seed", None) is not None:
        config.seed = args.seed
    if getattr(args, "json", None):
        config.json_output = args.json
    if getattr(args, "csv", None):
        config.csv_output = args.csv
    if args.no_recursive:
        config.recursive = False
    return config


def _make_localiser(args: argparse.Namespace, config: LocaliserConfig) -> Optional[Localiser]:
    sources = _collect_sources(args.paths, config)
    if not sources:
        print(_red("Error: No ink files found"))
        return None

    handler = DefaultFileHandler(_root_dir(args.paths, args.root))
    loc = Localiser(config, file_handler=handler)
    for src in sources:
        loc.add_file(src.resolve())
    return loc


# ---------------------------------------------------------------------------
# Command: tag
# ---------------------------------------------------------------------------

def cmd_tag(args: argparse.Namespace) -> int:
    """Run the localiser and export the string table."""
    config = _build_config(args)
    loc = _make_localiser(args, config)
    if loc is None:
        return 1

    print(_bold(f"inkloc - {len(loc.files)} file(s)"))
    if config.retag_all:
        print(_yellow("  Retagging all lines"))

    result = loc.run()
    if not result.ok:
        print(_red(f"Error ({result.error_kind.value}): {result.message}"))
        return 1

    for path in result.files_written:
        print(f"  Updated: {_green(path)}")
    print(
        f"  Lines: {result.runs_found}  "
        f"kept: {result.ids_reused}  "
        f"new tags: {len(result.edits)}"
    )

    if config.json_output:
        out = export_json(loc.strings, Path(config.json_output))
        print(f"  Strings: {_dim(str(out))}")
    if config.csv_output:
        out = export_csv(loc.strings, Path(config.csv_output))
        print(f"  Strings: {_dim(str(out))}")

    return 0


# ---------------------------------------------------------------------------
# Command: check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Classify and allocate without writing; exit 1 if lines need tags."""
    config = _build_config(args)
    loc = _make_localiser(args, config)
    if loc is None:
        return 1

    result = loc.run(dry_run=True)
    if not result.ok:
        print(_red(f"Error ({result.error_kind.value}): {result.message}"))
        return 1

    for edit in result.edits:
        print(f"  {edit.file_name}:{edit.line}  {_yellow('untagged')}")

    print(f"\n{_dim(f'{result.runs_found} lines, {len(result.edits)} untagged')}")
    return 1 if result.edits else 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("paths", nargs="+", help="Ink files or folders")
    p.add_argument("-c", "--config", help="Path to inkloc.yaml (default: auto)")
    p.add_argument("--root", help="Folder INCLUDE paths are relative to (default: first path)")
    p.add_argument("--no-recursive", action="store_true", help="Do not search sub-folders")


def build_parser() -> argparse.ArgumentParser:
    """Build the inklocctl argument parser."""
    parser = argparse.ArgumentParser(
        prog="inklocctl",
        description="inkloc - stable localization IDs for ink scripts",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # --- tag ---
    p_tag = sub.add_parser("tag", help="Add or refresh #loc: tags")
    _add_common(p_tag)
    p_tag.add_argument("--retag", action="store_true", help="Replace every existing ID")
    p_tag.add_argument("--in-place", action="store_true", help="Overwrite sources (default: write <file><suffix>)")
    p_tag.add_argument("--suffix", help="Suffix for side-by-side output (default: .txt)")
    p_tag.add_argument("--seed", type=int, default=None, help="Seed for ID generation")
    p_tag.add_argument("--json", help="Write the string table as JSON")
    p_tag.add_argument("--csv", help="Write the string table as CSV")
    p_tag.set_defaults(func=cmd_tag)

    # --- check ---
    p_check = sub.add_parser("check", help="Report lines without tags")
    _add_common(p_check)
    p_check.set_defaults(func=cmd_check)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for inklocctl."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
