from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
from pathlib import Path

from .commands import build_options, run_filter, run_render
from .version import __version__

MAPBLOCKS_HELP = f"""mapblocks {__version__} - interactive map blocks for markdown

Rewrites ```leaflet fenced blocks into a map container and its init script.

USAGE:
    mapblocks <FILE> [OPTIONS] [PANDOC ARGS]    Render FILE through pandoc
    mapblocks filter [OPTIONS]                  Run as a pandoc JSON filter

EXAMPLES:
    mapblocks notes.md                          Creates notes.html
    mapblocks notes.md -t gfm -o out.md         Markdown with raw HTML maps
    pandoc notes.md -F mapblocks-filter -o notes.html

Unrecognized options are passed through to pandoc.
Use 'mapblocks <FILE> --help' for the full option list.
"""


def _handle_common_errors(fn):
    try:
        return fn()
    except subprocess.CalledProcessError as exc:
        print(f"pandoc failed (exit {exc.returncode}): {' '.join(exc.cmd)}", file=sys.stderr)
        return 2
    except RuntimeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except json.JSONDecodeError as exc:
        print(f"error: filter input is not pandoc JSON: {exc}", file=sys.stderr)
        return 2
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def _add_transform_options(parser):
    parser.add_argument(
        "--lang",
        default=None,
        help="Code block language that marks a map block (default: leaflet)",
    )
    parser.add_argument(
        "--asset-prefix",
        default=None,
        help="Route prefix for map overlay images (default: /z_assets/)",
    )


def _build_render_parser(prog_name: str):
    parser = argparse.ArgumentParser(
        prog=prog_name,
        description="Render markdown through pandoc, turning map blocks into interactive maps.",
    )
    parser.add_argument("input", type=Path, help="Input markdown path")
    parser.add_argument("-o", "--output", type=Path, help="Output file (default: input with writer suffix)")
    _add_transform_options(parser)
    parser.add_argument(
        "--no-wordcount",
        dest="word_count",
        action="store_false",
        help="Do not attach the wordcount metadata field",
    )
    return parser


def _build_filter_parser(prog_name: str):
    parser = argparse.ArgumentParser(
        prog=prog_name,
        description="Pandoc JSON filter: read the AST on stdin, write the rewritten AST to stdout.",
    )
    _add_transform_options(parser)
    return parser


def main_filter(argv=None, prog_name=None):
    args_list = list(sys.argv[1:] if argv is None else argv)
    parser = _build_filter_parser(prog_name or "mapblocks-filter")
    # pandoc passes the target writer format as the first positional argument.
    args, _ = parser.parse_known_args(args_list)
    options = build_options(lang=args.lang, asset_prefix=args.asset_prefix, word_count=False)
    return _handle_common_errors(lambda: run_filter(options))


def main_render(argv=None, prog_name=None):
    args_list = list(sys.argv[1:] if argv is None else argv)
    parser = _build_render_parser(prog_name or "mapblocks")
    args, pandoc_extra_args = parser.parse_known_args(args_list)
    options = build_options(lang=args.lang, asset_prefix=args.asset_prefix, word_count=args.word_count)
    return _handle_common_errors(lambda: run_render(args.input, args.output, pandoc_extra_args, options))


def main(argv=None):
    args_list = list(sys.argv[1:] if argv is None else argv)
    prog = os.environ.get("MAPBLOCKS_PROG") or "mapblocks"
    if Path(sys.argv[0]).stem.lower() == "mapblocks-filter":
        return main_filter(args_list)

    if not args_list or args_list[0] in {"-h", "--help"}:
        print(MAPBLOCKS_HELP)
        return 0

    if args_list[0] in {"-V", "--version"}:
        print(f"mapblocks {__version__}")
        return 0

    if args_list[0] == "filter":
        return main_filter(args_list[1:], prog_name=f"{prog} filter")
    return main_render(args_list, prog_name=prog)
