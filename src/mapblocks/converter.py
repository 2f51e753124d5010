from __future__ import annotations

import json
import os
import re
import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from .blocks import MAP_BLOCK_LANG, rewrite_map_blocks
from .render import ViewTransform
from .shapes import DEFAULT_ASSET_PREFIX
from .wordcount import attach_word_count, attach_word_count_meta

MIN_PANDOC_VERSION = (2, 14)
PANDOC_VERSION_RE = re.compile(r"\b(\d+)\.(\d+)(?:\.(\d+))?")
DEFAULT_WRITER = "html"
WRITER_SUFFIXES = {
    "html": ".html",
    "html4": ".html",
    "html5": ".html",
    "markdown": ".md",
    "gfm": ".md",
    "commonmark": ".md",
    "commonmark_x": ".md",
    "json": ".json",
}


@dataclass(frozen=True)
class TransformOptions:
    lang: str = MAP_BLOCK_LANG
    asset_prefix: str = DEFAULT_ASSET_PREFIX
    view: ViewTransform = field(default_factory=ViewTransform)
    word_count: bool = True


@dataclass
class TransformReport:
    blocks_rewritten: int = 0
    wordcount: int | None = None
    warnings: list[str] = field(default_factory=list)
    data: dict = field(default_factory=dict)


def transform_document(doc, text: str | None = None, options: TransformOptions | None = None) -> TransformReport:
    """Run the map block rewrite and the word count pass over one document.

    ``doc`` is a pandoc JSON AST and is edited in place. ``text`` is the raw
    markdown the AST came from; without it no word count is taken.
    """
    options = options or TransformOptions()
    report = TransformReport()
    report.blocks_rewritten = rewrite_map_blocks(
        doc,
        lang=options.lang,
        asset_prefix=options.asset_prefix,
        view=options.view,
        warnings=report.warnings,
    )
    if options.word_count and text is not None:
        report.wordcount = attach_word_count(text, report.data)
        attach_word_count_meta(doc, report.wordcount)
    return report


def pandoc_command(in_path: Path, fmt_from=None, fmt_to=None, extra_args=None):
    cmd = ["pandoc", str(in_path)]
    if fmt_from:
        cmd.extend(["-f", fmt_from])
    cmd.extend(extra_args or [])
    if fmt_to:
        cmd.extend(["-t", fmt_to])
    return cmd


def run_pandoc(in_path: Path, out_path: Path, fmt_from=None, fmt_to=None, extra_args=None, cwd=None):
    cmd = pandoc_command(in_path, fmt_from, fmt_to, extra_args) + ["-o", str(out_path)]
    subprocess.run(cmd, check=True, cwd=str(cwd) if cwd else None)


def run_pandoc_json(in_path: Path, fmt_from=None, extra_args=None):
    cmd = pandoc_command(in_path, fmt_from, "json", extra_args)
    # Pandoc emits UTF-8 JSON; force decoding so Windows locale codecs do not break.
    return json.loads(subprocess.check_output(cmd, text=True, encoding="utf-8"))


def scratch_dir_for(out_path: Path):
    """Directory for the intermediate AST file: beside the output when writable."""
    parent = out_path.parent
    if parent.exists() and os.access(parent, os.W_OK):
        return parent
    return None


def resolve_pandoc_writer_format(extra_args, default_format=DEFAULT_WRITER):
    args = list(extra_args or [])
    writer = default_format
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in {"-t", "--to"} and i + 1 < len(args):
            writer = args[i + 1]
            i += 2
            continue
        if arg.startswith("--to="):
            writer = arg.split("=", 1)[1]
        i += 1
    return writer or default_format


def pandoc_reader_args(extra_args):
    """Arguments that only make sense for the markdown -> json step."""
    args = list(extra_args or [])
    out = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in {"-f", "--from", "-r", "--read", "-t", "--to", "-o", "--output"}:
            i += 2
            continue
        if (
            arg.startswith("--from=")
            or arg.startswith("--read=")
            or arg.startswith("--to=")
            or arg.startswith("--output=")
        ):
            i += 1
            continue
        if arg in {"--template", "-c", "--css"}:
            i += 2
            continue
        if arg in {"-s", "--standalone"} or arg.startswith("--template=") or arg.startswith("--css="):
            i += 1
            continue
        out.append(arg)
        i += 1
    return out


def pandoc_writer_args(extra_args):
    """Arguments that only make sense for the json -> output step."""
    args = list(extra_args or [])
    out = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in {"-f", "--from", "-r", "--read", "-t", "--to", "-o", "--output"}:
            i += 2
            continue
        if (
            arg.startswith("--from=")
            or arg.startswith("--read=")
            or arg.startswith("--to=")
            or arg.startswith("--output=")
        ):
            i += 1
            continue
        out.append(arg)
        i += 1
    return out


def resolve_pandoc_reader_format(extra_args, default_format="markdown"):
    args = list(extra_args or [])
    reader = default_format
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in {"-f", "--from", "-r", "--read"} and i + 1 < len(args):
            reader = args[i + 1]
            i += 2
            continue
        if arg.startswith("--from=") or arg.startswith("--read="):
            reader = arg.split("=", 1)[1]
        i += 1
    return reader or default_format


def render_pandoc_json(doc, out_path: Path, writer_format=DEFAULT_WRITER, extra_args=None, cwd=None):
    with tempfile.TemporaryDirectory(prefix=".mapblocks-json-", dir=scratch_dir_for(out_path)) as tmp:
        tmp_dir = Path(tmp)
        json_in = tmp_dir / "ast.json"
        json_in.write_text(json.dumps(doc, ensure_ascii=False), encoding="utf-8")
        run_pandoc(
            json_in,
            out_path,
            fmt_from="json",
            fmt_to=writer_format or DEFAULT_WRITER,
            extra_args=pandoc_writer_args(extra_args),
            cwd=cwd,
        )


def parse_pandoc_version(version_output: str):
    first_line = (version_output or "").partition("\n")[0]
    m = PANDOC_VERSION_RE.search(first_line)
    if not m:
        return None
    return tuple(int(part or 0) for part in m.groups())


def check_prerequisites():
    pandoc_bin = shutil.which("pandoc")
    if pandoc_bin is None:
        raise RuntimeError("mapblocks renders through pandoc, but no pandoc binary is on PATH.")

    proc = subprocess.run([pandoc_bin, "--version"], capture_output=True, text=True, check=False)
    if proc.returncode != 0:
        raise RuntimeError(f"'{pandoc_bin} --version' exited with {proc.returncode}.")

    version = parse_pandoc_version(proc.stdout)
    if version is None:
        raise RuntimeError(f"could not read a version number from '{pandoc_bin} --version'.")

    if version[:2] < MIN_PANDOC_VERSION:
        current = ".".join(str(x) for x in version)
        required = ".".join(str(x) for x in MIN_PANDOC_VERSION)
        raise RuntimeError(
            f"pandoc {current} cannot round-trip the JSON AST mapblocks edits; install pandoc {required} or newer."
        )
    return version


def default_out_path(in_path: Path, writer_format: str):
    suffix = WRITER_SUFFIXES.get(writer_format.split("+", 1)[0].split("-", 1)[0], "." + writer_format)
    out = in_path.with_suffix(suffix)
    if out == in_path:
        raise ValueError(
            f"Refusing to overwrite '{in_path.name}'; pass -o/--output to choose an output path."
        )
    return out


def print_warnings(warnings, stream=None):
    stream = stream or sys.stderr
    for warning in warnings:
        print(f"warning: {warning}", file=stream)


def convert_markdown(in_md: Path, out_path: Path, pandoc_extra_args=None, options: TransformOptions | None = None):
    writer_format = resolve_pandoc_writer_format(pandoc_extra_args)
    reader_format = resolve_pandoc_reader_format(pandoc_extra_args)
    text = in_md.read_text(encoding="utf-8")
    doc = run_pandoc_json(in_md, fmt_from=reader_format, extra_args=pandoc_reader_args(pandoc_extra_args))
    report = transform_document(doc, text, options)
    print_warnings(report.warnings)
    render_pandoc_json(doc, out_path, writer_format=writer_format, extra_args=pandoc_extra_args)
    return report


def run_conversion(input_path: Path, output_path: Path | None, pandoc_extra_args, options: TransformOptions | None = None):
    check_prerequisites()
    if not input_path.exists():
        raise ValueError(f"Input file not found: {input_path}")
    writer_format = resolve_pandoc_writer_format(pandoc_extra_args)
    out_path = output_path or default_out_path(input_path, writer_format)
    convert_markdown(input_path, out_path, pandoc_extra_args, options)
    return 0


def run_filter(stdin=None, stdout=None, options: TransformOptions | None = None):
    """Pandoc JSON filter: AST on stdin, rewritten AST on stdout."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    doc = json.load(stdin)
    options = options or TransformOptions()
    report = transform_document(doc, None, options)
    print_warnings(report.warnings)
    json.dump(doc, stdout, ensure_ascii=False)
    return 0
