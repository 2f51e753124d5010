from __future__ import annotations

from pathlib import Path

from . import converter


def build_options(lang=None, asset_prefix=None, word_count=True) -> converter.TransformOptions:
    defaults = converter.TransformOptions()
    return converter.TransformOptions(
        lang=lang or defaults.lang,
        asset_prefix=defaults.asset_prefix if asset_prefix is None else asset_prefix,
        view=defaults.view,
        word_count=word_count,
    )


def run_render(
    input_path: Path,
    output_path: Path | None = None,
    pandoc_extra_args=None,
    options: converter.TransformOptions | None = None,
):
    return converter.run_conversion(input_path, output_path, list(pandoc_extra_args or []), options)


def run_filter(options: converter.TransformOptions | None = None, stdin=None, stdout=None):
    return converter.run_filter(stdin=stdin, stdout=stdout, options=options)
