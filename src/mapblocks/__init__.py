from .blocks import apply_block_edits, collect_map_block_edits, rewrite_map_blocks
from .converter import TransformOptions, TransformReport, transform_document
from .render import ViewTransform
from .shapes import coerce_number, normalize_image_path, parse_markers, parse_tile_list
from .spec import MapSpec, build_map_spec, parse_map_block
from .version import __version__
from .wordcount import attach_word_count, count_words, render_word_count

__all__ = [
    "MapSpec",
    "TransformOptions",
    "TransformReport",
    "ViewTransform",
    "__version__",
    "apply_block_edits",
    "attach_word_count",
    "build_map_spec",
    "coerce_number",
    "collect_map_block_edits",
    "count_words",
    "normalize_image_path",
    "parse_map_block",
    "parse_markers",
    "parse_tile_list",
    "render_word_count",
    "rewrite_map_blocks",
    "transform_document",
]
