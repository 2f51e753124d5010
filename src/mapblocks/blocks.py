from __future__ import annotations

from dataclasses import dataclass, field

from .render import ViewTransform, render_map_nodes
from .shapes import DEFAULT_ASSET_PREFIX
from .spec import parse_map_block

MAP_BLOCK_LANG = "leaflet"
# The map block plus the sibling right after it, which holds the script.
REPLACED_SPAN = 2


@dataclass
class BlockEdit:
    siblings: list
    index: int
    span: int
    replacement: list = field(default_factory=list)


def code_block_lang(node) -> str:
    if not isinstance(node, dict) or node.get("t") != "CodeBlock":
        return ""
    c = node.get("c")
    if not (isinstance(c, list) and len(c) == 2 and isinstance(c[0], list) and len(c[0]) >= 2):
        return ""
    classes = c[0][1] if isinstance(c[0][1], list) else []
    return str(classes[0]) if classes else ""


def code_block_text(node) -> str:
    c = node.get("c")
    return str(c[1] or "") if isinstance(c, list) and len(c) == 2 else ""


def is_map_block(node, lang: str = MAP_BLOCK_LANG) -> bool:
    declared = code_block_lang(node)
    return bool(declared) and declared.lower() == lang.lower()


def collect_map_block_edits(
    doc,
    lang: str = MAP_BLOCK_LANG,
    asset_prefix: str = DEFAULT_ASSET_PREFIX,
    view: ViewTransform | None = None,
    warnings: list[str] | None = None,
) -> list[BlockEdit]:
    edits: list[BlockEdit] = []

    def walk(seq):
        skip_next = False
        for index, item in enumerate(seq):
            if skip_next:
                skip_next = False
                continue
            if isinstance(item, list):
                walk(item)
                continue
            if not isinstance(item, dict):
                continue
            if is_map_block(item, lang):
                block_warnings: list[str] = []
                spec = parse_map_block(code_block_text(item), asset_prefix, block_warnings)
                if warnings is not None:
                    label = spec.id or f"#{len(edits) + 1}"
                    warnings.extend(f"map block {label}: {msg}" for msg in block_warnings)
                span = min(REPLACED_SPAN, len(seq) - index)
                edits.append(BlockEdit(seq, index, span, render_map_nodes(spec, view)))
                skip_next = span > 1
                continue
            c = item.get("c")
            if isinstance(c, list):
                walk(c)

    walk(doc.get("blocks", []) if isinstance(doc, dict) else [])
    return edits


def apply_block_edits(edits: list[BlockEdit]) -> int:
    # Later edits first so earlier indexes in a shared sibling list stay valid.
    for edit in reversed(edits):
        edit.siblings[edit.index : edit.index + edit.span] = edit.replacement
    return len(edits)


def rewrite_map_blocks(
    doc,
    lang: str = MAP_BLOCK_LANG,
    asset_prefix: str = DEFAULT_ASSET_PREFIX,
    view: ViewTransform | None = None,
    warnings: list[str] | None = None,
) -> int:
    edits = collect_map_block_edits(doc, lang=lang, asset_prefix=asset_prefix, view=view, warnings=warnings)
    return apply_block_edits(edits)
