"""Rewriting of markdown-it fence tokens into canonical playground nodes.

Two source forms are rewritten:

* a standalone preview fence, e.g. ```` ```scala preview ````, becomes a node
  whose files are the compiled module script and the original snippet;
* a `<Playground ...>` ... `</Playground>` group of sibling fences becomes one
  node whose files are the fences' resolved file set. The tags are HTML blocks,
  so each must sit on its own line followed by a blank line.

A rewritten token has type 'playground', tag 'Playground' and exactly two
attrs, `files` (serialized FileSet) and `preset`. Fence-specific fields are
cleared; `map` still points at the source lines the node replaces.
"""

import re
from pathlib import Path

from mdplay.core.directive import parse_directive, split_info
from mdplay.core.files import build_file_set, serialize_file_set
from mdplay.core.models import Artifact, FileEntry, FileSet, PreviewBlock
from mdplay.logging import get_logger


logger = get_logger("rewrite")

NODE_TYPE = 'playground'
NODE_TAG = 'Playground'
DEFAULT_PRESET = 'vanilla'
SCRIPT_PATH = '/main.js'

GROUP_OPEN_RE = re.compile(r'^<Playground(\s[^>]*)?(?<!/)>$')
GROUP_CLOSE_RE = re.compile(r'^</Playground\s*>$')
ATTR_RE = re.compile(r'([A-Za-z_][\w-]*)\s*=\s*"([^"]*)"')


def _is_group_open(tok) -> bool:
    return tok.type == 'html_block' and bool(GROUP_OPEN_RE.match(tok.content.strip()))


def _is_group_close(tok) -> bool:
    return tok.type == 'html_block' and bool(GROUP_CLOSE_RE.match(tok.content.strip()))


def tag_attrs(tag: str) -> dict[str, str]:
    """Parse double-quoted attributes from an opening tag."""
    return dict(ATTR_RE.findall(tag))


def is_preview_fence(tok, lang: str, preview_token: str) -> bool:
    """True for a fence in the compiled language whose annotation requests a preview."""
    if tok.type != 'fence':
        return False
    fence_lang, meta = split_info(tok.info)
    return fence_lang == lang and parse_directive(meta, preview_token).preview


def assign_sequence(tokens: list, lang: str = 'scala', preview_token: str = 'preview') -> list[tuple[int, int]]:
    """First pass: number qualifying preview fences 1..N in document order.

    Returns (token index, sequence number) pairs. Fences inside a Playground group
    are files of that group, not previews, and are not counted.
    """
    grouped = {i for start, end in group_spans(tokens) for i in range(start, end + 1)}
    numbered = []
    for i, tok in enumerate(tokens):
        if i not in grouped and is_preview_fence(tok, lang, preview_token):
            numbered.append((i, len(numbered) + 1))
    return numbered


def group_spans(tokens: list) -> list[tuple[int, int]]:
    """(open index, close index) of every terminated Playground group."""
    spans = []
    start = None
    for i, tok in enumerate(tokens):
        if _is_group_open(tok):
            start = i
        elif _is_group_close(tok) and start is not None:
            spans.append((start, i))
            start = None
    return spans


def to_playground(tok, files: FileSet, preset: str) -> None:
    """Mutate tok in place into a canonical playground node."""
    tok.type = NODE_TYPE
    tok.tag = NODE_TAG
    tok.nesting = 0
    tok.attrs = {'files': serialize_file_set(files), 'preset': preset}
    tok.info = ''
    tok.content = ''
    tok.markup = ''
    tok.meta = {}
    tok.children = None
    tok.block = True


def preview_files(block: PreviewBlock, artifact: Artifact, lang: str = 'scala') -> FileSet:
    """File set of a preview: hidden compiled script plus the visible original snippet."""
    source_name = artifact.module.source_path.name
    return {
        SCRIPT_PATH: FileEntry(code=artifact.script, hidden=True, active=False, lang='javascript'),
        f"/{source_name}": FileEntry(code=block.source_code, hidden=False, active=True, lang=lang),
    }


def rewrite_preview(tok, block: PreviewBlock, artifact: Artifact, preset: str = DEFAULT_PRESET, lang: str = 'scala') -> None:
    """Second pass: replace one numbered preview fence with its playground node."""
    to_playground(tok, preview_files(block, artifact, lang), preset)


def rewrite_playgrounds(tokens: list, base_dir: Path) -> list:
    """Collapse each Playground group into its opening token, mutated into a node.

    Enclosed tokens and the closing tag are removed from `tokens` in place.
    Returns the rewritten nodes in document order. An unterminated group is
    left untouched.
    """
    spans = group_spans(tokens)
    closed = {start for start, _ in spans}
    for i, tok in enumerate(tokens):
        if _is_group_open(tok) and i not in closed:
            logger.warning("Unterminated <Playground> group at line %s", (tok.map or [None])[0])

    nodes = []
    # Back to front so earlier indices stay valid while slices are deleted.
    for start, end in reversed(spans):
        opening = tokens[start]
        fences = [t for t in tokens[start + 1:end] if t.type == 'fence']
        preset = tag_attrs(opening.content.strip()).get('preset', DEFAULT_PRESET)
        if opening.map and tokens[end].map:
            opening.map = [opening.map[0], tokens[end].map[1]]
        to_playground(opening, build_file_set(fences, base_dir), preset)
        del tokens[start + 1:end + 1]
        nodes.append(opening)
    nodes.reverse()
    return nodes
