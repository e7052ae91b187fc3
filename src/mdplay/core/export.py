"""Export: rewritten MDX/MD, per-document module manifests, and assembled sandbox documents"""

import json
import re
from pathlib import Path
from typing import Optional

from mdplay.core.files import parse_file_set
from mdplay.core.models import DocumentManifest, ProcessedDoc
from mdplay.core.sandbox import PlaygroundBuilder, Transpiler


# Leading blockquote and list markers of a line, with their indentation.
_PREFIX_RE = re.compile(r'^(?:[ \t]*(?:>|[-+*](?=[ \t])|\d{1,9}[.)](?=[ \t])))*[ \t]*')


def render_node(tok) -> str:
    """Render a playground node as an MDX element; files is passed as a string expression."""
    preset = tok.attrs.get('preset', 'vanilla')
    files = json.dumps(tok.attrs.get('files', '{}'), ensure_ascii=False)
    return f'<Playground preset="{preset}" files={{{files}}} />'


def build_body(processed: ProcessedDoc) -> str:
    """Markdown body with each node's source lines replaced by its rendered element.

    Lines outside rewritten nodes are copied unchanged. The element keeps the
    container prefix of the first line it replaces, so a node inside a list item
    or blockquote stays inside it.
    """
    lines = processed.doc.markdown.splitlines(keepends=True)
    replaced = {}
    for tok in processed.nodes:
        if tok.map:
            replaced[tok.map[0]] = (tok.map[1], render_node(tok) + "\n")

    parts = []
    i = 0
    while i < len(lines):
        if i in replaced:
            end, text = replaced[i]
            parts.append(_PREFIX_RE.match(lines[i]).group(0) + text)
            i = max(end, i + 1)
        else:
            parts.append(lines[i])
            i += 1
    return "".join(parts)


def build_mdx(processed: ProcessedDoc) -> str:
    """Return the rewritten body with the document's original frontmatter header prepended."""
    doc = processed.doc
    header = doc.raw_markdown[:len(doc.raw_markdown) - len(doc.markdown)]
    return header + build_body(processed)


def _dest_dir(processed: ProcessedDoc, output_dir: Path) -> Path:
    return output_dir / processed.doc.rel_path.parent


def write_doc(processed: ProcessedDoc, output_dir: Path, fmt: str = 'mdx') -> Path:
    """Write the rewritten document, mirroring the source directory structure.

      output_dir / rel_path.parent / slug.{fmt}
    """
    dest_dir = _dest_dir(processed, output_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    out_path = dest_dir / f"{processed.doc.slug}.{fmt}"
    out_path.write_text(build_mdx(processed), encoding='utf-8')
    return out_path


def write_manifest(manifest: DocumentManifest, staging_dir: Path) -> Path:
    """Write a document's module manifest as JSON to staging_dir/<namespace>.<slug>.json."""
    staging_dir.mkdir(parents=True, exist_ok=True)
    out_file = staging_dir / f"{manifest.namespace}.{manifest.slug}.json"
    out_file.write_text(manifest.model_dump_json(indent=2), encoding='utf-8')
    return out_file


def write_sandboxes(
    processed: ProcessedDoc,
    output_dir: Path,
    transpiler: Optional[Transpiler] = None,
    ) -> list[Path]:
    """Assemble and write one sandbox document per node: output_dir/.../<slug>/playground-<n>.html.

    TranspileError and UnknownPresetError propagate; no partial document is written.
    """
    dest_dir = _dest_dir(processed, output_dir) / processed.doc.slug
    written = []
    for n, tok in enumerate(processed.nodes, start=1):
        builder = PlaygroundBuilder(tok.attrs['preset'], transpiler)
        html = builder.build(parse_file_set(tok.attrs['files']))
        dest_dir.mkdir(parents=True, exist_ok=True)
        path = dest_dir / f"playground-{n}.html"
        path.write_text(html, encoding='utf-8')
        written.append(path)
    return written
