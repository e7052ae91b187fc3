"""File discovery, frontmatter extraction, markdown-it tokenization, and namespace derivation"""

import re
from pathlib import Path
from typing import Any, Optional

import yaml
from markdown_it import MarkdownIt

from mdplay.core.models import ParsedDoc
from mdplay.core.utils.slug import identifier, slugify


FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*\n', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx'}
DEFAULT_NAMESPACE = 'default'


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def _strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with YAML header removed."""
    m = FRONTMATTER_RE.match(text)
    if m:
        try:
            fm = yaml.safe_load(m.group(1)) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[m.end():]
    return {}, text


def derive_namespace(rel_path: Path, default: str = DEFAULT_NAMESPACE) -> str:
    """Namespace of a document: its grouping folder, else its base name, else default."""
    for candidate in (rel_path.parent.name, rel_path.stem):
        ns = identifier(candidate)
        if ns:
            return ns
    return default


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.mdx files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)


def parse_file(
    path: Path,
    root: Optional[Path] = None,
    parser_config: str = 'gfm-like',
    default_namespace: str = DEFAULT_NAMESPACE,
    ) -> ParsedDoc:
    """Parse a single markdown file into a ParsedDoc with token stream.

    `root` is the ingested directory; the path relative to it decides the namespace.
    When `root` is the file itself, its parent folder still counts as the grouping
    folder, so a file gets the same namespace as when its directory is ingested.
    """
    raw = path.read_text(encoding='utf-8')
    frontmatter, body = _strip_frontmatter(raw)
    tokens = _make_parser(parser_config).parse(body)
    if root is not None and root.is_dir():
        rel_path = path.relative_to(root)
    elif root is not None:
        rel_path = Path(path.parent.name) / path.name
    else:
        rel_path = Path(path.name)
    return ParsedDoc(
        path=path,
        rel_path=rel_path,
        slug=frontmatter.get('slug') or slugify(path.stem) or default_namespace,
        namespace=derive_namespace(rel_path, default_namespace),
        raw_markdown=raw,
        markdown=body,
        frontmatter=frontmatter,
        tokens=tokens,
    )


def parse_dir(path: Path, parser_config: str = 'gfm-like', default_namespace: str = DEFAULT_NAMESPACE) -> list[ParsedDoc]:
    """Parse all .md/.mdx files under path (file or directory)."""
    return [parse_file(p, path, parser_config, default_namespace) for p in discover_files(path)]
