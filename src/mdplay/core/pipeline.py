"""Pipeline step functions: scaffold modules, rewrite documents, and export orchestration"""

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from mdplay.config import Settings
from mdplay.core.artifacts import retrieve_artifact
from mdplay.core.errors import ModuleError
from mdplay.core.export import write_doc, write_manifest, write_sandboxes
from mdplay.core.models import DocumentManifest, ModuleRecord, ParsedDoc, ProcessedDoc
from mdplay.core.modules import ModuleLayout, generate_module
from mdplay.core.parse import discover_files, parse_file
from mdplay.core.rewrite import NODE_TYPE, assign_sequence, rewrite_playgrounds, rewrite_preview
from mdplay.core.sandbox import Transpiler
from mdplay.logging import get_logger


logger = get_logger("pipeline")


def make_layout(settings: Settings) -> ModuleLayout:
    return ModuleLayout(
        root=Path(settings.modules_root),
        category=settings.root_category,
        out_dir=settings.build_out_dir,
        build_stage=settings.build_stage,
    )


def _generate(doc: ParsedDoc, settings: Settings, layout: ModuleLayout):
    """Generate a module per numbered preview fence, yielding (token, seq, block, module).

    A failed generation is logged and yields block and module as None.
    """
    for index, seq in assign_sequence(doc.tokens, settings.compiler_lang, settings.preview_token):
        tok = doc.tokens[index]
        try:
            block, module = generate_module(
                layout, doc.namespace, seq, tok.content.strip(),
                hash_length=settings.hash_length,
                scala_version=settings.scala_version,
                scalajs_version=settings.scalajs_version,
            )
        except ModuleError as e:
            logger.error("%s: preview %d skipped: %s", doc.path, seq, e)
            yield tok, seq, None, None
            continue
        yield tok, seq, block, module


def scaffold_doc(doc: ParsedDoc, settings: Settings, layout: ModuleLayout) -> list:
    """Write modules for a document's previews without touching its tokens. Returns generated Modules."""
    return [module for _, _, _, module in _generate(doc, settings, layout) if module is not None]


def process_doc(doc: ParsedDoc, settings: Settings, layout: ModuleLayout) -> ProcessedDoc:
    """Generate modules, retrieve artifacts, and rewrite the document's tokens in place.

    Sequence numbers are fixed by a first pass over the whole document; a block
    whose module generation fails keeps its original token.
    """
    manifest = DocumentManifest(slug=doc.slug, path=str(doc.rel_path), namespace=doc.namespace)
    prepared = []
    for tok, seq, block, module in _generate(doc, settings, layout):
        if block is None:
            manifest.failed.append(seq)
            continue
        artifact = retrieve_artifact(layout, doc.namespace, seq)
        prepared.append((tok, block, artifact))
        manifest.previews.append(ModuleRecord(
            sequence_number=seq,
            content_hash=block.content_hash,
            module_dir=str(module.module_dir),
            source_path=str(module.source_path),
            expected_output_path=str(module.expected_output_path),
            artifact_status=artifact.status,
        ))

    for tok, block, artifact in prepared:
        rewrite_preview(tok, block, artifact, settings.preview_preset, settings.compiler_lang)
    rewrite_playgrounds(doc.tokens, doc.path.parent)

    nodes = [t for t in doc.tokens if t.type == NODE_TYPE]
    logger.info(
        "%s: %d playground(s), %d module(s), %d failed",
        doc.path, len(nodes), len(manifest.previews), len(manifest.failed),
    )
    return ProcessedDoc(doc=doc, manifest=manifest, nodes=nodes)


def _warn_shared_namespaces(docs: list[ParsedDoc], settings: Settings) -> None:
    """Log documents with previews whose namespaces collide."""
    by_namespace = defaultdict(list)
    for doc in docs:
        if assign_sequence(doc.tokens, settings.compiler_lang, settings.preview_token):
            by_namespace[doc.namespace].append(doc)
    for namespace, group in by_namespace.items():
        if len(group) > 1:
            logger.warning(
                "Namespace %r is shared by %s; their modules overwrite each other",
                namespace, ", ".join(str(d.rel_path) for d in group),
            )


def _map_docs(fn: Callable, docs: list, workers: int) -> list:
    """Apply fn to each document, concurrently when workers > 1; results keep input order."""
    if workers <= 1 or len(docs) <= 1:
        return [fn(doc) for doc in docs]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(fn, docs))


def _parse_all(path: str, settings: Settings) -> list[ParsedDoc]:
    root = Path(path)
    docs = []
    for p in discover_files(root):
        try:
            docs.append(parse_file(p, root, settings.parser_config, settings.default_namespace))
        except (OSError, ValueError) as e:
            raise RuntimeError(f"Failed to parse {p}: {e}") from e
    return docs


def run_scaffold(path: str, settings: Settings) -> list[tuple[Path, list]]:
    """Phase 1: write modules for every preview under path. Returns (source_path, modules) pairs."""
    layout = make_layout(settings)
    docs = _parse_all(path, settings)
    _warn_shared_namespaces(docs, settings)
    results = _map_docs(lambda d: scaffold_doc(d, settings, layout), docs, settings.workers)
    return [(doc.path, modules) for doc, modules in zip(docs, results)]


def run_build(
    path: str,
    settings: Settings,
    sandbox: bool = False,
    transpiler: Optional[Transpiler] = None,
    ) -> list[tuple[Path, Path]]:
    """Full pass: scaffold, retrieve artifacts, rewrite, and export each document.

    Returns (source_path, exported_path) pairs. With sandbox=True an assembled
    HTML document is also written per playground node.
    """
    layout = make_layout(settings)
    docs = _parse_all(path, settings)
    _warn_shared_namespaces(docs, settings)
    output_dir = Path(settings.output_dir)
    staging_dir = Path(settings.staging_dir)

    def _one(doc: ParsedDoc) -> tuple[Path, Path]:
        processed = process_doc(doc, settings, layout)
        out_path = write_doc(processed, output_dir, settings.output_format)
        write_manifest(processed.manifest, staging_dir)
        if sandbox:
            write_sandboxes(processed, output_dir, transpiler)
        return doc.path, out_path

    return _map_docs(_one, docs, settings.workers)
