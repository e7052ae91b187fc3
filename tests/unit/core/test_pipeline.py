"""Unit tests for core/pipeline.py"""

import json
import logging
from pathlib import Path

import pytest

from mdplay.config import Settings
from mdplay.core.errors import ModuleError
from mdplay.core.models import ArtifactStatus
from mdplay.core.parse import parse_file
from mdplay.core.pipeline import make_layout, process_doc, run_build, run_scaffold
import mdplay.core.pipeline as pipeline


@pytest.fixture(name="settings")
def settings_fixture(tmp_path):
    return Settings(
        modules_root=str(tmp_path / "build"),
        output_dir=str(tmp_path / "dist"),
        staging_dir=str(tmp_path / "staging"),
    )


@pytest.fixture(name="sample_doc")
def sample_doc_fixture(tmp_path, sample_md):
    src = tmp_path / "docs" / "guide.md"
    src.parent.mkdir()
    src.write_text(sample_md)
    return src


def test_process_doc_rewrites_previews_and_groups(sample_doc, settings):
    """Both previews and the Playground group become nodes, in document order."""
    doc = parse_file(sample_doc)
    processed = process_doc(doc, settings, make_layout(settings))
    assert len(processed.nodes) == 3
    presets = [n.attrs["preset"] for n in processed.nodes]
    assert presets == ["vanilla", "tailwind", "vanilla"]
    assert [r.sequence_number for r in processed.manifest.previews] == [1, 2]
    assert processed.manifest.failed == []


def test_process_doc_missing_artifact_still_rewritten(sample_doc, settings):
    """Without compiled output each preview embeds a notice naming the expected path."""
    doc = parse_file(sample_doc)
    layout = make_layout(settings)
    processed = process_doc(doc, settings, layout)
    second = json.loads(processed.nodes[2].attrs["files"])
    assert layout.expected_output_path("guide", 2).as_posix() in second["/main.js"]["code"]
    assert processed.manifest.previews[1].artifact_status is ArtifactStatus.pending


def test_process_doc_embeds_compiled_output(sample_doc, settings):
    """A compiled main.js present before the pass is embedded verbatim."""
    layout = make_layout(settings)
    out = layout.expected_output_path("guide", 1)
    out.parent.mkdir(parents=True)
    out.write_text("compiledOne();")
    processed = process_doc(parse_file(sample_doc), settings, layout)
    files = json.loads(processed.nodes[0].attrs["files"])
    assert files["/main.js"]["code"] == "compiledOne();"
    assert processed.manifest.previews[0].artifact_status is ArtifactStatus.ready


def test_failed_module_leaves_block_untouched(sample_doc, settings, monkeypatch, caplog):
    """A block whose module generation fails keeps its original fence; numbering is unchanged."""
    caplog.set_level(logging.ERROR, logger="mdplay")
    real = pipeline.generate_module

    def flaky(layout, namespace, seq, source, **kwargs):
        if seq == 1:
            raise ModuleError("disk full")
        return real(layout, namespace, seq, source, **kwargs)

    monkeypatch.setattr(pipeline, "generate_module", flaky)
    doc = parse_file(sample_doc)
    processed = process_doc(doc, settings, make_layout(settings))
    assert processed.manifest.failed == [1]
    assert [r.sequence_number for r in processed.manifest.previews] == [2]
    fences = [t for t in doc.tokens if t.type == "fence" and "one" in t.content]
    assert fences and fences[0].info == "scala preview"
    assert "disk full" in caplog.text


def test_unusable_namespace_marks_previews_failed(sample_doc, settings, caplog):
    """A namespace the module layout rejects fails each preview instead of aborting the pass."""
    caplog.set_level(logging.ERROR, logger="mdplay")
    doc = parse_file(sample_doc)
    doc.namespace = "Docs"
    processed = process_doc(doc, settings, make_layout(settings))
    assert processed.manifest.failed == [1, 2]
    assert processed.manifest.previews == []
    assert len(processed.nodes) == 1
    assert "preview 1 skipped" in caplog.text


def test_run_scaffold_writes_modules(sample_doc, settings, tmp_path):
    """run_scaffold generates one module per preview without exporting anything."""
    results = run_scaffold(str(sample_doc.parent), settings)
    assert len(results) == 1
    _, modules = results[0]
    assert [m.sequence_number for m in modules] == [1, 2]
    assert all(m.source_path.exists() for m in modules)
    assert not (tmp_path / "dist").exists()


def test_run_build_exports(sample_doc, settings, tmp_path):
    """run_build writes the rewritten document and its manifest."""
    results = run_build(str(sample_doc.parent), settings)
    assert results == [(sample_doc, tmp_path / "dist" / "guide.mdx")]
    mdx = (tmp_path / "dist" / "guide.mdx").read_text()
    assert mdx.count("<Playground ") == 3
    assert "```scala\n// not a preview" in mdx
    manifest = json.loads((tmp_path / "staging" / "guide.guide.json").read_text())
    assert [p["sequence_number"] for p in manifest["previews"]] == [1, 2]


def test_run_build_parallel_matches_serial(tmp_path, sample_md):
    """Processing documents concurrently gives the same outputs as serially."""
    root = tmp_path / "docs"
    for name in ("alpha", "beta", "gamma"):
        (root / name).mkdir(parents=True)
        (root / name / "page.md").write_text(sample_md)

    outputs = {}
    for workers in (1, 3):
        base = tmp_path / f"w{workers}"
        settings = Settings(
            modules_root=str(base / "build"), output_dir=str(base / "dist"),
            staging_dir=str(base / "staging"), workers=workers,
        )
        run_build(str(root), settings)
        outputs[workers] = {
            p.relative_to(base / "dist"): p.read_text().replace(str(base), "")
            for p in (base / "dist").rglob("*.mdx")
        }
    assert outputs[1] == outputs[3]
    assert len(outputs[1]) == 3


def test_shared_namespace_warning(tmp_path, sample_md, settings, caplog):
    """Two documents with previews in one folder share a namespace and trigger a warning."""
    caplog.set_level(logging.WARNING, logger="mdplay")
    root = tmp_path / "docs"
    (root / "react").mkdir(parents=True)
    (root / "react" / "a.md").write_text(sample_md)
    (root / "react" / "b.md").write_text(sample_md)
    run_scaffold(str(root), settings)
    assert "shared by" in caplog.text


def test_run_build_parse_error(tmp_path, settings):
    """Invalid frontmatter surfaces as RuntimeError naming the file."""
    (tmp_path / "bad.md").write_text("---\nkey: [unclosed\n---\nbody\n")
    with pytest.raises(RuntimeError, match="bad.md"):
        run_build(str(tmp_path / "bad.md"), settings)
