"""Integration tests for the scaffold -> external build -> build pipeline.

The canonical document below is processed twice: once before the external
compiler has run (previews embed a diagnostic notice) and once after a fake
compiler has dropped main.js files in place (previews embed the compiled
script). Read top-to-bottom as a reference for what each stage produces.

Canonical document (docs/guide/intro.md, namespace "guide")
-----------------------------------------------------------
    ---
    title: Intro
    ---

    # Intro

    ```scala preview
    document.body.textContent = "first"
    ```

    <Playground preset="react">

    ```jsx index.js active
    createRoot(document.getElementById("root")).render(<App />)
    ```

    ```css ref=shared/styles.css
    ```

    </Playground>

    ```scala preview
    document.body.textContent = "second"
    ```

Module layout after scaffold (modules_root = build/):
    build/examples/autogen/package.mill
    build/examples/autogen/guide/package.mill
    build/examples/autogen/guide/example1/{package.mill, src/Main.scala}
    build/examples/autogen/guide/example2/{package.mill, src/Main.scala}
"""

import json

import pytest

from mdplay.config import Settings
from mdplay.core.pipeline import make_layout, run_build, run_scaffold


CANONICAL_MD = """\
---
title: Intro
---

# Intro

```scala preview
document.body.textContent = "first"
```

<Playground preset="react">

```jsx index.js active
createRoot(document.getElementById("root")).render(<App />)
```

```css ref=shared/styles.css
```

</Playground>

```scala preview
document.body.textContent = "second"
```
"""


class FakeTranspiler:
    def __call__(self, source: str) -> str:
        return "/* esm */" + source.replace("<App />", "jsx(App, {})")


@pytest.fixture(name="settings")
def settings_fixture(tmp_path):
    return Settings(
        modules_root=str(tmp_path / "build"),
        output_dir=str(tmp_path / "dist"),
        staging_dir=str(tmp_path / "staging"),
    )


@pytest.fixture(name="docs_root")
def docs_root_fixture(tmp_path):
    root = tmp_path / "docs"
    (root / "guide" / "shared").mkdir(parents=True)
    (root / "guide" / "intro.md").write_text(CANONICAL_MD)
    (root / "guide" / "shared" / "styles.css").write_text("body { color: teal; }\n")
    return root


def _fake_compile(settings: Settings, count: int) -> None:
    layout = make_layout(settings)
    for seq in range(1, count + 1):
        out = layout.expected_output_path("guide", seq)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(f"console.log('compiled {seq}');")


def test_scaffold_layout(docs_root, settings, tmp_path):
    """scaffold writes shared package descriptors and one module per preview."""
    run_scaffold(str(docs_root), settings)
    autogen = tmp_path / "build" / "examples" / "autogen"
    assert (autogen / "package.mill").exists()
    assert (autogen / "guide" / "package.mill").exists()
    for seq, word in ((1, "first"), (2, "second")):
        source = (autogen / "guide" / f"example{seq}" / "src" / "Main.scala").read_text()
        assert f'"{word}"' in source
        assert (autogen / "guide" / f"example{seq}" / "package.mill").exists()


def test_build_before_compile_embeds_notices(docs_root, settings, tmp_path):
    """Before the external build, previews are rewritten with diagnostic scripts."""
    run_build(str(docs_root), settings)
    manifest = json.loads((tmp_path / "staging" / "guide.intro.json").read_text())
    assert [p["artifact_status"] for p in manifest["previews"]] == ["pending", "pending"]
    mdx = (tmp_path / "dist" / "guide" / "intro.mdx").read_text()
    assert mdx.startswith("---\ntitle: Intro\n---\n")
    assert mdx.count("<Playground ") == 3
    assert "Compiled output not found" in mdx


def test_build_after_compile_embeds_scripts(docs_root, settings, tmp_path):
    """After the external build, compiled scripts are embedded and sandboxes assembled."""
    run_scaffold(str(docs_root), settings)
    _fake_compile(settings, 2)
    run_build(str(docs_root), settings, sandbox=True, transpiler=FakeTranspiler())

    manifest = json.loads((tmp_path / "staging" / "guide.intro.json").read_text())
    assert [p["artifact_status"] for p in manifest["previews"]] == ["ready", "ready"]

    sandbox_dir = tmp_path / "dist" / "guide" / "intro"
    first, group, second = (sandbox_dir / f"playground-{n}.html" for n in (1, 2, 3))
    assert "<script type=\"module\">console.log('compiled 1');</script>" in first.read_text()
    assert "compiled 2" in second.read_text()

    react = group.read_text()
    assert "/* esm */" in react
    assert "jsx(App, {})" in react
    assert '<script type="importmap">' in react
    assert '<div id="root"></div>' in react
    assert "body { color: teal; }" in react


def test_rebuild_is_idempotent(docs_root, settings, tmp_path):
    """A second identical build produces identical exports."""
    run_build(str(docs_root), settings)
    first = (tmp_path / "dist" / "guide" / "intro.mdx").read_text()
    run_build(str(docs_root), settings)
    assert (tmp_path / "dist" / "guide" / "intro.mdx").read_text() == first
