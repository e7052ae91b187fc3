"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from mdplay.config import Settings, load_config
from mdplay.core.errors import MdplayError
from mdplay.core.files import parse_file_set
from mdplay.core.pipeline import run_build, run_scaffold
from mdplay.core.sandbox import PRESETS, EsbuildTranspiler, PlaygroundBuilder


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def scaffold_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to scan for previews")],
    modules_root: Annotated[Optional[str], typer.Option("--modules-root", help="Build project root for generated modules")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Documents processed concurrently")] = None,
    ):
    """Write a build module for every preview snippet (run before the external build)."""
    settings = _settings(overrides={"modules_root": modules_root, "workers": workers})
    try:
        results = run_scaffold(path, settings)
    except RuntimeError as e:
        _fail(str(e))
    total = 0
    for src, modules in results:
        for module in modules:
            typer.echo(f"  {src} -> {module.module_dir}")
        total += len(modules)
    typer.echo(f"Scaffolded {total} module(s) from {len(results)} document(s)")


def build_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to process")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    staging: Annotated[Optional[str], typer.Option("--staging-dir", help="Manifest directory")] = None,
    modules_root: Annotated[Optional[str], typer.Option("--modules-root", help="Build project root for generated modules")] = None,
    preset: Annotated[Optional[str], typer.Option("--preview-preset", help="Preset for rewritten previews")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Documents processed concurrently")] = None,
    sandbox: Annotated[bool, typer.Option("--sandbox", help="Also write an assembled HTML document per playground")] = False,
    ):
    """Run the full pass: scaffold -> retrieve artifacts -> rewrite -> export."""
    settings = _settings(overrides={
        "output_dir": out, "staging_dir": staging, "modules_root": modules_root,
        "preview_preset": preset, "workers": workers,
    })
    if settings.preview_preset not in PRESETS:
        _fail(f"Unknown preset: {settings.preview_preset}")
    transpiler = EsbuildTranspiler(settings.transpiler_cmd)
    try:
        results = run_build(path, settings, sandbox=sandbox, transpiler=transpiler)
    except RuntimeError as e:
        _fail(str(e))
    except MdplayError as e:
        _fail("Sandbox assembly failed", e)
    for src, out_path in results:
        typer.echo(f"  {src} -> {out_path}")
    typer.echo(f"Built {len(results)} document(s) to {settings.output_dir}/")


def render_cmd(
    files: Annotated[Path, typer.Argument(help="JSON file set ('/name.ext' -> {code, hidden, active, lang})")],
    preset: Annotated[str, typer.Option("--preset", help="Preset name")] = "vanilla",
    head: Annotated[Optional[list[str]], typer.Option("--head", help="Extra head fragment (repeatable)")] = None,
    html_attr: Annotated[str, typer.Option("--html-attr", help="Attributes for the <html> tag")] = "",
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Write to file instead of stdout")] = None,
    ):
    """Assemble one sandbox document from a serialized file set."""
    settings = _settings()
    try:
        file_set = parse_file_set(files.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        _fail(f"Cannot read file set {files}", e)
    try:
        builder = PlaygroundBuilder(preset, EsbuildTranspiler(settings.transpiler_cmd))
        document = builder.build(file_set, head=head, html_attr=html_attr)
    except MdplayError as e:
        _fail("Sandbox assembly failed", e)
    if out is None:
        typer.echo(document, nl=False)
    else:
        out.write_text(document, encoding="utf-8")
        typer.echo(f"Wrote {out}")


def presets_cmd():
    """List the available playground presets."""
    for key, preset in PRESETS.items():
        typer.echo(f"{key:<18} {preset.name} - {preset.description}")
