"""CLI entrypoint: Typer app definition and command registration"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from mdplay.cli.commands import build_cmd, presets_cmd, render_cmd, scaffold_cmd
from mdplay.logging import configure_logging


app = typer.Typer(name="mdplay", no_args_is_help=True, help="Markdown snippet playgrounds and generated build modules")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only log warnings and errors")] = False,
    log_file: Annotated[Optional[Path], typer.Option("--log-file", help="Also write logs to this file")] = None,
    ):
    """Configure logging for every command."""
    configure_logging(verbose=verbose, quiet=quiet, log_file=log_file)


app.command(name="build")(build_cmd)
app.command(name="scaffold")(scaffold_cmd)
app.command(name="render")(render_cmd)
app.command(name="presets")(presets_cmd)
