"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdsite.cli.commands import build_cmd, clean_cmd, rebuild_cmd


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Static site builder for Markdown blogs")

app.command(name="build")(build_cmd)
app.command(name="clean")(clean_cmd)
app.command(name="rebuild")(rebuild_cmd)
