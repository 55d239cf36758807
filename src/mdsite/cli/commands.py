"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.models import BuildReport
from mdsite.core.pipeline import run_build
from mdsite.core.write import clean_output
from mdsite.errors import BuildError


ContentOpt   = Annotated[Optional[str], typer.Option("--content-dir", help="Content root directory")]
OutOpt       = Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")]
TemplatesOpt = Annotated[Optional[str], typer.Option("--templates-dir", help="Template directory, relative to the content root")]
StrictOpt    = Annotated[Optional[bool], typer.Option("--strict/--lenient", help="Fail pages with broken internal links, or only warn")]
WorkersOpt   = Annotated[Optional[int], typer.Option("--workers", help="Documents built in parallel")]
TimeoutOpt   = Annotated[Optional[float], typer.Option("--timeout", help="Seconds allowed for building documents")]
VerboseOpt   = Annotated[bool, typer.Option("--verbose", "-v", help="Log every file")]


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


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


def _echo_report(report: BuildReport) -> None:
    """Print one line per failed path and a summary line."""
    for failure in report.failures:
        typer.echo(f"{failure.path}: {failure.kind}: {failure.message}", err=True)
    typer.echo(
        f"Build complete - "
        f"{len(report.written)} written, "
        f"{len(report.failures)} failed -> {report.output_dir}/"
    )


def _build(settings: Settings) -> None:
    try:
        report = run_build(settings)
    except BuildError as e:
        _fail(f"{e.kind}: {e.path}", e.message)
    _echo_report(report)
    if report.failures and settings.fail_on_errors:
        raise typer.Exit(1)


def build_cmd(
    content: ContentOpt = None,
    out: OutOpt = None,
    templates: TemplatesOpt = None,
    strict: StrictOpt = None,
    workers: WorkersOpt = None,
    timeout: TimeoutOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Build the site: load -> render -> template -> archive/index -> rewrite links -> write."""
    settings = _settings(overrides={
        "content_dir": content, "output_dir": out, "templates_dir": templates,
        "strict_links": strict, "workers": workers, "timeout": timeout,
    })
    _configure_logging(settings, verbose)
    _build(settings)


def clean_cmd(
    out: OutOpt = None,
    ):
    """Remove the output directory."""
    settings = _settings(overrides={"output_dir": out})
    try:
        removed = clean_output(settings.output_path, Path.cwd())
    except ValueError as e:
        _fail(str(e))
    typer.echo(f"Removed {settings.output_dir}/" if removed else f"Nothing to clean at {settings.output_dir}/")


def rebuild_cmd(
    content: ContentOpt = None,
    out: OutOpt = None,
    templates: TemplatesOpt = None,
    strict: StrictOpt = None,
    workers: WorkersOpt = None,
    timeout: TimeoutOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Clean the output directory, then build from scratch."""
    settings = _settings(overrides={
        "content_dir": content, "output_dir": out, "templates_dir": templates,
        "strict_links": strict, "workers": workers, "timeout": timeout,
    })
    _configure_logging(settings, verbose)
    try:
        clean_output(settings.output_path, Path.cwd())
    except ValueError as e:
        _fail(str(e))
    _build(settings)
