"""Integration tests for the build, clean and rebuild commands"""

import pytest
from typer.testing import CliRunner

from mdsite.cli.cli import app


@pytest.fixture(name="runner")
def runner_fixture(site_dir, monkeypatch):
    """CliRunner executing from inside the sample site."""
    monkeypatch.chdir(site_dir)
    for name in ("OUTPUT_DIR", "STRICT_LINKS", "CONTENT_DIR", "FAIL_ON_ERRORS"):
        monkeypatch.delenv(f"MDSITE_{name}", raising=False)
    return CliRunner()


def test_build_cmd_no_flags(runner, site_dir):
    """build with no flags writes the site to _site and exits 0."""
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert "Build complete" in result.output
    assert (site_dir / "_site" / "index.html").exists()
    assert (site_dir / "_site" / "posts" / "2020-12-07-x.html").exists()


def test_build_cmd_out_dir(runner, site_dir, tmp_path):
    """--out-dir redirects the output."""
    result = runner.invoke(app, ["build", "--out-dir", str(tmp_path / "public")])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "public" / "archive.html").exists()


def test_build_cmd_reports_failures(runner, site_dir):
    """Each failed document is printed with its path and kind, and the exit code is 1."""
    (site_dir / "posts" / "bad.md").write_text("---\ntitle: [unclosed\n---\n")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "posts/bad.md: MalformedMetadataError" in result.output
    assert (site_dir / "_site" / "posts" / "2020-12-07-x.html").exists()


def test_build_cmd_failures_tolerated_when_configured(runner, site_dir, monkeypatch):
    """fail_on_errors=false keeps the exit code at 0 despite failures."""
    (site_dir / "posts" / "bad.md").write_text("---\ntitle: [unclosed\n---\n")
    monkeypatch.setenv("MDSITE_FAIL_ON_ERRORS", "false")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert "MalformedMetadataError" in result.output


def test_build_cmd_lenient(runner, site_dir):
    """--lenient keeps broken links and succeeds."""
    (site_dir / "about.md").write_text("---\ntitle: About\n---\n[x](missing.md)\n")
    assert runner.invoke(app, ["build"]).exit_code == 1
    result = runner.invoke(app, ["build", "--lenient"])
    assert result.exit_code == 0, result.output
    assert (site_dir / "_site" / "about.html").exists()


def test_build_cmd_fatal_error(runner, site_dir):
    """A structural failure prints an error and exits 1 without output."""
    (site_dir / "templates" / "default.html").unlink()
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "MissingTemplateError" in result.output
    assert not (site_dir / "_site").exists()


def test_build_cmd_invalid_config(runner, site_dir):
    """An invalid mdsite.yaml is reported as a configuration error."""
    (site_dir / "mdsite.yaml").write_text("workers: [\n")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "Invalid mdsite.yaml" in result.output


def test_clean_and_rebuild(runner, site_dir):
    """clean removes the output; rebuild recreates it."""
    runner.invoke(app, ["build"])
    result = runner.invoke(app, ["clean"])
    assert result.exit_code == 0, result.output
    assert not (site_dir / "_site").exists()
    result = runner.invoke(app, ["rebuild"])
    assert result.exit_code == 0, result.output
    assert (site_dir / "_site" / "index.html").exists()
