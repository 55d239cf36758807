"""Output writing: pages, assets, atomic publish and output cleanup"""

import logging
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from mdsite.core.models import Asset, BuildReport, Page
from mdsite.errors import OutputWriteError


logger = logging.getLogger(__name__)

CSS_COMMENT_RE = re.compile(r'/\*.*?\*/', re.DOTALL)
CSS_SPACE_RE = re.compile(r'\s+')
CSS_PUNCT_RE = re.compile(r'\s*([{};:,>])\s*')


def compress_css(text: str) -> str:
    """Strip comments, collapse whitespace and drop redundant semicolons."""
    text = CSS_COMMENT_RE.sub('', text)
    text = CSS_SPACE_RE.sub(' ', text)
    text = CSS_PUNCT_RE.sub(r'\1', text)
    return text.replace(';}', '}').strip()


def write_page(page: Page, output_dir: Path) -> Path:
    """Write one page's HTML under output_dir, creating parent directories."""
    dest = output_dir / page.output_path
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(page.html, encoding='utf-8')
    except OSError as e:
        raise OutputWriteError(page.output_path, str(e)) from e
    return dest


def _read_stylesheet(asset: Asset) -> str | None:
    """Stylesheet text, or None for other assets and stylesheets that are not UTF-8."""
    if asset.source.suffix.lower() != '.css':
        return None
    try:
        return asset.source.read_text(encoding='utf-8')
    except UnicodeDecodeError:
        logger.warning("%s is not valid UTF-8, copying uncompressed", asset.output_path)
        return None


def copy_asset(asset: Asset, output_dir: Path, compress: bool = False) -> Path:
    """Copy an asset byte-for-byte (stylesheets are compressed when compress is set)."""
    dest = output_dir / asset.output_path
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        css = _read_stylesheet(asset) if compress else None
        if css is not None:
            dest.write_text(compress_css(css), encoding='utf-8')
        else:
            shutil.copyfile(asset.source, dest)
    except OSError as e:
        raise OutputWriteError(asset.output_path, str(e)) from e
    return dest


def write_site(
    pages: Iterable[Page],
    assets: Iterable[Asset],
    output_dir: Path,
    report: BuildReport,
    compress: bool = False,
    ) -> BuildReport:
    """Write every page and asset; each failed file is recorded and the rest still written."""
    for page in sorted(pages, key=lambda p: p.output_path):
        try:
            write_page(page, output_dir)
        except OutputWriteError as e:
            report.record(e)
            continue
        report.written.append(page.output_path)
        logger.debug("Wrote %s", page.output_path)
    for asset in sorted(assets, key=lambda a: a.output_path):
        try:
            copy_asset(asset, output_dir, compress)
        except OutputWriteError as e:
            report.record(e)
            continue
        report.written.append(asset.output_path)
        logger.debug("Copied %s", asset.output_path)
    return report


@contextmanager
def staged_output(output_dir: Path, atomic: bool = True) -> Iterator[Path]:
    """Yield the directory to write into; when atomic, swap it into place on success.

    The staging directory is a sibling of output_dir so the swap is a pair of
    renames. If the body raises, the staging directory is removed and
    output_dir is left untouched.
    """
    if not atomic:
        output_dir.mkdir(parents=True, exist_ok=True)
        yield output_dir
        return
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f'.{output_dir.name}-', dir=output_dir.parent))
    staging.chmod(0o755)
    try:
        yield staging
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    backup = None
    if output_dir.exists():
        backup = output_dir.with_name(f'{staging.name}-old')
        output_dir.rename(backup)
    staging.rename(output_dir)
    if backup is not None:
        shutil.rmtree(backup, ignore_errors=True)
    logger.info("Published %s", output_dir)


def clean_output(output_dir: Path, project_root: Path) -> bool:
    """Remove output_dir; refuses the project root itself or paths outside it.

    Returns False when there was nothing to remove.
    """
    if not output_dir.exists():
        return False
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise ValueError("Refusing to clean the project root")
    if not output_resolved.is_relative_to(root_resolved):
        raise ValueError(f"Refusing to clean {output_dir}: outside {project_root}")
    shutil.rmtree(output_dir)
    return True
