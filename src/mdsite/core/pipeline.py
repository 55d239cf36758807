"""Build orchestration: documents -> site graph -> link rewriting -> output"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, Optional

from mdsite.config import Settings
from mdsite.core.graph import build_site_graph, build_synthetic_pages, ARCHIVE_PATH, INDEX_PATH
from mdsite.core.links import build_path_map, rewrite_links
from mdsite.core.load import discover_assets, discover_sources, load_document
from mdsite.core.models import Asset, BuildReport, Document, DocumentKind, Page
from mdsite.core.render import render_document
from mdsite.core.templates import TemplateEngine
from mdsite.core.write import staged_output, write_site
from mdsite.errors import BrokenLinkError, BuildError, BuildTimeoutError


logger = logging.getLogger(__name__)

TEMPLATE_CHAINS = {
    DocumentKind.post: ('post', 'default'),
    DocumentKind.page: ('default',),
}

DocResult = tuple[Optional[Document], Optional[Page], Optional[BuildError]]


def build_document(
    content_dir: Path,
    path: str,
    kind: DocumentKind,
    engine: TemplateEngine,
    extensions: Iterable[str],
    ) -> tuple[Document, Page]:
    """Load, render and template one source document into its Page."""
    doc = load_document(content_dir, path, kind)
    render_document(doc, extensions)
    html = engine.apply(TEMPLATE_CHAINS[kind], engine.document_context(doc), body=doc.html, path=path)
    return doc, Page(output_path=doc.output_path, html=html, source_path=path)


def _build_safely(build: Callable[..., tuple[Document, Page]], path: str, kind: DocumentKind) -> DocResult:
    """Run build for one document, returning its BuildError instead of raising it."""
    try:
        doc, page = build(path=path, kind=kind)
    except BuildError as e:
        logger.debug("Document %s failed: %s", path, e)
        return None, None, e
    return doc, page, None


def map_documents(
    fn: Callable[[str, DocumentKind], DocResult],
    sources: list[tuple[str, DocumentKind]],
    workers: int = 1,
    timeout: Optional[float] = None,
    ) -> list[DocResult]:
    """Apply fn to every source, in parallel when workers > 1; results keep source order.

    Exceeding timeout raises BuildTimeoutError without waiting for running work.
    """
    if workers <= 1 and timeout is None:
        return [fn(path, kind) for path, kind in sources]
    executor = ThreadPoolExecutor(max_workers=max(1, workers))
    try:
        futures = [executor.submit(fn, path, kind) for path, kind in sources]
        _, not_done = wait(futures, timeout=timeout)
        if not_done:
            raise BuildTimeoutError("<build>", f"{len(not_done)} document(s) unfinished after {timeout}s")
        return [f.result() for f in futures]
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def required_templates(content_dir: Path, sources: list[tuple[str, DocumentKind]]) -> list[str]:
    """Templates every build needs; a missing one means no page of that kind can succeed."""
    names = ['default', 'archive']
    if any(kind == DocumentKind.post for _, kind in sources):
        names.append('post')
    if not (content_dir / INDEX_PATH).is_file():
        names.append('index')
    return names


def rewrite_pages(
    pages: list[Page],
    documents: list[Document],
    assets: list[Asset],
    strict: bool = True,
    reserved: Iterable[str] = (),
    ) -> tuple[list[Page], list[BrokenLinkError]]:
    """Rewrite links on every page, dropping pages with broken links until none remain.

    Dropping a page can break links to it on other pages, so the path map is
    rebuilt and rewriting repeated until a pass finds no new failures.
    reserved output paths count as link targets without being rewritten.
    """
    errors: list[BrokenLinkError] = []
    while True:
        path_map = build_path_map(documents, assets, pages, reserved)
        rewritten: list[Page] = []
        broken: list[Page] = []
        for page in pages:
            try:
                rewritten.append(rewrite_links(page, path_map, strict))
            except BrokenLinkError as e:
                errors.append(e)
                broken.append(page)
        if not broken:
            return rewritten, errors
        pages = [p for p in pages if p not in broken]


def link_site(
    pages: list[Page],
    documents: list[Document],
    assets: list[Asset],
    engine: TemplateEngine,
    settings: Settings,
    ) -> tuple[list[Page], list[BuildError]]:
    """Link-check document pages, then build and link the archive and index from the survivors.

    Document pages are checked first, with the synthetic pages assumed to
    exist, so a broken document never takes the listings down with it. If a
    synthetic page then fails, document pages are checked again without it.
    """
    synthetic_paths = {ARCHIVE_PATH, INDEX_PATH}
    while True:
        kept, errors = rewrite_pages(pages, documents, assets, settings.strict_links, synthetic_paths)
        kept_sources = {p.source_path for p in kept}
        survivors = [d for d in documents if d.path in kept_sources]

        graph = build_site_graph(survivors, settings.recent_limit)
        synthetic, synthetic_errors = build_synthetic_pages(engine, graph, settings.content_path, settings.site_title)
        synthetic, link_errors = rewrite_pages(
            synthetic, survivors, assets, settings.strict_links, [p.output_path for p in kept],
        )
        built = {p.output_path for p in synthetic}
        if synthetic_paths <= built:
            return kept + synthetic, [*errors, *synthetic_errors, *link_errors]
        synthetic_paths &= built


def run_build(settings: Settings) -> BuildReport:
    """Build the whole site described by settings.

    Per-document failures are collected on the returned report. Structural
    failures (missing roots or required templates, timeout) raise before
    anything is published.
    """
    content_dir = settings.content_path
    sources = discover_sources(content_dir, settings.post_roots, settings.page_files)
    assets = discover_assets(content_dir, settings.asset_roots)
    engine = TemplateEngine(settings.templates_path, settings.field_defaults, settings.date_format)
    engine.require(required_templates(content_dir, sources))
    logger.info("Building %d document(s) and %d asset(s) from %s", len(sources), len(assets), content_dir)

    report = BuildReport(output_dir=settings.output_path)
    build = partial(build_document, content_dir, engine=engine, extensions=tuple(settings.extensions))
    results = map_documents(partial(_build_safely, build), sources, settings.workers, settings.timeout)

    documents: list[Document] = []
    pages: list[Page] = []
    for doc, page, error in results:
        if error is not None:
            report.record(error)
            continue
        documents.append(doc)
        pages.append(page)

    pages, errors = link_site(pages, documents, assets, engine, settings)
    for error in errors:
        report.record(error)

    with staged_output(settings.output_path, settings.atomic) as target:
        write_site(pages, assets, target, report, settings.compress_css)
    logger.info("Wrote %d file(s), %d failure(s)", len(report.written), len(report.failures))
    return report
