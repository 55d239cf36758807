"""Collections across all documents and the synthetic archive/index pages"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from mdsite.core.load import read_source, split_frontmatter
from mdsite.core.models import Collection, Document, DocumentKind, Page
from mdsite.core.templates import TemplateEngine
from mdsite.errors import BuildError


logger = logging.getLogger(__name__)

ARCHIVE_PATH = 'archive.html'
INDEX_PATH = 'index.html'
ARCHIVE_TITLE = 'Archives'


@dataclass
class SiteGraph:
    collections: dict[str, Collection] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Collection:
        return self.collections[name]


def recent_first(documents: Iterable[Document]) -> list[Document]:
    """Dated documents, newest first; equal dates ordered by path ascending.

    Documents without a parseable 'published' date are dropped.
    """
    dated = [d for d in documents if d.published is not None]
    dated.sort(key=lambda d: d.path)
    dated.sort(key=lambda d: d.published, reverse=True)
    return dated


def build_site_graph(documents: Iterable[Document], recent_limit: int = 0) -> SiteGraph:
    """Derive the 'posts' and 'recent' collections from rendered post documents."""
    posts = recent_first(d for d in documents if d.kind == DocumentKind.post)
    recent = posts[:recent_limit] if recent_limit else posts
    return SiteGraph(collections={
        'posts': Collection('posts', tuple(posts)),
        'recent': Collection('recent', tuple(recent)),
    })


def summaries(engine: TemplateEngine, collection: Collection) -> list[dict[str, Any]]:
    """Listing entries (title, dates, tags, url) from already-rendered documents."""
    return [engine.document_context(d) for d in collection]


def build_archive_page(engine: TemplateEngine, graph: SiteGraph) -> Page:
    ctx = {'title': ARCHIVE_TITLE, 'posts': summaries(engine, graph['posts']), 'url': '/' + ARCHIVE_PATH}
    html = engine.apply(['archive', 'default'], ctx, path=ARCHIVE_PATH)
    return Page(output_path=ARCHIVE_PATH, html=html, source_path=ARCHIVE_PATH)


def build_index_page(engine: TemplateEngine, graph: SiteGraph, content_dir: Path, site_title: str) -> Page:
    """Index page: content_dir/index.html rendered as a template, else the 'index' template."""
    ctx: dict[str, Any] = {'title': site_title, 'url': '/' + INDEX_PATH}
    ctx['posts'] = summaries(engine, graph['recent'])
    source = content_dir / INDEX_PATH
    if source.is_file():
        metadata, body = split_frontmatter(read_source(content_dir, INDEX_PATH), INDEX_PATH)
        ctx.update(metadata)
        inner = engine.render_string(body, ctx, path=INDEX_PATH)
    else:
        inner = engine.render('index', ctx, path=INDEX_PATH)
    html = engine.apply(['default'], ctx, body=inner, path=INDEX_PATH)
    return Page(output_path=INDEX_PATH, html=html, source_path=INDEX_PATH)


def build_synthetic_pages(
    engine: TemplateEngine,
    graph: SiteGraph,
    content_dir: Path,
    site_title: str,
    ) -> tuple[list[Page], list[BuildError]]:
    """Build archive and index pages; failures are returned rather than raised."""
    pages: list[Page] = []
    errors: list[BuildError] = []
    builders = (
        (ARCHIVE_PATH, lambda: build_archive_page(engine, graph)),
        (INDEX_PATH, lambda: build_index_page(engine, graph, content_dir, site_title)),
    )
    for path, builder in builders:
        try:
            pages.append(builder())
        except BuildError as e:
            logger.debug("Synthetic page %s failed: %s", path, e)
            errors.append(e)
    return pages, errors
