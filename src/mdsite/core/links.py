"""Rewrite relative href/src links to output-relative paths"""

import logging
import posixpath
import re
from typing import Iterable, Mapping
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from mdsite.core.models import Asset, Document, Page
from mdsite.errors import BrokenLinkError


logger = logging.getLogger(__name__)

LINK_ATTR_RE = re.compile(r'(?<=\s)(?P<attr>href|src)(?P<eq>\s*=\s*)(?P<q>["\'])(?P<url>.*?)(?P=q)', re.IGNORECASE)


def build_path_map(
    documents: Iterable[Document],
    assets: Iterable[Asset],
    pages: Iterable[Page],
    reserved: Iterable[str] = (),
    ) -> dict[str, str]:
    """Map every known source path and output path to its output path.

    Only documents that produced a page are included, so links to documents
    that failed to build do not resolve. reserved names output paths that
    will be produced by pages not passed in.
    """
    produced = {p.output_path for p in pages} | set(reserved)
    path_map: dict[str, str] = {}
    for doc in documents:
        if doc.output_path in produced:
            path_map[doc.path] = doc.output_path
    for asset in assets:
        path_map[asset.output_path] = asset.output_path
    for output_path in produced:
        path_map[output_path] = output_path
    return path_map


def is_external(url: str) -> bool:
    """True for URLs that must be left alone: absolute, protocol-relative or fragment/query only."""
    parts = urlsplit(url)
    return bool(parts.scheme or parts.netloc or not parts.path)


def _resolve(path: str, page: Page, path_map: Mapping[str, str]) -> str | None:
    """Return the output path a link path points at, or None."""
    path = unquote(path)
    if path.startswith('/'):
        target = path.lstrip('/')
    else:
        target = posixpath.join(posixpath.dirname(page.source_path), path)
    target = posixpath.normpath(target) if target else '.'
    if target.startswith('..'):
        return None
    candidates = [target] if target != '.' else []
    candidates.append(posixpath.join(target, 'index.html') if target != '.' else 'index.html')
    for candidate in candidates:
        if candidate in path_map:
            return path_map[candidate]
    return None


def rewrite_url(url: str, page: Page, path_map: Mapping[str, str], strict: bool = True) -> str:
    """Rewrite one link relative to page's output location.

    Unresolvable links raise BrokenLinkError when strict, else are returned
    unchanged with a warning.
    """
    if is_external(url):
        return url
    parts = urlsplit(url)
    output = _resolve(parts.path, page, path_map)
    if output is None:
        if strict:
            raise BrokenLinkError(page.source_path, url)
        logger.warning("Broken link in %s: %s", page.source_path, url)
        return url
    start = posixpath.dirname(page.output_path) or '.'
    relative = quote(posixpath.relpath(output, start))
    return urlunsplit(('', '', relative, parts.query, parts.fragment))


def rewrite_links(page: Page, path_map: Mapping[str, str], strict: bool = True) -> Page:
    """Return a copy of page with every relative href/src rewritten."""
    def repl(m: re.Match) -> str:
        url = rewrite_url(m.group('url'), page, path_map, strict)
        return f"{m.group('attr')}{m.group('eq')}{m.group('q')}{url}{m.group('q')}"

    return Page(
        output_path=page.output_path,
        html=LINK_ATTR_RE.sub(repl, page.html),
        source_path=page.source_path,
    )
