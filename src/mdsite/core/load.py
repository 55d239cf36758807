"""Source discovery and front-matter extraction"""

import datetime
import logging
import re
from pathlib import Path
from typing import Any, Iterable

import yaml

from mdsite.core.models import Asset, Document, DocumentKind
from mdsite.errors import MalformedMetadataError, NotFoundError, UnreadableSourceError


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|$)', re.DOTALL)
TAG_SPLIT_RE = re.compile(r'[,\s]+')
MD_EXTENSIONS = {'.md', '.markdown', '.lhs'}


def _scalar(value: Any) -> str:
    """Normalise a YAML scalar to the string form stored in metadata."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


def _normalise(raw: dict, path: str) -> dict[str, str]:
    """Lower-case keys and flatten values to strings; nested mappings are rejected."""
    meta: dict[str, str] = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            raise MalformedMetadataError(path, f"value for '{key}' must be a scalar or a list")
        if isinstance(value, list):
            if any(isinstance(v, (dict, list)) for v in value):
                raise MalformedMetadataError(path, f"list '{key}' must contain only scalars")
            meta[str(key).strip().lower()] = ', '.join(_scalar(v) for v in value)
        else:
            meta[str(key).strip().lower()] = _scalar(value)
    return meta


def split_frontmatter(text: str, path: str = '<string>') -> tuple[dict[str, str], str]:
    """Return (metadata, body) with the '---' delimited header removed."""
    text = text.lstrip('\ufeff')
    m = FRONTMATTER_RE.match(text)
    if not m:
        return {}, text
    header = m.group(1) or ''
    try:
        raw = yaml.safe_load(header) if header.strip() else {}
    except yaml.YAMLError as e:
        raise MalformedMetadataError(path, f"header is not valid key/value pairs: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise MalformedMetadataError(path, f"header must be key/value pairs, got {type(raw).__name__}")
    return _normalise(raw, path), text[m.end():]


def parse_tags(value: str | None) -> list[str]:
    """Split a comma and/or whitespace separated tag list, keeping first occurrences."""
    if not value:
        return []
    return list(dict.fromkeys(t for t in TAG_SPLIT_RE.split(value) if t))


def derive_title(doc: Document) -> str | None:
    """Return metadata title, else the first level-one heading of the body."""
    if doc.metadata.get('title'):
        return doc.metadata['title']
    for line in doc.body.splitlines():
        stripped = line.strip()
        if stripped.startswith('# '):
            return stripped[2:].strip() or None
        if stripped:
            break
    return None


def _relative(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def discover_files(root: Path, suffixes: set[str] | None = None) -> list[Path]:
    """Return sorted files under root, optionally restricted to suffixes."""
    return sorted(
        p for p in root.rglob('*')
        if p.is_file() and (suffixes is None or p.suffix.lower() in suffixes)
    )


def discover_sources(
    content_dir: Path,
    post_roots: Iterable[str],
    page_files: Iterable[str],
    ) -> list[tuple[str, DocumentKind]]:
    """List (source path, kind) pairs for every post and page under content_dir.

    Missing content or post roots raise NotFoundError; missing page files are
    optional and only logged.
    """
    if not content_dir.is_dir():
        raise NotFoundError(str(content_dir), "content root does not exist")
    sources: dict[str, DocumentKind] = {}
    for name in post_roots:
        root = content_dir / name
        if not root.is_dir():
            raise NotFoundError(name, "post root does not exist")
        for p in discover_files(root, MD_EXTENSIONS):
            sources[_relative(p, content_dir)] = DocumentKind.post
    for name in page_files:
        p = content_dir / name
        if not p.is_file():
            logger.warning("Page %s not found, skipping", name)
            continue
        sources.setdefault(_relative(p, content_dir), DocumentKind.page)
    return sorted(sources.items())


def discover_assets(content_dir: Path, asset_roots: Iterable[str]) -> list[Asset]:
    """Return an Asset per file under each asset root; missing roots are skipped."""
    assets = []
    for name in asset_roots:
        root = content_dir / name
        if not root.is_dir():
            logger.warning("Asset root %s not found, skipping", name)
            continue
        for p in discover_files(root):
            assets.append(Asset(source=p, output_path=_relative(p, content_dir)))
    return assets


def read_source(content_dir: Path, path: str) -> str:
    """Read a UTF-8 source file; read failures carry the source path."""
    try:
        return (content_dir / path).read_text(encoding='utf-8')
    except FileNotFoundError as e:
        raise NotFoundError(path, "source file does not exist") from e
    except UnicodeDecodeError as e:
        raise UnreadableSourceError(path, f"not valid UTF-8: {e.reason} at byte {e.start}") from e
    except OSError as e:
        raise UnreadableSourceError(path, e.strerror or str(e)) from e


def load_document(content_dir: Path, path: str, kind: DocumentKind = DocumentKind.post) -> Document:
    """Read one source file and split its front matter from the body."""
    metadata, body = split_frontmatter(read_source(content_dir, path), path)
    logger.debug("Loaded %s (%d metadata fields)", path, len(metadata))
    return Document(path=path, body=body, metadata=metadata, kind=kind)
