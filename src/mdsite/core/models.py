"""In-memory data model for a single build: documents, pages, assets, collections"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional

from mdsite.core.utils.dates import parse_date


class DocumentKind(str, Enum):
    post = "post"
    page = "page"


@dataclass
class Document:
    """A source document; identity is its POSIX path relative to the content root."""
    path:     str
    body:     str                                   # raw body with front matter removed
    metadata: dict[str, str] = field(default_factory=dict)
    kind:     str = DocumentKind.post
    html:     Optional[str] = None                  # filled by the renderer

    @property
    def output_path(self) -> str:
        return PurePosixPath(self.path).with_suffix('.html').as_posix()

    @property
    def published(self) -> Optional[datetime.date]:
        return parse_date(self.metadata.get('published'))

    @property
    def last(self) -> Optional[datetime.date]:
        return parse_date(self.metadata.get('last'))


@dataclass(frozen=True)
class Page:
    """A final render target: output path (relative to the output root) and HTML text."""
    output_path: str
    html:        str
    source_path: str                                # equals output_path for synthetic pages


@dataclass(frozen=True)
class Asset:
    """A file copied from source to output without transformation."""
    source:      Path
    output_path: str


@dataclass(frozen=True)
class Collection:
    """A named, ordered sequence of documents used to populate listing pages."""
    name:      str
    documents: tuple[Document, ...]

    def __iter__(self):
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)


@dataclass(frozen=True)
class BuildFailure:
    path:    str
    kind:    str
    message: str


@dataclass
class BuildReport:
    """Outcome of one build: written output paths and collected per-file failures."""
    output_dir: Path
    written:    list[str] = field(default_factory=list)
    failures:   list[BuildFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def record(self, error) -> None:
        """Append a BuildFailure for a BuildError."""
        self.failures.append(BuildFailure(path=error.path, kind=error.kind, message=error.message))
