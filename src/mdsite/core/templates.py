"""Named HTML templates rendered with Jinja2 against document contexts"""

import re
from pathlib import Path
from typing import Any, Iterable, Mapping

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
    select_autoescape,
)
from markupsafe import Markup

from mdsite.core.load import derive_title, parse_tags
from mdsite.core.models import Document
from mdsite.core.utils.dates import format_date
from mdsite.errors import MalformedTemplateError, MissingFieldError, MissingTemplateError


UNDEFINED_RE = re.compile(r"'([^']+)' is undefined|has no attribute '([^']+)'")
DATE_FIELDS = ('published', 'last')


def _missing_field(error: UndefinedError) -> str:
    m = UNDEFINED_RE.search(str(error))
    if not m:
        return str(error)
    return m.group(1) or m.group(2)


class TemplateEngine:
    """Load templates from a directory; fields without a value fail unless defaulted.

    Template names are looked up as '<name>.html'. field_defaults sit
    underneath every context, so a context value always wins.
    """

    def __init__(
        self,
        templates_dir: Path,
        field_defaults: Mapping[str, Any] | None = None,
        date_format: str = '%d-%m-%Y',
        ):
        self.templates_dir = Path(templates_dir)
        self.field_defaults = dict(field_defaults or {})
        self.date_format = date_format
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            undefined=StrictUndefined,
            autoescape=select_autoescape(['html']),
            keep_trailing_newline=True,
        )

    @staticmethod
    def filename(name: str) -> str:
        return name if name.endswith('.html') else f'{name}.html'

    def has_template(self, name: str) -> bool:
        return (self.templates_dir / self.filename(name)).is_file()

    def require(self, names: Iterable[str]) -> None:
        """Raise MissingTemplateError for the first name without a template file."""
        for name in names:
            if not self.has_template(name):
                raise MissingTemplateError(str(self.templates_dir / self.filename(name)), name)

    def _context(self, context: Mapping[str, Any]) -> dict[str, Any]:
        return {**self.field_defaults, **context}

    def render(self, name: str, context: Mapping[str, Any], path: str = '') -> str:
        """Render the named template; path identifies the page in raised errors."""
        try:
            template = self.env.get_template(self.filename(name))
        except TemplateNotFound as e:
            raise MissingTemplateError(path or name, name) from e
        except TemplateSyntaxError as e:
            raise MalformedTemplateError(path or name, f"template '{name}' line {e.lineno}: {e.message}") from e
        try:
            return template.render(self._context(context))
        except UndefinedError as e:
            raise MissingFieldError(path or name, _missing_field(e), name) from e

    def render_string(self, source: str, context: Mapping[str, Any], path: str = '<string>') -> str:
        """Render a template given as source text (e.g. an index page that is itself a template)."""
        try:
            template = self.env.from_string(source)
        except TemplateSyntaxError as e:
            raise MalformedTemplateError(path, f"line {e.lineno}: {e.message}") from e
        try:
            return template.render(self._context(context))
        except UndefinedError as e:
            raise MissingFieldError(path, _missing_field(e), path) from e

    def apply(self, names: Iterable[str], context: Mapping[str, Any], body: str = '', path: str = '') -> str:
        """Apply templates in order, each receiving the previous output as 'body'."""
        for name in names:
            body = self.render(name, {**context, 'body': Markup(body)}, path)
        return body

    def document_context(self, doc: Document) -> dict[str, Any]:
        """Template context for a document: metadata, formatted dates, tags and url."""
        ctx: dict[str, Any] = dict(doc.metadata)
        title = derive_title(doc)
        if title is not None:
            ctx['title'] = title
        for name in DATE_FIELDS:
            if name in ctx:
                formatted = format_date(ctx[name], self.date_format)
                if formatted is not None:
                    ctx[name] = formatted
        if 'tags' in ctx:
            ctx['tags'] = parse_tags(ctx['tags'])
        ctx['path'] = doc.path
        ctx['url'] = '/' + doc.output_path
        return ctx
