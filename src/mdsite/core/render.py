"""Markdown to HTML rendering with markdown-it and optional extensions"""

import re
from typing import Iterable

import emoji
from markdown_it import MarkdownIt
from mdit_py_plugins.attrs import attrs_plugin
from mdit_py_plugins.container import container_plugin
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from mdsite.core.models import Document


EXTENSIONS = (
    'tables',
    'strikethrough',
    'footnotes',
    'attrs',
    'deflist',
    'tasklists',
    'divs',
    'literate',
    'emoji',
    'highlight',
)
LITERATE_LANGUAGE = 'haskell'

FENCE_RE = re.compile(r'^[ \t]*(`{3,}|~{3,})')
BEGIN_CODE_RE = re.compile(r'^\\begin\{code\}[ \t]*$')
END_CODE_RE = re.compile(r'^\\end\{code\}[ \t]*$')
BIRD_RE = re.compile(r'^>(?: |$)')

_FORMATTER = HtmlFormatter(nowrap=True)


def _highlight(code: str, lang: str, _attrs: str) -> str:
    """Pygments highlighter for fenced blocks; '' lets markdown-it escape the code itself."""
    if not lang:
        return ''
    try:
        lexer = get_lexer_by_name(lang)
    except ClassNotFound:
        return ''
    return highlight(code, lexer, _FORMATTER)


def _emoji_rule(state) -> None:
    """Replace :shortcode: emoji in text tokens; code spans are left alone."""
    for token in state.tokens:
        if token.type != 'inline' or not token.children:
            continue
        for child in token.children:
            if child.type == 'text' and ':' in child.content:
                child.content = emoji.emojize(child.content, language='alias')


def _div_validate(params: str, *args) -> bool:
    return bool(params.strip())


def _div_render(self, tokens, idx, options, env) -> str:
    """Render a ':::' container as a div whose classes come from the info string."""
    token = tokens[idx]
    if token.nesting == 1:
        for cls in token.info.split():
            token.attrJoin('class', cls.lstrip('.'))
    return self.renderToken(tokens, idx, options, env)


def _make_parser(extensions: Iterable[str]) -> MarkdownIt:
    """Build a MarkdownIt instance with the given extension names enabled."""
    enabled = set(extensions)
    options = {'linkify': False}
    if 'highlight' in enabled:
        options['highlight'] = _highlight
    md = MarkdownIt('commonmark', options_update=options)
    if 'tables' in enabled:
        md.enable('table')
    if 'strikethrough' in enabled:
        md.enable('strikethrough')
    if 'footnotes' in enabled:
        md.use(footnote_plugin)
    if 'attrs' in enabled:
        md.use(attrs_plugin)
    if 'deflist' in enabled:
        md.use(deflist_plugin)
    if 'tasklists' in enabled:
        md.use(tasklists_plugin)
    if 'divs' in enabled:
        md.use(container_plugin, name='div', validate=_div_validate, render=_div_render)
    if 'emoji' in enabled:
        md.core.ruler.push('emoji', _emoji_rule)
    return md


def literate_to_fences(text: str, bird_tracks: bool = False) -> str:
    """Turn literate code regions into fenced code blocks.

    '\\begin{code}' ... '\\end{code}' regions are always converted; bird-track
    ('> ') blocks only when bird_tracks is set, as in .lhs sources. Existing
    fenced blocks are copied through untouched.
    """
    out: list[str] = []
    fence = ''
    in_code = in_birds = False
    for line in text.splitlines():
        if in_code:
            if END_CODE_RE.match(line):
                out.append('```')
                in_code = False
            else:
                out.append(line)
            continue
        if in_birds:
            if BIRD_RE.match(line):
                out.append(line[2:])
                continue
            out.append('```')
            in_birds = False
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if not fence:
                fence = marker
            elif marker.startswith(fence) and not line[fence_match.end():].strip():
                # closing fences carry no info string
                fence = ''
            out.append(line)
            continue
        if fence:
            out.append(line)
        elif BEGIN_CODE_RE.match(line):
            out.append(f'```{LITERATE_LANGUAGE}')
            in_code = True
        elif bird_tracks and BIRD_RE.match(line):
            out.append(f'```{LITERATE_LANGUAGE}')
            out.append(line[2:])
            in_birds = True
        else:
            out.append(line)
    if in_code or in_birds:
        out.append('```')
    return '\n'.join(out) + ('\n' if text.endswith('\n') else '')


def render_markdown(text: str, extensions: Iterable[str] = EXTENSIONS, bird_tracks: bool = False) -> str:
    """Render markdown text to an HTML fragment; malformed markup passes through as text."""
    extensions = tuple(extensions)
    if 'literate' in extensions:
        text = literate_to_fences(text, bird_tracks)
    return _make_parser(extensions).render(text)


def render_document(doc: Document, extensions: Iterable[str] = EXTENSIONS) -> str:
    """Render doc.body and store the fragment on doc.html."""
    doc.html = render_markdown(doc.body, extensions, bird_tracks=doc.path.endswith('.lhs'))
    return doc.html
