"""Root test configuration: a small sample site on disk and settings pointing at it"""

from pathlib import Path

import pytest

from mdsite.config import Settings


DEFAULT_HTML = """\
<!doctype html>
<html>
<head><title>{{ title }}</title><link rel="stylesheet" href="/css/default.css"></head>
<body>
<nav><a href="/">Home</a> <a href="/archive.html">Archive</a></nav>
<main>{{ body }}</main>
</body>
</html>
"""

POST_HTML = """\
<article>
<h1>{{ title }}</h1>
{% if published is defined %}<p class="date">Posted on {{ published }}</p>{% endif %}
{{ body }}
</article>
"""

ARCHIVE_HTML = """\
<ul class="archive">
{% for post in posts %}<li><a href="{{ post.url }}">{{ post.title }}</a> - {{ post.published }}</li>
{% endfor %}</ul>
"""

INDEX_HTML = """\
<h2>Recent posts</h2>
<ul class="recent">
{% for post in posts %}<li><a href="{{ post.url }}">{{ post.title }}</a></li>
{% endfor %}</ul>
"""

DAY7_MD = """\
---
title: Day 7
published: 2020-12-07
tags: aoc, haskell
---
hello
"""

NEW_YEAR_MD = """\
---
title: New Year
published: 2021-01-05
last: 2021-01-06
---
See [day 7](2020-12-07-x.md) and ![pic](../images/pic.png).
"""

ABOUT_MD = """\
---
title: About
---
About this blog.
"""

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


def write_site(root: Path) -> Path:
    """Write the sample site under root and return root."""
    files = {
        "templates/default.html": DEFAULT_HTML,
        "templates/post.html": POST_HTML,
        "templates/archive.html": ARCHIVE_HTML,
        "templates/index.html": INDEX_HTML,
        "posts/2020-12-07-x.md": DAY7_MD,
        "posts/2021-01-05-y.md": NEW_YEAR_MD,
        "about.md": ABOUT_MD,
        "css/default.css": "/* base */\nbody {\n  margin: 0;\n}\n",
    }
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    (root / "images").mkdir()
    (root / "images" / "pic.png").write_bytes(PNG_BYTES)
    return root


@pytest.fixture(name="site_dir")
def site_dir_fixture(tmp_path):
    """Sample content root with two posts, an about page, templates and assets."""
    return write_site(tmp_path / "site")


@pytest.fixture(name="settings")
def settings_fixture(site_dir, tmp_path):
    """Settings building site_dir into tmp_path/_site."""
    return Settings(content_dir=str(site_dir), output_dir=str(tmp_path / "_site"))
