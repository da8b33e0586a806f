"""
conftest.py - Fixtures compartilhadas

Workspace mínimo com configuração de blogroll/from_posts e três posts,
indexado uma vez por teste.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from markata_lsp.index import Index

CONFIG_TOML = """
[markata-go.blogroll]
enabled = true

[[markata-go.blogroll.feeds]]
url = "https://daverupert.com/atom.xml"
title = "Dave Rupert"
description = "Web developer"
site_url = "https://daverupert.com"
aliases = ["Dave"]

[[markata-go.blogroll.feeds]]
url = "https://simonwillison.net/atom/everything/"
title = "Simon Willison"

[[markata-go.mentions.from_posts]]
filter = "'contact' in tags"
handle_field = "handle"
"""

POSTS = {
    "posts/my-post.md": (
        "---\ntitle: My Post\ndescription: A post about things\naliases:\n  - mp\n---\n"
        "Body of my post.\n"
    ),
    "posts/other.md": "---\ntitle: Other Thing\n---\nSee [[my-post]].\n",
    "people/jane.md": "---\ntitle: Jane Doe\ntags: [contact]\nhandle: jane\n---\n",
}


def write_file(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path):
    write_file(tmp_path, "markata-go.toml", CONFIG_TOML)
    for relative, content in POSTS.items():
        write_file(tmp_path, relative, content)
    return tmp_path


@pytest.fixture
def index(workspace):
    idx = Index()
    idx.build(workspace)
    return idx
