"""
test_content.py - Testes para extração de metadados de posts

Cobertura:
- slugify e generate_slug (index.md, caminhos, slug explícito)
- Frontmatter tolerante a erros
- Título e excerpt de fallback
- Aliases
"""

from pathlib import Path

from markata_lsp.content import (
    extract_aliases,
    extract_excerpt,
    generate_slug,
    metadata_strings,
    parse_frontmatter,
    path_to_uri,
    slugify,
    title_from_filename,
    uri_to_path,
)


class TestSlug:
    def test_root_index_is_empty(self):
        """index.md na raiz vira a home page."""
        assert generate_slug(Path("index.md")) == ""

    def test_nested_index_uses_directory(self):
        assert generate_slug(Path("blog/2024/index.md")) == "blog/2024"

    def test_nested_index_lowercased(self):
        assert generate_slug(Path("Blog/Notes/INDEX.md")) == "blog/notes"

    def test_filename_stripped(self):
        assert generate_slug(Path("My Post!!!.md")) == "my-post"

    def test_explicit_slug_wins(self):
        assert generate_slug(Path("whatever.md"), metadata={"slug": "custom"}) == "custom"

    def test_relative_to_root(self, tmp_path):
        """Com raiz, index.md em subdiretório usa o caminho relativo."""
        path = tmp_path / "docs" / "guide" / "index.md"
        assert generate_slug(path, tmp_path) == "docs/guide"
        assert generate_slug(tmp_path / "index.md", tmp_path) == ""

    def test_slugify_collapses_hyphens(self):
        assert slugify("  Hello -- World  ") == "hello-world"

    def test_slugify_keeps_underscore(self):
        assert slugify("snake_case name") == "snake_case-name"


class TestFrontmatter:
    def test_valid(self):
        metadata, body = parse_frontmatter("a.md", "---\ntitle: Hello\n---\nBody text\n")
        assert metadata == {"title": "Hello"}
        assert body.strip() == "Body text"

    def test_missing(self):
        metadata, body = parse_frontmatter("a.md", "Just text")
        assert metadata == {}
        assert body == "Just text"

    def test_invalid_yaml_is_tolerated(self):
        """YAML inválido → metadata vazio e corpo = arquivo inteiro."""
        content = "---\ntitle: [unclosed\n---\nBody\n"
        metadata, body = parse_frontmatter("a.md", content)
        assert metadata == {}
        assert body == content


class TestFallbacks:
    def test_title_from_filename(self):
        assert title_from_filename(Path("my-first_post.md")) == "my first post"

    def test_excerpt_skips_headings(self):
        body = "\n# Heading\n\nFirst line\nsecond line\n\nNext paragraph"
        assert extract_excerpt(body) == "First line second line"

    def test_excerpt_truncates(self):
        excerpt = extract_excerpt("word " * 100, max_length=20)
        assert len(excerpt) == 20
        assert excerpt.endswith("...")

    def test_excerpt_empty(self):
        assert extract_excerpt("\n\n## Only heading\n") == ""


def test_extract_aliases_filters_non_strings():
    assert extract_aliases({"aliases": ["one", "", 3, " two "]}) == ["one", "two"]


def test_extract_aliases_requires_list():
    assert extract_aliases({"aliases": "single"}) == []


def test_metadata_strings_accepts_single_string():
    assert metadata_strings("tag") == ["tag"]
    assert metadata_strings(["a", 1, "b"]) == ["a", "b"]
    assert metadata_strings(None) == []


def test_uri_round_trip(tmp_path):
    path = tmp_path / "post.md"
    assert uri_to_path(path_to_uri(path)) == path


def test_non_file_uri_has_no_path():
    assert uri_to_path("untitled:Untitled-1") is None
