"""
test_hover.py - Testes para textDocument/hover

Cobertura:
- [[slug]] e [[alias]] → dados do post, range do wikilink
- Link quebrado → "Broken link" com sugestões
- @handle externo e interno; mention desconhecida
- Campos do frontmatter conhecidos e customizados
- Tipos de admonition conhecidos e desconhecidos
"""

from __future__ import annotations

from lsprotocol.types import MarkupKind, Position

from markata_lsp.hover import compute_hover, format_post_hover
from markata_lsp.models import PostInfo


def _hover(source, line, character, index):
    return compute_hover(source, Position(line=line, character=character), index)


class TestWikilinkHover:
    def test_existing_post(self, index):
        hover = _hover("See [[my-post]]", 0, 8, index)

        assert hover.contents.kind == MarkupKind.Markdown
        assert hover.contents.value.startswith("## My Post\n\nA post about things")
        assert "*Slug:* `my-post`" in hover.contents.value
        assert (hover.range.start.character, hover.range.end.character) == (4, 15)

    def test_alias_resolves(self, index):
        hover = _hover("[[mp]]", 0, 3, index)
        assert hover.contents.value.startswith("## My Post")

    def test_broken_link_with_suggestion(self, index):
        hover = _hover("[[my-psot]]", 0, 3, index)

        value = hover.contents.value
        assert value.startswith("**Broken link**\n\nTarget post `my-psot` not found.")
        assert "Did you mean:" in value
        assert "`my-post`" in value

    def test_broken_link_without_suggestion(self, index):
        hover = _hover("[[zzzzzzzz]]", 0, 3, index)
        assert "Did you mean" not in hover.contents.value


class TestMentionHover:
    def test_blogroll_mention(self, index):
        hover = _hover("@dave says", 0, 2, index)
        value = hover.contents.value

        assert value.startswith("## @daverupert - Dave Rupert")
        assert "Web developer" in value
        assert "*Site:* https://daverupert.com" in value
        assert "*Feed:* https://daverupert.com/atom.xml" in value
        assert value.endswith("*Aliases:* @Dave")
        assert (hover.range.start.character, hover.range.end.character) == (0, 5)

    def test_internal_mention(self, index):
        hover = _hover("Thanks @jane.", 0, 9, index)
        assert hover.contents.value.startswith("## @jane - Jane Doe")
        assert "*Post:* `" in hover.contents.value

    def test_unknown_mention(self, index):
        hover = _hover("@nobody", 0, 3, index)
        assert hover.contents.value.startswith(
            "**Unknown mention**\n\n`@nobody` not found in blogroll configuration."
        )


class TestFrontmatterHover:
    def test_known_field(self, index):
        hover = _hover("---\nlayout: wide\n---", 1, 2, index)

        assert hover.contents.value.startswith("**layout**")
        assert "*Allowed values: default, wide, full*" in hover.contents.value
        assert (hover.range.start.character, hover.range.end.character) == (0, 6)

    def test_hover_on_value_describes_field(self, index):
        hover = _hover("---\nlayout: wide\n---", 1, 10, index)
        assert hover.contents.value.startswith("**layout**")
        assert (hover.range.start.character, hover.range.end.character) == (8, 12)

    def test_custom_field(self, index):
        hover = _hover("---\nfoo: bar\n---", 1, 1, index)
        assert hover.contents.value == "**foo**\n\n*Custom field*"


class TestAdmonitionHover:
    def test_known_type(self, index):
        hover = _hover('!!! warning "Careful"', 0, 6, index)
        assert hover.contents.value.startswith("**Warning**")

    def test_unknown_type(self, index):
        hover = _hover("!!! custom", 0, 6, index)
        assert hover.contents.value == "**custom**\n\n*Unknown admonition type*"


def test_plain_text_has_no_hover(index):
    assert _hover("just some words", 0, 4, index) is None


def test_line_past_end(index):
    assert _hover("one", 3, 0, index) is None


def test_format_post_hover_without_description():
    post = PostInfo(uri="file:///a.md", path="/a.md", slug="a", title="A")
    assert format_post_hover(post) == "## A\n\n---\n*Slug:* `a`\n\n*Path:* `/a.md`"
