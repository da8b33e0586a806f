"""
test_wikilinks.py - Testes para o analisador de [[wikilinks]]

Cobertura:
- Contexto de completion dentro de "[[" aberto
- Wikilinks fechados e após "|" não disparam completion
- Extração com texto de exibição e colunas
- wikilink_at_position com span inclusivo
"""

from markata_lsp.wikilinks import find_wikilinks, wikilink_at_position, wikilink_context


class TestContext:
    def test_open_wikilink_with_prefix(self):
        assert wikilink_context("See [[my-po", 11) == ("my-po", 6, True)

    def test_open_wikilink_without_prefix(self):
        assert wikilink_context("[[", 2) == ("", 2, True)

    def test_closed_wikilink(self):
        _, _, applies = wikilink_context("See [[my-post]] here", 20)
        assert applies is False

    def test_after_pipe(self):
        """Depois de "|" o usuário digita o texto de exibição, não o alvo."""
        _, _, applies = wikilink_context("[[my-post|Disp", 14)
        assert applies is False

    def test_cursor_before_brackets(self):
        _, _, applies = wikilink_context("See [[my-po", 3)
        assert applies is False

    def test_column_past_end_is_clamped(self):
        assert wikilink_context("[[ab", 40) == ("ab", 2, True)

    def test_second_link_on_line(self):
        assert wikilink_context("[[one]] and [[tw", 16) == ("tw", 14, True)


class TestFind:
    def test_multiple_lines(self):
        content = "intro [[first]]\n\n[[second | Second Post]] end"
        links = find_wikilinks(content)

        assert [(l.target, l.display_text, l.line) for l in links] == [
            ("first", None, 0),
            ("second", "Second Post", 2),
        ]
        assert links[0].start_char == 6
        assert links[0].end_char == 15

    def test_empty_target_ignored(self):
        assert find_wikilinks("[[ ]] and [[|x]]") == []

    def test_unclosed_ignored(self):
        assert find_wikilinks("[[never closed") == []


class TestAtPosition:
    def test_cursor_inside(self):
        link = wikilink_at_position("See [[my-post]] here", 8, line_no=4)
        assert link.target == "my-post"
        assert link.line == 4

    def test_span_is_inclusive(self):
        line = "See [[my-post]] here"
        assert wikilink_at_position(line, 4) is not None
        assert wikilink_at_position(line, 15) is not None
        assert wikilink_at_position(line, 16) is None
        assert wikilink_at_position(line, 3) is None
