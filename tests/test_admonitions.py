"""
test_admonitions.py - Testes para o analisador de admonitions

Cobertura:
- Marcadores !!!, ??? e ???+ com e sem espaço
- Indentação antes do marcador
- Texto antes do marcador não dispara
- Hover apenas sobre o nome do tipo
- Tabela de tipos e documentação
"""

from markata_lsp.admonitions import (
    ADMONITION_TYPES,
    AdmonitionContext,
    admonition_at_position,
    admonition_context,
    format_admonition_documentation,
    get_admonition_type,
)


class TestContext:
    def test_marker_without_space(self):
        assert admonition_context("!!!", 3) == AdmonitionContext(
            marker="!!!", type_prefix="", marker_start=0, type_start=3, needs_space=True
        )

    def test_marker_with_partial_type(self):
        ctx = admonition_context("!!! no", 6)
        assert ctx.type_prefix == "no"
        assert ctx.type_start == 4
        assert not ctx.needs_space

    def test_collapsible_open_marker_indented(self):
        ctx = admonition_context("  ???+ ti", 9)
        assert ctx.marker == "???+"
        assert ctx.marker_start == 2
        assert ctx.type_prefix == "ti"
        assert ctx.type_start == 7

    def test_marker_followed_by_space_only(self):
        ctx = admonition_context("??? ", 4)
        assert ctx.type_prefix == ""
        assert ctx.type_start == 4
        assert not ctx.needs_space

    def test_text_before_marker(self):
        assert admonition_context("text !!!", 8) is None

    def test_title_already_typed(self):
        assert admonition_context('!!! note "Ti', 12) is None


class TestAtPosition:
    def test_on_type(self):
        assert admonition_at_position('!!! warning "Heads up"', 6) == ("warning", 4, 11)

    def test_on_title(self):
        assert admonition_at_position('!!! warning "Heads up"', 15) is None

    def test_not_admonition(self):
        assert admonition_at_position("plain text", 2) is None


class TestTypes:
    def test_fifteen_types(self):
        assert len(ADMONITION_TYPES) == 15

    def test_lookup_case_insensitive(self):
        assert get_admonition_type("WARNING").name == "warning"
        assert get_admonition_type("nope") is None

    def test_documentation(self):
        doc = format_admonition_documentation(get_admonition_type("tip"))
        assert doc.startswith("**Tip**")
        assert '!!! tip "Optional Title"' in doc
