"""
test_frontmatter_fields.py - Testes para o analisador de frontmatter

Cobertura:
- Limites do bloco (só vale se a primeira linha for "---")
- Contexto de nome de campo vs. valor
- Itens de lista não são nome nem valor
- Campos já existentes coletados
- field_at_position e documentação dos campos
"""

from markata_lsp.frontmatter_fields import (
    FIELDS_BY_NAME,
    FRONTMATTER_FIELDS,
    FieldSpan,
    collect_existing_fields,
    field_at_position,
    find_frontmatter_bounds,
    format_field_documentation,
    frontmatter_context,
    sorted_fields,
)

DOC = "---\ntitle: Hi\nlay\ntags:\n  - one\n---\nbody"


class TestBounds:
    def test_closed_block(self):
        assert find_frontmatter_bounds(DOC.split("\n")) == (0, 5)

    def test_unclosed_block(self):
        assert find_frontmatter_bounds(["---", "title: x"]) == (0, -1)

    def test_block_must_start_at_first_line(self):
        assert find_frontmatter_bounds(["", "---", "title: x", "---"]) == (-1, -1)

    def test_existing_fields_skip_indented_lines(self):
        lines = DOC.split("\n")
        assert collect_existing_fields(lines, 0, 5) == {"title", "tags"}


class TestContext:
    def test_field_name(self):
        ctx = frontmatter_context(DOC, 2, 3)
        assert ctx.in_frontmatter
        assert ctx.is_field_name
        assert ctx.prefix == "lay"
        assert ctx.start_col == 0
        assert ctx.existing_fields == {"title", "tags"}

    def test_field_value(self):
        ctx = frontmatter_context(DOC, 1, 8)
        assert ctx.is_field_value
        assert ctx.current_field == "title"
        assert ctx.prefix == "H"
        assert ctx.start_col == 7

    def test_value_right_after_colon(self):
        ctx = frontmatter_context("---\nlayout:\n---", 1, 7)
        assert ctx.is_field_value
        assert ctx.current_field == "layout"
        assert ctx.prefix == ""
        assert ctx.start_col == 7

    def test_list_item(self):
        ctx = frontmatter_context(DOC, 4, 6)
        assert ctx.in_frontmatter
        assert not ctx.is_field_name
        assert not ctx.is_field_value

    def test_outside_block(self):
        assert not frontmatter_context(DOC, 6, 2).in_frontmatter
        assert not frontmatter_context(DOC, 0, 1).in_frontmatter

    def test_unclosed_block_is_not_frontmatter(self):
        assert not frontmatter_context("---\ntit", 1, 3).in_frontmatter

    def test_crlf_line(self):
        ctx = frontmatter_context("---\r\ntit\r\n---\r\n", 1, 3)
        assert ctx.is_field_name
        assert ctx.prefix == "tit"


class TestFieldAtPosition:
    def test_on_name(self):
        content = "---\nlayout: wide\n---"
        assert field_at_position(content, 1, 2) == FieldSpan("layout", 0, 6, False)

    def test_on_value(self):
        content = "---\nlayout: wide\n---"
        assert field_at_position(content, 1, 10) == FieldSpan("layout", 8, 12, True)

    def test_indented_line(self):
        assert field_at_position(DOC, 4, 4) is None

    def test_line_without_colon(self):
        assert field_at_position(DOC, 2, 1) is None


class TestFieldTable:
    def test_required_fields_first(self):
        names = [f.name for f in sorted_fields()]
        assert names[:2] == ["date", "title"]
        assert sorted(names[2:]) == names[2:]

    def test_aliases_field_present(self):
        assert FIELDS_BY_NAME["aliases"].type == "list"

    def test_table_is_unique(self):
        assert len(FIELDS_BY_NAME) == len(FRONTMATTER_FIELDS)

    def test_documentation_with_values_and_default(self):
        doc = format_field_documentation(FIELDS_BY_NAME["draft"])
        assert doc.startswith("**draft**")
        assert "*Type: boolean*" in doc
        assert "*Allowed values: true, false*" in doc
        assert "*Default: false*" in doc

    def test_documentation_required(self):
        assert "(required)" in format_field_documentation(FIELDS_BY_NAME["title"])
