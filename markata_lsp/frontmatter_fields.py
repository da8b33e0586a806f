"""
frontmatter_fields.py - Analisador de contexto e tabela de campos do frontmatter

Propósito:
    Decide se o cursor está no nome ou no valor de um campo do bloco YAML
    delimitado por "---" e fornece a tabela estática de campos conhecidos
    usada por completion e hover.

Componentes principais:
    - FrontmatterField: Definição de campo (tipo, descrição, valores, snippet)
    - FRONTMATTER_FIELDS: Campos conhecidos de posts markata
    - FrontmatterContext: Resultado da análise de (linha, coluna)
    - frontmatter_context: Análise usada pelo completion
    - field_at_position: Campo de topo sob o cursor (hover)
    - format_field_documentation: Markdown de documentação do campo

Notas de implementação:
    - O frontmatter só é reconhecido se a primeira linha for "---"
    - Cursor precisa estar estritamente entre os dois delimitadores
    - Linhas de lista ("- item") não são nome nem valor
    - Valor começa após ":" pulando um espaço
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

FRONTMATTER_DELIMITER = "---"
MAX_FIELD_COMPLETIONS = 20


@dataclass(frozen=True)
class FrontmatterField:
    name: str
    type: str
    description: str
    snippet: str
    required: bool = False
    values: tuple[str, ...] = ()
    default: str = ""


_BOOL = ("true", "false")

FRONTMATTER_FIELDS: tuple[FrontmatterField, ...] = (
    FrontmatterField("title", "string", "The post title displayed in the browser and feeds",
                     "title: ${1:My Post Title}", required=True),
    FrontmatterField("date", "date", "Publication date in YYYY-MM-DD format",
                     "date: ${1:2024-01-01}", required=True),
    FrontmatterField("published", "boolean", "Whether the post is published (visible on the site)",
                     "published: ${1|true,false|}", values=_BOOL),
    FrontmatterField("draft", "boolean", "Whether the post is a draft (not published)",
                     "draft: ${1|true,false|}", values=_BOOL, default="false"),
    FrontmatterField("description", "string", "Short description for SEO and feed summaries",
                     "description: ${1:A brief description of the post}"),
    FrontmatterField("slug", "string", "URL-safe identifier (auto-generated from filename if not set)",
                     "slug: ${1:my-post-slug}"),
    FrontmatterField("tags", "list", "List of tags for categorization",
                     "tags:\n  - ${1:tag1}\n  - ${2:tag2}"),
    FrontmatterField("aliases", "list", "Alternative slugs that resolve to this post in wikilinks",
                     "aliases:\n  - ${1:alias}"),
    FrontmatterField("template", "string", "Template file to use for rendering (default: post.html)",
                     "template: ${1:post.html}"),
    FrontmatterField("skip", "boolean", "Skip this post during processing",
                     "skip: ${1|true,false|}", values=_BOOL, default="false"),
    FrontmatterField("prevnext_feed", "string", "Feed/series slug for prev/next navigation",
                     "prevnext_feed: ${1:series-name}"),
    FrontmatterField("image", "string", "Featured image URL for Open Graph and social sharing",
                     "image: ${1:/images/featured.jpg}"),
    FrontmatterField("author", "string", "Post author name",
                     "author: ${1:Author Name}"),
    FrontmatterField("canonical_url", "string", "Canonical URL if this post is republished from another source",
                     "canonical_url: ${1:https://example.com/original-post}"),
    FrontmatterField("layout", "string", "Layout to use for this post (overrides default)",
                     "layout: ${1|default,wide,full|}", values=("default", "wide", "full")),
    FrontmatterField("toc", "boolean", "Enable table of contents for this post",
                     "toc: ${1|true,false|}", values=_BOOL),
    FrontmatterField("sidebar", "boolean", "Enable sidebar for this post",
                     "sidebar: ${1|true,false|}", values=_BOOL),
)

FIELDS_BY_NAME: dict[str, FrontmatterField] = {f.name: f for f in FRONTMATTER_FIELDS}


@dataclass
class FrontmatterContext:
    """Posição do cursor em relação ao frontmatter."""

    in_frontmatter: bool = False
    is_field_name: bool = False
    is_field_value: bool = False
    current_field: str = ""
    prefix: str = ""
    start_col: int = 0
    existing_fields: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class FieldSpan:
    """Campo de topo sob o cursor; start/end delimitam o nome ou o valor."""

    name: str
    start: int
    end: int
    on_value: bool


def find_frontmatter_bounds(lines: list[str]) -> tuple[int, int]:
    """
    Localiza os delimitadores do frontmatter.

    Returns:
        (linha de abertura, linha de fechamento); -1 onde não existir.
        Se a primeira linha não for "---", retorna (-1, -1).
    """
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return -1, -1
    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            return 0, index
    return 0, -1


def collect_existing_fields(lines: list[str], start: int, end: int) -> set[str]:
    """Nomes de campos de topo (linhas não indentadas com ":") já declarados."""
    existing: set[str] = set()
    for line in lines[start + 1 : end]:
        if line.startswith((" ", "\t")):
            continue
        colon = line.find(":")
        if colon > 0:
            name = line[:colon].strip()
            if name:
                existing.add(name)
    return existing


def _leading_whitespace(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def analyze_line_context(line: str, column: int, existing: set[str]) -> FrontmatterContext:
    """
    Classifica o cursor dentro de uma linha do frontmatter.

    Args:
        line: Texto da linha
        column: Coluna do cursor (já limitada ao tamanho da linha)
        existing: Campos já declarados

    Returns:
        FrontmatterContext com is_field_name ou is_field_value (ou nenhum,
        para itens de lista)
    """
    context = FrontmatterContext(in_frontmatter=True, existing_fields=existing)
    before = line[:column]

    if line.lstrip(" \t").startswith("- "):
        return context

    colon = before.find(":")
    if colon == -1 or column <= colon:
        context.is_field_name = True
        context.prefix = before.strip()
        context.start_col = _leading_whitespace(line)
        return context

    context.is_field_value = True
    context.current_field = line[:colon].strip()
    value_start = colon + 1
    if value_start < column:
        context.prefix = line[value_start:column].strip()
        context.start_col = value_start
        if value_start < len(line) and line[value_start] == " ":
            context.start_col = value_start + 1
    else:
        context.start_col = value_start
    return context


def frontmatter_context(content: str, line: int, column: int) -> FrontmatterContext:
    """
    Analisa o documento inteiro para decidir o contexto de frontmatter.

    Args:
        content: Texto do documento
        line: Linha do cursor (0-based)
        column: Coluna do cursor (0-based)
    """
    lines = content.split("\n")
    start, end = find_frontmatter_bounds(lines)
    if start == -1 or end == -1 or line <= start or line >= end:
        return FrontmatterContext()

    existing = collect_existing_fields(lines, start, end)
    current = lines[line].rstrip("\r")
    return analyze_line_context(current, max(0, min(column, len(current))), existing)


def field_at_position(content: str, line: int, column: int) -> Optional[FieldSpan]:
    """
    Retorna o campo de topo da linha do cursor, se ela estiver no frontmatter.

    Linhas indentadas, itens de lista e linhas sem ":" não são campos.
    """
    lines = content.split("\n")
    start, end = find_frontmatter_bounds(lines)
    if start == -1 or end == -1 or line <= start or line >= end:
        return None

    current = lines[line].rstrip("\r")
    if _leading_whitespace(current) > 0 or current.startswith("- "):
        return None
    colon = current.find(":")
    if colon <= 0:
        return None
    name = current[:colon].strip()
    if not name:
        return None

    column = min(column, len(current))
    if column <= colon:
        return FieldSpan(name=name, start=0, end=colon, on_value=False)

    value_start = colon + 1
    if value_start < len(current) and current[value_start] == " ":
        value_start += 1
    return FieldSpan(name=name, start=value_start, end=len(current), on_value=True)


def format_field_documentation(spec: FrontmatterField) -> str:
    """Documentação Markdown de um campo (nome, descrição, tipo, valores, default)."""
    header = f"**{spec.name}**"
    if spec.required:
        header += " (required)"
    parts = [header, spec.description, f"*Type: {spec.type}*"]
    if spec.values:
        parts.append(f"*Allowed values: {', '.join(spec.values)}*")
    if spec.default:
        parts.append(f"*Default: {spec.default}*")
    return "\n\n".join(parts)


def sorted_fields() -> list[FrontmatterField]:
    """Campos obrigatórios primeiro, depois ordem alfabética."""
    return sorted(FRONTMATTER_FIELDS, key=lambda f: (not f.required, f.name))
