"""
hover.py - Informação contextual ao passar o mouse (textDocument/hover)

Propósito:
    Fornece informação contextual para elementos Markdown quando o usuário
    posiciona o cursor sobre eles no editor.

Mapeamento de hover (nesta ordem):
    @handle       → Mention (título, descrição, site, feed, aliases)
    campo:        → Campo do frontmatter (tipo, descrição, valores)
    !!! tipo      → Tipo de admonition (descrição, cor, uso)
    [[slug]]      → Post (título, descrição, slug, caminho)

Notas de implementação:
    - Referência não resolvida ainda gera hover ("Broken link", "Unknown mention")
    - Sugestões "Did you mean" via difflib.get_close_matches
    - Range do hover cobre o span exato do elemento
    - Formata resposta como Markdown via MarkupContent
"""

from __future__ import annotations

import logging
from difflib import get_close_matches
from typing import Optional

from lsprotocol.types import Hover, MarkupContent, MarkupKind, Position, Range

from markata_lsp.admonitions import (
    admonition_at_position,
    format_admonition_documentation,
    get_admonition_type,
)
from markata_lsp.frontmatter_fields import (
    FIELDS_BY_NAME,
    field_at_position,
    format_field_documentation,
)
from markata_lsp.index import Index
from markata_lsp.mentions import mention_at_position
from markata_lsp.models import MentionInfo, PostInfo
from markata_lsp.wikilinks import wikilink_at_position

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


def compute_hover(source: str, position: Position, index: Index) -> Optional[Hover]:
    """
    Computa hover baseado na posição do cursor.

    Args:
        source: Texto do documento aberto
        position: Posição do cursor (0-based)
        index: Índice do workspace

    Returns:
        Hover com MarkupContent ou None se nada encontrado
    """
    lines = source.split("\n")
    if position.line >= len(lines):
        return None

    line_no = position.line
    line = lines[line_no].rstrip("\r")
    col = position.character

    mention = mention_at_position(line, col)
    if mention is not None:
        return _hover_mention(
            mention.handle, index, _range(line_no, mention.start, mention.end)
        )

    field = field_at_position(source, line_no, col)
    if field is not None:
        return _hover_field(field.name, _range(line_no, field.start, field.end))

    admonition = admonition_at_position(line, col)
    if admonition is not None:
        name, start, end = admonition
        return _hover_admonition(name, _range(line_no, start, end))

    link = wikilink_at_position(line, col, line_no)
    if link is not None:
        return _hover_wikilink(
            link.target, index, _range(line_no, link.start_char, link.end_char)
        )

    return None


def _range(line: int, start: int, end: int) -> Range:
    return Range(
        start=Position(line=line, character=start),
        end=Position(line=line, character=end),
    )


def _markdown_hover(value: str, hover_range: Range) -> Hover:
    return Hover(
        contents=MarkupContent(kind=MarkupKind.Markdown, value=value),
        range=hover_range,
    )


def _suggestions(target: str, candidates: list[str]) -> str:
    matches = get_close_matches(target.lower(), candidates, n=MAX_SUGGESTIONS, cutoff=0.6)
    if not matches:
        return ""
    return "\n\nDid you mean: " + ", ".join(f"`{m}`" for m in matches) + "?"


def _hover_wikilink(slug: str, index: Index, hover_range: Range) -> Hover:
    """Hover para [[slug]]: dados do post ou aviso de link quebrado."""
    post = index.get_by_slug(slug)
    if post is None:
        md = f"**Broken link**\n\nTarget post `{slug}` not found."
        md += _suggestions(slug, index.all_slugs())
        return _markdown_hover(md, hover_range)
    return _markdown_hover(format_post_hover(post), hover_range)


def format_post_hover(post: PostInfo) -> str:
    md = f"## {post.title}\n\n"
    if post.description:
        md += f"{post.description}\n\n"
    md += "---\n"
    md += f"*Slug:* `{post.slug}`\n\n"
    md += f"*Path:* `{post.path}`"
    return md


def _hover_mention(handle: str, index: Index, hover_range: Range) -> Hover:
    """Hover para @handle: dados da mention ou aviso de mention desconhecida."""
    mention = index.get_by_handle(handle)
    if mention is None:
        md = f"**Unknown mention**\n\n`@{handle}` not found in blogroll configuration."
        md += _suggestions(handle, index.all_handles())
        return _markdown_hover(md, hover_range)
    return _markdown_hover(format_mention_hover(mention), hover_range)


def format_mention_hover(mention: MentionInfo) -> str:
    md = f"## @{mention.handle}"
    if mention.title:
        md += f" - {mention.title}"
    md += "\n\n"
    if mention.description:
        md += f"{mention.description}\n\n"
    md += "---\n"
    if mention.is_internal and mention.path:
        md += f"*Post:* `{mention.path}`\n\n"
    if mention.site_url:
        md += f"*Site:* {mention.site_url}\n\n"
    if mention.feed_url:
        md += f"*Feed:* {mention.feed_url}\n\n"
    if mention.aliases:
        md += "*Aliases:* " + ", ".join(f"@{a}" for a in mention.aliases)
    return md.rstrip("\n")


def _hover_field(name: str, hover_range: Range) -> Hover:
    """Hover para campo do frontmatter (conhecido ou customizado)."""
    spec = FIELDS_BY_NAME.get(name)
    if spec is None:
        return _markdown_hover(f"**{name}**\n\n*Custom field*", hover_range)
    return _markdown_hover(format_field_documentation(spec), hover_range)


def _hover_admonition(name: str, hover_range: Range) -> Hover:
    """Hover para o tipo de uma admonition."""
    admonition = get_admonition_type(name)
    if admonition is None:
        return _markdown_hover(f"**{name}**\n\n*Unknown admonition type*", hover_range)
    return _markdown_hover(format_admonition_documentation(admonition), hover_range)
