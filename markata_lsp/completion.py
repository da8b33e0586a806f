"""
completion.py - Autocomplete para wikilinks, mentions, frontmatter e admonitions

Propósito:
    Fornece sugestões de completamento contextual:
    - Dentro de "[[": slugs e aliases dos posts indexados
    - Após "@": handles e aliases de mentions (blogroll e from_posts)
    - No frontmatter: nomes de campos conhecidos e valores enumerados
    - Após "!!!", "???" ou "???+": tipos de admonition

Notas de implementação:
    - Prioridade fixa: frontmatter → admonition → mention → wikilink
    - Nenhum contexto aplicável → lista vazia
    - Slug/handle e aliases viram itens distintos; canônicos antes de aliases
    - Com prefixo digitado, text_edit substitui [início do prefixo, cursor]
    - CompletionItemKind: Reference (posts/mentions), Property (campos),
      Value (valores), Keyword (admonitions)
"""

from __future__ import annotations

import logging
from typing import Optional

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    InsertTextFormat,
    MarkupContent,
    MarkupKind,
    Position,
    Range,
    TextEdit,
)

from markata_lsp.admonitions import (
    ADMONITION_TYPES,
    AdmonitionContext,
    admonition_context,
    format_admonition_summary,
)
from markata_lsp.frontmatter_fields import (
    FIELDS_BY_NAME,
    MAX_FIELD_COMPLETIONS,
    FrontmatterContext,
    format_field_documentation,
    frontmatter_context,
    sorted_fields,
)
from markata_lsp.index import Index, SearchMatch
from markata_lsp.mentions import mention_context
from markata_lsp.models import MentionInfo, PostInfo
from markata_lsp.wikilinks import wikilink_context

logger = logging.getLogger(__name__)


def compute_completions(source: str, position: Position, index: Index) -> CompletionList:
    """
    Computa lista de completamento para a posição do cursor.

    Args:
        source: Texto do documento aberto
        position: Posição do cursor (0-based)
        index: Índice do workspace

    Returns:
        CompletionList (is_incomplete=False)
    """
    lines = source.split("\n")
    if position.line >= len(lines):
        return _empty()

    line = lines[position.line].rstrip("\r")
    col = min(position.character, len(line))

    fm_context = frontmatter_context(source, position.line, col)
    if fm_context.in_frontmatter:
        return CompletionList(is_incomplete=False, items=_frontmatter_items(fm_context, position.line, col))

    ad_context = admonition_context(line, col)
    if ad_context is not None:
        return CompletionList(is_incomplete=False, items=_admonition_items(ad_context, position.line, col))

    prefix, start, applies = mention_context(line, col)
    if applies:
        return CompletionList(
            is_incomplete=False,
            items=_mention_items(index.search_mentions(prefix), prefix, start, position.line, col),
        )

    prefix, start, applies = wikilink_context(line, col)
    if applies:
        return CompletionList(
            is_incomplete=False,
            items=_wikilink_items(index.search_posts(prefix), prefix, start, position.line, col),
        )

    return _empty()


def _empty() -> CompletionList:
    return CompletionList(is_incomplete=False, items=[])


def _replace_edit(prefix: str, start: int, line: int, col: int, new_text: str) -> Optional[TextEdit]:
    if not prefix:
        return None
    return TextEdit(
        range=Range(start=Position(line=line, character=start), end=Position(line=line, character=col)),
        new_text=new_text,
    )


def _markdown(value: str) -> MarkupContent:
    return MarkupContent(kind=MarkupKind.Markdown, value=value)


# --- Wikilinks ---


def format_post_documentation(post: PostInfo) -> str:
    parts = [f"**{post.title}**"]
    if post.description:
        parts.append(post.description)
    parts.append(f"*Path: {post.path}*")
    return "\n\n".join(parts)


def _wikilink_items(
    matches: list[SearchMatch], prefix: str, start: int, line: int, col: int
) -> list[CompletionItem]:
    items = []
    for i, match in enumerate(matches):
        post: PostInfo = match.item
        detail = post.title
        if match.is_alias:
            detail = f"{post.title} (alias of {post.slug})"
        items.append(
            CompletionItem(
                label=match.key,
                kind=CompletionItemKind.Reference,
                detail=detail,
                documentation=_markdown(format_post_documentation(post)),
                insert_text=match.key,
                insert_text_format=InsertTextFormat.PlainText,
                filter_text=" ".join([match.key, post.title, *post.aliases]),
                sort_text=f"{i:05d}",
                text_edit=_replace_edit(prefix, start, line, col, match.key),
            )
        )
    return items


# --- Mentions ---


def format_mention_documentation(mention: MentionInfo) -> str:
    parts = [f"**@{mention.handle}**" + (f" - {mention.title}" if mention.title else "")]
    if mention.description:
        parts.append(mention.description)
    if mention.is_internal:
        parts.append(f"*Post: {mention.path}*")
    elif mention.site_url:
        parts.append(f"*Site: {mention.site_url}*")
    return "\n\n".join(parts)


def _mention_items(
    matches: list[SearchMatch], prefix: str, start: int, line: int, col: int
) -> list[CompletionItem]:
    items = []
    for i, match in enumerate(matches):
        mention: MentionInfo = match.item
        detail = mention.title or mention.handle
        if match.is_alias:
            detail = f"{detail} (alias of @{mention.handle})"
        items.append(
            CompletionItem(
                label=match.key,
                kind=CompletionItemKind.Reference,
                detail=detail,
                documentation=_markdown(format_mention_documentation(mention)),
                insert_text=match.key,
                insert_text_format=InsertTextFormat.PlainText,
                filter_text=" ".join([match.key, mention.title, *mention.aliases]).strip(),
                sort_text=f"{i:05d}",
                text_edit=_replace_edit(prefix, start, line, col, match.key),
            )
        )
    return items


# --- Frontmatter ---


def _frontmatter_items(context: FrontmatterContext, line: int, col: int) -> list[CompletionItem]:
    if context.is_field_name:
        return _field_name_items(context, line, col)
    if context.is_field_value:
        return _field_value_items(context, line, col)
    return []


def _field_name_items(context: FrontmatterContext, line: int, col: int) -> list[CompletionItem]:
    prefix = context.prefix.lower()
    items = []
    for spec in sorted_fields():
        if spec.name in context.existing_fields:
            continue
        if prefix and not spec.name.startswith(prefix):
            continue
        detail = spec.type + (" (required)" if spec.required else "")
        items.append(
            CompletionItem(
                label=spec.name,
                kind=CompletionItemKind.Property,
                detail=detail,
                documentation=_markdown(format_field_documentation(spec)),
                insert_text=spec.snippet,
                insert_text_format=InsertTextFormat.Snippet,
                filter_text=spec.name,
                sort_text=f"{0 if spec.required else 1}{spec.name}",
                text_edit=_replace_edit(context.prefix, context.start_col, line, col, spec.snippet),
            )
        )
        if len(items) >= MAX_FIELD_COMPLETIONS:
            break
    return items


def _field_value_items(context: FrontmatterContext, line: int, col: int) -> list[CompletionItem]:
    spec = FIELDS_BY_NAME.get(context.current_field)
    if spec is None or not spec.values:
        return []
    prefix = context.prefix.lower()
    items = []
    for i, value in enumerate(spec.values):
        if prefix and not value.lower().startswith(prefix):
            continue
        items.append(
            CompletionItem(
                label=value,
                kind=CompletionItemKind.Value,
                detail=f"Value for {spec.name}",
                insert_text=value,
                insert_text_format=InsertTextFormat.PlainText,
                sort_text=f"{i:02d}",
                text_edit=_replace_edit(context.prefix, context.start_col, line, col, value),
            )
        )
    return items


# --- Admonitions ---


def _admonition_items(context: AdmonitionContext, line: int, col: int) -> list[CompletionItem]:
    prefix = context.type_prefix.lower()
    matching = sorted(
        (t for t in ADMONITION_TYPES if not prefix or t.name.startswith(prefix)),
        key=lambda t: t.name,
    )
    items = []
    for i, admonition in enumerate(matching):
        snippet = f'{admonition.name} "${{1:{admonition.title}}}"'
        if context.needs_space:
            snippet = " " + snippet
        items.append(
            CompletionItem(
                label=admonition.name,
                kind=CompletionItemKind.Keyword,
                detail=admonition.description,
                documentation=_markdown(format_admonition_summary(admonition)),
                insert_text=snippet,
                insert_text_format=InsertTextFormat.Snippet,
                filter_text=admonition.name,
                sort_text=f"{i:05d}",
                text_edit=_replace_edit(context.type_prefix, context.type_start, line, col, snippet),
            )
        )
    return items
